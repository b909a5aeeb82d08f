"""Bridge Configuration — the typed settings used to reach the gateway."""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from gateway_binding import const


class BridgeConfiguration(BaseModel):
    """
    Mutable settings bag for the gateway bridge.

    Written only by the ConfigurationReconciler. `changed` is raised on every
    assignment made by reconciliation and signals that dependent state should
    be refreshed; `revision` counts the reconciliations that assigned anything.
    """

    model_config = ConfigDict(validate_assignment=True)

    protocol: str = Field(min_length=1, default="slip")
    ip_address: str = Field(min_length=1, default="192.168.1.1")
    tcp_port: int = Field(ge=1, le=65535, default=51200)
    password: SecretStr = SecretStr("velux123")
    timeout_msecs: int = Field(ge=1, default=1000)
    retries: int = Field(ge=0, default=5)
    refresh_msecs: int = Field(ge=1, default=10000)
    bulk_retrieval_enabled: bool = True

    changed: bool = False
    revision: int = 0

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_msecs / 1000.0

    def masked(self) -> Dict[str, object]:
        """Settings keyed by configuration key, with the password masked."""
        return {
            const.BRIDGE_PROTOCOL: self.protocol,
            const.BRIDGE_IPADDRESS: self.ip_address,
            const.BRIDGE_TCPPORT: self.tcp_port,
            const.BRIDGE_PASSWORD: "*" * len(self.password.get_secret_value()),
            const.BRIDGE_TIMEOUT_MSECS: self.timeout_msecs,
            const.BRIDGE_RETRIES: self.retries,
            const.BRIDGE_REFRESH_MSECS: self.refresh_msecs,
            const.BRIDGE_IS_BULK_RETRIEVAL_ENABLED: self.bulk_retrieval_enabled,
        }

    def summary(self) -> str:
        """One-line rendering for the log, e.g. `gatewayConfig[protocol=slip,...]`."""
        fields = ",".join(f"{key}={value}" for key, value in self.masked().items())
        return f"{const.BINDING_ID}Config[{fields}]"
