"""
Configuration Reconciler — applies host settings snapshots to the live BridgeConfiguration.

Behavioral Contract:
- Keys are processed in declaration order; blank or missing values are left alone
- Every successful assignment raises the configuration's `changed` flag
- A malformed value raises ConfigurationError naming the key; that field keeps
  its previous value, earlier keys stay applied, later keys are not attempted
- Unrecognized keys are ignored
- Whatever happened, the binding is then marked properly configured and one
  refresh cycle is forced before returning (or re-raising)
- The password never reaches the log in cleartext
"""

import logging
import re
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from gateway_binding import const
from gateway_binding.models.binding import ReconciliationResult
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.scheduler.refresh import RefreshScheduler

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a configuration value cannot be applied."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


def _parse_string(value: str) -> str:
    return value


_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(value: str) -> int:
    # ASCII digits only: no "8_080", no non-ASCII digit forms
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {value!r}")


# (key, field, parser), in processing order.
SETTINGS: List[Tuple[str, str, Callable[[str], object]]] = [
    (const.BRIDGE_PROTOCOL, "protocol", _parse_string),
    (const.BRIDGE_IPADDRESS, "ip_address", _parse_string),
    (const.BRIDGE_TCPPORT, "tcp_port", _parse_int),
    (const.BRIDGE_PASSWORD, "password", _parse_string),
    (const.BRIDGE_TIMEOUT_MSECS, "timeout_msecs", _parse_int),
    (const.BRIDGE_RETRIES, "retries", _parse_int),
    (const.BRIDGE_REFRESH_MSECS, "refresh_msecs", _parse_int),
    (const.BRIDGE_IS_BULK_RETRIEVAL_ENABLED, "bulk_retrieval_enabled", _parse_bool),
]

SENSITIVE_KEYS = {const.BRIDGE_PASSWORD}


def _is_blank(value: Optional[object]) -> bool:
    return value is None or not str(value).strip()


class ConfigurationReconciler:
    """Owns all writes to the BridgeConfiguration."""

    def __init__(self, config: BridgeConfiguration, scheduler: RefreshScheduler):
        self.config = config
        self.scheduler = scheduler
        self.lock = scheduler.lock

    def apply(self, settings: Optional[Mapping[str, Optional[str]]]) -> ReconciliationResult:
        """
        Apply a flat key/value settings snapshot, then force one refresh cycle.
        Raises ConfigurationError for the first key whose value cannot be applied.
        """
        settings = settings or {}
        with self.lock:
            logger.debug("apply() called with %d entries.", len(settings))
            applied: List[str] = []
            known = {key for key, _, _ in SETTINGS}
            ignored = [key for key in settings if key not in known]
            if ignored:
                logger.debug("apply(): ignoring unrecognized keys %s.", ignored)

            try:
                for key, field, parser in SETTINGS:
                    raw = settings.get(key)
                    if _is_blank(raw):
                        continue
                    self._assign(key, field, parser, str(raw).strip())
                    applied.append(key)
            finally:
                if applied:
                    self.config.revision += 1
                self.scheduler.properly_configured = True
                logger.info("%s", self.config.summary())
                tick = self.scheduler.tick()

            return ReconciliationResult(
                applied=applied,
                ignored=ignored,
                revision=self.config.revision,
                tick=tick,
            )

    def _assign(self, key: str, field: str, parser: Callable[[str], object], raw: str) -> None:
        try:
            value = parser(raw)
            setattr(self.config, field, value)
        except ValidationError as e:
            raise ConfigurationError(key, e.errors()[0]["msg"]) from e
        except ValueError as e:
            raise ConfigurationError(key, str(e)) from e

        self.config.changed = True
        shown = self.config.masked()[key] if key in SENSITIVE_KEYS else value
        logger.debug("apply(): adapted %s to %s.", key, shown)

    def current(self) -> Dict[str, object]:
        """Masked view of the current configuration."""
        with self.lock:
            return self.config.masked()
