"""
Bridge Handler — the collaborator that talks to the gateway device.

The device wire protocol lives behind this boundary. The dispatcher hands it
a request and moves on; success, failure, timeouts and retries are the
handler's own business, configured through the shared BridgeConfiguration.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from gateway_binding.events.publisher import EventPublisher
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.models.item import ItemConfig
from gateway_binding.registry.store import BindingProvider

logger = logging.getLogger(__name__)


class BridgeHandler(Protocol):
    """Protocol for device communication — pluggable backend."""

    def handle_command(
        self,
        item_name: str,
        command: Optional[str],
        item_config: ItemConfig,
        provider: BindingProvider,
        event_sink: EventPublisher,
    ) -> None: ...


class InMemoryBridgeHandler:
    """
    Simulated gateway. Keeps one state value per item, records every request,
    publishes the current state on refresh and echoes commands as new state.
    No device I/O is performed.
    """

    def __init__(self, config: BridgeConfiguration, initial_states: Optional[Dict[str, str]] = None):
        self.config = config
        self._states: Dict[str, str] = dict(initial_states or {})
        self._requests: List[dict] = []

    @property
    def requests(self) -> List[dict]:
        return list(self._requests)

    def requests_for(self, item_name: str) -> List[dict]:
        return [r for r in self._requests if r["item_name"] == item_name]

    def set_state(self, item_name: str, state: str) -> None:
        """Simulate a change on the device side."""
        self._states[item_name] = state

    def get_state(self, item_name: str) -> Optional[str]:
        return self._states.get(item_name)

    def handle_command(
        self,
        item_name: str,
        command: Optional[str],
        item_config: ItemConfig,
        provider: BindingProvider,
        event_sink: EventPublisher,
    ) -> None:
        logger.debug(
            "handle_command(%s,%s) via %s:%s:%s.",
            item_name, command, self.config.protocol,
            self.config.ip_address, self.config.tcp_port,
        )
        self._requests.append({
            "item_name": item_name,
            "command": command,
            "item_type": item_config.item_type.name,
            "provider": provider.name,
            "received_at": datetime.utcnow().isoformat(),
        })

        if command is not None:
            self._states[item_name] = command

        state = self._states.get(item_name)
        if state is not None:
            event_sink.post_update(item_name, state)
