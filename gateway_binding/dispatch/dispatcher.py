"""
Command Dispatcher — routes commands and refresh requests toward the bridge.

Behavioral Contract:
- Never dispatches without an event sink to report state back through
- Never forwards a command to an item that is neither writable nor executable
- Refresh requests (no command) are always forwarded when the item is known;
  scheduled refreshes go to exactly one provider, with that provider's config
- The bridge handler's own success or failure is opaque; it never breaks the caller
- Nothing here raises: every refusal is logged and reported in the DispatchResult
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from gateway_binding.bridge.handler import BridgeHandler
from gateway_binding.events.publisher import EventPublisher
from gateway_binding.models.dispatch import DispatchResult
from gateway_binding.models.item import ItemConfig, accepts_commands
from gateway_binding.registry.store import BindingProvider, ItemRegistry

logger = logging.getLogger(__name__)

HISTORY_SIZE = 200


class CommandDispatcher:
    """Validates inbound requests against item capabilities and forwards them."""

    def __init__(
        self,
        registry: ItemRegistry,
        bridge_handler: BridgeHandler,
        lock: Optional[threading.RLock] = None,
        event_sink: Optional[EventPublisher] = None,
    ):
        self.registry = registry
        self.bridge_handler = bridge_handler
        self.lock = lock or threading.RLock()
        self._event_sink = event_sink
        self._history: Deque[DispatchResult] = deque(maxlen=HISTORY_SIZE)

    @property
    def event_sink(self) -> Optional[EventPublisher]:
        return self._event_sink

    def set_event_sink(self, event_sink: Optional[EventPublisher]) -> None:
        with self.lock:
            self._event_sink = event_sink

    def history(self, limit: int = 50) -> List[DispatchResult]:
        """The most recent dispatch results, oldest first."""
        with self.lock:
            return list(self._history)[-limit:] if limit > 0 else []

    def dispatch(self, item_name: str, command: Optional[str] = None) -> DispatchResult:
        """
        Forward a command (write path) or a refresh request (command=None)
        for one item to the bridge handler.
        """
        with self.lock:
            logger.debug("dispatch(%s,%s) called.", item_name, command)
            result = self._dispatch(item_name, command)
            self._history.append(result)
            return result

    def refresh(self, item_name: str, item_config: ItemConfig, provider: BindingProvider) -> DispatchResult:
        """
        Refresh request for one (provider, item) binding, forwarded with that
        provider's own item config. Used by the scheduler, which has already
        checked the item is refreshable and due.
        """
        with self.lock:
            logger.debug("refresh(%s) called for %r.", item_name, provider)
            if self._event_sink is None:
                logger.warning("refresh(): event sink is missing. Should NEVER occur.")
                result = self._refused(item_name, None, "no_event_sink")
            else:
                result = self._forward(item_name, None, item_config, [provider])
            self._history.append(result)
            return result

    def _dispatch(self, item_name: str, command: Optional[str]) -> DispatchResult:
        if self._event_sink is None:
            logger.warning("dispatch(): event sink is missing. Should NEVER occur.")
            return self._refused(item_name, command, "no_event_sink")

        item_config = self.registry.get_config(item_name)
        if item_config is None:
            logger.warning("dispatch(): ignoring request to unknown item %s.", item_name)
            return self._refused(item_name, command, "unknown_item")

        if command is not None and not accepts_commands(item_config.item_type):
            logger.warning(
                "dispatch(): ignoring command to item %s as neither writable nor executable.",
                item_name,
            )
            return self._refused(item_name, command, "not_commandable")

        providers = self.registry.providers_for(item_name)
        if not providers:
            logger.warning("dispatch(): no binding provider declares item %s.", item_name)
            return self._refused(item_name, command, "no_provider")

        return self._forward(item_name, command, item_config, providers)

    def _forward(
        self,
        item_name: str,
        command: Optional[str],
        item_config: ItemConfig,
        providers: List[BindingProvider],
    ) -> DispatchResult:
        for provider in providers:
            logger.debug("dispatch(): working with %r.", provider)
            try:
                self.bridge_handler.handle_command(
                    item_name, command, item_config, provider, self._event_sink
                )
            except Exception:
                logger.exception(
                    "dispatch(): bridge handler failed on item %s (provider %s).",
                    item_name, provider.name,
                )

        return DispatchResult(
            item_name=item_name,
            command=command,
            forwarded=True,
            providers=[p.name for p in providers],
            dispatched_at=datetime.utcnow(),
        )

    def _refused(self, item_name: str, command: Optional[str], reason: str) -> DispatchResult:
        return DispatchResult(
            item_name=item_name,
            command=command,
            forwarded=False,
            reason=reason,
            dispatched_at=datetime.utcnow(),
        )

    def receive_update(self, item_name: str, state: str) -> None:
        """Update notification from the device side. Accepted, not processed further."""
        logger.debug("receive_update(%s,%s) called.", item_name, state)
