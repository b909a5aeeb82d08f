"""
Gateway Binding — wires the registry, dispatcher, scheduler and reconciler together.

Lifecycle, in the order a host drives it:
  Startup:          set_event_publisher → add_binding_provider → activate → updated → start
  Continuous:       tick (periodic), receive_command, receive_update
  Reconfiguration:  updated
  Shutdown:         stop → deactivate → unset_event_publisher → remove_binding_provider

One re-entrant lock guards tick, dispatch and apply, so a reconfiguration
and its forced refresh cycle are never interleaved with another cycle.
"""

import logging
import threading
from typing import Mapping, Optional

from gateway_binding.bridge.handler import BridgeHandler, InMemoryBridgeHandler
from gateway_binding.dispatch.dispatcher import CommandDispatcher
from gateway_binding.events.publisher import EventPublisher
from gateway_binding.models.binding import BindingStatus, ReconciliationResult
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.models.dispatch import DispatchResult, TickResult
from gateway_binding.reconciler.config import ConfigurationReconciler
from gateway_binding.registry.store import BindingProvider, ItemRegistry
from gateway_binding.scheduler.refresh import RefreshScheduler

logger = logging.getLogger(__name__)


class GatewayBinding:
    """Long-lived binding object owned by the host."""

    def __init__(
        self,
        registry: Optional[ItemRegistry] = None,
        config: Optional[BridgeConfiguration] = None,
        bridge_handler: Optional[BridgeHandler] = None,
    ):
        logger.debug("GatewayBinding(constructor) called.")
        self.lock = threading.RLock()
        self.registry = registry or ItemRegistry()
        self.config = config or BridgeConfiguration()
        self.bridge_handler = bridge_handler or InMemoryBridgeHandler(self.config)

        self.dispatcher = CommandDispatcher(
            registry=self.registry,
            bridge_handler=self.bridge_handler,
            lock=self.lock,
        )
        self.scheduler = RefreshScheduler(
            config=self.config,
            dispatcher=self.dispatcher,
            registry=self.registry,
            lock=self.lock,
        )
        self.reconciler = ConfigurationReconciler(self.config, self.scheduler)

    @property
    def name(self) -> str:
        return self.scheduler.name

    # --- Startup ---

    def set_event_publisher(self, event_publisher: EventPublisher) -> None:
        logger.debug("set_event_publisher() called.")
        self.dispatcher.set_event_sink(event_publisher)

    def add_binding_provider(self, provider: BindingProvider) -> None:
        logger.debug("add_binding_provider(%s) called.", provider.name)
        with self.lock:
            self.registry.add_provider(provider)

    def all_bindings_changed(self, provider: BindingProvider) -> None:
        logger.debug("all_bindings_changed(%s) called.", provider.name)

    def activate(self) -> None:
        """Nothing to set up here: the host follows activation with `updated`."""
        logger.info("Active items are: %s.", self.registry.bound_item_names())

    def start(self) -> None:
        self.scheduler.start()

    # --- Continuous ---

    def tick(self) -> TickResult:
        return self.scheduler.tick()

    def receive_command(self, item_name: str, command: str) -> DispatchResult:
        logger.debug("receive_command(%s,%s) called.", item_name, command)
        return self.dispatcher.dispatch(item_name, command)

    def receive_update(self, item_name: str, state: str) -> None:
        self.dispatcher.receive_update(item_name, state)

    # --- Reconfiguration ---

    def updated(self, settings: Optional[Mapping[str, Optional[str]]]) -> ReconciliationResult:
        return self.reconciler.apply(settings)

    # --- Shutdown ---

    def stop(self) -> None:
        self.scheduler.stop()

    def deactivate(self) -> None:
        logger.debug("deactivate() called.")
        self.stop()

    def unset_event_publisher(self) -> None:
        logger.debug("unset_event_publisher() called.")
        self.dispatcher.set_event_sink(None)

    def remove_binding_provider(self, name: str) -> Optional[BindingProvider]:
        logger.debug("remove_binding_provider(%s) called.", name)
        with self.lock:
            return self.registry.remove_provider(name)

    # --- Status ---

    def status(self) -> BindingStatus:
        with self.lock:
            return BindingStatus(
                name=self.name,
                running=self.scheduler.running,
                properly_configured=self.scheduler.properly_configured,
                cycle=self.scheduler.cycle,
                refresh_interval_seconds=self.config.refresh_interval_seconds,
                providers=[p.name for p in self.registry.providers],
                bound_items=self.registry.bound_item_names(),
                event_sink=self.dispatcher.event_sink is not None,
            )
