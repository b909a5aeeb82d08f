"""
Refresh Scheduler — the binding's polling heartbeat.

Each tick advances a cycle counter and asks the dispatcher to refresh every
refreshable item whose divider evenly divides the counter. Items are visited
provider by provider, in registration order, so identical state always yields
the same dispatch sequence.

The periodic trigger re-reads the refresh interval from the BridgeConfiguration
before every wait, so reconfiguration changes the period without a restart.
"""

import asyncio
import logging
import threading
from typing import Optional

from gateway_binding import const
from gateway_binding.dispatch.dispatcher import CommandDispatcher
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.models.dispatch import TickResult
from gateway_binding.models.item import is_refresh_due, is_refreshable
from gateway_binding.registry.store import BindingProvider, ItemRegistry

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Drives refresh cycles.

    `tick()` runs under the lock shared with the dispatcher and the
    reconciler, so at most one cycle is ever in flight and a cycle never
    observes a half-applied reconfiguration.
    """

    def __init__(
        self,
        config: BridgeConfiguration,
        dispatcher: CommandDispatcher,
        registry: Optional[ItemRegistry] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.registry = registry
        self.lock = lock or dispatcher.lock

        self.properly_configured = False
        self._cycle = 0
        self._last_interval: Optional[float] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

    @property
    def name(self) -> str:
        return f"{const.BINDING_ID} Refresh Service"

    @property
    def cycle(self) -> int:
        return self._cycle

    @property
    def running(self) -> bool:
        return self._running

    @property
    def refresh_interval_seconds(self) -> float:
        with self.lock:
            return self.config.refresh_interval_seconds

    def _next_interval(self) -> float:
        interval = self.refresh_interval_seconds
        if interval != self._last_interval:
            logger.info(
                "%s refresh interval set to %s milliseconds.",
                const.BINDING_ID, int(interval * 1000),
            )
            self._last_interval = interval
        return interval

    # --- Refresh cycle ---

    def tick(self) -> TickResult:
        """Run one refresh cycle."""
        with self.lock:
            self._cycle = (self._cycle + 1) % const.CYCLE_COUNTER_MODULUS
            result = TickResult(cycle=self._cycle)
            logger.debug("tick() called for cycle %d.", self._cycle)

            if self.registry is None or not self.registry.bindings_exist():
                logger.debug("There is no existing binding configuration => refresh cycle aborted.")
                result.aborted = "no_bindings"
                return result

            for provider in self.registry.providers:
                logger.debug("tick(): working with %r.", provider)
                for item_name in provider.item_names():
                    reason = self._refresh_item(provider, item_name)
                    if reason is None:
                        if item_name not in result.refreshed:
                            result.refreshed.append(item_name)
                    else:
                        result.skipped[item_name] = reason

            logger.debug("tick() done.")
            return result

    def _refresh_item(self, provider: BindingProvider, item_name: str) -> Optional[str]:
        """
        Refresh one (provider, item) binding if it is due, using that provider's
        config. Returns the skip reason otherwise, including a dispatcher refusal.
        """
        item_config = provider.get_config(item_name)
        if item_config is None:
            logger.warning("tick(): no item config for %s, skipping.", item_name)
            return "missing_config"

        item_type = item_config.item_type
        if not is_refreshable(item_type):
            logger.debug("tick(): ignoring item %s as not-refreshable.", item_name)
            return "not_refreshable"

        if not is_refresh_due(item_type, self._cycle):
            logger.debug("tick(): refresh cycle not yet come for item %s.", item_name)
            return "not_due"

        logger.debug("tick(): refreshing item %s.", item_name)
        dispatched = self.dispatcher.refresh(item_name, item_config, provider)
        if not dispatched.forwarded:
            return dispatched.reason
        return None

    # --- Periodic trigger ---

    def _periodic_tick(self) -> None:
        if not self.properly_configured:
            logger.debug("Binding not yet properly configured => periodic refresh skipped.")
            return
        try:
            self.tick()
        except Exception:
            logger.exception("Refresh cycle %d failed.", self._cycle)

    def start(self) -> None:
        """Start the periodic trigger on a background thread."""
        if self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set():
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._running = True
        self._thread.start()
        logger.debug("%s started.", self.name)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the periodic trigger. An in-flight cycle completes first."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("%s still finishing a refresh cycle.", self.name)
                return
            self._thread = None
        self._running = False
        logger.debug("%s stopped.", self.name)

    def _run(self) -> None:
        stop_event = self._stop_event
        try:
            while not stop_event.wait(self._next_interval()):
                self._periodic_tick()
        finally:
            if threading.current_thread() is self._thread or self._thread is None:
                self._running = False

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run the periodic trigger on the caller's event loop."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self._next_interval(),
                    )
                except asyncio.TimeoutError:
                    self._periodic_tick()
        finally:
            self._running = False
