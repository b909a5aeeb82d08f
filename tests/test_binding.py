"""End-to-end tests for the binding lifecycle."""

import logging
import threading

import pytest

from gateway_binding.binding import GatewayBinding
from gateway_binding.events.publisher import InMemoryEventPublisher
from gateway_binding.reconciler.config import ConfigurationError
from gateway_binding.registry.store import BindingProvider

from conftest import RecordingBridgeHandler, make_item


class TestGatewayBindingLifecycle:
    def setup_method(self):
        self.handler = RecordingBridgeHandler()
        self.binding = GatewayBinding(bridge_handler=self.handler)
        self.sink = InMemoryEventPublisher()
        self.provider = BindingProvider("velux.items")
        self.provider.bind(make_item("Shutter", writable=True, divider=1))
        self.provider.bind(make_item("Window", divider=2))
        self.provider.bind(make_item("Scene", refreshable=False, executable=True))

    def teardown_method(self):
        self.binding.stop()

    def _startup(self):
        self.binding.set_event_publisher(self.sink)
        self.binding.add_binding_provider(self.provider)
        self.binding.all_bindings_changed(self.provider)
        self.binding.activate()
        return self.binding.updated({})

    def test_startup_sequence(self, caplog):
        with caplog.at_level(logging.INFO):
            result = self._startup()
        assert result.tick.cycle == 1
        assert result.tick.refreshed == ["Shutter"]
        assert "Active items are: ['Shutter', 'Window', 'Scene']" in caplog.text
        status = self.binding.status()
        assert status.properly_configured is True
        assert status.event_sink is True
        assert status.bound_items == ["Shutter", "Window", "Scene"]
        assert status.providers == ["velux.items"]

    def test_shared_lock(self):
        assert self.binding.dispatcher.lock is self.binding.lock
        assert self.binding.scheduler.lock is self.binding.lock
        assert self.binding.reconciler.lock is self.binding.lock

    def test_commands_and_refresh_interleave(self):
        self._startup()
        self.binding.tick()
        self.binding.receive_command("Scene", "ON")
        rejected = self.binding.receive_command("Window", "UP")

        assert rejected.reason == "not_commandable"
        assert self.handler.calls == [
            ("Shutter", None, "velux.items"),
            ("Shutter", None, "velux.items"),
            ("Window", None, "velux.items"),
            ("Scene", "ON", "velux.items"),
        ]

    def test_receive_command_without_publisher(self):
        self.binding.add_binding_provider(self.provider)
        result = self.binding.receive_command("Shutter", "DOWN")
        assert result.reason == "no_event_sink"
        assert self.handler.calls == []

    def test_bad_reconfiguration_surfaces_key(self):
        self._startup()
        with pytest.raises(ConfigurationError) as exc_info:
            self.binding.updated({"retries": "x"})
        assert exc_info.value.key == "retries"
        assert self.binding.scheduler.cycle == 2

    def test_apply_blocks_concurrent_tick(self):
        """A tick requested while a reconfiguration holds the lock runs after it."""
        self._startup()
        order = []
        entered = threading.Event()
        release = threading.Event()

        class SlowHandler(RecordingBridgeHandler):
            def handle_command(self, item_name, command, item_config, provider, event_sink):
                order.append(("dispatch", item_name))
                entered.set()
                release.wait(1.0)

        self.binding.dispatcher.bridge_handler = SlowHandler()
        reconfig = threading.Thread(target=self.binding.updated, args=({"retries": "1"},))
        reconfig.start()
        entered.wait(1.0)

        ticker = threading.Thread(target=lambda: order.append(("tick", self.binding.tick().cycle)))
        ticker.start()
        release.set()
        reconfig.join(2.0)
        ticker.join(2.0)

        assert order[0] == ("dispatch", "Shutter")
        assert order[-1] == ("tick", 3)

    def test_shutdown_sequence(self):
        self._startup()
        self.binding.start()
        assert self.binding.status().running is True

        self.binding.deactivate()
        self.binding.unset_event_publisher()
        removed = self.binding.remove_binding_provider("velux.items")

        assert removed is self.provider
        status = self.binding.status()
        assert status.running is False
        assert status.event_sink is False
        assert status.bound_items == []
        assert self.binding.tick().aborted == "no_bindings"

    def test_receive_update_is_accepted(self):
        self._startup()
        self.binding.receive_update("Shutter", "50")
        assert self.sink.updates == []
