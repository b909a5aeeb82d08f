"""Shared fixtures and builders for the gateway binding tests."""

from typing import Optional

import pytest

from gateway_binding.events.publisher import InMemoryEventPublisher
from gateway_binding.models.item import ItemConfig, ItemType
from gateway_binding.registry.store import BindingProvider


def make_item(
    item_name: str,
    refreshable: bool = True,
    writable: bool = False,
    executable: bool = False,
    divider: int = 1,
    type_name: Optional[str] = None,
) -> ItemConfig:
    return ItemConfig(
        item_name=item_name,
        item_type=ItemType(
            name=type_name or f"{item_name}_type",
            refreshable=refreshable,
            writable=writable,
            executable=executable,
            refresh_divider=divider,
        ),
    )


class RecordingBridgeHandler:
    """Bridge handler that only records what reached it."""

    def __init__(self):
        self.calls = []

    def handle_command(self, item_name, command, item_config, provider, event_sink):
        self.calls.append((item_name, command, provider.name))

    def names(self):
        return [c[0] for c in self.calls]


class FailingBridgeHandler:
    def __init__(self):
        self.attempts = 0

    def handle_command(self, item_name, command, item_config, provider, event_sink):
        self.attempts += 1
        raise ConnectionError("gateway unreachable")


class SparseProvider(BindingProvider):
    """Provider that lists an item it has no config for."""

    def __init__(self, name: str, dangling: str):
        super().__init__(name)
        self.dangling = dangling

    def item_names(self):
        return super().item_names() + [self.dangling]


@pytest.fixture
def event_sink():
    return InMemoryEventPublisher()


@pytest.fixture
def handler():
    return RecordingBridgeHandler()
