"""Gateway binding data models."""

from gateway_binding.models.binding import BindingStatus, ReconciliationResult
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.models.dispatch import DispatchResult, TickResult
from gateway_binding.models.item import (
    ItemConfig,
    ItemType,
    accepts_commands,
    is_refresh_due,
    is_refreshable,
)

__all__ = [
    "BindingStatus",
    "BridgeConfiguration",
    "DispatchResult",
    "ItemConfig",
    "ItemType",
    "ReconciliationResult",
    "TickResult",
    "accepts_commands",
    "is_refresh_due",
    "is_refreshable",
]
