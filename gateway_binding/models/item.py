"""Item Types — what a bound item can do, and how often it is refreshed."""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class ItemType(BaseModel):
    """Capability set of a bound item."""

    model_config = ConfigDict(frozen=True)

    name: str                               # e.g., "shutter_position", "scene_action"
    refreshable: bool = False
    writable: bool = False
    executable: bool = False
    refresh_divider: int = Field(ge=1, default=1)   # Refresh every Nth cycle


class ItemConfig(BaseModel):
    """Binding of one host item to a gateway item type. Owned by a binding provider."""

    model_config = ConfigDict(frozen=True)

    item_name: str
    item_type: ItemType
    parameters: Dict[str, str] = {}         # Device-side addressing, opaque to the core


def is_refreshable(item_type: ItemType) -> bool:
    return item_type.refreshable


def accepts_commands(item_type: ItemType) -> bool:
    """An item takes commands when it is writable or executable."""
    return item_type.writable or item_type.executable


def is_refresh_due(item_type: ItemType, cycle: int) -> bool:
    """
    Whether the item is due for a refresh in the given cycle.
    The divider of a non-refreshable item is never evaluated.
    """
    if not is_refreshable(item_type):
        return False
    return cycle % item_type.refresh_divider == 0
