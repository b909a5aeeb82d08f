"""Dispatch and Tick Results — outcomes reported by the dispatch path and the scheduler."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class DispatchResult(BaseModel):
    """Outcome of routing one command or refresh request toward the bridge."""

    item_name: str
    command: Optional[str] = None           # None means "read current value"
    forwarded: bool
    reason: Optional[str] = None            # Machine-readable, set when not forwarded
    providers: List[str] = []               # Providers the request was forwarded with
    dispatched_at: datetime


class TickResult(BaseModel):
    """Outcome of one refresh cycle."""

    cycle: int
    refreshed: List[str] = []
    skipped: Dict[str, str] = {}            # item name -> "missing_config", "not_refreshable", "not_due" or a DispatchResult reason
    aborted: Optional[str] = None           # e.g., "no_bindings"
