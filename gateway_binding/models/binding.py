"""Reconciliation and status models for the binding as a whole."""

from typing import List, Optional

from pydantic import BaseModel

from gateway_binding.models.dispatch import TickResult


class ReconciliationResult(BaseModel):
    """Outcome of applying one settings snapshot."""

    applied: List[str] = []                 # Configuration keys assigned, in processing order
    ignored: List[str] = []                 # Unrecognized keys
    revision: int
    tick: Optional[TickResult] = None       # The refresh cycle forced after applying


class BindingStatus(BaseModel):
    name: str
    running: bool
    properly_configured: bool
    cycle: int
    refresh_interval_seconds: float
    providers: List[str]
    bound_items: List[str]
    event_sink: bool
