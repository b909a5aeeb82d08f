"""
Event Publisher — the sink that carries item state updates back to the host.

The host supplies the real publisher; the core only requires `post_update`.
The sink may be absent, which every caller must tolerate.
"""

import logging
from datetime import datetime
from typing import List, Protocol

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Protocol for the host's event bus."""

    def post_update(self, item_name: str, state: str) -> None: ...


class InMemoryEventPublisher:
    """Records posted updates, for tests and the HTTP surface."""

    def __init__(self):
        self._updates: List[dict] = []

    def post_update(self, item_name: str, state: str) -> None:
        logger.debug("post_update(%s,%s) called.", item_name, state)
        self._updates.append({
            "item_name": item_name,
            "state": state,
            "posted_at": datetime.utcnow().isoformat(),
        })

    @property
    def updates(self) -> List[dict]:
        return list(self._updates)

    def updates_for(self, item_name: str) -> List[dict]:
        return [u for u in self._updates if u["item_name"] == item_name]

    def latest_state(self, item_name: str):
        updates = self.updates_for(item_name)
        return updates[-1]["state"] if updates else None
