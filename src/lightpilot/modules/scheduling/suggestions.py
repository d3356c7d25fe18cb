"""
Pending suggestion board.

Holds the items waiting for user approval and announces every change on the
event bus so the host UI can mirror the queue.
"""

import logging
import threading
from typing import Dict, List, Optional

from lightpilot.core.bus import Event, EventBus

from .models import ItemState, ScheduleItem

logger = logging.getLogger(__name__)


class SuggestionBoard:
    """
    Per-user queue of pending suggestions.

    A user decision first take()s the suggestion, which removes it under the
    lock so exactly one decision wins. The taken item is then either
    resolve()d or, if applying it failed, release()d back onto the board.
    clear() drops taken items too, so a release after a regeneration is a
    no-op.

    Bus events are published outside the lock so handlers may call back into
    the board.
    """

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self._bus = bus
        self._pending: Dict[str, Dict[str, ScheduleItem]] = {}
        self._taken: Dict[str, Dict[str, ScheduleItem]] = {}
        self._lock = threading.Lock()

    def set_bus(self, bus: Optional[EventBus]) -> None:
        self._bus = bus

    def add(self, user_id: str, item: ScheduleItem) -> None:
        """Publish a suggestion."""
        with self._lock:
            self._pending.setdefault(user_id, {})[item.id] = item
        logger.debug(f"Suggestion added for {user_id}: {item.pattern_name}")
        self._publish(
            "autopilot.suggestion_added",
            user_id,
            item.id,
            {"item": item.to_dict()},
        )

    def get(self, user_id: str, item_id: str) -> Optional[ScheduleItem]:
        with self._lock:
            return self._pending.get(user_id, {}).get(item_id)

    def pending(self, user_id: str) -> List[ScheduleItem]:
        """Get pending suggestions ordered by scheduled time."""
        with self._lock:
            items = list(self._pending.get(user_id, {}).values())
        return sorted(items, key=lambda i: i.scheduled_time)

    def take(self, user_id: str, item_id: str) -> Optional[ScheduleItem]:
        """
        Claim a pending suggestion for a decision.

        Returns:
            The item, or None if it isn't pending (or another decision
            already took it)
        """
        with self._lock:
            item = self._pending.get(user_id, {}).pop(item_id, None)
            if item is not None:
                self._taken.setdefault(user_id, {})[item_id] = item
        return item

    def release(self, user_id: str, item_id: str) -> bool:
        """
        Put a taken suggestion back on the board.

        Returns:
            True if it is pending again; False if it was cleared meanwhile
        """
        with self._lock:
            item = self._taken.get(user_id, {}).pop(item_id, None)
            if item is None:
                return False
            self._pending.setdefault(user_id, {})[item_id] = item
        logger.debug(f"Suggestion {item_id} for {user_id} is pending again")
        return True

    def resolve(self, user_id: str, item_id: str, state: ItemState) -> Optional[ScheduleItem]:
        """
        Remove a suggestion after the user acted on it.

        Returns:
            The removed item, or None if it was neither pending nor taken
        """
        with self._lock:
            item = self._taken.get(user_id, {}).pop(item_id, None)
            if item is None:
                item = self._pending.get(user_id, {}).pop(item_id, None)
        if item is None:
            return None
        self._publish(
            "autopilot.suggestion_resolved",
            user_id,
            item_id,
            {"state": state.value},
        )
        return item

    def clear(self, user_id: str) -> int:
        """
        Drop every pending (and taken) suggestion for a user.

        Returns:
            Number of suggestions dropped
        """
        with self._lock:
            dropped = self._pending.pop(user_id, {})
            dropped.update(self._taken.pop(user_id, {}))
        if dropped:
            logger.info(f"Cleared {len(dropped)} pending suggestions for {user_id}")
            self._publish(
                "autopilot.suggestions_cleared",
                user_id,
                None,
                {"item_ids": list(dropped), "count": len(dropped)},
            )
        return len(dropped)

    def _publish(self, event_type, user_id, item_id, payload) -> None:
        if self._bus is None:
            return
        self._bus.publish(
            Event(
                type=event_type,
                source="autopilot",
                user_id=user_id,
                item_id=item_id,
                payload=payload,
            )
        )
