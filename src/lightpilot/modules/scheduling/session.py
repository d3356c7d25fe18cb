"""
Per-user scheduling session.

A session owns everything the orchestrator keeps for one user: the current
schedule snapshot, armed timers, fired occurrences and the control loop.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional, Set, Tuple

from .models import CycleState, ScheduleItem

logger = logging.getLogger(__name__)

OccurrenceKey = Tuple[str, datetime]


class ScheduleSession:
    """
    Mutable state for one user's autopilot.

    The schedule is an immutable tuple replaced wholesale (copy-on-write), so
    readers never see a half-built list. Claiming an occurrence is the only
    way to fire it, which keeps timer firings and loop scans from applying the
    same occurrence twice.
    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.regeneration_lock = threading.Lock()
        self._lock = threading.RLock()
        self._items: Tuple[ScheduleItem, ...] = ()
        self._state = CycleState.IDLE
        self._timers: Dict[str, threading.Timer] = {}
        self._claimed: Set[OccurrenceKey] = set()
        self._cancelled = False
        self._stop = threading.Event()
        self._loop: Optional[threading.Thread] = None

    # =========================================================================
    # Schedule
    # =========================================================================

    @property
    def items(self) -> Tuple[ScheduleItem, ...]:
        return self._items

    @property
    def state(self) -> CycleState:
        return self._state

    def set_state(self, state: CycleState) -> None:
        with self._lock:
            if self._state != state:
                logger.debug(f"Session {self.user_id}: {self._state.value} -> {state.value}")
            self._state = state

    def get_item(self, item_id: str) -> Optional[ScheduleItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def replace_items(self, items: Tuple[ScheduleItem, ...]) -> None:
        """Swap in a new schedule, forgetting claims for items that are gone."""
        ids = {item.id for item in items}
        with self._lock:
            self._items = tuple(items)
            self._claimed = {key for key in self._claimed if key[0] in ids}

    def update_item(
        self,
        item_id: str,
        update: Callable[[ScheduleItem], ScheduleItem],
    ) -> Optional[ScheduleItem]:
        """
        Replace one item with update(item).

        Returns:
            The new item, or None if the id is not in the schedule
        """
        with self._lock:
            updated = None
            items = []
            for item in self._items:
                if item.id == item_id:
                    updated = update(item)
                    items.append(updated)
                else:
                    items.append(item)
            if updated is not None:
                self._items = tuple(items)
            return updated

    # =========================================================================
    # Timers and claims
    # =========================================================================

    def arm(self, item_id: str, delay: float, callback: Callable[[], None]) -> bool:
        """
        Arm (or re-arm) the timer for an item.

        Returns:
            False if the session is cancelled
        """
        with self._lock:
            if self._cancelled:
                return False
            previous = self._timers.pop(item_id, None)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(max(delay, 0.0), callback)
            timer.daemon = True
            timer.name = f"lightpilot-item-{item_id[:8]}"
            self._timers[item_id] = timer
            timer.start()
        return True

    def disarm(self, item_id: str) -> None:
        with self._lock:
            timer = self._timers.pop(item_id, None)
        if timer is not None:
            timer.cancel()

    def disarm_all(self) -> int:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        return len(timers)

    @property
    def armed_count(self) -> int:
        with self._lock:
            return sum(1 for t in self._timers.values() if t.is_alive())

    def claim(self, item_id: str, occurrence: datetime) -> bool:
        """
        Take the right to fire one occurrence of an item.

        Returns:
            True exactly once per (item, occurrence), never after cancel()
        """
        key = (item_id, occurrence)
        with self._lock:
            if self._cancelled or key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def is_claimed(self, item_id: str, occurrence: datetime) -> bool:
        with self._lock:
            return (item_id, occurrence) in self._claimed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_alive()

    def begin(self, loop: threading.Thread) -> None:
        """Reset cancellation and attach a new loop thread."""
        with self._lock:
            self._cancelled = False
            self._stop = threading.Event()
            self._loop = loop

    def cancel(self) -> Optional[threading.Thread]:
        """
        Cancel the session: no further claims, timers stopped, loop signalled.

        Returns:
            The loop thread (for the caller to join), if any
        """
        with self._lock:
            self._cancelled = True
            self._stop.set()
            loop = self._loop
            self._loop = None
        self.disarm_all()
        self.set_state(CycleState.IDLE)
        return loop
