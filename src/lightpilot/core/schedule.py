"""
Schedule item dataclasses.

A ScheduleItem is one timed lighting change produced by a weekly
regeneration. Items are immutable; state changes produce a new item via
``with_state()`` so readers always hold a consistent snapshot.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from lightpilot.core.lighting import RGB, LightConfiguration

# date.weekday() order
WEEKDAYS: Tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
ALL_WEEKDAYS: FrozenSet[str] = frozenset(WEEKDAYS)


def local_naive(value: datetime) -> datetime:
    """Express a datetime on the naive local wall clock schedule items use."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def local_now() -> datetime:
    return datetime.now()


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def new_item_id() -> str:
    return uuid.uuid4().hex


class Trigger(Enum):
    """Why a schedule item was generated."""

    HOLIDAY = "holiday"
    GAME_DAY = "game_day"
    SEASONAL = "seasonal"
    CUSTOM = "custom"
    WEEKNIGHT = "weeknight"
    WEEKEND = "weekend"
    SUNRISE = "sunrise"
    SUNSET = "sunset"
    LEARNED = "learned"


class ItemState(Enum):
    """Lifecycle of a schedule item."""

    GENERATED = "generated"  # Built, not yet routed
    WITHHELD = "withheld"  # Autonomy 0: computed, never surfaced
    PENDING = "pending"  # Waiting for user approval
    SCHEDULED = "scheduled"  # Armed for auto-apply
    APPLIED = "applied"
    REJECTED = "rejected"
    EXPIRED = "expired"  # Missed the late-fire grace window


@dataclass(frozen=True)
class ScheduleItem:
    """
    One timed lighting change.

    Attributes:
        id: Opaque unique token
        scheduled_time: When to apply (naive local time). For repeating
            items this is the first occurrence; the time of day is reused.
        pattern_name: Display name of the pattern
        reason: Human-readable reason ("It's Christmas!")
        trigger: Category of the reason
        confidence_score: 0.0-1.0, gates auto-apply
        configuration: Device configuration to apply
        repeat_days: Weekdays ("mon".."sun") on which the item repeats.
            Empty means one-shot.
        colors: Event colors, if the item came from an event
        effect_id: Event effect, if the item came from an event
        created_at: When the item was generated
        is_approved: User approved it (or it was auto-applied)
        was_auto_applied: Applied without user action
        state: Lifecycle state
        event_name: Source event name, if any
    """

    id: str
    scheduled_time: datetime
    pattern_name: str
    reason: str
    trigger: Trigger
    confidence_score: float
    configuration: LightConfiguration
    repeat_days: FrozenSet[str] = field(default_factory=frozenset)
    colors: Optional[Tuple[RGB, ...]] = None
    effect_id: Optional[int] = None
    created_at: Optional[datetime] = None
    is_approved: bool = False
    was_auto_applied: bool = False
    state: ItemState = ItemState.GENERATED
    event_name: Optional[str] = None

    @property
    def is_repeating(self) -> bool:
        return bool(self.repeat_days)

    def with_state(self, state: ItemState, **changes: Any) -> "ScheduleItem":
        """Get a copy in a new state (other fields may change too)."""
        return replace(self, state=state, **changes)

    def occurrence_on(self, day: date) -> Optional[datetime]:
        """
        Get the firing time on a given day, if the item fires that day.

        Repeating items never fire before their first scheduled day.
        """
        if not self.is_repeating:
            return self.scheduled_time if self.scheduled_time.date() == day else None
        if day < self.scheduled_time.date() or weekday_name(day) not in self.repeat_days:
            return None
        return datetime.combine(day, self.scheduled_time.time())

    def next_occurrence(self, after: datetime) -> Optional[datetime]:
        """Get the first firing time strictly after a moment."""
        if not self.is_repeating:
            return self.scheduled_time if self.scheduled_time > after else None
        for offset in range(8):
            occurrence = self.occurrence_on(after.date() + timedelta(days=offset))
            if occurrence is not None and occurrence > after:
                return occurrence
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for storage/transport."""
        result: Dict[str, Any] = {
            "id": self.id,
            "scheduled_time": self.scheduled_time.isoformat(),
            "pattern_name": self.pattern_name,
            "reason": self.reason,
            "trigger": self.trigger.value,
            "confidence_score": self.confidence_score,
            "configuration": self.configuration.to_payload(),
            "repeat_days": [d for d in WEEKDAYS if d in self.repeat_days],
            "is_approved": self.is_approved,
            "was_auto_applied": self.was_auto_applied,
            "state": self.state.value,
        }
        if self.colors is not None:
            result["colors"] = [list(c) for c in self.colors]
        if self.effect_id is not None:
            result["effect_id"] = self.effect_id
        if self.created_at is not None:
            result["created_at"] = self.created_at.isoformat()
        if self.event_name is not None:
            result["event_name"] = self.event_name
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleItem":
        """
        Deserialize from dict.

        Raises:
            ValueError: If trigger, state or a repeat day is unknown
        """
        repeat_days = frozenset(data.get("repeat_days", []))
        unknown = repeat_days - ALL_WEEKDAYS
        if unknown:
            raise ValueError(f"Unknown repeat days: {sorted(unknown)}")

        colors = data.get("colors")
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            scheduled_time=datetime.fromisoformat(data["scheduled_time"]),
            pattern_name=data["pattern_name"],
            reason=data.get("reason", ""),
            trigger=Trigger(data["trigger"]),
            confidence_score=float(data.get("confidence_score", 0.0)),
            configuration=LightConfiguration.from_payload(data.get("configuration", {})),
            repeat_days=repeat_days,
            colors=tuple(tuple(c) for c in colors) if colors is not None else None,
            effect_id=data.get("effect_id"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            is_approved=data.get("is_approved", False),
            was_auto_applied=data.get("was_auto_applied", False),
            state=ItemState(data.get("state", ItemState.GENERATED.value)),
            event_name=data.get("event_name"),
        )
