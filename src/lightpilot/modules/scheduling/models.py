"""
Data models for the Scheduling (autopilot) module.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from lightpilot.core.schedule import (
    ALL_WEEKDAYS,
    WEEKDAYS,
    ItemState,
    ScheduleItem,
    Trigger,
)


class CycleState(Enum):
    """Weekly cycle state of a user session."""

    IDLE = "idle"
    REGENERATING = "regenerating"
    ACTIVE = "active"


# value -> (max_changes_per_day, min_days_between_changes)
_TOLERANCE_POLICY = {
    0: (0, 7),
    1: (0, 3),
    2: (1, 2),
    3: (1, 1),
    4: (2, 0),
}


class ChangeToleranceLevel(Enum):
    """
    How much schedule churn the user tolerates.

    max_changes_per_day of 0 means event days are not capped; the low levels
    simply never get default fill-ins.
    """

    MINIMAL = 0
    LOW = 1
    MODERATE = 2
    ACTIVE = 3
    DYNAMIC = 4

    @property
    def max_changes_per_day(self) -> int:
        return _TOLERANCE_POLICY[self.value][0]

    @property
    def min_days_between_changes(self) -> int:
        return _TOLERANCE_POLICY[self.value][1]

    @property
    def allows_fill_ins(self) -> bool:
        """Whether quiet days get default patterns."""
        return self.value >= ChangeToleranceLevel.MODERATE.value and self.max_changes_per_day >= 1

    @classmethod
    def from_value(cls, value: Optional[int]) -> "ChangeToleranceLevel":
        """Get the level for a stored value (moderate if unknown)."""
        try:
            return cls(value)
        except ValueError:
            return cls.MODERATE


@dataclass(frozen=True)
class AutopilotConfig:
    """
    Autopilot tuning.

    Attributes:
        auto_apply_threshold: Minimum confidence for auto-apply at autonomy 2
        regeneration_interval_days: Days between weekly regenerations
        schedule_days: Length of a generated schedule
        tick_interval_seconds: Period of the control loop
        late_grace_seconds: How late an item may still fire
        apply_timeout_seconds: Bound on one device apply call
        generation_timeout_seconds: Bound on one pattern backend call
        default_evening_hour: Event time when no sunset is known
    """

    auto_apply_threshold: float = 0.75
    regeneration_interval_days: int = 7
    schedule_days: int = 7
    tick_interval_seconds: float = 60.0
    late_grace_seconds: float = 7200.0
    apply_timeout_seconds: float = 15.0
    generation_timeout_seconds: float = 10.0
    default_evening_hour: int = 18

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_apply_threshold": self.auto_apply_threshold,
            "regeneration_interval_days": self.regeneration_interval_days,
            "schedule_days": self.schedule_days,
            "tick_interval_seconds": self.tick_interval_seconds,
            "late_grace_seconds": self.late_grace_seconds,
            "apply_timeout_seconds": self.apply_timeout_seconds,
            "generation_timeout_seconds": self.generation_timeout_seconds,
            "default_evening_hour": self.default_evening_hour,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutopilotConfig":
        defaults = cls()
        return cls(
            **{key: data.get(key, value) for key, value in defaults.to_dict().items()}
        )


@dataclass(frozen=True)
class ApplyAttempt:
    """Record of one device apply (for debugging)."""

    user_id: str
    item_id: str
    pattern_name: str
    occurrence: Optional[datetime]
    auto: bool
    success: bool
    timestamp: datetime
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "item_id": self.item_id,
            "pattern_name": self.pattern_name,
            "occurrence": self.occurrence.isoformat() if self.occurrence else None,
            "auto": self.auto,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "error": self.error,
        }


__all__ = [
    "ALL_WEEKDAYS",
    "WEEKDAYS",
    "ApplyAttempt",
    "AutopilotConfig",
    "ChangeToleranceLevel",
    "CycleState",
    "ItemState",
    "ScheduleItem",
    "Trigger",
]
