"""
Data models for the Learning engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from lightpilot.core.lighting import RGB
from lightpilot.core.schedule import Trigger, local_naive


class FeedbackType(Enum):
    """What the user (or the autopilot) did with a suggestion."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    MODIFIED = "modified"
    AUTO_APPLIED = "auto_applied"

    @property
    def is_success(self) -> bool:
        return self in (FeedbackType.ACCEPTED, FeedbackType.AUTO_APPLIED)


def _colors_to_list(colors: Optional[Tuple[RGB, ...]]) -> Optional[List[List[int]]]:
    if colors is None:
        return None
    return [list(c) for c in colors]


def _colors_from_list(raw: Optional[List[Any]]) -> Optional[Tuple[RGB, ...]]:
    if raw is None:
        return None
    return tuple(tuple(int(v) for v in c) for c in raw)


@dataclass(frozen=True)
class FeedbackRecord:
    """
    One user decision (or auto-apply) on a schedule item.

    Records are append-only.
    """

    id: str
    schedule_item_id: str
    pattern_name: str
    trigger: Trigger
    feedback_type: FeedbackType
    timestamp: datetime
    modification_notes: Optional[str] = None
    original_colors: Optional[Tuple[RGB, ...]] = None
    modified_colors: Optional[Tuple[RGB, ...]] = None
    original_effect_id: Optional[int] = None
    modified_effect_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for storage."""
        result: Dict[str, Any] = {
            "id": self.id,
            "schedule_item_id": self.schedule_item_id,
            "pattern_name": self.pattern_name,
            "trigger": self.trigger.value,
            "feedback_type": self.feedback_type.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.modification_notes is not None:
            result["modification_notes"] = self.modification_notes
        if self.original_colors is not None:
            result["original_colors"] = _colors_to_list(self.original_colors)
        if self.modified_colors is not None:
            result["modified_colors"] = _colors_to_list(self.modified_colors)
        if self.original_effect_id is not None:
            result["original_effect_id"] = self.original_effect_id
        if self.modified_effect_id is not None:
            result["modified_effect_id"] = self.modified_effect_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedbackRecord":
        """
        Deserialize from dict.

        Raises:
            KeyError: If a required field is missing
            ValueError: If trigger, feedback type or timestamp is invalid
        """
        return cls(
            id=data["id"],
            schedule_item_id=data["schedule_item_id"],
            pattern_name=data["pattern_name"],
            trigger=Trigger(data["trigger"]),
            feedback_type=FeedbackType(data["feedback_type"]),
            timestamp=local_naive(datetime.fromisoformat(data["timestamp"])),
            modification_notes=data.get("modification_notes"),
            original_colors=_colors_from_list(data.get("original_colors")),
            modified_colors=_colors_from_list(data.get("modified_colors")),
            original_effect_id=data.get("original_effect_id"),
            modified_effect_id=data.get("modified_effect_id"),
        )


@dataclass(frozen=True)
class LearnedPreferences:
    """
    Aggregated view of a user's feedback history.

    Always recomputed wholesale from the full history; never edited.

    Attributes:
        trigger_success_rates: Trigger value -> success rate
        pattern_success_rates: Pattern name -> success rate
        preferred_effect_ids: Effects rarely rejected
        avoided_effect_ids: Effects mostly rejected
        preferred_hours: Hours of day with high acceptance
        total_feedback_count: Number of records aggregated
        last_updated: When this view was computed
    """

    trigger_success_rates: Dict[str, float] = field(default_factory=dict)
    pattern_success_rates: Dict[str, float] = field(default_factory=dict)
    preferred_effect_ids: Tuple[int, ...] = ()
    avoided_effect_ids: Tuple[int, ...] = ()
    preferred_hours: Tuple[int, ...] = ()
    total_feedback_count: int = 0
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger_success_rates": dict(self.trigger_success_rates),
            "pattern_success_rates": dict(self.pattern_success_rates),
            "preferred_effect_ids": list(self.preferred_effect_ids),
            "avoided_effect_ids": list(self.avoided_effect_ids),
            "preferred_hours": list(self.preferred_hours),
            "total_feedback_count": self.total_feedback_count,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearnedPreferences":
        last_updated = data.get("last_updated")
        return cls(
            trigger_success_rates=dict(data.get("trigger_success_rates", {})),
            pattern_success_rates=dict(data.get("pattern_success_rates", {})),
            preferred_effect_ids=tuple(data.get("preferred_effect_ids", [])),
            avoided_effect_ids=tuple(data.get("avoided_effect_ids", [])),
            preferred_hours=tuple(data.get("preferred_hours", [])),
            total_feedback_count=data.get("total_feedback_count", 0),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )


@dataclass(frozen=True)
class LearningConfig:
    """
    Thresholds for preference aggregation.

    Attributes:
        min_trigger_samples: Records needed before a trigger rate is trusted
        min_pattern_samples: Records needed before a pattern rate is trusted
        min_effect_samples: Records needed before an effect is judged
        avoid_rejection_rate: Effects rejected more often than this are avoided
        prefer_rejection_rate: Effects rejected less often than this are preferred
        min_hour_samples: Records needed before an hour is judged
        preferred_hour_rate: Hours accepted more often than this are preferred
        max_history: Records kept per user (0 = unlimited)
    """

    min_trigger_samples: int = 3
    min_pattern_samples: int = 2
    min_effect_samples: int = 3
    avoid_rejection_rate: float = 0.5
    prefer_rejection_rate: float = 0.2
    min_hour_samples: int = 3
    preferred_hour_rate: float = 0.7
    max_history: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_trigger_samples": self.min_trigger_samples,
            "min_pattern_samples": self.min_pattern_samples,
            "min_effect_samples": self.min_effect_samples,
            "avoid_rejection_rate": self.avoid_rejection_rate,
            "prefer_rejection_rate": self.prefer_rejection_rate,
            "min_hour_samples": self.min_hour_samples,
            "preferred_hour_rate": self.preferred_hour_rate,
            "max_history": self.max_history,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearningConfig":
        defaults = cls()
        return cls(
            min_trigger_samples=data.get("min_trigger_samples", defaults.min_trigger_samples),
            min_pattern_samples=data.get("min_pattern_samples", defaults.min_pattern_samples),
            min_effect_samples=data.get("min_effect_samples", defaults.min_effect_samples),
            avoid_rejection_rate=data.get("avoid_rejection_rate", defaults.avoid_rejection_rate),
            prefer_rejection_rate=data.get(
                "prefer_rejection_rate", defaults.prefer_rejection_rate
            ),
            min_hour_samples=data.get("min_hour_samples", defaults.min_hour_samples),
            preferred_hour_rate=data.get("preferred_hour_rate", defaults.preferred_hour_rate),
            max_history=data.get("max_history", defaults.max_history),
        )
