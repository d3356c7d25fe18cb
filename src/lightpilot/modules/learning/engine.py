"""
Learning engine - feedback history and learned preferences.

Responsibilities:
- Append FeedbackRecords per user
- Recompute LearnedPreferences from the full history on every update
- Adjust generated confidence scores with what was learned

The aggregation and the confidence adjustment are pure functions so they
can be tested (and reasoned about) without an engine instance.
"""

import logging
import threading
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from lightpilot.core.bus import Event, EventBus
from lightpilot.core.schedule import ScheduleItem, local_naive, local_now

from .models import FeedbackRecord, FeedbackType, LearnedPreferences, LearningConfig

logger = logging.getLogger(__name__)

RawRecord = Union[FeedbackRecord, Dict[str, Any]]


def parse_records(raw_records: Iterable[RawRecord]) -> List[FeedbackRecord]:
    """
    Parse persisted records, skipping malformed ones.

    Args:
        raw_records: FeedbackRecords or their dict form

    Returns:
        Valid records, in input order
    """
    records: List[FeedbackRecord] = []
    for raw in raw_records:
        if isinstance(raw, FeedbackRecord):
            if raw.timestamp.tzinfo is not None:
                raw = replace(raw, timestamp=local_naive(raw.timestamp))
            records.append(raw)
            continue
        try:
            records.append(FeedbackRecord.from_dict(raw))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed feedback record: {e!r}")
    return records


def _rates(counts: Counter, successes: Counter, min_samples: int) -> Dict[str, float]:
    return {
        key: successes[key] / count for key, count in counts.items() if count >= min_samples
    }


def compute_learned_preferences(
    raw_records: Iterable[RawRecord],
    now: datetime,
    config: Optional[LearningConfig] = None,
) -> LearnedPreferences:
    """
    Aggregate a feedback history into learned preferences.

    Success means accepted or auto-applied. Rates are only reported once
    enough samples exist (see LearningConfig) to avoid noisy small-sample
    rates. Malformed records are skipped.

    Args:
        raw_records: Full feedback history
        now: Timestamp for last_updated
        config: Thresholds (defaults if None)

    Returns:
        Freshly computed LearnedPreferences
    """
    config = config or LearningConfig()
    records = parse_records(raw_records)

    trigger_counts: Counter = Counter()
    trigger_successes: Counter = Counter()
    pattern_counts: Counter = Counter()
    pattern_successes: Counter = Counter()
    effect_counts: Counter = Counter()
    effect_rejections: Counter = Counter()
    hour_counts: Counter = Counter()
    hour_successes: Counter = Counter()

    for record in records:
        success = record.feedback_type.is_success
        trigger = record.trigger.value
        hour = record.timestamp.hour

        trigger_counts[trigger] += 1
        pattern_counts[record.pattern_name] += 1
        hour_counts[hour] += 1
        if success:
            trigger_successes[trigger] += 1
            pattern_successes[record.pattern_name] += 1
            hour_successes[hour] += 1

        if record.original_effect_id is not None:
            effect_counts[record.original_effect_id] += 1
            if record.feedback_type == FeedbackType.REJECTED:
                effect_rejections[record.original_effect_id] += 1

    avoided: List[int] = []
    preferred: List[int] = []
    for effect_id, count in sorted(effect_counts.items()):
        if count < config.min_effect_samples:
            continue
        rejection_rate = effect_rejections[effect_id] / count
        if rejection_rate > config.avoid_rejection_rate:
            avoided.append(effect_id)
        elif rejection_rate < config.prefer_rejection_rate:
            preferred.append(effect_id)

    preferred_hours = tuple(
        hour
        for hour, count in sorted(hour_counts.items())
        if count >= config.min_hour_samples
        and hour_successes[hour] / count > config.preferred_hour_rate
    )

    return LearnedPreferences(
        trigger_success_rates=_rates(trigger_counts, trigger_successes, config.min_trigger_samples),
        pattern_success_rates=_rates(pattern_counts, pattern_successes, config.min_pattern_samples),
        preferred_effect_ids=tuple(preferred),
        avoided_effect_ids=tuple(avoided),
        preferred_hours=preferred_hours,
        total_feedback_count=len(records),
        last_updated=now,
    )


def adjust_confidence(base: float, item: ScheduleItem, learned: LearnedPreferences) -> float:
    """
    Blend a generated confidence with learned preferences.

    1. 50/50 with the item's trigger success rate (if known)
    2. 70/30 with the item's pattern success rate (if known)
    3. -0.2 for an avoided effect, +0.1 for a preferred one
    4. +0.05 if the item fires in a preferred hour
    5. Clamp to [0, 1]

    Pure: identical inputs always give identical output.
    """
    adjusted = base

    trigger_rate = learned.trigger_success_rates.get(item.trigger.value)
    if trigger_rate is not None:
        adjusted = adjusted * 0.5 + trigger_rate * 0.5

    pattern_rate = learned.pattern_success_rates.get(item.pattern_name)
    if pattern_rate is not None:
        adjusted = adjusted * 0.7 + pattern_rate * 0.3

    if item.effect_id is not None:
        if item.effect_id in learned.avoided_effect_ids:
            adjusted -= 0.2
        if item.effect_id in learned.preferred_effect_ids:
            adjusted += 0.1

    if item.scheduled_time.hour in learned.preferred_hours:
        adjusted += 0.05

    return max(0.0, min(1.0, adjusted))


class LearningEngine:
    """
    Owns feedback history and the learned-preferences cache.

    History is stored in persisted (dict) form so that records restored from
    storage are aggregated exactly like fresh ones, corrupt entries included.
    The cache is replaced wholesale under a lock; readers always get a
    complete LearnedPreferences snapshot.
    """

    def __init__(
        self,
        config: Optional[LearningConfig] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._config = config or LearningConfig()
        self._bus = bus
        self._history: Dict[str, List[Dict[str, Any]]] = {}
        self._learned: Dict[str, LearnedPreferences] = {}
        self._lock = threading.Lock()
        self._sequence = 0

    @property
    def config(self) -> LearningConfig:
        return self._config

    def set_config(self, config: LearningConfig) -> None:
        """Replace thresholds and recompute every user's preferences."""
        self._config = config
        for user_id in list(self._history):
            self.recompute(user_id)

    @property
    def bus(self) -> Optional[EventBus]:
        return self._bus

    def set_bus(self, bus: Optional[EventBus]) -> None:
        self._bus = bus

    # =========================================================================
    # Feedback
    # =========================================================================

    def record_feedback(
        self,
        user_id: str,
        item: ScheduleItem,
        feedback_type: FeedbackType,
        modification_notes: Optional[str] = None,
        modified_colors: Optional[tuple] = None,
        modified_effect_id: Optional[int] = None,
        original_colors: Optional[tuple] = None,
        original_effect_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> FeedbackRecord:
        """
        Append a feedback record and recompute the user's preferences.

        Original colors/effect default to the item's own.

        Args:
            user_id: User who gave the feedback
            item: Schedule item the feedback is about
            feedback_type: What happened
            modification_notes: Free-form notes for MODIFIED feedback
            modified_colors: Colors after modification
            modified_effect_id: Effect after modification
            original_colors: Colors before (defaults to item.colors)
            original_effect_id: Effect before (defaults to item.effect_id)
            now: Feedback timestamp (defaults to the local clock; aware
                values are converted to naive local time)

        Returns:
            The stored record
        """
        timestamp = local_naive(now) if now is not None else local_now()
        with self._lock:
            self._sequence += 1
            record = FeedbackRecord(
                id=f"{item.id}_{int(timestamp.timestamp() * 1000)}_{self._sequence}",
                schedule_item_id=item.id,
                pattern_name=item.pattern_name,
                trigger=item.trigger,
                feedback_type=feedback_type,
                timestamp=timestamp,
                modification_notes=modification_notes,
                original_colors=original_colors if original_colors is not None else item.colors,
                modified_colors=modified_colors,
                original_effect_id=(
                    original_effect_id if original_effect_id is not None else item.effect_id
                ),
                modified_effect_id=modified_effect_id,
            )
            history = self._history.setdefault(user_id, [])
            history.append(record.to_dict())
            if self._config.max_history and len(history) > self._config.max_history:
                del history[: len(history) - self._config.max_history]

        logger.info(
            f"Recorded {feedback_type.value} feedback for {user_id}: {item.pattern_name}"
        )
        self.recompute(user_id, now=timestamp)
        return record

    def recent_feedback(self, user_id: str, limit: int = 20) -> List[FeedbackRecord]:
        """Get the newest valid feedback records, newest first."""
        with self._lock:
            raw = list(self._history.get(user_id, []))
        records = parse_records(raw)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    def clear_feedback(self, user_id: str) -> None:
        """Delete a user's history and learned preferences."""
        with self._lock:
            self._history.pop(user_id, None)
            self._learned.pop(user_id, None)
        logger.info(f"Cleared feedback for {user_id}")

    def load_history(self, user_id: str, raw_records: List[Dict[str, Any]]) -> None:
        """
        Replace a user's history with persisted records and recompute.

        Malformed records are kept in storage form but ignored by aggregation.
        """
        with self._lock:
            self._history[user_id] = [dict(r) if isinstance(r, dict) else r for r in raw_records]
        self.recompute(user_id)

    # =========================================================================
    # Preferences
    # =========================================================================

    def recompute(self, user_id: str, now: Optional[datetime] = None) -> LearnedPreferences:
        """Recompute a user's preferences from the full history."""
        with self._lock:
            raw = list(self._history.get(user_id, []))

        learned = compute_learned_preferences(
            raw, local_naive(now) if now is not None else local_now(), self._config
        )

        with self._lock:
            self._learned[user_id] = learned

        logger.debug(
            f"Updated preferences for {user_id} from {learned.total_feedback_count} records"
        )
        if self._bus:
            self._bus.publish(
                Event(
                    type="learning.preferences_updated",
                    source="learning",
                    user_id=user_id,
                    payload={"total_feedback_count": learned.total_feedback_count},
                )
            )
        return learned

    def learned_preferences(self, user_id: str) -> LearnedPreferences:
        """Get a user's learned preferences (empty if no feedback yet)."""
        with self._lock:
            return self._learned.get(user_id, LearnedPreferences())

    def adjust_confidence(self, user_id: str, base: float, item: ScheduleItem) -> float:
        """Adjust a confidence score with a user's learned preferences."""
        return adjust_confidence(base, item, self.learned_preferences(user_id))

    # =========================================================================
    # State export/import
    # =========================================================================

    def export_state(self) -> Dict[str, Any]:
        """Export feedback history for persistence."""
        with self._lock:
            return {
                "history": {user_id: list(raw) for user_id, raw in self._history.items()},
                "learned": {
                    user_id: learned.to_dict() for user_id, learned in self._learned.items()
                },
            }

    def restore_state(self, state: Dict[str, Any]) -> None:
        """
        Restore feedback history from persistence.

        Learned preferences are recomputed from the restored history rather
        than trusted from storage.
        """
        history = state.get("history", {})
        for user_id, raw_records in history.items():
            self.load_history(user_id, list(raw_records))
        logger.info(f"Restored feedback history for {len(history)} users")
