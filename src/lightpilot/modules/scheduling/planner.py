"""
Weekly schedule planning.

Turns a profile plus the calendar into the list of ScheduleItems for the
coming week. Planning is pure with respect to the autopilot: it never
touches the device, the suggestion board or the learned preferences.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import List, Optional

from lightpilot.core.profile import UserProfile
from lightpilot.core.schedule import new_item_id
from lightpilot.modules.calendar.aggregator import EventAggregator
from lightpilot.modules.calendar.models import CalendarEvent, EventType
from lightpilot.modules.calendar.sun import sunset_local
from lightpilot.modules.compliance.engine import ComplianceEngine
from lightpilot.modules.patterns.generator import (
    PatternGenerator,
    baseline_pattern,
    default_pattern,
)

from .models import (
    ALL_WEEKDAYS,
    AutopilotConfig,
    ChangeToleranceLevel,
    ItemState,
    ScheduleItem,
    Trigger,
)

logger = logging.getLogger(__name__)

EVENT_TRIGGERS = {
    EventType.HOLIDAY: Trigger.HOLIDAY,
    EventType.SPORT_GAME: Trigger.GAME_DAY,
    EventType.SEASONAL: Trigger.SEASONAL,
    EventType.CUSTOM: Trigger.CUSTOM,
}

BASELINE_REASON = "Daily evening lighting"


def event_reason(event: CalendarEvent) -> str:
    """Human-readable reason for an event-driven item."""
    if event.type == EventType.HOLIDAY:
        return f"It's {event.name}!"
    if event.type == EventType.SPORT_GAME:
        return f"{event.team_name} game day" if event.team_name else "Game day"
    if event.type == EventType.SEASONAL:
        return "Seasonal celebration"
    return event.name


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


class WeeklyPlanner:
    """
    Builds one week of schedule items for a user.

    The result always starts from the repeating warm-white baseline, adds
    event-driven items within the user's change tolerance, then fills quiet
    days with defaults when the tolerance allows it. Every configuration is
    passed through compliance before it leaves the planner.
    """

    def __init__(
        self,
        aggregator: EventAggregator,
        generator: PatternGenerator,
        config: Optional[AutopilotConfig] = None,
    ) -> None:
        self._aggregator = aggregator
        self._generator = generator
        self._config = config or AutopilotConfig()

    def set_config(self, config: AutopilotConfig) -> None:
        self._config = config

    def plan(self, profile: UserProfile, now: datetime) -> List[ScheduleItem]:
        """
        Plan the week starting today.

        Args:
            profile: User to plan for
            now: Current local time (the week is [today, today + schedule_days))

        Returns:
            Items sorted by scheduled time, all in state GENERATED
        """
        start = datetime(now.year, now.month, now.day)
        end = start + timedelta(days=self._config.schedule_days)
        compliance = ComplianceEngine(profile.compliance)
        tolerance = ChangeToleranceLevel.from_value(profile.change_tolerance)

        items = [self._baseline_item(profile, start.date(), now, compliance)]

        event_items = self._event_items(profile, start, end, now, compliance, tolerance)
        items.extend(event_items)

        if tolerance.allows_fill_ins:
            items.extend(
                self._fill_in_items(profile, start.date(), end.date(), now, compliance,
                                    tolerance, event_items)
            )

        planned = [
            item.with_state(
                ItemState.GENERATED,
                configuration=compliance.rewrite_for_compliance(
                    item.configuration, item.scheduled_time, profile.vibe_level
                ),
            )
            for item in items
        ]
        planned.sort(key=lambda i: i.scheduled_time)

        logger.info(
            f"Planned {len(planned)} items for {profile.id} "
            f"({len(event_items)} event-driven, tolerance {tolerance.name.lower()})"
        )
        return planned

    # =========================================================================
    # Item builders
    # =========================================================================

    def _baseline_item(
        self,
        profile: UserProfile,
        today: date,
        now: datetime,
        compliance: ComplianceEngine,
    ) -> ScheduleItem:
        scheduled = self._allowed_time(self._evening_time(profile, today), compliance)
        candidate = baseline_pattern()
        return ScheduleItem(
            id=new_item_id(),
            scheduled_time=scheduled,
            pattern_name=candidate.pattern_name,
            reason=BASELINE_REASON,
            trigger=Trigger.SUNSET,
            confidence_score=candidate.confidence,
            configuration=candidate.configuration,
            repeat_days=ALL_WEEKDAYS,
            created_at=now,
        )

    def _event_items(
        self,
        profile: UserProfile,
        start: datetime,
        end: datetime,
        now: datetime,
        compliance: ComplianceEngine,
        tolerance: ChangeToleranceLevel,
    ) -> List[ScheduleItem]:
        items: List[ScheduleItem] = []
        per_day: Counter = Counter()
        max_per_day = tolerance.max_changes_per_day

        for event in self._aggregator.events_for_range(start, end, profile):
            day = event.date.date()
            if max_per_day > 0 and per_day[day] >= max_per_day:
                logger.debug(f"Skipping {event.name}: change budget for {day} used up")
                continue

            scheduled = self._allowed_time(self._event_time(event, profile), compliance)
            candidate = self._generator.generate_for_event(
                event, profile, compliance.are_colors_allowed(day)
            )
            items.append(
                ScheduleItem(
                    id=new_item_id(),
                    scheduled_time=scheduled,
                    pattern_name=candidate.pattern_name,
                    reason=event_reason(event),
                    trigger=EVENT_TRIGGERS[event.type],
                    confidence_score=candidate.confidence,
                    configuration=candidate.configuration,
                    colors=event.suggested_colors,
                    effect_id=event.suggested_effect_id,
                    created_at=now,
                    event_name=event.name,
                )
            )
            per_day[day] += 1
        return items

    def _fill_in_items(
        self,
        profile: UserProfile,
        first_day: date,
        end_day: date,
        now: datetime,
        compliance: ComplianceEngine,
        tolerance: ChangeToleranceLevel,
        event_items: List[ScheduleItem],
    ) -> List[ScheduleItem]:
        busy_days = {item.scheduled_time.date() for item in event_items}
        placed_days = [item.scheduled_time.date() for item in event_items]
        min_gap = tolerance.min_days_between_changes
        fill_ins: List[ScheduleItem] = []

        day = first_day
        while day < end_day:
            current = day
            day += timedelta(days=1)
            if current in busy_days:
                continue
            if min_gap > 0 and any(abs((current - other).days) < min_gap for other in placed_days):
                continue

            scheduled = self._evening_time(profile, current)
            if not compliance.is_time_allowed(scheduled):
                continue

            weekend = is_weekend(current)
            candidate = default_pattern(
                weekend, compliance.are_colors_allowed(current), profile.vibe_level
            )
            fill_ins.append(
                ScheduleItem(
                    id=new_item_id(),
                    scheduled_time=scheduled,
                    pattern_name=candidate.pattern_name,
                    reason="Weekend ambiance" if weekend else "Weeknight lighting",
                    trigger=Trigger.WEEKEND if weekend else Trigger.WEEKNIGHT,
                    confidence_score=candidate.confidence,
                    configuration=candidate.configuration,
                    created_at=now,
                )
            )
            placed_days.append(current)
        return fill_ins

    # =========================================================================
    # Timing
    # =========================================================================

    def _evening_time(self, profile: UserProfile, day: date) -> datetime:
        """Sunset if the location is known, otherwise the default evening hour."""
        if profile.location is not None:
            sunset = sunset_local(
                profile.location.latitude,
                profile.location.longitude,
                day,
                profile.location.utc_offset_hours,
            )
            if sunset is not None:
                return sunset
        return datetime(day.year, day.month, day.day, self._config.default_evening_hour)

    def _event_time(self, event: CalendarEvent, profile: UserProfile) -> datetime:
        if event.type == EventType.SPORT_GAME and profile.location is None:
            return event.date
        return self._evening_time(profile, event.date.date())

    @staticmethod
    def _allowed_time(scheduled: datetime, compliance: ComplianceEngine) -> datetime:
        if compliance.is_time_allowed(scheduled):
            return scheduled
        return compliance.next_allowed_time(scheduled)
