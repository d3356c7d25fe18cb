"""
Event aggregator - merges holidays, custom holidays, games and seasonal
events into one prioritized, conflict-resolved list.
"""

import logging
from datetime import date, datetime, timedelta
from itertools import groupby
from typing import List, Optional

from lightpilot.core.profile import UserProfile

from .holidays import holidays_in_range
from .models import (
    PRIORITY_CUSTOM,
    PRIORITY_FAVORITE_HOLIDAY,
    PRIORITY_MAJOR_HOLIDAY,
    PRIORITY_RANKED_TEAM,
    PRIORITY_SEASONAL,
    PRIORITY_UNRANKED_TEAM,
    CalendarEvent,
    EventType,
)
from .sports import NullSportsProvider, SportsScheduleProvider, team_colors

logger = logging.getLogger(__name__)

# Always included, favorite or not (matched by substring)
MAJOR_HOLIDAYS = (
    "christmas",
    "thanksgiving",
    "independence day",
    "july 4",
    "halloween",
    "new year's",
    "easter",
)

# Fixed calendar approximations: (name, month, day, colors)
SEASONAL_EVENTS = (
    ("Spring Equinox", 3, 20, ((144, 238, 144), (255, 182, 193), (255, 255, 0))),
    ("Summer Solstice", 6, 21, ((255, 215, 0), (255, 102, 0), (255, 0, 0))),
    ("Fall Equinox", 9, 22, ((255, 102, 0), (139, 69, 19), (255, 215, 0))),
    ("Winter Solstice", 12, 21, ((135, 206, 235), (255, 255, 255), (192, 192, 192))),
)

# A runner-up survives only within this many priority points of the winner
DOUBLE_FEATURE_SPREAD = 5


def is_major_holiday(name: str) -> bool:
    lower = name.lower()
    return any(major in lower for major in MAJOR_HOLIDAYS)


def is_favorite_holiday(name: str, favorites: List[str]) -> bool:
    """Case-insensitive substring match in either direction."""
    lower = name.lower()
    return any(fav.lower() in lower or lower in fav.lower() for fav in favorites if fav)


class EventAggregator:
    """
    Collects the calendar events that matter to one user.

    Usage:
        aggregator = EventAggregator(SimulatedSportsProvider())
        events = aggregator.events_for_range(start, end, profile)
    """

    def __init__(self, sports_provider: Optional[SportsScheduleProvider] = None) -> None:
        self._sports = sports_provider or NullSportsProvider()

    def events_for_range(
        self,
        start: datetime,
        end: datetime,
        profile: UserProfile,
    ) -> List[CalendarEvent]:
        """
        Get all relevant events in [start, end).

        Returns events sorted by (calendar day, priority) with at most two
        events per day (see resolve_conflicts).
        """
        events: List[CalendarEvent] = []
        events.extend(self._holiday_events(start, end, profile))
        events.extend(self._custom_events(start, end, profile))
        events.extend(self._game_events(start, end, profile))
        events.extend(self._seasonal_events(start, end))

        events.sort(key=lambda e: (e.date, e.priority))
        resolved = resolve_conflicts(events)
        logger.debug(
            f"Aggregated {len(resolved)} events for {profile.id} "
            f"({len(events)} before conflict resolution)"
        )
        return resolved

    def event_for_date(self, day: date, profile: UserProfile) -> Optional[CalendarEvent]:
        """Get the winning event for a single day, if any."""
        day_start = datetime(day.year, day.month, day.day)
        events = self.events_for_range(day_start, day_start + timedelta(days=1), profile)
        return events[0] if events else None

    # =========================================================================
    # Sources
    # =========================================================================

    def _holiday_events(
        self, start: datetime, end: datetime, profile: UserProfile
    ) -> List[CalendarEvent]:
        events = []
        for holiday in holidays_in_range(start, end):
            favorite = is_favorite_holiday(holiday.name, profile.favorite_holidays)
            if not favorite and not is_major_holiday(holiday.name):
                continue
            events.append(
                CalendarEvent(
                    name=holiday.name,
                    date=datetime.combine(holiday.date, datetime.min.time()),
                    type=EventType.HOLIDAY,
                    suggested_colors=holiday.suggested_colors,
                    suggested_effect_id=holiday.suggested_effect_id,
                    priority=PRIORITY_FAVORITE_HOLIDAY if favorite else PRIORITY_MAJOR_HOLIDAY,
                    is_subdued=not holiday.is_colorful,
                )
            )
        return events

    def _custom_events(
        self, start: datetime, end: datetime, profile: UserProfile
    ) -> List[CalendarEvent]:
        events = []
        for custom in profile.custom_holidays:
            occurrence = custom.next_occurrence(start.date())
            if occurrence is None:
                logger.warning(f"Custom holiday {custom.name!r} has no valid date")
                continue
            when = datetime.combine(occurrence, datetime.min.time())
            if when >= end:
                continue
            events.append(
                CalendarEvent(
                    name=custom.name,
                    date=when,
                    type=EventType.CUSTOM,
                    suggested_colors=custom.suggested_colors,
                    suggested_effect_id=custom.suggested_effect_id,
                    priority=PRIORITY_CUSTOM,
                )
            )
        return events

    def _game_events(
        self, start: datetime, end: datetime, profile: UserProfile
    ) -> List[CalendarEvent]:
        if not profile.sports_teams:
            return []

        try:
            games = self._sports.get_games_in_range(list(profile.sports_teams), start, end)
        except Exception as e:
            logger.warning(f"Sports schedule unavailable, skipping games: {e}", exc_info=True)
            return []

        ranking = profile.ranked_teams
        events = []
        for game in games:
            if not start <= game.game_time < end:
                continue
            if game.team_name in ranking:
                priority = PRIORITY_RANKED_TEAM + ranking.index(game.team_name)
            else:
                priority = PRIORITY_UNRANKED_TEAM
            events.append(
                CalendarEvent(
                    name=f"{game.team_name} vs {game.opponent}",
                    date=game.game_time,
                    type=EventType.SPORT_GAME,
                    suggested_colors=game.team_colors or team_colors(game.team_name),
                    team_name=game.team_name,
                    priority=priority,
                )
            )
        return events

    @staticmethod
    def _seasonal_events(start: datetime, end: datetime) -> List[CalendarEvent]:
        events = []
        for year in range(start.year, end.year + 1):
            for name, month, day, colors in SEASONAL_EVENTS:
                when = datetime(year, month, day)
                if start <= when < end:
                    events.append(
                        CalendarEvent(
                            name=name,
                            date=when,
                            type=EventType.SEASONAL,
                            suggested_colors=colors,
                            priority=PRIORITY_SEASONAL,
                        )
                    )
        return events


def resolve_conflicts(events: List[CalendarEvent]) -> List[CalendarEvent]:
    """
    Keep at most two events per calendar day.

    The lowest priority number wins. The runner-up also survives only if it
    has a different type and is within DOUBLE_FEATURE_SPREAD of the winner
    (e.g. a favorite holiday and the primary team's game).
    """
    ordered = sorted(events, key=lambda e: (e.date.date(), e.priority))
    resolved: List[CalendarEvent] = []
    for _, group in groupby(ordered, key=lambda e: e.date.date()):
        day_events = list(group)
        winner = day_events[0]
        resolved.append(winner)
        if len(day_events) > 1:
            second = day_events[1]
            if (
                second.type != winner.type
                and second.priority - winner.priority <= DOUBLE_FEATURE_SPREAD
            ):
                resolved.append(second)
    return resolved
