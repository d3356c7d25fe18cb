"""
Calendar module for lightpilot.

Aggregates holidays, user-authored holidays, followed teams' games and
seasonal events into a prioritized event list.
"""

from .aggregator import EventAggregator, resolve_conflicts
from .holidays import Holiday, holiday_for_date, holidays_in_range
from .models import CalendarEvent, EventType, SportsGame
from .sports import (
    NullSportsProvider,
    SimulatedSportsProvider,
    SportsScheduleProvider,
    detect_league,
    team_colors,
)
from .sun import sunrise_local, sunset_local

__all__ = [
    "EventAggregator",
    "resolve_conflicts",
    "CalendarEvent",
    "EventType",
    "SportsGame",
    "Holiday",
    "holiday_for_date",
    "holidays_in_range",
    "SportsScheduleProvider",
    "NullSportsProvider",
    "SimulatedSportsProvider",
    "detect_league",
    "team_colors",
    "sunrise_local",
    "sunset_local",
]
