"""
Data models for the calendar (event aggregation) module.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from lightpilot.core.profile import RGB


class EventType(Enum):
    """Kinds of calendar events that can trigger a lighting change."""

    HOLIDAY = "holiday"
    SPORT_GAME = "sport_game"
    SEASONAL = "seasonal"
    CUSTOM = "custom"


# Priorities (lower = higher precedence)
PRIORITY_CUSTOM = 5
PRIORITY_FAVORITE_HOLIDAY = 10
PRIORITY_MAJOR_HOLIDAY = 20
PRIORITY_RANKED_TEAM = 30  # + index in the team ranking
PRIORITY_UNRANKED_TEAM = 50
PRIORITY_SEASONAL = 80


@dataclass(frozen=True)
class CalendarEvent:
    """
    An event that may trigger a lighting change.

    Produced fresh for every query, never persisted.

    Attributes:
        name: Display name
        date: When the event happens (midnight for all-day events)
        type: Event kind
        suggested_colors: Colors that fit the event
        suggested_effect_id: Effect that fits the event
        team_name: Followed team (sport games only)
        priority: Conflict-resolution rank, lower wins
        is_subdued: Solemn occasion (Memorial Day, ...); lighting stays calm
    """

    name: str
    date: datetime
    type: EventType
    suggested_colors: Optional[Tuple[RGB, ...]] = None
    suggested_effect_id: Optional[int] = None
    team_name: Optional[str] = None
    priority: int = 100
    is_subdued: bool = False

    def __str__(self) -> str:
        return f"CalendarEvent({self.name}, {self.date:%m/%d}, type: {self.type.value})"


@dataclass(frozen=True)
class SportsGame:
    """A scheduled game for a followed team."""

    team_name: str
    opponent: str
    game_time: datetime
    is_home_game: bool
    league: str
    venue: Optional[str] = None
    team_colors: Optional[Tuple[RGB, ...]] = None
