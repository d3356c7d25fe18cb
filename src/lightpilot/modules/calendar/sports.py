"""
Sports schedule providers.

The aggregator asks a SportsScheduleProvider for games of followed teams.
A provider that has no data source returns an empty list; it must never be
a reason for the pipeline to fail.
"""

import logging
import zlib
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from lightpilot.core.profile import RGB

from .models import SportsGame

logger = logging.getLogger(__name__)

# Primary colors for a handful of well-known teams. Matched by substring.
TEAM_COLORS: Dict[str, Tuple[RGB, ...]] = {
    "Chiefs": ((227, 24, 55), (255, 184, 28)),
    "Royals": ((0, 70, 135), (189, 155, 96)),
    "Cowboys": ((0, 34, 68), (134, 147, 151)),
    "Packers": ((24, 48, 40), (255, 184, 28)),
    "Eagles": ((0, 76, 84), (165, 172, 175)),
    "Bears": ((11, 22, 42), (200, 56, 3)),
    "Lakers": ((85, 37, 130), (253, 185, 39)),
    "Celtics": ((0, 122, 51), (255, 255, 255)),
    "Bulls": ((206, 17, 65), (0, 0, 0)),
    "Yankees": ((0, 48, 135), (255, 255, 255)),
    "Dodgers": ((0, 90, 156), (255, 255, 255)),
    "Cubs": ((14, 51, 134), (204, 52, 51)),
    "Red Sox": ((189, 48, 57), (12, 35, 64)),
    "Bruins": ((252, 181, 20), (17, 17, 17)),
    "Sporting KC": ((145, 176, 213), (0, 35, 72)),
    "Kansas City Current": ((98, 203, 201), (207, 50, 56)),
    "Jayhawks": ((0, 81, 186), (232, 0, 13)),
}

LEAGUE_TEAMS: Dict[str, Tuple[str, ...]] = {
    "NFL": (
        "Chiefs", "Bills", "Ravens", "Bengals", "Browns", "Steelers", "Texans", "Colts",
        "Jaguars", "Titans", "Broncos", "Raiders", "Chargers", "Cowboys", "Giants",
        "Eagles", "Commanders", "Bears", "Lions", "Packers", "Vikings", "Falcons",
        "Panthers", "Saints", "Buccaneers", "Cardinals", "Rams", "Seahawks", "49ers",
        "Jets", "Patriots", "Dolphins",
    ),
    "NBA": (
        "Lakers", "Celtics", "Warriors", "Heat", "Bulls", "Knicks", "Nets", "Bucks",
        "Nuggets", "Suns", "Mavericks", "Clippers", "Thunder", "Grizzlies", "Pelicans",
        "Hawks", "Cavaliers", "Magic", "Pistons", "Pacers", "Hornets", "Wizards",
        "Raptors", "Spurs", "Kings", "Timberwolves", "Jazz", "Trail Blazers", "Rockets",
        "76ers",
    ),
    "MLB": (
        "Yankees", "Red Sox", "Dodgers", "Cubs", "Mets", "Phillies", "Braves", "Astros",
        "Angels", "Padres", "Mariners", "Royals", "Tigers", "Twins", "White Sox",
        "Guardians", "Reds", "Brewers", "Pirates", "Marlins", "Nationals", "Rockies",
        "Diamondbacks", "Athletics", "Rays", "Blue Jays", "Orioles",
    ),
    "NHL": (
        "Bruins", "Maple Leafs", "Canadiens", "Red Wings", "Blackhawks", "Flyers",
        "Penguins", "Capitals", "Lightning", "Hurricanes", "Blue Jackets", "Devils",
        "Islanders", "Sabres", "Senators", "Oilers", "Flames", "Canucks", "Avalanche",
        "Stars", "Blues", "Wild", "Predators", "Golden Knights", "Kraken", "Sharks",
        "Ducks",
    ),
    "MLS": (
        "Sporting KC", "LA Galaxy", "LAFC", "Seattle Sounders", "Atlanta United",
        "Portland Timbers", "Columbus Crew", "Inter Miami", "NYC FC", "Philadelphia Union",
        "Nashville SC", "Austin FC", "FC Cincinnati", "Charlotte FC", "Real Salt Lake",
    ),
    "WNBA": ("Sparks", "Lynx", "Storm", "Aces", "Mercury", "Sky", "Fever", "Mystics", "Liberty"),
    "NWSL": (
        "Kansas City Current", "Portland Thorns", "Orlando Pride", "NC Courage",
        "Washington Spirit", "Gotham FC", "San Diego Wave", "Angel City",
    ),
}

COLLEGE_KEYWORDS = (
    "jayhawks", "wildcats", "tigers", "crimson", "buckeyes", "wolverines", "bulldogs", "longhorns",
)


def detect_league(team_name: str) -> str:
    """Guess a team's league from its name ("Unknown" if no match)."""
    name = team_name.lower()
    for league, teams in LEAGUE_TEAMS.items():
        if any(t.lower() in name for t in teams):
            return league
    if any(keyword in name for keyword in COLLEGE_KEYWORDS):
        return "NCAA"
    return "Unknown"


def team_colors(team_name: str) -> Optional[Tuple[RGB, ...]]:
    """Look up a team's colors in the built-in table."""
    for known, colors in TEAM_COLORS.items():
        if known == team_name or known in team_name or team_name in known:
            return colors
    return None


class SportsScheduleProvider(ABC):
    """
    Source of game schedules for followed teams.

    Implementations may return an empty list when no data source is
    configured. Raising is tolerated by the aggregator but logged.
    """

    @abstractmethod
    def get_games_in_range(
        self,
        team_names: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> List[SportsGame]:
        """
        Get games for the given teams in [start, end).

        Args:
            team_names: Followed teams
            start: Range start (inclusive)
            end: Range end (exclusive)

        Returns:
            Games sorted by game time
        """
        pass


class NullSportsProvider(SportsScheduleProvider):
    """Provider with no data source."""

    def get_games_in_range(
        self,
        team_names: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> List[SportsGame]:
        return []


class SimulatedSportsProvider(SportsScheduleProvider):
    """
    Deterministic demo provider.

    Spreads 2-4 games per team over the requested range at league-typical
    start times. The same inputs always produce the same games.
    """

    def __init__(self, seed: int = 0) -> None:
        self._seed = seed

    def get_games_in_range(
        self,
        team_names: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> List[SportsGame]:
        games: List[SportsGame] = []
        days_in_range = (end - start).days
        if days_in_range <= 0:
            return games

        for team_name in team_names:
            league = detect_league(team_name)
            team_hash = zlib.crc32(team_name.encode("utf-8")) + self._seed
            game_count = 2 + team_hash % 3

            seen_days = set()
            for i in range(game_count):
                offset = (team_hash + i * 1000) % days_in_range
                game_day = start.date() + timedelta(days=offset)
                if game_day in seen_days:
                    continue
                seen_days.add(game_day)

                game_time = self._typical_game_time(game_day, league)
                if not start <= game_time < end:
                    continue

                games.append(
                    SportsGame(
                        team_name=team_name,
                        opponent=self._opponent(team_name, league, i),
                        game_time=game_time,
                        is_home_game=(team_hash + i) % 2 == 0,
                        league=league,
                        team_colors=team_colors(team_name),
                    )
                )

        games.sort(key=lambda g: g.game_time)
        logger.debug(f"Simulated {len(games)} games for {len(team_names)} teams")
        return games

    @staticmethod
    def _typical_game_time(day: date, league: str) -> datetime:
        weekday = day.weekday()
        if league == "NFL":
            if weekday == 6:  # Sunday
                hour, minute = 12, 0
            elif weekday == 0:  # Monday night
                hour, minute = 19, 15
            elif weekday == 3:  # Thursday night
                hour, minute = 19, 20
            else:
                hour, minute = 15, 25
        elif league == "MLB":
            hour, minute = (13, 10) if weekday == 6 else (19, 10)
        elif league in ("MLS", "NWSL"):
            hour, minute = 19, 30
        elif league == "NCAA":
            hour, minute = (14, 30) if weekday == 5 else (18, 0)
        else:
            hour, minute = 19, 0
        return datetime(day.year, day.month, day.day, hour, minute)

    @staticmethod
    def _opponent(team_name: str, league: str, seed: int) -> str:
        pool = LEAGUE_TEAMS.get(league, ("Wildcats", "Tigers", "Bulldogs", "Bears", "Eagles"))
        candidates = [t for t in pool if t.lower() not in team_name.lower()]
        if not candidates:
            return "TBD"
        return candidates[seed % len(candidates)]
