"""
User profile dataclasses and helpers.

A UserProfile is the read-only input to the autopilot: what the user likes,
where the installation is, and which HOA-style rules constrain it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from lightpilot.core.lighting import RGB


def _parse_colors(raw: Optional[List[Any]]) -> Optional[List[RGB]]:
    """Parse a list of [r, g, b] lists (or 0xRRGGBB ints) into RGB tuples."""
    if raw is None:
        return None
    colors: List[RGB] = []
    for value in raw:
        if isinstance(value, int):
            colors.append(((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF))
        else:
            colors.append(tuple(int(c) for c in value))
    return colors


@dataclass(frozen=True)
class SeasonalColorWindow:
    """A yearly window in which colored lighting is permitted.

    Windows may wrap the year boundary (e.g. Oct 15 - Jan 5).
    """

    start_month: int
    start_day: int
    end_month: int
    end_day: int

    def contains(self, day: date) -> bool:
        """Check if a date falls inside this window (month/day only)."""
        packed = day.month * 100 + day.day
        start = self.start_month * 100 + self.start_day
        end = self.end_month * 100 + self.end_day

        if start > end:
            # Wraps the year boundary
            return packed >= start or packed <= end
        return start <= packed <= end

    def to_dict(self) -> Dict[str, int]:
        return {
            "start_month": self.start_month,
            "start_day": self.start_day,
            "end_month": self.end_month,
            "end_day": self.end_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeasonalColorWindow":
        return cls(
            start_month=int(data["start_month"]),
            start_day=int(data["start_day"]),
            end_month=int(data["end_month"]),
            end_day=int(data["end_day"]),
        )


@dataclass(frozen=True)
class ComplianceStatus:
    """HOA compliance settings taken from the user profile.

    Attributes:
        quiet_hours_start: Start of the no-change window (local time)
        quiet_hours_end: End of the no-change window (local time)
        seasonal_color_windows: Windows in which colors are allowed.
            Empty means colors are allowed year-round.
        is_enabled: When False every compliance check passes
    """

    quiet_hours_start: time = time(23, 0)
    quiet_hours_end: time = time(6, 0)
    seasonal_color_windows: Tuple[SeasonalColorWindow, ...] = ()
    is_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quiet_hours_start": self.quiet_hours_start.isoformat(timespec="minutes"),
            "quiet_hours_end": self.quiet_hours_end.isoformat(timespec="minutes"),
            "seasonal_color_windows": [w.to_dict() for w in self.seasonal_color_windows],
            "is_enabled": self.is_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComplianceStatus":
        return cls(
            quiet_hours_start=time.fromisoformat(data.get("quiet_hours_start", "23:00")),
            quiet_hours_end=time.fromisoformat(data.get("quiet_hours_end", "06:00")),
            seasonal_color_windows=tuple(
                SeasonalColorWindow.from_dict(w) for w in data.get("seasonal_color_windows", [])
            ),
            is_enabled=data.get("is_enabled", False),
        )


@dataclass(frozen=True)
class CustomHoliday:
    """A user-authored yearly event (birthday, anniversary, local festival)."""

    id: str
    name: str
    month: int  # 1-12
    day: int  # 1-31
    recurring: bool = True
    suggested_colors: Optional[Tuple[RGB, ...]] = None
    suggested_effect_id: Optional[int] = None

    def next_occurrence(self, start: date) -> Optional[date]:
        """
        Get the first occurrence on or after a reference date.

        Dates that don't exist in a given year (Feb 29) roll forward to the
        next year where they do.

        Args:
            start: Reference date

        Returns:
            Date of the next occurrence, or None if the month/day is invalid
        """
        for year in range(start.year, start.year + 9):
            try:
                candidate = date(year, self.month, self.day)
            except ValueError:
                continue
            if candidate >= start:
                return candidate
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "month": self.month,
            "day": self.day,
            "recurring": self.recurring,
        }
        if self.suggested_colors is not None:
            result["suggested_colors"] = [list(c) for c in self.suggested_colors]
        if self.suggested_effect_id is not None:
            result["suggested_effect_id"] = self.suggested_effect_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomHoliday":
        colors = _parse_colors(data.get("suggested_colors"))
        return cls(
            id=data.get("id", ""),
            name=data["name"],
            month=int(data["month"]),
            day=int(data["day"]),
            recurring=data.get("recurring", True),
            suggested_colors=tuple(colors) if colors is not None else None,
            suggested_effect_id=data.get("suggested_effect_id"),
        )


@dataclass(frozen=True)
class GeoLocation:
    """Where the installation is (for sunrise/sunset)."""

    latitude: float
    longitude: float
    utc_offset_hours: float = 0.0


@dataclass
class UserProfile:
    """
    Everything the autopilot needs to know about one user.

    Attributes:
        id: Unique user identifier
        autopilot_enabled: Master switch for the feature
        autonomy_level: 0 = suppress, 1 = suggest, 2 = proactive (auto-apply)
        vibe_level: 0.0 (subtle) .. 1.0 (bold)
        change_tolerance: ChangeToleranceLevel value (0..4)
        favorite_holidays: Holiday names the user cares about
        custom_holidays: User-authored yearly events
        sports_teams: Followed teams
        sports_team_priority: Followed teams, most important first
        preferred_effect_styles: e.g. "static", "animated", "twinkle"
        dislikes: Free-form things to avoid
        location: Installation location (None = no sunset data)
        compliance: HOA compliance settings
        last_schedule_generated: When the weekly schedule was last built
    """

    id: str
    autopilot_enabled: bool = False
    autonomy_level: int = 1
    vibe_level: float = 0.5
    change_tolerance: int = 2
    favorite_holidays: List[str] = field(default_factory=list)
    custom_holidays: List[CustomHoliday] = field(default_factory=list)
    sports_teams: List[str] = field(default_factory=list)
    sports_team_priority: List[str] = field(default_factory=list)
    preferred_effect_styles: List[str] = field(default_factory=lambda: ["static", "animated"])
    dislikes: List[str] = field(default_factory=list)
    location: Optional[GeoLocation] = None
    compliance: ComplianceStatus = field(default_factory=ComplianceStatus)
    last_schedule_generated: Optional[datetime] = None

    @property
    def ranked_teams(self) -> List[str]:
        """Teams in priority order (explicit ordering wins over follow order)."""
        return self.sports_team_priority or self.sports_teams

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for storage/transport."""
        return {
            "id": self.id,
            "autopilot_enabled": self.autopilot_enabled,
            "autonomy_level": self.autonomy_level,
            "vibe_level": self.vibe_level,
            "change_tolerance": self.change_tolerance,
            "favorite_holidays": list(self.favorite_holidays),
            "custom_holidays": [h.to_dict() for h in self.custom_holidays],
            "sports_teams": list(self.sports_teams),
            "sports_team_priority": list(self.sports_team_priority),
            "preferred_effect_styles": list(self.preferred_effect_styles),
            "dislikes": list(self.dislikes),
            "location": (
                {
                    "latitude": self.location.latitude,
                    "longitude": self.location.longitude,
                    "utc_offset_hours": self.location.utc_offset_hours,
                }
                if self.location
                else None
            ),
            "compliance": self.compliance.to_dict(),
            "last_schedule_generated": (
                self.last_schedule_generated.isoformat() if self.last_schedule_generated else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Deserialize from dict."""
        location = data.get("location")
        last_generated = data.get("last_schedule_generated")
        return cls(
            id=data["id"],
            autopilot_enabled=data.get("autopilot_enabled", False),
            autonomy_level=data.get("autonomy_level", 1),
            vibe_level=data.get("vibe_level", 0.5),
            change_tolerance=data.get("change_tolerance", 2),
            favorite_holidays=list(data.get("favorite_holidays", [])),
            custom_holidays=[CustomHoliday.from_dict(h) for h in data.get("custom_holidays", [])],
            sports_teams=list(data.get("sports_teams", [])),
            sports_team_priority=list(data.get("sports_team_priority", [])),
            preferred_effect_styles=list(
                data.get("preferred_effect_styles", ["static", "animated"])
            ),
            dislikes=list(data.get("dislikes", [])),
            location=GeoLocation(**location) if location else None,
            compliance=ComplianceStatus.from_dict(data.get("compliance", {})),
            last_schedule_generated=(
                datetime.fromisoformat(last_generated) if last_generated else None
            ),
        )
