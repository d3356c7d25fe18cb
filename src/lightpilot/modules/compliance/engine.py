"""
Compliance engine - HOA-style rule evaluation.

Pure, synchronous checks for allowed times, colors, brightness and effects,
plus rewriting a configuration into a compliant one.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta

from lightpilot.core.lighting import (
    EFFECT_SOLID,
    MAX_BRIGHTNESS,
    WARM_WHITE,
    LightConfiguration,
)

from .models import (
    HIGH_INTENSITY_EFFECTS,
    MODERATE_VIBE_LEVEL,
    SUBTLE_EFFECTS,
    SUBTLE_VIBE_LEVEL,
    ComplianceStatus,
    ComplianceSummary,
)

logger = logging.getLogger(__name__)

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


class ComplianceEngine:
    """
    Evaluates HOA compliance rules for one user.

    When compliance is disabled every check short-circuits to "permitted".
    """

    EVENING_BRIGHTNESS = 220  # 21:00 - 22:00
    NIGHT_BRIGHTNESS = 180  # 22:00 - 06:00

    def __init__(self, status: ComplianceStatus) -> None:
        self._status = status

    @property
    def status(self) -> ComplianceStatus:
        return self._status

    # =========================================================================
    # Time
    # =========================================================================

    def is_time_allowed(self, t: datetime) -> bool:
        """Check if a change is allowed at the given time (outside quiet hours)."""
        if not self._status.is_enabled:
            return True
        return not self._in_quiet_hours(t)

    def _in_quiet_hours(self, t: datetime) -> bool:
        start = _minutes(self._status.quiet_hours_start)
        end = _minutes(self._status.quiet_hours_end)
        current = t.hour * 60 + t.minute

        if start > end:
            # Spans midnight (e.g., 23:00 to 06:00)
            return current >= start or current < end
        return start <= current < end

    def next_allowed_time(self, t: datetime) -> datetime:
        """
        Get the earliest allowed time at or after t.

        If t is inside quiet hours this is the end of the current window:
        the same day when t is before the window end, otherwise the next day.
        """
        if self.is_time_allowed(t):
            return t

        end = self._status.quiet_hours_end
        window_end = t.replace(hour=end.hour, minute=end.minute, second=0, microsecond=0)
        if t.hour * 60 + t.minute < _minutes(end):
            return window_end
        return window_end + timedelta(days=1)

    # =========================================================================
    # Colors, brightness, effects
    # =========================================================================

    def are_colors_allowed(self, day: date) -> bool:
        """Check if colored patterns are allowed on the given date."""
        if not self._status.is_enabled:
            return True
        windows = self._status.seasonal_color_windows
        if not windows:
            return True
        return any(window.contains(day) for window in windows)

    def max_brightness(self, t: datetime) -> int:
        """Get the brightness cap (0-255) for a time of day."""
        if not self._status.is_enabled:
            return MAX_BRIGHTNESS

        if t.hour >= 22 or t.hour < 6:
            return self.NIGHT_BRIGHTNESS
        if t.hour >= 21:
            return self.EVENING_BRIGHTNESS
        return MAX_BRIGHTNESS

    def is_effect_allowed(self, effect_id: int, vibe_level: float) -> bool:
        """Check if an effect is allowed for the user's vibe level."""
        if not self._status.is_enabled:
            return True

        if vibe_level < SUBTLE_VIBE_LEVEL:
            return effect_id in SUBTLE_EFFECTS
        if vibe_level < MODERATE_VIBE_LEVEL:
            return effect_id not in HIGH_INTENSITY_EFFECTS
        return True

    def rewrite_for_compliance(
        self,
        config: LightConfiguration,
        t: datetime,
        vibe_level: float = 0.5,
    ) -> LightConfiguration:
        """
        Get a compliant version of a configuration.

        - Colors replaced with warm white if colors are disallowed on t's date
        - Brightness clamped to max_brightness(t)
        - Disallowed effects forced to solid

        The input is never mutated. A configuration that is already compliant
        comes back equal to the input.

        Args:
            config: Candidate configuration
            t: When the configuration will be applied
            vibe_level: User's vibe level (drives effect restrictions)

        Returns:
            Compliant configuration
        """
        colors_allowed = self.are_colors_allowed(t.date())
        segments = []
        for seg in config.segments:
            if not colors_allowed and any(tuple(c[:3]) != WARM_WHITE for c in seg.colors):
                seg = replace(seg, colors=(WARM_WHITE,))
            if seg.effect is not None and not self.is_effect_allowed(seg.effect, vibe_level):
                logger.debug(f"Effect {seg.effect} not allowed, forcing solid")
                seg = replace(seg, effect=EFFECT_SOLID)
            segments.append(seg)

        brightness = config.brightness
        cap = self.max_brightness(t)
        if brightness is not None and brightness > cap:
            brightness = cap

        return replace(config, brightness=brightness, segments=tuple(segments))

    # =========================================================================
    # Display
    # =========================================================================

    def summary(self, now: datetime) -> ComplianceSummary:
        """Build a human-readable compliance summary."""
        if not self._status.is_enabled:
            return ComplianceSummary(
                is_enabled=False,
                quiet_hours_description="Not enforced",
                color_restrictions_description="Colors allowed year-round",
                currently_in_quiet_hours=False,
                colors_currently_allowed=True,
            )

        quiet = (
            f"{self._format_time(self._status.quiet_hours_start)} - "
            f"{self._format_time(self._status.quiet_hours_end)}"
        )
        windows = self._status.seasonal_color_windows
        if windows:
            colors = "Colors allowed: " + ", ".join(
                f"{_MONTHS[w.start_month - 1]} {w.start_day} - {_MONTHS[w.end_month - 1]} {w.end_day}"
                for w in windows
            )
        else:
            colors = "Colors allowed year-round"

        return ComplianceSummary(
            is_enabled=True,
            quiet_hours_description=quiet,
            color_restrictions_description=colors,
            currently_in_quiet_hours=self._in_quiet_hours(now),
            colors_currently_allowed=self.are_colors_allowed(now.date()),
        )

    @staticmethod
    def _format_time(t: time) -> str:
        hour = t.hour % 12 or 12
        period = "AM" if t.hour < 12 else "PM"
        return f"{hour}:{t.minute:02d} {period}"
