"""
Data models for the Compliance engine.
"""

from dataclasses import dataclass
from typing import FrozenSet

from lightpilot.core.profile import ComplianceStatus, SeasonalColorWindow
from lightpilot.core.lighting import (
    EFFECT_BLINK,
    EFFECT_CANDLE,
    EFFECT_FIRE_FLICKER,
    EFFECT_FIREWORKS,
    EFFECT_HALLOWEEN_EYES,
    EFFECT_SOLID,
)

# Below this vibe level only static/subtle effects are allowed
SUBTLE_VIBE_LEVEL = 0.3
# Below this vibe level high-intensity effects are denied
MODERATE_VIBE_LEVEL = 0.5

SUBTLE_EFFECTS: FrozenSet[int] = frozenset({EFFECT_SOLID, EFFECT_BLINK, EFFECT_CANDLE})
HIGH_INTENSITY_EFFECTS: FrozenSet[int] = frozenset(
    {EFFECT_FIREWORKS, EFFECT_HALLOWEEN_EYES, EFFECT_FIRE_FLICKER}
)


@dataclass(frozen=True)
class ComplianceSummary:
    """Human-readable compliance status for display."""

    is_enabled: bool
    quiet_hours_description: str
    color_restrictions_description: str
    currently_in_quiet_hours: bool
    colors_currently_allowed: bool


__all__ = [
    "ComplianceStatus",
    "ComplianceSummary",
    "SeasonalColorWindow",
    "SUBTLE_EFFECTS",
    "HIGH_INTENSITY_EFFECTS",
    "SUBTLE_VIBE_LEVEL",
    "MODERATE_VIBE_LEVEL",
]
