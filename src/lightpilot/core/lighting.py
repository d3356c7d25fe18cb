"""
Device configuration value objects.

A typed view of the JSON state the lighting controller accepts, plus the
well-known colors and effect ids the autopilot reasons about.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

RGB = Tuple[int, ...]

# =============================================================================
# Well-known values
# =============================================================================

WARM_WHITE: RGB = (255, 250, 244)
WARM_AMBER: RGB = (255, 180, 100)

EFFECT_SOLID = 0
EFFECT_BLINK = 1
EFFECT_CHASE = 12
EFFECT_RAINBOW = 52
EFFECT_CANDLE = 63
EFFECT_FIRE_FLICKER = 73
EFFECT_FIREWORKS = 74
EFFECT_HEARTBEAT = 82
EFFECT_HALLOWEEN_EYES = 108

MIN_BRIGHTNESS = 10
MAX_BRIGHTNESS = 255


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class Segment:
    """One addressable segment of the installation."""

    colors: Tuple[RGB, ...] = ()
    effect: Optional[int] = None  # Effect ID (0 = solid)
    speed: Optional[int] = None  # 0-255
    intensity: Optional[int] = None  # 0-255
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extras)
        if self.colors:
            payload["col"] = [list(c) for c in self.colors]
        if self.effect is not None:
            payload["fx"] = self.effect
        if self.speed is not None:
            payload["sx"] = self.speed
        if self.intensity is not None:
            payload["ix"] = self.intensity
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Segment":
        known = {"col", "fx", "sx", "ix"}
        return cls(
            colors=tuple(tuple(int(v) for v in c) for c in data.get("col", [])),
            effect=data.get("fx"),
            speed=data.get("sx"),
            intensity=data.get("ix"),
            extras={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True)
class LightConfiguration:
    """
    Device configuration for the whole installation.

    Named fields cover what the autopilot reasons about (power, brightness,
    per-segment colors and effect). Anything else the device understands is
    carried untouched in ``extras``.

    Attributes:
        on: Power state (None = leave unchanged)
        brightness: Master brightness 0-255 (None = leave unchanged)
        segments: Segment settings
        extras: Unrecognized top-level payload keys
    """

    on: Optional[bool] = True
    brightness: Optional[int] = None
    segments: Tuple[Segment, ...] = ()
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def colors(self) -> Tuple[RGB, ...]:
        """All colors across segments, in order."""
        return tuple(c for seg in self.segments for c in seg.colors)

    @property
    def primary_effect(self) -> Optional[int]:
        """Effect of the first segment that sets one."""
        for seg in self.segments:
            if seg.effect is not None:
                return seg.effect
        return None

    def with_brightness(self, brightness: Optional[int]) -> "LightConfiguration":
        return replace(self, brightness=brightness)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the device JSON payload."""
        payload: Dict[str, Any] = dict(self.extras)
        if self.on is not None:
            payload["on"] = self.on
        if self.brightness is not None:
            payload["bri"] = self.brightness
        if self.segments:
            payload["seg"] = [seg.to_payload() for seg in self.segments]
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "LightConfiguration":
        """Parse a device JSON payload."""
        known = {"on", "bri", "seg"}
        segments = data.get("seg", [])
        if isinstance(segments, dict):
            segments = [segments]
        return cls(
            on=data.get("on"),
            brightness=data.get("bri"),
            segments=tuple(Segment.from_payload(s) for s in segments),
            extras={k: v for k, v in data.items() if k not in known},
        )

    @classmethod
    def solid(cls, colors: Tuple[RGB, ...], brightness: int) -> "LightConfiguration":
        """Single-segment solid configuration."""
        return cls(
            on=True,
            brightness=brightness,
            segments=(Segment(colors=tuple(colors), effect=EFFECT_SOLID),),
        )
