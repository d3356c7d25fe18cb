"""
Patterns module for lightpilot.

Generates candidate lighting configurations for calendar events, with a
pluggable prompt-driven backend and a deterministic fallback.
"""

from lightpilot.core.lighting import LightConfiguration, Segment

from .adapter import MockPatternBackend, PatternBackend
from .generator import (
    PatternGenerator,
    apply_vibe_level,
    baseline_pattern,
    calculate_confidence,
    default_pattern,
    fallback_pattern,
    subdue,
)
from .models import PatternCandidate
from .prompts import build_event_prompt, vibe_description

__all__ = [
    "PatternGenerator",
    "PatternBackend",
    "MockPatternBackend",
    "LightConfiguration",
    "PatternCandidate",
    "Segment",
    "apply_vibe_level",
    "baseline_pattern",
    "calculate_confidence",
    "default_pattern",
    "fallback_pattern",
    "subdue",
    "build_event_prompt",
    "vibe_description",
]
