"""
Data models for the Pattern generator.
"""

from dataclasses import dataclass

from lightpilot.core.lighting import LightConfiguration


@dataclass(frozen=True)
class PatternCandidate:
    """
    Output of the pattern generator for one event or default day.

    Attributes:
        pattern_name: Display name of the pattern
        configuration: Proposed device configuration
        confidence: Initial confidence score 0.0-1.0
        used_fallback: True if the rule-based fallback produced it
    """

    pattern_name: str
    configuration: LightConfiguration
    confidence: float
    used_fallback: bool = False
