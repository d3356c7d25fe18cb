"""
Compliance engine for lightpilot.

Evaluates HOA-style rules: quiet hours, seasonal color windows, time-graded
brightness caps, and vibe-level effect restrictions.
"""

from .engine import ComplianceEngine
from .models import (
    ComplianceStatus,
    ComplianceSummary,
    SeasonalColorWindow,
    SUBTLE_EFFECTS,
    HIGH_INTENSITY_EFFECTS,
)

__all__ = [
    "ComplianceEngine",
    "ComplianceStatus",
    "ComplianceSummary",
    "SeasonalColorWindow",
    "SUBTLE_EFFECTS",
    "HIGH_INTENSITY_EFFECTS",
]
