"""
Learning module for lightpilot.

Records feedback on suggestions and turns it into learned preferences that
adjust future confidence scores.
"""

from .dispatcher import FeedbackDispatcher
from .engine import (
    LearningEngine,
    adjust_confidence,
    compute_learned_preferences,
    parse_records,
)
from .models import FeedbackRecord, FeedbackType, LearnedPreferences, LearningConfig
from .module import LearningModule

__all__ = [
    "LearningModule",
    "LearningEngine",
    "FeedbackDispatcher",
    "FeedbackRecord",
    "FeedbackType",
    "LearnedPreferences",
    "LearningConfig",
    "adjust_confidence",
    "compute_learned_preferences",
    "parse_records",
]
