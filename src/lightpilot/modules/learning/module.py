"""
LearningModule implementation.

Wraps the LearningEngine as a pluggable module.
"""

import logging
from typing import Dict, Optional

from lightpilot.core.bus import EventBus
from lightpilot.core.manager import ProfileManager
from lightpilot.modules.base import UserModule

from .engine import LearningEngine
from .models import LearnedPreferences, LearningConfig

logger = logging.getLogger(__name__)


class LearningModule(UserModule):
    """
    Module that learns from suggestion feedback.

    The engine exists from construction so the scheduling module can be
    wired to it before either module is attached.
    """

    def __init__(self, config: Optional[LearningConfig] = None) -> None:
        self._bus: Optional[EventBus] = None
        self._profiles: Optional[ProfileManager] = None
        self._engine = LearningEngine(config)

    @property
    def id(self) -> str:
        return "learning"

    @property
    def CURRENT_CONFIG_VERSION(self) -> int:
        return 1

    @property
    def engine(self) -> LearningEngine:
        return self._engine

    def attach(self, bus: EventBus, profiles: ProfileManager) -> None:
        """Attach the learning module to the kernel."""
        logger.info("Attaching LearningModule")
        self._bus = bus
        self._profiles = profiles
        self._engine.set_bus(bus)

    # =========================================================================
    # Public API
    # =========================================================================

    def learned_preferences(self, user_id: str) -> LearnedPreferences:
        return self._engine.learned_preferences(user_id)

    def clear_feedback(self, user_id: str) -> None:
        self._engine.clear_feedback(user_id)

    def apply_config(self, config: Dict) -> None:
        """Apply a (possibly older) configuration dict."""
        migrated = self.migrate_config(config)
        self._engine.set_config(LearningConfig.from_dict(migrated))
        logger.info("Applied learning configuration")

    # =========================================================================
    # UserModule Interface
    # =========================================================================

    def default_config(self) -> Dict:
        return {"version": self.CURRENT_CONFIG_VERSION, **LearningConfig().to_dict()}

    def config_schema(self) -> Dict:
        """Get configuration schema for the learning module."""
        return {
            "type": "object",
            "properties": {
                "version": {"type": "integer", "title": "Config Version", "readOnly": True},
                "min_trigger_samples": {
                    "type": "integer",
                    "title": "Trigger Samples",
                    "description": "Feedback records needed before a trigger rate is used",
                    "minimum": 1,
                    "default": 3,
                },
                "min_pattern_samples": {
                    "type": "integer",
                    "title": "Pattern Samples",
                    "description": "Feedback records needed before a pattern rate is used",
                    "minimum": 1,
                    "default": 2,
                },
                "min_effect_samples": {
                    "type": "integer",
                    "title": "Effect Samples",
                    "minimum": 1,
                    "default": 3,
                },
                "avoid_rejection_rate": {
                    "type": "number",
                    "title": "Avoid Above",
                    "description": "Effects rejected more often than this are avoided",
                    "minimum": 0,
                    "maximum": 1,
                    "default": 0.5,
                },
                "prefer_rejection_rate": {
                    "type": "number",
                    "title": "Prefer Below",
                    "description": "Effects rejected less often than this are preferred",
                    "minimum": 0,
                    "maximum": 1,
                    "default": 0.2,
                },
                "min_hour_samples": {
                    "type": "integer",
                    "title": "Hour Samples",
                    "minimum": 1,
                    "default": 3,
                },
                "preferred_hour_rate": {
                    "type": "number",
                    "title": "Preferred Hour Rate",
                    "minimum": 0,
                    "maximum": 1,
                    "default": 0.7,
                },
                "max_history": {
                    "type": "integer",
                    "title": "History Limit",
                    "description": "Records kept per user (0 = unlimited)",
                    "minimum": 0,
                    "default": 0,
                },
            },
            "required": ["version"],
        }

    def dump_state(self) -> Dict:
        """Export feedback history for persistence."""
        return self._engine.export_state()

    def restore_state(self, state: Dict) -> None:
        """Restore feedback history from persistence."""
        self._engine.restore_state(state)
