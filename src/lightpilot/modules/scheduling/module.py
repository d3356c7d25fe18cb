"""
AutopilotModule implementation.

Runs the weekly autopilot for every enabled user profile.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from lightpilot.core.bus import Event, EventBus, EventFilter
from lightpilot.core.lighting import LightConfiguration
from lightpilot.core.manager import ProfileManager
from lightpilot.modules.base import UserModule
from lightpilot.modules.calendar.aggregator import EventAggregator
from lightpilot.modules.compliance.engine import ComplianceEngine
from lightpilot.modules.compliance.models import ComplianceSummary
from lightpilot.modules.learning.engine import LearningEngine
from lightpilot.modules.patterns.generator import PatternGenerator

from .models import AutopilotConfig, ScheduleItem
from .orchestrator import ScheduleOrchestrator

if TYPE_CHECKING:
    from lightpilot.modules.calendar.sports import SportsScheduleProvider
    from lightpilot.modules.learning.module import LearningModule
    from lightpilot.modules.patterns.adapter import PatternBackend

    from .adapter import DeviceAdapter

logger = logging.getLogger(__name__)


class AutopilotModule(UserModule):
    """
    Module that plans and applies lighting schedules.

    Listens for profile changes to start/stop users, and for approval or
    rejection events coming from the host UI.

    Features:
    - Weekly schedule regeneration per user
    - Autonomy routing (withhold / suggest / auto-apply)
    - HOA compliance on every generated configuration
    - Learned confidence adjustment
    - Apply history for debugging
    """

    def __init__(
        self,
        device: Optional["DeviceAdapter"] = None,
        learning: Optional["LearningModule"] = None,
        sports_provider: Optional["SportsScheduleProvider"] = None,
        pattern_backend: Optional["PatternBackend"] = None,
        config: Optional[AutopilotConfig] = None,
    ) -> None:
        """
        Initialize the autopilot module.

        Args:
            device: Device adapter. Required for applying anything; without
                    it the module attaches but stays idle.
            learning: Learning module whose engine adjusts confidence.
                      A private engine is used when omitted.
            sports_provider: Game schedule source (none by default)
            pattern_backend: Primary pattern generator (fallbacks only if None)
            config: Autopilot tuning
        """
        self._bus: Optional[EventBus] = None
        self._profiles: Optional[ProfileManager] = None
        self._device = device
        self._learning_module = learning
        self._sports_provider = sports_provider
        self._pattern_backend = pattern_backend
        self._config = config or AutopilotConfig()
        self._orchestrator: Optional[ScheduleOrchestrator] = None
        self._pending_state: Optional[Dict] = None

    @property
    def id(self) -> str:
        return "autopilot"

    @property
    def CURRENT_CONFIG_VERSION(self) -> int:
        return 1

    @property
    def orchestrator(self) -> Optional[ScheduleOrchestrator]:
        return self._orchestrator

    def attach(self, bus: EventBus, profiles: ProfileManager) -> None:
        """
        Attach the autopilot module to the kernel.

        Builds the orchestrator, subscribes to events and starts every user
        whose profile has the autopilot enabled.
        """
        logger.info("Attaching AutopilotModule")
        self._bus = bus
        self._profiles = profiles

        if not self._device:
            logger.warning(
                "AutopilotModule attached without device adapter. "
                "Schedules will not be generated."
            )
            return

        learning: Optional[LearningEngine] = None
        if self._learning_module is not None:
            learning = self._learning_module.engine
            if learning.bus is None:
                learning.set_bus(bus)

        self._orchestrator = ScheduleOrchestrator(
            profiles,
            self._device,
            learning=learning,
            aggregator=EventAggregator(self._sports_provider),
            generator=PatternGenerator(
                self._pattern_backend,
                timeout_seconds=self._config.generation_timeout_seconds,
            ),
            bus=bus,
            config=self._config,
        )
        if self._pending_state is not None:
            self._orchestrator.restore_state(self._pending_state)
            self._pending_state = None

        bus.subscribe(self._on_profile_changed, EventFilter(event_type="profile.changed"))
        bus.subscribe(self._on_suggestion_approved, EventFilter(event_type="suggestion.approved"))
        bus.subscribe(self._on_suggestion_rejected, EventFilter(event_type="suggestion.rejected"))

        for profile in profiles.all_profiles():
            if profile.autopilot_enabled:
                self._orchestrator.start(profile.id)

        logger.info("AutopilotModule ready")

    def _require_orchestrator(self) -> ScheduleOrchestrator:
        if self._orchestrator is None:
            raise RuntimeError("AutopilotModule not attached to a device")
        return self._orchestrator

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _on_profile_changed(self, event: Event) -> None:
        if event.user_id:
            self.on_profile_changed(event.user_id)

    def _on_suggestion_approved(self, event: Event) -> None:
        if not event.user_id or not event.item_id:
            return
        try:
            self.approve_suggestion(event.user_id, event.item_id)
        except ValueError as e:
            logger.warning(f"Ignoring approval: {e}")

    def _on_suggestion_rejected(self, event: Event) -> None:
        if not event.user_id or not event.item_id:
            return
        try:
            self.reject_suggestion(event.user_id, event.item_id)
        except ValueError as e:
            logger.warning(f"Ignoring rejection: {e}")

    def on_profile_changed(self, user_id: str) -> None:
        """Start or stop the user's loop to match the profile."""
        if self._orchestrator is None or self._profiles is None:
            return
        profile = self._profiles.get_profile(user_id)
        if profile is not None and profile.autopilot_enabled:
            self._orchestrator.start(user_id)
        else:
            self._orchestrator.stop(user_id)

    # =========================================================================
    # Public API
    # =========================================================================

    def set_autopilot_enabled(self, user_id: str, enabled: bool) -> None:
        """
        Turn the autopilot on or off for a user.

        Raises:
            ValueError: If the profile doesn't exist
        """
        if self._profiles is None:
            raise RuntimeError("AutopilotModule not attached")
        self._profiles.update_profile(user_id, autopilot_enabled=enabled)
        logger.info(f"Autopilot {'enabled' if enabled else 'disabled'} for {user_id}")
        self.on_profile_changed(user_id)

    def approve_suggestion(self, user_id: str, item_id: str) -> bool:
        return self._require_orchestrator().approve_suggestion(user_id, item_id)

    def reject_suggestion(self, user_id: str, item_id: str) -> None:
        self._require_orchestrator().reject_suggestion(user_id, item_id)

    def modify_suggestion(
        self,
        user_id: str,
        item_id: str,
        configuration: LightConfiguration,
        notes: Optional[str] = None,
    ) -> bool:
        return self._require_orchestrator().modify_suggestion(
            user_id, item_id, configuration, notes
        )

    def force_regenerate(self, user_id: str) -> Optional[Tuple[ScheduleItem, ...]]:
        return self._require_orchestrator().force_regenerate(user_id)

    def active_schedule(self, user_id: str) -> Tuple[ScheduleItem, ...]:
        if self._orchestrator is None:
            return ()
        return self._orchestrator.active_schedule(user_id)

    def next_scheduled_item(self, user_id: str) -> Optional[ScheduleItem]:
        if self._orchestrator is None:
            return None
        return self._orchestrator.next_scheduled_item(user_id)

    def pending_suggestions(self, user_id: str) -> List[ScheduleItem]:
        if self._orchestrator is None:
            return []
        return self._orchestrator.pending_suggestions(user_id)

    def compliance_summary(
        self, user_id: str, now: Optional[datetime] = None
    ) -> ComplianceSummary:
        """
        Describe the user's compliance restrictions.

        Raises:
            ValueError: If the profile doesn't exist
        """
        if self._profiles is None:
            raise RuntimeError("AutopilotModule not attached")
        profile = self._profiles.get_profile(user_id)
        if profile is None:
            raise ValueError(f"Profile '{user_id}' does not exist")
        if now is None:
            now = self._device.get_current_time() if self._device else datetime.now()
        return ComplianceEngine(profile.compliance).summary(now)

    def get_history(self, user_id: Optional[str] = None, limit: int = 20) -> List[Dict]:
        """Get recent apply attempts (for debugging)."""
        if self._orchestrator is None:
            return []
        return [a.to_dict() for a in self._orchestrator.get_history(user_id, limit)]

    def apply_config(self, config: Dict) -> None:
        """Apply a (possibly older) configuration dict."""
        migrated = self.migrate_config(config)
        self._config = AutopilotConfig.from_dict(migrated)
        if self._orchestrator is not None:
            self._orchestrator.set_config(self._config)
        logger.info("Applied autopilot configuration")

    def shutdown(self) -> None:
        """Stop all users and release threads."""
        if self._orchestrator is not None:
            self._orchestrator.shutdown()

    # =========================================================================
    # UserModule Interface
    # =========================================================================

    def default_config(self) -> Dict:
        return {"version": self.CURRENT_CONFIG_VERSION, **AutopilotConfig().to_dict()}

    def config_schema(self) -> Dict:
        """Get configuration schema for the autopilot module."""
        return {
            "type": "object",
            "properties": {
                "version": {"type": "integer", "title": "Config Version", "readOnly": True},
                "auto_apply_threshold": {
                    "type": "number",
                    "title": "Auto-apply Threshold",
                    "description": "Minimum confidence for applying without approval",
                    "minimum": 0,
                    "maximum": 1,
                    "default": 0.75,
                },
                "regeneration_interval_days": {
                    "type": "integer",
                    "title": "Regeneration Interval",
                    "description": "Days between schedule rebuilds",
                    "minimum": 1,
                    "default": 7,
                },
                "schedule_days": {
                    "type": "integer",
                    "title": "Schedule Length",
                    "minimum": 1,
                    "default": 7,
                },
                "tick_interval_seconds": {
                    "type": "number",
                    "title": "Tick Interval",
                    "minimum": 0.01,
                    "default": 60,
                },
                "late_grace_seconds": {
                    "type": "number",
                    "title": "Late Grace",
                    "description": "How late a missed item may still be applied",
                    "minimum": 0,
                    "default": 7200,
                },
                "apply_timeout_seconds": {
                    "type": "number",
                    "title": "Apply Timeout",
                    "minimum": 0.1,
                    "default": 15,
                },
                "generation_timeout_seconds": {
                    "type": "number",
                    "title": "Generation Timeout",
                    "minimum": 0.1,
                    "default": 10,
                },
                "default_evening_hour": {
                    "type": "integer",
                    "title": "Evening Hour",
                    "description": "Start time when sunset is unknown",
                    "minimum": 0,
                    "maximum": 23,
                    "default": 18,
                },
            },
            "required": ["version"],
        }

    def dump_state(self) -> Dict[str, Any]:
        """Export schedules for persistence."""
        if self._orchestrator is None:
            return {}
        return self._orchestrator.export_state()

    def restore_state(self, state: Dict[str, Any]) -> None:
        """Restore schedules (deferred until attach if not attached yet)."""
        if self._orchestrator is None:
            self._pending_state = state
            return
        self._orchestrator.restore_state(state)
