"""
Scheduling (autopilot) module for lightpilot.

Plans a weekly lighting schedule per user, routes items by autonomy level
and applies them to the device on time.
"""

from .adapter import DeviceAdapter, MockDeviceAdapter
from .models import (
    ApplyAttempt,
    AutopilotConfig,
    ChangeToleranceLevel,
    CycleState,
    ItemState,
    ScheduleItem,
    Trigger,
)
from .module import AutopilotModule
from .orchestrator import ScheduleOrchestrator, is_armed
from .planner import WeeklyPlanner, event_reason
from .session import ScheduleSession
from .suggestions import SuggestionBoard

__all__ = [
    # Module
    "AutopilotModule",
    # Orchestration
    "ScheduleOrchestrator",
    "ScheduleSession",
    "SuggestionBoard",
    "WeeklyPlanner",
    "event_reason",
    "is_armed",
    # Adapter
    "DeviceAdapter",
    "MockDeviceAdapter",
    # Models
    "ApplyAttempt",
    "AutopilotConfig",
    "ChangeToleranceLevel",
    "CycleState",
    "ItemState",
    "ScheduleItem",
    "Trigger",
]
