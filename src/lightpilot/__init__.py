"""
lightpilot: An autonomous lighting-schedule planner.

This library plans and applies a week of lighting for each user:
- Calendar event aggregation (holidays, games, seasons, custom dates)
- HOA compliance enforcement
- Pattern generation with rule-based fallbacks
- Autonomy-aware scheduling on an injectable device adapter
- Learning from accept/reject/modify feedback
"""

from lightpilot.core.bus import Event, EventBus, EventFilter
from lightpilot.core.lighting import LightConfiguration
from lightpilot.core.manager import ProfileManager
from lightpilot.core.profile import UserProfile
from lightpilot.core.schedule import ScheduleItem

__version__ = "0.1.0-alpha"

__all__ = [
    "Event",
    "EventBus",
    "EventFilter",
    "LightConfiguration",
    "ProfileManager",
    "ScheduleItem",
    "UserProfile",
]
