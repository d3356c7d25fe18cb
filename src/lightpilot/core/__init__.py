"""
Core components of the lightpilot kernel.

This package contains:
- bus: Event Bus implementation
- profile: UserProfile dataclass and helpers
- lighting: LightConfiguration device value objects
- schedule: ScheduleItem and its enums
- manager: ProfileManager for profile storage and config
"""

from lightpilot.core.lighting import LightConfiguration, Segment
from lightpilot.core.profile import (
    ComplianceStatus,
    CustomHoliday,
    GeoLocation,
    SeasonalColorWindow,
    UserProfile,
)
from lightpilot.core.schedule import ItemState, ScheduleItem, Trigger
from lightpilot.core.bus import Event, EventBus, EventFilter
from lightpilot.core.manager import ProfileManager

__all__ = [
    "LightConfiguration",
    "Segment",
    "ComplianceStatus",
    "CustomHoliday",
    "GeoLocation",
    "SeasonalColorWindow",
    "UserProfile",
    "ItemState",
    "ScheduleItem",
    "Trigger",
    "Event",
    "EventBus",
    "EventFilter",
    "ProfileManager",
]
