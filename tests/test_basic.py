"""
Basic smoke tests for lightpilot core components.
"""

from datetime import datetime, time

from lightpilot import Event, EventBus, LightConfiguration, ProfileManager, UserProfile
from lightpilot.core.bus import EventFilter
from lightpilot.core.profile import ComplianceStatus, CustomHoliday, SeasonalColorWindow


def test_profile_creation():
    """Test basic UserProfile dataclass creation."""
    profile = UserProfile(id="alice")
    assert profile.id == "alice"
    assert profile.autopilot_enabled is False
    assert profile.autonomy_level == 1
    assert profile.vibe_level == 0.5
    assert profile.change_tolerance == 2
    assert profile.compliance.is_enabled is False
    assert profile.last_schedule_generated is None


def test_ranked_teams_prefers_explicit_priority():
    """Test that sports_team_priority wins over follow order."""
    profile = UserProfile(id="alice", sports_teams=["Royals", "Chiefs"])
    assert profile.ranked_teams == ["Royals", "Chiefs"]

    profile.sports_team_priority = ["Chiefs", "Royals"]
    assert profile.ranked_teams == ["Chiefs", "Royals"]


def test_profile_dict_roundtrip_keeps_nested_types():
    """Test UserProfile serialization with nested compliance and holidays."""
    profile = UserProfile(
        id="alice",
        autopilot_enabled=True,
        favorite_holidays=["Halloween"],
        custom_holidays=[CustomHoliday(id="b", name="Birthday", month=4, day=2)],
        compliance=ComplianceStatus(
            quiet_hours_start=time(22, 30),
            seasonal_color_windows=(SeasonalColorWindow(10, 15, 1, 5),),
            is_enabled=True,
        ),
        last_schedule_generated=datetime(2025, 3, 1, 9, 0),
    )

    restored = UserProfile.from_dict(profile.to_dict())

    assert restored.custom_holidays[0].name == "Birthday"
    assert restored.compliance.quiet_hours_start == time(22, 30)
    assert restored.compliance.seasonal_color_windows[0].end_month == 1
    assert restored.last_schedule_generated == datetime(2025, 3, 1, 9, 0)


def test_seasonal_window_wraps_year():
    """Test a color window spanning New Year."""
    window = SeasonalColorWindow(10, 15, 1, 5)
    assert window.contains(datetime(2025, 12, 25).date())
    assert window.contains(datetime(2026, 1, 5).date())
    assert not window.contains(datetime(2026, 1, 6).date())
    assert not window.contains(datetime(2025, 10, 14).date())


def test_custom_holiday_leap_day_rolls_forward():
    """Test that Feb 29 skips to the next leap year."""
    holiday = CustomHoliday(id="x", name="Leap", month=2, day=29)
    assert holiday.next_occurrence(datetime(2025, 1, 1).date()) == datetime(2028, 2, 29).date()
    assert CustomHoliday(id="y", name="Bad", month=13, day=1).next_occurrence(
        datetime(2025, 1, 1).date()
    ) is None


def test_light_configuration_payload():
    """Test configuration payload serialization keeps unknown keys."""
    payload = {
        "on": True,
        "bri": 128,
        "transition": 7,
        "seg": [{"col": [[255, 0, 0], [0, 255, 0]], "fx": 12, "sx": 100, "grp": 2}],
    }
    config = LightConfiguration.from_payload(payload)

    assert config.brightness == 128
    assert config.colors == ((255, 0, 0), (0, 255, 0))
    assert config.primary_effect == 12
    assert config.extras == {"transition": 7}
    assert config.to_payload() == payload


def test_event_bus_publish_subscribe():
    """Test basic event publishing and subscription."""
    bus = EventBus()

    received = []

    def handler(event: Event):
        received.append(event)

    bus.subscribe(handler)

    bus.publish(Event(type="test.event", source="test", payload={"data": "value"}))

    assert len(received) == 1
    assert received[0].type == "test.event"
    assert received[0].payload["data"] == "value"


def test_event_bus_filtering():
    """Test event filtering by type and user."""
    bus = EventBus()

    suggestions = []
    alice_events = []

    def suggestion_handler(event: Event):
        suggestions.append(event)

    def alice_handler(event: Event):
        alice_events.append(event)

    bus.subscribe(suggestion_handler, EventFilter(event_type="autopilot.suggestion_added"))
    bus.subscribe(alice_handler, EventFilter(user_id="alice"))

    bus.publish(Event(type="autopilot.suggestion_added", source="test", user_id="bob"))
    bus.publish(Event(type="profile.changed", source="test", user_id="alice"))
    bus.publish(Event(type="other.event", source="test"))

    assert len(suggestions) == 1
    assert len(alice_events) == 1


def test_event_bus_handler_errors_are_isolated():
    """Test that a failing handler doesn't stop other handlers."""
    bus = EventBus()
    received = []

    def broken(event: Event):
        raise RuntimeError("boom")

    def healthy(event: Event):
        received.append(event)

    bus.subscribe(broken)
    bus.subscribe(healthy)
    bus.publish(Event(type="test.event", source="test"))

    assert len(received) == 1


def test_event_bus_prefix_filter_and_unsubscribe():
    """Test wildcard type filters and handler removal."""
    bus = EventBus()
    received = []
    handler = received.append

    bus.subscribe(handler, EventFilter(event_type="autopilot.*"))
    bus.publish(Event(type="autopilot.item_applied", source="test"))
    bus.publish(Event(type="autopilot.schedule_cleared", source="test"))
    bus.publish(Event(type="learning.preferences_updated", source="test"))
    assert [e.type for e in received] == ["autopilot.item_applied", "autopilot.schedule_cleared"]

    bus.unsubscribe(handler)
    bus.publish(Event(type="autopilot.item_applied", source="test"))
    assert len(received) == 2
    assert bus.handler_count() == 0


def test_module_config():
    """Test module configuration storage."""
    mgr = ProfileManager()
    mgr.add_profile(UserProfile(id="alice"))

    config = {"version": 1, "auto_apply_threshold": 0.8}
    mgr.set_module_config("alice", "autopilot", config)

    assert mgr.get_module_config("alice", "autopilot") == config
    assert mgr.get_module_config("alice", "learning") is None
