#!/usr/bin/env python3
"""
Quick example demonstrating the lightpilot autopilot.

Run with: PYTHONPATH=src python3 example.py
"""

from datetime import datetime, time

from lightpilot.core.bus import Event, EventBus, EventFilter
from lightpilot.core.manager import ProfileManager
from lightpilot.core.profile import ComplianceStatus, GeoLocation, SeasonalColorWindow, UserProfile
from lightpilot.modules.calendar import SimulatedSportsProvider
from lightpilot.modules.learning import LearningModule
from lightpilot.modules.scheduling import AutopilotConfig, AutopilotModule, MockDeviceAdapter

print("=" * 60)
print("lightpilot Example")
print("=" * 60)

# 1. Kernel components
print("\n1. Creating kernel components...")
profiles = ProfileManager()
bus = EventBus()
print("   ✓ ProfileManager and EventBus created")

suggestions = []
bus.subscribe(lambda e: suggestions.append(e), EventFilter(event_type="autopilot.suggestion_added"))

# 2. A user who follows two teams and has HOA rules
print("\n2. Registering profile...")
alice = profiles.add_profile(
    UserProfile(
        id="alice",
        autonomy_level=2,
        vibe_level=0.7,
        change_tolerance=2,
        favorite_holidays=["Christmas", "Halloween"],
        sports_teams=["Chiefs", "Royals"],
        sports_team_priority=["Chiefs"],
        location=GeoLocation(39.0997, -94.5786, utc_offset_hours=-6),
        compliance=ComplianceStatus(
            quiet_hours_start=time(23, 0),
            quiet_hours_end=time(6, 0),
            seasonal_color_windows=(SeasonalColorWindow(11, 20, 1, 5),),
            is_enabled=True,
        ),
    )
)
print(f"   ✓ Registered: {alice.id} (autonomy={alice.autonomy_level})")

# 3. Attach modules
print("\n3. Attaching modules...")
device = MockDeviceAdapter(current_time=datetime(2025, 12, 20, 9, 0))
learning = LearningModule()
autopilot = AutopilotModule(
    device=device,
    learning=learning,
    sports_provider=SimulatedSportsProvider(),
    config=AutopilotConfig(tick_interval_seconds=1.0),
)
learning.attach(bus, profiles)
autopilot.attach(bus, profiles)
print(f"   ✓ Modules '{learning.id}' and '{autopilot.id}' attached")

# 4. Turn the autopilot on and build the week
print("\n4. Enabling autopilot...")
profiles.update_profile("alice", autopilot_enabled=True)
schedule = autopilot.force_regenerate("alice") or ()
autopilot.on_profile_changed("alice")
print(f"   ✓ {len(schedule)} schedule items:")
for item in schedule:
    print(
        f"     {item.scheduled_time:%a %m/%d %H:%M}  {item.pattern_name:<22} "
        f"{item.state.value:<10} confidence={item.confidence_score:.2f}  ({item.reason})"
    )

# 5. Approve the first pending suggestion through the bus, like a UI would
print("\n5. Handling suggestions...")
pending = autopilot.pending_suggestions("alice")
print(f"   ✓ {len(pending)} pending, {len(suggestions)} suggestion events seen")
if pending:
    bus.publish(
        Event(type="suggestion.approved", source="example", user_id="alice", item_id=pending[0].id)
    )
    print(f"   ✓ Approved: {pending[0].pattern_name}")

# 6. Inspect what happened
print("\n6. Status...")
summary = autopilot.compliance_summary("alice")
print(f"   ✓ Quiet hours: {summary.quiet_hours_description}")
print(f"   ✓ {summary.color_restrictions_description}")
next_item = autopilot.next_scheduled_item("alice")
if next_item:
    print(f"   ✓ Next auto-apply: {next_item.pattern_name}")
for attempt in autopilot.get_history("alice", limit=5):
    print(f"   ✓ Applied {attempt['pattern_name']} (success={attempt['success']})")

autopilot.shutdown()

print("\n" + "=" * 60)
print("Example complete!")
print("=" * 60)
