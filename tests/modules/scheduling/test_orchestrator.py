"""Tests for ScheduleOrchestrator."""

import logging
import threading
import time
from datetime import datetime, timedelta

import pytest

from lightpilot.core.bus import EventBus
from lightpilot.core.lighting import LightConfiguration
from lightpilot.core.manager import ProfileManager
from lightpilot.core.profile import UserProfile
from lightpilot.modules.calendar import CalendarEvent, EventAggregator, EventType
from lightpilot.modules.learning import FeedbackType
from lightpilot.modules.patterns import PatternCandidate, PatternGenerator
from lightpilot.modules.scheduling import (
    AutopilotConfig,
    CycleState,
    ItemState,
    MockDeviceAdapter,
    ScheduleItem,
    ScheduleOrchestrator,
    SuggestionBoard,
    Trigger,
    is_armed,
)

logging.basicConfig(level=logging.DEBUG)

# Monday morning
NOW = datetime(2025, 9, 15, 10, 0)


class FixedAggregator(EventAggregator):
    """Aggregator returning a fixed event list."""

    def __init__(self, events):
        super().__init__()
        self.events = events

    def events_for_range(self, start, end, profile):
        return list(self.events)


class BrokenAggregator(EventAggregator):
    def events_for_range(self, start, end, profile):
        raise RuntimeError("calendar unavailable")


class FixedConfidenceGenerator(PatternGenerator):
    """Generator producing solid patterns with per-event confidence."""

    def __init__(self, confidences):
        super().__init__()
        self.confidences = confidences

    def generate_for_event(self, event, profile, colors_allowed):
        return PatternCandidate(
            pattern_name=event.name,
            configuration=LightConfiguration.solid(event.suggested_colors or ((255, 0, 0),), 200),
            confidence=self.confidences.get(event.name, 0.5),
        )


def holiday(name, when):
    return CalendarEvent(
        name=name,
        date=when,
        type=EventType.HOLIDAY,
        suggested_colors=((255, 120, 0),),
        priority=20,
    )


def game(when, name="Chiefs vs Raiders"):
    return CalendarEvent(
        name=name,
        date=when,
        type=EventType.SPORT_GAME,
        suggested_colors=((227, 24, 55), (255, 184, 28)),
        team_name="Chiefs",
        priority=30,
    )


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def item_named(orchestrator, name):
    return next(i for i in orchestrator.active_schedule("alice") if i.pattern_name == name)


@pytest.fixture
def device():
    return MockDeviceAdapter(current_time=NOW)


@pytest.fixture
def build(device):
    """Factory for orchestrators wired to the mock device; shuts them all down."""
    built = []

    def _build(
        events=(),
        confidences=None,
        autonomy=2,
        enabled=True,
        bus=None,
        config=None,
        profiles=None,
        aggregator=None,
    ):
        if profiles is None:
            profiles = ProfileManager()
            profiles.add_profile(
                UserProfile(
                    id="alice",
                    autopilot_enabled=enabled,
                    autonomy_level=autonomy,
                    change_tolerance=0,
                )
            )
        orchestrator = ScheduleOrchestrator(
            profiles,
            device,
            aggregator=aggregator or FixedAggregator(list(events)),
            generator=FixedConfidenceGenerator(confidences or {}),
            bus=bus,
            config=config or AutopilotConfig(tick_interval_seconds=0.05),
        )
        built.append(orchestrator)
        return orchestrator, profiles

    yield _build

    for orchestrator in built:
        orchestrator.shutdown()


class TestRouting:
    """Items are routed by autonomy level and confidence."""

    def test_auto_apply_threshold(self, build):
        """At autonomy 2, confidence 0.8 is scheduled and 0.6 waits for approval."""
        events = [
            holiday("Harvest Day", datetime(2025, 9, 16, 18, 0)),
            holiday("Founders Day", datetime(2025, 9, 17, 18, 0)),
        ]
        orchestrator, _ = build(events, {"Harvest Day": 0.8, "Founders Day": 0.6})

        schedule = orchestrator.force_regenerate("alice", now=NOW)

        states = {i.pattern_name: i.state for i in schedule}
        assert states == {
            "Warm White": ItemState.SCHEDULED,
            "Harvest Day": ItemState.SCHEDULED,
            "Founders Day": ItemState.PENDING,
        }
        assert [i.pattern_name for i in orchestrator.pending_suggestions("alice")] == ["Founders Day"]
        assert orchestrator.cycle_state("alice") == CycleState.ACTIVE

    def test_suggest_only(self, build):
        events = [holiday("Harvest Day", datetime(2025, 9, 16, 18, 0))]
        orchestrator, _ = build(events, {"Harvest Day": 0.99}, autonomy=1)

        schedule = orchestrator.force_regenerate("alice", now=NOW)

        assert {i.state for i in schedule} == {ItemState.PENDING}
        assert len(orchestrator.pending_suggestions("alice")) == 2
        assert orchestrator.session("alice").armed_count == 0

    def test_withheld_at_autonomy_zero(self, build):
        orchestrator, profiles = build([game(datetime(2025, 9, 16, 19, 0))], autonomy=0)

        schedule = orchestrator.force_regenerate("alice", now=NOW)

        assert {i.state for i in schedule} == {ItemState.WITHHELD}
        assert orchestrator.pending_suggestions("alice") == []
        assert orchestrator.session("alice").armed_count == 0
        assert profiles.get_profile("alice").last_schedule_generated == NOW

    def test_learned_preferences_lower_confidence(self, build):
        orchestrator, _ = build([game(datetime(2025, 9, 16, 19, 0))], {"Chiefs vs Raiders": 0.9})
        rejected = ScheduleItem(
            id="old",
            scheduled_time=datetime(2025, 9, 7, 19, 0),
            pattern_name="Old game",
            reason="Chiefs game day",
            trigger=Trigger.GAME_DAY,
            confidence_score=0.9,
            configuration=LightConfiguration.solid(((227, 24, 55),), 200),
        )
        for _ in range(3):
            orchestrator.learning.record_feedback("alice", rejected, FeedbackType.REJECTED, now=NOW)

        orchestrator.force_regenerate("alice", now=NOW)

        game_item = item_named(orchestrator, "Chiefs vs Raiders")
        assert game_item.confidence_score == pytest.approx(0.45)
        assert game_item.state == ItemState.PENDING


class TestRegeneration:
    def test_needs_regeneration(self, build):
        orchestrator, profiles = build()
        profile = profiles.get_profile("alice")

        assert orchestrator.needs_regeneration(profile, NOW)
        profile.last_schedule_generated = NOW - timedelta(days=6, hours=23)
        assert not orchestrator.needs_regeneration(profile, NOW)
        profile.last_schedule_generated = NOW - timedelta(days=7)
        assert orchestrator.needs_regeneration(profile, NOW)

    def test_run_cycle_only_when_stale(self, build):
        orchestrator, _ = build()

        assert orchestrator.run_cycle("alice", now=NOW) is True
        assert orchestrator.run_cycle("alice", now=NOW + timedelta(days=1)) is False
        assert orchestrator.run_cycle("alice", now=NOW + timedelta(days=7)) is True

    def test_disabled_user_not_planned(self, build):
        orchestrator, profiles = build(enabled=False)
        assert orchestrator.force_regenerate("alice", now=NOW) is None
        assert orchestrator.run_cycle("alice", now=NOW) is False
        assert profiles.get_profile("alice").last_schedule_generated is None

    def test_concurrent_regeneration_skipped(self, build):
        orchestrator, _ = build()
        session = orchestrator.session("alice")

        session.regeneration_lock.acquire()
        try:
            assert orchestrator.force_regenerate("alice", now=NOW) is None
        finally:
            session.regeneration_lock.release()

        assert orchestrator.force_regenerate("alice", now=NOW) is not None

    def test_generation_failure_keeps_state(self, build):
        orchestrator, profiles = build(aggregator=BrokenAggregator())

        assert orchestrator.force_regenerate("alice", now=NOW) is None
        assert orchestrator.cycle_state("alice") == CycleState.IDLE
        assert profiles.get_profile("alice").last_schedule_generated is None

    def test_failed_regeneration_keeps_old_schedule_live(self, build, device):
        """A failed rebuild leaves suggestions approvable and timers armed."""
        aggregator = FixedAggregator(
            [
                holiday("Harvest Day", datetime(2025, 9, 16, 18, 0)),
                game(datetime(2025, 9, 15, 11, 0)),
            ]
        )
        orchestrator, _ = build(
            aggregator=aggregator, confidences={"Chiefs vs Raiders": 0.9, "Harvest Day": 0.6}
        )
        orchestrator.force_regenerate("alice", now=NOW)
        pending = orchestrator.pending_suggestions("alice")
        armed = orchestrator.session("alice").armed_count
        assert armed >= 1

        aggregator.events_for_range = BrokenAggregator().events_for_range
        assert orchestrator.force_regenerate("alice", now=NOW) is None

        assert orchestrator.pending_suggestions("alice") == pending
        assert orchestrator.session("alice").armed_count == armed
        harvest = next(i for i in pending if i.pattern_name == "Harvest Day")
        assert orchestrator.approve_suggestion("alice", harvest.id) is True
        assert item_named(orchestrator, "Harvest Day").state == ItemState.APPLIED

    def test_regeneration_clears_suggestions_first(self, build):
        """The clear is published before any new suggestion."""
        bus = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(e))
        events = [holiday("Harvest Day", datetime(2025, 9, 16, 18, 0))]
        orchestrator, _ = build(events, autonomy=1, bus=bus)

        orchestrator.force_regenerate("alice", now=NOW)
        seen.clear()
        orchestrator.force_regenerate("alice", now=NOW)

        types = [e.type for e in seen if e.source == "autopilot"]
        assert types[0] == "autopilot.suggestions_cleared"
        assert types.index("autopilot.suggestions_cleared") < types.index("autopilot.suggestion_added")
        assert types[-1] == "autopilot.schedule_generated"
        assert seen[0].payload["count"] == 2
        assert len(orchestrator.pending_suggestions("alice")) == 2


class TestFiring:
    def test_late_item_within_grace_fires(self, build, device):
        orchestrator, _ = build([game(datetime(2025, 9, 15, 9, 30))], {"Chiefs vs Raiders": 0.9})

        orchestrator.force_regenerate("alice", now=NOW)

        assert device.wait_for_apply(1)
        assert wait_until(
            lambda: item_named(orchestrator, "Chiefs vs Raiders").state == ItemState.APPLIED
        )
        applied = item_named(orchestrator, "Chiefs vs Raiders")
        assert applied.was_auto_applied is True
        assert applied.is_approved is True

        assert wait_until(lambda: orchestrator.learning.recent_feedback("alice"))
        feedback = orchestrator.learning.recent_feedback("alice")
        assert [f.feedback_type for f in feedback] == [FeedbackType.AUTO_APPLIED]

    def test_item_beyond_grace_expires(self, build, device):
        orchestrator, _ = build([game(datetime(2025, 9, 15, 7, 0))], {"Chiefs vs Raiders": 0.9})

        orchestrator.force_regenerate("alice", now=NOW)

        assert item_named(orchestrator, "Chiefs vs Raiders").state == ItemState.EXPIRED
        assert orchestrator.scan_due_items("alice", now=NOW) == 0
        assert device.get_applied() == []

    def test_scan_fires_due_item_once(self, build, device):
        orchestrator, _ = build([game(datetime(2025, 9, 15, 11, 0))], {"Chiefs vs Raiders": 0.9})
        orchestrator.force_regenerate("alice", now=NOW)

        later = datetime(2025, 9, 15, 11, 5)
        assert orchestrator.scan_due_items("alice", now=later) == 1
        assert orchestrator.scan_due_items("alice", now=later) == 0
        assert len(device.get_applied()) == 1

    def test_scan_expires_missed_item(self, build, device):
        orchestrator, _ = build([game(datetime(2025, 9, 15, 11, 0))], {"Chiefs vs Raiders": 0.9})
        orchestrator.force_regenerate("alice", now=NOW)

        assert orchestrator.scan_due_items("alice", now=datetime(2025, 9, 15, 13, 30)) == 0
        assert item_named(orchestrator, "Chiefs vs Raiders").state == ItemState.EXPIRED
        assert device.get_applied() == []

    def test_repeating_occurrence_claimed_once(self, build, device):
        evening = datetime(2025, 9, 15, 18, 30)
        device.set_current_time(evening)
        orchestrator, _ = build()

        orchestrator.force_regenerate("alice", now=evening)

        assert device.wait_for_apply(1)
        assert orchestrator.scan_due_items("alice", now=evening) == 0
        assert len(device.get_applied()) == 1

        assert wait_until(lambda: item_named(orchestrator, "Warm White").state == ItemState.APPLIED)
        baseline = item_named(orchestrator, "Warm White")
        assert is_armed(baseline)
        assert orchestrator.next_scheduled_item("alice", now=evening) == baseline

    def test_device_failure_not_applied(self, build, device):
        device.set_result(False)
        orchestrator, _ = build([game(datetime(2025, 9, 15, 11, 0))], {"Chiefs vs Raiders": 0.9})
        orchestrator.force_regenerate("alice", now=NOW)

        later = datetime(2025, 9, 15, 11, 5)
        assert orchestrator.scan_due_items("alice", now=later) == 0
        assert item_named(orchestrator, "Chiefs vs Raiders").state == ItemState.SCHEDULED

        attempt = orchestrator.get_history("alice")[0]
        assert attempt.success is False
        assert attempt.error == "device rejected configuration"
        assert attempt.auto is True

        # Claimed occurrences are not retried
        assert orchestrator.scan_due_items("alice", now=later) == 0
        assert len(device.get_applied()) == 1

    def test_device_error_and_timeout(self, build, device):
        config = AutopilotConfig(tick_interval_seconds=0.05, apply_timeout_seconds=0.05)
        events = [
            game(datetime(2025, 9, 15, 11, 0), name="Early game"),
            game(datetime(2025, 9, 15, 12, 0), name="Late game"),
        ]
        orchestrator, _ = build(events, {"Early game": 0.9, "Late game": 0.9}, config=config)
        orchestrator.force_regenerate("alice", now=NOW)

        device.set_error(ConnectionError("device offline"))
        assert orchestrator.scan_due_items("alice", now=datetime(2025, 9, 15, 11, 5)) == 0
        assert orchestrator.get_history("alice")[0].error == "device offline"

        device.set_error(None)
        device.set_delay(0.5)
        assert orchestrator.scan_due_items("alice", now=datetime(2025, 9, 15, 12, 5)) == 0
        assert orchestrator.get_history("alice")[0].error.startswith("timed out")

    def test_publishes_item_applied(self, build, device):
        bus = EventBus()
        applied = []
        bus.subscribe(lambda e: applied.append(e) if e.type == "autopilot.item_applied" else None)
        orchestrator, _ = build(
            [game(datetime(2025, 9, 15, 11, 0))], {"Chiefs vs Raiders": 0.9}, bus=bus
        )
        orchestrator.force_regenerate("alice", now=NOW)

        orchestrator.scan_due_items("alice", now=datetime(2025, 9, 15, 11, 5))

        assert len(applied) == 1
        assert applied[0].payload["auto"] is True
        assert applied[0].payload["occurrence"] == "2025-09-15T11:00:00"


class TestLoop:
    def test_loop_regenerates_and_fires(self, build, device):
        orchestrator, _ = build([game(datetime(2025, 9, 15, 9, 50))], {"Chiefs vs Raiders": 0.9})

        assert orchestrator.start("alice") is True
        assert orchestrator.start("alice") is False
        assert orchestrator.is_running("alice")

        assert device.wait_for_apply(1)
        orchestrator.stop("alice")
        assert not orchestrator.is_running("alice")

    def test_nothing_fires_after_stop(self, build, device):
        soon = NOW + timedelta(seconds=0.4)
        orchestrator, _ = build([game(soon)], {"Chiefs vs Raiders": 0.9})

        orchestrator.start("alice")
        assert wait_until(lambda: orchestrator.session("alice").armed_count >= 2)
        orchestrator.stop("alice")

        time.sleep(0.6)
        assert device.get_applied() == []
        assert orchestrator.session("alice").armed_count == 0

    def test_restored_schedule_rearmed_on_start(self, build, device):
        orchestrator, profiles = build(
            [game(datetime(2025, 9, 15, 11, 0))], {"Chiefs vs Raiders": 0.9}
        )
        orchestrator.force_regenerate("alice", now=NOW)
        state = orchestrator.export_state()
        orchestrator.shutdown()

        device.set_current_time(datetime(2025, 9, 15, 11, 10))
        restored, _ = build(profiles=profiles)
        restored.restore_state(state)
        restored.start("alice")

        assert device.wait_for_apply(1)
        assert device.get_applied()[0].brightness == 200


class TestUserActions:
    """Approving, rejecting and modifying pending suggestions."""

    @pytest.fixture
    def suggesting(self, build):
        events = [holiday("Harvest Day", datetime(2025, 9, 16, 18, 0))]
        orchestrator, _ = build(events, autonomy=1)
        orchestrator.force_regenerate("alice", now=NOW)
        return orchestrator

    def _harvest(self, orchestrator):
        return next(
            i for i in orchestrator.pending_suggestions("alice") if i.pattern_name == "Harvest Day"
        )

    def test_approve(self, suggesting, device):
        item = self._harvest(suggesting)

        assert suggesting.approve_suggestion("alice", item.id) is True

        assert device.get_applied() == [item.configuration]
        applied = item_named(suggesting, "Harvest Day")
        assert applied.state == ItemState.APPLIED
        assert applied.is_approved is True
        assert applied.was_auto_applied is False
        assert item.id not in {i.id for i in suggesting.pending_suggestions("alice")}

        assert suggesting.dispatcher.drain()
        feedback = suggesting.learning.recent_feedback("alice")
        assert feedback[0].feedback_type == FeedbackType.ACCEPTED
        assert feedback[0].trigger == Trigger.HOLIDAY
        assert feedback[0].timestamp == NOW

    def test_approve_twice_raises(self, suggesting):
        item = self._harvest(suggesting)
        suggesting.approve_suggestion("alice", item.id)
        with pytest.raises(ValueError):
            suggesting.approve_suggestion("alice", item.id)

    def test_simultaneous_decisions_single_winner(self, suggesting, device):
        """Only one of several concurrent decisions on a suggestion goes through."""
        device.set_delay(0.2)
        item = self._harvest(suggesting)
        outcomes = []
        outcomes_lock = threading.Lock()

        def decide(action):
            try:
                result = action("alice", item.id)
            except ValueError:
                result = "not pending"
            with outcomes_lock:
                outcomes.append(result)

        actions = [
            suggesting.approve_suggestion,
            suggesting.reject_suggestion,
            suggesting.approve_suggestion,
        ]
        threads = [threading.Thread(target=decide, args=(action,)) for action in actions]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5.0)

        assert len(outcomes) == 3
        assert outcomes.count("not pending") == 2
        assert len(device.get_applied()) <= 1
        assert suggesting.dispatcher.drain()
        assert len(suggesting.learning.recent_feedback("alice")) == 1
        assert item_named(suggesting, "Harvest Day").state in (ItemState.APPLIED, ItemState.REJECTED)

    def test_unknown_suggestion(self, suggesting):
        with pytest.raises(ValueError, match="No pending suggestion"):
            suggesting.approve_suggestion("alice", "missing")
        with pytest.raises(ValueError):
            suggesting.reject_suggestion("alice", "missing")
        with pytest.raises(ValueError):
            suggesting.modify_suggestion("alice", "missing", LightConfiguration(on=False))

    def test_approve_device_failure_stays_pending(self, suggesting, device):
        device.set_result(False)
        item = self._harvest(suggesting)

        assert suggesting.approve_suggestion("alice", item.id) is False

        assert suggesting.pending_suggestions("alice")[-1].id == item.id
        assert item_named(suggesting, "Harvest Day").state == ItemState.PENDING
        assert suggesting.dispatcher.drain()
        assert suggesting.learning.recent_feedback("alice") == []

    def test_reject(self, suggesting, device):
        item = self._harvest(suggesting)

        suggesting.reject_suggestion("alice", item.id)

        assert device.get_applied() == []
        assert item_named(suggesting, "Harvest Day").state == ItemState.REJECTED
        assert suggesting.dispatcher.drain()
        assert suggesting.learning.recent_feedback("alice")[0].feedback_type == FeedbackType.REJECTED

    def test_modify(self, suggesting, device):
        item = self._harvest(suggesting)
        edited = LightConfiguration.solid(((0, 0, 255),), 150)

        assert suggesting.modify_suggestion("alice", item.id, edited, notes="Prefer blue") is True

        assert device.get_applied() == [edited]
        modified = item_named(suggesting, "Harvest Day")
        assert modified.state == ItemState.APPLIED
        assert modified.configuration == edited
        assert modified.colors == ((0, 0, 255),)

        assert suggesting.dispatcher.drain()
        record = suggesting.learning.recent_feedback("alice")[0]
        assert record.feedback_type == FeedbackType.MODIFIED
        assert record.modification_notes == "Prefer blue"
        assert record.original_colors == ((255, 120, 0),)
        assert record.modified_colors == ((0, 0, 255),)

    def test_approved_repeating_item_not_auto_fired(self, suggesting):
        baseline = next(
            i for i in suggesting.pending_suggestions("alice") if i.pattern_name == "Warm White"
        )
        suggesting.approve_suggestion("alice", baseline.id)

        assert not is_armed(item_named(suggesting, "Warm White"))
        assert suggesting.next_scheduled_item("alice", now=NOW) is None


class TestSuggestionBoard:
    @pytest.fixture
    def suggestion(self):
        return ScheduleItem(
            id="s1",
            scheduled_time=datetime(2025, 9, 16, 18, 0),
            pattern_name="Harvest Day",
            reason="It's Harvest Day!",
            trigger=Trigger.HOLIDAY,
            confidence_score=0.6,
            configuration=LightConfiguration.solid(((255, 120, 0),), 200),
            state=ItemState.PENDING,
        )

    def test_take_is_exclusive(self, suggestion):
        board = SuggestionBoard()
        board.add("alice", suggestion)

        assert board.take("alice", "s1") == suggestion
        assert board.take("alice", "s1") is None
        assert board.pending("alice") == []

    def test_release_returns_to_pending(self, suggestion):
        board = SuggestionBoard()
        board.add("alice", suggestion)
        board.take("alice", "s1")

        assert board.release("alice", "s1") is True
        assert board.get("alice", "s1") == suggestion

    def test_release_after_clear_is_noop(self, suggestion):
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        board = SuggestionBoard(bus)
        board.add("alice", suggestion)
        board.take("alice", "s1")

        assert board.clear("alice") == 1
        assert board.release("alice", "s1") is False
        assert board.pending("alice") == []
        assert board.resolve("alice", "s1", ItemState.APPLIED) is None
        assert [e.type for e in seen] == ["autopilot.suggestion_added", "autopilot.suggestions_cleared"]

    def test_resolve_taken_item_publishes(self, suggestion):
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        board = SuggestionBoard(bus)
        board.add("alice", suggestion)
        board.take("alice", "s1")

        assert board.resolve("alice", "s1", ItemState.REJECTED) == suggestion
        assert seen[-1].type == "autopilot.suggestion_resolved"
        assert seen[-1].payload == {"state": "rejected"}


class TestPersistence:
    def test_export_restore(self, build):
        events = [holiday("Harvest Day", datetime(2025, 9, 16, 18, 0))]
        orchestrator, profiles = build(events, autonomy=1)
        orchestrator.force_regenerate("alice", now=NOW)

        state = orchestrator.export_state()
        state["alice"]["items"].append({"id": "broken", "trigger": "nope"})

        restored, _ = build(profiles=profiles)
        restored.restore_state(state)

        assert [i.id for i in restored.active_schedule("alice")] == [
            i.id for i in orchestrator.active_schedule("alice")
        ]
        assert len(restored.pending_suggestions("alice")) == 2
        assert restored.cycle_state("alice") == CycleState.ACTIVE

    def test_history_newest_first(self, build, device):
        events = [
            game(datetime(2025, 9, 15, 11, 0), name="Early game"),
            game(datetime(2025, 9, 15, 12, 0), name="Late game"),
        ]
        orchestrator, _ = build(events, {"Early game": 0.9, "Late game": 0.9})
        orchestrator.force_regenerate("alice", now=NOW)

        orchestrator.scan_due_items("alice", now=datetime(2025, 9, 15, 12, 5))

        history = orchestrator.get_history("alice")
        assert [a.pattern_name for a in history] == ["Late game", "Early game"]
        assert orchestrator.get_history("bob") == []
        assert len(orchestrator.get_history(limit=1)) == 1
