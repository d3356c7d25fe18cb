"""
Schedule orchestrator: the autopilot control loop.

Per enabled user the orchestrator keeps a ScheduleSession and runs a loop
thread that checks whether the weekly schedule is stale, regenerates it,
routes every item by autonomy level and fires armed items on time.

Item routing:
- autonomy 2 and confidence >= threshold: SCHEDULED (armed, auto-applied)
- autonomy >= 1 otherwise: PENDING (published for approval)
- autonomy 0: WITHHELD (computed, never surfaced)
"""

import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional, Tuple

from lightpilot.core.bus import Event, EventBus
from lightpilot.core.lighting import LightConfiguration
from lightpilot.core.manager import ProfileManager
from lightpilot.core.profile import UserProfile
from lightpilot.core.schedule import local_naive
from lightpilot.modules.calendar.aggregator import EventAggregator
from lightpilot.modules.learning.dispatcher import FeedbackDispatcher
from lightpilot.modules.learning.engine import LearningEngine, adjust_confidence
from lightpilot.modules.learning.models import FeedbackType
from lightpilot.modules.patterns.generator import PatternGenerator

from .adapter import DeviceAdapter
from .models import ApplyAttempt, AutopilotConfig, CycleState, ItemState, ScheduleItem
from .planner import WeeklyPlanner
from .session import ScheduleSession
from .suggestions import SuggestionBoard

logger = logging.getLogger(__name__)

HISTORY_SIZE = 100
AUTO_APPLY_AUTONOMY = 2


def is_armed(item: ScheduleItem) -> bool:
    """Whether the autopilot fires this item on its own."""
    if item.state == ItemState.SCHEDULED:
        return True
    return item.is_repeating and item.state == ItemState.APPLIED and item.was_auto_applied


class ScheduleOrchestrator:
    """
    Runs the weekly autopilot cycle for every enabled user.

    All collaborators are injected; device and backend calls are bounded by
    timeouts so a hung remote never stalls a user's loop.

    Usage:
        orchestrator = ScheduleOrchestrator(profiles, device, learning, bus=bus)
        orchestrator.start("alice")
        ...
        orchestrator.shutdown()
    """

    def __init__(
        self,
        profiles: ProfileManager,
        device: DeviceAdapter,
        learning: Optional[LearningEngine] = None,
        aggregator: Optional[EventAggregator] = None,
        generator: Optional[PatternGenerator] = None,
        board: Optional[SuggestionBoard] = None,
        bus: Optional[EventBus] = None,
        config: Optional[AutopilotConfig] = None,
        dispatcher: Optional[FeedbackDispatcher] = None,
    ) -> None:
        self._profiles = profiles
        self._device = device
        self._bus = bus
        self._config = config or AutopilotConfig()
        self._learning = learning or LearningEngine(bus=bus)
        self._generator = generator or PatternGenerator(
            timeout_seconds=self._config.generation_timeout_seconds
        )
        self._planner = WeeklyPlanner(
            aggregator or EventAggregator(), self._generator, self._config
        )
        self._board = board or SuggestionBoard(bus)
        self._dispatcher = dispatcher or FeedbackDispatcher()
        self._apply_executor = ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="lightpilot-apply"
        )

        self._sessions: Dict[str, ScheduleSession] = {}
        self._sessions_lock = threading.Lock()
        self._history: Deque[ApplyAttempt] = deque(maxlen=HISTORY_SIZE)
        self._history_lock = threading.Lock()

    @property
    def config(self) -> AutopilotConfig:
        return self._config

    @property
    def board(self) -> SuggestionBoard:
        return self._board

    @property
    def learning(self) -> LearningEngine:
        return self._learning

    @property
    def dispatcher(self) -> FeedbackDispatcher:
        return self._dispatcher

    def set_config(self, config: AutopilotConfig) -> None:
        self._config = config
        self._planner.set_config(config)

    def session(self, user_id: str) -> ScheduleSession:
        """Get (or create) the session for a user."""
        with self._sessions_lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = ScheduleSession(user_id)
                self._sessions[user_id] = session
            return session

    def _now(self) -> datetime:
        return self._device.get_current_time()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, user_id: str) -> bool:
        """
        Start the control loop for a user.

        Items restored in SCHEDULED state are re-armed.

        Returns:
            True if a loop was started, False if already running
        """
        session = self.session(user_id)
        if session.is_running:
            logger.debug(f"Autopilot loop already running for {user_id}")
            return False

        loop = threading.Thread(
            target=self._run_loop,
            args=(session,),
            name=f"lightpilot-loop-{user_id}",
            daemon=True,
        )
        session.begin(loop)
        now = self._now()
        for item in session.items:
            if is_armed(item):
                self._arm(session, item, now)
        loop.start()
        logger.info(f"Started autopilot for {user_id}")
        return True

    def stop(self, user_id: str, timeout: float = 2.0) -> None:
        """
        Stop a user's loop and cancel all armed items.

        Nothing fires for the user after this returns. The schedule and
        pending suggestions are kept.
        """
        with self._sessions_lock:
            session = self._sessions.get(user_id)
        if session is None:
            return
        loop = session.cancel()
        if loop is not None and loop is not threading.current_thread():
            loop.join(timeout)
        logger.info(f"Stopped autopilot for {user_id}")

    def shutdown(self) -> None:
        """Stop every loop and release worker threads."""
        with self._sessions_lock:
            user_ids = list(self._sessions)
        for user_id in user_ids:
            self.stop(user_id)
        self._dispatcher.shutdown(wait_for_tasks=True)
        self._apply_executor.shutdown(wait=False, cancel_futures=True)
        self._generator.shutdown()
        logger.info("Autopilot orchestrator shut down")

    def _run_loop(self, session: ScheduleSession) -> None:
        stop = session.stop_event
        while True:
            try:
                self.tick(session.user_id)
            except Exception as e:
                logger.error(f"Autopilot tick failed for {session.user_id}: {e}", exc_info=True)
            if stop.wait(self._config.tick_interval_seconds):
                break
        logger.debug(f"Autopilot loop exited for {session.user_id}")

    def tick(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        One pass of the control loop: regenerate if stale, then fire due items.

        Returns:
            Number of items fired by the scan
        """
        now = now or self._now()
        self.run_cycle(user_id, now=now)
        return self.scan_due_items(user_id, now=now)

    # =========================================================================
    # Regeneration
    # =========================================================================

    def needs_regeneration(self, profile: UserProfile, now: datetime) -> bool:
        """True if never generated or generated at least the interval ago."""
        if profile.last_schedule_generated is None:
            return True
        age = local_naive(now) - local_naive(profile.last_schedule_generated)
        return age >= timedelta(days=self._config.regeneration_interval_days)

    def run_cycle(self, user_id: str, now: Optional[datetime] = None) -> bool:
        """
        Regenerate the schedule if it is stale.

        Returns:
            True if a new schedule was produced
        """
        return self._regenerate(user_id, force=False, now=now) is not None

    def force_regenerate(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Optional[Tuple[ScheduleItem, ...]]:
        """
        Discard the current schedule and build a new one now.

        Pending suggestions are cleared (and the clear published) before any
        new suggestion is published.

        Returns:
            The new schedule, or None if the user is disabled or a
            regeneration is already running
        """
        return self._regenerate(user_id, force=True, now=now)

    def _regenerate(
        self, user_id: str, force: bool, now: Optional[datetime]
    ) -> Optional[Tuple[ScheduleItem, ...]]:
        profile = self._profiles.get_profile(user_id)
        if profile is None or not profile.autopilot_enabled:
            logger.debug(f"Autopilot disabled for {user_id}, skipping regeneration")
            return None

        session = self.session(user_id)
        if not session.regeneration_lock.acquire(blocking=False):
            logger.debug(f"Regeneration already running for {user_id}")
            return None

        try:
            now = now or self._now()
            if not force and not self.needs_regeneration(profile, now):
                return None

            previous_state = session.state
            session.set_state(CycleState.REGENERATING)

            # The old schedule stays live until a new one exists.
            try:
                planned = self._planner.plan(profile, now)
                learned = self._learning.learned_preferences(user_id)
                planned = [
                    replace(
                        item,
                        confidence_score=adjust_confidence(item.confidence_score, item, learned),
                    )
                    for item in planned
                ]
            except Exception as e:
                logger.error(f"Schedule generation failed for {user_id}: {e}", exc_info=True)
                session.set_state(previous_state)
                return None

            self._board.clear(user_id)
            session.disarm_all()
            schedule = self._route(session, profile, planned, now)
            self._profiles.mark_schedule_generated(user_id, now)
            session.set_state(CycleState.IDLE if session.cancelled else CycleState.ACTIVE)
        finally:
            session.regeneration_lock.release()

        counts: Dict[str, int] = {}
        for item in schedule:
            counts[item.state.value] = counts.get(item.state.value, 0) + 1
        logger.info(f"Generated {len(schedule)} schedule items for {user_id}: {counts}")
        self._publish(
            "autopilot.schedule_generated",
            user_id,
            payload={"item_count": len(schedule), "states": counts, "forced": force},
        )
        return schedule

    def _route(
        self,
        session: ScheduleSession,
        profile: UserProfile,
        items: List[ScheduleItem],
        now: datetime,
    ) -> Tuple[ScheduleItem, ...]:
        routed: List[ScheduleItem] = []
        for item in items:
            if (
                profile.autonomy_level >= AUTO_APPLY_AUTONOMY
                and item.confidence_score >= self._config.auto_apply_threshold
            ):
                routed.append(item.with_state(ItemState.SCHEDULED))
            elif profile.autonomy_level >= 1:
                routed.append(item.with_state(ItemState.PENDING))
            else:
                routed.append(item.with_state(ItemState.WITHHELD))

        session.replace_items(tuple(routed))

        for item in routed:
            if item.state == ItemState.SCHEDULED:
                self._arm(session, item, now)
            elif item.state == ItemState.PENDING:
                self._board.add(session.user_id, item)
        return session.items

    # =========================================================================
    # Firing
    # =========================================================================

    def _arm(self, session: ScheduleSession, item: ScheduleItem, now: datetime) -> None:
        """
        Arm the timer for an item's next firing.

        A one-shot item already late by no more than the grace window fires
        immediately; later than that it expires. A repeating item fires a
        missed occurrence within grace immediately and is armed for the next.
        """
        grace = timedelta(seconds=self._config.late_grace_seconds)
        user_id = session.user_id

        if not item.is_repeating:
            delay = (item.scheduled_time - now).total_seconds()
            if delay > 0 or now - item.scheduled_time <= grace:
                session.arm(
                    item.id,
                    delay,
                    lambda: self._fire(user_id, item.id, item.scheduled_time, rearm=False),
                )
            else:
                self._expire(session, item)
            return

        for occurrence in self._recent_occurrences(item, now):
            if now - occurrence <= grace and not session.is_claimed(item.id, occurrence):
                threading.Thread(
                    target=self._fire,
                    args=(user_id, item.id, occurrence),
                    kwargs={"rearm": False},
                    name=f"lightpilot-late-{item.id[:8]}",
                    daemon=True,
                ).start()

        upcoming = item.next_occurrence(now)
        if upcoming is not None:
            session.arm(
                item.id,
                (upcoming - now).total_seconds(),
                lambda: self._fire(user_id, item.id, upcoming, rearm=True),
            )

    @staticmethod
    def _recent_occurrences(item: ScheduleItem, now: datetime) -> List[datetime]:
        """Occurrences at or before now on today and yesterday."""
        result = []
        for offset in (1, 0):
            occurrence = item.occurrence_on(now.date() - timedelta(days=offset))
            if occurrence is not None and occurrence <= now:
                result.append(occurrence)
        return result

    def _expire(self, session: ScheduleSession, item: ScheduleItem) -> None:
        session.update_item(item.id, lambda i: i.with_state(ItemState.EXPIRED))
        logger.info(
            f"Item {item.pattern_name!r} for {session.user_id} missed its window "
            f"({item.scheduled_time.isoformat()}), expired"
        )

    def scan_due_items(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        Fire every armed occurrence that is due and not yet fired.

        Backstop for timers: claims make it safe to run alongside them.

        Returns:
            Number of occurrences applied
        """
        profile = self._profiles.get_profile(user_id)
        if profile is None or not profile.autopilot_enabled:
            return 0

        session = self.session(user_id)
        if session.cancelled:
            return 0

        now = now or self._now()
        grace = timedelta(seconds=self._config.late_grace_seconds)
        fired = 0
        for item in session.items:
            if item.is_repeating:
                if not is_armed(item):
                    continue
                occurrences = self._recent_occurrences(item, now)
            else:
                if item.state != ItemState.SCHEDULED or item.scheduled_time > now:
                    continue
                if now - item.scheduled_time > grace:
                    session.disarm(item.id)
                    self._expire(session, item)
                    continue
                occurrences = [item.scheduled_time]

            for occurrence in occurrences:
                if now - occurrence <= grace and self._fire(
                    user_id, item.id, occurrence, rearm=False
                ):
                    fired += 1
        return fired

    def _fire(self, user_id: str, item_id: str, occurrence: datetime, rearm: bool) -> bool:
        """
        Apply one occurrence of an armed item.

        Returns:
            True if this call applied it successfully
        """
        with self._sessions_lock:
            session = self._sessions.get(user_id)
        if session is None or session.cancelled:
            return False

        item = session.get_item(item_id)
        if item is None:
            return False
        if not is_armed(item) or not session.claim(item_id, occurrence):
            return False

        success = self._apply(user_id, item, item.configuration, occurrence, auto=True)
        if success:
            applied = session.update_item(
                item_id,
                lambda i: i.with_state(ItemState.APPLIED, is_approved=True, was_auto_applied=True),
            )
            self._record_feedback(user_id, applied or item, FeedbackType.AUTO_APPLIED)
            self._publish(
                "autopilot.item_applied",
                user_id,
                item_id,
                {"pattern_name": item.pattern_name, "occurrence": occurrence.isoformat(), "auto": True},
            )

        if rearm and item.is_repeating and not session.cancelled:
            upcoming = item.next_occurrence(occurrence)
            if upcoming is not None:
                session.arm(
                    item_id,
                    (upcoming - self._now()).total_seconds(),
                    lambda: self._fire(user_id, item_id, upcoming, rearm=True),
                )
        return success

    def _apply(
        self,
        user_id: str,
        item: ScheduleItem,
        configuration: LightConfiguration,
        occurrence: Optional[datetime],
        auto: bool,
    ) -> bool:
        """Push a configuration to the device with a timeout; never raises."""
        error: Optional[str] = None
        success = False
        future = self._apply_executor.submit(self._device.apply, configuration)
        try:
            success = bool(future.result(timeout=self._config.apply_timeout_seconds))
            if not success:
                error = "device rejected configuration"
        except FutureTimeoutError:
            future.cancel()
            error = f"timed out after {self._config.apply_timeout_seconds}s"
        except Exception as e:
            error = str(e) or type(e).__name__

        if success:
            logger.info(f"Applied {item.pattern_name!r} for {user_id}")
        else:
            logger.warning(f"Failed to apply {item.pattern_name!r} for {user_id}: {error}")

        with self._history_lock:
            self._history.append(
                ApplyAttempt(
                    user_id=user_id,
                    item_id=item.id,
                    pattern_name=item.pattern_name,
                    occurrence=occurrence,
                    auto=auto,
                    success=success,
                    timestamp=self._now(),
                    error=error,
                )
            )
        return success

    # =========================================================================
    # User actions
    # =========================================================================

    def _take_pending(self, user_id: str, item_id: str) -> ScheduleItem:
        item = self._board.take(user_id, item_id)
        if item is None:
            raise ValueError(f"No pending suggestion '{item_id}' for user '{user_id}'")
        return item

    def approve_suggestion(self, user_id: str, item_id: str) -> bool:
        """
        Apply a pending suggestion now.

        Returns:
            True if applied; False if the device failed (it stays pending)

        Raises:
            ValueError: If the suggestion is not pending
        """
        item = self._take_pending(user_id, item_id)
        if not self._apply(user_id, item, item.configuration, None, auto=False):
            self._board.release(user_id, item_id)
            return False

        applied = self.session(user_id).update_item(
            item_id, lambda i: i.with_state(ItemState.APPLIED, is_approved=True)
        )
        self._board.resolve(user_id, item_id, ItemState.APPLIED)
        self._record_feedback(user_id, applied or item, FeedbackType.ACCEPTED)
        return True

    def reject_suggestion(self, user_id: str, item_id: str) -> None:
        """
        Reject a pending suggestion.

        Raises:
            ValueError: If the suggestion is not pending
        """
        item = self._take_pending(user_id, item_id)
        rejected = self.session(user_id).update_item(
            item_id, lambda i: i.with_state(ItemState.REJECTED)
        )
        self._board.resolve(user_id, item_id, ItemState.REJECTED)
        self._record_feedback(user_id, rejected or item, FeedbackType.REJECTED)
        logger.info(f"Rejected {item.pattern_name!r} for {user_id}")

    def modify_suggestion(
        self,
        user_id: str,
        item_id: str,
        configuration: LightConfiguration,
        notes: Optional[str] = None,
    ) -> bool:
        """
        Apply a user-edited version of a pending suggestion.

        Returns:
            True if applied; False if the device failed (it stays pending)

        Raises:
            ValueError: If the suggestion is not pending
        """
        item = self._take_pending(user_id, item_id)
        if not self._apply(user_id, item, configuration, None, auto=False):
            self._board.release(user_id, item_id)
            return False

        original_colors = item.colors or item.configuration.colors or None
        original_effect = (
            item.effect_id if item.effect_id is not None else item.configuration.primary_effect
        )
        modified_colors = configuration.colors or None

        def _modify(current: ScheduleItem) -> ScheduleItem:
            return current.with_state(
                ItemState.APPLIED,
                configuration=configuration,
                is_approved=True,
                colors=modified_colors,
                effect_id=configuration.primary_effect,
            )

        modified = self.session(user_id).update_item(item_id, _modify) or _modify(item)
        self._board.resolve(user_id, item_id, ItemState.APPLIED)
        self._record_feedback(
            user_id,
            item,
            FeedbackType.MODIFIED,
            modification_notes=notes,
            original_colors=original_colors,
            original_effect_id=original_effect,
            modified_colors=modified.colors,
            modified_effect_id=modified.effect_id,
        )
        return True

    def _record_feedback(
        self, user_id: str, item: ScheduleItem, feedback_type: FeedbackType, **kwargs: Any
    ) -> None:
        self._dispatcher.submit(
            self._learning.record_feedback,
            user_id,
            item,
            feedback_type,
            now=self._now(),
            **kwargs,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def active_schedule(self, user_id: str) -> Tuple[ScheduleItem, ...]:
        """Get the current schedule snapshot (empty if none)."""
        with self._sessions_lock:
            session = self._sessions.get(user_id)
        return session.items if session else ()

    def pending_suggestions(self, user_id: str) -> List[ScheduleItem]:
        return self._board.pending(user_id)

    def next_scheduled_item(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Optional[ScheduleItem]:
        """Get the armed item that fires next after now."""
        now = now or self._now()
        best: Optional[Tuple[datetime, ScheduleItem]] = None
        for item in self.active_schedule(user_id):
            if not is_armed(item):
                continue
            upcoming = item.next_occurrence(now)
            if upcoming is not None and (best is None or upcoming < best[0]):
                best = (upcoming, item)
        return best[1] if best else None

    def cycle_state(self, user_id: str) -> CycleState:
        with self._sessions_lock:
            session = self._sessions.get(user_id)
        return session.state if session else CycleState.IDLE

    def is_running(self, user_id: str) -> bool:
        with self._sessions_lock:
            session = self._sessions.get(user_id)
        return session is not None and session.is_running

    def get_history(self, user_id: Optional[str] = None, limit: int = 20) -> List[ApplyAttempt]:
        """Get recent apply attempts, newest first."""
        with self._history_lock:
            history = list(self._history)
        if user_id is not None:
            history = [a for a in history if a.user_id == user_id]
        return list(reversed(history))[:limit]

    # =========================================================================
    # State Persistence
    # =========================================================================

    def export_state(self) -> Dict[str, Any]:
        """Export every user's schedule."""
        with self._sessions_lock:
            sessions = dict(self._sessions)
        return {
            user_id: {
                "cycle_state": session.state.value,
                "items": [item.to_dict() for item in session.items],
            }
            for user_id, session in sessions.items()
        }

    def restore_state(self, state: Dict[str, Any]) -> None:
        """
        Restore schedules from export_state().

        Pending items go back on the board; scheduled items are armed by
        start(). Malformed items are skipped.
        """
        for user_id, data in state.items():
            items: List[ScheduleItem] = []
            for raw in data.get("items", []):
                try:
                    items.append(ScheduleItem.from_dict(raw))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(f"Skipping malformed schedule item for {user_id}: {e}")

            session = self.session(user_id)
            session.replace_items(tuple(items))
            try:
                session.set_state(CycleState(data.get("cycle_state", CycleState.IDLE.value)))
            except ValueError:
                session.set_state(CycleState.IDLE)
            for item in items:
                if item.state == ItemState.PENDING:
                    self._board.add(user_id, item)
            logger.info(f"Restored {len(items)} schedule items for {user_id}")

    def _publish(
        self,
        event_type: str,
        user_id: str,
        item_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self._bus is None:
            return
        self._bus.publish(
            Event(
                type=event_type,
                source="autopilot",
                user_id=user_id,
                item_id=item_id,
                payload=payload or {},
            )
        )
