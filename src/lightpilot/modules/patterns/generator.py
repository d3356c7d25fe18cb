"""
Pattern generator - turns events into candidate configurations.

Primary path: prompt a PatternBackend (bounded by a timeout).
Fallback path: deterministic rule-based patterns.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from lightpilot.core.lighting import (
    MAX_BRIGHTNESS,
    MIN_BRIGHTNESS,
    WARM_AMBER,
    WARM_WHITE,
    LightConfiguration,
)
from lightpilot.core.profile import UserProfile
from lightpilot.modules.calendar.models import CalendarEvent, EventType

from .adapter import PatternBackend
from .models import PatternCandidate
from .prompts import build_event_prompt

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.5
DEFAULT_PATTERN_CONFIDENCE = 0.6
BASELINE_CONFIDENCE = 1.0

BASELINE_PATTERN_NAME = "Warm White"
BASELINE_BRIGHTNESS = 180
SUBDUED_MAX_BRIGHTNESS = 150


def calculate_confidence(event: CalendarEvent, profile: UserProfile) -> float:
    """
    Initial confidence for a backend-generated pattern.

    Starts at 0.5 and is boosted for favorite holidays, followed teams
    (more for the top-ranked team) and game days for bold users. Only an
    explicit sports_team_priority counts as a ranking here; followed but
    unranked teams get the smallest boost.
    """
    score = BASE_CONFIDENCE

    if event.type == EventType.HOLIDAY:
        name = event.name.lower()
        if any(fav and fav.lower() in name for fav in profile.favorite_holidays):
            score += 0.25

    if event.type == EventType.SPORT_GAME and event.team_name:
        ranking = profile.sports_team_priority
        if ranking and ranking[0] == event.team_name:
            score += 0.3
        elif event.team_name in ranking:
            score += 0.2
        elif event.team_name in profile.sports_teams:
            score += 0.15

    if event.type == EventType.SPORT_GAME and profile.vibe_level > 0.7:
        score += 0.1

    return max(0.0, min(1.0, score))


def apply_vibe_level(config: LightConfiguration, vibe_level: float) -> LightConfiguration:
    """
    Scale brightness by vibe level.

    Subtle users (0.0) get 60% of the base brightness, bold users (1.0) 100%.
    """
    if config.brightness is None:
        return config
    scaled = round(config.brightness * (0.6 + vibe_level * 0.4))
    return config.with_brightness(max(MIN_BRIGHTNESS, min(MAX_BRIGHTNESS, scaled)))


def subdue(config: LightConfiguration) -> LightConfiguration:
    """Cap brightness for solemn days."""
    if config.brightness is None or config.brightness <= SUBDUED_MAX_BRIGHTNESS:
        return config
    return config.with_brightness(SUBDUED_MAX_BRIGHTNESS)


def fallback_pattern(event: CalendarEvent, colors_allowed: bool) -> PatternCandidate:
    """Rule-based pattern used when the backend is unavailable."""
    if not colors_allowed:
        name = "Architectural White"
        config = LightConfiguration.solid((WARM_WHITE,), 180)
    elif event.suggested_colors:
        name = event.name
        colors = tuple(tuple(c[:3]) for c in event.suggested_colors[:3])
        config = LightConfiguration.solid(colors, 200)
    else:
        name = "Ambient Glow"
        config = LightConfiguration.solid((WARM_AMBER,), 180)
    return PatternCandidate(name, config, FALLBACK_CONFIDENCE, used_fallback=True)


def default_pattern(is_weekend: bool, colors_allowed: bool, vibe_level: float) -> PatternCandidate:
    """Fill-in pattern for a day without events."""
    if not colors_allowed:
        config = LightConfiguration.solid((WARM_WHITE,), 200 if is_weekend else 150)
        return PatternCandidate("Architectural White", config, DEFAULT_PATTERN_CONFIDENCE)

    if is_weekend and vibe_level > 0.5:
        config = LightConfiguration.solid(((255, 200, 150), (255, 180, 120)), 220)
        return PatternCandidate("Weekend Ambiance", config, DEFAULT_PATTERN_CONFIDENCE)

    config = LightConfiguration.solid(((255, 220, 180),), 150)
    return PatternCandidate("Evening Glow", config, DEFAULT_PATTERN_CONFIDENCE)


def baseline_pattern() -> PatternCandidate:
    """The standing daily warm-white pattern."""
    config = LightConfiguration.solid((WARM_WHITE,), BASELINE_BRIGHTNESS)
    return PatternCandidate(BASELINE_PATTERN_NAME, config, BASELINE_CONFIDENCE)


class PatternGenerator:
    """
    Produces candidate patterns for events.

    Backend calls run on a small thread pool so a stuck backend only costs a
    timeout, never the caller's thread.

    Usage:
        generator = PatternGenerator(backend, timeout_seconds=10)
        candidate = generator.generate_for_event(event, profile, colors_allowed=True)
    """

    def __init__(
        self,
        backend: Optional[PatternBackend] = None,
        timeout_seconds: float = 10.0,
        max_workers: int = 2,
    ) -> None:
        self._backend = backend
        self._timeout = timeout_seconds
        self._executor: Optional[ThreadPoolExecutor] = None
        if backend is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="lightpilot-pattern"
            )

    @property
    def has_backend(self) -> bool:
        return self._backend is not None

    def generate_for_event(
        self,
        event: CalendarEvent,
        profile: UserProfile,
        colors_allowed: bool,
    ) -> PatternCandidate:
        """
        Generate a candidate for one event.

        Never raises for backend problems; those produce the fallback
        pattern with fixed confidence.

        Args:
            event: Event to generate for
            profile: User preferences
            colors_allowed: Whether compliance permits colors on the event's date

        Returns:
            Candidate with vibe-scaled brightness (capped for solemn days)
        """
        candidate = self._generate_primary(event, profile, colors_allowed)
        if candidate is None:
            candidate = fallback_pattern(event, colors_allowed)

        configuration = apply_vibe_level(candidate.configuration, profile.vibe_level)
        if event.is_subdued:
            configuration = subdue(configuration)

        return PatternCandidate(
            pattern_name=candidate.pattern_name,
            configuration=configuration,
            confidence=candidate.confidence,
            used_fallback=candidate.used_fallback,
        )

    def _generate_primary(
        self,
        event: CalendarEvent,
        profile: UserProfile,
        colors_allowed: bool,
    ) -> Optional[PatternCandidate]:
        if self._backend is None or self._executor is None:
            return None

        prompt = build_event_prompt(event, profile, colors_allowed)
        future = self._executor.submit(self._backend.generate, prompt)
        try:
            config = future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(
                f"Pattern generation for {event.name!r} timed out after {self._timeout}s, "
                f"using fallback"
            )
            return None
        except Exception as e:
            logger.warning(f"Pattern generation for {event.name!r} failed, using fallback: {e}")
            return None

        if not isinstance(config, LightConfiguration):
            logger.warning(
                f"Pattern backend returned {type(config).__name__} for {event.name!r}, "
                f"using fallback"
            )
            return None

        return PatternCandidate(event.name, config, calculate_confidence(event, profile))

    def shutdown(self) -> None:
        """Release the backend thread pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
