"""Tests for the pattern generator."""

from datetime import datetime

import pytest

from lightpilot.core.lighting import WARM_AMBER, WARM_WHITE
from lightpilot.core.profile import UserProfile
from lightpilot.modules.calendar import CalendarEvent, EventType
from lightpilot.modules.patterns import (
    LightConfiguration,
    MockPatternBackend,
    PatternGenerator,
    apply_vibe_level,
    baseline_pattern,
    build_event_prompt,
    calculate_confidence,
    default_pattern,
    fallback_pattern,
)

CHRISTMAS = CalendarEvent(
    name="Christmas",
    date=datetime(2025, 12, 25),
    type=EventType.HOLIDAY,
    suggested_colors=((255, 0, 0), (0, 255, 0), (255, 255, 255), (255, 215, 0)),
    suggested_effect_id=12,
    priority=20,
)


def make_game(team):
    return CalendarEvent(
        name=f"{team} vs Raiders",
        date=datetime(2025, 9, 14, 12, 0),
        type=EventType.SPORT_GAME,
        suggested_colors=((227, 24, 55),),
        team_name=team,
        priority=30,
    )


@pytest.fixture
def profile():
    return UserProfile(id="alice", vibe_level=1.0)


class TestConfidence:
    def test_base(self, profile):
        assert calculate_confidence(CHRISTMAS, profile) == pytest.approx(0.5)

    def test_favorite_holiday_boost(self, profile):
        profile.favorite_holidays = ["christmas"]
        assert calculate_confidence(CHRISTMAS, profile) == pytest.approx(0.75)

    def test_team_boosts_and_bold_game_day(self, profile):
        profile.vibe_level = 0.5
        profile.sports_teams = ["Chiefs", "Royals", "Current"]
        profile.sports_team_priority = ["Chiefs", "Royals"]

        assert calculate_confidence(make_game("Chiefs"), profile) == pytest.approx(0.8)
        assert calculate_confidence(make_game("Royals"), profile) == pytest.approx(0.7)
        assert calculate_confidence(make_game("Current"), profile) == pytest.approx(0.65)

        profile.vibe_level = 0.8
        assert calculate_confidence(make_game("Chiefs"), profile) == pytest.approx(0.9)

    def test_unranked_followed_team(self, profile):
        """Following teams without ranking them gives only the followed boost."""
        profile.vibe_level = 0.5
        profile.sports_teams = ["Chiefs", "Royals"]

        assert calculate_confidence(make_game("Chiefs"), profile) == pytest.approx(0.65)
        assert calculate_confidence(make_game("Royals"), profile) == pytest.approx(0.65)

    def test_confidence_clamped(self, profile):
        profile.favorite_holidays = ["Christmas", "christ"]
        assert 0.0 <= calculate_confidence(CHRISTMAS, profile) <= 1.0


class TestVibeScaling:
    def test_subtle_vibe_scales_to_sixty_percent(self):
        """vibe 0.0 and base brightness 200 gives round(200 * 0.6) = 120."""
        config = LightConfiguration.solid(((255, 0, 0),), 200)
        assert apply_vibe_level(config, 0.0).brightness == 120

    def test_bold_vibe_keeps_brightness(self):
        config = LightConfiguration.solid(((255, 0, 0),), 200)
        assert apply_vibe_level(config, 1.0).brightness == 200

    def test_minimum_brightness(self):
        config = LightConfiguration.solid(((255, 0, 0),), 5)
        assert apply_vibe_level(config, 0.0).brightness == 10

    def test_no_brightness_untouched(self):
        config = LightConfiguration(on=True)
        assert apply_vibe_level(config, 0.0) is config


class TestFallbacks:
    def test_fallback_uses_first_three_event_colors(self):
        candidate = fallback_pattern(CHRISTMAS, colors_allowed=True)
        assert candidate.pattern_name == "Christmas"
        assert candidate.configuration.colors == ((255, 0, 0), (0, 255, 0), (255, 255, 255))
        assert candidate.configuration.brightness == 200
        assert candidate.confidence == 0.5
        assert candidate.used_fallback is True

    def test_fallback_without_colors(self):
        event = CalendarEvent(name="Fall Equinox", date=datetime(2025, 9, 22), type=EventType.SEASONAL)
        candidate = fallback_pattern(event, colors_allowed=True)
        assert candidate.pattern_name == "Ambient Glow"
        assert candidate.configuration.colors == (WARM_AMBER,)

    def test_fallback_when_colors_disallowed(self):
        candidate = fallback_pattern(CHRISTMAS, colors_allowed=False)
        assert candidate.pattern_name == "Architectural White"
        assert candidate.configuration.colors == (WARM_WHITE,)
        assert candidate.configuration.brightness == 180

    @pytest.mark.parametrize(
        "weekend,colors,vibe,name,brightness",
        [
            (True, True, 0.8, "Weekend Ambiance", 220),
            (True, True, 0.5, "Evening Glow", 150),
            (False, True, 0.9, "Evening Glow", 150),
            (True, False, 0.9, "Architectural White", 200),
            (False, False, 0.9, "Architectural White", 150),
        ],
    )
    def test_default_patterns(self, weekend, colors, vibe, name, brightness):
        candidate = default_pattern(weekend, colors, vibe)
        assert candidate.pattern_name == name
        assert candidate.configuration.brightness == brightness
        assert candidate.confidence == 0.6

    def test_baseline(self):
        candidate = baseline_pattern()
        assert candidate.pattern_name == "Warm White"
        assert candidate.confidence == 1.0
        assert candidate.configuration.colors == (WARM_WHITE,)
        assert candidate.configuration.brightness == 180


class TestGenerator:
    def test_no_backend_uses_fallback(self, profile):
        generator = PatternGenerator()
        candidate = generator.generate_for_event(CHRISTMAS, profile, colors_allowed=True)

        assert generator.has_backend is False
        assert candidate.used_fallback is True
        assert candidate.confidence == 0.5

    def test_backend_result_used(self, profile):
        backend = MockPatternBackend(LightConfiguration.solid(((0, 0, 255),), 250))
        generator = PatternGenerator(backend)
        try:
            candidate = generator.generate_for_event(CHRISTMAS, profile, colors_allowed=True)
        finally:
            generator.shutdown()

        assert candidate.used_fallback is False
        assert candidate.pattern_name == "Christmas"
        assert candidate.configuration.colors == ((0, 0, 255),)
        assert candidate.configuration.brightness == 250
        assert candidate.confidence == pytest.approx(0.5)
        assert "Generate a WLED lighting pattern for: Christmas" in backend.get_prompts()[0]

    def test_backend_error_falls_back(self, profile):
        generator = PatternGenerator(MockPatternBackend(error=RuntimeError("quota exceeded")))
        try:
            candidate = generator.generate_for_event(CHRISTMAS, profile, colors_allowed=True)
        finally:
            generator.shutdown()
        assert candidate.used_fallback is True
        assert candidate.confidence == 0.5

    def test_backend_timeout_falls_back(self, profile):
        generator = PatternGenerator(MockPatternBackend(delay_seconds=1.0), timeout_seconds=0.05)
        try:
            candidate = generator.generate_for_event(CHRISTMAS, profile, colors_allowed=True)
        finally:
            generator.shutdown()
        assert candidate.used_fallback is True

    def test_vibe_applied_to_result(self):
        subtle = UserProfile(id="bob", vibe_level=0.0)
        candidate = PatternGenerator().generate_for_event(CHRISTMAS, subtle, colors_allowed=True)
        assert candidate.configuration.brightness == 120

    def test_solemn_day_brightness_capped(self):
        memorial = CalendarEvent(
            name="Memorial Day",
            date=datetime(2025, 5, 26),
            type=EventType.HOLIDAY,
            suggested_colors=((255, 0, 0), (255, 255, 255), (0, 0, 255)),
            is_subdued=True,
        )
        bold = UserProfile(id="carol", vibe_level=1.0)

        fallback = PatternGenerator().generate_for_event(memorial, bold, colors_allowed=True)
        assert fallback.configuration.brightness == 150

        backend = MockPatternBackend(LightConfiguration.solid(((255, 0, 0),), 250))
        generator = PatternGenerator(backend)
        try:
            candidate = generator.generate_for_event(memorial, bold, colors_allowed=True)
        finally:
            generator.shutdown()
        assert candidate.configuration.brightness == 150
        assert "- Tone: respectful and understated" in backend.get_prompts()[0]


class TestPrompt:
    def test_prompt_contents(self):
        profile = UserProfile(
            id="alice",
            vibe_level=0.2,
            preferred_effect_styles=["static"],
            dislikes=["strobe"],
        )
        prompt = build_event_prompt(make_game("Chiefs"), profile, colors_allowed=False)

        assert prompt.startswith("Generate a WLED lighting pattern for: Chiefs vs Raiders\n")
        assert "- RGB(227, 24, 55)" in prompt
        assert "This is for the Chiefs team." in prompt
        assert "- Vibe level: Subtle and classy" in prompt
        assert "- Preferred styles: static" in prompt
        assert "- IMPORTANT: Only use white/warm white colors (HOA restriction)" in prompt
        assert "- AVOID: strobe" in prompt
