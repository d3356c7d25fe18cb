"""
Prompt construction for the pattern backend.
"""

from typing import List

from lightpilot.core.profile import UserProfile
from lightpilot.modules.calendar.models import CalendarEvent


def vibe_description(vibe_level: float) -> str:
    """Describe a vibe level in words."""
    if vibe_level < 0.3:
        return "Subtle and classy"
    if vibe_level < 0.5:
        return "Moderate"
    if vibe_level < 0.7:
        return "Vibrant"
    return "Bold and energetic"


def build_event_prompt(event: CalendarEvent, profile: UserProfile, colors_allowed: bool) -> str:
    """
    Build the generation prompt for an event.

    Args:
        event: Event to light up for
        profile: User preferences (vibe, styles, dislikes)
        colors_allowed: False adds an explicit white-only restriction

    Returns:
        Multi-line prompt text
    """
    lines: List[str] = [f"Generate a WLED lighting pattern for: {event.name}", ""]

    if event.suggested_colors:
        lines.append("Suggested colors to use:")
        for color in event.suggested_colors:
            r, g, b = color[:3]
            lines.append(f"- RGB({r}, {g}, {b})")

    if event.team_name:
        lines.append(f"This is for the {event.team_name} team.")

    lines.append("")
    lines.append("User preferences:")
    lines.append(f"- Vibe level: {vibe_description(profile.vibe_level)}")

    if profile.preferred_effect_styles:
        lines.append(f"- Preferred styles: {', '.join(profile.preferred_effect_styles)}")

    if event.is_subdued:
        lines.append("- Tone: respectful and understated, a static pattern without motion")

    if not colors_allowed:
        lines.append("- IMPORTANT: Only use white/warm white colors (HOA restriction)")

    if profile.dislikes:
        lines.append(f"- AVOID: {', '.join(profile.dislikes)}")

    return "\n".join(lines) + "\n"
