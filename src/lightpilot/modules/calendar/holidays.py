"""
Built-in holiday table.

US federal holidays plus popular non-federal ones, each with suggested
colors and an effect. Dates that move (Thanksgiving, Easter, ...) are
computed per year.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from lightpilot.core.profile import RGB

# Weekday numbers (date.weekday())
MONDAY = 0
THURSDAY = 3

RED: RGB = (255, 0, 0)
GREEN: RGB = (0, 255, 0)
BLUE: RGB = (0, 0, 255)
WHITE: RGB = (255, 255, 255)
GOLD: RGB = (255, 215, 0)
SILVER: RGB = (192, 192, 192)
ORANGE: RGB = (255, 102, 0)
BROWN: RGB = (139, 69, 19)
NAVY: RGB = (0, 0, 128)
PURPLE: RGB = (128, 0, 128)


@dataclass(frozen=True)
class Holiday:
    """A holiday with lighting suggestions."""

    name: str
    date: date
    suggested_colors: Tuple[RGB, ...]
    suggested_effect_id: int
    is_colorful: bool = True  # False for solemn days (Memorial Day, ...)


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """Get the nth weekday of a month (e.g. 4th Thursday of November)."""
    day = date(year, month, 1)
    day += timedelta(days=(weekday - day.weekday()) % 7)
    return day + timedelta(weeks=n - 1)


def last_weekday_of_month(year: int, month: int, weekday: int) -> date:
    """Get the last weekday of a month (e.g. last Monday of May)."""
    if month == 12:
        day = date(year, 12, 31)
    else:
        day = date(year, month + 1, 1) - timedelta(days=1)
    return day - timedelta(days=(day.weekday() - weekday) % 7)


def easter(year: int) -> date:
    """Easter Sunday (anonymous Gregorian algorithm)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def _approximate_hanukkah(year: int) -> date:
    # Rough approximation, real dates need the Hebrew calendar
    offset = (year * 11 + 14) % 30 - 15
    return date(year, 12, 1) + timedelta(days=max(-10, min(15, offset)))


def _approximate_diwali(year: int) -> date:
    # Rough approximation, real dates need the Hindu calendar
    offset = (year * 11) % 30 - 15
    return date(year, 10, 28) + timedelta(days=max(-14, min(20, offset)))


def federal_holidays(year: int) -> List[Holiday]:
    """US federal holidays for a year."""
    return [
        Holiday("New Year's Day", date(year, 1, 1), (GOLD, SILVER, WHITE), 74),
        Holiday(
            "Martin Luther King Jr. Day",
            nth_weekday_of_month(year, 1, MONDAY, 3),
            (WHITE, NAVY, RED),
            0,
            is_colorful=False,
        ),
        Holiday("Presidents' Day", nth_weekday_of_month(year, 2, MONDAY, 3), (RED, WHITE, BLUE), 0),
        Holiday(
            "Memorial Day",
            last_weekday_of_month(year, 5, MONDAY),
            (RED, WHITE, BLUE),
            0,
            is_colorful=False,
        ),
        Holiday("Juneteenth", date(year, 6, 19), (RED, GREEN, (255, 250, 244)), 0),
        Holiday("Independence Day", date(year, 7, 4), (RED, WHITE, BLUE), 74),
        Holiday(
            "Labor Day",
            nth_weekday_of_month(year, 9, MONDAY, 1),
            (RED, WHITE, BLUE),
            0,
            is_colorful=False,
        ),
        Holiday("Columbus Day", nth_weekday_of_month(year, 10, MONDAY, 2), (ORANGE, BROWN, GOLD), 0),
        Holiday("Veterans Day", date(year, 11, 11), (RED, WHITE, BLUE), 0, is_colorful=False),
        Holiday("Thanksgiving", nth_weekday_of_month(year, 11, THURSDAY, 4), (ORANGE, GOLD, BROWN), 63),
        Holiday("Christmas", date(year, 12, 25), (RED, GREEN, WHITE), 12),
    ]


def popular_holidays(year: int) -> List[Holiday]:
    """Popular non-federal holidays for a year."""
    return [
        Holiday("Valentine's Day", date(year, 2, 14), (RED, (255, 105, 180), WHITE), 82),
        Holiday("St. Patrick's Day", date(year, 3, 17), (GREEN, (0, 170, 0), GOLD), 12),
        Holiday(
            "Easter",
            easter(year),
            ((255, 182, 193), (135, 206, 235), (255, 255, 0), (144, 238, 144)),
            52,
        ),
        Holiday("Cinco de Mayo", date(year, 5, 5), (GREEN, WHITE, RED), 12),
        Holiday("Halloween", date(year, 10, 31), (ORANGE, PURPLE, GREEN), 108),
        Holiday("Hanukkah", _approximate_hanukkah(year), (BLUE, WHITE, GOLD), 63),
        Holiday("Diwali", _approximate_diwali(year), (GOLD, ORANGE, RED), 63),
        Holiday("New Year's Eve", date(year, 12, 31), (GOLD, SILVER, WHITE), 74),
    ]


def holidays_in_range(start: datetime, end: datetime) -> List[Holiday]:
    """
    Get built-in holidays whose date falls in [start, end).

    Holidays are compared at midnight of their date.
    """
    found: List[Holiday] = []
    for year in range(start.year, end.year + 1):
        for holiday in federal_holidays(year) + popular_holidays(year):
            at = datetime.combine(holiday.date, datetime.min.time())
            if start <= at < end:
                found.append(holiday)
    found.sort(key=lambda h: h.date)
    return found


def holiday_for_date(day: date) -> Optional[Holiday]:
    """Get the built-in holiday on a date, if any."""
    for holiday in federal_holidays(day.year) + popular_holidays(day.year):
        if holiday.date == day:
            return holiday
    return None
