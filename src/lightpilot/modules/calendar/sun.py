"""
Sunrise/sunset at the installation, computed with astral.

Profiles carry a fixed UTC offset rather than a zone name, so results are
converted to that offset and returned as naive local datetimes (the same
clock schedule items use).
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from astral import Observer
from astral.sun import sunrise, sunset

logger = logging.getLogger(__name__)


def _observer(latitude: float, longitude: float) -> Observer:
    return Observer(latitude=latitude, longitude=longitude)


def _local(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


def sunset_local(
    latitude: float,
    longitude: float,
    day: date,
    utc_offset_hours: float = 0.0,
) -> Optional[datetime]:
    """
    Local sunset for a date.

    Args:
        latitude: Degrees north
        longitude: Degrees east (west is negative)
        day: Local date
        utc_offset_hours: Local offset from UTC

    Returns:
        Naive local datetime, or None if the sun doesn't set that day
    """
    tz = timezone(timedelta(hours=utc_offset_hours))
    try:
        return _local(sunset(_observer(latitude, longitude), date=day, tzinfo=tz))
    except ValueError as e:
        logger.debug(f"No sunset at ({latitude}, {longitude}) on {day}: {e}")
        return None


def sunrise_local(
    latitude: float,
    longitude: float,
    day: date,
    utc_offset_hours: float = 0.0,
) -> Optional[datetime]:
    """Local sunrise for a date (None if the sun doesn't rise that day)."""
    tz = timezone(timedelta(hours=utc_offset_hours))
    try:
        return _local(sunrise(_observer(latitude, longitude), date=day, tzinfo=tz))
    except ValueError as e:
        logger.debug(f"No sunrise at ({latitude}, {longitude}) on {day}: {e}")
        return None
