"""Reconstruct absolute observation times from archive date/hour cells."""
import re
from datetime import datetime, timedelta, timezone
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import TimestampError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_HOUR_PATTERN = re.compile(r"\d{1,2}")


def load_timezone(name: str) -> ZoneInfo:
    """Load an IANA timezone, raising TimestampError if it is unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise TimestampError(f"Unknown timezone: {name!r}") from e


def _offset_at(instant: datetime, tz: ZoneInfo) -> timedelta:
    return instant.astimezone(tz).utcoffset()


def reconstruct_timestamp(date: str, hour: str, tz: Union[str, ZoneInfo]) -> datetime:
    """
    Build the instant of an hourly observation

    The wall-clock time `date hour:00:00` is interpreted in the station's
    own timezone. The offset is the one in effect at the wall-clock value
    read as UTC, unless the resulting instant falls under a different
    offset, in which case that one is used. For ambiguous fall-back hours
    this picks the later occurrence east of UTC and the earlier one west
    of UTC; skipped spring-forward hours map to the pre-transition offset.

    Args:
        date: Calendar date, YYYY-MM-DD
        hour: Hour of day, H or HH
        tz: Station timezone name or loaded ZoneInfo

    Returns:
        Timezone-aware datetime in the station zone

    Raises:
        TimestampError: If the date/hour does not parse or tz is unknown
    """
    if not isinstance(tz, ZoneInfo):
        tz = load_timezone(tz)

    text = f"{date} {hour}:00:00"
    if not (_DATE_PATTERN.fullmatch(date or "") and _HOUR_PATTERN.fullmatch(hour or "")):
        raise TimestampError(f"Invalid observation time: {text!r}")
    try:
        naive = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TimestampError(f"Invalid observation time: {text!r}") from e

    wall = naive.replace(tzinfo=timezone.utc)
    offset = _offset_at(wall, tz)
    corrected = _offset_at(wall - offset, tz)
    if corrected != offset:
        offset = corrected

    return (wall - offset).astimezone(tz)
