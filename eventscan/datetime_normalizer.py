"""
Date/time normalizer for the loosely formatted strings returned by the LLM.
Converts ISO-style instants, date-only strings and zone-less local strings
into system timezone datetime objects (or plain dates).
"""

import re
from datetime import date, datetime
from typing import Callable, Optional, Tuple

import tzlocal
from dateutil import tz as dateutil_tz

from eventscan.logging_helper import Log

DateTimeParser = Callable[[str], Optional[datetime]]


def system_timezone_name() -> Optional[str]:
    """IANA name of the system timezone (e.g. "Europe/Berlin"), if it can be determined."""
    try:
        name = tzlocal.get_localzone_name()
    except Exception as tz_err:
        Log.warn(f"Failed to determine system IANA timezone: {tz_err}")
        return None
    return name or None


# An offset or "Z" after the time part; the dashes of the date part don't count
_ZONE_MARKER = re.compile(r"T.*(?:[Zz]|[+-]\d{2}:?\d{2})$")


def _strptime(text: str, fmt: str) -> Optional[datetime]:
    try:
        return datetime.strptime(text, fmt)
    except ValueError:
        return None


def _to_local(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return dt.astimezone(dateutil_tz.tzlocal())


def _assume_local(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return dt.replace(tzinfo=dateutil_tz.tzlocal())


def parse_internet_datetime_fractional(text: str) -> Optional[datetime]:
    """2025-11-03T18:30:00.250Z or 2025-11-03T18:30:00.250+01:00"""
    return _to_local(_strptime(text, "%Y-%m-%dT%H:%M:%S.%f%z"))


def parse_internet_datetime(text: str) -> Optional[datetime]:
    """2025-11-03T18:30:00Z or 2025-11-03T18:30:00+01:00"""
    return _to_local(_strptime(text, "%Y-%m-%dT%H:%M:%S%z"))


def parse_local_datetime_seconds(text: str) -> Optional[datetime]:
    """2025-11-03T18:30:00, assumed to be system local time."""
    if _ZONE_MARKER.search(text):
        return None
    return _assume_local(_strptime(text, "%Y-%m-%dT%H:%M:%S"))


def parse_local_datetime_minutes(text: str) -> Optional[datetime]:
    """2025-11-03T18:30, assumed to be system local time."""
    if _ZONE_MARKER.search(text):
        return None
    return _assume_local(_strptime(text, "%Y-%m-%dT%H:%M"))


# Tried in order, first match wins
DATETIME_PARSERS: Tuple[Tuple[str, DateTimeParser], ...] = (
    ("internet_fractional", parse_internet_datetime_fractional),
    ("internet", parse_internet_datetime),
    ("local_seconds", parse_local_datetime_seconds),
    ("local_minutes", parse_local_datetime_minutes),
)


def normalize(text: Optional[str]) -> Optional[datetime]:
    """
    Parse a date/time string into a system timezone datetime.

    Args:
        text: ISO-style instant, with or without zone

    Returns:
        Timezone-aware datetime in the system timezone, or None if no format matched
    """
    if text is None or not text.strip():
        return None
    value = text.strip()

    for name, parser in DATETIME_PARSERS:
        parsed = parser(value)
        if parsed is not None:
            Log.info(f"Parsed datetime '{value}' with {name}: {parsed.isoformat()}")
            return parsed

    Log.warn(f"Unrecognized datetime format: '{value}'")
    Log.kv({"stage": "normalize", "result": "failed", "field": "datetime", "value": value})
    return None


def normalize_date_only(text: Optional[str]) -> Optional[date]:
    """
    Parse a bare calendar date such as "2025-11-03".

    Returns:
        date (no time of day), or None if the string isn't a valid date
    """
    if text is None or not text.strip():
        return None
    value = text.strip()

    parsed = _strptime(value, "%Y-%m-%d")
    if parsed is None:
        Log.warn(f"Unrecognized date format: '{value}'")
        Log.kv({"stage": "normalize", "result": "failed", "field": "date", "value": value})
        return None
    return parsed.date()


def combine_date_and_time(day: Optional[date], time_source: Optional[datetime]) -> Optional[datetime]:
    """
    Combine the calendar day of `day` with the local time of day of `time_source`.

    Args:
        day: Calendar day to keep
        time_source: Datetime whose hour/minute/second are kept (its own day is ignored)

    Returns:
        System timezone datetime, time_source if day is missing,
        local midnight of day if time_source is missing, or None
    """
    if day is None:
        return time_source
    system_tz = dateutil_tz.tzlocal()
    if time_source is None:
        return datetime(day.year, day.month, day.day, tzinfo=system_tz)

    local_time = time_source.astimezone(system_tz) if time_source.tzinfo else time_source
    try:
        return datetime(
            day.year, day.month, day.day,
            local_time.hour, local_time.minute, local_time.second,
            tzinfo=system_tz,
        )
    except ValueError as e:
        Log.warn(f"Could not combine {day} with {time_source}: {e}")
        return None
