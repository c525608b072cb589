"""
Date/time detector for free text.
Finds the first date/time expression in OCR text (and an end time if the
expression is a range like "7:00 PM - 9:00 PM") using dateparser's search.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from dateparser.search import search_dates
from dateutil import tz as dateutil_tz

from eventscan.logging_helper import Log

# Connects the first match to a following end time
_RANGE_CONNECTOR = re.compile(r"^\s*(?:-|–|—|to|until|till|through)\s*$", re.IGNORECASE)


@dataclass
class DetectedDateTime:
    """First date/time span found in a text."""
    instant: datetime
    duration_seconds: float = 0.0
    matched_text: str = ""


class DateTimeDetector:
    """
    Locale-aware date/time span detector.

    Args:
        languages: dateparser language codes to try
        now: Callable returning the reference time for relative expressions
             ("Monday", "tomorrow"); defaults to the current system time
    """

    def __init__(self, languages: Optional[List[str]] = None,
                 now: Optional[Callable[[], datetime]] = None):
        self.languages = languages or ["en"]
        self._now = now or (lambda: datetime.now(dateutil_tz.tzlocal()))

    def _settings(self) -> dict:
        reference = self._now()
        if reference.tzinfo is not None:
            # dateparser expects a naive base; results get the local zone attached afterwards
            reference = reference.astimezone(dateutil_tz.tzlocal()).replace(tzinfo=None)
        return {
            "PREFER_DATES_FROM": "future",
            "RELATIVE_BASE": reference,
            "RETURN_AS_TIMEZONE_AWARE": False,
        }

    def _search(self, text: str) -> List[Tuple[str, datetime]]:
        if not text or not text.strip():
            return []
        try:
            found = search_dates(text, languages=self.languages, settings=self._settings())
        except Exception as e:
            Log.warn(f"Date search failed: {e}")
            Log.kv({"stage": "detect", "result": "failed", "error": str(e)})
            return []
        return found or []

    def matches(self, text: str) -> bool:
        """Whether the text contains any recognizable date/time expression."""
        return bool(self._search(text))

    def detect(self, text: str) -> Optional[DetectedDateTime]:
        """
        Find the first date/time expression in the text.

        Returns:
            DetectedDateTime with a system timezone instant, or None if nothing matched
        """
        found = self._search(text)
        if not found:
            Log.info("No date/time expression found in text")
            return None

        first_text, first_dt = found[0]
        start = _as_local(first_dt)
        duration = 0.0

        if len(found) > 1:
            end = self._range_end(text, found[0], found[1], start)
            if end is not None:
                duration = (end - start).total_seconds()

        Log.info(f"Detected '{first_text}' -> {start.isoformat()} (duration {duration:.0f}s)")
        Log.kv({
            "stage": "detect",
            "result": "success",
            "match": first_text,
            "start": start.isoformat(),
            "duration_s": int(duration),
        })
        return DetectedDateTime(instant=start, duration_seconds=duration, matched_text=first_text)

    @staticmethod
    def _range_end(text: str, first: Tuple[str, datetime], second: Tuple[str, datetime],
                   start: datetime) -> Optional[datetime]:
        """End of a range written as '<first> - <second>', aligned onto the start's day."""
        first_pos = text.find(first[0])
        if first_pos < 0:
            return None
        first_end = first_pos + len(first[0])
        second_pos = text.find(second[0], first_end)
        if second_pos < 0 or not _RANGE_CONNECTOR.match(text[first_end:second_pos]):
            return None

        second_dt = _as_local(second[1])
        end = start.replace(hour=second_dt.hour, minute=second_dt.minute, second=second_dt.second)
        if end <= start:
            return None
        return end


def _as_local(dt: datetime) -> datetime:
    system_tz = dateutil_tz.tzlocal()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=system_tz)
    return dt.astimezone(system_tz)
