"""
Heuristic event extractor.
Pattern-based fallback used when the LLM is unavailable. Always returns a
candidate, even for pure OCR noise.
"""

import re
from datetime import timedelta
from typing import Optional

from eventscan.datetime_detector import DateTimeDetector
from eventscan.event_models import DEFAULT_TITLE, EventCandidate
from eventscan.logging_helper import Log

VENUE_KEYWORDS = ("venue", "at", "location", "place", "address")

# Keyword, optional colon/whitespace, then everything up to a newline or period
VENUE_PATTERN = re.compile(
    r"\b(?:venue|at|location|place|address)\b[:\s]*([^\s:.][^\n.]*)",
    re.IGNORECASE,
)

# "9:00 AM", "18:30", "7 pm": a capture like this is the time in "Monday at 9:00 AM"
_LEADING_CLOCK_TIME = re.compile(r"^\d{1,2}(?::\d{2}|\s*[ap]\.?m\b)", re.IGNORECASE)


class HeuristicExtractionStage:
    """Regex/keyword event extractor backed by a date/time detector."""

    name = "heuristic"

    def __init__(self, detector: Optional[DateTimeDetector] = None):
        self.detector = detector or DateTimeDetector()

    async def extract(self, text: str) -> EventCandidate:
        return self.parse(text)

    def parse(self, text: str) -> EventCandidate:
        """
        Extract an event candidate from raw text.

        Args:
            text: Recognized text, kept verbatim as the candidate's notes

        Returns:
            EventCandidate; fields that can't be found are left empty
        """
        Log.section("Heuristic Extractor")

        start_time = None
        end_time = None
        date_only = None
        detected = self.detector.detect(text)
        if detected is not None:
            start_time = detected.instant
            if detected.duration_seconds > 0:
                end_time = start_time + timedelta(seconds=detected.duration_seconds)
            date_only = start_time.date()

        venue = self._find_venue(text)
        title = self._find_title(text)

        candidate = EventCandidate(
            title=title,
            date_only=date_only,
            start_time=start_time,
            end_time=end_time,
            venue=venue,
            notes=text,
            source=self.name,
        )
        Log.info(f"Heuristic candidate: title={candidate.title}, venue={candidate.venue}, start={candidate.start_time}")
        Log.kv({
            "stage": "heuristic",
            "result": "success",
            "title": candidate.title,
            "has_venue": candidate.venue is not None,
            "has_start": candidate.start_time is not None,
            "has_end": candidate.end_time is not None,
        })
        return candidate

    @staticmethod
    def _find_venue(text: str) -> Optional[str]:
        for match in VENUE_PATTERN.finditer(text):
            venue = match.group(1).strip()
            if not venue or _LEADING_CLOCK_TIME.match(venue):
                continue
            return venue
        return None

    def _find_title(self, text: str) -> str:
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            lower = line.lower()
            if any(keyword in lower for keyword in VENUE_KEYWORDS):
                continue
            if self.detector.matches(line):
                continue
            return line
        return DEFAULT_TITLE
