"""
Event data models for calendar event extraction.
Defines ModelCandidate (from LLM), EventCandidate (canonical pipeline output),
ReconciledEvent (ready for the calendar store) and DisplayEvent (for presentation).
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

DEFAULT_TITLE = "New Event"


def _optional_str(value) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class ModelCandidate:
    """
    Raw event fields returned by the generative model.
    Every field is an unparsed string and may be malformed.
    """
    title: str = ""
    venue: Optional[str] = None
    start_date_only: Optional[str] = None  # e.g. "2025-11-03"
    start_instant: Optional[str] = None    # e.g. "2025-11-03T18:30:00Z"
    end_instant: Optional[str] = None

    @classmethod
    def from_response(cls, data: dict) -> "ModelCandidate":
        """Build from the model's JSON object; non-string values are dropped."""
        return cls(
            title=_optional_str(data.get("title")) or "",
            venue=_optional_str(data.get("venue")),
            start_date_only=_optional_str(data.get("startDateOnly")),
            start_instant=_optional_str(data.get("startInstant")),
            end_instant=_optional_str(data.get("endInstant")),
        )


@dataclass
class EventCandidate:
    """
    Canonical event candidate produced by one of the extraction stages.

    date_only is a calendar day with no time of day. start_time and end_time are
    local-timezone datetimes whose day may differ from date_only.
    """
    notes: str
    title: str = DEFAULT_TITLE
    date_only: Optional[date] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    venue: Optional[str] = None
    source: str = "heuristic"

    def __post_init__(self):
        if not self.title or not self.title.strip():
            self.title = DEFAULT_TITLE


@dataclass
class ReconciledEvent:
    """Event with concrete start and end instants, ready for the calendar store."""
    title: str
    start: datetime
    end: datetime
    notes: Optional[str] = None
    venue: Optional[str] = None

    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        delta = self.end - self.start
        return int(delta.total_seconds() / 60)


@dataclass
class ReconciliationFailure:
    """Returned when a candidate has neither a date nor a start time."""
    reason: str = "no determinable start"
    message: str = "Could not determine event start and end times."


def _format_day(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def _format_clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {'AM' if value.hour < 12 else 'PM'}"


@dataclass
class DisplayEvent:
    """Presentation projection of a candidate, as shown to the user before saving."""
    title: str = ""
    day: Optional[date] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    venue: Optional[str] = None
    notes: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_candidate(cls, candidate: EventCandidate) -> "DisplayEvent":
        return cls(
            title=candidate.title,
            day=candidate.date_only,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
            venue=candidate.venue,
            notes=candidate.notes,
        )

    @property
    def interval(self) -> Optional[Tuple[datetime, datetime]]:
        """(start, end) when a day and both instants are known."""
        if self.day is None:
            return None
        if self.start_time is None or self.end_time is None:
            return None
        return (self.start_time, self.end_time)

    def display_summary(self) -> str:
        components = []
        if self.title:
            components.append(self.title)
        if self.day is not None:
            components.append(_format_day(self.day))
        if self.start_time is not None:
            time_string = _format_clock(self.start_time)
            if self.end_time is not None:
                time_string += f" - {_format_clock(self.end_time)}"
            components.append(time_string)
        if self.venue:
            components.append(f"Venue: {self.venue}")
        if self.notes:
            components.append(f"Notes: {self.notes}")
        return "\n".join(components)
