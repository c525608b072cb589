"""
Calendar store boundary.

Defines the calendar store interface used by the scanner (access status,
calendar listing, saving), the target calendar selection policy, and an
ICS-file backed store that writes one RFC5545 file per saved event.
"""

import hashlib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from dateutil import tz as dateutil_tz

from eventscan.datetime_normalizer import system_timezone_name
from eventscan.event_models import ReconciledEvent
from eventscan.logging_helper import Log


class CalendarAccessStatus(Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


@dataclass
class Calendar:
    identifier: str
    title: str
    allows_modifications: bool = True


@dataclass
class SaveResult:
    success: bool
    error: Optional[str] = None
    path: Optional[Path] = None


class CalendarStore(ABC):
    """Abstract calendar store."""

    @abstractmethod
    def authorization_status(self) -> CalendarAccessStatus:
        """Current access state."""

    @abstractmethod
    def request_access(self) -> bool:
        """Ask for access; returns True if access is granted."""

    @abstractmethod
    def default_calendar(self) -> Optional[Calendar]:
        """Calendar used for new events, if the store has one."""

    @abstractmethod
    def calendars(self) -> List[Calendar]:
        """All event calendars."""

    @abstractmethod
    def save(self, event: ReconciledEvent, calendar: Calendar) -> Optional[Path]:
        """
        Save an event into a calendar.

        Returns:
            Path of the written item, if the store is file based

        Raises:
            Exception: any store error; its message is shown to the user
        """


def select_target_calendar(store: CalendarStore) -> Optional[Calendar]:
    """Default calendar if writable, else the first writable calendar, else None."""
    default = store.default_calendar()
    if default is not None and default.allows_modifications:
        return default
    for calendar in store.calendars():
        if calendar.allows_modifications:
            return calendar
    return None


def save_event(store: CalendarStore, event: ReconciledEvent) -> SaveResult:
    """
    Save a reconciled event into the store's target calendar.
    Access must already be authorized.
    """
    Log.section("Calendar Store")
    calendar = select_target_calendar(store)
    if calendar is None:
        Log.error("No writable calendar available")
        Log.kv({"stage": "calendar", "result": "failed", "reason": "no_writable_calendar"})
        return SaveResult(
            success=False,
            error="No writable calendars available. Create or enable a calendar in the Calendar app.",
        )

    try:
        path = store.save(event, calendar)
    except Exception as e:
        Log.error(f"Calendar save failed: {e}")
        Log.kv({"stage": "calendar", "result": "failed", "reason": "store_error", "error": str(e)})
        return SaveResult(success=False, error=str(e))

    Log.info(f"Saved '{event.title}' to calendar '{calendar.title}'")
    Log.kv({
        "stage": "calendar",
        "result": "success",
        "calendar": calendar.identifier,
        "event_title": event.title,
        "start_time": event.start.isoformat(),
    })
    return SaveResult(success=True, path=path)


def _escape_ical_text(text: Optional[str]) -> str:
    """
    Escape text for iCalendar format (RFC5545).
    Escapes commas, semicolons, backslashes, and newlines.
    """
    if text is None:
        return ""

    # Replace backslashes first (before other replacements)
    text = text.replace('\\', '\\\\')
    text = text.replace(';', '\\;')
    text = text.replace(',', '\\,')
    text = text.replace('\r\n', '\n').replace('\r', '')
    text = text.replace('\n', '\\n')
    return text


def _fold_line(line: str) -> str:
    """Fold a content line to 75 octets; continuation lines start with a space."""
    lines = []
    current_line = ""
    for char in line:
        if len((current_line + char).encode('utf-8')) <= 75:
            current_line += char
        else:
            lines.append(current_line)
            current_line = " " + char
    lines.append(current_line)
    return '\r\n'.join(lines)


def _format_ical_datetime(dt: datetime) -> str:
    """
    Format datetime to iCalendar UTC format (YYYYMMDDTHHMMSSZ).
    Naive datetimes are assumed to be in the system timezone.
    """
    if dt.tzinfo is None:
        system_tz = dateutil_tz.tzlocal()
        dt = dt.replace(tzinfo=system_tz)
        Log.warn(f"Datetime missing timezone info, assuming system timezone: {system_tz}")
    return dt.astimezone(dateutil_tz.tzutc()).strftime('%Y%m%dT%H%M%SZ')


def build_ics(event: ReconciledEvent, calendar_title: str, created: Optional[datetime] = None) -> str:
    """Render one event as an iCalendar document."""
    created = created or datetime.now(dateutil_tz.tzutc())
    uid_string = f"{created.isoformat()}_{event.title}_{event.start.isoformat()}"
    uid = hashlib.md5(uid_string.encode()).hexdigest() + "@eventscan.local"

    ics_lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//eventscan//eventscan//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{_escape_ical_text(calendar_title)}",
    ]
    timezone_name = system_timezone_name()
    if timezone_name:
        ics_lines.append(f"X-WR-TIMEZONE:{timezone_name}")
    ics_lines += [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{_format_ical_datetime(created)}",
        f"DTSTART:{_format_ical_datetime(event.start)}",
        f"DTEND:{_format_ical_datetime(event.end)}",
        f"SUMMARY:{_escape_ical_text(event.title)}",
    ]
    if event.venue:
        ics_lines.append(f"LOCATION:{_escape_ical_text(event.venue)}")
    if event.notes:
        ics_lines.append(f"DESCRIPTION:{_escape_ical_text(event.notes)}")
    ics_lines += ["END:VEVENT", "END:VCALENDAR"]

    return '\r\n'.join(_fold_line(line) for line in ics_lines) + '\r\n'


class ICSCalendarStore(CalendarStore):
    """
    Calendar store that writes each saved event as an .ics file.
    Files can be opened in any calendar app to import the event.
    """

    def __init__(self, output_dir: Path, calendar_title: str = "Calendar"):
        self.output_dir = Path(output_dir)
        self.calendar = Calendar(identifier="ics", title=calendar_title)

    def authorization_status(self) -> CalendarAccessStatus:
        return CalendarAccessStatus.AUTHORIZED

    def request_access(self) -> bool:
        return True

    def default_calendar(self) -> Optional[Calendar]:
        return self.calendar

    def calendars(self) -> List[Calendar]:
        return [self.calendar]

    def save(self, event: ReconciledEvent, calendar: Calendar) -> Optional[Path]:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_title = re.sub(r'[^\w\s-]', '', event.title)[:50]
        safe_title = re.sub(r'[-\s]+', '_', safe_title).strip('_') or "event"
        ics_path = self.output_dir / f"eventscan_{safe_title}_{timestamp}.ics"
        suffix = 1
        while ics_path.exists():
            ics_path = self.output_dir / f"eventscan_{safe_title}_{timestamp}_{suffix}.ics"
            suffix += 1

        ics_path.write_bytes(build_ics(event, calendar.title).encode('utf-8'))
        Log.info(f"ICS file generated: {ics_path}")
        Log.kv({"stage": "ics", "result": "success", "ics_path": str(ics_path)})
        return ics_path
