"""
Event reconciler: turns a candidate's date/start/end fragments into concrete
start and end datetimes for the calendar store.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from dateutil import tz as dateutil_tz

from eventscan.datetime_normalizer import combine_date_and_time
from eventscan.event_models import EventCandidate, ReconciledEvent, ReconciliationFailure
from eventscan.logging_helper import Log

DEFAULT_EVENT_DURATION = timedelta(hours=1)
DEFAULT_DATE_ONLY_HOUR = 12


def _resolve_start(candidate: EventCandidate) -> Optional[datetime]:
    date_only = candidate.date_only
    start_time = candidate.start_time

    if date_only is not None and start_time is not None:
        # Keep the date, take only the time of day from start_time
        return combine_date_and_time(date_only, start_time)
    if start_time is not None:
        return start_time
    if date_only is not None:
        return datetime(date_only.year, date_only.month, date_only.day,
                        DEFAULT_DATE_ONLY_HOUR, 0, tzinfo=dateutil_tz.tzlocal())
    return None


def _resolve_end(candidate: EventCandidate, start: datetime) -> datetime:
    end_time = candidate.end_time
    if end_time is None:
        return start + DEFAULT_EVENT_DURATION

    if candidate.date_only is not None and start != end_time:
        # end_time may carry an unrelated day; move it onto the event's date
        return combine_date_and_time(candidate.date_only, end_time) or end_time
    return end_time


def reconcile(candidate: EventCandidate) -> Union[ReconciledEvent, ReconciliationFailure]:
    """
    Resolve concrete start/end datetimes for a candidate.

    Start: date + start time combined, else start time, else date at noon.
    End: end time (moved onto the date when there is one), else start + 1 hour.

    Returns:
        ReconciledEvent, or ReconciliationFailure if no start can be determined
    """
    Log.section("Event Reconciler")

    start = _resolve_start(candidate)
    if start is None:
        failure = ReconciliationFailure()
        Log.warn("Candidate has neither a date nor a start time")
        Log.kv({"stage": "reconcile", "result": "failed", "reason": failure.reason})
        return failure

    end = _resolve_end(candidate, start)
    event = ReconciledEvent(
        title=candidate.title,
        start=start,
        end=end,
        notes=candidate.notes,
        venue=candidate.venue,
    )
    Log.info(f"Reconciled event: {event.title} {event.start.isoformat()} -> {event.end.isoformat()}")
    Log.kv({
        "stage": "reconcile",
        "result": "success",
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "duration_min": event.duration_minutes(),
    })
    return event
