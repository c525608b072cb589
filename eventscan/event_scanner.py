"""
Event scanner: the flow a user action drives.
Scans recognized text into a candidate, then reconciles it and saves it to
the calendar store, keeping user-visible status and error messages.
"""

from typing import Optional

from eventscan.calendar_store import CalendarAccessStatus, CalendarStore, save_event
from eventscan.event_models import DisplayEvent, EventCandidate, ReconciliationFailure
from eventscan.event_reconciler import reconcile
from eventscan.extraction_pipeline import PipelineContext
from eventscan.logging_helper import Log

ACCESS_ERROR_MESSAGES = {
    CalendarAccessStatus.DENIED: "Calendar access denied. Enable access in Settings > Privacy > Calendars.",
    CalendarAccessStatus.RESTRICTED: "Calendar access is restricted on this device.",
    CalendarAccessStatus.NOT_DETERMINED: "Calendar access not determined. Please try again.",
}
NO_PARSED_EVENT_MESSAGE = "No parsed event to save."


class EventScanner:
    """
    Holds the state of one scanning surface.

    parsed_event is only replaced when a scan finishes, so a cancelled scan
    leaves the previous candidate in place. Callers should not start a scan
    while is_scanning is set.
    """

    def __init__(self, context: PipelineContext, store: CalendarStore):
        self.context = context
        self.store = store
        self.recognized_text = ""
        self.parsed_event: Optional[EventCandidate] = None
        self.is_scanning = False
        self.is_saving = False
        self.save_error: Optional[str] = None
        self.save_success = False
        self.calendar_authorization_status = store.authorization_status()

    async def scan(self, text: str) -> EventCandidate:
        """Run the extraction pipeline on recognized text and publish the candidate."""
        self.is_scanning = True
        try:
            candidate = await self.context.run(text)
        finally:
            self.is_scanning = False
        self.recognized_text = text
        self.parsed_event = candidate
        return candidate

    def display_event(self) -> Optional[DisplayEvent]:
        if self.parsed_event is None:
            return None
        return DisplayEvent.from_candidate(self.parsed_event)

    def request_calendar_access(self) -> CalendarAccessStatus:
        granted = self.store.request_access()
        status = self.store.authorization_status()
        if not granted and status == CalendarAccessStatus.AUTHORIZED:
            status = CalendarAccessStatus.DENIED
        self.calendar_authorization_status = status
        Log.kv({"stage": "calendar_access", "status": status.value})
        return status

    def add_to_calendar(self) -> bool:
        """
        Reconcile the parsed event and save it.

        Returns:
            True on success; otherwise save_error holds the message to show
        """
        Log.section("Add To Calendar")
        self.save_success = False

        if self.calendar_authorization_status != CalendarAccessStatus.AUTHORIZED:
            self.request_calendar_access()
        if self.calendar_authorization_status != CalendarAccessStatus.AUTHORIZED:
            self.save_error = ACCESS_ERROR_MESSAGES.get(
                self.calendar_authorization_status, "Calendar access is not authorized."
            )
            Log.warn(self.save_error)
            return False

        if self.parsed_event is None:
            self.save_error = NO_PARSED_EVENT_MESSAGE
            Log.warn(self.save_error)
            return False

        self.is_saving = True
        self.save_error = None
        try:
            event = reconcile(self.parsed_event)
            if isinstance(event, ReconciliationFailure):
                self.save_error = event.message
                return False

            result = save_event(self.store, event)
            if not result.success:
                self.save_error = result.error
                return False
            self.save_success = True
            return True
        finally:
            self.is_saving = False
