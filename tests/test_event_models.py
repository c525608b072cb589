"""
Unit tests for the event data models.
"""

from datetime import date, datetime

import pytest

from eventscan.event_models import DisplayEvent, EventCandidate, ReconciledEvent
from tests.fakes import LOCAL


class TestEventCandidate:

    @pytest.mark.unit
    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title_defaults(self, title):
        assert EventCandidate(notes="x", title=title).title == "New Event"

    @pytest.mark.unit
    def test_title_kept(self):
        assert EventCandidate(notes="x", title="Gala").title == "Gala"


class TestReconciledEvent:

    @pytest.mark.unit
    def test_duration_minutes(self):
        event = ReconciledEvent(
            title="Gala",
            start=datetime(2025, 11, 10, 18, 0, tzinfo=LOCAL),
            end=datetime(2025, 11, 10, 20, 30, tzinfo=LOCAL),
        )
        assert event.duration_minutes() == 150


class TestDisplayEvent:

    @pytest.fixture
    def candidate(self):
        return EventCandidate(
            title="Gala",
            date_only=date(2025, 11, 10),
            start_time=datetime(2025, 11, 10, 14, 0, tzinfo=LOCAL),
            end_time=datetime(2025, 11, 10, 15, 5, tzinfo=LOCAL),
            venue="City Hall",
            notes="GALA\nCity Hall",
        )

    @pytest.mark.unit
    def test_from_candidate(self, candidate):
        display = DisplayEvent.from_candidate(candidate)
        assert display.title == "Gala"
        assert display.day == date(2025, 11, 10)
        assert display.venue == "City Hall"
        assert display.id != DisplayEvent.from_candidate(candidate).id

    @pytest.mark.unit
    def test_interval_needs_day_and_both_times(self, candidate):
        display = DisplayEvent.from_candidate(candidate)
        assert display.interval == (candidate.start_time, candidate.end_time)

        display.end_time = None
        assert display.interval is None

        display = DisplayEvent.from_candidate(candidate)
        display.day = None
        assert display.interval is None

    @pytest.mark.unit
    def test_summary(self, candidate):
        summary = DisplayEvent.from_candidate(candidate).display_summary()
        assert summary.split("\n") == [
            "Gala",
            "Nov 10, 2025",
            "2:00 PM - 3:05 PM",
            "Venue: City Hall",
            "Notes: GALA",
            "City Hall",
        ]

    @pytest.mark.unit
    def test_summary_skips_missing_parts(self):
        display = DisplayEvent(title="Gala", start_time=datetime(2025, 11, 10, 0, 30, tzinfo=LOCAL))
        assert display.display_summary() == "Gala\n12:30 AM"

    @pytest.mark.unit
    def test_summary_of_empty_event(self):
        assert DisplayEvent().display_summary() == ""
