"""
Unit tests for the pattern-based fallback extractor.
"""

from datetime import date, datetime, timedelta

import pytest

from eventscan.heuristic_extractor import HeuristicExtractionStage
from tests.fakes import LOCAL, detected


class TestVenue:

    @pytest.fixture
    def stage(self, fake_detector):
        return HeuristicExtractionStage(fake_detector)

    @pytest.mark.unit
    @pytest.mark.parametrize("text,venue", [
        ("Venue: Grand Ballroom", "Grand Ballroom"),
        ("LOCATION Room 12", "Room 12"),
        ("Address: 42 Main Street. Parking in rear", "42 Main Street"),
        ("Party\nplace:   Rooftop Bar  \nBring snacks", "Rooftop Bar"),
        ("Dinner at Luigi's", "Luigi's"),
    ])
    def test_keyword_captures(self, stage, text, venue):
        assert stage.parse(text).venue == venue

    @pytest.mark.unit
    def test_time_after_at_does_not_shadow_location(self, stage):
        candidate = stage.parse("Monday at 9:00 AM\nLocation: Room 204")
        assert candidate.venue == "Room 204"

    @pytest.mark.unit
    def test_empty_capture_is_discarded(self, stage):
        assert stage.parse("Venue:\n").venue is None

    @pytest.mark.unit
    def test_keyword_inside_word_does_not_match(self, stage):
        assert stage.parse("Great Saturday Picnic").venue is None


class TestTitle:

    @pytest.mark.unit
    def test_first_plain_line(self, fake_detector):
        candidate = HeuristicExtractionStage(fake_detector).parse("\n\n  Book Club  \nSecond line")
        assert candidate.title == "Book Club"

    @pytest.mark.unit
    def test_skips_lines_with_venue_keywords(self, fake_detector):
        text = "Location: Library\nMeet at noon\nBook Club"
        assert HeuristicExtractionStage(fake_detector).parse(text).title == "Book Club"

    @pytest.mark.unit
    def test_skips_lines_with_dates(self, fake_detector):
        fake_detector.matches.side_effect = lambda line: line.startswith("Nov")
        text = "Nov 20, 2025\nBook Club"
        assert HeuristicExtractionStage(fake_detector).parse(text).title == "Book Club"

    @pytest.mark.unit
    def test_default_title(self, fake_detector):
        assert HeuristicExtractionStage(fake_detector).parse("Venue: Hall\nat 5").title == "New Event"


class TestDates:

    @pytest.mark.unit
    def test_detected_instant_sets_start_and_date(self, fake_detector):
        instant = datetime(2025, 11, 20, 19, 0, tzinfo=LOCAL)
        fake_detector.detect.return_value = detected(instant)

        candidate = HeuristicExtractionStage(fake_detector).parse("Gala Nov 20 7pm")

        assert candidate.start_time == instant
        assert candidate.date_only == date(2025, 11, 20)
        assert candidate.end_time is None

    @pytest.mark.unit
    def test_duration_sets_end(self, fake_detector):
        instant = datetime(2025, 11, 20, 19, 0, tzinfo=LOCAL)
        fake_detector.detect.return_value = detected(instant, duration_seconds=5400)

        candidate = HeuristicExtractionStage(fake_detector).parse("Gala Nov 20 7-8:30pm")

        assert candidate.end_time == instant + timedelta(minutes=90)

    @pytest.mark.unit
    def test_no_match_leaves_dates_empty(self, fake_detector):
        candidate = HeuristicExtractionStage(fake_detector).parse("Bake sale\nVenue: School gym")
        assert candidate.start_time is None
        assert candidate.date_only is None
        assert candidate.end_time is None


class TestTotality:

    @pytest.mark.unit
    @pytest.mark.parametrize("text", [
        "x",
        "   ",
        "\n\n\n",
        "@@## ~~ ||| 0O0O",
        "at at at",
        "Venue",
        "l0cati0n:: ....",
    ])
    def test_noise_still_gives_candidate(self, fake_detector, text):
        candidate = HeuristicExtractionStage(fake_detector).parse(text)
        assert candidate.title
        assert candidate.notes == text
        assert candidate.source == "heuristic"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extract_matches_parse(self, fake_detector):
        stage = HeuristicExtractionStage(fake_detector)
        result = await stage.extract("Book Club")
        assert result.title == "Book Club"


class TestTeamStandupScenario:

    TEXT = "Team Standup\nMonday at 9:00 AM\nLocation: Room 204"

    @pytest.mark.integration
    def test_with_dateparser(self, detector, reference_now):
        candidate = HeuristicExtractionStage(detector).parse(self.TEXT)

        assert candidate.title == "Team Standup"
        assert candidate.venue == "Room 204"
        assert candidate.notes == self.TEXT
        assert candidate.start_time is not None
        assert candidate.start_time.weekday() == 0
        assert (candidate.start_time.hour, candidate.start_time.minute) == (9, 0)
        assert candidate.date_only == candidate.start_time.date()
        assert candidate.end_time is None
