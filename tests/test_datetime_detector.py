"""
Unit tests for the free-text date/time detector.
"""

from datetime import datetime
from unittest.mock import patch

import pytest

from eventscan.datetime_detector import DateTimeDetector
from tests.fakes import LOCAL

SEARCH = "eventscan.datetime_detector.search_dates"


class TestDetect:

    @pytest.mark.unit
    def test_first_match_wins(self, reference_now):
        found = [
            ("Nov 20 7:00 PM", datetime(2025, 11, 20, 19, 0)),
            ("Dec 1", datetime(2025, 12, 1, 0, 0)),
        ]
        with patch(SEARCH, return_value=found):
            result = DateTimeDetector(now=lambda: reference_now).detect("Gala Nov 20 7:00 PM, RSVP by Dec 1")

        assert result.instant == datetime(2025, 11, 20, 19, 0, tzinfo=LOCAL)
        assert result.duration_seconds == 0
        assert result.matched_text == "Nov 20 7:00 PM"

    @pytest.mark.unit
    def test_range_gives_duration(self, reference_now):
        text = "Concert Nov 20 7:00 PM - 9:30 PM"
        found = [
            ("Nov 20 7:00 PM", datetime(2025, 11, 20, 19, 0)),
            ("9:30 PM", datetime(2025, 11, 5, 21, 30)),
        ]
        with patch(SEARCH, return_value=found):
            result = DateTimeDetector(now=lambda: reference_now).detect(text)

        assert result.instant == datetime(2025, 11, 20, 19, 0, tzinfo=LOCAL)
        assert result.duration_seconds == 2.5 * 3600

    @pytest.mark.unit
    @pytest.mark.parametrize("connector", [" to ", " until ", " – ", "-"])
    def test_range_connectors(self, reference_now, connector):
        text = f"Nov 20 7:00 PM{connector}8:00 PM"
        found = [
            ("Nov 20 7:00 PM", datetime(2025, 11, 20, 19, 0)),
            ("8:00 PM", datetime(2025, 11, 5, 20, 0)),
        ]
        with patch(SEARCH, return_value=found):
            result = DateTimeDetector(now=lambda: reference_now).detect(text)
        assert result.duration_seconds == 3600

    @pytest.mark.unit
    def test_unrelated_second_match_is_not_a_range(self, reference_now):
        text = "Nov 20 7:00 PM. Doors close 9:00 PM"
        found = [
            ("Nov 20 7:00 PM", datetime(2025, 11, 20, 19, 0)),
            ("9:00 PM", datetime(2025, 11, 5, 21, 0)),
        ]
        with patch(SEARCH, return_value=found):
            result = DateTimeDetector(now=lambda: reference_now).detect(text)
        assert result.duration_seconds == 0

    @pytest.mark.unit
    def test_end_before_start_is_ignored(self, reference_now):
        found = [
            ("Nov 20 7:00 PM", datetime(2025, 11, 20, 19, 0)),
            ("6:00 PM", datetime(2025, 11, 5, 18, 0)),
        ]
        with patch(SEARCH, return_value=found):
            result = DateTimeDetector(now=lambda: reference_now).detect("Nov 20 7:00 PM - 6:00 PM")
        assert result.duration_seconds == 0

    @pytest.mark.unit
    def test_no_match(self, reference_now):
        with patch(SEARCH, return_value=None):
            detector = DateTimeDetector(now=lambda: reference_now)
            assert detector.detect("nothing to see here") is None
            assert detector.matches("nothing to see here") is False

    @pytest.mark.unit
    def test_library_error_is_treated_as_no_match(self, reference_now):
        with patch(SEARCH, side_effect=RuntimeError("boom")):
            assert DateTimeDetector(now=lambda: reference_now).detect("Nov 20") is None

    @pytest.mark.unit
    def test_blank_text_skips_search(self, reference_now):
        with patch(SEARCH) as search:
            assert DateTimeDetector(now=lambda: reference_now).detect("   ") is None
        search.assert_not_called()

    @pytest.mark.unit
    def test_relative_base_is_reference_time(self, reference_now):
        with patch(SEARCH, return_value=None) as search:
            DateTimeDetector(now=lambda: reference_now).detect("Monday")
        settings = search.call_args.kwargs["settings"]
        assert settings["RELATIVE_BASE"] == datetime(2025, 11, 5, 10, 0)
        assert settings["PREFER_DATES_FROM"] == "future"


class TestDetectWithDateparser:

    @pytest.mark.integration
    def test_weekday_with_time(self, detector, reference_now):
        result = detector.detect("Monday at 9:00 AM")
        assert result is not None
        assert result.instant.weekday() == 0
        assert (result.instant.hour, result.instant.minute) == (9, 0)
        assert result.instant > reference_now

    @pytest.mark.integration
    def test_plain_words_do_not_match(self, detector):
        assert detector.matches("Team Standup") is False
