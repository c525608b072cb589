"""
Pytest configuration and shared fixtures for eventscan tests.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from eventscan.datetime_detector import DateTimeDetector
from eventscan.logging_helper import Log
from tests.fakes import LOCAL, InMemoryCalendarStore


@pytest.fixture(autouse=True)
def quiet_log():
    """Keep log output out of the test run and off the disk."""
    Log.configure(log_dir=None, echo=False)
    yield


@pytest.fixture
def reference_now():
    """Wednesday 2025-11-05 10:00 local time."""
    return datetime(2025, 11, 5, 10, 0, tzinfo=LOCAL)


@pytest.fixture
def detector(reference_now):
    """Real dateparser-backed detector anchored at reference_now."""
    return DateTimeDetector(now=lambda: reference_now)


@pytest.fixture
def fake_detector():
    """Detector that finds nothing unless told otherwise."""
    fake = Mock(spec=DateTimeDetector)
    fake.detect.return_value = None
    fake.matches.return_value = False
    return fake


@pytest.fixture
def board_meeting_response():
    return {
        "title": "Board Meeting",
        "venue": "HQ",
        "startDateOnly": "2025-11-10",
        "startInstant": "2025-11-10T14:00:00Z",
        "endInstant": "",
    }


@pytest.fixture
def memory_store():
    return InMemoryCalendarStore()
