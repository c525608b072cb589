"""
LLM-backed event extractor.
Sends the recognized text to a TextLLMClient and normalizes the returned
date/time strings field by field.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from dateutil import tz as dateutil_tz

from eventscan.datetime_normalizer import normalize, normalize_date_only, system_timezone_name
from eventscan.event_models import EventCandidate, ModelCandidate
from eventscan.logging_helper import Log
from eventscan.text_llm_client import TextLLMClient


def build_prompt(text: str, now: datetime) -> str:
    """Extraction prompt for one block of recognized text."""
    return (
        "Extract the event title, venue, start date, and optional start/end times from the following text.\n"
        f"Contextual metadata:\n"
        f"- System Date: {now.strftime('%Y-%m-%d')}\n"
        f"- System Time: {now.strftime('%H:%M:%S')}\n"
        f"- System Time Zone: {system_timezone_name() or now.strftime('%Z')}\n\n"
        "Return a JSON object with the following fields (use null if not found):\n"
        "- title: string (concise, omit dates/times)\n"
        "- venue: string (name or address only)\n"
        "- startDateOnly: string (date only, like \"2025-11-03\", if a date is present)\n"
        "- startInstant: string (date and time, like \"2025-11-03T18:30:00Z\", only if a time is present)\n"
        "- endInstant: string (date and time, only if an end time or duration is present)\n\n"
        f"Text:\n\n{text}"
    )


class ModelExtractionStage:
    """
    Event extraction through a generative model.

    Args:
        client: LLM client, or None when no model is configured
        now: Callable returning the current time used in the prompt
    """

    name = "model"

    def __init__(self, client: Optional[TextLLMClient],
                 now: Optional[Callable[[], datetime]] = None):
        self.client = client
        self._now = now or (lambda: datetime.now(dateutil_tz.tzlocal()))

    async def extract(self, text: str) -> Optional[EventCandidate]:
        """
        Extract an event candidate with the LLM.

        Returns:
            EventCandidate, or None when the model is unavailable or its answer unusable
        """
        Log.section("Model Extractor")

        if self.client is None:
            Log.info("No LLM client configured - skipping model extraction")
            Log.kv({"stage": "llm", "result": "unavailable", "reason": "no_client"})
            return None

        if not text.strip():
            Log.info("Empty text - skipping model extraction")
            Log.kv({"stage": "llm", "result": "unavailable", "reason": "empty_text"})
            return None

        prompt = build_prompt(text, self._now())
        try:
            data = await asyncio.to_thread(self.client.extract_fields, prompt)
        except Exception as e:
            Log.error(f"Unexpected error in LLM client: {e}")
            Log.kv({"stage": "llm", "provider": self.client.provider, "result": "failed", "reason": "unexpected_error", "error": str(e)})
            return None

        if data is None:
            Log.warn("LLM returned no event")
            Log.kv({"stage": "llm", "provider": self.client.provider, "result": "unavailable", "reason": "no_answer"})
            return None

        return self.to_candidate(ModelCandidate.from_response(data), text)

    def to_candidate(self, model_candidate: ModelCandidate, text: str) -> EventCandidate:
        """Normalize each date/time field on its own; bad fields are dropped."""
        venue = model_candidate.venue.strip() if model_candidate.venue else None

        candidate = EventCandidate(
            title=model_candidate.title.strip(),
            date_only=normalize_date_only(model_candidate.start_date_only),
            start_time=normalize(model_candidate.start_instant),
            end_time=normalize(model_candidate.end_instant),
            venue=venue or None,
            notes=text,
            source=self.name,
        )

        Log.info(
            f"Event extracted: title={candidate.title}, date={candidate.date_only}, "
            f"start={candidate.start_time}, end={candidate.end_time}, venue={candidate.venue}"
        )
        Log.kv({
            "stage": "llm",
            "provider": self.client.provider if self.client else "none",
            "result": "success",
            "event_title": candidate.title,
            "dropped_fields": ",".join(_dropped_fields(model_candidate, candidate)) or "none",
        })
        return candidate


def _dropped_fields(model_candidate: ModelCandidate, candidate: EventCandidate) -> list:
    dropped = []
    pairs = (
        ("startDateOnly", model_candidate.start_date_only, candidate.date_only),
        ("startInstant", model_candidate.start_instant, candidate.start_time),
        ("endInstant", model_candidate.end_instant, candidate.end_time),
    )
    for name, raw, parsed in pairs:
        if raw and raw.strip() and parsed is None:
            dropped.append(name)
    return dropped
