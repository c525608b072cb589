"""
Text LLM Client interface for extracting event fields from recognized text.
Supports StubTextLLMClient (offline) and OpenAITextLLMClient (real provider).
"""

import json
import re
import time
from abc import ABC, abstractmethod
from typing import Optional

import requests

from eventscan.logging_helper import Log
from eventscan.settings_manager import ExtractionConfig

SYSTEM_INSTRUCTIONS = (
    "You extract event details from OCR text. Return the event title, event date and venue. "
    "Only include a start time if it is explicitly present in the text. "
    "Titles should be concise and omit dates/times. "
    "Venues should be names or addresses without extra words."
)


def parse_json_content(content: str) -> Optional[dict]:
    """
    Parse the JSON object from a model response.

    Markdown code fences are stripped; if the content still isn't JSON, the first
    {...} block is tried. A literal null means the model found no event.

    Raises:
        ValueError: if no JSON object can be recovered
    """
    content = content.strip()
    if content.startswith('```'):
        lines = content.split('\n')
        content = '\n'.join(lines[1:-1]) if len(lines) > 2 else content

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        json_match = re.search(r'\{[^}]+\}', content, re.DOTALL)
        if not json_match:
            raise ValueError(f"No JSON object in response: {content[:100]}")
        data = json.loads(json_match.group())

    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class TextLLMClient(ABC):
    """Abstract base class for text LLM clients."""

    provider = "unknown"

    @abstractmethod
    def extract_fields(self, prompt: str) -> Optional[dict]:
        """
        Ask the LLM for event fields.

        Args:
            prompt: Full extraction prompt, including the recognized text

        Returns:
            Decoded JSON object with title/venue/startDateOnly/startInstant/endInstant,
            or None if no answer could be obtained
        """

    def close(self) -> None:
        """Release any held connections."""


class StubTextLLMClient(TextLLMClient):
    """
    Stub LLM client for offline testing.
    Returns a hardcoded event in the same shape as the real API.
    """

    provider = "stub"

    def __init__(self, response: Optional[dict] = None, delay_seconds: float = 0.0):
        self.response = response if response is not None else {
            "title": "Sample Meeting",
            "venue": "Conference Room A",
            "startDateOnly": "2025-11-15",
            "startInstant": "2025-11-15T10:30:00",
            "endInstant": "2025-11-15T11:30:00",
        }
        self.delay_seconds = delay_seconds

    def extract_fields(self, prompt: str) -> Optional[dict]:
        Log.info("Using stub LLM client (offline mode)")
        if self.delay_seconds > 0:
            Log.info(f"Simulating API response time: {self.delay_seconds:.1f} seconds")
            time.sleep(self.delay_seconds)
        # Round-trip through JSON so the stub behaves exactly like a decoded response
        return parse_json_content(json.dumps(self.response))


class StubTextLLMClient_Unavailable(TextLLMClient):
    """
    Stub LLM client that never produces an answer.
    Useful for tests & simulation of the heuristic fallback path.
    """

    provider = "stub_unavailable"

    def extract_fields(self, prompt: str) -> Optional[dict]:
        Log.info("Simulating: LLM unavailable")
        return None


class OpenAITextLLMClient(TextLLMClient):
    """
    OpenAI chat completions client for real event extraction.
    """

    provider = "openai"

    def __init__(self, config: ExtractionConfig, session: Optional[requests.Session] = None):
        """
        Args:
            config: Extraction configuration with API key, model and limits
            session: Optional requests session (one is created if omitted)
        """
        if not config.api_key:
            raise ValueError("OpenAITextLLMClient requires an API key")
        self.config = config
        self.session = session or requests.Session()

    def extract_fields(self, prompt: str) -> Optional[dict]:
        Log.info(f"Calling OpenAI chat completions ({self.config.model})...")
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTIONS},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        Log.kv({
            "stage": "llm",
            "provider": self.provider,
            "model": self.config.model,
            "status": "requesting",
            "prompt_chars": len(prompt),
        })

        try:
            response = self.session.post(
                self.config.api_url,
                headers=headers,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
            Log.info(f"API response status: {response.status_code}")
            if response.status_code != 200:
                Log.error(f"OpenAI API error: {response.text[:500]}")
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            Log.error(f"OpenAI API request failed: {e}")
            Log.kv({"stage": "llm", "provider": self.provider, "result": "failed", "reason": "api_error", "error": str(e)})
            return None
        except ValueError as e:
            Log.error(f"OpenAI API returned invalid JSON: {e}")
            Log.kv({"stage": "llm", "provider": self.provider, "result": "failed", "reason": "invalid_body"})
            return None

        choices = result.get('choices') or [{}]
        content = (choices[0].get('message') or {}).get('content') or ''
        if not content:
            Log.warn("Empty response from OpenAI")
            Log.kv({"stage": "llm", "provider": self.provider, "result": "failed", "reason": "empty_response"})
            return None

        try:
            data = parse_json_content(content)
        except ValueError as e:
            Log.warn(f"Could not parse JSON from response: {e}")
            Log.kv({"stage": "llm", "provider": self.provider, "result": "failed", "reason": "json_parse_error"})
            return None

        if data is None:
            Log.info("OpenAI detected no calendar event in text")
            Log.kv({"stage": "llm", "provider": self.provider, "result": "no_event"})
        return data

    def close(self) -> None:
        self.session.close()


def get_llm_client(config: ExtractionConfig) -> Optional[TextLLMClient]:
    """
    Pick the LLM client for a configuration.

    USE_STUB_UNAVAILABLE wins over USE_STUB; otherwise an API key selects the
    OpenAI client. Without a key there is no client and the model stage is skipped.
    """
    if config.use_stub_unavailable:
        Log.info("USE_STUB_UNAVAILABLE flag set - using stub client (no answer)")
        return StubTextLLMClient_Unavailable()

    if config.use_stub:
        Log.info("USE_STUB flag set - using stub client")
        return StubTextLLMClient()

    if config.api_key:
        Log.info("API key found - using OpenAI client")
        return OpenAITextLLMClient(config)

    Log.info("No API key - LLM extraction disabled")
    return None
