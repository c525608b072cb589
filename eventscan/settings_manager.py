"""
Application settings management.

Persisted user preferences (LLM model, where ICS files go, calendar name) live
in a JSON file under ~/.config/eventscan. Runtime LLM configuration is read
from the environment into an ExtractionConfig that is passed to the pipeline.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TypedDict

from eventscan.logging_helper import Log


class SettingsSchema(TypedDict, total=False):
    llm_model: str
    ics_output_dir: str
    calendar_title: str


DEFAULT_SETTINGS: SettingsSchema = {
    "llm_model": "gpt-4o-mini",
    "ics_output_dir": str(Path.home() / "Downloads"),
    "calendar_title": "Calendar",
}

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def settings_dir() -> Path:
    override = os.environ.get("EVENTSCAN_SETTINGS_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "eventscan"


def settings_file() -> Path:
    return settings_dir() / "settings.json"


def _ensure_settings_dir() -> None:
    try:
        settings_dir().mkdir(parents=True, exist_ok=True)
    except OSError as err:
        Log.warn(f"Unable to create settings directory {settings_dir()}: {err}")


def load_settings() -> SettingsSchema:
    """
    Load settings from disk, falling back to defaults if anything fails.
    """
    path = settings_file()
    if not path.exists():
        Log.info(f"Settings file not found, using defaults: {path}")
        return DEFAULT_SETTINGS.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Settings data is not a JSON object")
    except (OSError, ValueError) as err:
        Log.warn(f"Failed to read settings file ({path}): {err}")
        return DEFAULT_SETTINGS.copy()

    merged: SettingsSchema = DEFAULT_SETTINGS.copy()
    # Merge only known keys
    for key in DEFAULT_SETTINGS:
        if isinstance(data.get(key), str):
            merged[key] = data[key]  # type: ignore[literal-required]
    return merged


def save_settings(settings: SettingsSchema) -> None:
    """
    Persist settings to disk.
    """
    _ensure_settings_dir()
    path = settings_file()
    try:
        path.write_text(
            json.dumps(settings, indent=2, sort_keys=True),
            encoding="utf-8",
        )
    except OSError as err:
        Log.warn(f"Failed to write settings file ({path}): {err}")


def get_setting(key: str) -> str:
    if key not in DEFAULT_SETTINGS:
        raise ValueError(f"Unknown setting: {key}")
    return load_settings().get(key, DEFAULT_SETTINGS[key])  # type: ignore[literal-required]


def set_setting(key: str, value: str) -> None:
    if key not in DEFAULT_SETTINGS:
        raise ValueError(f"Unknown setting: {key}")
    settings = load_settings()
    settings[key] = value  # type: ignore[literal-required]
    save_settings(settings)
    Log.info(f"Saved setting: {key}={value}")


@dataclass
class ExtractionConfig:
    """LLM configuration for one pipeline; built explicitly and passed in."""
    api_key: Optional[str] = None
    model: str = DEFAULT_SETTINGS["llm_model"]
    api_url: str = OPENAI_CHAT_COMPLETIONS_URL
    timeout_seconds: float = 30.0
    max_tokens: int = 500
    temperature: float = 0.1
    use_stub: bool = False
    use_stub_unavailable: bool = False

    @classmethod
    def from_env(cls, settings: Optional[SettingsSchema] = None) -> "ExtractionConfig":
        """
        Build the configuration from environment variables and saved settings.

        apiKey (or OPENAI_API_KEY) enables the OpenAI client. USE_STUB forces the
        offline stub, USE_STUB_UNAVAILABLE forces a stub that never answers.
        """
        settings = settings if settings is not None else load_settings()
        return cls(
            api_key=os.getenv("apiKey") or os.getenv("OPENAI_API_KEY") or None,
            model=settings.get("llm_model", DEFAULT_SETTINGS["llm_model"]),
            use_stub=_flag("USE_STUB"),
            use_stub_unavailable=_flag("USE_STUB_UNAVAILABLE"),
        )
