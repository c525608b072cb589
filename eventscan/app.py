"""
Command line entry point for eventscan.
Reads recognized text from a file or stdin, prints the extracted event and
optionally saves it as an .ics file.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from eventscan.calendar_store import ICSCalendarStore
from eventscan.event_scanner import EventScanner
from eventscan.extraction_pipeline import PipelineContext
from eventscan.logging_helper import Log
from eventscan.settings_manager import ExtractionConfig, load_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventscan",
        description="Extract a calendar event from recognized (OCR) text.",
    )
    parser.add_argument("path", nargs="?", help="Text file to read (default: stdin)")
    parser.add_argument("--save", action="store_true", help="Save the event as an .ics file")
    parser.add_argument("--output-dir", help="Directory for .ics files (default: from settings)")
    return parser


def _read_text(path: Optional[str]) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    return sys.stdin.read()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = _build_parser().parse_args(argv)

    Log.section("eventscan")
    Log.info(f"Log file: {Log.get_log_path()}")

    try:
        text = _read_text(args.path)
    except OSError as e:
        Log.error(f"Could not read input: {e}")
        return 1

    settings = load_settings()
    output_dir = Path(args.output_dir or settings["ics_output_dir"]).expanduser()
    store = ICSCalendarStore(output_dir, calendar_title=settings["calendar_title"])

    with PipelineContext(ExtractionConfig.from_env(settings)) as context:
        scanner = EventScanner(context, store)
        asyncio.run(scanner.scan(text))

        print(scanner.display_event().display_summary())

        if not args.save:
            return 0
        if not scanner.add_to_calendar():
            print(f"Error: {scanner.save_error}", file=sys.stderr)
            return 1
        print("Event was added to your calendar successfully.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
