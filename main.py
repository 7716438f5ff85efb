#!/usr/bin/env python3
"""
Live Captions - transcript replay

Replays a JSON-lines file of transcription events through caption sessions
and shows every caption window the display would receive.

Each line is one object:
    {"time_ms": 0, "is_final": false, "text": "hello wor"}
    {"time_ms": 350, "isFinal": true, "text": "Hello world.", "transcribeLanguage": "en-US"}
    {"time_ms": 900, "settings": {"transcribe_language": "English", "line_width": "Wide"}}

Optional keys: "user_id" (defaults to --user), "time_ms" (defaults to the
previous line's time).

By default time is virtual: the file replays instantly on a manual clock and
frames are printed to stdout. With --serve the file replays in real time and
frames go to WebSocket display clients that subscribe to the user id.

Usage:
    python main.py --events samples/lecture.jsonl
    python main.py --events talk.jsonl --language "Chinese (Hanzi)" --lines 2 -v
    python main.py --events talk.jsonl --serve --port 8765
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from livecaptions.CaptionSettings import CaptionSettings
from livecaptions.ConfigLoader import load_config
from livecaptions.LoggingSetup import setup_logging
from livecaptions.Scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from livecaptions.SessionRegistry import SessionRegistry
from livecaptions.display.ConsoleDisplaySink import ConsoleDisplaySink
from livecaptions.display.DisplayServer import DisplayServer
from livecaptions.idioms.IdiomDictionary import load_dictionary
from livecaptions.types import IdiomEncounter, TranscriptionEvent

PROJECT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PROJECT_DIR / "config" / "captions_config.json"
DEFAULT_LOGS_DIR = PROJECT_DIR / "logs"
DEFAULT_USER_ID = "speaker"

logger = logging.getLogger(__name__)


class MemoryEncounterStore:
    """EncounterStore keeping idiom encounters in memory for the replay summary."""

    def __init__(self) -> None:
        self.encounters: list[IdiomEncounter] = []

    async def record_encounter(self, encounter: IdiomEncounter) -> None:
        self.encounters.append(encounter)
        logger.info("Encounter recorded: idiom=%d context='%s'", encounter.idiom_id, encounter.context_text)


def read_events(path: Path) -> list[dict[str, Any]]:
    """Read a JSON-lines replay file.

    Args:
        path: File with one JSON object per line; blank lines are skipped

    Returns:
        Decoded records in file order

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If a line is not a JSON object
    """
    records: list[dict[str, Any]] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_number}: invalid JSON: {exc}") from exc
            if not isinstance(record, dict):
                raise ValueError(f"{path}:{line_number}: expected an object")
            records.append(record)
    return records


def resolve_project_path(value: str) -> Path:
    """Relative paths in config are relative to the project directory."""
    path = Path(value)
    return path if path.is_absolute() else PROJECT_DIR / path


def initial_settings(args: argparse.Namespace, config: dict) -> CaptionSettings:
    """Config defaults overridden by command line settings."""
    return CaptionSettings.from_dict(
        {
            "transcribe_language": args.language,
            "line_width": args.line_width,
            "number_of_lines": args.lines,
        },
        config["defaults"],
    )


def apply_record(registry: SessionRegistry, record: dict[str, Any], config: dict, default_user: str) -> None:
    """Route one replay record to the registry."""
    user_id = str(record.get("user_id") or default_user)

    if "settings" in record:
        settings = CaptionSettings.from_dict(record["settings"], config["defaults"])
        if not registry.apply_settings(user_id, settings):
            registry.start_session(user_id, settings=settings)
        return

    registry.handle_event(user_id, TranscriptionEvent.from_dict(record))


async def replay(records: list[dict[str, Any]], registry: SessionRegistry,
                 scheduler: ManualScheduler, config: dict, default_user: str) -> None:
    """Replay records on the virtual clock, then run every remaining timer.

    Args:
        records: Decoded replay records
        registry: Registry routing events to sessions
        scheduler: Virtual clock shared by the registry's sessions
        config: Application configuration
        default_user: User id for records without one
    """
    for record in records:
        time_ms = record.get("time_ms")
        if time_ms is not None:
            scheduler.advance_to(float(time_ms) / 1000.0)
        apply_record(registry, record, config, default_user)
        # Let encounter recording tasks run
        await asyncio.sleep(0)

    due_time = scheduler.next_due_time
    while due_time is not None:
        scheduler.advance_to(due_time)
        due_time = scheduler.next_due_time
    await asyncio.sleep(0)


async def serve(records: list[dict[str, Any]], registry: SessionRegistry, server: DisplayServer,
                config: dict, default_user: str) -> None:
    """Replay records in real time to WebSocket display clients, then keep serving."""
    await server.start()
    print(f"Display server listening on port {server.port}", file=sys.stderr)

    loop = asyncio.get_running_loop()
    started = loop.time()
    try:
        for record in records:
            time_ms = record.get("time_ms")
            if time_ms is not None:
                delay = started + float(time_ms) / 1000.0 - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)
            apply_record(registry, record, config, default_user)

        logger.info("Replay finished, serving until interrupted")
        await asyncio.Event().wait()
    finally:
        registry.close_all()
        await server.stop()


async def run(args: argparse.Namespace, config: dict) -> int:
    """Build the registry for the chosen mode and replay the event file."""
    records = read_events(args.events)
    idioms_path = args.idioms or resolve_project_path(config["idioms"]["dictionary_path"])
    dictionary = load_dictionary(idioms_path)
    store = MemoryEncounterStore()

    scheduler: Scheduler
    if args.serve:
        server = DisplayServer(host=args.host, port=args.port)
        scheduler = AsyncioScheduler()
        registry = SessionRegistry(scheduler, config, server.sink_for,
                                   idiom_dictionary=dictionary, encounter_store=store)
        registry.start_session(args.user, settings=initial_settings(args, config))
        await serve(records, registry, server, config, args.user)
        return 0

    sink = ConsoleDisplaySink(stream=sys.stdout)
    scheduler = ManualScheduler()
    registry = SessionRegistry(scheduler, config, lambda user_id: sink,
                               idiom_dictionary=dictionary, encounter_store=store)
    registry.start_session(args.user, settings=initial_settings(args, config))
    try:
        await replay(records, registry, scheduler, config, args.user)
    finally:
        registry.close_all()

    print(f"{sink.frames_shown} frames shown, {len(store.encounters)} idiom encounters")
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Replay transcription events through the caption formatter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--events',
        type=Path,
        required=True,
        help='JSON-lines file of transcription events'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help=f'Config file (default: {DEFAULT_CONFIG_PATH.name} if present, else built-in defaults)'
    )
    parser.add_argument(
        '--idioms',
        type=Path,
        default=None,
        help='Idiom dictionary JSON (default: idioms.dictionary_path from config)'
    )
    parser.add_argument(
        '--language',
        type=str,
        default=None,
        help='Transcription language, e.g. "English", "Chinese (Hanzi)", "Chinese (Pinyin)"'
    )
    parser.add_argument(
        '--line-width',
        type=str,
        default=None,
        help='Characters per line or a preset (Very Narrow, Narrow, Medium, Wide, Very Wide)'
    )
    parser.add_argument(
        '--lines',
        type=int,
        default=None,
        help='Number of lines in the caption window (default: 3)'
    )
    parser.add_argument(
        '--user',
        type=str,
        default=DEFAULT_USER_ID,
        help=f'User id for events without one (default: {DEFAULT_USER_ID})'
    )
    parser.add_argument(
        '--serve',
        action='store_true',
        help='Replay in real time to WebSocket display clients instead of the console'
    )
    parser.add_argument(
        '--host',
        type=str,
        default='127.0.0.1',
        help='Display server host (default: 127.0.0.1)'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=8765,
        help='Display server port (default: 8765)'
    )
    parser.add_argument(
        '--logs-dir',
        type=Path,
        default=None,
        help='Directory for rotating log files (default: no log file)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, load config and run the replay.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    setup_logging(args.logs_dir, verbose=args.verbose)

    try:
        config_path = args.config
        if config_path is None and DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
        config = load_config(config_path)
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        logging.info("Interrupted by user.")
        return 0
    except (FileNotFoundError, ValueError) as e:
        logging.error(f"ERROR: {type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
