"""
Command Line Interface for notestudio
=====================================

Edit MIDI documents (the JSON shape the save endpoint uses) from the
terminal, and check audio files against the upload rules before sending them
anywhere.

Usage Examples:
    # Show statistics for a document
    notestudio stats song.json

    # Transpose everything up a fifth, writing a new file
    notestudio transpose song.json 7 -o song_up.json

    # Snap start times to an eighth-note grid (in place)
    notestudio quantize song.json eighth

    # Append four default notes (creates the file if needed)
    notestudio add sketch.json -n 4

    # Would this audio file be accepted for analysis?
    notestudio check-upload take1.wav

    # JSON output, debug logging, custom config
    notestudio --json -v --config studio.yaml stats song.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from notestudio import __version__
from notestudio.config import StudioConfig, load_config
from notestudio.data.io import read_document
from notestudio.editor.session import EditorSession
from notestudio.editor.transforms import QuantizeGrid
from notestudio.errors import ExportError, Outcome
from notestudio.pipeline.upload import format_file_size, upload_from_path, validate_upload

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: ARGUMENT PARSER SETUP
# =============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser object
    """
    parser = argparse.ArgumentParser(
        prog="notestudio",
        description="Edit note documents and check audio uploads.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed processing information",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON (useful for scripting)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (default: $NOTESTUDIO_CONFIG or built-in defaults)",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    stats = commands.add_parser("stats", help="Show statistics for a document")
    stats.add_argument("file", help="MIDI document (JSON)")

    transpose = commands.add_parser("transpose", help="Shift every pitch by N semitones")
    transpose.add_argument("file", help="MIDI document (JSON)")
    transpose.add_argument("semitones", type=int, help="Signed semitone offset, e.g. -12 or 7")
    transpose.add_argument("-o", "--output", help="Write here instead of in place")

    quantize = commands.add_parser("quantize", help="Snap start times to a grid")
    quantize.add_argument("file", help="MIDI document (JSON)")
    quantize.add_argument("grid", choices=[g.value for g in QuantizeGrid])
    quantize.add_argument("-o", "--output", help="Write here instead of in place")

    add = commands.add_parser("add", help="Append default notes")
    add.add_argument("file", help="MIDI document (JSON); created if missing")
    add.add_argument("-n", "--count", type=int, default=1, help="How many notes (default: 1)")
    add.add_argument("-o", "--output", help="Write here instead of in place")

    check = commands.add_parser("check-upload", help="Check an audio file against upload rules")
    check.add_argument("file", help="Audio file (.wav, .mp3, .ogg)")

    return parser


# =============================================================================
# PART 2: OUTPUT FORMATTING FUNCTIONS
# =============================================================================

def format_statistics(session: EditorSession) -> str:
    stats = session.statistics
    lines = [
        f"Tempo:          {session.tempo} BPM",
        f"Time signature: {session.time_signature}",
        f"Instrument:     {session.instrument}",
    ]
    if stats is None:
        lines.append("Notes:          0 (no statistics for an empty document)")
    else:
        lines.extend([
            f"Notes:          {stats.count}",
            f"Pitch range:    {stats.min_pitch} - {stats.max_pitch}",
            f"Avg velocity:   {stats.average_velocity}",
            f"Duration:       {stats.total_duration:.2f}s",
        ])
    return "\n".join(lines)


def statistics_dict(session: EditorSession) -> Dict:
    stats = session.statistics
    return {
        "tempo": session.tempo,
        "time_signature": session.time_signature,
        "instrument": session.instrument,
        "statistics": stats.to_dict() if stats is not None else None,
    }


def report_failure(outcome: Outcome, output_json: bool) -> int:
    if output_json:
        print(json.dumps({"ok": False, "kind": outcome.error.kind, "error": outcome.error.message}))
    else:
        print(f"❌ {outcome.error.message}", file=sys.stderr)
    return 1


# =============================================================================
# PART 3: COMMANDS
# =============================================================================

def open_session(path: str, config: StudioConfig, create: bool = False) -> Outcome[EditorSession]:
    if create and not Path(path).exists():
        logger.debug("%s does not exist, starting an empty document", path)
        return Outcome.success(EditorSession(config=config))
    try:
        document = read_document(path)
    except ExportError as e:
        return Outcome.failure(e)
    return Outcome.success(EditorSession.from_document(document, config=config))


def run_command(args: argparse.Namespace, config: StudioConfig) -> int:
    """Execute one subcommand; returns the process exit code."""
    if args.command == "check-upload":
        return run_check_upload(args.file, config, args.json)

    opened = open_session(args.file, config, create=args.command == "add")
    if not opened.ok:
        return report_failure(opened, args.json)
    session = opened.value

    if args.command == "stats":
        if args.json:
            print(json.dumps(statistics_dict(session), indent=2))
        else:
            print(format_statistics(session))
        return 0

    if args.command == "transpose":
        outcome = session.apply_transpose(args.semitones)
        message = f"Transposed by {args.semitones:+d} semitones"
    elif args.command == "quantize":
        outcome = session.apply_quantize(args.grid)
        message = f"Quantized to {args.grid} notes"
    elif args.command == "add":
        if args.count < 1:
            print("⚠️  --count must be at least 1", file=sys.stderr)
            return 1
        added = [session.add_note() for _ in range(args.count)]
        outcome = Outcome.success(added)
        message = f"Added {len(added)} note(s)"
    else:
        raise ValueError(f"Unknown command: {args.command}")

    if not outcome.ok:
        return report_failure(outcome, args.json)

    saved = session.export(args.output or args.file)
    if not saved.ok:
        return report_failure(saved, args.json)

    if args.json:
        print(json.dumps({"ok": True, "message": message, "path": str(saved.value),
                          **statistics_dict(session)}, indent=2))
    else:
        print(f"✓ {message} → {saved.value}")
    return 0


def run_check_upload(path: str, config: StudioConfig, output_json: bool) -> int:
    try:
        upload = upload_from_path(path)
    except OSError as e:
        print(f"❌ Could not read {path}: {e}", file=sys.stderr)
        return 1

    checked = validate_upload(upload, config.upload)
    if not checked.ok:
        return report_failure(checked, output_json)

    if output_json:
        print(json.dumps({"ok": True, "filename": upload.filename,
                          "content_type": upload.content_type, "size": upload.size}))
    else:
        print(f"✓ {upload.filename} ({upload.content_type}, {format_file_size(upload.size)}) can be uploaded")
    return 0


# =============================================================================
# PART 4: MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    return run_command(args, config)


if __name__ == "__main__":
    sys.exit(main())
