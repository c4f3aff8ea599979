"""Command-line interface for lyricsync.

WHY: Lyric files are hand-edited and it is hard to see by eye which
blocks the player will drop or which line shows at a given second.
The CLI gives a quick way to inspect a caption file the way the engine
sees it, and to start the HTTP remote-control server.

HOW: argparse with two subcommands:
  captions FILE [--at SECONDS] [--upcoming N]
      Parse an SRT file. Without --at, print the whole timeline; with
      --at, print the active caption and the upcoming window.
  serve [--host HOST] [--port PORT]
      Run the FastAPI app with uvicorn.

RULES:
- Data goes to stdout, status and skip reports go to stderr
- Exit code 0 on success, 1 when the file cannot be read
- --verbose switches logging to DEBUG (parse skips become visible)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lyricsync import __version__
from lyricsync.config import DEFAULT_UPCOMING_COUNT, LOG_LEVEL, SERVER_HOST, SERVER_PORT
from lyricsync.core.caption_index import active_caption, format_caption_time, upcoming_window
from lyricsync.core.models import Caption
from lyricsync.core.srt_parser import format_srt_timestamp, parse_srt_with_skips

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _caption_line(caption: Caption) -> str:
    text = caption.text.replace("\n", " / ")
    return "{:>4}  {} --> {}  {}".format(
        caption.sequence_index,
        format_srt_timestamp(caption.start),
        format_srt_timestamp(caption.end),
        text,
    )


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _run_captions(args: argparse.Namespace) -> int:
    path = Path(args.file)
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        _status(f"Error: cannot read {path}: {exc}")
        return 1

    captions, skips = parse_srt_with_skips(raw)
    for skip in skips:
        _status(f"Skipped block {skip.block_number}: {skip.reason}")

    if args.at is None:
        for caption in captions:
            print(_caption_line(caption))
        _status(f"{len(captions)} caption(s), {len(skips)} skipped block(s)")
        return 0

    at = max(0.0, args.at)
    active = active_caption(captions, at)
    print("at {} ({:.3f}s)".format(format_caption_time(at), at))
    if active is None:
        print("active: -")
    else:
        print("active: " + _caption_line(active))
    for caption in upcoming_window(captions, at, args.upcoming):
        print("next:   " + _caption_line(caption))
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from lyricsync.server.app import app

    _status(f"Serving lyricsync {__version__} on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with the captions and serve subcommands."""
    parser = argparse.ArgumentParser(
        prog="lyricsync",
        description="Synced-lyrics playback engine: inspect caption files or run the player API.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging (shows skipped caption blocks as they are parsed).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    captions = subparsers.add_parser("captions", help="Parse an SRT file and print its timeline.")
    captions.add_argument("file", help="Path to an .srt lyrics file.")
    captions.add_argument(
        "--at",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Show the active caption and upcoming lines at this position.",
    )
    captions.add_argument(
        "--upcoming",
        type=int,
        default=DEFAULT_UPCOMING_COUNT,
        metavar="N",
        help="Number of upcoming captions to show with --at (default: %(default)s).",
    )
    captions.set_defaults(handler=_run_captions)

    serve = subparsers.add_parser("serve", help="Run the HTTP remote-control API.")
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=SERVER_PORT, help="Port (default: %(default)s).")
    serve.set_defaults(handler=_run_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
