"""SRT timing parser — raw caption-track text to an ordered Caption list.

WHY: Lyric tracks arrive as user-uploaded SRT files, and plenty of them
are hand-edited: stray blank lines, Windows line endings, a missing
timing line, a half-deleted block. A corrupt block must cost one lyric
line, never the whole track or the playback session.

HOW: Normalise line endings, trim, split into blocks on blank-line runs,
then validate each block (sequence number, strict timing line, at least
one text line). Valid blocks become Caption objects; invalid ones are
recorded as ParseSkip and logged. The result is stably sorted by start.

RULES:
- Empty or whitespace-only input → [] (not an error)
- Block needs >= 3 lines: number, "HH:MM:SS,mmm --> HH:MM:SS,mmm", text
- Hours/minutes/seconds are exactly two digits, milliseconds exactly three
- Text lines are joined with "\\n" exactly as written
- end must be after start; sequence numbers must be >= 1 and unique
- A repeated sequence number drops the later block even when it is
  otherwise well-formed, since the sequence number is the caption's
  identity for click-to-seek and change detection
- Malformed blocks are skipped and logged at DEBUG, never raised
- Output is sorted by start; equal starts keep input order
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from lyricsync.core.errors import ParseSkip
from lyricsync.core.models import Caption

logger = logging.getLogger(__name__)

_BLOCK_SEPARATOR_RE = re.compile(r"\n\s*\n")

# Anchored at the start of the (stripped) line; trailing cue settings such
# as "X1:40 X2:600" are tolerated.
_TIMING_RE = re.compile(
    r"^(\d{2}):(\d{2}):(\d{2}),(\d{3}) --> (\d{2}):(\d{2}):(\d{2}),(\d{3})"
)


def timestamp_to_seconds(hours: str, minutes: str, seconds: str, millis: str) -> float:
    """Convert SRT timestamp fields to float seconds."""
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + int(millis) / 1000


def format_srt_timestamp(seconds: float) -> str:
    """Format float seconds as an SRT timestamp, e.g. 83.5 → "00:01:23,500"."""
    if seconds < 0:
        seconds = 0.0
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def _parse_block(block: str, block_number: int) -> Tuple[Optional[Caption], Optional[ParseSkip]]:
    """Parse one block, returning either a Caption or the reason it was skipped."""
    lines = block.strip().split("\n")
    if len(lines) < 3:
        return None, ParseSkip(block_number, "fewer than 3 lines")

    try:
        sequence_index = int(lines[0].strip())
    except ValueError:
        return None, ParseSkip(block_number, "sequence number is not an integer")
    if sequence_index < 1:
        return None, ParseSkip(block_number, "sequence number below 1")

    match = _TIMING_RE.match(lines[1].strip())
    if not match:
        return None, ParseSkip(block_number, "bad timing line")

    groups = match.groups()
    start = timestamp_to_seconds(*groups[:4])
    end = timestamp_to_seconds(*groups[4:])
    if end <= start:
        return None, ParseSkip(block_number, "end is not after start")

    return Caption(
        sequence_index=sequence_index,
        start=start,
        end=end,
        text="\n".join(lines[2:]),
    ), None


def parse_srt_with_skips(raw_text: str) -> Tuple[List[Caption], List[ParseSkip]]:
    """Parse SRT text and also return the blocks that were dropped.

    WHY: The player only wants captions, but tooling (the CLI timeline
    dump, tests) needs to know what was discarded and why.

    Args:
        raw_text: Complete SRT file content (UTF-8 decoded).

    Returns:
        Tuple of (captions sorted by start, skipped-block records).
    """
    if raw_text is None:
        return [], []

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n").lstrip("\ufeff")
    if not text.strip():
        return [], []

    captions: List[Caption] = []
    skips: List[ParseSkip] = []
    seen_indexes = set()

    for block_number, block in enumerate(_BLOCK_SEPARATOR_RE.split(text.strip()), start=1):
        caption, skip = _parse_block(block, block_number)
        if caption is not None and caption.sequence_index in seen_indexes:
            caption, skip = None, ParseSkip(block_number, "duplicate sequence number")
        if caption is None:
            logger.debug("Skipping caption block %d: %s", skip.block_number, skip.reason)
            skips.append(skip)
            continue
        seen_indexes.add(caption.sequence_index)
        captions.append(caption)

    # list.sort is stable, so equal starts keep their input order
    captions.sort(key=lambda c: c.start)

    logger.debug("Parsed %d caption(s), skipped %d block(s)", len(captions), len(skips))
    return captions, skips


def parse_srt(raw_text: str) -> List[Caption]:
    """Parse SRT caption text into captions sorted by start time.

    Args:
        raw_text: Complete SRT file content. Empty text yields [].

    Returns:
        List of Caption objects, stably sorted ascending by start.
    """
    captions, _ = parse_srt_with_skips(raw_text)
    return captions
