"""Typed error taxonomy for the playback engine.

WHY: Callers (the HTTP layer, the CLI, a desktop host) need to tell a bad
playback request apart from a bad jump index or a blocked autoplay, and
react differently to each. None of them is fatal to the process.

HOW: Two exception classes for failures that surface to the caller and
two plain records for failures the engine absorbs locally:
  InvalidRequestError   — empty playlist on load (raised, nothing mutated)
  IndexOutOfRangeError  — explicit jump outside the playlist (raised)
  ParseSkip             — a malformed caption block (logged by the parser)
  SinkPlayFailure       — the sink refused to start (kept as a notice)

RULES:
- Raised errors leave engine state exactly as it was before the call
- ParseSkip never leaves the parser
- SinkPlayFailure never propagates; the controller reverts to paused
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class LyricsyncError(Exception):
    """Base class for errors raised by the playback engine."""


class InvalidRequestError(LyricsyncError, ValueError):
    """Raised when a playback request cannot start a session.

    RULES:
    - Raised before any playlist mutation
    - The only current cause is an empty track list
    """


class IndexOutOfRangeError(LyricsyncError, IndexError):
    """Raised when an explicit jump targets an index outside the playlist."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(
            "Index {} is out of range for a playlist of {} track(s)".format(
                index, length
            )
        )


@dataclass(frozen=True)
class ParseSkip:
    """A caption block the parser dropped.

    Attributes:
        block_number: 1-based position of the block in the raw text.
        reason: Short human-readable cause, e.g. "bad timing line".
    """

    block_number: int
    reason: str


@dataclass(frozen=True)
class SinkPlayFailure:
    """Non-fatal notice that the audio sink refused to start playback.

    Attributes:
        reason: Message reported by the sink (e.g. "autoplay blocked").
        track_id: Identity of the track that failed to start, if any.
    """

    reason: str
    track_id: Optional[str] = None
