"""Dataclasses shared by every layer of the playback engine.

WHY: The parser, the caption index, the playlist and the transport all
talk about the same few things — a timed caption, a track, a playback
request and the transport state. One well-typed module keeps those
shapes consistent and decouples the layers from each other.

HOW: Five types form the model:
  Caption         — one timed lyric line parsed from SRT
  Track           — opaque catalog reference (audio source + caption text)
  PlaybackMode    — sequential or random selection
  PlaybackRequest — the sole entry point for (re)initialising a session
  TransportState  — play/position/duration/volume/mute mirror of the sink

RULES:
- All times are float seconds
- Caption and Track are frozen; the engine never mutates them
- sequence_index is a caption's identity, not its position in the list
- TransportState is owned by the TransportController; others get copies
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from lyricsync.core.errors import InvalidRequestError


@dataclass(frozen=True)
class Caption:
    """A single timed caption (lyric line) from an SRT track.

    RULES:
    - sequence_index: the block number from the source, >= 1, unique per track
    - start / end: float seconds, end > start
    - text: may contain embedded newlines, preserved exactly
    """

    sequence_index: int
    start: float
    end: float
    text: str


@dataclass(frozen=True)
class Track:
    """A playable track as handed over by the catalog.

    WHY: The engine only needs an identity, an audio locator and the raw
    caption text. Title and category ride along so hosts can display the
    playlist without a second catalog lookup.
    """

    id: str
    audio_source: str
    caption_text: Optional[str] = None
    title: str = ""
    category: str = "other"
    image_url: Optional[str] = None
    duration_s: Optional[float] = None


class PlaybackMode(str, enum.Enum):
    """How the playlist picks the next track.

    RULES:
    - Inherits from str so values serialize cleanly to JSON
    - The catalog historically sends "all" for sequential play
    """

    SEQUENTIAL = "sequential"
    RANDOM = "random"

    @classmethod
    def parse(cls, value: str) -> PlaybackMode:
        """Map a request mode string to a PlaybackMode.

        Raises:
            InvalidRequestError: If the value is not a known mode.
        """
        normalized = (value or "").strip().lower()
        if normalized == "all":
            return cls.SEQUENTIAL
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidRequestError(
                "Unknown playback mode '{}'. Available: sequential, random".format(value)
            ) from None


@dataclass
class PlaybackRequest:
    """An ordered track list plus the mode and index to start from.

    WHY: Hosts build a request from a catalog query and hand it over in
    one piece; the engine never reaches back into the catalog.
    """

    tracks: List[Track]
    mode: PlaybackMode = PlaybackMode.SEQUENTIAL
    start_index: int = 0

    def validate(self) -> None:
        """Raise InvalidRequestError if this request cannot start a session."""
        if not self.tracks:
            raise InvalidRequestError("Playback request has no tracks")


@dataclass
class TransportState:
    """Mirror of the audio sink's playback state.

    RULES:
    - position_s / duration_s only change from sink callbacks, seeks and
      track changes; they are never guessed
    - duration_s is 0.0 until the sink reports metadata
    - volume is the user's chosen level in [0, 1]; it is kept while muted
    """

    is_playing: bool = False
    position_s: float = 0.0
    duration_s: float = 0.0
    volume: float = 1.0
    is_muted: bool = False

    def snapshot(self) -> TransportState:
        """Return an independent copy safe to hand to callers."""
        return TransportState(
            is_playing=self.is_playing,
            position_s=self.position_s,
            duration_s=self.duration_s,
            volume=self.volume,
            is_muted=self.is_muted,
        )


@dataclass
class CaptionContext:
    """A caption with its temporal neighbours, for lyric panels.

    RULES:
    - current is None when the requested identity is not in the track
    - upcoming holds at most two captions after current
    """

    current: Optional[Caption] = None
    previous: Optional[Caption] = None
    next: Optional[Caption] = None
    upcoming: List[Caption] = field(default_factory=list)
