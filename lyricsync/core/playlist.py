"""Playlist state machine — track list, current index, random and loop modes.

WHY: Track selection is where players get stuck: a shuffle that picks
the same song twice in a row, an endless loop on an empty list, an
off-by-one on wrap-around. Keeping selection as a small state machine
with no audio or clock dependency makes each rule directly testable.

HOW: PlaylistState is Empty (no tracks, no index) or Selected (a valid
index into a non-empty tuple). Navigation methods mutate the index and
return what happened; the TransportController decides what that means
for the sink. Randomness comes from an injected source so tests can
script the sequence.

RULES:
- load() with no tracks raises InvalidRequestError and changes nothing
- start_index is clamped into range; the track order is never re-sorted
- Random next() with more than one track never returns the current index
- Sequential next() wraps from the last track to 0
- previous() above RESTART_THRESHOLD_S restarts in place; otherwise it
  steps back one track, wrapping from 0 to the last track
- jump_to() outside [0, len-1] raises IndexOutOfRangeError, state unchanged
- Mode setters never move the current index
- Navigation on an empty playlist is a no-op returning None
"""

from __future__ import annotations

import enum
import logging
import random
from typing import Optional, Protocol, Sequence, Tuple

from lyricsync.config import RESTART_THRESHOLD_S
from lyricsync.core.errors import IndexOutOfRangeError, InvalidRequestError
from lyricsync.core.models import PlaybackMode, PlaybackRequest, Track

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything with ``randrange(n)``; random.Random satisfies it."""

    def randrange(self, stop: int) -> int:  # pragma: no cover - protocol
        ...


class PreviousAction(str, enum.Enum):
    """Outcome of a "previous" press."""

    RESTART = "restart"
    CHANGED = "changed"


class EndOfTrackAction(str, enum.Enum):
    """Outcome of a track reaching its natural end."""

    REPLAY = "replay"
    ADVANCE = "advance"


class PlaylistState:
    """Ordered track list with a current selection and random/loop flags."""

    def __init__(self, random_source: Optional[RandomSource] = None) -> None:
        self._random = random_source if random_source is not None else random.Random()
        self._tracks: Tuple[Track, ...] = ()
        self._current_index: Optional[int] = None
        self._random_mode = False
        self._loop_mode = False

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return self._tracks

    @property
    def current_index(self) -> Optional[int]:
        return self._current_index

    @property
    def current_track(self) -> Optional[Track]:
        if self._current_index is None:
            return None
        return self._tracks[self._current_index]

    @property
    def random_mode(self) -> bool:
        return self._random_mode

    @property
    def loop_mode(self) -> bool:
        return self._loop_mode

    @property
    def is_empty(self) -> bool:
        return not self._tracks

    def __len__(self) -> int:
        return len(self._tracks)

    def position_label(self) -> str:
        """Header text such as "2 of 5 • Random"."""
        if self._current_index is None:
            return "0 of 0"
        mode = "Random" if self._random_mode else "Sequential"
        return "{} of {} • {}".format(self._current_index + 1, len(self._tracks), mode)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(
        self,
        tracks: Sequence[Track],
        start_index: int = 0,
        random_mode: bool = False,
    ) -> int:
        """Replace the playlist wholesale and select the starting track.

        Args:
            tracks: Tracks in play order. Must not be empty.
            start_index: Requested first track; clamped into range.
            random_mode: Whether next() picks tracks at random.

        Returns:
            The selected index.

        Raises:
            InvalidRequestError: If ``tracks`` is empty. Nothing is changed.
        """
        if not tracks:
            raise InvalidRequestError("Cannot load an empty playlist")

        last = len(tracks) - 1
        clamped = min(max(int(start_index), 0), last)
        if clamped != start_index:
            logger.debug("Clamped start index %s to %d", start_index, clamped)

        self._tracks = tuple(tracks)
        self._current_index = clamped
        self._random_mode = bool(random_mode)
        self._loop_mode = False
        logger.info(
            "Loaded playlist of %d track(s) at index %d (%s)",
            len(self._tracks),
            clamped,
            "random" if self._random_mode else "sequential",
        )
        return clamped

    def load_request(self, request: PlaybackRequest) -> int:
        """Validate a PlaybackRequest and load it."""
        request.validate()
        return self.load(
            request.tracks,
            start_index=request.start_index,
            random_mode=request.mode is PlaybackMode.RANDOM,
        )

    def clear(self) -> None:
        """Return to the Empty state (session ended)."""
        self._tracks = ()
        self._current_index = None
        self._random_mode = False
        self._loop_mode = False

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self) -> Optional[int]:
        """Advance to the next track and return the new index."""
        if self._current_index is None:
            return None

        length = len(self._tracks)
        if self._random_mode and length > 1:
            # Draw from the length-1 other slots so one draw always suffices
            pick = self._random.randrange(length - 1)
            if pick >= self._current_index:
                pick += 1
            self._current_index = pick
        else:
            self._current_index = (self._current_index + 1) % length
        return self._current_index

    def previous(self, position_s: float = 0.0) -> Optional[PreviousAction]:
        """Handle a "previous" press given the elapsed time in the current track.

        Returns:
            PreviousAction.RESTART when the caller should rewind the current
            track to 0, PreviousAction.CHANGED when the index moved back,
            or None on an empty playlist.
        """
        if self._current_index is None:
            return None
        if position_s > RESTART_THRESHOLD_S:
            return PreviousAction.RESTART
        self._current_index = (self._current_index - 1) % len(self._tracks)
        return PreviousAction.CHANGED

    def jump_to(self, index: int) -> int:
        """Select a track directly.

        Raises:
            IndexOutOfRangeError: If ``index`` is outside [0, len-1].
        """
        if not 0 <= index < len(self._tracks):
            raise IndexOutOfRangeError(index, len(self._tracks))
        self._current_index = index
        return index

    def on_track_ended(self) -> Optional[EndOfTrackAction]:
        """Apply the end-of-track rule: replay when looping, else next()."""
        if self._current_index is None:
            return None
        if self._loop_mode:
            return EndOfTrackAction.REPLAY
        self.next()
        return EndOfTrackAction.ADVANCE

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def set_random_mode(self, enabled: bool) -> None:
        self._random_mode = bool(enabled)

    def set_loop_mode(self, enabled: bool) -> None:
        self._loop_mode = bool(enabled)

    def toggle_random_mode(self) -> bool:
        self._random_mode = not self._random_mode
        return self._random_mode

    def toggle_loop_mode(self) -> bool:
        self._loop_mode = not self._loop_mode
        return self._loop_mode
