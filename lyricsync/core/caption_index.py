"""Caption queries — active caption, lookahead window, and display state.

WHY: The audio clock fires many times per second and every tick asks
"which lyric line is on now?". The answer must be deterministic when
captions overlap or touch at a boundary, and "nothing" must be a normal
answer during instrumental gaps. Lyric panels additionally need to colour
each line as past / current / upcoming / future.

HOW: Pure functions over a start-sorted caption list do the resolving.
A linear first-match scan gives the earliest-starting caption on
overlaps; track-local lists are small enough that nothing is cached.
CaptionIndex wraps the current track's list for the controller and
remembers the last active caption only to report identity changes.

RULES:
- Active: first caption in sorted order with start <= t <= end (inclusive)
- Overlaps resolve to the earliest-starting caption
- No containing interval → None (valid steady state)
- upcoming_window is recomputed on every call, never cached
- Display state is classified per caption on every update:
    current  — same identity as the active caption
    past     — end < t
    upcoming — t < start <= t + UPCOMING_HORIZON_S
    future   — everything else
"""

from __future__ import annotations

import enum
import math
from typing import Iterable, List, Optional, Sequence, Tuple

from lyricsync.config import DEFAULT_UPCOMING_COUNT, UPCOMING_HORIZON_S
from lyricsync.core.models import Caption, CaptionContext
from lyricsync.core.srt_parser import parse_srt


class CaptionState(str, enum.Enum):
    """Display classification of a caption relative to playback time."""

    PAST = "past"
    CURRENT = "current"
    UPCOMING = "upcoming"
    FUTURE = "future"


def active_caption(captions: Sequence[Caption], time: float) -> Optional[Caption]:
    """Return the caption on screen at ``time``, or None during a gap.

    Args:
        captions: Captions sorted ascending by start.
        time: Playback position in seconds.

    Returns:
        The first caption (earliest start) whose closed interval contains
        ``time``, or None.
    """
    for caption in captions:
        if caption.start > time:
            # Sorted by start: nothing later can contain time
            return None
        if caption.end >= time:
            return caption
    return None


def next_caption(captions: Sequence[Caption], time: float) -> Optional[Caption]:
    """Return the first caption starting strictly after ``time``."""
    for caption in captions:
        if caption.start > time:
            return caption
    return None


def upcoming_window(
    captions: Sequence[Caption],
    time: float,
    count: int = DEFAULT_UPCOMING_COUNT,
) -> List[Caption]:
    """Return the next ``count`` captions with start > ``time``, in order."""
    if count <= 0:
        return []
    window: List[Caption] = []
    for caption in captions:
        if caption.start > time:
            window.append(caption)
            if len(window) == count:
                break
    return window


def classify_caption(
    caption: Caption,
    time: float,
    active: Optional[Caption],
) -> CaptionState:
    """Classify one caption for display given the time and active caption."""
    if active is not None and caption.sequence_index == active.sequence_index:
        return CaptionState.CURRENT
    if caption.end < time:
        return CaptionState.PAST
    if time < caption.start <= time + UPCOMING_HORIZON_S:
        return CaptionState.UPCOMING
    return CaptionState.FUTURE


def classify_all(
    captions: Sequence[Caption],
    time: float,
) -> List[Tuple[Caption, CaptionState]]:
    """Resolve the active caption once and classify every caption against it."""
    active = active_caption(captions, time)
    return [(caption, classify_caption(caption, time, active)) for caption in captions]


def find_by_sequence_index(
    captions: Iterable[Caption],
    sequence_index: int,
) -> Optional[Caption]:
    """Look a caption up by its source identity (used for click-to-seek)."""
    for caption in captions:
        if caption.sequence_index == sequence_index:
            return caption
    return None


def caption_context(captions: Sequence[Caption], sequence_index: int) -> CaptionContext:
    """Return a caption with its sorted-order neighbours.

    RULES:
    - previous / next are the adjacent captions in start order
    - upcoming holds up to two captions after the current one
    - An unknown identity yields an empty CaptionContext
    """
    for position, caption in enumerate(captions):
        if caption.sequence_index == sequence_index:
            return CaptionContext(
                current=caption,
                previous=captions[position - 1] if position > 0 else None,
                next=captions[position + 1] if position + 1 < len(captions) else None,
                upcoming=list(captions[position + 1:position + 3]),
            )
    return CaptionContext()


def format_caption_time(seconds: float) -> str:
    """Format seconds as "m:ss" for lyric and progress labels."""
    if seconds is None or math.isnan(seconds) or seconds < 0:
        return "0:00"
    minutes, secs = divmod(int(seconds), 60)
    return "{}:{:02d}".format(minutes, secs)


class CaptionIndex:
    """Active-caption tracker for the track currently bound to the transport.

    WHY: The controller recomputes the active caption on every clock tick
    but listeners only care when the line actually changes. Reporting
    identity changes (not every recompute) keeps a lyric view from
    re-rendering on each tick or flickering at a shared boundary.

    HOW: Holds the parsed caption tuple for one track. update(t) resolves
    the active caption with active_caption() and compares identities with
    the previous result.

    RULES:
    - Captions are replaced wholesale on track change (load_text / clear)
    - update() returns True only when the active identity changed
    - upcoming() / states() always reflect the time they are given
    """

    def __init__(self, captions: Iterable[Caption] = ()) -> None:
        self._captions: Tuple[Caption, ...] = tuple(sorted(captions, key=lambda c: c.start))
        self._active: Optional[Caption] = None

    @property
    def captions(self) -> Tuple[Caption, ...]:
        return self._captions

    @property
    def active(self) -> Optional[Caption]:
        return self._active

    def __len__(self) -> int:
        return len(self._captions)

    def load_text(self, caption_text: Optional[str]) -> None:
        """Replace the captions by parsing a track's raw SRT text."""
        self._captions = tuple(parse_srt(caption_text or ""))
        self._active = None

    def clear(self) -> None:
        self._captions = ()
        self._active = None

    def update(self, time: float) -> bool:
        """Recompute the active caption; return True if its identity changed."""
        resolved = active_caption(self._captions, time)
        old_id = self._active.sequence_index if self._active is not None else None
        new_id = resolved.sequence_index if resolved is not None else None
        self._active = resolved
        return old_id != new_id

    def upcoming(self, time: float, count: int = DEFAULT_UPCOMING_COUNT) -> List[Caption]:
        return upcoming_window(self._captions, time, count)

    def states(self, time: float) -> List[Tuple[Caption, CaptionState]]:
        return classify_all(self._captions, time)

    def find(self, sequence_index: int) -> Optional[Caption]:
        return find_by_sequence_index(self._captions, sequence_index)
