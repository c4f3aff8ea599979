"""Shared test fixtures for the lyricsync test suite.

WHY: Parser, caption index, controller and server tests all need the
same small lyric track, a handful of tracks and a deterministic random
source. Centralizing them keeps the expected timings in one place.

HOW: SAMPLE_SRT is a five-line track with a gap, a two-line caption and
a block that touches its neighbour at a shared boundary. ScriptedRandom
returns queued values from randrange() so random-mode tests can script
every draw. The controller fixture wires a MemorySink to a fresh
PlaylistState using that source.

RULES:
- Caption timings in SAMPLE_SRT are referenced by many tests; change with care
- ScriptedRandom raises if a test draws more values than it queued
"""

from __future__ import annotations

from typing import List

import pytest

from lyricsync.core.models import PlaybackMode, PlaybackRequest, Track
from lyricsync.core.playlist import PlaylistState
from lyricsync.transport.controller import TransportController
from lyricsync.transport.sink import MemorySink


# ---------------------------------------------------------------------------
# Sample caption track
# ---------------------------------------------------------------------------

# 1: 1.0 - 4.0
# 2: 4.0 - 6.5   (touches 1 at 4.0)
# gap 6.5 - 10.0
# 3: 10.0 - 12.0 (two text lines)
# 4: 15.0 - 18.0
# 5: 30.0 - 33.25
SAMPLE_SRT = """1
00:00:01,000 --> 00:00:04,000
Hello darkness

2
00:00:04,000 --> 00:00:06,500
my old friend

3
00:00:10,000 --> 00:00:12,000
I've come to talk
with you again

4
00:00:15,000 --> 00:00:18,000
Because a vision

5
00:00:30,000 --> 00:00:33,250
softly creeping
"""


class ScriptedRandom:
    """Random source that returns queued values and records each draw."""

    def __init__(self, values: List[int]) -> None:
        self._values = list(values)
        self.draws: List[int] = []

    def randrange(self, stop: int) -> int:
        if not self._values:
            raise AssertionError("ScriptedRandom ran out of values")
        value = self._values.pop(0)
        assert 0 <= value < stop, f"scripted value {value} outside [0, {stop})"
        self.draws.append(stop)
        return value


def make_track(n: int, caption_text: str | None = None) -> Track:
    """Build track ``n`` with a predictable id and audio source."""
    return Track(
        id=f"t{n}",
        audio_source=f"https://cdn.example/audio/{n}.mp3",
        caption_text=caption_text,
        title=f"Song {n}",
    )


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def tracks() -> List[Track]:
    """Three tracks; the first carries SAMPLE_SRT lyrics."""
    return [make_track(0, SAMPLE_SRT), make_track(1), make_track(2)]


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def scripted_random() -> ScriptedRandom:
    return ScriptedRandom([])


@pytest.fixture
def controller(sink, scripted_random) -> TransportController:
    """A controller on a MemorySink with no session loaded."""
    return TransportController(sink, playlist=PlaylistState(random_source=scripted_random))


@pytest.fixture
def loaded_controller(controller, sink, tracks) -> TransportController:
    """Controller with the three sample tracks loaded at index 0 and calls reset."""
    controller.load(PlaybackRequest(tracks=tracks, mode=PlaybackMode.SEQUENTIAL))
    sink.calls.clear()
    return controller
