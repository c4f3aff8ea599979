"""Unit tests for the playlist state machine.

WHY: Selection bugs (a shuffle repeating the current song, a wrong wrap,
a bad jump that corrupts the index) are what users notice first. Every
PlaylistState transition is covered here without any sink or clock.

HOW: Tests are organized by class, one per concern:
  - TestLoad: loading, clamping, empty requests
  - TestSequential: next/previous wrap-around
  - TestRandom: no-repeat draws with a scripted random source
  - TestJump: direct selection and range errors
  - TestEndOfTrack: loop vs advance
  - TestModes: toggles leave the index alone
  - TestEmpty: every navigation call is a no-op

RULES:
- Random draws come from ScriptedRandom so each test is deterministic
"""

from __future__ import annotations

import random

import pytest

from conftest import ScriptedRandom, make_track
from lyricsync.config import RESTART_THRESHOLD_S
from lyricsync.core.errors import IndexOutOfRangeError, InvalidRequestError
from lyricsync.core.models import PlaybackMode, PlaybackRequest
from lyricsync.core.playlist import EndOfTrackAction, PlaylistState, PreviousAction


def _playlist(n: int = 3, start: int = 0, random_mode: bool = False, draws=None) -> PlaylistState:
    playlist = PlaylistState(random_source=ScriptedRandom(draws or []))
    playlist.load([make_track(i) for i in range(n)], start_index=start, random_mode=random_mode)
    return playlist


# ---------------------------------------------------------------------------
# TestLoad
# ---------------------------------------------------------------------------


class TestLoad:
    """load() replaces the playlist and selects a clamped start index."""

    def test_selects_start_index(self):
        playlist = _playlist(3, start=1)
        assert playlist.current_index == 1
        assert playlist.current_track.id == "t1"
        assert len(playlist) == 3

    @pytest.mark.parametrize("start, expected", [(-5, 0), (3, 2), (99, 2)])
    def test_start_index_clamped(self, start, expected):
        assert _playlist(3, start=start).current_index == expected

    def test_keeps_track_order(self):
        playlist = _playlist(4)
        assert [t.id for t in playlist.tracks] == ["t0", "t1", "t2", "t3"]

    def test_empty_load_raises_and_keeps_state(self):
        playlist = _playlist(3, start=2)
        playlist.set_loop_mode(True)
        with pytest.raises(InvalidRequestError):
            playlist.load([])
        assert playlist.current_index == 2
        assert len(playlist) == 3
        assert playlist.loop_mode is True

    def test_load_request_random_mode(self):
        playlist = PlaylistState(random_source=ScriptedRandom([]))
        request = PlaybackRequest(
            tracks=[make_track(0), make_track(1)],
            mode=PlaybackMode.RANDOM,
            start_index=1,
        )
        assert playlist.load_request(request) == 1
        assert playlist.random_mode is True

    def test_load_resets_loop_mode(self):
        playlist = _playlist(3)
        playlist.set_loop_mode(True)
        playlist.load([make_track(5)])
        assert playlist.loop_mode is False

    def test_position_label(self):
        playlist = _playlist(5, start=1, random_mode=True)
        assert playlist.position_label() == "2 of 5 • Random"
        playlist.set_random_mode(False)
        assert playlist.position_label() == "2 of 5 • Sequential"

    def test_clear(self):
        playlist = _playlist(3)
        playlist.clear()
        assert playlist.is_empty
        assert playlist.current_index is None
        assert playlist.position_label() == "0 of 0"


# ---------------------------------------------------------------------------
# TestSequential
# ---------------------------------------------------------------------------


class TestSequential:
    """Sequential next/previous with wrap-around."""

    def test_next_steps_forward(self):
        playlist = _playlist(3)
        assert playlist.next() == 1
        assert playlist.next() == 2

    def test_next_wraps_to_zero(self):
        playlist = _playlist(3, start=2)
        assert playlist.next() == 0

    def test_single_track_next_stays(self):
        playlist = _playlist(1)
        assert playlist.next() == 0

    def test_previous_near_start_steps_back(self):
        playlist = _playlist(3, start=2)
        assert playlist.previous(position_s=1.0) is PreviousAction.CHANGED
        assert playlist.current_index == 1

    def test_previous_wraps_to_last(self):
        playlist = _playlist(3, start=0)
        assert playlist.previous(position_s=0.0) is PreviousAction.CHANGED
        assert playlist.current_index == 2

    def test_previous_at_threshold_still_changes(self):
        playlist = _playlist(3, start=1)
        assert playlist.previous(position_s=RESTART_THRESHOLD_S) is PreviousAction.CHANGED
        assert playlist.current_index == 0

    def test_previous_past_threshold_restarts(self):
        playlist = _playlist(3, start=1)
        assert playlist.previous(position_s=RESTART_THRESHOLD_S + 0.5) is PreviousAction.RESTART
        assert playlist.current_index == 1


# ---------------------------------------------------------------------------
# TestRandom
# ---------------------------------------------------------------------------


class TestRandom:
    """Random next() never repeats the current track."""

    def test_draw_below_current_is_used_directly(self):
        playlist = _playlist(5, start=3, random_mode=True, draws=[1])
        assert playlist.next() == 1

    def test_draw_at_or_above_current_is_shifted(self):
        playlist = _playlist(5, start=2, random_mode=True, draws=[2, 3])
        assert playlist.next() == 3
        assert playlist.next() == 4

    def test_single_draw_over_other_slots(self):
        source = ScriptedRandom([0])
        playlist = PlaylistState(random_source=source)
        playlist.load([make_track(i) for i in range(4)], random_mode=True)
        playlist.next()
        assert source.draws == [3]

    def test_two_tracks_alternate(self):
        playlist = _playlist(2, start=0, random_mode=True, draws=[0, 0, 0])
        assert [playlist.next() for _ in range(3)] == [1, 0, 1]

    def test_single_track_does_not_draw(self):
        playlist = _playlist(1, random_mode=True)
        assert playlist.next() == 0

    def test_never_repeats_with_real_random(self):
        playlist = PlaylistState(random_source=random.Random(1234))
        playlist.load([make_track(i) for i in range(5)], random_mode=True)
        previous = playlist.current_index
        for _ in range(500):
            current = playlist.next()
            assert current != previous
            assert 0 <= current < 5
            previous = current


# ---------------------------------------------------------------------------
# TestJump
# ---------------------------------------------------------------------------


class TestJump:
    """jump_to() selects directly or raises without changing state."""

    def test_jump_selects(self):
        playlist = _playlist(3)
        assert playlist.jump_to(2) == 2
        assert playlist.current_index == 2

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_out_of_range_raises(self, index):
        playlist = _playlist(3, start=1)
        with pytest.raises(IndexOutOfRangeError) as excinfo:
            playlist.jump_to(index)
        assert excinfo.value.index == index
        assert excinfo.value.length == 3
        assert playlist.current_index == 1


# ---------------------------------------------------------------------------
# TestEndOfTrack
# ---------------------------------------------------------------------------


class TestEndOfTrack:
    """on_track_ended() replays when looping and advances otherwise."""

    def test_loop_replays_same_index(self):
        playlist = _playlist(3, start=1)
        playlist.set_loop_mode(True)
        assert playlist.on_track_ended() is EndOfTrackAction.REPLAY
        assert playlist.current_index == 1

    def test_advance_sequential(self):
        playlist = _playlist(3, start=2)
        assert playlist.on_track_ended() is EndOfTrackAction.ADVANCE
        assert playlist.current_index == 0

    def test_advance_random_uses_random_next(self):
        playlist = _playlist(3, start=0, random_mode=True, draws=[1])
        assert playlist.on_track_ended() is EndOfTrackAction.ADVANCE
        assert playlist.current_index == 2


# ---------------------------------------------------------------------------
# TestModes / TestEmpty
# ---------------------------------------------------------------------------


class TestModes:
    """Mode changes never move the current index."""

    def test_toggles(self):
        playlist = _playlist(3, start=2)
        assert playlist.toggle_random_mode() is True
        assert playlist.toggle_loop_mode() is True
        assert playlist.toggle_random_mode() is False
        assert playlist.current_index == 2


class TestEmpty:
    """An unloaded playlist ignores navigation."""

    def test_navigation_is_noop(self):
        playlist = PlaylistState()
        assert playlist.is_empty
        assert playlist.current_track is None
        assert playlist.next() is None
        assert playlist.previous(10.0) is None
        assert playlist.on_track_ended() is None

    def test_jump_on_empty_raises(self):
        with pytest.raises(IndexOutOfRangeError):
            PlaylistState().jump_to(0)
