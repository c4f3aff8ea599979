"""Transport controller — play/pause/seek/volume/mute and sink callbacks.

WHY: One object has to own the audio sink and the TransportState that
mirrors it, otherwise the UI's idea of position/volume drifts from what
the listener hears. The same object is where clock ticks, end-of-media
and refused playback arrive, and where navigation commands turn into
sink requests.

HOW: TransportController composes a PlaylistState and a CaptionIndex.
User commands update TransportState first and then request the matching
sink effect. Sink callbacks arrive through a SinkSubscription created
for the bound track. _bind_current_track() is the single track-change
transition: it cancels the old subscription and detaches the sink
before anything about the new track is attached.

RULES:
- Every sink request is made from this class; nobody else touches the sink
- seek() clamps to [0, duration]; seek_relative() is seek(position + delta)
- seek_to_caption() skips the upper clamp until the sink reports a duration
- set_volume() clamps to [0, 1]; 0 mutes, anything above 0 unmutes
- toggle_mute() keeps the stored volume and only drives the sink to 0
- on_clock_tick() mirrors position and refreshes captions, nothing else
- A refused play reverts is_playing to False and leaves a notice
- With an empty playlist every transport command is a no-op
- Old-track callbacks are dropped once a new track is bound
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional

from lyricsync.config import DEFAULT_VOLUME, VOLUME_STEP
from lyricsync.core.caption_index import CaptionIndex
from lyricsync.core.errors import IndexOutOfRangeError, SinkPlayFailure
from lyricsync.core.models import Caption, PlaybackRequest, Track, TransportState
from lyricsync.core.playlist import EndOfTrackAction, PlaylistState, PreviousAction
from lyricsync.transport.sink import AudioSink, SinkListeners, SinkSubscription

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class TransportController:
    """Owns TransportState and mediates every playback command.

    Args:
        sink: The audio output. Owned exclusively by this controller.
        playlist: Playlist state machine (a fresh one by default).
        caption_index: Caption tracker for the bound track.
        on_exit: Called after request_exit() has torn the session down.
        on_caption_change: Called with the new active caption (or None)
            whenever the active caption's identity changes.
    """

    def __init__(
        self,
        sink: AudioSink,
        playlist: Optional[PlaylistState] = None,
        caption_index: Optional[CaptionIndex] = None,
        on_exit: Optional[Callable[[], None]] = None,
        on_caption_change: Optional[Callable[[Optional[Caption]], None]] = None,
    ) -> None:
        self._sink = sink
        self._playlist = playlist if playlist is not None else PlaylistState()
        self._captions = caption_index if caption_index is not None else CaptionIndex()
        self._on_exit = on_exit
        self._on_caption_change = on_caption_change
        self._state = TransportState(volume=_clamp(DEFAULT_VOLUME, 0.0, 1.0))
        self._subscription: Optional[SinkSubscription] = None
        self._last_notice: Optional[SinkPlayFailure] = None
        self._exit_requested = False

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> TransportState:
        return self._state.snapshot()

    @property
    def playlist(self) -> PlaylistState:
        return self._playlist

    @property
    def captions(self) -> CaptionIndex:
        return self._captions

    @property
    def active_caption(self) -> Optional[Caption]:
        return self._captions.active

    @property
    def current_track(self) -> Optional[Track]:
        return self._playlist.current_track

    @property
    def last_notice(self) -> Optional[SinkPlayFailure]:
        return self._last_notice

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    def upcoming_captions(self, count: Optional[int] = None) -> List[Caption]:
        if count is None:
            return self._captions.upcoming(self._state.position_s)
        return self._captions.upcoming(self._state.position_s, count)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def load(self, request: PlaybackRequest) -> None:
        """Start a session from a playback request.

        Raises:
            InvalidRequestError: If the request has no tracks. Nothing changes.
        """
        self._playlist.load_request(request)
        self._exit_requested = False
        self._last_notice = None
        self._state.is_playing = False
        self._bind_current_track()

    def request_exit(self) -> None:
        """End the session: pause, release the sink, forget the playlist."""
        if self._playlist.current_index is not None and self._state.is_playing:
            self._sink.pause()
        self._release_subscription()
        self._playlist.clear()
        self._captions.clear()
        self._state.is_playing = False
        self._state.position_s = 0.0
        self._state.duration_s = 0.0
        self._exit_requested = True
        logger.info("Player session exit requested")
        if self._on_exit is not None:
            self._on_exit()

    # ------------------------------------------------------------------
    # Transport commands
    # ------------------------------------------------------------------

    def toggle_play(self) -> bool:
        """Flip play/pause and request the matching sink effect.

        Returns:
            The new is_playing value (False stays False on an empty playlist).
        """
        if self._playlist.is_empty:
            return False
        if self._state.is_playing:
            self._state.is_playing = False
            self._sink.pause()
        else:
            self._state.is_playing = True
            self._last_notice = None
            self._sink.play()
        return self._state.is_playing

    def seek(self, target_s: float) -> float:
        """Move playback to ``target_s`` clamped to [0, duration]."""
        if self._playlist.is_empty:
            return self._state.position_s
        return self._relocate(_clamp(float(target_s), 0.0, self._state.duration_s))

    def seek_relative(self, delta_s: float) -> float:
        return self.seek(self._state.position_s + delta_s)

    def seek_to_caption(self, sequence_index: int) -> float:
        """Seek to the start of a caption identified by its sequence number.

        RULES:
        - Clamped like seek() once the sink has reported a duration
        - Before that, the caption start is used as-is so a lyric click
          still lands on its line

        Raises:
            IndexOutOfRangeError: If the bound track has no such caption.
        """
        caption = self._captions.find(sequence_index)
        if caption is None:
            raise IndexOutOfRangeError(sequence_index, len(self._captions))
        if self._state.duration_s > 0.0:
            return self.seek(caption.start)
        return self._relocate(caption.start)

    def set_volume(self, volume: float) -> float:
        """Set the volume (clamped to [0, 1]); 0 mutes, above 0 unmutes."""
        level = _clamp(float(volume), 0.0, 1.0)
        self._state.volume = level
        self._state.is_muted = level == 0.0
        self._sink.set_volume(level)
        return level

    def step_volume(self, delta: float) -> float:
        # Rounding keeps repeated 0.1 steps from drifting (0.7000000000000001)
        return self.set_volume(round(self._state.volume + delta, 6))

    def toggle_mute(self) -> bool:
        """Mute to 0 keeping the stored volume, or restore it on unmute."""
        if self._state.is_muted:
            if self._state.volume == 0.0:
                self._state.volume = _clamp(VOLUME_STEP, 0.0, 1.0)
            self._state.is_muted = False
            self._sink.set_volume(self._state.volume)
        else:
            self._state.is_muted = True
            self._sink.set_volume(0.0)
        return self._state.is_muted

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_track(self) -> Optional[int]:
        if self._playlist.next() is None:
            return None
        self._bind_current_track()
        return self._playlist.current_index

    def previous_track(self) -> Optional[PreviousAction]:
        action = self._playlist.previous(self._state.position_s)
        if action is PreviousAction.RESTART:
            self._restart_in_place()
        elif action is PreviousAction.CHANGED:
            self._bind_current_track()
        return action

    def jump_to(self, index: int) -> int:
        """Select a playlist entry directly.

        Raises:
            IndexOutOfRangeError: If ``index`` is outside the playlist.
        """
        self._playlist.jump_to(index)
        self._bind_current_track()
        return index

    def set_random_mode(self, enabled: bool) -> None:
        self._playlist.set_random_mode(enabled)

    def set_loop_mode(self, enabled: bool) -> None:
        self._playlist.set_loop_mode(enabled)

    def toggle_random(self) -> bool:
        return self._playlist.toggle_random_mode()

    def toggle_loop(self) -> bool:
        return self._playlist.toggle_loop_mode()

    # ------------------------------------------------------------------
    # Sink callbacks
    # ------------------------------------------------------------------

    def on_clock_tick(self, position_s: float) -> None:
        """Mirror the sink clock and refresh the active caption."""
        if position_s is None or math.isnan(position_s):
            return
        self._state.position_s = max(0.0, float(position_s))
        self._refresh_captions()

    def on_metadata_loaded(self, duration_s: float) -> None:
        if duration_s is None or math.isnan(duration_s) or math.isinf(duration_s):
            duration_s = 0.0
        self._state.duration_s = max(0.0, float(duration_s))

    def on_track_ended(self) -> None:
        """Apply the end-of-track rule: replay when looping, else advance."""
        action = self._playlist.on_track_ended()
        if action is EndOfTrackAction.REPLAY:
            logger.debug("Looping track %s", self._track_id())
            self._state.is_playing = True
            self._restart_in_place()
            self._sink.play()
        elif action is EndOfTrackAction.ADVANCE:
            self._state.is_playing = True
            self._bind_current_track()

    def on_play_failed(self, reason: str) -> None:
        """Revert to paused when the sink refuses to start."""
        self._state.is_playing = False
        self._last_notice = SinkPlayFailure(reason=reason, track_id=self._track_id())
        logger.warning("Playback failed to start for track %s: %s", self._track_id(), reason)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _track_id(self) -> Optional[str]:
        track = self._playlist.current_track
        return track.id if track is not None else None

    def _refresh_captions(self, force_notify: bool = False) -> None:
        changed = self._captions.update(self._state.position_s)
        if not (changed or force_notify):
            return
        active = self._captions.active
        logger.debug(
            "Active caption -> %s",
            active.sequence_index if active is not None else None,
        )
        if self._on_caption_change is not None:
            self._on_caption_change(active)

    def _relocate(self, position: float) -> float:
        self._state.position_s = position
        self._sink.seek(position)
        self._refresh_captions()
        return position

    def _restart_in_place(self) -> None:
        self._state.position_s = 0.0
        self._sink.seek(0.0)
        self._refresh_captions()

    def _release_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
            self._sink.detach()

    def _bind_current_track(self) -> None:
        """Swap the sink over to the playlist's current track."""
        track = self._playlist.current_track
        resume = self._state.is_playing
        had_caption = self._captions.active is not None

        self._release_subscription()
        self._state.position_s = 0.0
        self._state.duration_s = 0.0
        self._captions.load_text(track.caption_text if track is not None else None)
        # Identities are per track, so a line showing before the swap is stale
        self._refresh_captions(force_notify=had_caption)
        if track is None:
            self._state.is_playing = False
            return

        self._subscription = SinkSubscription(
            track.id,
            SinkListeners(
                on_clock_tick=self.on_clock_tick,
                on_track_ended=self.on_track_ended,
                on_metadata_loaded=self.on_metadata_loaded,
                on_play_failed=self.on_play_failed,
            ),
        )
        self._sink.load(track.audio_source)
        self._sink.set_volume(0.0 if self._state.is_muted else self._state.volume)
        self._sink.attach(self._subscription)
        logger.info(
            "Bound track %s (%s) with %d caption(s)",
            track.id,
            self._playlist.position_label(),
            len(self._captions),
        )
        if resume:
            self._sink.play()
