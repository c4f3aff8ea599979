"""Audio sink interface and per-track callback subscriptions.

WHY: The engine drives an audio output it does not implement — a browser
audio element, a desktop player, a remote client. Every request to it is
fire-and-forget, and its answers (clock ticks, end of media, metadata,
refused playback) come back later as callbacks. When the track changes,
callbacks still in flight for the old media must not land on the new one.

HOW: AudioSink is an ABC with one method per request. SinkListeners
bundles the controller's four callbacks. A SinkSubscription ties those
listeners to one bound track; the sink emits through the subscription,
and cancel() turns every later emission into a no-op. MemorySink is an
in-process sink that records requests and lets tests (and the HTTP
server) inject callbacks.

RULES:
- Sink methods are requests; none returns a result
- A sink holds at most one subscription; attach() replaces, detach() drops
- A cancelled subscription never forwards another callback
- To add a real backend: subclass AudioSink and emit via the subscription
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class SinkListeners:
    """The four callbacks a sink may fire for the bound track."""

    on_clock_tick: Callable[[float], None]
    on_track_ended: Callable[[], None]
    on_metadata_loaded: Callable[[float], None]
    on_play_failed: Callable[[str], None]


class SinkSubscription:
    """Callback registration for exactly one bound track.

    RULES:
    - Created active; cancel() is permanent
    - emit_* forward to the listeners only while active
    - Returns True from emit_* when the callback actually ran
    """

    def __init__(self, track_id: Optional[str], listeners: SinkListeners) -> None:
        self.track_id = track_id
        self._listeners = listeners
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def _forward(self, name: str, *args: Any) -> bool:
        if not self._active:
            logger.debug("Dropped stale %s for track %s", name, self.track_id)
            return False
        getattr(self._listeners, name)(*args)
        return True

    def emit_clock_tick(self, position_s: float) -> bool:
        return self._forward("on_clock_tick", position_s)

    def emit_track_ended(self) -> bool:
        return self._forward("on_track_ended")

    def emit_metadata_loaded(self, duration_s: float) -> bool:
        return self._forward("on_metadata_loaded", duration_s)

    def emit_play_failed(self, reason: str) -> bool:
        return self._forward("on_play_failed", reason)


class AudioSink(ABC):
    """Abstract audio output driven by the TransportController.

    To add a backend:
    1. Subclass AudioSink and implement every request method
    2. Keep the subscription passed to attach()
    3. Report clock/end/metadata/failure through its emit_* methods
    """

    @abstractmethod
    def load(self, source: str) -> None:
        """Point the sink at a new audio locator (stops current media)."""

    @abstractmethod
    def play(self) -> None:
        """Request playback; refusal is reported via emit_play_failed."""

    @abstractmethod
    def pause(self) -> None:
        """Request pause."""

    @abstractmethod
    def seek(self, position_s: float) -> None:
        """Request relocation of the playback position."""

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set the output level in [0, 1]."""

    @abstractmethod
    def attach(self, subscription: SinkSubscription) -> None:
        """Start delivering callbacks through ``subscription``."""

    @abstractmethod
    def detach(self) -> None:
        """Stop delivering callbacks for the current subscription."""


class MemorySink(AudioSink):
    """In-process sink that records requests and replays injected events.

    WHY: Tests need to observe exactly which requests the controller made
    and to fire clock/end/failure callbacks on demand. The HTTP server
    uses the same sink because the real audio lives in a remote client
    that reports its events over the API.

    HOW: Every request is appended to ``calls`` as a (name, *args) tuple
    and mirrored into simple attributes. tick()/finish()/load_metadata()
    emit through the current subscription. fail_next_play() makes the
    next play() request report a failure instead of starting.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self.source: Optional[str] = None
        self.playing = False
        self.position_s = 0.0
        self.volume = 1.0
        self.subscription: Optional[SinkSubscription] = None
        self._fail_reason: Optional[str] = None

    # -- requests -------------------------------------------------------

    def load(self, source: str) -> None:
        self.calls.append(("load", source))
        self.source = source
        self.playing = False
        self.position_s = 0.0

    def play(self) -> None:
        self.calls.append(("play",))
        if self._fail_reason is not None:
            reason, self._fail_reason = self._fail_reason, None
            self.playing = False
            if self.subscription is not None:
                self.subscription.emit_play_failed(reason)
            return
        self.playing = True

    def pause(self) -> None:
        self.calls.append(("pause",))
        self.playing = False

    def seek(self, position_s: float) -> None:
        self.calls.append(("seek", position_s))
        self.position_s = position_s

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))
        self.volume = volume

    def attach(self, subscription: SinkSubscription) -> None:
        self.calls.append(("attach", subscription.track_id))
        self.subscription = subscription

    def detach(self) -> None:
        self.calls.append(("detach",))
        self.subscription = None

    # -- event injection ------------------------------------------------

    def fail_next_play(self, reason: str = "playback was blocked") -> None:
        self._fail_reason = reason

    def tick(self, position_s: float) -> bool:
        self.position_s = position_s
        if self.subscription is None:
            return False
        return self.subscription.emit_clock_tick(position_s)

    def finish(self) -> bool:
        self.playing = False
        if self.subscription is None:
            return False
        return self.subscription.emit_track_ended()

    def load_metadata(self, duration_s: float) -> bool:
        if self.subscription is None:
            return False
        return self.subscription.emit_metadata_loaded(duration_s)

    def report_play_failed(self, reason: str) -> bool:
        self.playing = False
        if self.subscription is None:
            return False
        return self.subscription.emit_play_failed(reason)

    def names(self) -> List[str]:
        """Request names in order, for compact assertions."""
        return [call[0] for call in self.calls]
