"""Thread-safe holder for the single remote player session.

WHY: The engine assumes run-to-completion: one callback finishes before
the next begins. FastAPI runs sync endpoints on a worker thread pool, so
a clock tick and a key press can arrive at the same moment. Funnelling
every engine call through one lock restores the single-threaded model.

HOW: PlayerSessionStore owns one MemorySink and one TransportController
(created lazily). start() loads a playback request; session() is a
context manager that holds the lock for the duration of one engine call
and yields the controller; end() tears the session down.

RULES:
- All controller access happens inside the store's lock
- start() validates before touching any state; a bad request leaves the
  previous session running untouched
- A session that exited (Escape / end()) counts as no session
- session() raises SessionNotFoundError when there is no active session
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from lyricsync.core.models import PlaybackRequest
from lyricsync.core.playlist import PlaylistState, RandomSource
from lyricsync.transport.controller import TransportController
from lyricsync.transport.sink import AudioSink, MemorySink

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a command arrives while no player session is active."""


class PlayerSessionStore:
    """Lock-guarded owner of the remote player's controller and sink."""

    def __init__(
        self,
        sink_factory: Callable[[], AudioSink] = MemorySink,
        random_source: Optional[RandomSource] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._sink_factory = sink_factory
        self._random_source = random_source
        self._sink: Optional[AudioSink] = None
        self._controller: Optional[TransportController] = None

    def _active(self) -> Optional[TransportController]:
        controller = self._controller
        if controller is None or controller.exit_requested or controller.playlist.is_empty:
            return None
        return controller

    @property
    def has_session(self) -> bool:
        with self._lock:
            return self._active() is not None

    @property
    def sink(self) -> Optional[AudioSink]:
        return self._sink

    def start(self, request: PlaybackRequest) -> TransportController:
        """Load a playback request, replacing any running session.

        Raises:
            InvalidRequestError: If the request has no tracks.
        """
        request.validate()
        with self._lock:
            if self._controller is None:
                self._sink = self._sink_factory()
                self._controller = TransportController(
                    self._sink,
                    playlist=PlaylistState(random_source=self._random_source),
                )
            self._controller.load(request)
            logger.info("Started player session with %d track(s)", len(request.tracks))
            return self._controller

    @contextmanager
    def session(self) -> Iterator[TransportController]:
        """Hold the lock and yield the active controller."""
        with self._lock:
            controller = self._active()
            if controller is None:
                raise SessionNotFoundError("No active player session")
            yield controller

    def end(self) -> bool:
        """End the active session; False when there was none."""
        with self._lock:
            controller = self._active()
            if controller is None:
                return False
            controller.request_exit()
            return True

    def reset(self) -> None:
        """Drop the controller and sink entirely."""
        with self._lock:
            self._controller = None
            self._sink = None
