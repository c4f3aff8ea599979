"""FastAPI application exposing a remote-controlled player session.

WHY: A thin client (browser page, kiosk, phone) owns the real audio
element and the screen, but the playback rules live in the engine. The
client forwards user input and sink events here and renders the state
it gets back, so every client behaves identically.

HOW: One module-level PlayerSessionStore holds the session. Each route
enters store.session() (which holds the lock for the whole engine call),
runs one controller operation and returns a SessionResponse. Engine
errors are mapped to HTTP status codes by exception handlers.

RULES:
- Routes are sync (def) and serialised by the store lock
- InvalidRequestError → 400, SessionNotFoundError → 404,
  IndexOutOfRangeError → 422
- Error responses use the ErrorResponse schema ({"detail": ...})
- Sink events (/events/*) come from the client's audio element and carry
  the track_id they belong to; events for a track that is no longer bound
  are dropped
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from lyricsync import __version__
from lyricsync.config import DEFAULT_UPCOMING_COUNT, SERVER_HOST, SERVER_PORT
from lyricsync.core.errors import IndexOutOfRangeError, InvalidRequestError
from lyricsync.server.models import (
    CaptionModel,
    CaptionsResponse,
    CaptionStateModel,
    ClockTickEvent,
    ErrorResponse,
    HealthResponse,
    JumpRequest,
    KeyPressRequest,
    KeyResponse,
    MetadataEvent,
    ModesRequest,
    PlaybackRequestModel,
    PlayFailedEvent,
    SeekRequest,
    SessionResponse,
    SinkEvent,
    TrackEndedEvent,
    VolumeRequest,
)
from lyricsync.server.session import PlayerSessionStore, SessionNotFoundError
from lyricsync.transport.keyboard import KeyEvent, dispatch_key

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = PlayerSessionStore()

app = FastAPI(
    title="lyricsync player API",
    description=(
        "Remote control for a synced-lyrics player session. Start a session "
        "with a playlist, forward key presses and audio element events, and "
        "read back transport state and the active lyric line."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid playback request"},
    404: {"model": ErrorResponse, "description": "No active session"},
}


@app.exception_handler(InvalidRequestError)
async def _invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SessionNotFoundError)
async def _no_session_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(IndexOutOfRangeError)
async def _out_of_range_handler(request: Request, exc: IndexOutOfRangeError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unexpected_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["health"])
def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        session_active=session_store.has_session,
    )


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


@app.post(
    "/session",
    response_model=SessionResponse,
    status_code=201,
    tags=["session"],
    summary="Start a player session",
    description=(
        "Replace any running session with a new playlist. An empty track "
        "list is rejected with 400 and the previous session keeps playing."
    ),
    responses=_ERRORS,
)
def start_session(body: PlaybackRequestModel) -> SessionResponse:
    session_store.start(body.to_request())
    with session_store.session() as controller:
        return SessionResponse.from_controller(controller)


@app.get("/session", response_model=SessionResponse, tags=["session"], responses=_ERRORS)
def get_session() -> SessionResponse:
    with session_store.session() as controller:
        return SessionResponse.from_controller(controller)


@app.delete("/session", status_code=204, tags=["session"], responses=_ERRORS)
def end_session() -> Response:
    if not session_store.end():
        raise SessionNotFoundError("No active player session")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Keyboard surface
# ---------------------------------------------------------------------------


@app.post("/session/keys", response_model=KeyResponse, tags=["input"], responses=_ERRORS)
def press_key(body: KeyPressRequest) -> KeyResponse:
    event = KeyEvent(
        key=body.key,
        shift=body.shift,
        ctrl=body.ctrl,
        alt=body.alt,
        meta=body.meta,
    )
    with session_store.session() as controller:
        result = dispatch_key(controller, event, in_text_field=body.in_text_field)
        session: Optional[SessionResponse] = None
        if not controller.exit_requested:
            session = SessionResponse.from_controller(controller)
    return KeyResponse(
        command=result.command.value if result.command is not None else None,
        handled=result.handled,
        prevent_default=result.prevent_default,
        session=session,
    )


# ---------------------------------------------------------------------------
# Transport commands
# ---------------------------------------------------------------------------


@app.post("/session/play", response_model=SessionResponse, tags=["transport"], responses=_ERRORS)
def toggle_play() -> SessionResponse:
    with session_store.session() as controller:
        controller.toggle_play()
        return SessionResponse.from_controller(controller)


@app.post("/session/seek", response_model=SessionResponse, tags=["transport"], responses=_ERRORS)
def seek(body: SeekRequest) -> SessionResponse:
    with session_store.session() as controller:
        if body.caption is not None:
            controller.seek_to_caption(body.caption)
        elif body.position_s is not None:
            controller.seek(body.position_s)
        elif body.delta_s is not None:
            controller.seek_relative(body.delta_s)
        return SessionResponse.from_controller(controller)


@app.post("/session/volume", response_model=SessionResponse, tags=["transport"], responses=_ERRORS)
def set_volume(body: VolumeRequest) -> SessionResponse:
    with session_store.session() as controller:
        controller.set_volume(body.volume)
        return SessionResponse.from_controller(controller)


@app.post("/session/mute", response_model=SessionResponse, tags=["transport"], responses=_ERRORS)
def toggle_mute() -> SessionResponse:
    with session_store.session() as controller:
        controller.toggle_mute()
        return SessionResponse.from_controller(controller)


@app.post("/session/next", response_model=SessionResponse, tags=["playlist"], responses=_ERRORS)
def next_track() -> SessionResponse:
    with session_store.session() as controller:
        controller.next_track()
        return SessionResponse.from_controller(controller)


@app.post("/session/previous", response_model=SessionResponse, tags=["playlist"], responses=_ERRORS)
def previous_track() -> SessionResponse:
    with session_store.session() as controller:
        controller.previous_track()
        return SessionResponse.from_controller(controller)


@app.post("/session/jump", response_model=SessionResponse, tags=["playlist"], responses=_ERRORS)
def jump(body: JumpRequest) -> SessionResponse:
    with session_store.session() as controller:
        controller.jump_to(body.index)
        return SessionResponse.from_controller(controller)


@app.post("/session/modes", response_model=SessionResponse, tags=["playlist"], responses=_ERRORS)
def set_modes(body: ModesRequest) -> SessionResponse:
    with session_store.session() as controller:
        if body.random is not None:
            controller.set_random_mode(body.random)
        if body.loop is not None:
            controller.set_loop_mode(body.loop)
        return SessionResponse.from_controller(controller)


# ---------------------------------------------------------------------------
# Sink events from the client's audio element
# ---------------------------------------------------------------------------


def _emit(event: SinkEvent, name: str, *args) -> SessionResponse:
    """Deliver a sink event through the bound track's subscription.

    RULES:
    - Events tagged with any track other than the bound one are dropped
      and the session is returned unchanged
    """
    with session_store.session() as controller:
        sink = session_store.sink
        bound = sink.subscription.track_id if sink.subscription is not None else None
        if event.track_id != bound:
            logger.debug(
                "Dropped stale %s for track %s (bound: %s)", name, event.track_id, bound
            )
        else:
            getattr(sink, name)(*args)
        return SessionResponse.from_controller(controller)


@app.post("/session/events/tick", response_model=SessionResponse, tags=["events"], responses=_ERRORS)
def clock_tick(body: ClockTickEvent) -> SessionResponse:
    return _emit(body, "tick", body.position_s)


@app.post("/session/events/metadata", response_model=SessionResponse, tags=["events"], responses=_ERRORS)
def metadata_loaded(body: MetadataEvent) -> SessionResponse:
    return _emit(body, "load_metadata", body.duration_s)


@app.post("/session/events/ended", response_model=SessionResponse, tags=["events"], responses=_ERRORS)
def track_ended(body: TrackEndedEvent) -> SessionResponse:
    return _emit(body, "finish")


@app.post("/session/events/play-failed", response_model=SessionResponse, tags=["events"], responses=_ERRORS)
def play_failed(body: PlayFailedEvent) -> SessionResponse:
    return _emit(body, "report_play_failed", body.reason)


# ---------------------------------------------------------------------------
# Captions
# ---------------------------------------------------------------------------


@app.get("/session/captions", response_model=CaptionsResponse, tags=["captions"], responses=_ERRORS)
def get_captions(upcoming: int = DEFAULT_UPCOMING_COUNT) -> CaptionsResponse:
    with session_store.session() as controller:
        position = controller.state.position_s
        active = controller.active_caption
        return CaptionsResponse(
            position_s=position,
            active=CaptionModel.from_caption(active) if active is not None else None,
            upcoming=[
                CaptionModel.from_caption(c)
                for c in controller.captions.upcoming(position, upcoming)
            ],
            captions=[
                CaptionStateModel(
                    sequence_index=c.sequence_index,
                    start=c.start,
                    end=c.end,
                    text=c.text,
                    state=state,
                )
                for c, state in controller.captions.states(position)
            ],
        )


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
