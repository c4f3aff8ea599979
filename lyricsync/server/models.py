"""Pydantic request/response models for the player HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Requests mirror engine inputs (playback request, key press, seek,
volume, sink events). Responses flatten the controller's state into
plain JSON. Conversion helpers turn core dataclasses into responses.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- An empty track list is NOT rejected here; the engine raises
  InvalidRequestError and the route maps it to 400
- Response models never expose the sink or subscription objects
"""

from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from pydantic import BaseModel, Field

from lyricsync.core.caption_index import CaptionState
from lyricsync.core.models import Caption, PlaybackMode, PlaybackRequest, Track
from lyricsync.transport.controller import TransportController


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TrackModel(BaseModel):
    """One playable track in a playback request."""

    id: str = Field(description="Opaque catalog identity of the track.")
    audio_source: str = Field(description="Locator the client's audio sink can load.")
    caption_text: Optional[str] = Field(
        default=None,
        description="Raw SRT lyric text, if the track has lyrics.",
    )
    title: str = Field(default="", description="Display title.")
    category: str = Field(default="other", description="Catalog category.")
    image_url: Optional[str] = Field(default=None, description="Cover image URL.")
    duration_s: Optional[float] = Field(
        default=None,
        description="Duration recorded by the catalog, in seconds.",
    )

    def to_track(self) -> Track:
        return Track(
            id=self.id,
            audio_source=self.audio_source,
            caption_text=self.caption_text,
            title=self.title,
            category=self.category,
            image_url=self.image_url,
            duration_s=self.duration_s,
        )


class PlaybackRequestModel(BaseModel):
    """Playlist, mode and starting index for a new session."""

    tracks: List[TrackModel] = Field(description="Tracks in play order.")
    mode: str = Field(
        default="sequential",
        description="'sequential' (or legacy 'all') or 'random'.",
    )
    start_index: int = Field(
        default=0,
        description="Index of the first track; clamped into range.",
    )

    def to_request(self) -> PlaybackRequest:
        return PlaybackRequest(
            tracks=[t.to_track() for t in self.tracks],
            mode=PlaybackMode.parse(self.mode),
            start_index=self.start_index,
        )


class KeyPressRequest(BaseModel):
    """A key press forwarded by the client."""

    key: str = Field(description="DOM KeyboardEvent.key value, e.g. 'ArrowLeft'.")
    shift: bool = Field(default=False, description="Shift held.")
    ctrl: bool = Field(default=False, description="Ctrl held.")
    alt: bool = Field(default=False, description="Alt held.")
    meta: bool = Field(default=False, description="Meta/Cmd held.")
    in_text_field: bool = Field(
        default=False,
        description="True when focus is inside a text-entry field.",
    )


class SeekRequest(BaseModel):
    """Absolute or relative seek; exactly one field should be set."""

    position_s: Optional[float] = Field(default=None, description="Absolute target in seconds.")
    delta_s: Optional[float] = Field(default=None, description="Relative offset in seconds.")
    caption: Optional[int] = Field(
        default=None,
        description="Seek to the start of the caption with this sequence number.",
    )


class VolumeRequest(BaseModel):
    volume: float = Field(description="Volume level; clamped to [0, 1].")


class JumpRequest(BaseModel):
    index: int = Field(description="Playlist index to select.")


class ModesRequest(BaseModel):
    random: Optional[bool] = Field(default=None, description="Set random mode.")
    loop: Optional[bool] = Field(default=None, description="Set loop mode.")


class SinkEvent(BaseModel):
    """Base for audio element events; events for any other track are dropped."""

    track_id: str = Field(description="Id of the track whose media raised the event.")


class ClockTickEvent(SinkEvent):
    position_s: float = Field(description="Current sink position in seconds.")


class MetadataEvent(SinkEvent):
    duration_s: float = Field(description="Media duration reported by the sink.")


class TrackEndedEvent(SinkEvent):
    pass


class PlayFailedEvent(SinkEvent):
    reason: str = Field(default="playback was blocked", description="Sink error message.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CaptionModel(BaseModel):
    sequence_index: int = Field(description="Caption identity from the SRT source.")
    start: float = Field(description="Start in seconds.")
    end: float = Field(description="End in seconds.")
    text: str = Field(description="Caption text; may contain newlines.")

    @classmethod
    def from_caption(cls, caption: Caption) -> CaptionModel:
        return cls(
            sequence_index=caption.sequence_index,
            start=caption.start,
            end=caption.end,
            text=caption.text,
        )


class CaptionStateModel(CaptionModel):
    state: CaptionState = Field(description="past, current, upcoming or future.")


class TransportModel(BaseModel):
    is_playing: bool
    position_s: float
    duration_s: float
    volume: float
    is_muted: bool


class SessionResponse(BaseModel):
    """Full player state for rendering."""

    transport: TransportModel
    current_index: Optional[int] = Field(description="Selected playlist index.")
    track_count: int
    current_track: Optional[TrackModel]
    random_mode: bool
    loop_mode: bool
    position_label: str = Field(description="Header text, e.g. '2 of 5 • Random'.")
    active_caption: Optional[CaptionModel]
    notice: Optional[str] = Field(
        default=None,
        description="Last non-fatal playback notice (e.g. autoplay blocked).",
    )

    @classmethod
    def from_controller(cls, controller: TransportController) -> SessionResponse:
        state = controller.state
        playlist = controller.playlist
        track = playlist.current_track
        active = controller.active_caption
        notice = controller.last_notice
        return cls(
            transport=TransportModel(
                is_playing=state.is_playing,
                position_s=state.position_s,
                duration_s=state.duration_s,
                volume=state.volume,
                is_muted=state.is_muted,
            ),
            current_index=playlist.current_index,
            track_count=len(playlist),
            current_track=TrackModel(**asdict(track)) if track is not None else None,
            random_mode=playlist.random_mode,
            loop_mode=playlist.loop_mode,
            position_label=playlist.position_label(),
            active_caption=CaptionModel.from_caption(active) if active is not None else None,
            notice=notice.reason if notice is not None else None,
        )


class CaptionsResponse(BaseModel):
    position_s: float
    active: Optional[CaptionModel]
    upcoming: List[CaptionModel]
    captions: List[CaptionStateModel]


class KeyResponse(BaseModel):
    command: Optional[str] = Field(description="Command that ran, if any.")
    handled: bool
    prevent_default: bool = Field(description="Client must suppress the key's default action.")
    session: Optional[SessionResponse] = Field(
        default=None,
        description="State after the command; null once the session has exited.",
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'ok' when the server is running.")
    version: str
    session_active: bool


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error message.")
