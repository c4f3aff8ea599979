"""Tests for the FastAPI player API.

WHY: Remote clients (browser page, kiosk) drive the player only through
these endpoints. Status codes and the session payload are the contract
they render from, so each route is exercised end to end.

HOW: FastAPI TestClient against the module-level app. The session store
is reset before each test. Sink events are posted the way a client's
audio element would report them.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- Each test is independent; the store is reset before and after
- Tests cover: happy paths, 400 bad request, 404 no session, 422 bad index
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import SAMPLE_SRT
from lyricsync import __version__
from lyricsync.server.app import app, session_store


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_session_store():
    """Drop any session before and after each test."""
    session_store.reset()
    yield
    session_store.reset()


@pytest.fixture
def client():
    return TestClient(app)


def _payload(n: int = 3, **kwargs):
    tracks = [
        {
            "id": f"t{i}",
            "audio_source": f"https://cdn.example/audio/{i}.mp3",
            "caption_text": SAMPLE_SRT if i == 0 else None,
            "title": f"Song {i}",
        }
        for i in range(n)
    ]
    body = {"tracks": tracks}
    body.update(kwargs)
    return body


@pytest.fixture
def session(client):
    resp = client.post("/session", json=_payload())
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Health and session lifecycle
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health_without_session(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__, "session_active": False}

    def test_health_with_session(self, client, session):
        assert client.get("/health").json()["session_active"] is True


class TestSessionLifecycle:
    """POST/GET/DELETE /session."""

    def test_start_session(self, session):
        assert session["current_index"] == 0
        assert session["track_count"] == 3
        assert session["current_track"]["id"] == "t0"
        assert session["transport"]["is_playing"] is False
        assert session["position_label"] == "1 of 3 • Sequential"
        assert session["active_caption"] is None

    def test_start_random_with_clamped_index(self, client):
        resp = client.post("/session", json=_payload(mode="random", start_index=9))
        body = resp.json()
        assert body["current_index"] == 2
        assert body["random_mode"] is True

    def test_legacy_all_mode_is_sequential(self, client):
        resp = client.post("/session", json=_payload(mode="all"))
        assert resp.status_code == 201
        assert resp.json()["random_mode"] is False

    def test_unknown_mode_rejected(self, client):
        resp = client.post("/session", json=_payload(mode="shuffle"))
        assert resp.status_code == 400
        assert "Unknown playback mode" in resp.json()["detail"]

    def test_empty_tracks_rejected_and_session_kept(self, client, session):
        client.post("/session/next")
        resp = client.post("/session", json={"tracks": []})
        assert resp.status_code == 400
        body = client.get("/session").json()
        assert body["current_index"] == 1
        assert body["track_count"] == 3

    def test_get_without_session_is_404(self, client):
        resp = client.get("/session")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No active player session"

    def test_delete_session(self, client, session):
        assert client.delete("/session").status_code == 204
        assert client.get("/session").status_code == 404
        assert client.delete("/session").status_code == 404

    def test_commands_without_session_are_404(self, client):
        for path in ("/session/play", "/session/next", "/session/mute"):
            assert client.post(path).status_code == 404


# ---------------------------------------------------------------------------
# Keyboard surface
# ---------------------------------------------------------------------------


class TestKeys:
    """POST /session/keys."""

    def test_space_plays(self, client, session):
        resp = client.post("/session/keys", json={"key": " "})
        body = resp.json()
        assert body["command"] == "toggle_play"
        assert body["handled"] is True
        assert body["prevent_default"] is True
        assert body["session"]["transport"]["is_playing"] is True

    def test_text_field_ignored(self, client, session):
        body = client.post("/session/keys", json={"key": " ", "in_text_field": True}).json()
        assert body["handled"] is False
        assert body["prevent_default"] is False
        assert body["session"]["transport"]["is_playing"] is False

    def test_escape_ends_session(self, client, session):
        body = client.post("/session/keys", json={"key": "Escape"}).json()
        assert body["command"] == "exit"
        assert body["session"] is None
        assert client.get("/session").status_code == 404

    def test_volume_keys(self, client, session):
        client.post("/session/volume", json={"volume": 0.05})
        body = client.post("/session/keys", json={"key": "ArrowDown"}).json()
        assert body["session"]["transport"]["volume"] == 0.0
        assert body["session"]["transport"]["is_muted"] is True
        body = client.post("/session/keys", json={"key": "ArrowUp"}).json()
        assert body["session"]["transport"]["volume"] == pytest.approx(0.1)
        assert body["session"]["transport"]["is_muted"] is False


# ---------------------------------------------------------------------------
# Transport and playlist commands
# ---------------------------------------------------------------------------


class TestTransport:
    def test_toggle_play(self, client, session):
        assert client.post("/session/play").json()["transport"]["is_playing"] is True
        assert client.post("/session/play").json()["transport"]["is_playing"] is False

    def test_seek_absolute_relative_and_caption(self, client, session):
        client.post("/session/events/metadata", json={"track_id": "t0", "duration_s": 40.0})
        body = client.post("/session/seek", json={"position_s": 11.0}).json()
        assert body["transport"]["position_s"] == 11.0
        assert body["active_caption"]["sequence_index"] == 3
        body = client.post("/session/seek", json={"delta_s": -10.0}).json()
        assert body["transport"]["position_s"] == 1.0
        body = client.post("/session/seek", json={"caption": 5}).json()
        assert body["transport"]["position_s"] == 30.0

    def test_seek_unknown_caption_is_422(self, client, session):
        assert client.post("/session/seek", json={"caption": 77}).status_code == 422

    def test_mute(self, client, session):
        body = client.post("/session/mute").json()
        assert body["transport"]["is_muted"] is True
        assert body["transport"]["volume"] == 1.0

    def test_next_previous(self, client, session):
        assert client.post("/session/next").json()["current_index"] == 1
        assert client.post("/session/previous").json()["current_index"] == 0

    def test_jump(self, client, session):
        assert client.post("/session/jump", json={"index": 2}).json()["current_index"] == 2

    def test_jump_out_of_range_is_422(self, client, session):
        resp = client.post("/session/jump", json={"index": 3})
        assert resp.status_code == 422
        assert "out of range" in resp.json()["detail"]
        assert client.get("/session").json()["current_index"] == 0

    def test_modes(self, client, session):
        body = client.post("/session/modes", json={"loop": True}).json()
        assert body["loop_mode"] is True
        assert body["random_mode"] is False
        body = client.post("/session/modes", json={"random": True}).json()
        assert body["loop_mode"] is True
        assert body["position_label"] == "1 of 3 • Random"


# ---------------------------------------------------------------------------
# Sink events
# ---------------------------------------------------------------------------


class TestSinkEvents:
    def test_tick_updates_position_and_caption(self, client, session):
        body = client.post("/session/events/tick", json={"track_id": "t0", "position_s": 2.0}).json()
        assert body["transport"]["position_s"] == 2.0
        assert body["active_caption"]["text"] == "Hello darkness"

    def test_metadata(self, client, session):
        body = client.post("/session/events/metadata", json={"track_id": "t0", "duration_s": 215.5}).json()
        assert body["transport"]["duration_s"] == 215.5

    def test_ended_advances(self, client, session):
        client.post("/session/play")
        client.post("/session/events/tick", json={"track_id": "t0", "position_s": 31.0})
        body = client.post("/session/events/ended", json={"track_id": "t0"}).json()
        assert body["current_index"] == 1
        assert body["transport"]["position_s"] == 0.0
        assert body["transport"]["is_playing"] is True
        assert body["active_caption"] is None

    def test_ended_with_loop_replays(self, client, session):
        client.post("/session/modes", json={"loop": True})
        client.post("/session/events/tick", json={"track_id": "t0", "position_s": 31.0})
        body = client.post("/session/events/ended", json={"track_id": "t0"}).json()
        assert body["current_index"] == 0
        assert body["transport"]["position_s"] == 0.0

    def test_play_failed(self, client, session):
        client.post("/session/play")
        body = client.post("/session/events/play-failed", json={"track_id": "t0", "reason": "autoplay blocked"}).json()
        assert body["transport"]["is_playing"] is False
        assert body["notice"] == "autoplay blocked"

    def test_late_ended_from_previous_track_is_dropped(self, client, session):
        client.post("/session/play")
        assert client.post("/session/next").json()["current_index"] == 1
        body = client.post("/session/events/ended", json={"track_id": "t0"}).json()
        assert body["current_index"] == 1
        assert body["transport"]["is_playing"] is True

    def test_late_tick_from_previous_track_is_dropped(self, client, session):
        client.post("/session/events/tick", json={"track_id": "t0", "position_s": 150.0})
        client.post("/session/next")
        body = client.post("/session/events/tick", json={"track_id": "t0", "position_s": 151.0}).json()
        assert body["transport"]["position_s"] == 0.0
        body = client.post("/session/events/tick", json={"track_id": "t1", "position_s": 1.5}).json()
        assert body["transport"]["position_s"] == 1.5

    def test_late_metadata_and_failure_are_dropped(self, client, session):
        client.post("/session/play")
        client.post("/session/next")
        client.post("/session/events/metadata", json={"track_id": "t0", "duration_s": 99.0})
        body = client.post("/session/events/play-failed", json={"track_id": "t0"}).json()
        assert body["transport"]["duration_s"] == 0.0
        assert body["transport"]["is_playing"] is True
        assert body["notice"] is None

    def test_event_without_track_id_is_422(self, client, session):
        resp = client.post("/session/events/tick", json={"position_s": 1.0})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Captions
# ---------------------------------------------------------------------------


class TestCaptions:
    def test_captions_at_start(self, client, session):
        body = client.get("/session/captions").json()
        assert body["position_s"] == 0.0
        assert body["active"] is None
        assert [c["sequence_index"] for c in body["upcoming"]] == [1, 2]
        assert [c["state"] for c in body["captions"]] == [
            "upcoming",
            "upcoming",
            "upcoming",
            "future",
            "future",
        ]

    def test_captions_mid_track(self, client, session):
        client.post("/session/events/tick", json={"track_id": "t0", "position_s": 11.0})
        body = client.get("/session/captions", params={"upcoming": 3}).json()
        assert body["active"]["sequence_index"] == 3
        assert [c["sequence_index"] for c in body["upcoming"]] == [4, 5]
        assert body["captions"][2]["state"] == "current"
        assert body["captions"][2]["text"] == "I've come to talk\nwith you again"

    def test_track_without_lyrics(self, client, session):
        client.post("/session/next")
        body = client.get("/session/captions").json()
        assert body["captions"] == []
        assert body["upcoming"] == []
