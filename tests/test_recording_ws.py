"""Live recording over the WebSocket endpoint."""

from __future__ import annotations

import asyncio

import pytest
from fastapi import WebSocketDisconnect

from audio_memory.main import app


class BurstTimer:
    """Fires three ticks as soon as the event loop is free."""

    ticks = 3

    def __init__(self, callback) -> None:
        loop = asyncio.get_running_loop()
        self._handles = [loop.call_soon(callback) for _ in range(self.ticks)]

    def cancel(self) -> None:
        for handle in self._handles:
            handle.cancel()


@pytest.fixture
def recorder(visitor, make_code):
    app.state.timer_factory = BurstTimer
    make_code("abc12345")
    return visitor


def _record(ws, chunks=(b"chunk-1", b"chunk-2")):
    ws.send_json({"action": "start", "permission": "granted"})
    started = ws.receive_json()
    assert started["type"] == "state"
    assert started["state"] == "recording"

    ticks = [ws.receive_json() for _ in range(BurstTimer.ticks)]
    assert [tick["type"] for tick in ticks] == ["tick"] * 3
    assert ticks[-1]["display"] == "0:03"

    for chunk in chunks:
        ws.send_bytes(chunk)
    ws.send_json({"action": "stop"})
    stopped = ws.receive_json()
    assert stopped["state"] == "reviewing"
    return stopped


def test_anonymous_socket_is_rejected(client, make_code):
    make_code("abc12345")

    with client.websocket_connect("/qr/abc12345/record") as ws:
        assert ws.receive_json()["code"] == "unauthenticated"


def test_unknown_code_socket_is_rejected(visitor):
    with visitor.websocket_connect("/qr/missing0/record") as ws:
        assert ws.receive_json()["code"] == "not_found"


def test_record_stop_discard_leaves_no_attachment(recorder, object_store):
    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        assert ws.receive_json()["state"] == "idle"

        stopped = _record(ws)
        preview = recorder.get(stopped["preview_url"])
        assert preview.content == b"chunk-1chunk-2"
        assert preview.headers["content-type"] == "audio/webm"

        ws.send_json({"action": "discard"})
        discarded = ws.receive_json()

    assert discarded["state"] == "idle"
    assert discarded["display"] == "0:00"
    assert discarded["preview_url"] is None
    assert recorder.get(stopped["preview_url"]).status_code == 404
    assert object_store.blobs == {}
    assert recorder.get("/qr/abc12345/state").json()["view"] == "uploader"


def test_record_and_save_attaches_audio(recorder, object_store):
    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        _record(ws)

        ws.send_json({"action": "save"})
        uploading = ws.receive_json()
        saved = ws.receive_json()

    assert uploading["type"] == "state"
    assert uploading["state"] == "uploading"
    assert saved["type"] == "saved"
    assert saved["state"] == "idle"
    [key] = object_store.blobs
    assert key.endswith(".webm")
    assert object_store.blobs[key] == (b"chunk-1chunk-2", "audio/webm")

    state = recorder.get("/qr/abc12345/state").json()
    assert state == {
        "token": "abc12345",
        "view": "player",
        "audio_url": saved["attachment_url"],
    }


def test_failed_save_keeps_preview(recorder, object_store):
    object_store.fail = True

    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        stopped = _record(ws)

        ws.send_json({"action": "save"})
        assert ws.receive_json()["state"] == "uploading"
        failed = ws.receive_json()

        assert failed["type"] == "error"
        assert failed["code"] == "storage_write_failed"
        assert failed["state"] == "reviewing"
        assert failed["preview_url"] == stopped["preview_url"]
        assert recorder.get(stopped["preview_url"]).status_code == 200


def test_socket_closes_once_audio_is_saved(recorder, object_store):
    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        _record(ws)
        ws.send_json({"action": "save"})
        ws.receive_json()
        assert ws.receive_json()["type"] == "saved"

        with pytest.raises(WebSocketDisconnect) as closed:
            ws.receive_json()

    assert closed.value.code == 4409
    assert len(object_store.blobs) == 1

    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        assert ws.receive_json()["code"] == "already_attached"


def test_save_refused_when_file_upload_won(visitor, make_code, attach_audio, object_store):
    app.state.timer_factory = BurstTimer
    code = make_code("abc12345")

    with visitor.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        _record(ws)
        attach_audio(code)

        ws.send_json({"action": "save"})
        ws.receive_json()
        refused = ws.receive_json()

    assert refused["type"] == "error"
    assert refused["code"] == "already_attached"
    assert refused["state"] == "reviewing"
    assert object_store.blobs == {}


def test_denied_microphone(recorder):
    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        ws.send_json({"action": "start", "permission": "denied"})
        event = ws.receive_json()

    assert event["type"] == "error"
    assert event["code"] == "capability_denied"
    assert event["state"] == "idle"


def test_out_of_order_commands_are_reported(recorder):
    with recorder.websocket_connect("/qr/abc12345/record") as ws:
        ws.receive_json()
        ws.send_json({"action": "stop"})
        invalid = ws.receive_json()
        ws.send_text("not json")
        unknown = ws.receive_json()

    assert invalid["code"] == "invalid_transition"
    assert invalid["state"] == "idle"
    assert unknown["code"] == "invalid_command"
