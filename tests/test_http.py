"""Tests for the HTTP routes."""
import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import FormData

from lantern_chat.server.main import create_app
from lantern_chat.server.rate_limit import RateLimiter
from lantern_chat.server.relay import Relay
from .conftest import drain

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_root_reports_ok(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_send_message_sets_session_cookie(client, relay):
    resp = client.post("/send", data={"message": "hello"})
    assert resp.status_code == 200
    assert resp.text == "Message sent"
    session_id = resp.cookies.get("session_id")
    assert session_id in relay.sessions

    again = client.post("/send", data={"message": "hello again"})
    assert again.status_code == 200
    assert "session_id" not in again.cookies
    assert len(relay.sessions) == 1


def test_unknown_cookie_gets_a_new_session(client, relay):
    client.cookies.set("session_id", "forged")
    resp = client.post("/set-nickname", data={"nickname": "mallory"})
    assert resp.status_code == 200
    minted = resp.cookies.get("session_id")
    assert minted and minted != "forged"
    assert "forged" not in relay.sessions


@pytest.mark.parametrize("data", [{"message": ""}, {}])
def test_send_empty_message_is_bad_request(client, data):
    resp = client.post("/send", data=data)
    assert resp.status_code == 400


def test_send_too_fast_is_throttled():
    relay = Relay(rate_limiter=RateLimiter(window=60.0, threshold=1))
    with TestClient(create_app(relay)) as client:
        assert client.post("/send", data={"message": "one"}).status_code == 200
        assert client.post("/send", data={"message": "two"}).status_code == 429


def test_set_nickname(client, relay):
    resp = client.post("/set-nickname", data={"nickname": "alice"})
    assert resp.status_code == 200
    session_id = resp.cookies.get("session_id")
    assert resp.text == f"Nickname set to alice for session {session_id}"
    assert relay.sessions.get_nickname(session_id) == "alice"


@pytest.mark.parametrize("nickname", ["", "two words"])
def test_set_nickname_rejects_invalid(client, nickname):
    assert client.post("/set-nickname", data={"nickname": nickname}).status_code == 400


def test_set_nickname_rejects_taken(client):
    assert client.post("/set-nickname", data={"nickname": "alice"}).status_code == 200
    other = TestClient(client.app)
    resp = other.post("/set-nickname", data={"nickname": "alice"})
    assert resp.status_code == 400
    assert "taken" in resp.json()["detail"]


def test_join_and_leave(client):
    assert client.get("/join").status_code == 200
    assert client.get("/leave").status_code == 200
    assert client.post("/leave").status_code == 200


def test_upload_image(client, relay):
    resp = client.post("/upload-image", files={"image": ("a.png", PNG, "image/png")})
    assert resp.status_code == 200
    assert resp.text == "Image uploaded"
    assert len(relay.blobs) == 1


def test_upload_without_image_field(client, monkeypatch):
    closed = []
    original_close = FormData.close

    async def close(form):
        closed.append(form)
        await original_close(form)

    monkeypatch.setattr(FormData, "close", close)
    resp = client.post("/upload-image", files={"photo": ("a.png", PNG, "image/png")})
    assert resp.status_code == 400
    assert closed


def test_upload_with_non_multipart_body(client):
    resp = client.post("/upload-image", data={"image": "not a file"})
    assert resp.status_code == 400


def test_upload_too_large():
    relay = Relay(max_image_bytes=8)
    with TestClient(create_app(relay)) as client:
        resp = client.post("/upload-image", files={"image": ("a.png", PNG, "image/png")})
    assert resp.status_code == 413
    assert len(relay.blobs) == 0


def test_fetch_image(client, relay):
    blob_id = relay.blobs.put(PNG)
    resp = client.get(f"/image/{blob_id}")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.content == PNG


def test_fetch_swept_image_is_not_found(client, relay):
    blob_id = relay.blobs.put(PNG, now=0.0)
    relay.blobs.sweep(now=relay.blobs.ttl)
    assert client.get(f"/image/{blob_id}").status_code == 404
    assert client.get("/image/unknown").status_code == 404


async def _session_of(http):
    resp = await http.get("/join")
    assert resp.status_code == 200
    return resp.cookies.get("session_id")


@pytest.mark.asyncio
async def test_nickname_then_members_over_http(relay, make_async_client):
    http = make_async_client()
    resp = await http.post("/set-nickname", data={"nickname": "alice"})
    assert resp.status_code == 200
    session_id = resp.cookies.get("session_id")
    channel = relay.open_stream(session_id)

    resp = await http.post("/send", data={"message": ";members"})
    assert resp.status_code == 200

    (reply,) = await drain(channel)
    assert reply.private and reply.from_app
    assert f"[alice] ({session_id})" in reply.content


@pytest.mark.asyncio
async def test_whisper_over_http(relay, make_async_client):
    x, y, z = make_async_client(), make_async_client(), make_async_client()
    x_id = await _session_of(x)
    y_id = (await y.post("/set-nickname", data={"nickname": "alice"})).cookies.get("session_id")
    z_id = await _session_of(z)
    channels = [relay.open_stream(session_id) for session_id in (x_id, y_id, z_id)]

    resp = await x.post("/send", data={"message": ";whisper alice hello"})
    assert resp.status_code == 200

    x_got, y_got, z_got = [await drain(channel) for channel in channels]
    assert z_got == []
    assert [m.content for m in x_got] == [m.content for m in y_got] == ["(whisper to @alice) [anonymous]: hello"]
    assert all(m.private for m in x_got + y_got)


@pytest.mark.asyncio
async def test_uploaded_image_is_announced_and_served(relay, make_async_client):
    http = make_async_client()
    session_id = await _session_of(http)
    channel = relay.open_stream(session_id)

    resp = await http.post("/upload-image", files={"image": ("a.png", PNG, "image/png")})
    assert resp.status_code == 200

    (announcement,) = await drain(channel)
    assert announcement.kind.value == "image"
    served = await http.get(f"/image/{announcement.content}")
    assert served.status_code == 200
    assert served.content == PNG
