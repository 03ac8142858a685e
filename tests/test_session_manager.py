import asyncio
import os
import sys

import httpx
import pytest

# Add root directory to path so we can import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chemviz.models.auth_models import SessionState
from chemviz.services.session_manager import SessionManager
from chemviz.services.token_storage import FileTokenStorage, MemoryTokenStorage
from chemviz.utils.exceptions import RefreshFailedError
from helpers import BASE_URL, FakeBackend, build_stack, reply

REFRESH_PATH = "/api/auth/refresh/"


def test_restores_tokens_from_storage():
    """啟動時從儲存區還原"""
    _, session, _, _ = build_stack(
        FakeBackend(), {"access_token": "AT0", "refresh_token": "RT0"}
    )

    assert session.state == SessionState.AUTHENTICATED
    assert session.authorization_value() == "Bearer AT0"
    assert session.has_refresh_token


def test_anonymous_without_tokens():
    _, session, _, _ = build_stack(FakeBackend())

    assert session.state == SessionState.ANONYMOUS
    assert session.authorization_value() == ""
    assert not session.has_refresh_token


def test_store_keeps_previous_refresh_token():
    storage, session, _, _ = build_stack(FakeBackend())

    session.store("AT1", "RT1")
    session.store("AT2")

    assert storage.data == {"access_token": "AT2", "refresh_token": "RT1"}
    assert session.credential.refresh_token == "RT1"
    assert session.authorization_value() == "Bearer AT2"


def test_clear_is_idempotent():
    storage, session, _, _ = build_stack(
        FakeBackend(), {"access_token": "AT0", "refresh_token": "RT0"}
    )

    session.clear()
    session.clear()

    assert storage.data == {}
    assert session.state == SessionState.ANONYMOUS
    assert session.credential.access_token is None


@pytest.mark.asyncio
async def test_refresh_success_stores_new_access_token():
    backend = FakeBackend().add("POST", REFRESH_PATH, reply(json={"access": "AT2"}))
    storage, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    token = await session.refresh()

    assert token == "AT2"
    assert storage.data == {"access_token": "AT2", "refresh_token": "RT1"}
    (request,) = backend.calls(REFRESH_PATH)
    assert request.content == b""
    assert "refresh_token=RT1" in request.headers.get("cookie", "")
    assert "authorization" not in request.headers


@pytest.mark.asyncio
async def test_refresh_picks_up_rotated_refresh_token():
    backend = FakeBackend().add(
        "POST", REFRESH_PATH, reply(json={"access": "AT2", "refresh": "RT2"})
    )
    storage, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    await session.refresh()

    assert storage.data["refresh_token"] == "RT2"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        reply(401, json={"detail": "Token is invalid or expired"}),
        reply(200, json={"detail": "no token here"}),
        reply(200, content=b"<html>oops</html>"),
    ],
)
async def test_refresh_failure_clears_session(response):
    backend = FakeBackend().add("POST", REFRESH_PATH, response)
    storage, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    with pytest.raises(RefreshFailedError):
        await session.refresh()

    assert storage.data == {}
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_refresh_network_error_clears_session():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend = FakeBackend().add("POST", REFRESH_PATH, boom)
    storage, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    with pytest.raises(RefreshFailedError) as exc_info:
        await session.refresh()

    assert exc_info.value.code == "REFRESH_FAILED"
    assert storage.data == {}


@pytest.mark.asyncio
async def test_refresh_without_refresh_token_fails_without_request():
    backend = FakeBackend()
    _, session, _, _ = build_stack(backend, {"access_token": "AT1"})

    with pytest.raises(RefreshFailedError):
        await session.refresh()

    assert backend.requests == []
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_concurrent_refresh_is_single_flight():
    """同時多個刷新請求只送出一次"""

    async def slow_refresh(request):
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"access": "AT2"})

    backend = FakeBackend().add("POST", REFRESH_PATH, slow_refresh)
    _, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    first = asyncio.ensure_future(session.refresh())
    await asyncio.sleep(0)
    assert session.state == SessionState.REFRESHING

    results = await asyncio.gather(first, session.refresh(), session.refresh())

    assert results == ["AT2", "AT2", "AT2"]
    assert len(backend.calls(REFRESH_PATH)) == 1
    assert session.state == SessionState.AUTHENTICATED


@pytest.mark.asyncio
async def test_sequential_refreshes_each_send_a_request():
    backend = FakeBackend().add(
        "POST",
        REFRESH_PATH,
        reply(json={"access": "AT2"}),
        reply(json={"access": "AT3"}),
    )
    _, session, _, _ = build_stack(
        backend, {"access_token": "AT1", "refresh_token": "RT1"}
    )

    assert await session.refresh() == "AT2"
    assert await session.refresh() == "AT3"
    assert len(backend.calls(REFRESH_PATH)) == 2


def test_file_token_storage_persists_across_instances(tmp_path):
    path = str(tmp_path / "nested" / "session.json")
    client = httpx.AsyncClient()

    first = SessionManager(FileTokenStorage(path), client, BASE_URL)
    first.store("AT1", "RT1")

    second = SessionManager(FileTokenStorage(path), client, BASE_URL)
    assert second.credential.access_token == "AT1"
    assert second.credential.refresh_token == "RT1"

    second.clear()
    assert FileTokenStorage(path).get("access_token") is None
    assert FileTokenStorage(path).get("refresh_token") is None


def test_file_token_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    storage = FileTokenStorage(str(path))

    assert storage.get("access_token") is None
    storage.set("access_token", "AT1")
    assert storage.get("access_token") == "AT1"


def test_memory_storage_remove_missing_key():
    storage = MemoryTokenStorage()
    storage.remove("access_token")
    assert storage.data == {}
