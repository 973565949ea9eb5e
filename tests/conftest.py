"""Test fixtures for ytmctrl tests."""

import asyncio
import json
import os
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import WSMsgType, web
from aiohttp.test_utils import TestServer

from ytmctrl.api.client import YtmClient
from ytmctrl.core.state import StateStore
from ytmctrl.notify import Severity

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

VALID_TOKEN = "secret-token"


def song_dict(**overrides: Any) -> dict[str, Any]:
    """Return a song object as the remote player sends it."""
    song: dict[str, Any] = {
        "title": "Weird Fishes",
        "artist": "Radiohead",
        "album": "In Rainbows",
        "songDuration": 318,
        "imageSrc": "https://lh3.googleusercontent.com/cover.jpg",
        "url": "https://music.youtube.com/watch?v=abc123",
        "videoId": "abc123",
        "playlistId": "PL123",
        "mediaType": "AUDIO",
        "tags": ["alt", "rock"],
        "isPaused": False,
        "elapsedSeconds": 12,
        "views": 1000,
    }
    song.update(overrides)
    return song


class MemoryTokenStore:
    """In-memory TokenStore with optional failures."""

    def __init__(self, token: str | None = None, fail: bool = False) -> None:
        self.data: dict[str, str] = {}
        if token is not None:
            self.data["access_token"] = token
        self.fail = fail
        self.gets = 0

    async def get(self, key: str) -> str | None:
        self.gets += 1
        if self.fail:
            raise OSError("store unavailable")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("store unavailable")
        self.data[key] = value

    async def delete(self, key: str) -> None:
        if self.fail:
            raise OSError("store unavailable")
        self.data.pop(key, None)


class RecordingNotifier:
    """Notifier recording every notification."""

    def __init__(self) -> None:
        self.notifications: list[tuple[str, str, Severity]] = []

    def notify(self, title: str, body: str, severity: Severity) -> None:
        self.notifications.append((title, body, severity))


@dataclass
class FakePlayer:
    """State and knobs of the fake remote player."""

    song: dict[str, Any] | None = field(default_factory=song_dict)
    shuffle: bool = False
    repeat: str = "NONE"
    volume: int = 50
    require_auth: bool = True
    deny_auth: bool = False
    auth_delay: float = 0.0
    always_unauthorized: bool = False
    fail_status: int | None = None
    ws_messages: list[Any] = field(default_factory=list)
    ws_hold_open: bool = False
    auth_requests: int = 0
    ws_connections: int = 0
    commands: list[tuple[str, Any]] = field(default_factory=list)
    seen_tokens: list[str | None] = field(default_factory=list)


def build_app(player: FakePlayer) -> web.Application:
    """Build an aiohttp application emulating the remote player's API."""

    def authorized(request: web.Request) -> bool:
        header = request.headers.get("Authorization")
        player.seen_tokens.append(header)
        if player.always_unauthorized:
            return False
        return not player.require_auth or header == f"Bearer {VALID_TOKEN}"

    async def auth(request: web.Request) -> web.Response:
        player.auth_requests += 1
        if player.auth_delay:
            await asyncio.sleep(player.auth_delay)
        if player.deny_auth:
            return web.Response(status=403, text="denied")
        return web.json_response({"accessToken": VALID_TOKEN})

    async def command(request: web.Request) -> web.Response:
        if not authorized(request):
            return web.Response(status=401, text="Unauthorized")
        if player.fail_status is not None:
            return web.Response(status=player.fail_status, text="remote failure")
        name = request.match_info["name"]
        body = await request.json() if request.can_read_body else None
        player.commands.append((name, body))
        if name == "toggle-play" and player.song is not None:
            player.song["isPaused"] = not player.song["isPaused"]
        elif name == "shuffle":
            player.shuffle = not player.shuffle
        elif name == "seek-to" and player.song is not None:
            player.song["elapsedSeconds"] = body["seconds"]
        elif name == "volume":
            player.volume = body["volume"]
        return web.Response(status=204)

    async def query(request: web.Request) -> web.Response:
        if not authorized(request):
            return web.Response(status=401, text="Unauthorized")
        if player.fail_status is not None:
            return web.Response(status=player.fail_status, text="remote failure")
        name = request.match_info["name"]
        if name == "song":
            if player.song is None:
                return web.Response(status=204)
            return web.json_response(player.song)
        if name == "shuffle":
            return web.json_response({"state": player.shuffle})
        if name == "repeat-mode":
            return web.json_response({"mode": player.repeat})
        if name == "volume":
            return web.json_response({"state": player.volume})
        return web.Response(status=404, text="not found")

    async def websocket(request: web.Request) -> web.WebSocketResponse:
        player.ws_connections += 1
        player.seen_tokens.append(request.headers.get("Authorization"))
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        for message in player.ws_messages:
            text = message if isinstance(message, str) else json.dumps(message)
            await ws.send_str(text)
        if player.ws_hold_open:
            async for msg in ws:
                if msg.type == WSMsgType.CLOSE:
                    break
        await ws.close()
        return ws

    app = web.Application()
    app.router.add_post("/auth/{client}", auth)
    app.router.add_get("/api/v1/ws", websocket)
    app.router.add_post("/api/v1/{name}", command)
    app.router.add_get("/api/v1/{name}", query)
    return app


@pytest.fixture
def make_song() -> Callable[..., dict[str, Any]]:
    """Return a factory for remote song objects."""
    return song_dict


@pytest.fixture
def valid_token() -> str:
    """Return the token the fake remote player grants."""
    return VALID_TOKEN


@pytest.fixture
def fake_player() -> FakePlayer:
    """Return a fresh fake remote player."""
    return FakePlayer()


@pytest.fixture
def token_store() -> MemoryTokenStore:
    """Return an empty in-memory token store."""
    return MemoryTokenStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Return a notifier that records notifications."""
    return RecordingNotifier()


@pytest.fixture
def store(qapp: Any) -> StateStore:
    """Return a fresh StateStore."""
    return StateStore()


@pytest_asyncio.fixture
async def remote(fake_player: FakePlayer) -> AsyncGenerator[TestServer, None]:
    """Serve the fake remote player on a random local port."""
    server = TestServer(build_app(fake_player))
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def client(
    remote: TestServer,
    token_store: MemoryTokenStore,
    notifier: RecordingNotifier,
) -> AsyncGenerator[YtmClient, None]:
    """Return an open YtmClient pointed at the fake remote player."""
    assert remote.port is not None
    async with YtmClient(
        remote.host, remote.port, token_store=token_store, notifier=notifier, timeout=5.0
    ) as ytm:
        yield ytm
