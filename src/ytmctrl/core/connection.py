"""Event-stream connection manager with capped exponential reconnect.

Owns the WebSocket to the remote player, folds pushed events into the
StateStore and reconnects forever after a loss. While disconnected the
store holds the cleared default state so stale data is never shown.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from enum import StrEnum

import aiohttp

from ytmctrl.api.protocol import parse_message
from ytmctrl.core.backoff import DEFAULT_MAX_DELAY_MS, Backoff
from ytmctrl.core.state import StateStore
from ytmctrl.errors import ProtocolError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]


class ConnectionState(StrEnum):
    """Lifecycle of the event-stream connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """Keep a WebSocket open to the remote player.

    Example:
        manager = ConnectionManager(session, client.ws_url, store)
        manager.start()
        ...
        await manager.stop()
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        store: StateStore,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
        token_provider: TokenProvider | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            session: HTTP session used for the WebSocket handshake.
            url: Event-stream WebSocket URL.
            store: State store receiving events and resets.
            max_delay_ms: Reconnect delay ceiling in milliseconds.
            token_provider: Optional coroutine returning the bearer token.
        """
        self._session = session
        self._url = url
        self._store = store
        self._backoff = Backoff(max_delay_ms)
        self._token_provider = token_provider
        self._state = ConnectionState.DISCONNECTED
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._last_delay_ms: int | None = None
        self._stopped = False

    @property
    def url(self) -> str:
        """Return the WebSocket URL."""
        return self._url

    @property
    def state(self) -> ConnectionState:
        """Return the connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Return True while the socket is open."""
        return self._state is ConnectionState.CONNECTED

    @property
    def attempt(self) -> int:
        """Return the reconnect attempt counter."""
        return self._backoff.attempt

    @property
    def last_delay_ms(self) -> int | None:
        """Return the delay of the most recently scheduled reconnect."""
        return self._last_delay_ms

    @property
    def reconnect_pending(self) -> bool:
        """Return True if a reconnect timer is armed."""
        return self._reconnect_handle is not None and not self._reconnect_handle.cancelled()

    def start(self) -> None:
        """Open the connection unless one is open or already being opened."""
        if self._stopped:
            return
        if self._state is not ConnectionState.DISCONNECTED:
            logger.debug("Connection already %s, ignoring start", self._state)
            return
        self._reconnect_handle = None
        self._state = ConnectionState.CONNECTING
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Close the connection and stop reconnecting."""
        self._stopped = True
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        if self._ws is not None:
            await self._ws.close()
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._ws = None
        self._state = ConnectionState.DISCONNECTED

    async def _run(self) -> None:
        """Connect, read until the socket closes, then schedule a reconnect."""
        try:
            headers: dict[str, str] = {}
            if self._token_provider is not None:
                token = await self._token_provider()
                if token:
                    headers["Authorization"] = f"Bearer {token}"

            self._ws = await self._session.ws_connect(self._url, headers=headers)
            self._on_open()
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._on_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error("WebSocket error: %s", self._ws.exception())
                    break
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            logger.warning("WebSocket connection to %s failed: %s", self._url, e)
        finally:
            if not self._stopped:
                if self._ws is not None and not self._ws.closed:
                    await self._ws.close()
                self._on_close()

    def _on_open(self) -> None:
        logger.info("Connected to WebSocket %s", self._url)
        self._state = ConnectionState.CONNECTED
        self._backoff.reset()
        self._store.set_connected(True)

    def _on_message(self, text: str) -> None:
        try:
            event = parse_message(text)
            self._store.apply_event(event)
        except ProtocolError as e:
            logger.warning("Dropping WebSocket message: %s", e)

    def _on_close(self) -> None:
        self._ws = None
        self._state = ConnectionState.DISCONNECTED
        self._store.reset()
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        delay_ms = self._backoff.next_delay_ms()
        self._last_delay_ms = delay_ms
        logger.info("WebSocket has been disconnected, reconnecting in %dms", delay_ms)
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            delay_ms / 1000, self.start
        )
