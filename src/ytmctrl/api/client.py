"""HTTP client for the remote player's REST API.

All playback commands are ``POST`` requests under ``/api/<version>``;
queries are ``GET`` requests returning JSON. A ``401`` answer is the only
trigger for re-authentication.
"""

import json
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Self, cast

import aiohttp

from ytmctrl.api.auth import Authenticator, TokenStore
from ytmctrl.errors import AuthError, NetworkError, ProtocolError, RemoteApiError
from ytmctrl.models.player_state import RepeatMode
from ytmctrl.models.track import NowPlaying
from ytmctrl.notify import Notifier

logger = logging.getLogger(__name__)

DEFAULT_PORT = 26538
DEFAULT_API_VERSION = "v1"
DEFAULT_CLIENT_NAME = "ytmctrl"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ApiResponse:
    """Status and body of one HTTP exchange.

    Attributes:
        status: HTTP status code.
        text: Response body text.
    """

    status: int
    text: str = ""

    @property
    def ok(self) -> bool:
        """Return True for 2xx responses."""
        return 200 <= self.status < 300  # noqa: PLR2004

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ProtocolError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON response: {e}") from e


class YtmClient:
    """Async client for the remote player's HTTP API.

    Example:
        async with YtmClient("localhost", token_store=store, notifier=notifier) as client:
            now = await client.get_song()
            await client.toggle_play()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        token_store: TokenStore,
        notifier: Notifier,
        api_version: str = DEFAULT_API_VERSION,
        client_name: str = DEFAULT_CLIENT_NAME,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            host: Remote player hostname or IP.
            port: Remote API port.
            token_store: Persistence for the access token.
            notifier: Sink for authentication failure notifications.
            api_version: API version path segment.
            client_name: Name presented in the consent prompt.
            timeout: Per-request timeout in seconds.
        """
        self._host = host
        self._port = port
        self._token_store = token_store
        self._notifier = notifier
        self._api_version = api_version
        self._client_name = client_name
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None
        self._auth: Authenticator | None = None

    @property
    def host(self) -> str:
        """Return remote host."""
        return self._host

    @property
    def port(self) -> int:
        """Return remote port."""
        return self._port

    @property
    def api_url(self) -> str:
        """Return the versioned API base URL."""
        return f"http://{self._host}:{self._port}/api/{self._api_version}"

    @property
    def ws_url(self) -> str:
        """Return the event-stream WebSocket URL."""
        return f"ws://{self._host}:{self._port}/api/{self._api_version}/ws"

    @property
    def auth_url(self) -> str:
        """Return the auth endpoint URL."""
        return f"http://{self._host}:{self._port}/auth/{self._client_name}"

    @property
    def is_open(self) -> bool:
        """Return True if the HTTP session is open."""
        return self._session is not None and not self._session.closed

    @property
    def session(self) -> aiohttp.ClientSession:
        """Return the open HTTP session.

        Raises:
            NetworkError: If the client is not open.
        """
        if self._session is None or self._session.closed:
            raise NetworkError("Client is not open")
        return self._session

    @property
    def authenticator(self) -> Authenticator:
        """Return the authenticator bound to the open session."""
        if self._auth is None:
            raise NetworkError("Client is not open")
        return self._auth

    async def __aenter__(self) -> Self:
        """Enter async context (open session)."""
        await self.open()
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context (close session)."""
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session and authenticator."""
        if self.is_open:
            return
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self._timeout),
        )
        self._auth = Authenticator(
            self._session, self.auth_url, self._token_store, self._notifier
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None
            self._auth = None

    async def get_token(self) -> str | None:
        """Return the cached access token, if any."""
        return await self.authenticator.get_token()

    async def _send(self, path: str, method: str, body: dict[str, Any] | None) -> ApiResponse:
        """Send one request, returning its status for every HTTP answer.

        Raises:
            NetworkError: If the request could not be completed.
        """
        headers: dict[str, str] = {}
        token = await self.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = self.api_url + path
        logger.debug("%s %s", method, url)
        try:
            async with self.session.request(method, url, json=body, headers=headers) as resp:
                return ApiResponse(status=resp.status, text=await resp.text())
        except (aiohttp.ClientError, TimeoutError) as e:
            raise NetworkError(f"{method} {path} failed: {str(e) or type(e).__name__}") from e

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Send an authenticated request, re-authenticating once on 401.

        Args:
            path: Path below the versioned API base, e.g. ``/toggle-play``.
            method: HTTP method.
            body: Optional JSON body.

        Returns:
            The successful response.

        Raises:
            NetworkError: If the remote player is unreachable.
            AuthError: If the retried request is still unauthorized.
            RemoteApiError: For any other non-2xx response.
        """
        response = await self._send(path, method, body)

        if response.status == HTTPStatus.UNAUTHORIZED:
            logger.info("%s %s unauthorized, authenticating", method, path)
            await self.authenticator.authenticate()
            response = await self._send(path, method, body)
            if response.status == HTTPStatus.UNAUTHORIZED:
                raise AuthError(response.text or f"{method} {path} unauthorized")

        if not response.ok:
            raise RemoteApiError(response.status, response.text)
        return response

    # Playback commands

    async def toggle_play(self) -> None:
        """Toggle between play and pause."""
        await self.request("/toggle-play", "POST")

    async def next(self) -> None:
        """Skip to the next track."""
        await self.request("/next", "POST")

    async def previous(self) -> None:
        """Go back to the previous track."""
        await self.request("/previous", "POST")

    async def shuffle(self) -> None:
        """Toggle shuffle."""
        await self.request("/shuffle", "POST")

    async def toggle_mute(self) -> None:
        """Toggle mute."""
        await self.request("/toggle-mute", "POST")

    async def switch_repeat(self, iteration: int = 1) -> None:
        """Advance the repeat mode by ``iteration`` steps."""
        await self.request("/switch-repeat", "POST", {"iteration": iteration})

    async def seek_to(self, seconds: float) -> None:
        """Seek to an absolute position in seconds."""
        await self.request("/seek-to", "POST", {"seconds": seconds})

    async def set_volume(self, volume: int) -> None:
        """Set the volume (0-100)."""
        await self.request("/volume", "POST", {"volume": volume})

    # Queries

    async def get_song(self) -> NowPlaying | None:
        """Return the current track and playback snapshot, or None if idle.

        Raises:
            ProtocolError: If the body cannot be parsed.
        """
        response = await self.request("/song")
        if not response.text.strip():
            return None
        data = response.json()
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ProtocolError("Unexpected /song response")
        try:
            return NowPlaying.from_dict(cast(dict[str, Any], data))
        except (TypeError, ValueError, OverflowError) as e:
            raise ProtocolError(f"Malformed /song response: {e}") from e

    async def get_shuffle(self) -> bool:
        """Return whether shuffle is enabled."""
        return bool(self._field(await self.request("/shuffle"), "state"))

    async def get_repeat_mode(self) -> RepeatMode:
        """Return the current repeat mode.

        Raises:
            StateInvariantError: If the remote reports an unknown mode.
        """
        return RepeatMode.parse(self._field(await self.request("/repeat-mode"), "mode"))

    async def get_volume(self) -> int:
        """Return the current volume (0-100)."""
        value = self._field(await self.request("/volume"), "state")
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise ProtocolError(f"Invalid volume: {value!r}") from e

    @staticmethod
    def _field(response: ApiResponse, key: str) -> Any:
        """Return one key of a JSON object response."""
        data = response.json()
        if not isinstance(data, dict) or key not in data:
            raise ProtocolError(f"Response has no {key!r} field")
        return cast(dict[str, Any], data)[key]

