"""Bearer-token authentication against the remote player.

The remote player grants a token through an out-of-band consent prompt
shown on the player's side. Only one prompt may be open at a time, so
concurrent callers share a single in-flight attempt.
"""

import asyncio
import logging
from typing import Any, Protocol, cast

import aiohttp

from ytmctrl.notify import Notifier, Severity

logger = logging.getLogger(__name__)

TOKEN_KEY = "access_token"
NOTIFY_TITLE = "YouTube Music Controls"
NOTIFY_DENIED = "Authentication failed. Did you deny the request?"

# Marker for "not loaded from the token store yet"
_UNSET: Any = object()


class TokenStore(Protocol):
    """Async key-value persistence for the credential. Any call may fail."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class Authenticator:
    """Obtain, cache and persist the remote player's access token.

    Example:
        auth = Authenticator(session, "http://localhost:26538/auth/ytmctrl", store, notifier)
        if await auth.authenticate():
            token = await auth.get_token()
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        auth_url: str,
        token_store: TokenStore,
        notifier: Notifier,
    ) -> None:
        """Initialize the authenticator.

        Args:
            session: HTTP session used for the auth request.
            auth_url: Full URL of the auth endpoint.
            token_store: Persistence for the token.
            notifier: User-facing notification sink.
        """
        self._session = session
        self._auth_url = auth_url
        self._token_store = token_store
        self._notifier = notifier
        self._token: str | None = _UNSET
        self._inflight: asyncio.Future[bool] | None = None

    @property
    def auth_url(self) -> str:
        """Return the auth endpoint URL."""
        return self._auth_url

    async def get_token(self) -> str | None:
        """Return the cached token, loading it from the store on first use."""
        if self._token is _UNSET:
            try:
                self._token = await self._token_store.get(TOKEN_KEY) or None
            except Exception as e:  # noqa: BLE001
                logger.warning("Could not load stored access token: %s", e)
                self._token = None
        return self._token

    async def authenticate(self) -> bool:
        """Request a new token, sharing any attempt already in flight.

        Returns:
            True if a token was obtained, False otherwise. Never raises.
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._request_token())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            logger.debug("Authentication already in progress, waiting for it")
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, _future: "asyncio.Future[bool]") -> None:
        self._inflight = None

    async def _request_token(self) -> bool:
        """Send the auth request and persist or invalidate the token."""
        logger.info("Requesting access token from %s", self._auth_url)
        token: object = None
        try:
            async with self._session.post(
                self._auth_url, headers={"Content-Type": "application/json"}
            ) as resp:
                if resp.ok:
                    data = await resp.json(content_type=None)
                    if isinstance(data, dict):
                        token = cast(dict[str, Any], data).get("accessToken")
                else:
                    logger.error(
                        "Auth request rejected (HTTP %d): %s", resp.status, await resp.text()
                    )
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.error("Auth request failed: %s", e)

        if not isinstance(token, str) or not token:
            await self._invalidate()
            self._notifier.notify(NOTIFY_TITLE, NOTIFY_DENIED, Severity.ERROR)
            return False

        self._token = token
        try:
            await self._token_store.set(TOKEN_KEY, token)
        except Exception as e:  # noqa: BLE001
            logger.warning("Could not persist access token: %s", e)
        logger.info("Authenticated with remote player")
        return True

    async def _invalidate(self) -> None:
        """Forget the token in memory and in the store."""
        self._token = None
        try:
            await self._token_store.delete(TOKEN_KEY)
        except Exception as e:  # noqa: BLE001
            logger.warning("Could not delete stored access token: %s", e)
