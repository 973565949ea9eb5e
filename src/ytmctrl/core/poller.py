"""Polling monitor for remote players without an event stream.

Periodically fetches song, shuffle and repeat state and merges it into the
StateStore. Failed polls back off exponentially, like reconnects.
"""

import asyncio
import logging

from ytmctrl.api.client import YtmClient
from ytmctrl.core.backoff import DEFAULT_MAX_DELAY_MS, Backoff
from ytmctrl.core.state import StateStore
from ytmctrl.errors import NetworkError, YtmError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 5000


class PlayerPoller:
    """Mirror the remote player by polling its query endpoints.

    Example:
        poller = PlayerPoller(client, store, interval_ms=5000)
        poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        client: YtmClient,
        store: StateStore,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    ) -> None:
        """Initialize the poller.

        Args:
            client: API client used for the queries.
            store: State store receiving merged results.
            interval_ms: Delay between successful polls in milliseconds.
            max_delay_ms: Ceiling of the failure backoff in milliseconds.
        """
        self._client = client
        self._store = store
        self._interval_ms = interval_ms
        self._backoff = Backoff(max_delay_ms)
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._last_delay_ms: int | None = None

    @property
    def is_running(self) -> bool:
        """Return True between start() and stop()."""
        return self._running

    @property
    def interval_ms(self) -> int:
        """Return the poll interval in milliseconds."""
        return self._interval_ms

    @property
    def attempt(self) -> int:
        """Return the number of consecutive failed polls."""
        return self._backoff.attempt

    @property
    def last_delay_ms(self) -> int | None:
        """Return the delay before the next scheduled poll."""
        return self._last_delay_ms

    def start(self) -> None:
        """Start polling immediately."""
        if self._running:
            return
        self._running = True
        logger.info("Polling %s every %dms", self._client.api_url, self._interval_ms)
        self._poll_now()

    async def stop(self) -> None:
        """Stop polling and cancel any scheduled poll."""
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def refresh(self) -> None:
        """Fetch song, shuffle and repeat state concurrently and merge it.

        Raises:
            YtmError: If any of the queries fails.
        """
        now_playing, shuffle, repeat_mode = await asyncio.gather(
            self._client.get_song(),
            self._client.get_shuffle(),
            self._client.get_repeat_mode(),
        )
        self._store.set_connected(True)
        self._store.apply_snapshot(now_playing, shuffle, repeat_mode)

    def _poll_now(self) -> None:
        self._handle = None
        if self._running:
            self._task = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        try:
            await self.refresh()
        except NetworkError as e:
            logger.warning("Poll failed, remote player unreachable: %s", e)
            self._store.reset()
            self._schedule(self._backoff.next_delay_ms())
        except YtmError as e:
            logger.warning("Poll failed: %s", e)
            self._schedule(self._backoff.next_delay_ms())
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error while polling: %s", e)
            self._schedule(self._backoff.next_delay_ms())
        else:
            self._backoff.reset()
            self._schedule(self._interval_ms)

    def _schedule(self, delay_ms: int) -> None:
        if not self._running:
            return
        self._last_delay_ms = delay_ms
        logger.debug("Next poll in %dms", delay_ms)
        self._handle = asyncio.get_running_loop().call_later(delay_ms / 1000, self._poll_now)
