"""QThread worker for running the async synchronization stack in a Qt application.

Qt widgets must run in the main thread, but the API client uses asyncio.
This worker runs the asyncio event loop in a background thread; the
StateStore's signals carry state changes to the main thread.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from PySide6.QtCore import QThread, Signal

from ytmctrl.api.auth import TokenStore
from ytmctrl.api.client import YtmClient
from ytmctrl.core.config import SyncConfig, SyncMode
from ytmctrl.core.connection import ConnectionManager
from ytmctrl.core.controller import PlayerController
from ytmctrl.core.poller import PlayerPoller
from ytmctrl.core.state import StateStore
from ytmctrl.notify import Notifier

logger = logging.getLogger(__name__)


class PlayerWorker(QThread):
    """Background thread owning the client, sync loop and command API.

    All PlayerState mutations happen on this thread's event loop, one
    callback at a time.

    Example:
        worker = PlayerWorker(config.get_sync_config(), store, token_store, notifier)
        worker.error_occurred.connect(lambda e: print(f"Error: {e}"))
        worker.start()
        worker.toggle_playback()
    """

    started_sync = Signal()  # Client open and sync loop running
    error_occurred = Signal(object)  # Exception from a command

    def __init__(
        self,
        config: SyncConfig,
        store: StateStore,
        token_store: TokenStore,
        notifier: Notifier,
    ) -> None:
        """Initialize the worker.

        Args:
            config: Synchronization settings.
            store: State store shared with the UI.
            token_store: Persistence for the access token.
            notifier: Sink for user-visible notifications.
        """
        super().__init__()
        self._config = config
        self._store = store
        self._token_store = token_store
        self._notifier = notifier
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._client: YtmClient | None = None
        self._controller: PlayerController | None = None
        self._connection: ConnectionManager | None = None
        self._poller: PlayerPoller | None = None
        self._should_run = True

    @property
    def config(self) -> SyncConfig:
        """Return the synchronization settings."""
        return self._config

    @property
    def is_running(self) -> bool:
        """Return True while the event loop is serving commands."""
        return self._loop is not None and self._loop.is_running() and self._controller is not None

    def stop(self) -> None:
        """Signal the worker to stop (called from main thread)."""
        self._should_run = False
        if self._loop and self._loop.is_running() and self._stop_event is not None:
            self._loop.call_soon_threadsafe(self._stop_event.set)

    # Thread-safe commands

    def toggle_playback(self) -> None:
        """Play or pause. Thread-safe call from main thread."""
        self._submit(lambda c: c.toggle_playback())

    def next_track(self) -> None:
        """Skip to the next track. Thread-safe call from main thread."""
        self._submit(lambda c: c.next_track())

    def previous_track(self) -> None:
        """Go back to the previous track. Thread-safe call from main thread."""
        self._submit(lambda c: c.previous_track())

    def toggle_shuffle(self) -> None:
        """Toggle shuffle. Thread-safe call from main thread."""
        self._submit(lambda c: c.toggle_shuffle())

    def toggle_mute(self) -> None:
        """Toggle mute. Thread-safe call from main thread."""
        self._submit(lambda c: c.toggle_mute())

    def cycle_repeat(self) -> None:
        """Advance the repeat mode. Thread-safe call from main thread."""
        self._submit(lambda c: c.cycle_repeat())

    def seek(self, seconds: float) -> None:
        """Seek to a position in seconds. Thread-safe call from main thread."""
        self._submit(lambda c: c.seek(seconds))

    def set_volume(self, percent: int) -> None:
        """Set the volume (0-100). Thread-safe call from main thread."""
        self._submit(lambda c: c.set_volume(percent))

    def refresh_volume(self) -> None:
        """Fetch the remote volume into the store. Thread-safe call from main thread."""
        self._submit(lambda c: c.refresh_volume())

    def _submit(self, command: Callable[[PlayerController], Coroutine[Any, Any, Any]]) -> None:
        """Schedule a controller command on the worker loop."""
        if self._loop and self._loop.is_running() and self._controller:
            asyncio.run_coroutine_threadsafe(self._safe(command), self._loop)
        else:
            logger.debug("Worker not running, dropping command")

    async def _safe(self, command: Callable[[PlayerController], Coroutine[Any, Any, Any]]) -> None:
        """Run a command, reporting failures via error_occurred."""
        if self._controller is None:
            return
        try:
            await command(self._controller)
        except Exception as e:
            self.error_occurred.emit(e)

    def run(self) -> None:
        """Run the worker thread (entry point)."""
        # Create new event loop for this thread
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._loop.run_until_complete(self._main())
        except Exception as e:
            logger.exception("Worker loop crashed")
            self.error_occurred.emit(e)
        finally:
            self._loop.close()
            self._loop = None

    async def _main(self) -> None:
        """Open the client, run the sync loop until stopped, then tear down."""
        self._stop_event = asyncio.Event()
        if not self._should_run:
            return

        cfg = self._config
        self._client = YtmClient(
            cfg.host,
            cfg.port,
            token_store=self._token_store,
            notifier=self._notifier,
            api_version=cfg.api_version,
            client_name=cfg.client_name,
            timeout=cfg.request_timeout,
        )
        await self._client.open()

        if cfg.mode is SyncMode.POLL:
            self._poller = PlayerPoller(
                self._client, self._store, cfg.poll_interval_ms, cfg.max_reconnect_delay_ms
            )
            self._controller = PlayerController(
                self._client, self._store, self._poller, cfg.settle_delay_ms
            )
            self._poller.start()
        else:
            self._connection = ConnectionManager(
                self._client.session,
                self._client.ws_url,
                self._store,
                cfg.max_reconnect_delay_ms,
                token_provider=self._client.get_token,
            )
            self._controller = PlayerController(self._client, self._store)
            self._connection.start()

        logger.info("Syncing with %s (%s mode)", self._client.api_url, cfg.mode)
        self.started_sync.emit()

        try:
            await self._stop_event.wait()
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        """Cancel timers, close the socket and the HTTP session."""
        if self._controller is not None:
            self._controller.close()
            self._controller = None
        if self._connection is not None:
            await self._connection.stop()
            self._connection = None
        if self._poller is not None:
            await self._poller.stop()
            self._poller = None
        if self._client is not None:
            await self._client.close()
            self._client = None
        self._store.reset()
        logger.info("Worker stopped")
