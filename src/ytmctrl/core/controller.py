"""Controller - the command API relaying user actions to the remote player.

In push mode authoritative state arrives over the event stream, so commands
only send requests. In poll mode the remote read endpoints lag behind the
write endpoints: commands apply an optimistic update through the StateStore
and schedule one authoritative refresh after a short settle delay. Mute has
no read endpoint, so in poll mode it stays the optimistic value until a
command or reset changes it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ytmctrl.api.client import YtmClient
from ytmctrl.core.poller import PlayerPoller
from ytmctrl.core.state import StateStore
from ytmctrl.errors import YtmError

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_MS = 1500


class PlayerController:
    """Command API for the remote player.

    Example:
        controller = PlayerController(client, store)            # push mode
        controller = PlayerController(client, store, poller)    # poll mode

        # UI action -> command flow:
        # user clicks play -> controller.toggle_playback()
        # -> YtmClient.toggle_play
        # -> StateStore.toggle_playing (poll mode only, optimistic)
        # -> PlayerPoller.refresh after the settle delay (poll mode only)
    """

    def __init__(
        self,
        client: YtmClient,
        store: StateStore,
        poller: PlayerPoller | None = None,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
    ) -> None:
        """Initialize the controller.

        Args:
            client: The API client.
            store: The state store for optimistic updates.
            poller: Poller used for authoritative refreshes; enables poll mode.
            settle_delay_ms: Delay before the refresh that follows a command.
        """
        self._client = client
        self._state = store
        self._poller = poller
        self._settle_delay_ms = settle_delay_ms
        self._refresh_handle: asyncio.TimerHandle | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_volume = False

    @property
    def is_poll_mode(self) -> bool:
        """Return True if commands update the store optimistically."""
        return self._poller is not None

    @property
    def refresh_pending(self) -> bool:
        """Return True if a settle-delay refresh is scheduled."""
        return self._refresh_handle is not None

    async def toggle_playback(self) -> None:
        """Play or pause."""
        await self._command("toggle playback", self._client.toggle_play, self._state.toggle_playing)

    async def next_track(self) -> None:
        """Skip to the next track."""
        await self._command("next track", self._client.next, self._state.restart_track)

    async def previous_track(self) -> None:
        """Go back to the previous track."""
        await self._command("previous track", self._client.previous, self._state.restart_track)

    async def toggle_shuffle(self) -> None:
        """Toggle shuffle."""
        await self._command("toggle shuffle", self._client.shuffle, self._state.toggle_shuffle)

    async def toggle_mute(self) -> None:
        """Toggle mute."""
        await self._command("toggle mute", self._client.toggle_mute, self._state.toggle_muted)

    async def cycle_repeat(self) -> None:
        """Advance repeat mode NONE -> ALL -> ONE -> NONE."""
        await self._command("cycle repeat", self._client.switch_repeat, self._state.cycle_repeat)

    async def seek(self, seconds: float) -> None:
        """Seek to an absolute position in seconds."""
        await self._command(
            "seek",
            lambda: self._client.seek_to(seconds),
            lambda: self._state.set_position(seconds),
        )

    async def set_volume(self, percent: int) -> None:
        """Set the volume (0-100)."""
        percent = max(0, min(100, percent))
        await self._command(
            "set volume",
            lambda: self._client.set_volume(percent),
            lambda: self._state.set_volume(percent),
            include_volume=True,
        )

    async def refresh_volume(self) -> int:
        """Fetch the remote volume and store it.

        Returns:
            The volume reported by the remote player.
        """
        try:
            volume = await self._client.get_volume()
        except YtmError as e:
            logger.error("Failed to fetch volume: %s", e)
            raise
        self._state.apply_volume(volume)
        return volume

    async def _command(
        self,
        name: str,
        send: Callable[[], Awaitable[None]],
        optimistic: Callable[[], None],
        include_volume: bool = False,
    ) -> None:
        """Send a command, then update the store optimistically in poll mode.

        With include_volume set the settle refresh also re-reads the volume.

        Raises:
            YtmError: If the request failed; the store is left untouched.
        """
        try:
            await send()
        except YtmError as e:
            logger.error("Failed to %s: %s", name, e)
            raise

        if self._poller is not None:
            optimistic()
            self._schedule_refresh(include_volume)

    def _schedule_refresh(self, include_volume: bool = False) -> None:
        """(Re)arm the settle-delay refresh; a newer command supersedes it."""
        self._refresh_volume = self._refresh_volume or include_volume
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
        self._refresh_handle = asyncio.get_running_loop().call_later(
            self._settle_delay_ms / 1000, self._start_refresh
        )

    def _start_refresh(self) -> None:
        self._refresh_handle = None
        include_volume, self._refresh_volume = self._refresh_volume, False
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh(include_volume))

    async def _refresh(self, include_volume: bool) -> None:
        if self._poller is None:
            return
        try:
            await self._poller.refresh()
            if include_volume:
                self._state.apply_volume(await self._client.get_volume())
        except YtmError as e:
            logger.warning("Refresh after command failed: %s", e)

    def close(self) -> None:
        """Cancel any pending refresh."""
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None
        self._refresh_volume = False
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
