"""Tests for PlayerController."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from ytmctrl.api.client import YtmClient
from ytmctrl.core.controller import PlayerController
from ytmctrl.core.poller import PlayerPoller
from ytmctrl.core.state import StateStore
from ytmctrl.errors import AuthError, NetworkError, RemoteApiError
from ytmctrl.models.player_state import RepeatMode


@pytest.fixture(autouse=True)
def authorized(token_store: Any, valid_token: str) -> None:
    """Start every test with a valid stored token."""
    token_store.data["access_token"] = valid_token


@pytest_asyncio.fixture
async def poll_controller(
    client: YtmClient, store: StateStore
) -> AsyncGenerator[PlayerController, None]:
    """Return a poll-mode controller mirroring the fake player."""
    poller = PlayerPoller(client, store)
    await poller.refresh()
    controller = PlayerController(client, store, poller, settle_delay_ms=50)
    yield controller
    controller.close()


@pytest_asyncio.fixture
async def push_controller(
    client: YtmClient, store: StateStore
) -> AsyncGenerator[PlayerController, None]:
    """Return a push-mode controller."""
    controller = PlayerController(client, store)
    yield controller
    controller.close()


async def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Wait until predicate() is true or fail after timeout seconds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            pytest.fail("Timed out waiting for condition")
        await asyncio.sleep(0.01)


class TestPollMode:
    """Test optimistic updates with a follow-up refresh."""

    @pytest.mark.asyncio
    async def test_toggle_playback(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that play/pause flips locally and sends the command."""
        assert store.state.is_playing
        await poll_controller.toggle_playback()
        assert not store.state.is_playing
        assert poll_controller.refresh_pending
        assert fake_player.commands == [("toggle-play", None)]

    @pytest.mark.asyncio
    async def test_seek_corrected_by_refresh(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that the settle refresh replaces the optimistic position."""
        await poll_controller.seek(42)
        assert store.state.position_seconds == 42
        assert fake_player.commands == [("seek-to", {"seconds": 42})]

        # The remote landed slightly earlier than requested
        fake_player.song["elapsedSeconds"] = 40
        await wait_for(lambda: store.state.position_seconds == 40)
        assert not poll_controller.refresh_pending

    @pytest.mark.asyncio
    async def test_next_and_previous_restart_position(
        self, poll_controller: PlayerController, store: StateStore
    ) -> None:
        """Test that track changes zero the position."""
        await poll_controller.next_track()
        assert store.state.position_seconds == 0
        store.set_position(30)
        await poll_controller.previous_track()
        assert store.state.position_seconds == 0

    @pytest.mark.asyncio
    async def test_cycle_repeat(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test cycling the repeat mode."""
        await poll_controller.cycle_repeat()
        assert store.state.repeat_mode == RepeatMode.ALL
        await poll_controller.cycle_repeat()
        assert store.state.repeat_mode == RepeatMode.ONE
        await poll_controller.cycle_repeat()
        assert store.state.repeat_mode == RepeatMode.NONE
        assert fake_player.commands == [("switch-repeat", {"iteration": 1})] * 3

    @pytest.mark.asyncio
    async def test_toggle_shuffle_and_mute(
        self, poll_controller: PlayerController, store: StateStore
    ) -> None:
        """Test shuffle and mute toggles."""
        await poll_controller.toggle_shuffle()
        await poll_controller.toggle_mute()
        assert store.state.shuffle
        assert store.state.muted

    @pytest.mark.asyncio
    async def test_set_volume_clamped(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that volume is clamped before sending."""
        await poll_controller.set_volume(150)
        assert fake_player.commands == [("volume", {"volume": 100})]
        assert store.state.volume_percent == 100

    @pytest.mark.asyncio
    async def test_volume_corrected_by_refresh(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that the settle refresh replaces the optimistic volume."""
        await poll_controller.set_volume(80)
        assert store.state.volume_percent == 80

        # The remote capped the requested volume
        fake_player.volume = 60
        await wait_for(lambda: store.state.volume_percent == 60)

    @pytest.mark.asyncio
    async def test_mute_kept_after_refresh(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that the optimistic mute survives the refresh."""
        await poll_controller.toggle_mute()
        fake_player.shuffle = True
        await wait_for(lambda: store.state.shuffle)
        assert store.state.muted
        assert fake_player.commands == [("toggle-mute", None)]

    @pytest.mark.asyncio
    async def test_newer_command_supersedes_refresh(
        self, client: YtmClient, store: StateStore, fake_player: Any
    ) -> None:
        """Test that commands in quick succession share one refresh."""
        controller = PlayerController(
            client, store, PlayerPoller(client, store), settle_delay_ms=500
        )
        try:
            await controller.toggle_shuffle()
            await controller.toggle_shuffle()
            # 2 commands + one refresh of 3 queries
            await wait_for(lambda: len(fake_player.seen_tokens) == 5)
            assert not controller.refresh_pending
            await asyncio.sleep(0.1)
        finally:
            controller.close()
        assert len(fake_player.seen_tokens) == 5

    @pytest.mark.asyncio
    async def test_failure_leaves_state(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that a failed command is re-raised and not applied."""
        before = store.state
        fake_player.fail_status = 500
        with pytest.raises(RemoteApiError):
            await poll_controller.toggle_playback()
        assert store.state is before
        assert not poll_controller.refresh_pending

    @pytest.mark.asyncio
    async def test_auth_failure_reraised(
        self, poll_controller: PlayerController, fake_player: Any
    ) -> None:
        """Test that authentication failures reach the caller."""
        fake_player.always_unauthorized = True
        with pytest.raises(AuthError):
            await poll_controller.toggle_mute()

    @pytest.mark.asyncio
    async def test_close_cancels_refresh(
        self, poll_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that close() drops the pending refresh."""
        await poll_controller.toggle_shuffle()
        poll_controller.close()
        assert not poll_controller.refresh_pending
        fake_player.repeat = "ONE"
        await asyncio.sleep(0.15)
        assert store.state.repeat_mode == RepeatMode.NONE


class TestPushMode:
    """Test commands when events are authoritative."""

    @pytest.mark.asyncio
    async def test_commands_do_not_mutate(
        self, push_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test that push-mode commands only send requests."""
        before = store.state
        await push_controller.toggle_shuffle()
        await push_controller.seek(10)
        assert store.state is before
        assert not push_controller.refresh_pending
        assert not push_controller.is_poll_mode
        assert fake_player.commands == [("shuffle", None), ("seek-to", {"seconds": 10})]

    @pytest.mark.asyncio
    async def test_refresh_volume(
        self, push_controller: PlayerController, store: StateStore, fake_player: Any
    ) -> None:
        """Test fetching the remote volume into the store."""
        fake_player.volume = 64
        assert await push_controller.refresh_volume() == 64
        assert store.state.volume_percent == 64


class TestRefreshFailures:
    """Test the settle refresh with mocked collaborators."""

    @pytest.mark.asyncio
    async def test_refresh_failure_is_swallowed(self, store: StateStore) -> None:
        """Test that a failed refresh is logged, not raised."""
        client = MagicMock(spec=YtmClient)
        client.toggle_play = AsyncMock()
        poller = MagicMock(spec=PlayerPoller)
        poller.refresh = AsyncMock(side_effect=NetworkError("down"))

        controller = PlayerController(client, store, poller, settle_delay_ms=10)
        await controller.toggle_playback()
        await wait_for(lambda: poller.refresh.await_count == 1)
        await asyncio.sleep(0.02)

        client.toggle_play.assert_awaited_once()
        poller.refresh.assert_awaited_once()
        assert store.state.is_playing

    @pytest.mark.asyncio
    async def test_send_failure_skips_refresh(self, store: StateStore) -> None:
        """Test that nothing is scheduled when the request fails."""
        client = MagicMock(spec=YtmClient)
        client.next = AsyncMock(side_effect=NetworkError("down"))
        poller = MagicMock(spec=PlayerPoller)
        poller.refresh = AsyncMock()

        controller = PlayerController(client, store, poller, settle_delay_ms=10)
        with pytest.raises(NetworkError):
            await controller.next_track()
        await asyncio.sleep(0.05)
        poller.refresh.assert_not_awaited()


class TestRefreshScope:
    """Test which queries the settle refresh runs."""

    @pytest.mark.asyncio
    async def test_volume_read_only_after_set_volume(self, store: StateStore) -> None:
        """Test that the volume is re-read only when a volume command is pending."""
        client = MagicMock(spec=YtmClient)
        client.shuffle = AsyncMock()
        client.set_volume = AsyncMock()
        client.get_volume = AsyncMock(return_value=33)
        poller = MagicMock(spec=PlayerPoller)
        poller.refresh = AsyncMock()

        controller = PlayerController(client, store, poller, settle_delay_ms=10)
        await controller.toggle_shuffle()
        await wait_for(lambda: poller.refresh.await_count == 1)
        await asyncio.sleep(0.02)
        client.get_volume.assert_not_awaited()

        # A later command supersedes the refresh but keeps the volume read
        await controller.set_volume(10)
        await controller.toggle_shuffle()
        await wait_for(lambda: store.state.volume_percent == 33)
        assert poller.refresh.await_count == 2
        client.get_volume.assert_awaited_once()
        controller.close()
