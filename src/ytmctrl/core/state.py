"""Central state store with Qt signals for reactive UI updates.

The StateStore holds the single current PlayerState and emits Qt signals
when it changes. UI widgets connect to these signals to re-render.

This follows the Observer pattern via Qt's signal/slot mechanism.
"""

import logging
from dataclasses import replace

from PySide6.QtCore import QObject, Signal

from ytmctrl.api.protocol import PlayerEvent, apply_event
from ytmctrl.models.player_state import PlayerState, RepeatMode
from ytmctrl.models.track import NowPlaying, Track

logger = logging.getLogger(__name__)


class StateStore(QObject):
    """Central store mirroring the remote player's state.

    Snapshots are immutable; every mutation replaces the snapshot and ends
    with a ``state_changed`` emission carrying the new snapshot.

    Signals are emitted from the worker thread via Qt's thread-safe
    signal delivery mechanism.

    Example:
        state = StateStore()
        state.state_changed.connect(lambda s: print(s.song))
        state.apply_event(event)
    """

    state_changed = Signal(object)  # PlayerState
    connection_changed = Signal(bool)  # True=connected, False=disconnected

    def __init__(self) -> None:
        """Initialize the store with the cleared default state."""
        super().__init__()
        self._state = PlayerState()
        self._connected = False

    @property
    def state(self) -> PlayerState:
        """Return the current snapshot."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Return True while the remote player is reachable."""
        return self._connected

    @property
    def song(self) -> Track | None:
        """Return the loaded track, or None."""
        return self._state.song

    def _commit(self, state: PlayerState) -> None:
        """Replace the snapshot and notify observers."""
        self._state = state.normalized()
        self.state_changed.emit(self._state)

    def set_connected(self, connected: bool) -> None:
        """Record connection state, emitting only on change."""
        if connected == self._connected:
            return
        self._connected = connected
        self.connection_changed.emit(connected)

    def reset(self) -> None:
        """Discard the mirrored state (connection lost)."""
        self.set_connected(False)
        self._commit(PlayerState())

    # Authoritative updates

    def apply_event(self, event: PlayerEvent) -> None:
        """Fold a pushed event into the state.

        Raises:
            ProtocolError: If the event payload is malformed; the state is
                left unchanged.
        """
        self._commit(apply_event(self._state, event))

    def apply_snapshot(
        self,
        now_playing: NowPlaying | None,
        shuffle: bool,
        repeat_mode: RepeatMode,
    ) -> None:
        """Merge polled song/shuffle/repeat state.

        Args:
            now_playing: Result of the song query, or None if idle.
            shuffle: Shuffle flag.
            repeat_mode: Repeat mode.
        """
        if now_playing is None:
            state = replace(
                self._state,
                song=None,
                is_playing=False,
                position_seconds=0.0,
                shuffle=shuffle,
                repeat_mode=repeat_mode,
            )
        else:
            state = replace(
                self._state,
                song=now_playing.track,
                is_playing=not now_playing.is_paused,
                position_seconds=now_playing.elapsed_seconds,
                shuffle=shuffle,
                repeat_mode=repeat_mode,
            )
        self._commit(state)

    def apply_volume(self, volume: int) -> None:
        """Set the volume reported by the remote player."""
        self._commit(replace(self._state, volume_percent=volume))

    # Optimistic updates, corrected later by an authoritative refresh

    def toggle_playing(self) -> None:
        """Flip the playing flag."""
        self._commit(replace(self._state, is_playing=not self._state.is_playing))

    def restart_track(self) -> None:
        """Zero the position after a track change."""
        self._commit(replace(self._state, position_seconds=0.0))

    def set_position(self, seconds: float) -> None:
        """Set the playback position."""
        self._commit(replace(self._state, position_seconds=seconds))

    def toggle_shuffle(self) -> None:
        """Flip the shuffle flag."""
        self._commit(replace(self._state, shuffle=not self._state.shuffle))

    def toggle_muted(self) -> None:
        """Flip the mute flag."""
        self._commit(replace(self._state, muted=not self._state.muted))

    def cycle_repeat(self) -> None:
        """Advance repeat mode one step (NONE -> ALL -> ONE -> NONE)."""
        self._commit(replace(self._state, repeat_mode=self._state.repeat_mode.next()))

    def set_volume(self, volume: int) -> None:
        """Set the volume."""
        self.apply_volume(volume)
