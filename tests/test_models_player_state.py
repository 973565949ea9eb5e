"""Tests for PlayerState and RepeatMode."""

import pytest

from ytmctrl.errors import StateInvariantError
from ytmctrl.models.player_state import PlayerState, RepeatMode
from ytmctrl.models.track import Track


class TestRepeatMode:
    """Test repeat mode cycling and parsing."""

    def test_cycle(self) -> None:
        """Test NONE -> ALL -> ONE -> NONE."""
        assert RepeatMode.NONE.next() == RepeatMode.ALL
        assert RepeatMode.ALL.next() == RepeatMode.ONE
        assert RepeatMode.ONE.next() == RepeatMode.NONE

    def test_three_steps_return_to_start(self) -> None:
        """Test that three steps always return to the starting mode."""
        for mode in RepeatMode:
            assert mode.next().next().next() == mode

    def test_parse(self) -> None:
        """Test parsing mode strings."""
        assert RepeatMode.parse("ALL") == RepeatMode.ALL
        assert RepeatMode.parse("one") == RepeatMode.ONE

    def test_parse_invalid(self) -> None:
        """Test that unknown modes are rejected."""
        with pytest.raises(StateInvariantError):
            RepeatMode.parse("SOMETIMES")


class TestPlayerState:
    """Test PlayerState snapshot."""

    def test_default_is_cleared_state(self) -> None:
        """Test the cleared default state."""
        state = PlayerState()
        assert state.song is None
        assert not state.has_song
        assert not state.is_playing
        assert not state.muted
        assert state.position_seconds == 0.0
        assert state.volume_percent == 100
        assert state.repeat_mode == RepeatMode.NONE
        assert not state.shuffle

    def test_progress(self) -> None:
        """Test progress fraction."""
        song = Track(title="Song", duration_seconds=200)
        assert PlayerState(song=song, position_seconds=50).progress == 0.25
        assert PlayerState().progress == 0.0

    def test_normalized_clamps_position(self) -> None:
        """Test that position is clamped into [0, duration]."""
        song = Track(title="Song", duration_seconds=100)
        assert PlayerState(song=song, position_seconds=150).normalized().position_seconds == 100
        assert PlayerState(song=song, position_seconds=-3).normalized().position_seconds == 0

    def test_normalized_without_duration(self) -> None:
        """Test that unknown durations do not cap the position."""
        song = Track(title="Live stream")
        assert PlayerState(song=song, position_seconds=500).normalized().position_seconds == 500

    def test_normalized_non_finite_position(self) -> None:
        """Test that a non-finite position is reset to zero."""
        song = Track(title="Song", duration_seconds=100)
        state = PlayerState(song=song, position_seconds=float("inf"))
        assert state.normalized().position_seconds == 0
        assert PlayerState(position_seconds=float("nan")).normalized().position_seconds == 0

    def test_normalized_clamps_volume(self) -> None:
        """Test that volume is clamped into [0, 100]."""
        assert PlayerState(volume_percent=120).normalized().volume_percent == 100
        assert PlayerState(volume_percent=-1).normalized().volume_percent == 0

    def test_normalized_returns_same_instance_when_valid(self) -> None:
        """Test that an in-bounds state is returned unchanged."""
        state = PlayerState(volume_percent=40, position_seconds=10)
        assert state.normalized() is state
