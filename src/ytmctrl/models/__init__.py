"""Data models for the remote player's track and playback state."""

from ytmctrl.models.player_state import PlayerState, RepeatMode
from ytmctrl.models.track import MediaType, NowPlaying, Track

__all__ = [
    "MediaType",
    "NowPlaying",
    "PlayerState",
    "RepeatMode",
    "Track",
]
