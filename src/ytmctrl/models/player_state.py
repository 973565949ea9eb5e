"""PlayerState model: the local mirror of remote playback status."""

import logging
import math
from dataclasses import dataclass, replace
from enum import StrEnum

from ytmctrl.errors import StateInvariantError
from ytmctrl.models.track import Track

logger = logging.getLogger(__name__)

_MIN_VOLUME = 0
_MAX_VOLUME = 100
DEFAULT_VOLUME = 100


class RepeatMode(StrEnum):
    """Repeat mode of the remote player."""

    NONE = "NONE"
    ALL = "ALL"
    ONE = "ONE"

    def next(self) -> "RepeatMode":
        """Return the mode the player switches to on one repeat step."""
        return _REPEAT_CYCLE[self]

    @classmethod
    def parse(cls, value: object) -> "RepeatMode":
        """Parse a repeat mode sent by the remote player.

        Raises:
            StateInvariantError: If value is not one of the three modes.
        """
        try:
            return cls(str(value).upper())
        except ValueError:
            raise StateInvariantError(f"Invalid repeat mode: {value!r}") from None


_REPEAT_CYCLE = {
    RepeatMode.NONE: RepeatMode.ALL,
    RepeatMode.ALL: RepeatMode.ONE,
    RepeatMode.ONE: RepeatMode.NONE,
}


@dataclass(frozen=True, slots=True)
class PlayerState:
    """Snapshot of the remote player's state.

    The default instance is the cleared state shown while disconnected.

    Attributes:
        song: The loaded track, or None if nothing is loaded.
        is_playing: Whether playback is running.
        muted: Whether audio is muted.
        position_seconds: Playback position in seconds.
        volume_percent: Volume 0-100.
        repeat_mode: Current repeat mode.
        shuffle: Whether shuffle is enabled.
    """

    song: Track | None = None
    is_playing: bool = False
    muted: bool = False
    position_seconds: float = 0.0
    volume_percent: int = DEFAULT_VOLUME
    repeat_mode: RepeatMode = RepeatMode.NONE
    shuffle: bool = False

    @property
    def has_song(self) -> bool:
        """Return True if a track is loaded."""
        return self.song is not None

    @property
    def duration_seconds(self) -> float:
        """Return the loaded track's duration, or 0 without a track."""
        return self.song.duration_seconds if self.song else 0.0

    @property
    def progress(self) -> float:
        """Return playback progress as a fraction (0.0 to 1.0)."""
        duration = self.duration_seconds
        if duration <= 0:
            return 0.0
        return min(1.0, self.position_seconds / duration)

    def normalized(self) -> "PlayerState":
        """Return a copy with position and volume clamped into bounds.

        A non-finite position becomes 0. The position is only capped at the
        song duration when that duration is known; a duration of 0 means
        unknown (live streams, songs still loading) and leaves it uncapped.
        """
        position = float(self.position_seconds)
        position = max(0.0, position) if math.isfinite(position) else 0.0
        if self.song is not None and self.song.duration_seconds > 0:
            position = min(position, self.song.duration_seconds)
        volume = max(_MIN_VOLUME, min(_MAX_VOLUME, int(self.volume_percent)))

        if position == self.position_seconds and volume == self.volume_percent:
            return self
        if volume != self.volume_percent:
            logger.debug("Volume %s out of range, clamped to %d", self.volume_percent, volume)
        return replace(self, position_seconds=position, volume_percent=volume)
