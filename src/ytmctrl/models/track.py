"""Track model describing the song loaded in the remote player."""

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, cast

logger = logging.getLogger(__name__)


class MediaType(StrEnum):
    """Kind of media the remote player is playing."""

    AUDIO = "AUDIO"
    ORIGINAL_MUSIC_VIDEO = "ORIGINAL_MUSIC_VIDEO"
    USER_GENERATED_CONTENT = "USER_GENERATED_CONTENT"
    PODCAST_EPISODE = "PODCAST_EPISODE"
    OTHER_VIDEO = "OTHER_VIDEO"

    @classmethod
    def from_string(cls, value: str) -> "MediaType":
        """Parse a media type, falling back to OTHER_VIDEO for unknown values."""
        try:
            return cls(value.upper())
        except ValueError:
            logger.debug("Unknown media type %r, using OTHER_VIDEO", value)
            return cls.OTHER_VIDEO


def _optional_str(value: object) -> str | None:
    """Return value as a string, or None for missing/empty values."""
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True, slots=True)
class Track:
    """A track (song or video) as reported by the remote player.

    Tracks are value objects: a track change replaces the whole object.

    Attributes:
        title: Track title.
        artist: Artist name.
        duration_seconds: Track length in seconds.
        video_id: Remote video identifier.
        media_type: Kind of media.
        album: Album name, if known.
        image_url: Cover art URL, if any.
        source_url: Public URL of the track, if any.
        playlist_id: Playlist the track was started from, if any.
        tags: Ordered tags attached to the track.
        alternative_title: Secondary title shown by the player.
        artist_url: Link to the artist page.
        views: View count reported by the player.
        upload_date: Upload date string as reported.
    """

    title: str
    artist: str = ""
    duration_seconds: float = 0.0
    video_id: str = ""
    media_type: MediaType = MediaType.AUDIO
    album: str | None = None
    image_url: str | None = None
    source_url: str | None = None
    playlist_id: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    alternative_title: str | None = None
    artist_url: str | None = None
    views: int = 0
    upload_date: str | None = None

    def __post_init__(self) -> None:
        """Clamp negative durations to zero."""
        if self.duration_seconds < 0:
            logger.warning(
                "Track %r has negative duration %s, clamped to 0",
                self.title,
                self.duration_seconds,
            )
            object.__setattr__(self, "duration_seconds", 0.0)

    @property
    def display_title(self) -> str:
        """Return title, falling back to the alternative title."""
        return self.title or self.alternative_title or ""

    @property
    def has_album(self) -> bool:
        """Return True if the track belongs to a known album."""
        return bool(self.album)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Create a track from the remote player's song JSON.

        Args:
            data: Song object as sent by the remote API.

        Returns:
            The parsed Track.
        """
        raw_tags = data.get("tags")
        tags: tuple[str, ...] = ()
        if isinstance(raw_tags, list):
            tags = tuple(str(t) for t in cast(list[Any], raw_tags))

        views = data.get("views")
        return cls(
            title=str(data.get("title") or ""),
            artist=str(data.get("artist") or ""),
            duration_seconds=float(data.get("songDuration") or 0),
            video_id=str(data.get("videoId") or ""),
            media_type=MediaType.from_string(str(data.get("mediaType") or "")),
            album=_optional_str(data.get("album")),
            image_url=_optional_str(data.get("imageSrc")),
            source_url=_optional_str(data.get("url")),
            playlist_id=_optional_str(data.get("playlistId")),
            tags=tags,
            alternative_title=_optional_str(data.get("alternativeTitle")),
            artist_url=_optional_str(data.get("artistUrl")),
            views=int(views) if isinstance(views, int | float) and math.isfinite(views) else 0,
            upload_date=_optional_str(data.get("uploadDate")),
        )


@dataclass(frozen=True, slots=True)
class NowPlaying:
    """Snapshot returned by the remote ``/song`` endpoint.

    Attributes:
        track: The loaded track.
        is_paused: Whether playback is paused.
        elapsed_seconds: Playback position in seconds.
    """

    track: Track
    is_paused: bool = True
    elapsed_seconds: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NowPlaying":
        """Create a snapshot from the ``/song`` response body."""
        return cls(
            track=Track.from_dict(data),
            is_paused=bool(data.get("isPaused", True)),
            elapsed_seconds=float(data.get("elapsedSeconds") or 0),
        )
