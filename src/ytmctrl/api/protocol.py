"""Event-stream protocol types for the remote player's WebSocket feed.

Each frame is a JSON object with a ``type`` tag and a payload whose keys
depend on the tag, for example::

    {"type": "VOLUME_CHANGED", "volume": 40, "muted": false}
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, cast

from ytmctrl.errors import ProtocolError, StateInvariantError
from ytmctrl.models.player_state import PlayerState, RepeatMode
from ytmctrl.models.track import Track

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    """Tags of the messages pushed by the remote player."""

    PLAYER_INFO = "PLAYER_INFO"
    VIDEO_CHANGED = "VIDEO_CHANGED"
    PLAYER_STATE_CHANGED = "PLAYER_STATE_CHANGED"
    POSITION_CHANGED = "POSITION_CHANGED"
    VOLUME_CHANGED = "VOLUME_CHANGED"
    REPEAT_CHANGED = "REPEAT_CHANGED"
    SHUFFLE_CHANGED = "SHUFFLE_CHANGED"


@dataclass(frozen=True)
class PlayerEvent:
    """A message pushed by the remote player.

    Attributes:
        type: Event tag.
        payload: Remaining message keys.
    """

    type: EventType
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: object) -> "PlayerEvent":
        """Create an event from a decoded JSON message.

        Raises:
            ProtocolError: If the message is not an object or its tag is
                missing or unknown.
        """
        if not isinstance(data, dict):
            raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")
        message = cast(dict[str, Any], data)
        tag = message.get("type")
        try:
            event_type = EventType(tag)
        except ValueError:
            raise ProtocolError(f"Unknown message type: {tag!r}") from None
        payload = {k: v for k, v in message.items() if k != "type"}
        return cls(type=event_type, payload=payload)


def parse_message(text: str) -> PlayerEvent:
    """Decode a raw WebSocket text frame.

    Raises:
        ProtocolError: If the frame is not valid JSON or not a known event.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON message: {e}") from e
    return PlayerEvent.from_dict(data)


def _song(payload: dict[str, Any]) -> Track | None:
    raw = payload.get("song")
    if isinstance(raw, dict):
        return Track.from_dict(cast(dict[str, Any], raw))
    return None


def _repeat(state: PlayerState, payload: dict[str, Any]) -> RepeatMode:
    if "repeat" not in payload:
        return state.repeat_mode
    try:
        return RepeatMode.parse(payload["repeat"])
    except StateInvariantError as e:
        logger.warning("Ignoring repeat update: %s", e)
        return state.repeat_mode


def apply_event(state: PlayerState, event: PlayerEvent) -> PlayerState:
    """Fold one event into a player state.

    Keys missing from the payload keep their previous value.

    Args:
        state: State before the event.
        event: The pushed event.

    Returns:
        The normalized state after the event.

    Raises:
        ProtocolError: If a payload value has the wrong type.
    """
    try:
        return _fold(state, event).normalized()
    except (TypeError, ValueError, OverflowError) as e:
        raise ProtocolError(f"Malformed {event.type} payload: {e}") from e


def _fold(state: PlayerState, event: PlayerEvent) -> PlayerState:
    p = event.payload
    match event.type:
        case EventType.PLAYER_INFO:
            new_state = PlayerState(
                song=_song(p),
                is_playing=bool(p.get("isPlaying", False)),
                muted=bool(p.get("muted", False)),
                position_seconds=float(p.get("position") or 0),
                volume_percent=int(p.get("volume", state.volume_percent)),
                repeat_mode=_repeat(state, p),
                shuffle=bool(p.get("shuffle", False)),
            )
        case EventType.VIDEO_CHANGED:
            song = _song(p)
            raw_song = p.get("song")
            paused = raw_song.get("isPaused", True) if isinstance(raw_song, dict) else True
            new_state = replace(
                state,
                song=song,
                position_seconds=float(p.get("position") or 0),
                is_playing=song is not None and not paused,
            )
        case EventType.PLAYER_STATE_CHANGED:
            new_state = replace(
                state,
                is_playing=bool(p.get("isPlaying", state.is_playing)),
                position_seconds=float(p.get("position", state.position_seconds)),
            )
        case EventType.POSITION_CHANGED:
            new_state = replace(
                state, position_seconds=float(p.get("position", state.position_seconds))
            )
        case EventType.VOLUME_CHANGED:
            new_state = replace(
                state,
                volume_percent=int(p.get("volume", state.volume_percent)),
                muted=bool(p.get("muted", state.muted)),
            )
        case EventType.REPEAT_CHANGED:
            new_state = replace(state, repeat_mode=_repeat(state, p))
        case EventType.SHUFFLE_CHANGED:
            new_state = replace(state, shuffle=bool(p.get("shuffle", state.shuffle)))
    return new_state
