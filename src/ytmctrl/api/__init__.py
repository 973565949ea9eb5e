"""API client for the remote player's HTTP and event-stream interface."""

from ytmctrl.api.auth import Authenticator, TokenStore
from ytmctrl.api.client import ApiResponse, YtmClient
from ytmctrl.api.protocol import EventType, PlayerEvent, apply_event, parse_message

__all__ = [
    "ApiResponse",
    "Authenticator",
    "EventType",
    "PlayerEvent",
    "TokenStore",
    "YtmClient",
    "apply_event",
    "parse_message",
]
