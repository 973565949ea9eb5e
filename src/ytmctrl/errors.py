"""Error types shared by the API client and the synchronization layer."""


class YtmError(Exception):
    """Base class for all remote player errors."""


class NetworkError(YtmError):
    """The remote player could not be reached (refused, reset, timed out)."""


class AuthError(YtmError):
    """The credential was rejected or the consent request was denied."""


class RemoteApiError(YtmError):
    """The remote API answered with a non-2xx status.

    Attributes:
        status: HTTP status code.
        body: Response body text.
    """

    def __init__(self, status: int, body: str) -> None:
        super().__init__(body or f"HTTP {status}")
        self.status = status
        self.body = body


class ProtocolError(YtmError):
    """A message or response body could not be understood."""


class StateInvariantError(YtmError):
    """A value that can never be valid for the player state was observed."""
