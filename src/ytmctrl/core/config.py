"""Configuration manager using QSettings for persistent storage."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from PySide6.QtCore import QSettings

from ytmctrl.api.client import DEFAULT_API_VERSION, DEFAULT_CLIENT_NAME, DEFAULT_PORT

logger = logging.getLogger(__name__)

# Settings keys
_KEY_HOST = "api/host"
_KEY_PORT = "api/port"
_KEY_API_VERSION = "api/version"
_KEY_CLIENT_NAME = "api/client_name"
_KEY_REQUEST_TIMEOUT = "api/request_timeout"

# Synchronization
_KEY_SYNC_MODE = "sync/mode"
_KEY_POLL_INTERVAL = "sync/poll_interval_ms"
_KEY_MAX_RECONNECT_DELAY = "sync/max_reconnect_delay_ms"
_KEY_SETTLE_DELAY = "sync/settle_delay_ms"

# Credentials
_KEY_PREFIX_AUTH = "auth/"


class SyncMode(StrEnum):
    """How the local mirror is kept in sync."""

    PUSH = "push"  # WebSocket event stream
    POLL = "poll"  # timed fetches (players without an event stream)


@dataclass(frozen=True)
class SyncConfig:
    """Settings injected into the synchronization components.

    Attributes:
        host: Remote player host.
        port: Remote API port.
        api_version: API version path segment.
        client_name: Name presented in the consent prompt.
        mode: Push or poll synchronization.
        poll_interval_ms: Delay between successful polls.
        max_reconnect_delay_ms: Ceiling for reconnect/poll backoff.
        settle_delay_ms: Delay before the refresh that follows a command.
        request_timeout: Per-request timeout in seconds.
    """

    host: str = "localhost"
    port: int = DEFAULT_PORT
    api_version: str = DEFAULT_API_VERSION
    client_name: str = DEFAULT_CLIENT_NAME
    mode: SyncMode = SyncMode.PUSH
    poll_interval_ms: int = 5000
    max_reconnect_delay_ms: int = 15000
    settle_delay_ms: int = 1500
    request_timeout: float = 10.0


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\ytmctrl\\ytmctrl
    - macOS: ~/Library/Preferences/com.ytmctrl.ytmctrl.plist
    - Linux: ~/.config/ytmctrl/ytmctrl.conf

    Example:
        config = ConfigManager()
        sync = config.get_sync_config()
        config.set_port(26538)
    """

    def __init__(self, organization: str = "ytmctrl", application: str = "ytmctrl") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Remote API ------------------------------------------------------------

    def get_host(self) -> str:
        """Return the remote player host (default "localhost")."""
        value = self._settings.value(_KEY_HOST, "localhost", str)
        return str(value) if value else "localhost"

    def set_host(self, host: str) -> None:
        """Set the remote player host."""
        self._settings.setValue(_KEY_HOST, host)

    def get_port(self) -> int:
        """Return the remote API port (default 26538)."""
        value = self._settings.value(_KEY_PORT, DEFAULT_PORT, int)
        return max(1, min(65535, int(value)))  # type: ignore[arg-type]

    def set_port(self, port: int) -> None:
        """Set the remote API port (1-65535)."""
        self._settings.setValue(_KEY_PORT, max(1, min(65535, port)))

    def get_api_version(self) -> str:
        """Return the API version path segment (default "v1")."""
        value = self._settings.value(_KEY_API_VERSION, DEFAULT_API_VERSION, str)
        return str(value) if value else DEFAULT_API_VERSION

    def get_client_name(self) -> str:
        """Return the client name used for the auth endpoint."""
        value = self._settings.value(_KEY_CLIENT_NAME, DEFAULT_CLIENT_NAME, str)
        return str(value) if value else DEFAULT_CLIENT_NAME

    def get_request_timeout(self) -> float:
        """Return the per-request timeout in seconds (1-60, default 10)."""
        value = self._settings.value(_KEY_REQUEST_TIMEOUT, 10.0, float)
        return max(1.0, min(60.0, float(value)))  # type: ignore[arg-type]

    # -- Synchronization ---------------------------------------------------------

    def get_sync_mode(self) -> SyncMode:
        """Return the synchronization mode (default push)."""
        value = self._settings.value(_KEY_SYNC_MODE, SyncMode.PUSH.value, str)
        try:
            return SyncMode(str(value))
        except ValueError:
            logger.warning("Unknown sync mode %r in settings, using push", value)
            return SyncMode.PUSH

    def set_sync_mode(self, mode: SyncMode) -> None:
        """Set the synchronization mode."""
        self._settings.setValue(_KEY_SYNC_MODE, mode.value)

    def get_poll_interval(self) -> int:
        """Return the poll interval in milliseconds (500-60000, default 5000)."""
        value = self._settings.value(_KEY_POLL_INTERVAL, 5000, int)
        return max(500, min(60000, int(value)))  # type: ignore[arg-type]

    def set_poll_interval(self, ms: int) -> None:
        """Set the poll interval in milliseconds (500-60000)."""
        self._settings.setValue(_KEY_POLL_INTERVAL, max(500, min(60000, ms)))

    def get_max_reconnect_delay(self) -> int:
        """Return the reconnect delay ceiling in milliseconds (1000-300000, default 15000)."""
        value = self._settings.value(_KEY_MAX_RECONNECT_DELAY, 15000, int)
        return max(1000, min(300000, int(value)))  # type: ignore[arg-type]

    def set_max_reconnect_delay(self, ms: int) -> None:
        """Set the reconnect delay ceiling in milliseconds (1000-300000)."""
        self._settings.setValue(_KEY_MAX_RECONNECT_DELAY, max(1000, min(300000, ms)))

    def get_settle_delay(self) -> int:
        """Return the post-command refresh delay in milliseconds (0-10000, default 1500)."""
        value = self._settings.value(_KEY_SETTLE_DELAY, 1500, int)
        return max(0, min(10000, int(value)))  # type: ignore[arg-type]

    def set_settle_delay(self, ms: int) -> None:
        """Set the post-command refresh delay in milliseconds (0-10000)."""
        self._settings.setValue(_KEY_SETTLE_DELAY, max(0, min(10000, ms)))

    def get_sync_config(self) -> SyncConfig:
        """Return all synchronization settings as one value."""
        return SyncConfig(
            host=self.get_host(),
            port=self.get_port(),
            api_version=self.get_api_version(),
            client_name=self.get_client_name(),
            mode=self.get_sync_mode(),
            poll_interval_ms=self.get_poll_interval(),
            max_reconnect_delay_ms=self.get_max_reconnect_delay(),
            settle_delay_ms=self.get_settle_delay(),
            request_timeout=self.get_request_timeout(),
        )

    def save_sync_config(self, config: SyncConfig) -> None:
        """Persist all synchronization settings."""
        self.set_host(config.host)
        self.set_port(config.port)
        self._settings.setValue(_KEY_API_VERSION, config.api_version)
        self._settings.setValue(_KEY_CLIENT_NAME, config.client_name)
        self._settings.setValue(_KEY_REQUEST_TIMEOUT, config.request_timeout)
        self.set_sync_mode(config.mode)
        self.set_poll_interval(config.poll_interval_ms)
        self.set_max_reconnect_delay(config.max_reconnect_delay_ms)
        self.set_settle_delay(config.settle_delay_ms)

    # -- Credentials -------------------------------------------------------------

    def get_credential(self, key: str) -> str | None:
        """Return a stored credential, or None if absent."""
        value = self._settings.value(_KEY_PREFIX_AUTH + key, "", str)
        return str(value) if value else None

    def set_credential(self, key: str, value: str) -> None:
        """Store a credential."""
        self._settings.setValue(_KEY_PREFIX_AUTH + key, value)

    def delete_credential(self, key: str) -> None:
        """Remove a stored credential."""
        self._settings.remove(_KEY_PREFIX_AUTH + key)

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()


class SettingsTokenStore:
    """Async TokenStore backed by ConfigManager credentials."""

    def __init__(self, config: ConfigManager) -> None:
        self._config = config

    async def get(self, key: str) -> str | None:
        return self._config.get_credential(key)

    async def set(self, key: str, value: str) -> None:
        self._config.set_credential(key, value)
        self._config.sync()

    async def delete(self, key: str) -> None:
        self._config.delete_credential(key)
        self._config.sync()
