"""Core synchronization layer.

This module contains the logic that keeps the local mirror of the remote
player in sync and relays commands to it.

Classes:
    StateStore: Central state store with Qt signals.
    ConnectionManager: Event-stream connection with reconnect backoff.
    PlayerPoller: Polling fallback for players without an event stream.
    PlayerController: Command API with optimistic updates.
    PlayerWorker: QThread worker hosting the async stack.
    ConfigManager: QSettings wrapper for configuration.
"""

from ytmctrl.core.backoff import Backoff
from ytmctrl.core.config import ConfigManager, SettingsTokenStore, SyncConfig, SyncMode
from ytmctrl.core.connection import ConnectionManager, ConnectionState
from ytmctrl.core.controller import PlayerController
from ytmctrl.core.notifier import SignalNotifier
from ytmctrl.core.poller import PlayerPoller
from ytmctrl.core.state import StateStore
from ytmctrl.core.worker import PlayerWorker

__all__ = [
    "Backoff",
    "ConfigManager",
    "ConnectionManager",
    "ConnectionState",
    "PlayerController",
    "PlayerPoller",
    "PlayerWorker",
    "SettingsTokenStore",
    "SignalNotifier",
    "StateStore",
    "SyncConfig",
    "SyncMode",
]
