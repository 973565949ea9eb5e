"""Main entry point: a headless host that mirrors the remote player's state."""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from ytmctrl.core.config import ConfigManager, SettingsTokenStore, SyncMode
from ytmctrl.core.notifier import SignalNotifier
from ytmctrl.core.state import StateStore
from ytmctrl.core.worker import PlayerWorker
from ytmctrl.models.player_state import PlayerState

logger = logging.getLogger(__name__)


def _describe(state: PlayerState) -> str:
    """Return a one-line summary of a player state."""
    if state.song is None:
        return "nothing playing"
    song = state.song
    status = "playing" if state.is_playing else "paused"
    return (
        f"{status}: {song.display_title} by {song.artist or 'unknown'} "
        f"[{state.position_seconds:.0f}/{song.duration_seconds:.0f}s] "
        f"vol={state.volume_percent}{' (muted)' if state.muted else ''} "
        f"repeat={state.repeat_mode} shuffle={'on' if state.shuffle else 'off'}"
    )


def main() -> int:
    """Run the ytmctrl host.

    Returns:
        Exit code (0 for success).
    """
    QCoreApplication.setApplicationName("ytmctrl")
    QCoreApplication.setOrganizationName("ytmctrl")
    app = QCoreApplication(sys.argv)

    parser = argparse.ArgumentParser(
        prog="ytmctrl",
        description="Mirror a YouTube Music desktop player's state",
    )
    parser.add_argument("host", nargs="?", default=None, help="remote player host")
    parser.add_argument("port", nargs="?", type=int, default=None, help="remote API port")
    parser.add_argument(
        "--poll", action="store_true", help="poll instead of using the event stream"
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parsed = parser.parse_args(app.arguments()[1:])

    logging.basicConfig(
        level=logging.DEBUG if parsed.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ConfigManager()
    if parsed.host:
        config.set_host(parsed.host)
    if parsed.port is not None:
        config.set_port(parsed.port)
    if parsed.poll:
        config.set_sync_mode(SyncMode.POLL)
    sync_config = config.get_sync_config()

    # Create core components
    state_store = StateStore()
    notifier = SignalNotifier()
    worker = PlayerWorker(sync_config, state_store, SettingsTokenStore(config), notifier)

    state_store.state_changed.connect(lambda state: logger.info("%s", _describe(state)))
    state_store.connection_changed.connect(
        lambda connected: logger.info("Remote player %s", "connected" if connected else "lost")
    )
    worker.started_sync.connect(lambda: logger.info("Sync started (%s mode)", sync_config.mode))
    worker.error_occurred.connect(lambda e: logger.error("Command failed: %s", e))

    signal.signal(signal.SIGINT, lambda *_: app.quit())

    # Let the Python interpreter run periodically so SIGINT is delivered
    interrupt_timer = QTimer()
    interrupt_timer.start(250)
    interrupt_timer.timeout.connect(lambda: None)

    # Start worker thread
    worker.start()
    logger.info("Mirroring %s:%d, press Ctrl+C to quit", sync_config.host, sync_config.port)

    # Run the application
    exit_code = app.exec()

    # Cleanup
    worker.stop()
    worker.wait(5000)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
