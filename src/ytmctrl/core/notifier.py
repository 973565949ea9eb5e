"""Qt notifier forwarding user-visible notifications to the host UI."""

import logging

from PySide6.QtCore import QObject, Signal

from ytmctrl.notify import Severity

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class SignalNotifier(QObject):
    """Notifier that logs and re-emits notifications as a Qt signal.

    The host UI connects ``notification`` to whatever shows transient
    messages (a tray balloon, a status bar, ...).

    Example:
        notifier = SignalNotifier()
        notifier.notification.connect(
            lambda title, body, severity: tray.showMessage(title, body)
        )
    """

    # Parameters: (title, body, severity)
    notification = Signal(str, str, str)

    def notify(self, title: str, body: str, severity: Severity) -> None:
        """Log the notification and emit it."""
        logger.log(_LOG_LEVELS.get(severity, logging.INFO), "%s: %s", title, body)
        self.notification.emit(title, body, str(severity))
