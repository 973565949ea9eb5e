"""User-facing notification interface."""

from enum import StrEnum
from typing import Protocol


class Severity(StrEnum):
    """How prominently a notification should be shown."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    """Sink for transient, user-visible notifications."""

    def notify(self, title: str, body: str, severity: Severity) -> None: ...
