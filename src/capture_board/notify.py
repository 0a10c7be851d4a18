"""Notification surface: the toast/banner function the boards report through."""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


Notifier = Callable[[str, Severity], None]

_LEVELS = {
    Severity.SUCCESS: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


def log_notifier(message: str, severity: Severity) -> None:
    """Default notifier when no UI is attached: write the toast to the log."""
    logger.log(_LEVELS.get(severity, logging.INFO), "[%s] %s", severity.value, message)
