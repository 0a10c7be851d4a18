"""Exceptions raised by capture-board."""


class CaptureBoardError(Exception):
    """Base class for capture-board errors."""


class DragStateError(CaptureBoardError, RuntimeError):
    """Drag controller used out of order (caller bug, not a runtime condition)."""


class BackendError(CaptureBoardError):
    """The backend could not fetch records or apply a stage update."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(CaptureBoardError, ValueError):
    """Settings file is missing or malformed."""
