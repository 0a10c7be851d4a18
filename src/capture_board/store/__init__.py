"""Local storage for notification read state."""

from capture_board.store.read_state import ReadExpiry, ReadStateStore

__all__ = ["ReadExpiry", "ReadStateStore"]
