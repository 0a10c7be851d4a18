"""Live invalidation: a push signal that the shared record set changed elsewhere.

The signal carries no payload. On receipt the board refetches and, once the refetch
has landed, the user gets an informational toast. Signals may arrive mid-drag; the
next refetch wins.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from capture_board.errors import BackendError
from capture_board.notify import Notifier, Severity

logger = logging.getLogger(__name__)

LEADS_UPDATED_EVENT = "leads:updated"
EXTERNAL_UPDATE_MESSAGE = "Pipeline updated externally"

Handler = Callable[[], None]


class InvalidationSource(ABC):
    """Delivers named, payload-free change signals to subscribed handlers."""

    @abstractmethod
    def subscribe(self, event: str, handler: Handler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event: str, handler: Handler) -> None:
        pass


class LocalSource(InvalidationSource):
    """In-process source: publish() fans out to subscribers synchronously."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def publish(self, event: str = LEADS_UPDATED_EVENT) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler()


class SocketIOSource(InvalidationSource):
    """
    Socket.IO client source (the API server emits `leads:updated` after every write).
    Connects on first subscription and disconnects when the last handler leaves.
    Handlers run on the client's background thread.
    """

    def __init__(
        self,
        url: str,
        *,
        client: Optional[socketio.Client] = None,
        token: Optional[str] = None,
    ):
        self.url = url
        self._client = client or socketio.Client(reconnection=True)
        self._token = token
        self._handlers: dict[str, list[Handler]] = {}
        self._client.on("connect", lambda: logger.info("Connected to %s", self.url))
        self._client.on("disconnect", lambda *args: logger.info("Disconnected from %s", self.url))

    def subscribe(self, event: str, handler: Handler) -> None:
        if event not in self._handlers:
            self._handlers[event] = []
            self._client.on(event, lambda *args: self._dispatch(event))
        self._handlers[event].append(handler)
        if not self._client.connected:
            auth = {"token": self._token} if self._token else None
            try:
                self._client.connect(self.url, auth=auth)
            except SocketConnectionError as e:
                # Not subscribed unless connected; a later subscribe retries cleanly
                self._handlers[event].remove(handler)
                raise BackendError(f"Cannot connect to {self.url}: {e}") from e

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not any(self._handlers.values()) and self._client.connected:
            self._client.disconnect()

    def subscriber_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def wait(self) -> None:
        """Block until the connection ends."""
        self._client.wait()

    def _dispatch(self, event: str) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler()
            except Exception:
                # Keep the socket thread alive; the next signal gets another chance
                logger.exception("Invalidation handler for %s failed", event)


class InvalidationChannel:
    """
    Standing subscription for one board-hosting view.
    open() when the view mounts, close() when it unmounts; both are idempotent.
    """

    def __init__(
        self,
        source: InvalidationSource,
        on_invalidate: Callable[[], bool],
        notifier: Notifier,
        *,
        event: str = LEADS_UPDATED_EVENT,
    ):
        self._source = source
        self._on_invalidate = on_invalidate
        self._notify = notifier
        self.event = event
        self.is_open = False

    def open(self) -> None:
        if self.is_open:
            return
        self._source.subscribe(self.event, self._handle)
        self.is_open = True

    def close(self) -> None:
        if not self.is_open:
            return
        self._source.unsubscribe(self.event, self._handle)
        self.is_open = False

    def _handle(self) -> None:
        if not self.is_open:
            return
        logger.info("Received %s, refetching", self.event)
        # on_invalidate reports its own failures; the info toast means the board is fresh
        if self._on_invalidate():
            self._notify(EXTERNAL_UPDATE_MESSAGE, Severity.INFO)
