"""Tests for live invalidation sources and the board channel."""

from unittest.mock import MagicMock

import pytest
import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError
from fakes import FakeBackend, RecordingNotifier

from capture_board.board import BoardSession, InvalidationChannel, LocalSource, SocketIOSource
from capture_board.board.invalidation import EXTERNAL_UPDATE_MESSAGE, LEADS_UPDATED_EVENT
from capture_board.board.session import LOAD_FAILURE_MESSAGE
from capture_board.errors import BackendError
from capture_board.notify import Severity


def _mock_client() -> MagicMock:
    client = MagicMock(spec=socketio.Client)
    client.connected = False

    def _connect(*args, **kwargs):
        client.connected = True

    def _disconnect():
        client.connected = False

    client.connect.side_effect = _connect
    client.disconnect.side_effect = _disconnect
    return client


def _registered(client: MagicMock, event: str):
    """Handler the source registered with client.on for an event."""
    for call in client.on.call_args_list:
        if call.args[0] == event:
            return call.args[1]
    raise AssertionError(f"no handler registered for {event}")


class TestLocalSource:
    """Tests for the in-process source."""

    def test_publish_reaches_subscribers(self) -> None:
        """publish() calls every handler of the event."""
        source = LocalSource()
        hits: list[str] = []
        source.subscribe(LEADS_UPDATED_EVENT, lambda: hits.append("a"))
        source.subscribe(LEADS_UPDATED_EVENT, lambda: hits.append("b"))
        source.subscribe("other", lambda: hits.append("x"))
        source.publish()
        assert hits == ["a", "b"]

    def test_unsubscribe(self) -> None:
        """Unsubscribed handlers are not called; unknown handlers are ignored."""
        source = LocalSource()
        hits: list[int] = []
        handler = lambda: hits.append(1)  # noqa: E731
        source.subscribe(LEADS_UPDATED_EVENT, handler)
        source.unsubscribe(LEADS_UPDATED_EVENT, handler)
        source.unsubscribe(LEADS_UPDATED_EVENT, handler)
        source.publish()
        assert hits == []
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 0


class TestInvalidationChannel:
    """Tests for InvalidationChannel."""

    def test_signal_refetches_and_informs(self, notifier: RecordingNotifier) -> None:
        """Each signal triggers one refetch and one info toast."""
        source = LocalSource()
        calls: list[int] = []

        def _refetch() -> bool:
            calls.append(1)
            return True

        channel = InvalidationChannel(source, _refetch, notifier)
        channel.open()
        source.publish()
        source.publish()
        assert calls == [1, 1]
        assert notifier.messages == [(EXTERNAL_UPDATE_MESSAGE, Severity.INFO)] * 2

    def test_failed_refetch_is_not_announced(self, notifier: RecordingNotifier) -> None:
        """No info toast when the refetch did not land."""
        source = LocalSource()
        InvalidationChannel(source, lambda: False, notifier).open()
        source.publish()
        assert notifier.messages == []

    def test_open_close_idempotent(self, notifier: RecordingNotifier) -> None:
        """Repeated open/close keep exactly zero or one subscription."""
        source = LocalSource()
        channel = InvalidationChannel(source, lambda: True, notifier)
        channel.open()
        channel.open()
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 1
        channel.close()
        channel.close()
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 0
        source.publish()
        assert notifier.messages == []

    def test_custom_event_name(self, notifier: RecordingNotifier) -> None:
        """Channel listens on the configured event only."""
        source = LocalSource()
        calls: list[str] = []

        def _refetch() -> bool:
            calls.append("forecast")
            return True

        InvalidationChannel(source, _refetch, notifier, event="forecast:updated").open()
        source.publish()
        source.publish("forecast:updated")
        assert calls == ["forecast"]


class TestSessionInvalidation:
    """Invalidation wired through a mounted board session."""

    def test_external_change_replaces_snapshot(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """A signal pulls the server's current records."""
        source = LocalSource()
        session = BoardSession(backend, "primary", notifier=notifier)
        session.mount(source)
        assert session.is_live
        backend.records = [r.with_stage("stage", "lost") for r in backend.records]
        source.publish()
        assert {r.stage for r in session.records} == {"lost"}
        assert notifier.of(Severity.INFO) == [EXTERNAL_UPDATE_MESSAGE]

    def test_signal_with_backend_down(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """A signal whose refetch fails keeps the old snapshot and reports only the load error."""
        source = LocalSource()
        session = BoardSession(backend, "primary", notifier=notifier)
        session.mount(source)
        before = session.records
        backend.fail_fetches = True
        source.publish()
        assert session.records == before
        assert notifier.of(Severity.INFO) == []
        assert notifier.of(Severity.ERROR) == [LOAD_FAILURE_MESSAGE]

    def test_signal_mid_drag_keeps_drag_open(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """The drag survives a refetch and still commits."""
        source = LocalSource()
        session = BoardSession(backend, "primary", notifier=notifier)
        session.mount(source)
        session.drag.begin_drag("lead-2")
        source.publish()
        assert session.drag.is_open
        outcome = session.drag.drop("Win")
        assert outcome is not None and outcome.success

    def test_unmount_stops_listening(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """After unmount no refetch happens and open drags are abandoned."""
        source = LocalSource()
        session = BoardSession(backend, "primary", notifier=notifier)
        session.mount(source)
        session.drag.begin_drag("lead-1")
        session.unmount()
        fetches = backend.fetch_count
        source.publish()
        assert backend.fetch_count == fetches
        assert not session.is_live
        assert not session.drag.is_open

    def test_mount_twice_subscribes_once(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """Remounting a live session does not double-subscribe."""
        source = LocalSource()
        session = BoardSession(backend, "primary", notifier=notifier)
        session.mount(source)
        session.mount(source)
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 1

    def test_remount_after_connect_failure(self, backend: FakeBackend, notifier: RecordingNotifier) -> None:
        """A mount whose connection failed leaves nothing behind, so the next mount goes live."""
        client = _mock_client()
        attempts: list[str] = []

        def _connect(*args, **kwargs):
            attempts.append(args[0])
            if len(attempts) == 1:
                raise SocketConnectionError("refused")
            client.connected = True

        client.connect.side_effect = _connect
        source = SocketIOSource("http://api.local", client=client)
        session = BoardSession(backend, "primary", notifier=notifier)

        with pytest.raises(BackendError):
            session.mount(source)
        assert not session.is_live
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 0

        session.mount(source)
        assert session.is_live
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 1
        assert client.connect.call_count == 2


class TestSocketIOSource:
    """Socket.IO source against a mocked client."""

    def test_connects_on_first_subscribe(self) -> None:
        """Subscribing connects with the auth token."""
        client = _mock_client()
        source = SocketIOSource("http://api.local", client=client, token="t0k")
        source.subscribe(LEADS_UPDATED_EVENT, lambda: None)
        source.subscribe(LEADS_UPDATED_EVENT, lambda: None)
        client.connect.assert_called_once_with("http://api.local", auth={"token": "t0k"})

    def test_dispatches_server_event(self) -> None:
        """Server emits are fanned out to handlers."""
        client = _mock_client()
        source = SocketIOSource("http://api.local", client=client)
        hits: list[int] = []
        source.subscribe(LEADS_UPDATED_EVENT, lambda: hits.append(1))
        _registered(client, LEADS_UPDATED_EVENT)({"reason": "ignored"})
        assert hits == [1]

    def test_handler_error_does_not_break_dispatch(self) -> None:
        """A failing handler is logged and the next one still runs."""
        client = _mock_client()
        source = SocketIOSource("http://api.local", client=client)
        hits: list[int] = []

        def _boom() -> None:
            raise RuntimeError("render failed")

        source.subscribe(LEADS_UPDATED_EVENT, _boom)
        source.subscribe(LEADS_UPDATED_EVENT, lambda: hits.append(1))
        _registered(client, LEADS_UPDATED_EVENT)()
        assert hits == [1]

    def test_disconnects_when_last_handler_leaves(self) -> None:
        """Connection closes once nothing listens."""
        client = _mock_client()
        source = SocketIOSource("http://api.local", client=client)
        handler = lambda: None  # noqa: E731
        source.subscribe(LEADS_UPDATED_EVENT, handler)
        source.unsubscribe(LEADS_UPDATED_EVENT, handler)
        client.disconnect.assert_called_once()

    def test_connection_failure_is_backend_error(self) -> None:
        """Socket connection errors surface as BackendError."""
        client = _mock_client()
        client.connect.side_effect = SocketConnectionError("refused")
        source = SocketIOSource("http://api.local", client=client)
        with pytest.raises(BackendError, match="Cannot connect"):
            source.subscribe(LEADS_UPDATED_EVENT, lambda: None)
        assert source.subscriber_count(LEADS_UPDATED_EVENT) == 0
