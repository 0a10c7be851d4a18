"""In-memory stand-ins shared by the capture-board tests."""

from concurrent.futures import Executor, Future
from typing import Callable, Optional

from capture_board.backend import PipelineBackend
from capture_board.errors import BackendError
from capture_board.models.event import CalendarEvent
from capture_board.models.opportunity import Opportunity
from capture_board.notify import Severity


class FakeBackend(PipelineBackend):
    """In-memory leads API. Holds the server truth; writes can be made to fail."""

    def __init__(self, records: Optional[list[Opportunity]] = None):
        self.records: list[Opportunity] = list(records or [])
        self.events: list[CalendarEvent] = []
        self.fail_updates = False
        self.fail_fetches = False
        self.update_calls: list[tuple[str, str, str]] = []
        self.fetch_count = 0
        self.on_update: Optional[Callable[[str, str, str], None]] = None

    def fetch_records(self) -> list[Opportunity]:
        self.fetch_count += 1
        if self.fail_fetches:
            raise BackendError("GET /api/leads: HTTP 503", status_code=503)
        return list(self.records)

    def update_stage(self, record_id: str, field: str, value: str) -> None:
        self.update_calls.append((record_id, field, value))
        if self.on_update is not None:
            self.on_update(record_id, field, value)
        if self.fail_updates:
            raise BackendError(f"PUT /api/leads/{record_id}: HTTP 500", status_code=500)
        self.records = [
            r.with_stage(field, value) if r.id == record_id else r for r in self.records
        ]

    def fetch_events(self) -> list[CalendarEvent]:
        return list(self.events)


class RecordingNotifier:
    """Notifier that keeps every (message, severity) it receives."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, Severity]] = []

    def __call__(self, message: str, severity: Severity) -> None:
        self.messages.append((message, severity))

    def of(self, severity: Severity) -> list[str]:
        return [m for m, s in self.messages if s is severity]


class DeferredExecutor(Executor):
    """Executor that queues work until run_pending(), so tests control when confirmations land."""

    def __init__(self) -> None:
        self.pending: list[tuple[Future, Callable, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_pending(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


def make_opp(
    opp_id: str = "lead-1",
    name: str = "Fleet Telematics RFP",
    stage: str = "opp sourced",
    forecast_stage: str = "Source",
    value: float = 100000.0,
    priority: int = 1,
    win_probability: float = 0.0,
    deal_type: Optional[str] = None,
    **extra,
) -> Opportunity:
    return Opportunity(
        id=opp_id,
        name=name,
        stage=stage,
        forecast_stage=forecast_stage,
        value=value,
        priority=priority,
        win_probability=win_probability,
        deal_type=deal_type,
        **extra,
    )
