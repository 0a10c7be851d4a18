"""Board session: the state behind one board-hosting view.

Holds the current snapshot of records, derives partitions from it, and wires the drag
controller, reconciler and invalidation channel together. The snapshot is replaced
wholesale on every refetch; partitions are never stored.
"""

import logging
from concurrent.futures import Executor
from typing import Callable, Optional, Union

from capture_board.backend import PipelineBackend
from capture_board.board.drag import DragController, NavigationIntent
from capture_board.board.invalidation import (
    LEADS_UPDATED_EVENT,
    InvalidationChannel,
    InvalidationSource,
)
from capture_board.board.partition import BucketSummary, aggregate, partition, stage_of
from capture_board.board.policy import BoardPolicy, default_policy
from capture_board.board.reconciler import SyncReconciler
from capture_board.errors import BackendError
from capture_board.models.opportunity import Opportunity
from capture_board.notify import Notifier, Severity, log_notifier
from capture_board.stages import Taxonomy, get_catalog

logger = logging.getLogger(__name__)

LOAD_FAILURE_MESSAGE = "Failed to load leads. Backend may be down."

Listener = Callable[[tuple[Opportunity, ...]], None]

FORECAST_DEAL_TYPE = "Forecast"


def board_record_filter(taxonomy: Union[Taxonomy, str]) -> Callable[[Opportunity], bool]:
    """Records shown on a board: forecast deals on the forecast board, everything else on the leads board."""
    if get_catalog(taxonomy).taxonomy is Taxonomy.FORECAST:
        return lambda r: r.deal_type == FORECAST_DEAL_TYPE
    return lambda r: r.deal_type != FORECAST_DEAL_TYPE


class BoardSession:
    """One board (leads pipeline or forecast) over a shared backend."""

    def __init__(
        self,
        backend: PipelineBackend,
        taxonomy: Union[Taxonomy, str] = Taxonomy.PRIMARY,
        *,
        policy: Optional[BoardPolicy] = None,
        notifier: Notifier = log_notifier,
        navigator: Optional[Callable[[NavigationIntent], None]] = None,
        record_filter: Optional[Callable[[Opportunity], bool]] = None,
        executor: Optional[Executor] = None,
    ):
        self.backend = backend
        self.catalog = get_catalog(taxonomy)
        self.policy = policy or default_policy(self.catalog.taxonomy)
        self._notify = notifier
        self._record_filter = record_filter
        self._records: tuple[Opportunity, ...] = ()
        self._listeners: list[Listener] = []
        self._channel: Optional[InvalidationChannel] = None

        self.reconciler = SyncReconciler(
            self,
            notifier,
            policy=self.policy.reconcile,
            notify_success=self.policy.notify_success,
            executor=executor,
        )
        self.drag = DragController(
            self,
            guard=self.policy.same_stage_guard,
            constraint=self.policy.constraint,
            navigator=navigator,
        )

    @property
    def taxonomy(self) -> Taxonomy:
        return self.catalog.taxonomy

    # -- snapshot -----------------------------------------------------------

    @property
    def records(self) -> tuple[Opportunity, ...]:
        return self._records

    def add_listener(self, listener: Listener) -> None:
        """Called with the new snapshot after every local change or refetch (re-render hook)."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _replace(self, records: tuple[Opportunity, ...]) -> None:
        self._records = records
        for listener in list(self._listeners):
            listener(records)

    def find(self, record_id: str) -> Optional[Opportunity]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def stage_of(self, record: Opportunity) -> str:
        return stage_of(record, self.catalog)

    def partition(self) -> dict[str, list[Opportunity]]:
        return partition(self._records, self.taxonomy)

    def aggregate(self) -> dict[str, BucketSummary]:
        return aggregate(self._records, self.taxonomy)

    def apply_local(
        self, record_id: str, field: str, value: str
    ) -> Optional[tuple[Opportunity, Opportunity]]:
        """
        Optimistically set a stage field.
        Returns (record as it was, optimistic copy now in the snapshot), or None if absent.
        """
        previous = self.find(record_id)
        if previous is None:
            return None
        updated = previous.with_stage(field, value)
        self._replace(tuple(updated if r.id == record_id else r for r in self._records))
        return previous, updated

    def restore_local(self, record: Opportunity, *, expected: Opportunity) -> bool:
        """
        Put a record back as captured before an optimistic change, but only while the
        snapshot still holds `expected` (the optimistic copy). A refetch in between wins.
        """
        if self.find(record.id) is not expected:
            logger.debug("Revert of %s skipped: snapshot replaced since the move", record.id)
            return False
        self._replace(tuple(record if r.id == record.id else r for r in self._records))
        return True

    def refetch(self, *, notify_failure: bool = True) -> bool:
        """
        Replace the snapshot with the backend's current records. Returns False on failure,
        leaving the snapshot unchanged.
        """
        try:
            records = self.backend.fetch_records()
        except BackendError as e:
            logger.warning("Refetch failed: %s", e)
            if notify_failure:
                self._notify(LOAD_FAILURE_MESSAGE, Severity.ERROR)
            return False
        if self._record_filter is not None:
            records = [r for r in records if self._record_filter(r)]
        logger.info("Refetched %d records for %s board", len(records), self.taxonomy.value)
        self._replace(tuple(records))
        return True

    # -- view lifecycle -----------------------------------------------------

    def mount(
        self,
        source: Optional[InvalidationSource] = None,
        *,
        event: str = LEADS_UPDATED_EVENT,
    ) -> bool:
        """Initial load, then subscribe to external changes if a source is given."""
        loaded = self.refetch()
        if source is not None and self._channel is None:
            channel = InvalidationChannel(source, self.refetch, self._notify, event=event)
            # Raises BackendError if the source cannot connect; nothing is kept then
            channel.open()
            self._channel = channel
        return loaded

    def unmount(self) -> None:
        """Tear down the invalidation subscription and abandon any open drag."""
        if self._channel is not None:
            self._channel.close()
            self._channel = None
        self.drag.cancel()

    @property
    def is_live(self) -> bool:
        return self._channel is not None and self._channel.is_open
