"""Optimistic stage updates with failure repair.

commit() applies the move to the local snapshot first, then asks the backend to make it
authoritative. A rejected update is never retried: the user is told once and the board
is repaired from a fresh snapshot.

With an executor, submit() returns as soon as the local snapshot shows the move and the
backend confirmation runs on the executor, so a slow update does not hold up the next drag.
"""

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from capture_board.board.drag import StageMove
from capture_board.errors import BackendError
from capture_board.models.opportunity import Opportunity
from capture_board.notify import Notifier, Severity

if TYPE_CHECKING:
    from capture_board.board.session import BoardSession

logger = logging.getLogger(__name__)

PRIMARY_FAILURE_MESSAGE = "Failed to update stage. Reverting."
FORECAST_FAILURE_MESSAGE = "Failed to update stage"


class ReconcilePolicy(str, Enum):
    """
    What happens to the optimistic state when the backend rejects a move.

    strict_revert: put the record back as it was before the drag (unless a refetch has
      already replaced it), then refetch.
    defer_to_next_fetch: leave local state alone and let the refetch replace it.
    """

    STRICT_REVERT = "strict_revert"
    DEFER_TO_NEXT_FETCH = "defer_to_next_fetch"


@dataclass(frozen=True)
class CommitOutcome:
    """Result of one commit, for callers and tests."""

    move: StageMove
    success: bool
    refetched: bool = False
    error: Optional[str] = None


class SyncReconciler:
    """Applies a StageMove optimistically and reconciles with the backend."""

    def __init__(
        self,
        session: "BoardSession",
        notifier: Notifier,
        *,
        policy: ReconcilePolicy = ReconcilePolicy.STRICT_REVERT,
        notify_success: bool = False,
        failure_message: Optional[str] = None,
        executor: Optional[Executor] = None,
    ):
        self._session = session
        self._notify = notifier
        self.policy = policy
        self.notify_success = notify_success
        self.executor = executor
        self.failure_message = failure_message or (
            PRIMARY_FAILURE_MESSAGE
            if policy is ReconcilePolicy.STRICT_REVERT
            else FORECAST_FAILURE_MESSAGE
        )

    def commit(self, move: StageMove) -> CommitOutcome:
        """
        Move a record to move.target_stage and wait for the backend.
        The local snapshot reflects the move before the backend call is made.
        Backend failures are handled here and never raised to the caller.
        """
        applied = self._apply(move)
        if applied is None:
            return CommitOutcome(move=move, success=False, error="record not found")
        return self._confirm(move, *applied)

    def submit(self, move: StageMove) -> "Future[CommitOutcome]":
        """
        Like commit(), but returns once the local snapshot shows the move. The backend
        call and any repair run on the executor; without one they run inline.
        """
        applied = self._apply(move)
        if applied is None or self.executor is None:
            future: Future[CommitOutcome] = Future()
            if applied is None:
                future.set_result(CommitOutcome(move=move, success=False, error="record not found"))
            else:
                future.set_result(self._confirm(move, *applied))
            return future
        return self.executor.submit(self._confirm, move, *applied)

    def _apply(self, move: StageMove) -> Optional[tuple[Opportunity, Opportunity]]:
        applied = self._session.apply_local(
            move.record_id, self._session.catalog.field, move.target_stage
        )
        if applied is None:
            logger.warning("Commit skipped: %s not in snapshot", move.record_id)
        return applied

    def _confirm(
        self, move: StageMove, previous: Opportunity, optimistic: Opportunity
    ) -> CommitOutcome:
        field = self._session.catalog.field
        try:
            self._session.backend.update_stage(move.record_id, field, move.target_stage)
        except BackendError as e:
            return self._on_failure(move, previous, optimistic, e)

        logger.info("Stage updated: %s -> %s", move.record_id, move.target_stage)
        if self.notify_success:
            self._notify(f"Moved to {move.target_stage}", Severity.SUCCESS)
        return CommitOutcome(move=move, success=True)

    def _on_failure(
        self,
        move: StageMove,
        previous: Opportunity,
        optimistic: Opportunity,
        error: BackendError,
    ) -> CommitOutcome:
        logger.warning(
            "Stage update failed for %s (%s -> %s): %s",
            move.record_id,
            move.source_stage,
            move.target_stage,
            error,
        )
        if self.policy is ReconcilePolicy.STRICT_REVERT:
            self._session.restore_local(previous, expected=optimistic)
        refetched = self._session.refetch(notify_failure=False)
        if not refetched:
            logger.warning("Refetch after failed update of %s did not complete", move.record_id)
        self._notify(self.failure_message, Severity.ERROR)
        return CommitOutcome(move=move, success=False, refetched=refetched, error=str(error))
