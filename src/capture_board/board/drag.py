"""Drag transaction controller: pick-up threshold, hover, drop and cancel for one board.

Lifecycle of a gesture:
  idle -> dragging -> hovering(stage) -> committed | cancelled

Only one transaction may be open at a time. A drop onto an unknown stage or onto the
card's own stage is discarded without reaching the reconciler.
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Union

from capture_board.errors import DragStateError

if TYPE_CHECKING:
    from concurrent.futures import Future

    from capture_board.board.reconciler import CommitOutcome
    from capture_board.board.session import BoardSession

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


_OPEN_STATES = (DragState.DRAGGING, DragState.HOVERING)


class SameStageGuard(str, Enum):
    """
    How a board decides that a drop targets the card's own stage.

    record_stage: re-read the record from the current snapshot at drop time
      (leads board). A refetch during the drag is taken into account.
    droppable_id: compare against the dragged id and the stage captured at pick-up
      (forecast board). A refetch during the drag is not taken into account.
    """

    RECORD_STAGE = "record_stage"
    DROPPABLE_ID = "droppable_id"


class PointerKind(str, Enum):
    MOUSE = "mouse"
    TOUCH = "touch"


@dataclass(frozen=True)
class ActivationConstraint:
    """Deadband before a press becomes a drag, so clicks and taps still open the record."""

    mouse_distance: float = 10.0  # px
    touch_delay_ms: int = 250
    touch_tolerance: float = 5.0  # px


@dataclass(frozen=True)
class StageMove:
    """A validated stage change handed to the reconciler."""

    record_id: str
    source_stage: str
    target_stage: str


@dataclass
class DragTransaction:
    """State of the gesture currently in progress."""

    record_id: str
    source_stage: str
    candidate_stage: Optional[str] = None


@dataclass(frozen=True)
class NavigationIntent:
    """Request to open a record's detail view."""

    record_id: str

    @property
    def path(self) -> str:
        return f"/lead/{self.record_id}"


class PickupGesture:
    """Tracks one press until it is recognized as a drag, aborted, or released as a click."""

    def __init__(
        self,
        record_id: str,
        kind: PointerKind,
        x: float,
        y: float,
        at: float,
        constraint: ActivationConstraint,
    ):
        self.record_id = record_id
        self.kind = kind
        self._origin = (x, y)
        self._pressed_at = at
        self._constraint = constraint
        self.recognized = False
        self.aborted = False

    def update(self, x: float, y: float, at: float) -> bool:
        """Feed a pointer position; returns True once the press is a drag."""
        if self.recognized or self.aborted:
            return self.recognized
        moved = math.hypot(x - self._origin[0], y - self._origin[1])
        if self.kind is PointerKind.MOUSE:
            self.recognized = moved >= self._constraint.mouse_distance
            return self.recognized
        if moved > self._constraint.touch_tolerance:
            # Finger moved before the hold delay: a scroll, not a drag
            self.aborted = True
            return False
        held_ms = (at - self._pressed_at) * 1000
        self.recognized = held_ms >= self._constraint.touch_delay_ms
        return self.recognized


class DragController:
    """
    Owns the drag lifecycle for one board session.
    Stage lookups go through the session snapshot; valid drops go to the session's reconciler.
    """

    def __init__(
        self,
        session: "BoardSession",
        *,
        guard: SameStageGuard = SameStageGuard.RECORD_STAGE,
        constraint: Optional[ActivationConstraint] = None,
        navigator: Optional[Callable[[NavigationIntent], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self.guard = guard
        self.constraint = constraint or ActivationConstraint()
        self._navigator = navigator
        self._clock = clock
        self.state = DragState.IDLE
        self.transaction: Optional[DragTransaction] = None
        self._gesture: Optional[PickupGesture] = None

    @property
    def is_open(self) -> bool:
        return self.state in _OPEN_STATES

    @property
    def candidate_stage(self) -> Optional[str]:
        """Column to highlight as drop target; rendering hint only."""
        return self.transaction.candidate_stage if self.transaction else None

    # -- transaction --------------------------------------------------------

    def begin_drag(self, record_id: str) -> DragTransaction:
        """Pick up a card. Raises DragStateError if a transaction is already open."""
        if self.is_open:
            raise DragStateError(
                f"Cannot begin drag of {record_id}: drag of "
                f"{self.transaction.record_id if self.transaction else '?'} is still open"
            )
        record = self._session.find(record_id)
        if record is None:
            raise KeyError(f"Unknown record: {record_id}")
        self.transaction = DragTransaction(
            record_id=record_id,
            source_stage=self._session.stage_of(record),
        )
        self.state = DragState.DRAGGING
        logger.debug("Drag started: %s from %s", record_id, self.transaction.source_stage)
        return self.transaction

    def hover(self, candidate_stage: Optional[str]) -> None:
        """Pointer is over a column (None when over no column)."""
        self._require_open("hover")
        self.transaction.candidate_stage = candidate_stage
        self.state = DragState.HOVERING

    def drop(self, target_stage: str) -> Optional[Union["CommitOutcome", "Future[CommitOutcome]"]]:
        """
        Release over a column. Returns the reconciler outcome, or None when the drop
        was discarded (unknown column, or the card's own stage).

        When the reconciler has an executor the outcome is a Future. The local snapshot
        already shows the move and the controller is free for the next drag while the
        backend confirms.
        """
        self._require_open("drop")
        txn = self.transaction
        move = self._resolve_move(txn, target_stage)
        if move is None:
            self._finish(DragState.CANCELLED)
            return None
        self._finish(DragState.COMMITTED)
        logger.debug("Drop committed: %s %s -> %s", move.record_id, move.source_stage, move.target_stage)
        reconciler = self._session.reconciler
        if reconciler.executor is not None:
            return reconciler.submit(move)
        return reconciler.commit(move)

    def cancel(self) -> None:
        """Abandon the gesture (released outside any column). No side effects."""
        self._gesture = None
        if not self.is_open:
            return
        logger.debug("Drag cancelled: %s", self.transaction.record_id if self.transaction else "?")
        self._finish(DragState.CANCELLED)

    def _resolve_move(self, txn: DragTransaction, target_stage: str) -> Optional[StageMove]:
        catalog = self._session.catalog
        if target_stage == txn.record_id or target_stage not in catalog:
            logger.debug("Drop discarded: %s is not a stage of %s", target_stage, catalog.taxonomy.value)
            return None

        source_stage = txn.source_stage
        if self.guard is SameStageGuard.RECORD_STAGE:
            record = self._session.find(txn.record_id)
            if record is None:
                logger.debug("Drop discarded: %s no longer on the board", txn.record_id)
                return None
            source_stage = self._session.stage_of(record)

        if target_stage == source_stage:
            logger.debug("Drop discarded: %s already in %s", txn.record_id, target_stage)
            return None
        return StageMove(record_id=txn.record_id, source_stage=source_stage, target_stage=target_stage)

    def _require_open(self, action: str) -> None:
        if not self.is_open:
            raise DragStateError(f"Cannot {action}: no drag in progress (state={self.state.value})")

    def _finish(self, state: DragState) -> None:
        self.state = state
        self.transaction = None
        self._gesture = None

    # -- pointer input ------------------------------------------------------

    def press(
        self,
        record_id: str,
        kind: PointerKind = PointerKind.MOUSE,
        x: float = 0.0,
        y: float = 0.0,
        at: Optional[float] = None,
    ) -> None:
        """Pointer down on a card. The drag starts only once the activation constraint is met."""
        if self.is_open:
            raise DragStateError(f"Cannot press {record_id}: a drag is already open")
        self._gesture = PickupGesture(
            record_id, kind, x, y, self._clock() if at is None else at, self.constraint
        )

    def move(self, x: float, y: float, at: Optional[float] = None) -> bool:
        """Pointer moved (or, for touch, is still held). Returns True while a drag is open."""
        if self.is_open:
            return True
        gesture = self._gesture
        if gesture is None:
            return False
        if gesture.update(x, y, self._clock() if at is None else at):
            self._gesture = None
            self.begin_drag(gesture.record_id)
            return True
        if gesture.aborted:
            self._gesture = None
        return False

    def release(
        self, target_stage: Optional[str] = None
    ) -> Optional[Union["CommitOutcome", "Future[CommitOutcome]"]]:
        """Pointer up. Drops on target_stage if dragging; a press that never became a drag is a click."""
        if self.is_open:
            if target_stage is None:
                self.cancel()
                return None
            return self.drop(target_stage)
        self._gesture = None
        return None

    def activate(self, record_id: str) -> Optional[NavigationIntent]:
        """Double-activation of a card (not a drag): request its detail view."""
        if self.is_open:
            return None
        intent = NavigationIntent(record_id)
        if self._navigator is not None:
            self._navigator(intent)
        return intent
