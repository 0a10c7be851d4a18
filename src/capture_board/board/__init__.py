"""Board model, drag transactions, optimistic sync and live invalidation."""

from capture_board.board.drag import (
    ActivationConstraint,
    DragController,
    DragState,
    NavigationIntent,
    PointerKind,
    SameStageGuard,
    StageMove,
)
from capture_board.board.invalidation import (
    InvalidationChannel,
    InvalidationSource,
    LocalSource,
    SocketIOSource,
)
from capture_board.board.partition import BucketSummary, aggregate, partition, stage_of
from capture_board.board.policy import FORECAST_POLICY, PRIMARY_POLICY, BoardPolicy
from capture_board.board.reconciler import CommitOutcome, ReconcilePolicy, SyncReconciler
from capture_board.board.session import BoardSession

__all__ = [
    "ActivationConstraint",
    "BoardPolicy",
    "BoardSession",
    "BucketSummary",
    "CommitOutcome",
    "DragController",
    "DragState",
    "FORECAST_POLICY",
    "InvalidationChannel",
    "InvalidationSource",
    "LocalSource",
    "NavigationIntent",
    "PRIMARY_POLICY",
    "PointerKind",
    "ReconcilePolicy",
    "SameStageGuard",
    "SocketIOSource",
    "StageMove",
    "SyncReconciler",
    "aggregate",
    "partition",
    "stage_of",
]
