"""Per-board sync and gesture policy."""

from typing import Union

from pydantic import BaseModel, Field

from capture_board.board.drag import ActivationConstraint, SameStageGuard
from capture_board.board.reconciler import ReconcilePolicy
from capture_board.stages import Taxonomy, get_catalog


class BoardPolicy(BaseModel):
    """How one board syncs drags and recognizes pick-up gestures."""

    reconcile: ReconcilePolicy = ReconcilePolicy.STRICT_REVERT
    notify_success: bool = False
    same_stage_guard: SameStageGuard = SameStageGuard.RECORD_STAGE
    mouse_distance: float = Field(default=10.0, ge=0, description="px before a mouse press drags")
    touch_delay_ms: int = Field(default=250, ge=0, description="hold time before a touch drags")
    touch_tolerance: float = Field(default=5.0, ge=0, description="px a held touch may drift")

    @property
    def constraint(self) -> ActivationConstraint:
        return ActivationConstraint(
            mouse_distance=self.mouse_distance,
            touch_delay_ms=self.touch_delay_ms,
            touch_tolerance=self.touch_tolerance,
        )


# Leads board stays quiet on success so fast successive drags do not spam toasts;
# the forecast board confirms each move.
PRIMARY_POLICY = BoardPolicy()
FORECAST_POLICY = BoardPolicy(
    reconcile=ReconcilePolicy.DEFER_TO_NEXT_FETCH,
    notify_success=True,
    same_stage_guard=SameStageGuard.DROPPABLE_ID,
    mouse_distance=5.0,
    touch_delay_ms=100,
    touch_tolerance=5.0,
)


def default_policy(taxonomy: Union[Taxonomy, str]) -> BoardPolicy:
    """Shipped policy of the board showing a taxonomy."""
    if get_catalog(taxonomy).taxonomy is Taxonomy.FORECAST:
        return FORECAST_POLICY
    return PRIMARY_POLICY
