"""Opportunity record and activity models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

PRIMARY_DEFAULT_STAGE = "opp sourced"
FORECAST_DEFAULT_STAGE = "Source"

DONE_STATUS = "Done"
PENDING_STATUS = "Pending"


class Activity(BaseModel):
    """Scheduled follow-up on an opportunity (call, meeting, email, task)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    type: str = ""
    due_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("dueDate", "due_date")
    )
    note: Optional[str] = None
    status: str = PENDING_STATUS

    @property
    def is_done(self) -> bool:
        return self.status == DONE_STATUS


class Opportunity(BaseModel):
    """
    Pipeline record as served by the leads API.
    `stage` and `forecast_stage` are independent and always populated; values the
    catalogs do not recognize are kept and resolved by the board.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str = ""

    stage: str = PRIMARY_DEFAULT_STAGE
    forecast_stage: str = Field(
        default=FORECAST_DEFAULT_STAGE,
        validation_alias=AliasChoices("forecastStage", "forecast_stage"),
    )

    value: float = Field(default=0.0, ge=0)
    priority: int = Field(default=1, ge=1, le=3)
    win_probability: float = Field(
        default=0.0,
        ge=0,
        le=100,
        validation_alias=AliasChoices("winProbability", "win_probability"),
    )

    sector: Optional[str] = None
    deal_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("dealType", "deal_type")
    )
    department: Optional[str] = None
    sourced_by: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sourcedBy", "sourced_by")
    )

    estimated_rfp_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("estimatedRfpDate", "estimated_rfp_date")
    )
    award_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("awardDate", "award_date")
    )
    close_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("closeDate", "close_date")
    )

    activities: list[Activity] = Field(default_factory=list)

    @field_validator("stage", mode="before")
    @classmethod
    def _default_stage(cls, v: Any) -> Any:
        return v or PRIMARY_DEFAULT_STAGE

    @field_validator("forecast_stage", mode="before")
    @classmethod
    def _default_forecast_stage(cls, v: Any) -> Any:
        return v or FORECAST_DEFAULT_STAGE

    @field_validator("value", mode="before")
    @classmethod
    def _clamp_value(cls, v: Any) -> Any:
        # API returns null for never-edited numeric fields
        if v is None or v == "":
            return 0
        try:
            return max(0.0, float(v))
        except (TypeError, ValueError):
            return v

    @field_validator("win_probability", mode="before")
    @classmethod
    def _clamp_win_probability(cls, v: Any) -> Any:
        if v is None or v == "":
            return 0
        try:
            return max(0.0, min(100.0, float(v)))
        except (TypeError, ValueError):
            return v

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, v: Any) -> int:
        try:
            p = int(v)
        except (TypeError, ValueError):
            return 1
        return max(1, min(3, p))

    def with_stage(self, field: str, value: str) -> "Opportunity":
        """Copy of this record with one stage field replaced."""
        if field not in ("stage", "forecast_stage"):
            raise ValueError(f"Not a stage field: {field}")
        return self.model_copy(update={field: value})
