"""Standalone calendar event model (events API)."""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_EVENT_DURATION = timedelta(hours=1)


class CalendarEvent(BaseModel):
    """Calendar entry not tied to an opportunity (conference, industry day, ...)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    start: datetime
    end: Optional[datetime] = None
    type: Optional[str] = None
    location: Optional[str] = None
    link: Optional[str] = None

    @property
    def ends_at(self) -> datetime:
        return self.end or self.start + DEFAULT_EVENT_DURATION
