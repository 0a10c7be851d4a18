"""Data models for opportunities, activities and calendar events."""

from capture_board.models.event import CalendarEvent
from capture_board.models.opportunity import (
    FORECAST_DEFAULT_STAGE,
    PRIMARY_DEFAULT_STAGE,
    Activity,
    Opportunity,
)

__all__ = [
    "Activity",
    "CalendarEvent",
    "FORECAST_DEFAULT_STAGE",
    "Opportunity",
    "PRIMARY_DEFAULT_STAGE",
]
