"""Calendar rendering of pending opportunity activities."""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel

from capture_board.models.opportunity import Opportunity
from capture_board.surfaces.style import TierStyle, style_for
from capture_board.urgency import UrgencyTier, classify

ACTIVITY_DURATION = timedelta(hours=1)


class CalendarEntry(BaseModel):
    """One activity placed on the calendar; selecting it opens the owning record."""

    id: Optional[str] = None
    title: str
    start: datetime
    end: datetime
    record_id: str
    type: str
    status: str
    tier: UrgencyTier
    style: TierStyle


def _entry_title(activity_type: str, record_name: str, note: Optional[str]) -> str:
    title = f"{activity_type} - {record_name}"
    if note:
        title += f" ({note})"
    return title


def calendar_entries(records: Iterable[Opportunity], now: datetime) -> list[CalendarEntry]:
    """Entries for every pending activity that has a due date, colored by urgency."""
    entries: list[CalendarEntry] = []
    for record in records:
        for activity in record.activities:
            if activity.is_done or activity.due_date is None:
                continue
            tier = classify(activity.due_date, now)
            entries.append(
                CalendarEntry(
                    id=activity.id,
                    title=_entry_title(activity.type, record.name, activity.note),
                    start=activity.due_date,
                    end=activity.due_date + ACTIVITY_DURATION,
                    record_id=record.id,
                    type=activity.type,
                    status=activity.status,
                    tier=tier,
                    style=style_for(tier),
                )
            )
    return entries
