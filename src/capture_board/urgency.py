"""Deadline urgency classification shared by the calendar, event list and notification bell."""

from datetime import datetime, timedelta, timezone
from enum import Enum

_DAY = timedelta(days=1)

# Upper bounds (inclusive, in whole days) of the non-overdue tiers
URGENT_MAX_DAYS = 6
SOON_MAX_DAYS = 15


class UrgencyTier(str, Enum):
    """Severity of a due date relative to now."""

    OVERDUE = "overdue"
    URGENT = "urgent"
    SOON = "soon"
    LATER = "later"

    @property
    def is_urgent(self) -> bool:
        """Overdue and urgent items are rendered with emphasis."""
        return self in (UrgencyTier.OVERDUE, UrgencyTier.URGENT)


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _ceil_days(delta: timedelta) -> int:
    whole, rest = divmod(delta, _DAY)
    return whole + (1 if rest else 0)


def days_until(due: datetime, now: datetime) -> int:
    """
    Whole days from now until due, rounded away from now.
    30 minutes ahead is 1 day; 1 second ago is -1 day. Naive datetimes are UTC.
    """
    delta = _as_utc(due) - _as_utc(now)
    if delta < timedelta(0):
        return -_ceil_days(-delta)
    return _ceil_days(delta)


def classify(due: datetime, now: datetime) -> UrgencyTier:
    """
    Urgency tier for a due instant. Pure: uses only the two instants passed in.
    overdue: already past; urgent: 0-6 days; soon: 7-15 days; later: 16+ days.
    """
    days = days_until(due, now)
    if days < 0:
        return UrgencyTier.OVERDUE
    if days <= URGENT_MAX_DAYS:
        return UrgencyTier.URGENT
    if days <= SOON_MAX_DAYS:
        return UrgencyTier.SOON
    return UrgencyTier.LATER
