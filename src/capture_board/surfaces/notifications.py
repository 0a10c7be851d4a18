"""Notification bell: upcoming and overdue milestones, activities and events.

Items are collected for a window around now (30 days back for overdue work, 7 days
ahead), classified with the shared urgency tiers, and hidden once the user has read
them for the day.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from pydantic import BaseModel

from capture_board.models.event import CalendarEvent
from capture_board.models.opportunity import Opportunity
from capture_board.store.read_state import ReadStateStore
from capture_board.urgency import UrgencyTier, classify, days_until

# (record attribute, label)
MILESTONES: tuple[tuple[str, str], ...] = (
    ("estimated_rfp_date", "RFP Deadline"),
    ("award_date", "Award Date"),
    ("close_date", "Close Date"),
)


class Notification(BaseModel):
    """One bell entry. `id` is stable across fetches so read receipts keep matching."""

    id: str
    record_id: Optional[str] = None
    event_id: Optional[str] = None
    title: str
    kind: str
    due: datetime
    days_left: int
    tier: UrgencyTier

    @property
    def is_overdue(self) -> bool:
        return self.tier is UrgencyTier.OVERDUE

    @property
    def when(self) -> str:
        """Human phrase for the due date relative to now."""
        if self.days_left < 0:
            return f"was {abs(self.days_left)} day(s) ago"
        return f"in {self.days_left} day{'s' if self.days_left != 1 else ''}"


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _epoch_ms(dt: datetime) -> int:
    return int(_as_utc(dt).timestamp() * 1000)


def _window(now: datetime, lookback_days: int, lookahead_days: int) -> tuple[datetime, datetime]:
    now = _as_utc(now)
    start = now - timedelta(days=lookback_days)
    # Through the end of the last day ahead
    end = (now + timedelta(days=lookahead_days)).replace(
        hour=23, minute=59, second=59, microsecond=999999
    )
    return start, end


def build_notifications(
    records: Iterable[Opportunity],
    events: Iterable[CalendarEvent],
    now: datetime,
    *,
    lookback_days: int = 30,
    lookahead_days: int = 7,
) -> list[Notification]:
    """Everything due within the window, earliest first."""
    start, end = _window(now, lookback_days, lookahead_days)
    items: list[Notification] = []

    def _in_window(dt: datetime) -> bool:
        return start <= _as_utc(dt) <= end

    for record in records:
        for attr, label in MILESTONES:
            due = getattr(record, attr)
            if due is None or not _in_window(due):
                continue
            tier = classify(due, now)
            prefix = "OVERDUE" if tier is UrgencyTier.OVERDUE else "Pipeline"
            items.append(
                Notification(
                    id=f"{record.id}-{label}-{_epoch_ms(due)}",
                    record_id=record.id,
                    title=record.name,
                    kind=f"{prefix}: {label}",
                    due=due,
                    days_left=days_until(due, now),
                    tier=tier,
                )
            )

        for activity in record.activities:
            due = activity.due_date
            if activity.is_done or due is None or not _in_window(due):
                continue
            tier = classify(due, now)
            prefix = "OVERDUE Activity" if tier is UrgencyTier.OVERDUE else "Activity"
            items.append(
                Notification(
                    id=f"{record.id}-{activity.type}-{_epoch_ms(due)}",
                    record_id=record.id,
                    title=record.name,
                    kind=f"{prefix}: {activity.type}",
                    due=due,
                    days_left=days_until(due, now),
                    tier=tier,
                )
            )

    for event in events:
        if not _in_window(event.start):
            continue
        tier = classify(event.start, now)
        items.append(
            Notification(
                id=f"{event.id}-Event-{_epoch_ms(event.start)}",
                event_id=event.id,
                title=event.title,
                kind="PAST Event" if tier is UrgencyTier.OVERDUE else "Calendar Event",
                due=event.start,
                days_left=days_until(event.start, now),
                tier=tier,
            )
        )

    items.sort(key=lambda n: _as_utc(n.due))
    return items


class NotificationBell:
    """Unread view over a notification list, backed by an injected read-state store."""

    def __init__(
        self,
        store: ReadStateStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    def unread(self, notifications: Iterable[Notification]) -> list[Notification]:
        read = self._store.read_ids(self._today())
        return [n for n in notifications if n.id not in read]

    def mark_read(self, notification_id: str) -> None:
        self._store.mark_read(notification_id, self._today())
