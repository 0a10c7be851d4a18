"""Event list: calendar events styled by how soon they start."""

from datetime import datetime
from typing import Iterable

from pydantic import BaseModel

from capture_board.models.event import CalendarEvent
from capture_board.surfaces.style import TierStyle, style_for
from capture_board.urgency import UrgencyTier, classify, days_until


class EventCard(BaseModel):
    event: CalendarEvent
    days_until: int
    tier: UrgencyTier
    style: TierStyle


def event_cards(events: Iterable[CalendarEvent], now: datetime) -> list[EventCard]:
    """One card per event, earliest first."""
    cards: list[EventCard] = []
    for event in events:
        tier = classify(event.start, now)
        cards.append(
            EventCard(
                event=event,
                days_until=days_until(event.start, now),
                tier=tier,
                style=style_for(tier),
            )
        )
    cards.sort(key=lambda c: c.event.start)
    return cards
