"""Urgency-driven surfaces: calendar, event list and notification bell."""

from capture_board.surfaces.calendar import CalendarEntry, calendar_entries
from capture_board.surfaces.events import EventCard, event_cards
from capture_board.surfaces.notifications import (
    Notification,
    NotificationBell,
    build_notifications,
)
from capture_board.surfaces.style import TIER_STYLES, TierStyle, style_for

__all__ = [
    "CalendarEntry",
    "EventCard",
    "Notification",
    "NotificationBell",
    "TIER_STYLES",
    "TierStyle",
    "build_notifications",
    "calendar_entries",
    "event_cards",
    "style_for",
]
