"""
Keynote live/upcoming status from wall-clock time.

The live window is evaluated in a single reference zone; the second zone is
used only to format a display time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from wwdc_tracker.config import (
    EVENT_DAILY_END,
    EVENT_DAILY_START,
    EVENT_DISPLAY_ZONE,
    EVENT_END_DATE,
    EVENT_REFERENCE_ZONE,
    EVENT_START_DATE,
    EVENT_WEEKDAYS,
)
from wwdc_tracker.models import LiveStatus
from wwdc_tracker.utils import ensure_utc, now_utc


@dataclass(frozen=True)
class EventWindow:
    start_date: date = EVENT_START_DATE
    end_date: date = EVENT_END_DATE
    daily_start: time = EVENT_DAILY_START
    daily_end: time = EVENT_DAILY_END
    weekdays: Tuple[int, ...] = field(default=EVENT_WEEKDAYS)
    reference_zone: str = EVENT_REFERENCE_ZONE
    display_zone: str = EVENT_DISPLAY_ZONE


def _minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def compute_status(now: datetime, window: EventWindow) -> LiveStatus:
    """
    Compute the event status at ``now``.

    Args:
        now: Instant to evaluate; naive values are taken as UTC
        window: Calendar dates and daily hours of the event

    Returns:
        LiveStatus snapshot
    """
    instant = ensure_utc(now)
    local = instant.astimezone(ZoneInfo(window.reference_zone))
    display = instant.astimezone(ZoneInfo(window.display_zone))

    is_event_window = (
        window.start_date <= local.date() <= window.end_date
        and local.weekday() in window.weekdays
    )

    current = local.hour * 60 + local.minute
    start = _minutes_of_day(window.daily_start)
    end = _minutes_of_day(window.daily_end)

    is_live = is_event_window and start <= current < end
    minutes_until_start = start - current if is_event_window and current < start else 0
    minutes_until_end = end - current if is_live else 0

    return LiveStatus(
        is_live=is_live,
        is_event_window=is_event_window,
        minutes_until_start=max(0, minutes_until_start),
        minutes_until_end=max(0, minutes_until_end),
        reference_time=local.strftime("%H:%M"),
        display_time=display.strftime("%I:%M %p"),
        reference_zone=window.reference_zone,
        display_zone=window.display_zone,
    )


class EventClock:
    """Event status source with an injectable ``now``."""

    def __init__(self, window: Optional[EventWindow] = None):
        self.window = window or EventWindow()

    def status(self, now: Optional[datetime] = None) -> LiveStatus:
        return compute_status(now if now is not None else now_utc(), self.window)
