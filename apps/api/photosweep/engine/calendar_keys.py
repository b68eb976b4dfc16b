"""Calendar keys used to bucket items by day and month.

Keys are derived from the item timestamp converted into a single configured
time zone. Naive timestamps are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from typing import NamedTuple
from zoneinfo import ZoneInfo


class MonthKey(NamedTuple):
    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def first_day(self, tz: tzinfo = UTC) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=tz)


class DayKey(NamedTuple):
    year: int
    month: int
    day: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    @property
    def month_key(self) -> MonthKey:
        return MonthKey(self.year, self.month)


class CalendarKeys:
    def __init__(self, tz: tzinfo | str = UTC) -> None:
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def local(self, timestamp: datetime) -> datetime:
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        return timestamp.astimezone(self.tz)

    def day_key(self, timestamp: datetime) -> DayKey:
        local = self.local(timestamp)
        return DayKey(local.year, local.month, local.day)

    def month_key(self, timestamp: datetime) -> MonthKey:
        local = self.local(timestamp)
        return MonthKey(local.year, local.month)
