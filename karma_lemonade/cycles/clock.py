# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""UTC date sources. Calculators never read the wall clock themselves."""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock pinned to one instant, for tests and replays."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant

    @classmethod
    def on(cls, day: str) -> "FixedClock":
        """Noon UTC on a YYYY-MM-DD day."""
        return cls(datetime.strptime(day, "%Y-%m-%d").replace(hour=12, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> None:
        self.instant = self.instant + timedelta(**delta)


def utc_today(clock: Clock) -> date:
    return clock.now().astimezone(timezone.utc).date()


def format_day(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_day(day: str) -> date:
    """Parse YYYY-MM-DD, raising ValueError on anything else."""
    return datetime.strptime(day, "%Y-%m-%d").date()
