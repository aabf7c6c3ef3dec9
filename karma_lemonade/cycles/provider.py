# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Memoizes the current daily and weekly cycles for the service layer."""

import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from ..models import DailyCycle, WeeklyCycle
from .clock import Clock, format_day, utc_today
from .daily import DailyCycleManager
from .weekly import WeeklyCycleManager, iso_week


@dataclass(frozen=True)
class CurrentCycles:
    daily: DailyCycle
    weekly: WeeklyCycle


class CycleProvider:
    """
    Serves the cycles for the clock's current UTC day.

    Only the most recent day and week are kept; a new day replaces the
    cached entry instead of growing the cache.
    """

    def __init__(self, daily: DailyCycleManager, weekly: WeeklyCycleManager, clock: Clock):
        if daily is None or weekly is None or clock is None:
            raise TypeError("CycleProvider requires daily and weekly managers and a clock")
        self.daily = daily
        self.weekly = weekly
        self.clock = clock
        self._lock = threading.Lock()
        self._daily_cache: Optional[Tuple[str, DailyCycle]] = None
        self._weekly_cache: Optional[Tuple[Tuple[int, int], WeeklyCycle]] = None

    def today(self) -> str:
        return format_day(utc_today(self.clock))

    def current(self) -> CurrentCycles:
        today = utc_today(self.clock)
        day_key = format_day(today)
        week_key = iso_week(today)

        with self._lock:
            if self._daily_cache is None or self._daily_cache[0] != day_key:
                self._daily_cache = (day_key, self.daily.generate_daily_cycle(day_key))
            if self._weekly_cache is None or self._weekly_cache[0] != week_key:
                self._weekly_cache = (week_key, self.weekly.generate_weekly_cycle(*week_key))
            return CurrentCycles(self._daily_cache[1], self._weekly_cache[1])
