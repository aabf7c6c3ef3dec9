# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Per-user run pacing.

Two limits from RunLimitsConfig apply before a run is simulated:
- at most `max_posts_per_user_per_day` runs per UTC day
- at least `min_seconds_between_runs` seconds since the user's previous run

Counters live in memory and roll over at UTC midnight.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from ..config import RunLimitsConfig
from ..cycles.clock import Clock, format_day, utc_today
from ..errors import RateLimitError

logger = logging.getLogger("karma_lemonade.security")


@dataclass(kw_only=True, frozen=True)
class RateLimitResult:
    allowed: bool
    reason: Optional[str] = None
    retry_after: int = 0  # seconds


@dataclass(kw_only=True, frozen=True)
class RateLimitStatus:
    runs_today: int
    runs_remaining: int
    seconds_until_next_run: int


class RunRateLimiter:
    """Thread-safe in-memory run limiter."""

    def __init__(self, limits: RunLimitsConfig, clock: Clock):
        if limits is None:
            raise TypeError("RunRateLimiter requires a RunLimitsConfig")
        if clock is None:
            raise TypeError("RunRateLimiter requires a Clock")
        self.limits = limits
        self.clock = clock
        self._lock = threading.Lock()
        self._daily_runs: Dict[Tuple[str, str], int] = {}  # (user_id, day) -> runs
        self._last_run: Dict[str, datetime] = {}

    def check(self, user_id: str) -> RateLimitResult:
        """Whether the user may run now."""
        now = self.clock.now()
        with self._lock:
            runs = self._daily_runs.get((user_id, format_day(utc_today(self.clock))), 0)
            last = self._last_run.get(user_id)

        if runs >= self.limits.max_posts_per_user_per_day:
            return RateLimitResult(
                allowed=False,
                reason=f"daily limit of {self.limits.max_posts_per_user_per_day} runs reached",
                retry_after=_seconds_until_midnight(now),
            )
        wait = self._cooldown(now, last)
        if wait > 0:
            return RateLimitResult(
                allowed=False,
                reason=f"wait {self.limits.min_seconds_between_runs}s between runs",
                retry_after=wait,
            )
        return RateLimitResult(allowed=True)

    def enforce(self, user_id: str) -> None:
        """
        Raise if the user may not run now.

        Raises:
            RateLimitError: daily cap reached or previous run too recent
        """
        result = self.check(user_id)
        if not result.allowed:
            logger.warning("Rate limited %s: %s (retry in %ds)", user_id, result.reason, result.retry_after)
            raise RateLimitError(user_id, result.reason, result.retry_after)

    def record(self, user_id: str) -> None:
        """Count a completed run."""
        now = self.clock.now()
        key = (user_id, format_day(utc_today(self.clock)))
        with self._lock:
            self._daily_runs[key] = self._daily_runs.get(key, 0) + 1
            self._last_run[user_id] = now
            # Only today's counters matter
            for stale in [k for k in self._daily_runs if k[1] != key[1]]:
                del self._daily_runs[stale]

    def status(self, user_id: str) -> RateLimitStatus:
        now = self.clock.now()
        with self._lock:
            runs = self._daily_runs.get((user_id, format_day(utc_today(self.clock))), 0)
            last = self._last_run.get(user_id)
        return RateLimitStatus(
            runs_today=runs,
            runs_remaining=max(0, self.limits.max_posts_per_user_per_day - runs),
            seconds_until_next_run=self._cooldown(now, last),
        )

    def _cooldown(self, now: datetime, last: Optional[datetime]) -> int:
        if last is None:
            return 0
        remaining = self.limits.min_seconds_between_runs - (now - last).total_seconds()
        return max(0, math.ceil(remaining))


def _seconds_until_midnight(now: datetime) -> int:
    now = now.astimezone(timezone.utc)
    midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return math.ceil((midnight - now).total_seconds())
