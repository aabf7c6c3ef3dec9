# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Profile bookkeeping applied by the caller after a run.

The engine never mutates a profile. These helpers compute the next profile
from a finished GameResult:
- Streaks count consecutive UTC days played; a gap resets to 1
- Personal best, run count and lifetime profit
- Per-SKU power-up usage, reset when the day changes
"""

from copy import deepcopy
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Optional, Tuple

from .cycles.clock import parse_day
from .engine.numeric import round_cents
from .models import GameResult, PowerupUsage, Progress, UserProfile


@dataclass(kw_only=True, frozen=True)
class ProgressUpdate:
    total_runs: int
    current_streak: int
    longest_streak: int
    best_profit: float
    new_personal_best: bool
    streak_extended: bool


def next_streak(last_play_date: Optional[str], current_streak: int, today: str) -> int:
    """Streak after playing on `today`."""
    if last_play_date is None or current_streak <= 0:
        return 1
    if last_play_date == today:
        return current_streak
    if parse_day(last_play_date) + timedelta(days=1) == parse_day(today):
        return current_streak + 1
    return 1


def update_progress(progress: Progress, profit: float, today: str) -> Tuple[Progress, ProgressUpdate]:
    streak = next_streak(progress.last_play_date, progress.current_streak, today)
    longest = max(progress.longest_streak, streak)
    # The first run always sets a personal best, even at a loss
    new_best = progress.total_runs == 0 or profit > progress.best_profit
    best = profit if new_best else progress.best_profit

    updated = Progress(
        total_runs=progress.total_runs + 1,
        current_streak=streak,
        longest_streak=longest,
        best_profit=best,
        total_profit=round_cents(progress.total_profit + profit),
        last_play_date=today,
    )
    summary = ProgressUpdate(
        total_runs=updated.total_runs,
        current_streak=streak,
        longest_streak=longest,
        best_profit=best,
        new_personal_best=new_best,
        streak_extended=streak > progress.current_streak,
    )
    return updated, summary


def record_powerup_usage(usage: PowerupUsage, skus: Iterable[str], today: str) -> PowerupUsage:
    """Count applied power-ups against today's limits."""
    used = dict(usage.used_today) if usage.last_reset_date == today else {}
    for sku in skus:
        used[sku] = used.get(sku, 0) + 1
    return PowerupUsage(used_today=used, last_reset_date=today)


def apply_game_result(
    profile: UserProfile,
    result: GameResult,
    today: str,
    applied_skus: Iterable[str] = (),
) -> Tuple[UserProfile, ProgressUpdate]:
    """Return the updated profile and a summary. The input profile is untouched."""
    progress, summary = update_progress(profile.progress, result.profit, today)
    updated = UserProfile(
        user_id=profile.user_id,
        username=profile.username,
        game_stats=deepcopy(profile.game_stats),
        progress=progress,
        powerups=record_powerup_usage(profile.powerups, applied_skus, today),
    )
    return updated, summary
