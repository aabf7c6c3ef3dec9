# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Daily login bonus claiming.

The bonus type for a day comes from that day's DailyCycle, so every player is
offered the same bonus. Claims live in memory and expire at the end of the UTC
day they were made for.
"""

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from ..cycles.daily import DailyCycleManager
from ..models import LoginBonusType

BONUS_DURATION_HOURS = 24

BONUS_DESCRIPTIONS: Dict[LoginBonusType, tuple] = {
    LoginBonusType.NONE: ("No bonus today", "No special effects"),
    LoginBonusType.PERFECT: ("Perfect Day", "+15% revenue boost"),
    LoginBonusType.FREE_AD: ("Free Advertising", "+10% customers from free advertising"),
    LoginBonusType.COOLER: ("Cooler Weather", "Ignore cold weather penalties"),
}


@dataclass(kw_only=True, frozen=True)
class LoginBonus:
    type: LoginBonusType
    description: str
    effect: str
    day: str  # YYYY-MM-DD
    expires_at: datetime
    duration_hours: int = BONUS_DURATION_HOURS
    claimed: bool = False


def end_of_day(day: str) -> datetime:
    start = datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return start + timedelta(days=1)


class LoginBonusManager:
    """Preview, claim and look up the once-daily login bonus. Thread-safe."""

    def __init__(self, daily_cycles: DailyCycleManager):
        if daily_cycles is None:
            raise TypeError("LoginBonusManager requires a DailyCycleManager")
        self.daily_cycles = daily_cycles
        self._lock = threading.Lock()
        self._claims: Dict[str, LoginBonus] = {}

    def bonus_type(self, day: str) -> LoginBonusType:
        return self.daily_cycles.generate_daily_cycle(day).login_bonus

    def preview(self, day: str) -> LoginBonus:
        """Describe the day's bonus without claiming it."""
        bonus_type = self.bonus_type(day)
        description, effect = BONUS_DESCRIPTIONS[bonus_type]
        return LoginBonus(
            type=bonus_type,
            description=description,
            effect=effect,
            day=day,
            expires_at=end_of_day(day),
        )

    def claim(self, user_id: str, day: str) -> LoginBonus:
        """
        Claim the day's bonus for a user.

        Claiming again on the same day returns the existing claim. A NONE day
        returns the unclaimed preview and records nothing.
        """
        bonus = self.preview(day)
        with self._lock:
            existing = self._claims.get(user_id)
            if existing is not None and existing.day == day:
                return existing
            if bonus.type == LoginBonusType.NONE:
                return bonus

            bonus = replace(bonus, claimed=True)
            self._claims[user_id] = bonus
            return bonus

    def can_claim(self, user_id: str, day: str) -> bool:
        with self._lock:
            existing = self._claims.get(user_id)
        return existing is None or existing.day != day

    def active_bonus(self, user_id: str, day: str) -> Optional[LoginBonusType]:
        """The bonus type the user claimed for `day`, if any."""
        with self._lock:
            bonus = self._claims.get(user_id)
            if bonus is None:
                return None
            if bonus.day != day:
                # Claims never carry over to another day
                if bonus.day < day:
                    self._claims.pop(user_id, None)
                return None
            return bonus.type
