# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Skill stats derived from community activity.

- service: comment karma, log-scaled
- marketing: post karma, log-scaled
- reputation: account age, square-root scaled

Each stat lands on a 0-10 scale rounded to cents.
"""

import math
from dataclasses import dataclass

from .config import GameConfig
from .engine.numeric import clamp, finite_or, round_cents
from .models import GameStats

MAX_STAT = 10.0

# (threshold, name), highest first
STAT_TIERS = (
    (9, "Legendary"),
    (8, "Master"),
    (7, "Expert"),
    (6, "Advanced"),
    (5, "Intermediate"),
    (4, "Competent"),
    (3, "Novice"),
    (2, "Beginner"),
    (1, "Rookie"),
)


@dataclass(kw_only=True)
class CommunityStats:
    post_karma: int = 0
    comment_karma: int = 0
    account_age_days: int = 0


def stat_tier(value: float) -> str:
    for threshold, name in STAT_TIERS:
        if value >= threshold:
            return name
    return "New"


class StatConverter:
    def __init__(self, config: GameConfig):
        if config is None:
            raise TypeError("StatConverter requires a GameConfig")
        self.config = config

    def convert(self, community: CommunityStats) -> GameStats:
        scaling = self.config.stat_scaling
        service = self._log_scaled(community.comment_karma, scaling.ck_to_service)
        marketing = self._log_scaled(community.post_karma, scaling.pk_to_marketing)
        reputation = math.sqrt(max(0, community.account_age_days) * scaling.age_days_to_rep) * 2
        return GameStats(
            service=self._bound(service),
            marketing=self._bound(marketing),
            reputation=self._bound(reputation),
        )

    @staticmethod
    def _log_scaled(karma: float, ratio: float) -> float:
        base = math.sqrt(max(0, karma)) * ratio
        return math.log10(base * 10 + 1) * 2

    @staticmethod
    def _bound(value: float) -> float:
        return round_cents(clamp(finite_or(value), 0.0, MAX_STAT))
