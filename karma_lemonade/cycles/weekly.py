# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Weekly festival cycle generation.

The festival for an ISO week is picked from the configured catalog by
floor(random * catalog size), then each numeric modifier gets a small bounded
perturbation so the same theme plays slightly differently each time it
comes around.
"""

import math
from datetime import date
from typing import Tuple

from ..config import FestivalTheme, GameConfig
from ..engine.numeric import clamp
from ..engine.seed import SeedStream, hash_string
from ..models import FestivalModifiers, WeeklyCycle

DEMAND_VARIANCE = 0.05
PRICE_VARIANCE = 0.02
CRITICAL_VARIANCE = 0.02
COST_VARIANCE = 0.05

MIN_DEMAND_MULTIPLIER = 0.5
MAX_PRICE_VARIANCE = 0.5
MAX_CRITICAL_CHANCE = 0.5
MAX_COST_VOLATILITY = 0.3


def iso_week(day: date) -> Tuple[int, int]:
    """ISO (year, week) of a date, week clamped to [1, 53]."""
    year, week, _ = day.isocalendar()
    return year, max(1, min(53, week))


class WeeklyCycleManager:
    def __init__(self, config: GameConfig):
        if config is None:
            raise TypeError("WeeklyCycleManager requires a GameConfig")
        self.config = config

    def generate_weekly_cycle(self, year: int, week: int) -> WeeklyCycle:
        week = max(1, min(53, int(week)))
        stream = SeedStream(hash_string(f"{year}-W{week}"))

        themes = list(self.config.festivals.values())
        index = math.floor(stream.fork("festival").next_float() * len(themes))
        theme = themes[min(index, len(themes) - 1)]

        return WeeklyCycle(
            year=year,
            week=week,
            festival=theme.id,
            modifiers=self._perturb(theme, stream),
        )

    def generate_for_date(self, day: date) -> WeeklyCycle:
        year, week = iso_week(day)
        return self.generate_weekly_cycle(year, week)

    @staticmethod
    def _perturb(theme: FestivalTheme, stream: SeedStream) -> FestivalModifiers:
        base = FestivalModifiers()
        demand = theme.demand_multiplier if theme.demand_multiplier is not None else base.demand_multiplier
        price = theme.price_variance if theme.price_variance is not None else base.price_variance
        critical = (
            theme.critical_sale_chance
            if theme.critical_sale_chance is not None
            else base.critical_sale_chance
        )
        cost = theme.cost_volatility if theme.cost_volatility is not None else base.cost_volatility

        demand += stream.fork("demand").uniform(-DEMAND_VARIANCE, DEMAND_VARIANCE)
        price += stream.fork("price").uniform(-PRICE_VARIANCE, PRICE_VARIANCE)
        critical += stream.fork("critical").uniform(-CRITICAL_VARIANCE, CRITICAL_VARIANCE)
        cost += stream.fork("cost").uniform(-COST_VARIANCE, COST_VARIANCE)

        return FestivalModifiers(
            demand_multiplier=max(MIN_DEMAND_MULTIPLIER, demand),
            price_variance=clamp(price, 0.0, MAX_PRICE_VARIANCE),
            critical_sale_chance=clamp(critical, 0.0, MAX_CRITICAL_CHANCE),
            cost_volatility=clamp(cost, -MAX_COST_VOLATILITY, MAX_COST_VOLATILITY),
            special_effects=tuple(theme.special_effects),
        )
