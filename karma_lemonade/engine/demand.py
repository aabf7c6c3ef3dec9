# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Customer demand model.

Demand is a product of independent factors applied in a fixed order:

    base customers
    x price effect        (1 - elasticity) ** (price - 1)
    x advertising effect  1 + ad_effect * sqrt(ad_spend) * (1 + marketing * 0.1)
    x reputation effect   1 + reputation * reputation_effect
    x service effect      1 + service * 0.02
    x weather, market event and festival multipliers
    x power-up multiplier (product of 1 + demand_bonus per receipt)
    x random variance     1 +/- festival price_variance
    x critical sale       1.5 on a lucky roll

The result is rounded to the nearest cup and floored at zero.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

from ..config import GameConfig
from ..models import (
    DEFAULT_MULTIPLIERS,
    CycleMultipliers,
    FestivalModifiers,
    GameStats,
    MarketEvent,
    PaymentReceipt,
    Weather,
)
from .numeric import finite_or, round_half_up
from .seed import SeedStream

SERVICE_EFFECT = 0.02
MARKETING_SKILL_EFFECT = 0.1
CRITICAL_SALE_MULTIPLIER = 1.5


@dataclass(kw_only=True)
class DemandInput:
    price: float
    ad_spend: float
    game_stats: GameStats
    weather: Weather
    event: MarketEvent
    festival_modifiers: FestivalModifiers
    seed: str
    powerup_receipts: Sequence[PaymentReceipt] = ()
    multipliers: CycleMultipliers = field(default_factory=lambda: DEFAULT_MULTIPLIERS)
    randomize: bool = True  # False neutralizes variance and critical sales


class DemandCalculator:
    """Turns price, advertising, skill and environment into cups sold."""

    def __init__(self, config: GameConfig):
        if config is None:
            raise TypeError("DemandCalculator requires a GameConfig")
        self.config = config

    def calculate_demand(self, demand_input: DemandInput) -> int:
        """Cups sold for one run. Always a non-negative integer."""
        return max(0, round_half_up(self.expected_demand(demand_input)))

    def expected_demand(self, d: DemandInput) -> float:
        """Unrounded demand, guarded against NaN and infinities."""
        economy = self.config.economy
        price = max(0.0, finite_or(d.price))
        ad_spend = max(0.0, finite_or(d.ad_spend))
        stats = d.game_stats

        demand = economy.base_customers
        demand *= self.price_effect(price)
        demand *= 1 + economy.ad_effect * math.sqrt(ad_spend) * (
            1 + finite_or(stats.marketing) * MARKETING_SKILL_EFFECT
        )
        demand *= 1 + finite_or(stats.reputation) * economy.reputation_effect
        demand *= 1 + finite_or(stats.service) * SERVICE_EFFECT
        demand *= d.multipliers.demand[d.weather]
        demand *= d.multipliers.event[d.event]
        demand *= d.festival_modifiers.demand_multiplier
        demand *= self.powerup_multiplier(d.powerup_receipts)

        if d.randomize:
            stream = SeedStream(d.seed)
            variance = stream.fork("variance").next_float()
            demand *= 1 + (variance - 0.5) * 2 * d.festival_modifiers.price_variance
            if stream.fork("critical").chance(d.festival_modifiers.critical_sale_chance):
                demand *= CRITICAL_SALE_MULTIPLIER

        return finite_or(demand)

    def price_effect(self, price: float) -> float:
        return (1 - self.config.economy.price_elasticity) ** (price - 1)

    def powerup_multiplier(self, receipts: Sequence[PaymentReceipt]) -> float:
        """Compound demand bonus of the given receipts. Unknown SKUs count as 1."""
        multiplier = 1.0
        for receipt in receipts:
            powerup = self.config.powerups.get(receipt.sku)
            if powerup is not None:
                multiplier *= 1 + powerup.effects.demand_bonus
        return multiplier
