# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Profit model.

    revenue        = cups * price
    inventory cost = cups * (cost_per_cup + 0.1 * (lemon + sugar))
                     * event cost multiplier * (1 + 0.5 * festival cost volatility)
    total cost     = inventory + fixed daily cost + ad spend
    profit         = revenue - total cost, rounded to cents
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from ..config import GameConfig
from ..models import DEFAULT_MULTIPLIERS, CycleMultipliers, FestivalModifiers, MarketEvent
from .numeric import finite_or, round_cents

INGREDIENT_COST_SHARE = 0.1
VOLATILITY_COST_SHARE = 0.5


@dataclass(kw_only=True)
class ProfitInput:
    cups_sold: int
    price: float
    ad_spend: float
    lemon_price: float
    sugar_price: float
    event: MarketEvent
    festival_modifiers: FestivalModifiers = field(default_factory=FestivalModifiers)
    multipliers: CycleMultipliers = field(default_factory=lambda: DEFAULT_MULTIPLIERS)


@dataclass(kw_only=True, frozen=True)
class CostBreakdown:
    revenue: float
    inventory_cost: float
    fixed_cost: float
    advertising_cost: float
    total_costs: float
    profit: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue": self.revenue,
            "inventory_cost": self.inventory_cost,
            "fixed_cost": self.fixed_cost,
            "advertising_cost": self.advertising_cost,
            "total_costs": self.total_costs,
            "profit": self.profit,
        }


class ProfitCalculator:
    def __init__(self, config: GameConfig):
        if config is None:
            raise TypeError("ProfitCalculator requires a GameConfig")
        self.config = config

    def calculate_profit(self, profit_input: ProfitInput) -> float:
        return self.calculate_cost_breakdown(profit_input).profit

    def calculate_cost_breakdown(self, p: ProfitInput) -> CostBreakdown:
        economy = self.config.economy
        cups = max(0, p.cups_sold)
        price = finite_or(p.price)
        ad_spend = max(0.0, finite_or(p.ad_spend))

        revenue = cups * price
        per_cup = economy.inventory_cost_per_cup + INGREDIENT_COST_SHARE * (
            finite_or(p.lemon_price) + finite_or(p.sugar_price)
        )
        inventory_cost = (
            cups
            * per_cup
            * p.multipliers.cost[p.event]
            * (1 + VOLATILITY_COST_SHARE * p.festival_modifiers.cost_volatility)
        )
        total_costs = inventory_cost + economy.fixed_cost_per_day + ad_spend

        return CostBreakdown(
            revenue=round_cents(revenue),
            inventory_cost=round_cents(inventory_cost),
            fixed_cost=round_cents(economy.fixed_cost_per_day),
            advertising_cost=round_cents(ad_spend),
            total_costs=round_cents(total_costs),
            profit=round_cents(revenue - total_costs),
        )
