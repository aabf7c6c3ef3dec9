# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Tests for the profit model and cost breakdown."""

import pytest

from karma_lemonade.config import EconomyConfig, GameConfig
from karma_lemonade.engine.profit import ProfitCalculator, ProfitInput
from karma_lemonade.models import FestivalModifiers, MarketEvent


def profit_input(**overrides) -> ProfitInput:
    values = dict(
        cups_sold=100,
        price=1.0,
        ad_spend=5.0,
        lemon_price=0.5,
        sugar_price=0.3,
        event=MarketEvent.NONE,
    )
    values.update(overrides)
    return ProfitInput(**values)


@pytest.fixture
def calculator(default_config) -> ProfitCalculator:
    return ProfitCalculator(default_config)


class TestProfit:
    """Test profit and cost arithmetic."""

    def test_cost_breakdown(self, calculator):
        """Revenue minus inventory, fixed and advertising costs."""
        breakdown = calculator.calculate_cost_breakdown(profit_input())
        assert breakdown.revenue == 100.0
        assert breakdown.inventory_cost == 23.0  # 100 * (0.15 + 0.1 * 0.8)
        assert breakdown.fixed_cost == 5.0
        assert breakdown.advertising_cost == 5.0
        assert breakdown.total_costs == 33.0
        assert breakdown.profit == 67.0

    def test_profit_matches_breakdown(self, calculator):
        """calculate_profit is the breakdown's profit."""
        p = profit_input(cups_sold=37, price=1.35, ad_spend=7.5)
        assert calculator.calculate_profit(p) == calculator.calculate_cost_breakdown(p).profit

    def test_no_sales_loses_money(self, calculator):
        """Zero cups still pays fixed and advertising costs."""
        profit = calculator.calculate_profit(
            profit_input(cups_sold=0, ad_spend=10, lemon_price=0.10, sugar_price=0.05)
        )
        assert profit < 0
        assert profit == -15.0

    def test_event_cost_multiplier(self, calculator):
        """Sugar shortage raises inventory cost by 30%."""
        breakdown = calculator.calculate_cost_breakdown(profit_input(event=MarketEvent.SUGAR_SHORT))
        assert breakdown.inventory_cost == pytest.approx(29.9)

    def test_cost_volatility(self, calculator):
        """Festival cost volatility scales inventory cost by half its value."""
        mods = FestivalModifiers(cost_volatility=0.2)
        breakdown = calculator.calculate_cost_breakdown(profit_input(festival_modifiers=mods))
        assert breakdown.inventory_cost == pytest.approx(25.3)

    def test_rounded_to_cents(self, calculator):
        """Every figure is rounded to cents."""
        breakdown = calculator.calculate_cost_breakdown(
            profit_input(cups_sold=33, price=1.333, lemon_price=0.47, sugar_price=0.29)
        )
        for value in breakdown.to_dict().values():
            assert abs(value * 100 - round(value * 100)) < 1e-6

    def test_fixed_cost_from_config(self):
        """Fixed daily cost comes from the economy config."""
        calculator = ProfitCalculator(GameConfig(economy=EconomyConfig(fixed_cost_per_day=0.0)))
        assert calculator.calculate_profit(profit_input(cups_sold=0, ad_spend=0)) == 0.0
