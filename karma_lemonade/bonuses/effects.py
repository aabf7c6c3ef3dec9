# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Login bonus effects, applied after the power-up layer.

Covers:
- PERFECT: +15% profit on a profitable day, never beyond revenue
- FREE_AD: +10% cups, extra cups earn the existing per-cup margin
- COOLER: on COLD days, divides the cold demand penalty back out
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from ..engine.numeric import cap_to_revenue, round_cents, round_half_up
from ..models import DEFAULT_MULTIPLIERS, CycleMultipliers, GameResult, LoginBonusType, Weather
from .login_bonus import LoginBonusManager
from .powerups import EffectOutcome

PERFECT_DAY_BOOST = 1.15
FREE_AD_CUSTOMER_BOOST = 1.10


@dataclass(kw_only=True)
class BonusContext:
    user_id: str
    day: str  # YYYY-MM-DD of the cycle the run was played in
    weather: Weather
    price: float
    ad_spend: float = 0.0
    multipliers: CycleMultipliers = field(default_factory=lambda: DEFAULT_MULTIPLIERS)


def _per_cup_margin(result: GameResult) -> float:
    if result.cups_sold <= 0:
        return 0.0
    return result.profit / result.cups_sold


class BonusEffectsHandler:
    """Applies the player's claimed login bonus to a finished result."""

    def __init__(self, login_bonuses: LoginBonusManager):
        if login_bonuses is None:
            raise TypeError("BonusEffectsHandler requires a LoginBonusManager")
        self.login_bonuses = login_bonuses

    def apply(self, result: GameResult, context: BonusContext) -> EffectOutcome:
        bonus = self.login_bonuses.active_bonus(context.user_id, context.day)
        return self.apply_bonus(bonus, result, context)

    def apply_bonus(
        self,
        bonus: Optional[LoginBonusType],
        result: GameResult,
        context: BonusContext,
    ) -> EffectOutcome:
        """Apply one bonus type. Bonuses with nothing to do return the result unchanged."""
        if bonus == LoginBonusType.PERFECT:
            return self._perfect_day(result, context)
        if bonus == LoginBonusType.FREE_AD:
            return self._free_advertising(result, context)
        if bonus == LoginBonusType.COOLER:
            return self._cooler_weather(result, context)
        return EffectOutcome(result)

    @staticmethod
    def _record(result: GameResult, description: str, **changes) -> EffectOutcome:
        updated = replace(result, bonuses_applied=result.bonuses_applied + (description,), **changes)
        return EffectOutcome(updated, (description,))

    def _perfect_day(self, result: GameResult, context: BonusContext) -> EffectOutcome:
        if result.profit <= 0:
            return EffectOutcome(result)
        profit = cap_to_revenue(round_cents(result.profit * PERFECT_DAY_BOOST), result.cups_sold, context.price)
        return self._record(result, "Perfect Day: +15% profit", profit=profit)

    def _free_advertising(self, result: GameResult, context: BonusContext) -> EffectOutcome:
        cups = round_half_up(result.cups_sold * FREE_AD_CUSTOMER_BOOST)
        extra = cups - result.cups_sold
        profit = round_cents(result.profit + extra * _per_cup_margin(result))
        return self._record(
            result,
            "Free Advertising: +10% customers",
            cups_sold=cups,
            profit=cap_to_revenue(profit, cups, context.price),
        )

    def _cooler_weather(self, result: GameResult, context: BonusContext) -> EffectOutcome:
        if context.weather != Weather.COLD:
            return EffectOutcome(result)
        factor = 1 / context.multipliers.demand[Weather.COLD]
        cups = round_half_up(result.cups_sold * factor)
        profit = round_cents(result.profit + (cups - result.cups_sold) * _per_cup_margin(result))
        return self._record(
            result,
            "Cooler Weather: cold weather penalty removed",
            cups_sold=cups,
            profit=cap_to_revenue(profit, cups, context.price),
        )
