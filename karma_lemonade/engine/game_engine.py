# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Game engine: one run from player input to GameResult.

Pipeline:
    validate input -> seed (user, total_runs + 1) -> demand -> profit
    -> power-up layer -> login bonus layer

The engine holds no state between calls. Identical inputs always produce an
identical result, which is what lets the validator re-run a submission and
compare it field by field.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Optional

from ..bonuses.effects import BonusContext, BonusEffectsHandler
from ..bonuses.powerups import PowerupContext, PowerupEffectsApplier
from ..config import GameConfig
from ..errors import GameRunValidationError
from ..models import DailyCycle, GameResult, GameRun, UserProfile, WeeklyCycle
from .demand import DemandCalculator, DemandInput
from .numeric import round_cents
from .profit import CostBreakdown, ProfitCalculator, ProfitInput
from .seed import SeedGenerator


@dataclass(kw_only=True, frozen=True)
class ForecastPoint:
    price: float
    expected_cups: int
    revenue: float
    profit: float


class GameEngine:
    """
    Orchestrates the calculators for a single run.

    Args:
        config: Game configuration
        demand_calculator: Required
        profit_calculator: Required
        seed_generator: Required
        powerup_applier: Optional; without it receipts are recorded as omitted
        bonus_handler: Optional; without it login bonuses are not applied
    """

    def __init__(
        self,
        config: GameConfig,
        *,
        demand_calculator: DemandCalculator,
        profit_calculator: ProfitCalculator,
        seed_generator: SeedGenerator,
        powerup_applier: Optional[PowerupEffectsApplier] = None,
        bonus_handler: Optional[BonusEffectsHandler] = None,
    ):
        missing = [
            name
            for name, value in (
                ("config", config),
                ("demand_calculator", demand_calculator),
                ("profit_calculator", profit_calculator),
                ("seed_generator", seed_generator),
            )
            if value is None
        ]
        if missing:
            raise TypeError(f"GameEngine missing required collaborators: {', '.join(missing)}")

        self.config = config
        self.demand_calculator = demand_calculator
        self.profit_calculator = profit_calculator
        self.seed_generator = seed_generator
        self.powerup_applier = powerup_applier
        self.bonus_handler = bonus_handler

    @classmethod
    def from_config(
        cls,
        config: GameConfig,
        *,
        powerup_applier: Optional[PowerupEffectsApplier] = None,
        bonus_handler: Optional[BonusEffectsHandler] = None,
    ) -> "GameEngine":
        return cls(
            config,
            demand_calculator=DemandCalculator(config),
            profit_calculator=ProfitCalculator(config),
            seed_generator=SeedGenerator(),
            powerup_applier=powerup_applier,
            bonus_handler=bonus_handler,
        )

    def run_game(
        self,
        game_run: GameRun,
        profile: UserProfile,
        daily_cycle: DailyCycle,
        weekly_cycle: WeeklyCycle,
    ) -> GameResult:
        """Simulate one run. Raises GameRunValidationError on bad input."""
        self.validate_run(game_run, profile)

        seed = self.seed_generator.generate_seed(game_run.user_id, profile.progress.total_runs + 1)
        cups_sold = self.demand_calculator.calculate_demand(
            DemandInput(
                price=game_run.price,
                ad_spend=game_run.ad_spend,
                game_stats=profile.game_stats,
                weather=daily_cycle.weather,
                event=daily_cycle.event,
                festival_modifiers=weekly_cycle.modifiers,
                seed=seed,
                # Power-ups are applied once, by the verified layer below
                powerup_receipts=(),
                multipliers=daily_cycle.multipliers,
            )
        )
        breakdown = self.cost_breakdown(game_run, cups_sold, daily_cycle, weekly_cycle)

        result = GameResult(
            profit=breakdown.profit,
            cups_sold=cups_sold,
            weather=daily_cycle.weather,
            event=daily_cycle.event,
            festival=weekly_cycle.festival,
            streak=profile.progress.current_streak,
            seed=seed,
        )

        if game_run.powerup_receipts:
            if self.powerup_applier is not None:
                result = self.powerup_applier.apply(
                    result,
                    game_run.powerup_receipts,
                    PowerupContext(
                        user_id=game_run.user_id,
                        price=game_run.price,
                        day=daily_cycle.date,
                        usage=profile.powerups,
                    ),
                ).result
            else:
                skipped = tuple(
                    f"Omitted {r.sku} ({r.receipt_id}): power-ups unavailable"
                    for r in game_run.powerup_receipts
                )
                result = _with_effects(result, skipped)

        if self.bonus_handler is not None:
            result = self.bonus_handler.apply(
                result,
                BonusContext(
                    user_id=game_run.user_id,
                    day=daily_cycle.date,
                    weather=daily_cycle.weather,
                    price=game_run.price,
                    ad_spend=game_run.ad_spend,
                    multipliers=daily_cycle.multipliers,
                ),
            ).result

        return result

    def validate_run(self, game_run: GameRun, profile: Optional[UserProfile]) -> None:
        limits = self.config.game

        if profile is None:
            raise GameRunValidationError(f"No profile for user {game_run.user_id}", field="profile")
        if game_run.user_id != profile.user_id:
            raise GameRunValidationError(
                f"Run user {game_run.user_id} does not match profile {profile.user_id}",
                field="user_id",
            )
        if not _in_range(game_run.price, limits.min_price, limits.max_price):
            raise GameRunValidationError(
                f"Price must be between ${limits.min_price:g} and ${limits.max_price:g}",
                field="price",
            )
        if not _in_range(game_run.ad_spend, limits.min_ad_spend, limits.max_ad_spend):
            raise GameRunValidationError(
                f"Ad spend must be between ${limits.min_ad_spend:g} and ${limits.max_ad_spend:g}",
                field="ad_spend",
            )
        for receipt in game_run.powerup_receipts:
            if receipt.sku not in self.config.powerups:
                raise GameRunValidationError(f"Invalid powerup SKU: {receipt.sku}", field="powerup_sku")

    def cost_breakdown(
        self,
        game_run: GameRun,
        cups_sold: int,
        daily_cycle: DailyCycle,
        weekly_cycle: WeeklyCycle,
    ) -> CostBreakdown:
        return self.profit_calculator.calculate_cost_breakdown(
            ProfitInput(
                cups_sold=cups_sold,
                price=game_run.price,
                ad_spend=game_run.ad_spend,
                lemon_price=daily_cycle.lemon_price,
                sugar_price=daily_cycle.sugar_price,
                event=daily_cycle.event,
                festival_modifiers=weekly_cycle.modifiers,
                multipliers=daily_cycle.multipliers,
            )
        )

    def forecast(
        self,
        prices: List[float],
        ad_spend: float,
        profile: UserProfile,
        daily_cycle: DailyCycle,
        weekly_cycle: WeeklyCycle,
        powerup_receipts=(),
    ) -> List[ForecastPoint]:
        """
        Expected cups and profit at each price with variance and critical
        sales switched off. Receipts count toward demand without verification.
        """
        points = []
        for price in prices:
            cups = self.demand_calculator.calculate_demand(
                DemandInput(
                    price=price,
                    ad_spend=ad_spend,
                    game_stats=profile.game_stats,
                    weather=daily_cycle.weather,
                    event=daily_cycle.event,
                    festival_modifiers=weekly_cycle.modifiers,
                    seed="forecast",
                    powerup_receipts=tuple(powerup_receipts),
                    multipliers=daily_cycle.multipliers,
                    randomize=False,
                )
            )
            run = GameRun(user_id=profile.user_id, price=price, ad_spend=ad_spend)
            breakdown = self.cost_breakdown(run, cups, daily_cycle, weekly_cycle)
            points.append(
                ForecastPoint(
                    price=round_cents(price),
                    expected_cups=cups,
                    revenue=breakdown.revenue,
                    profit=breakdown.profit,
                )
            )
        return points


def _in_range(value: float, low: float, high: float) -> bool:
    if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
        return False
    return low <= value <= high


def _with_effects(result: GameResult, effects) -> GameResult:
    return replace(result, powerup_effects=result.powerup_effects + tuple(effects))
