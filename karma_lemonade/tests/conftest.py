# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Pytest fixtures for Karma Lemonade Stand tests.
"""

import pytest

from karma_lemonade.bonuses.powerups import ReceiptVerification
from karma_lemonade.config import DEFAULT_CONFIG, GameConfig
from karma_lemonade.engine.game_engine import GameEngine
from karma_lemonade.models import (
    DailyCycle,
    FestivalModifiers,
    GameStats,
    LoginBonusType,
    MarketEvent,
    PaymentReceipt,
    Progress,
    UserProfile,
    Weather,
    WeeklyCycle,
)

TEST_DAY = "2025-07-04"


class StubVerifier:
    """ReceiptVerifier that accepts exactly the receipts it was given."""

    def __init__(self, *receipts: PaymentReceipt):
        self.receipts = {r.receipt_id: r for r in receipts}

    def verify_receipt(self, receipt_id: str) -> ReceiptVerification:
        receipt = self.receipts.get(receipt_id)
        if receipt is None:
            return ReceiptVerification(valid=False, reason="receipt not found")
        return ReceiptVerification(valid=True, receipt=receipt)


class StubBonuses:
    """Login bonus source with a fixed active bonus for everyone."""

    def __init__(self, bonus=None):
        self.bonus = bonus

    def active_bonus(self, user_id: str, day: str):
        return self.bonus


def make_receipt(receipt_id: str = "rcpt_1", user_id: str = "user_1", sku: str = "super_sugar_boost") -> PaymentReceipt:
    return PaymentReceipt(
        receipt_id=receipt_id,
        user_id=user_id,
        sku=sku,
        amount=99,
        currency="USD",
        signature="sig",
        issued_at=0.0,
    )


def make_daily(
    weather: Weather = Weather.SUNNY,
    event: MarketEvent = MarketEvent.NONE,
    lemon_price: float = 0.5,
    sugar_price: float = 0.3,
    day: str = TEST_DAY,
) -> DailyCycle:
    return DailyCycle(
        date=day,
        seed="12345",
        weather=weather,
        event=event,
        lemon_price=lemon_price,
        sugar_price=sugar_price,
        login_bonus=LoginBonusType.NONE,
    )


@pytest.fixture
def default_config() -> GameConfig:
    """Default game configuration for tests."""
    return DEFAULT_CONFIG


@pytest.fixture
def engine(default_config: GameConfig) -> GameEngine:
    """Engine without power-up or bonus layers."""
    return GameEngine.from_config(default_config)


@pytest.fixture
def profile() -> UserProfile:
    """Mid-skill player with a few completed runs."""
    return UserProfile(
        user_id="user_1",
        username="lemon_fan",
        game_stats=GameStats(service=5.0, marketing=5.0, reputation=5.0),
        progress=Progress(total_runs=3, current_streak=2, longest_streak=4, best_profit=40.0),
    )


@pytest.fixture
def sunny_day() -> DailyCycle:
    return make_daily()


@pytest.fixture
def neutral_week() -> WeeklyCycle:
    """Festival week with no demand boost, variance or critical sales."""
    return WeeklyCycle(
        year=2025,
        week=27,
        festival="SUMMER_SOLSTICE",
        modifiers=FestivalModifiers(
            demand_multiplier=1.0,
            price_variance=0.0,
            critical_sale_chance=0.0,
            cost_volatility=0.0,
        ),
    )


@pytest.fixture
def festival_week() -> WeeklyCycle:
    """Festival week with default variance and critical sale chance."""
    return WeeklyCycle(
        year=2025,
        week=27,
        festival="SUMMER_SOLSTICE",
        modifiers=FestivalModifiers(demand_multiplier=1.3),
    )
