# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Karma Lemonade Stand - a deterministic daily lemonade stand simulation.

Each day a player picks a price and an advertising budget. The engine combines
that choice with the player's skill stats, the shared daily weather/market
cycle and the weekly festival into cups sold and profit. Given the same inputs
it always returns the same result, so the server can re-run any submission.

Quick Start:
    # Today's conditions and a practice run
    karma-lemonade cycle
    karma-lemonade play --price 1.25 --ad-spend 10

    # Or use the Python API
    from karma_lemonade import DEFAULT_CONFIG, GameRun, UserProfile
    from karma_lemonade.cycles import DailyCycleManager, WeeklyCycleManager
    from karma_lemonade.engine.game_engine import GameEngine

    engine = GameEngine.from_config(DEFAULT_CONFIG)
    daily = DailyCycleManager().generate_daily_cycle("2025-07-04")
    weekly = WeeklyCycleManager(DEFAULT_CONFIG).generate_weekly_cycle(2025, 27)
    result = engine.run_game(
        GameRun(user_id="u1", price=1.25, ad_spend=10),
        UserProfile(user_id="u1"),
        daily,
        weekly,
    )
"""

from .config import DEFAULT_CONFIG, GameConfig, load_config
from .errors import ConcurrentRunError, GameRunValidationError
from .models import (
    DailyCycle,
    GameResult,
    GameRun,
    GameStats,
    LoginBonusType,
    MarketEvent,
    PaymentReceipt,
    UserProfile,
    Weather,
    WeeklyCycle,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "DEFAULT_CONFIG",
    "GameConfig",
    "load_config",
    # Errors
    "GameRunValidationError",
    "ConcurrentRunError",
    # Models
    "DailyCycle",
    "WeeklyCycle",
    "GameRun",
    "GameResult",
    "GameStats",
    "PaymentReceipt",
    "UserProfile",
    "Weather",
    "MarketEvent",
    "LoginBonusType",
]
