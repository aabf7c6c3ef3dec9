# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Daily cycle generation.

Every player sees the same weather, market event, ingredient prices and login
bonus on a given UTC day. All of them come from the hash of the date string,
one labelled sub-stream per draw.
"""

from ..engine.numeric import clamp, round_cents
from ..engine.seed import SeedStream, hash_string
from ..models import (
    DEFAULT_MULTIPLIERS,
    EVENT_PROBABILITIES,
    LOGIN_BONUS_PROBABILITIES,
    WEATHER_PROBABILITIES,
    DailyCycle,
    LoginBonusType,
    MarketEvent,
    Weather,
)
from .clock import parse_day

# (mean, standard deviation, floor, ceiling) in dollars
LEMON_PRICE = (0.50, 0.15, 0.20, 1.00)
SUGAR_PRICE = (0.30, 0.10, 0.15, 0.60)


class DailyCycleManager:
    def generate_daily_cycle(self, day: str) -> DailyCycle:
        """Build the cycle for a YYYY-MM-DD day."""
        parse_day(day)
        seed = hash_string(day)
        stream = SeedStream(seed)

        weather = stream.fork("weather").weighted_choice(WEATHER_PROBABILITIES, Weather.SUNNY)
        event = stream.fork("event").weighted_choice(EVENT_PROBABILITIES, MarketEvent.NONE)
        lemon_price = self._ingredient_price(stream.fork("lemon"), LEMON_PRICE)
        sugar_price = self._ingredient_price(stream.fork("sugar"), SUGAR_PRICE)
        login_bonus = stream.fork("bonus").weighted_choice(
            LOGIN_BONUS_PROBABILITIES, LoginBonusType.NONE
        )

        return DailyCycle(
            date=day,
            seed=seed,
            weather=weather,
            event=event,
            lemon_price=lemon_price,
            sugar_price=sugar_price,
            login_bonus=login_bonus,
            multipliers=DEFAULT_MULTIPLIERS,
        )

    @staticmethod
    def _ingredient_price(stream: SeedStream, params: tuple) -> float:
        mean, std_dev, low, high = params
        return round_cents(clamp(stream.normal(mean, std_dev), low, high))
