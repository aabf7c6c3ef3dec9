# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Data models for the Karma Lemonade Stand simulation.

Each day every player sets a price and an advertising budget. The engine turns
that decision, the player's skill stats and the shared daily/weekly cycles into
a GameResult. The models here are plain values:
- Player input (GameRun) and the profile snapshot the engine reads (UserProfile)
- Environmental cycles (DailyCycle, WeeklyCycle)
- The authoritative per-run output (GameResult)
- Static multiplier and probability tables keyed by closed enums
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Weather(str, Enum):
    """Daily weather, drawn once per UTC day."""
    SUNNY = "SUNNY"
    HOT = "HOT"
    CLOUDY = "CLOUDY"
    RAINY = "RAINY"
    COLD = "COLD"


class MarketEvent(str, Enum):
    """Market-wide event affecting demand and ingredient costs."""
    NONE = "NONE"
    VIRAL = "VIRAL"
    SUGAR_SHORT = "SUGAR_SHORT"
    INFLATION = "INFLATION"


class LoginBonusType(str, Enum):
    """Free once-daily bonus a player can claim."""
    NONE = "NONE"
    PERFECT = "PERFECT"
    FREE_AD = "FREE_AD"
    COOLER = "COOLER"


class FestivalCategory(str, Enum):
    HOLIDAY = "holiday"
    AESTHETIC = "aesthetic"
    ERA = "era"
    GENRE = "genre"


class PowerupType(str, Enum):
    SUPER_SUGAR = "SUPER_SUGAR"


def _closed_table(enum_cls, values: Dict[Any, float]) -> Mapping[Any, float]:
    """Freeze a table and fail at import time if any enum member is missing."""
    missing = set(enum_cls) - set(values)
    if missing:
        names = ", ".join(sorted(m.value for m in missing))
        raise ValueError(f"{enum_cls.__name__} table is missing: {names}")
    return MappingProxyType(dict(values))


# Demand multipliers - HOT is the best lemonade weather, COLD the worst
WEATHER_DEMAND_MULTIPLIERS = _closed_table(Weather, {
    Weather.SUNNY: 1.2,
    Weather.HOT: 1.5,
    Weather.CLOUDY: 1.0,
    Weather.RAINY: 0.6,
    Weather.COLD: 0.4,
})

EVENT_DEMAND_MULTIPLIERS = _closed_table(MarketEvent, {
    MarketEvent.NONE: 1.0,
    MarketEvent.VIRAL: 2.0,
    MarketEvent.SUGAR_SHORT: 0.8,
    MarketEvent.INFLATION: 0.9,
})

# Ingredient cost multipliers per cup
EVENT_COST_MULTIPLIERS = _closed_table(MarketEvent, {
    MarketEvent.NONE: 1.0,
    MarketEvent.VIRAL: 1.0,
    MarketEvent.SUGAR_SHORT: 1.3,
    MarketEvent.INFLATION: 1.2,
})

# Categorical draw weights. Order matters: the cumulative comparison walks
# the table in declaration order.
WEATHER_PROBABILITIES = _closed_table(Weather, {
    Weather.SUNNY: 0.30,
    Weather.HOT: 0.15,
    Weather.CLOUDY: 0.25,
    Weather.RAINY: 0.20,
    Weather.COLD: 0.10,
})

EVENT_PROBABILITIES = _closed_table(MarketEvent, {
    MarketEvent.NONE: 0.70,
    MarketEvent.VIRAL: 0.10,
    MarketEvent.SUGAR_SHORT: 0.10,
    MarketEvent.INFLATION: 0.10,
})

LOGIN_BONUS_PROBABILITIES = _closed_table(LoginBonusType, {
    LoginBonusType.NONE: 0.60,
    LoginBonusType.PERFECT: 0.15,
    LoginBonusType.FREE_AD: 0.15,
    LoginBonusType.COOLER: 0.10,
})


@dataclass(frozen=True)
class CycleMultipliers:
    """Static multiplier tables attached to every DailyCycle."""
    demand: Mapping[Weather, float] = field(default_factory=lambda: WEATHER_DEMAND_MULTIPLIERS)
    event: Mapping[MarketEvent, float] = field(default_factory=lambda: EVENT_DEMAND_MULTIPLIERS)
    cost: Mapping[MarketEvent, float] = field(default_factory=lambda: EVENT_COST_MULTIPLIERS)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "demand": {k.value: v for k, v in self.demand.items()},
            "event": {k.value: v for k, v in self.event.items()},
            "cost": {k.value: v for k, v in self.cost.items()},
        }


DEFAULT_MULTIPLIERS = CycleMultipliers()


@dataclass(kw_only=True)
class GameStats:
    """Derived skill stats, each on a 0-10 scale."""
    service: float = 0.0
    marketing: float = 0.0
    reputation: float = 0.0


@dataclass(kw_only=True)
class Progress:
    total_runs: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    best_profit: float = 0.0
    total_profit: float = 0.0
    last_play_date: Optional[str] = None  # YYYY-MM-DD


@dataclass(kw_only=True)
class PowerupUsage:
    used_today: Dict[str, int] = field(default_factory=dict)  # sku -> uses
    last_reset_date: Optional[str] = None  # YYYY-MM-DD

    def uses_on(self, sku: str, today: str) -> int:
        """Uses of a SKU counted against today's limit (stale counters read as 0)."""
        if self.last_reset_date != today:
            return 0
        return self.used_today.get(sku, 0)


@dataclass(kw_only=True)
class UserProfile:
    """
    Player profile as owned by the persistence collaborator.

    The engine only reads it; the caller applies progress updates after a run.
    """
    user_id: str
    username: str = ""
    game_stats: GameStats = field(default_factory=GameStats)
    progress: Progress = field(default_factory=Progress)
    powerups: PowerupUsage = field(default_factory=PowerupUsage)


@dataclass(kw_only=True, frozen=True)
class PaymentReceipt:
    """A purchase receipt. Verified by the engine, never created by it."""
    receipt_id: str
    user_id: str
    sku: str
    amount: int  # cents
    currency: str
    signature: str
    issued_at: float  # epoch seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receipt_id": self.receipt_id,
            "user_id": self.user_id,
            "sku": self.sku,
            "amount": self.amount,
            "currency": self.currency,
            "signature": self.signature,
            "issued_at": self.issued_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentReceipt":
        return cls(
            receipt_id=str(data["receipt_id"]),
            user_id=str(data["user_id"]),
            sku=str(data["sku"]),
            amount=int(data["amount"]),
            currency=str(data.get("currency", "USD")),
            signature=str(data.get("signature", "")),
            issued_at=float(data.get("issued_at", 0.0)),
        )


@dataclass(kw_only=True)
class GameRun:
    """One day's decision submitted by a player."""
    user_id: str
    price: float  # dollars per cup
    ad_spend: float  # dollars
    powerup_receipts: List[PaymentReceipt] = field(default_factory=list)


@dataclass(kw_only=True, frozen=True)
class FestivalModifiers:
    demand_multiplier: float = 1.0
    price_variance: float = 0.1  # symmetric random variance around 1.0
    critical_sale_chance: float = 0.05
    cost_volatility: float = 0.0
    special_effects: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "demand_multiplier": self.demand_multiplier,
            "price_variance": self.price_variance,
            "critical_sale_chance": self.critical_sale_chance,
            "cost_volatility": self.cost_volatility,
            "special_effects": list(self.special_effects),
        }


@dataclass(kw_only=True, frozen=True)
class DailyCycle:
    """Environment shared by all players for one UTC day."""
    date: str  # YYYY-MM-DD
    seed: str
    weather: Weather
    event: MarketEvent
    lemon_price: float
    sugar_price: float
    login_bonus: LoginBonusType
    multipliers: CycleMultipliers = field(default_factory=CycleMultipliers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "seed": self.seed,
            "weather": self.weather.value,
            "event": self.event.value,
            "lemon_price": self.lemon_price,
            "sugar_price": self.sugar_price,
            "login_bonus": self.login_bonus.value,
            "multipliers": self.multipliers.to_dict(),
        }


@dataclass(kw_only=True, frozen=True)
class WeeklyCycle:
    """Festival theme shared by all players for one ISO week."""
    year: int
    week: int
    festival: str  # FestivalTheme id
    modifiers: FestivalModifiers

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "week": self.week,
            "festival": self.festival,
            "modifiers": self.modifiers.to_dict(),
        }


@dataclass(kw_only=True, frozen=True)
class GameResult:
    """
    Authoritative output of one run.

    Frozen: bonus and power-up layers build new results with
    dataclasses.replace and record what they did in the effect lists.
    """
    profit: float
    cups_sold: int
    weather: Weather
    event: MarketEvent
    festival: str
    streak: int
    seed: str
    powerups_applied: Tuple[str, ...] = ()  # effect types, e.g. SUPER_SUGAR
    powerup_skus: Tuple[str, ...] = ()  # SKU of each applied power-up, same order
    powerup_effects: Tuple[str, ...] = ()
    bonuses_applied: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profit": self.profit,
            "cups_sold": self.cups_sold,
            "weather": self.weather.value,
            "event": self.event.value,
            "festival": self.festival,
            "streak": self.streak,
            "seed": self.seed,
            "powerups_applied": list(self.powerups_applied),
            "powerup_skus": list(self.powerup_skus),
            "powerup_effects": list(self.powerup_effects),
            "bonuses_applied": list(self.bonuses_applied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameResult":
        """Build a result from a client payload (camelCase or snake_case keys)."""
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            profit=float(pick("profit", "profit", 0.0)),
            cups_sold=int(pick("cups_sold", "cupsSold", 0)),
            weather=Weather(pick("weather", "weather")),
            event=MarketEvent(pick("event", "event")),
            festival=str(pick("festival", "festival", "")),
            streak=int(pick("streak", "streak", 0)),
            seed=str(pick("seed", "seed", "")),
            powerups_applied=tuple(pick("powerups_applied", "powerupsApplied", ()) or ()),
            powerup_skus=tuple(pick("powerup_skus", "powerupSkus", ()) or ()),
            powerup_effects=tuple(pick("powerup_effects", "powerupEffects", ()) or ()),
            bonuses_applied=tuple(pick("bonuses_applied", "bonusesApplied", ()) or ()),
        )
