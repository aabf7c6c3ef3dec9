# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Game configuration schema and YAML loader.

The configuration is an immutable value handed to every calculator's
constructor. Defaults reproduce the reference economy; a YAML file only needs
to list the keys it overrides.

Example config.yaml:
    game:
      min_price: 0.25
      max_price: 5.0
      min_ad_spend: 0
      max_ad_spend: 50
    economy:
      base_customers: 20
      price_elasticity: 0.8
    powerups:
      super_sugar_boost:
        price: 99
        daily_limit: 2
        effects:
          type: SUPER_SUGAR
          demand_bonus: 0.2
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .models import FestivalCategory, PowerupType


@dataclass(frozen=True)
class GameLimitsConfig:
    """Bounds on player input."""
    min_price: float = 0.25
    max_price: float = 5.0
    min_ad_spend: float = 0.0
    max_ad_spend: float = 50.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GameLimitsConfig":
        if data is None:
            return cls()
        config = cls(
            min_price=float(data.get("min_price", 0.25)),
            max_price=float(data.get("max_price", 5.0)),
            min_ad_spend=float(data.get("min_ad_spend", 0.0)),
            max_ad_spend=float(data.get("max_ad_spend", 50.0)),
        )
        if config.min_price <= 0:
            raise ValueError(f"Invalid game.min_price: {config.min_price}. Must be positive")
        if config.min_price > config.max_price:
            raise ValueError(
                f"Invalid game price bounds: min_price {config.min_price} > max_price {config.max_price}"
            )
        if config.min_ad_spend < 0 or config.min_ad_spend > config.max_ad_spend:
            raise ValueError(
                f"Invalid game ad spend bounds: {config.min_ad_spend}-{config.max_ad_spend}"
            )
        return config


@dataclass(frozen=True)
class EconomyConfig:
    """Demand and cost constants."""
    base_customers: float = 20
    price_elasticity: float = 0.8  # fraction of demand lost per extra dollar
    ad_effect: float = 0.1
    reputation_effect: float = 0.05
    inventory_cost_per_cup: float = 0.15
    fixed_cost_per_day: float = 5.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EconomyConfig":
        if data is None:
            return cls()
        config = cls(
            base_customers=float(data.get("base_customers", 20)),
            price_elasticity=float(data.get("price_elasticity", 0.8)),
            ad_effect=float(data.get("ad_effect", 0.1)),
            reputation_effect=float(data.get("reputation_effect", 0.05)),
            inventory_cost_per_cup=float(data.get("inventory_cost_per_cup", 0.15)),
            fixed_cost_per_day=float(data.get("fixed_cost_per_day", 5.0)),
        )
        # (1 - elasticity) is raised to a real power, so it must stay positive
        if not 0 <= config.price_elasticity < 1:
            raise ValueError(
                f"Invalid economy.price_elasticity: {config.price_elasticity}. Must be in [0, 1)"
            )
        for key in ("base_customers", "ad_effect", "inventory_cost_per_cup", "fixed_cost_per_day"):
            if getattr(config, key) < 0:
                raise ValueError(f"Invalid economy.{key}: {getattr(config, key)}. Must be >= 0")
        return config


@dataclass(frozen=True)
class StatScalingConfig:
    """Ratios for converting community stats to game stats."""
    ck_to_service: float = 0.001
    pk_to_marketing: float = 0.001
    age_days_to_rep: float = 0.01

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StatScalingConfig":
        if data is None:
            return cls()
        return cls(
            ck_to_service=float(data.get("ck_to_service", 0.001)),
            pk_to_marketing=float(data.get("pk_to_marketing", 0.001)),
            age_days_to_rep=float(data.get("age_days_to_rep", 0.01)),
        )


@dataclass(frozen=True)
class RunLimitsConfig:
    """Per-user pacing of runs."""
    max_posts_per_user_per_day: int = 10
    min_seconds_between_runs: int = 30

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RunLimitsConfig":
        if data is None:
            return cls()
        config = cls(
            max_posts_per_user_per_day=int(data.get("max_posts_per_user_per_day", 10)),
            min_seconds_between_runs=int(data.get("min_seconds_between_runs", 30)),
        )
        if config.max_posts_per_user_per_day < 1:
            raise ValueError(
                f"Invalid limits.max_posts_per_user_per_day: {config.max_posts_per_user_per_day}. Must be at least 1"
            )
        if config.min_seconds_between_runs < 0:
            raise ValueError(
                f"Invalid limits.min_seconds_between_runs: {config.min_seconds_between_runs}. Must be non-negative"
            )
        return config


@dataclass(frozen=True)
class PowerupEffect:
    type: PowerupType = PowerupType.SUPER_SUGAR
    demand_bonus: float = 0.2
    service_bonus: float = 1
    duration: str = "single_run"


@dataclass(frozen=True)
class PowerupConfig:
    """A purchasable power-up SKU."""
    sku: str
    name: str
    price: int  # cents
    currency: str = "USD"
    daily_limit: int = 2
    effects: PowerupEffect = field(default_factory=PowerupEffect)

    @classmethod
    def from_dict(cls, sku: str, data: Dict[str, Any]) -> "PowerupConfig":
        declared_sku = data.get("sku", sku)
        if declared_sku != sku:
            raise ValueError(f"Invalid powerup entry '{sku}': sku field is '{declared_sku}'")
        effects = data.get("effects", {})
        try:
            effect_type = PowerupType(effects.get("type", PowerupType.SUPER_SUGAR.value))
        except ValueError:
            raise ValueError(
                f"Invalid powerup effect type: {effects.get('type')}. "
                f"Must be one of {[t.value for t in PowerupType]}"
            ) from None
        daily_limit = int(data.get("daily_limit", 2))
        if daily_limit < 0:
            raise ValueError(f"Invalid daily_limit for powerup '{sku}': {daily_limit}")
        return cls(
            sku=sku,
            name=data.get("name", sku.replace("_", " ").title()),
            price=int(data.get("price", 99)),
            currency=data.get("currency", "USD"),
            daily_limit=daily_limit,
            effects=PowerupEffect(
                type=effect_type,
                demand_bonus=float(effects.get("demand_bonus", 0.2)),
                service_bonus=float(effects.get("service_bonus", 1)),
                duration=effects.get("duration", "single_run"),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku": self.sku,
            "name": self.name,
            "price": self.price,
            "currency": self.currency,
            "daily_limit": self.daily_limit,
            "effects": {
                "type": self.effects.type.value,
                "demand_bonus": self.effects.demand_bonus,
                "service_bonus": self.effects.service_bonus,
                "duration": self.effects.duration,
            },
        }


@dataclass(frozen=True)
class FestivalTheme:
    """
    A weekly festival theme.

    Unset modifiers fall back to the neutral defaults when the weekly cycle
    is generated (demand 1.0, price variance 0.1, critical chance 0.05,
    cost volatility 0.0).
    """
    id: str
    name: str
    category: FestivalCategory
    demand_multiplier: Optional[float] = None
    price_variance: Optional[float] = None
    critical_sale_chance: Optional[float] = None
    cost_volatility: Optional[float] = None
    special_effects: tuple = ()

    @classmethod
    def from_dict(cls, festival_id: str, data: Dict[str, Any]) -> "FestivalTheme":
        try:
            category = FestivalCategory(data.get("category", FestivalCategory.HOLIDAY.value))
        except ValueError:
            raise ValueError(
                f"Invalid festival category for '{festival_id}': {data.get('category')}. "
                f"Must be one of {[c.value for c in FestivalCategory]}"
            ) from None
        modifiers = data.get("modifiers") or {}
        return cls(
            id=festival_id,
            name=data.get("name", festival_id.replace("_", " ").title()),
            category=category,
            demand_multiplier=_modifier(festival_id, modifiers, "demand_multiplier"),
            price_variance=_modifier(festival_id, modifiers, "price_variance"),
            critical_sale_chance=_modifier(festival_id, modifiers, "critical_sale_chance"),
            cost_volatility=_modifier(festival_id, modifiers, "cost_volatility"),
            special_effects=tuple(modifiers.get("special_effects", ())),
        )

    def to_dict(self) -> Dict[str, Any]:
        modifiers: Dict[str, Any] = {}
        for key in ("demand_multiplier", "price_variance", "critical_sale_chance", "cost_volatility"):
            value = getattr(self, key)
            if value is not None:
                modifiers[key] = value
        modifiers["special_effects"] = list(self.special_effects)
        return {"name": self.name, "category": self.category.value, "modifiers": modifiers}


def _modifier(festival_id: str, modifiers: Dict[str, Any], key: str) -> Optional[float]:
    """Read an optional numeric festival modifier."""
    value = modifiers.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid festival modifier '{key}' for '{festival_id}': {value!r}") from None
    if isinstance(value, bool) or not math.isfinite(number):
        raise ValueError(f"Invalid festival modifier '{key}' for '{festival_id}': {value!r}")
    return number


def _theme(festival_id: str, name: str, category: FestivalCategory, effects: tuple, **modifiers) -> FestivalTheme:
    return FestivalTheme(id=festival_id, name=name, category=category, special_effects=effects, **modifiers)


_H, _A, _E, _G = FestivalCategory.HOLIDAY, FestivalCategory.AESTHETIC, FestivalCategory.ERA, FestivalCategory.GENRE

# The rotation order of this catalog is part of the weekly seed contract:
# the festival index is floor(random * len(catalog)).
_FESTIVAL_LIST: List[FestivalTheme] = [
    # Holidays
    _theme("VALENTINE_HEARTS", "Valentine Hearts", _H, ("love_boost", "pink_hearts"),
           demand_multiplier=1.2, critical_sale_chance=0.15),
    _theme("EASTER_SPRING", "Easter Spring", _H, ("spring_bloom", "easter_eggs"),
           demand_multiplier=1.15, price_variance=0.1),
    _theme("MOTHER_DAY_GARDEN", "Mother's Day Garden", _H, ("family_love", "garden_fresh"),
           demand_multiplier=1.25),
    _theme("FATHER_DAY_GRILL", "Father's Day Grill", _H, ("bbq_vibes", "dad_jokes"),
           demand_multiplier=1.2, cost_volatility=0.05),
    _theme("SUMMER_SOLSTICE", "Summer Solstice", _H, ("sun_power", "longest_day"),
           demand_multiplier=1.3),
    _theme("HALLOWEEN_SPOOKY", "Halloween Spooky", _H, ("spooky_boost", "trick_or_treat"),
           demand_multiplier=1.1, critical_sale_chance=0.2),
    _theme("WINTER_SOLSTICE", "Winter Solstice", _H, ("winter_warmth", "cozy_vibes"),
           demand_multiplier=0.9, price_variance=0.15),
    _theme("CHRISTMAS_WINTER", "Christmas Winter", _H, ("christmas_spirit", "gift_giving"),
           demand_multiplier=1.4),
    _theme("NEW_YEAR_PARTY", "New Year Party", _H, ("celebration", "new_beginnings"),
           demand_multiplier=1.35, critical_sale_chance=0.25),
    _theme("ST_PATRICK_LUCKY", "St. Patrick's Lucky", _H, ("luck_of_irish", "four_leaf_clover"),
           demand_multiplier=1.15, critical_sale_chance=0.3),
    # Aesthetics
    _theme("NEON_CYBER", "Neon Cyber", _A, ("digital_boost", "neon_glow"),
           demand_multiplier=1.1, price_variance=0.2),
    _theme("VINTAGE_RETRO", "Vintage Retro", _A, ("nostalgia", "classic_charm"),
           demand_multiplier=1.05, cost_volatility=-0.1),
    _theme("MINIMALIST_CLEAN", "Minimalist Clean", _A, ("zen_focus", "clean_efficiency"),
           demand_multiplier=1.0, price_variance=-0.05),
    _theme("COTTAGECORE_COZY", "Cottagecore Cozy", _A, ("homemade_charm", "countryside_peace"),
           demand_multiplier=1.15),
    _theme("DARK_GOTHIC", "Dark Gothic", _A, ("mysterious_allure", "dark_elegance"),
           demand_multiplier=0.95, critical_sale_chance=0.15),
    _theme("PASTEL_KAWAII", "Pastel Kawaii", _A, ("cuteness_overload", "kawaii_magic"),
           demand_multiplier=1.2),
    _theme("GRUNGE_PUNK", "Grunge Punk", _A, ("rebel_spirit", "underground_cool"),
           demand_multiplier=1.0, price_variance=0.25),
    _theme("ART_DECO_GLAM", "Art Deco Glam", _A, ("luxury_appeal", "golden_age"),
           demand_multiplier=1.25, cost_volatility=0.1),
    _theme("TROPICAL_PARADISE", "Tropical Paradise", _A, ("island_vibes", "tropical_breeze"),
           demand_multiplier=1.3),
    _theme("DESERT_OASIS", "Desert Oasis", _A, ("oasis_relief", "desert_mirage"),
           demand_multiplier=1.4),
    # Eras
    _theme("MEDIEVAL_TIMES", "Medieval Times", _E, ("ye_olde_charm", "medieval_fair"),
           demand_multiplier=1.0, cost_volatility=0.2),
    _theme("WILD_WEST", "Wild West", _E, ("frontier_spirit", "gold_rush"),
           demand_multiplier=1.1, price_variance=0.3),
    _theme("SPACE_AGE", "Space Age", _E, ("cosmic_energy", "space_exploration"),
           demand_multiplier=1.2),
    _theme("STONE_AGE", "Stone Age", _E, ("primitive_charm", "stone_tools"),
           demand_multiplier=0.8, cost_volatility=-0.2),
    _theme("ROARING_TWENTIES", "Roaring Twenties", _E, ("jazz_age", "prohibition_thrill"),
           demand_multiplier=1.3, critical_sale_chance=0.2),
    _theme("DISCO_SEVENTIES", "Disco Seventies", _E, ("disco_fever", "groovy_vibes"),
           demand_multiplier=1.25),
    _theme("NEON_EIGHTIES", "Neon Eighties", _E, ("synthwave", "neon_nights"),
           demand_multiplier=1.15, price_variance=0.15),
    _theme("GRUNGE_NINETIES", "Grunge Nineties", _E, ("alternative_cool", "flannel_comfort"),
           demand_multiplier=1.05),
    _theme("VICTORIAN_ELEGANCE", "Victorian Elegance", _E, ("refined_taste", "proper_etiquette"),
           demand_multiplier=1.1, cost_volatility=0.05),
    _theme("ANCIENT_EGYPT", "Ancient Egypt", _E, ("pharaoh_blessing", "pyramid_power"),
           demand_multiplier=1.2),
    # Genres
    _theme("ZOMBIE_APOCALYPSE", "Zombie Apocalypse", _G, ("survival_instinct", "apocalypse_premium"),
           demand_multiplier=0.7, critical_sale_chance=0.4),
    _theme("SUPERHERO_CITY", "Superhero City", _G, ("hero_boost", "super_powers"),
           demand_multiplier=1.3),
    _theme("PIRATE_SEAS", "Pirate Seas", _G, ("treasure_hunt", "sea_adventure"),
           demand_multiplier=1.15, price_variance=0.25),
    _theme("NINJA_VILLAGE", "Ninja Village", _G, ("stealth_sales", "ninja_efficiency"),
           demand_multiplier=1.1, critical_sale_chance=0.3),
    _theme("WIZARD_ACADEMY", "Wizard Academy", _G, ("magic_boost", "spell_casting"),
           demand_multiplier=1.25),
    _theme("ROBOT_FACTORY", "Robot Factory", _G, ("automation", "mechanical_precision"),
           demand_multiplier=1.0, cost_volatility=-0.15),
    _theme("FAIRY_FOREST", "Fairy Forest", _G, ("fairy_magic", "enchanted_grove"),
           demand_multiplier=1.2),
    _theme("DETECTIVE_NOIR", "Detective Noir", _G, ("mystery_intrigue", "noir_atmosphere"),
           demand_multiplier=1.05, critical_sale_chance=0.25),
    _theme("RACING_SPEEDWAY", "Racing Speedway", _G, ("speed_boost", "adrenaline_rush"),
           demand_multiplier=1.3, price_variance=0.2),
    _theme("MUSIC_FESTIVAL", "Music Festival", _G, ("concert_energy", "festival_vibes"),
           demand_multiplier=1.4),
]

FESTIVAL_THEMES: Mapping[str, FestivalTheme] = MappingProxyType({t.id: t for t in _FESTIVAL_LIST})

SUPER_SUGAR = PowerupConfig(
    sku="super_sugar_boost",
    name="Super Sugar Boost",
    price=99,
    currency="USD",
    daily_limit=2,
    effects=PowerupEffect(type=PowerupType.SUPER_SUGAR, demand_bonus=0.2, service_bonus=1),
)

DEFAULT_POWERUPS: Mapping[str, PowerupConfig] = MappingProxyType({SUPER_SUGAR.sku: SUPER_SUGAR})


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration.

    Attributes:
        version: Schema version
        game: Player input bounds
        economy: Demand and cost constants
        stat_scaling: Community-stat conversion ratios
        limits: Per-user run limits (enforced by RunRateLimiter)
        powerups: Power-up catalog keyed by SKU
        festivals: Festival catalog keyed by id, in rotation order
    """
    version: int = 1
    game: GameLimitsConfig = field(default_factory=GameLimitsConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    stat_scaling: StatScalingConfig = field(default_factory=StatScalingConfig)
    limits: RunLimitsConfig = field(default_factory=RunLimitsConfig)
    powerups: Mapping[str, PowerupConfig] = field(default_factory=lambda: DEFAULT_POWERUPS)
    festivals: Mapping[str, FestivalTheme] = field(default_factory=lambda: FESTIVAL_THEMES)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GameConfig":
        data = data or {}

        powerups: Mapping[str, PowerupConfig] = DEFAULT_POWERUPS
        if "powerups" in data:
            powerups = MappingProxyType({
                sku: PowerupConfig.from_dict(sku, entry or {})
                for sku, entry in (data["powerups"] or {}).items()
            })

        festivals: Mapping[str, FestivalTheme] = FESTIVAL_THEMES
        if "festivals" in data:
            festivals = MappingProxyType({
                festival_id: FestivalTheme.from_dict(festival_id, entry or {})
                for festival_id, entry in (data["festivals"] or {}).items()
            })
        if not festivals:
            raise ValueError("Invalid festivals: at least one festival theme is required")

        return cls(
            version=int(data.get("version", 1)),
            game=GameLimitsConfig.from_dict(data.get("game")),
            economy=EconomyConfig.from_dict(data.get("economy")),
            stat_scaling=StatScalingConfig.from_dict(data.get("stat_scaling")),
            limits=RunLimitsConfig.from_dict(data.get("limits")),
            powerups=powerups,
            festivals=festivals,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "game": {
                "min_price": self.game.min_price,
                "max_price": self.game.max_price,
                "min_ad_spend": self.game.min_ad_spend,
                "max_ad_spend": self.game.max_ad_spend,
            },
            "economy": {
                "base_customers": self.economy.base_customers,
                "price_elasticity": self.economy.price_elasticity,
                "ad_effect": self.economy.ad_effect,
                "reputation_effect": self.economy.reputation_effect,
                "inventory_cost_per_cup": self.economy.inventory_cost_per_cup,
                "fixed_cost_per_day": self.economy.fixed_cost_per_day,
            },
            "stat_scaling": {
                "ck_to_service": self.stat_scaling.ck_to_service,
                "pk_to_marketing": self.stat_scaling.pk_to_marketing,
                "age_days_to_rep": self.stat_scaling.age_days_to_rep,
            },
            "limits": {
                "max_posts_per_user_per_day": self.limits.max_posts_per_user_per_day,
                "min_seconds_between_runs": self.limits.min_seconds_between_runs,
            },
            "powerups": {sku: p.to_dict() for sku, p in self.powerups.items()},
            "festivals": {fid: f.to_dict() for fid, f in self.festivals.items()},
        }

    def festivals_by_category(self) -> Dict[FestivalCategory, List[FestivalTheme]]:
        """Group the festival catalog by category, keeping rotation order."""
        groups: Dict[FestivalCategory, List[FestivalTheme]] = {c: [] for c in FestivalCategory}
        for theme in self.festivals.values():
            groups[theme.category].append(theme)
        return groups


DEFAULT_CONFIG = GameConfig()


def load_config(path: str | Path) -> GameConfig:
    """
    Load a game configuration from a YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        GameConfig instance (keys missing from the file keep their defaults)
    """
    path = Path(path)

    with open(path) as f:
        data = yaml.safe_load(f)

    return GameConfig.from_dict(data)


def save_config(config: GameConfig, path: str | Path) -> None:
    """
    Save a game configuration to a YAML file.

    Args:
        config: GameConfig to save
        path: Output path
    """
    path = Path(path)

    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


# Example config template
EXAMPLE_CONFIG = """# Karma Lemonade Stand configuration
# Every key is optional; omitted keys keep the built-in defaults.
version: 1

game:
  min_price: 0.25      # dollars per cup
  max_price: 5.0
  min_ad_spend: 0      # dollars per day
  max_ad_spend: 50

economy:
  base_customers: 20
  price_elasticity: 0.8       # demand *= (1 - elasticity) ** (price - 1)
  ad_effect: 0.1              # demand *= 1 + ad_effect * sqrt(ad_spend) * skill
  reputation_effect: 0.05
  inventory_cost_per_cup: 0.15
  fixed_cost_per_day: 5.0

stat_scaling:
  ck_to_service: 0.001
  pk_to_marketing: 0.001
  age_days_to_rep: 0.01

limits:
  max_posts_per_user_per_day: 10
  min_seconds_between_runs: 30

powerups:
  super_sugar_boost:
    name: Super Sugar Boost
    price: 99          # cents
    currency: USD
    daily_limit: 2
    effects:
      type: SUPER_SUGAR
      demand_bonus: 0.2
      service_bonus: 1

# festivals: omit to use the built-in 40-theme rotation, or list your own:
# festivals:
#   SUMMER_SOLSTICE:
#     name: Summer Solstice
#     category: holiday
#     modifiers:
#       demand_multiplier: 1.3
#       special_effects: [sun_power, longest_day]
"""


def create_example_config(path: str | Path = "config.yaml") -> None:
    """
    Create an example configuration file.

    Args:
        path: Output path for the config file
    """
    path = Path(path)
    with open(path, "w") as f:
        f.write(EXAMPLE_CONFIG)
