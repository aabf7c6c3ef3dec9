# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Post-simulation adjustments: paid power-ups, then the daily login bonus."""

from .effects import BonusContext, BonusEffectsHandler
from .login_bonus import LoginBonus, LoginBonusManager
from .powerups import (
    EffectOutcome,
    PowerupContext,
    PowerupEffectsApplier,
    ReceiptVerification,
    ReceiptVerifier,
)

__all__ = [
    "BonusContext",
    "BonusEffectsHandler",
    "LoginBonus",
    "LoginBonusManager",
    "EffectOutcome",
    "PowerupContext",
    "PowerupEffectsApplier",
    "ReceiptVerification",
    "ReceiptVerifier",
]
