# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Paid power-up effects.

A power-up only takes effect when its receipt verifies, belongs to the player,
names a configured SKU and the player is still under that SKU's daily limit.
Anything else is skipped and recorded in GameResult.powerup_effects as an
omission; a bad receipt never fails the run.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from ..config import GameConfig, PowerupConfig
from ..engine.numeric import cap_to_revenue, round_cents, round_half_up
from ..models import GameResult, PaymentReceipt, PowerupType, PowerupUsage

logger = logging.getLogger("karma_lemonade.powerups")


@dataclass(kw_only=True, frozen=True)
class ReceiptVerification:
    valid: bool
    receipt: Optional[PaymentReceipt] = None
    reason: Optional[str] = None


class ReceiptVerifier(Protocol):
    """Confirms a receipt was issued by the payment provider."""

    def verify_receipt(self, receipt_id: str) -> ReceiptVerification:
        ...


@dataclass(kw_only=True)
class PowerupContext:
    user_id: str
    price: float
    day: str  # YYYY-MM-DD the daily limit is counted against
    usage: PowerupUsage = field(default_factory=PowerupUsage)


@dataclass(frozen=True)
class EffectOutcome:
    """An adjusted result plus the descriptions of what changed it."""
    result: GameResult
    effects: Tuple[str, ...] = ()


def describe_powerup(powerup: PowerupConfig) -> str:
    if powerup.effects.type == PowerupType.SUPER_SUGAR:
        bonus = round(powerup.effects.demand_bonus * 100)
        service = powerup.effects.service_bonus
        return f"Super Sugar: +{bonus:g}% demand, +{service:g} service"
    return powerup.name


class PowerupEffectsApplier:
    """Verifies receipts and applies power-up boosts to a computed result."""

    def __init__(self, config: GameConfig, verifier: ReceiptVerifier):
        if config is None:
            raise TypeError("PowerupEffectsApplier requires a GameConfig")
        if verifier is None:
            raise TypeError("PowerupEffectsApplier requires a ReceiptVerifier")
        self.config = config
        self.verifier = verifier

    def apply(
        self,
        result: GameResult,
        receipts: Sequence[PaymentReceipt],
        context: PowerupContext,
    ) -> EffectOutcome:
        applied: List[str] = list(result.powerups_applied)
        skus: List[str] = list(result.powerup_skus)
        effects: List[str] = []
        used_this_run: Dict[str, int] = {}

        for receipt in receipts:
            powerup, reason = self._check_receipt(receipt, context, used_this_run)
            if powerup is None:
                logger.warning(
                    "Skipping power-up receipt %s for user %s: %s",
                    receipt.receipt_id, context.user_id, reason,
                )
                effects.append(f"Omitted {receipt.sku} ({receipt.receipt_id}): {reason}")
                continue

            result = self._apply_effect(result, powerup, context.price)
            used_this_run[powerup.sku] = used_this_run.get(powerup.sku, 0) + 1
            applied.append(powerup.effects.type.value)
            skus.append(powerup.sku)
            effects.append(describe_powerup(powerup))
            logger.debug("Applied %s for user %s", powerup.sku, context.user_id)

        result = replace(
            result,
            powerups_applied=tuple(applied),
            powerup_skus=tuple(skus),
            powerup_effects=result.powerup_effects + tuple(effects),
        )
        return EffectOutcome(result, tuple(effects))

    def _check_receipt(
        self,
        receipt: PaymentReceipt,
        context: PowerupContext,
        used_this_run: Dict[str, int],
    ) -> Tuple[Optional[PowerupConfig], str]:
        verification = self.verifier.verify_receipt(receipt.receipt_id)
        if not verification.valid:
            return None, verification.reason or "receipt verification failed"

        verified = verification.receipt or receipt
        if verified.user_id != context.user_id:
            return None, "receipt belongs to another user"
        if verified.sku != receipt.sku:
            return None, "receipt SKU does not match verified purchase"

        powerup = self.config.powerups.get(verified.sku)
        if powerup is None:
            return None, f"unknown SKU {verified.sku}"

        used = context.usage.uses_on(powerup.sku, context.day) + used_this_run.get(powerup.sku, 0)
        if used >= powerup.daily_limit:
            return None, f"daily limit of {powerup.daily_limit} reached"
        return powerup, ""

    @staticmethod
    def _apply_effect(result: GameResult, powerup: PowerupConfig, price: float) -> GameResult:
        if powerup.effects.type == PowerupType.SUPER_SUGAR:
            boosted = round_half_up(result.cups_sold * (1 + powerup.effects.demand_bonus))
            extra = boosted - result.cups_sold
            margin = result.profit / result.cups_sold if result.cups_sold > 0 else 0.0
            profit = round_cents(result.profit + extra * margin)
            return replace(result, cups_sold=boosted, profit=cap_to_revenue(profit, boosted, price))
        return result

