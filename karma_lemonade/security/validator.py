# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Server-side anti-cheat validation.

GameValidator re-runs the engine on the submitted inputs and diffs the result
against what the client reported. Nothing here raises on a mismatch: every
finding adds to a risk score, and the caller decides what score to block at.

Risk weights:
- Input: price or ad spend out of range 30, user mismatch 50,
  over-precise input 10 (warning), malformed receipt 25
- Result: profit off by more than $0.01 40, cups 35, seed 30, weather 20,
  event 20, festival 15, impossible values 50, recomputation failure 50
- Each suspicious pattern 10
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import GameConfig
from ..engine.game_engine import GameEngine
from ..errors import GameRunValidationError
from ..models import DailyCycle, GameResult, GameRun, UserProfile, WeeklyCycle

logger = logging.getLogger("karma_lemonade.security")

PROFIT_TOLERANCE = 0.01
MAX_RISK_SCORE = 100
PATTERN_RISK = 10
ROUND_PROFIT_THRESHOLD = 50
IMPROVEMENT_RATIO_LIMIT = 5
MIN_RUNS_FOR_IMPROVEMENT_CHECK = 5


@dataclass(kw_only=True)
class CheckResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    risk_score: int = 0

    def fail(self, message: str, risk: int) -> None:
        self.valid = False
        self.errors.append(message)
        self.risk_score += risk

    def warn(self, message: str, risk: int) -> None:
        self.warnings.append(message)
        self.risk_score += risk

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "risk_score": self.risk_score,
        }


@dataclass(kw_only=True)
class ValidationReport:
    input_validation: CheckResult
    result_validation: CheckResult
    suspicious_patterns: List[str]
    overall_valid: bool
    risk_score: int
    server_result: Optional[GameResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_validation": self.input_validation.to_dict(),
            "result_validation": self.result_validation.to_dict(),
            "suspicious_patterns": list(self.suspicious_patterns),
            "overall_valid": self.overall_valid,
            "risk_score": self.risk_score,
            "server_result": self.server_result.to_dict() if self.server_result else None,
        }


def decimal_places(value: float) -> int:
    """Decimal places in the shortest repr of a number."""
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    text = repr(float(value))
    if "e" in text or "E" in text:
        mantissa, exponent = text.lower().split("e")
        places = len(mantissa.split(".")[1].rstrip("0")) if "." in mantissa else 0
        return max(0, places - int(exponent))
    fraction = text.split(".")[1].rstrip("0")
    return len(fraction)


class GameValidator:
    def __init__(self, engine: GameEngine, config: GameConfig):
        if engine is None:
            raise TypeError("GameValidator requires a GameEngine")
        if config is None:
            raise TypeError("GameValidator requires a GameConfig")
        self.engine = engine
        self.config = config

    def validate_game_run(
        self,
        game_run: GameRun,
        profile: UserProfile,
        daily_cycle: DailyCycle,
        weekly_cycle: WeeklyCycle,
        client_result: GameResult,
    ) -> ValidationReport:
        input_check = self.validate_input(game_run, profile)
        result_check, server_result = self.validate_result(
            game_run, profile, daily_cycle, weekly_cycle, client_result
        )
        patterns = self.detect_suspicious_patterns(game_run, profile, client_result)

        risk = input_check.risk_score + result_check.risk_score + PATTERN_RISK * len(patterns)
        return ValidationReport(
            input_validation=input_check,
            result_validation=result_check,
            suspicious_patterns=patterns,
            overall_valid=input_check.valid and result_check.valid and not patterns,
            risk_score=min(MAX_RISK_SCORE, risk),
            server_result=server_result,
        )

    def validate_input(self, game_run: GameRun, profile: UserProfile) -> CheckResult:
        check = CheckResult()
        limits = self.config.game

        if not _finite_between(game_run.price, limits.min_price, limits.max_price):
            check.fail(
                f"Price {game_run.price} outside ${limits.min_price:g}-${limits.max_price:g}", 30
            )
        if not _finite_between(game_run.ad_spend, limits.min_ad_spend, limits.max_ad_spend):
            check.fail(
                f"Ad spend {game_run.ad_spend} outside ${limits.min_ad_spend:g}-${limits.max_ad_spend:g}",
                30,
            )
        if profile is None or game_run.user_id != profile.user_id:
            check.fail("Run user does not match profile", 50)

        if decimal_places(game_run.price) > 3:
            check.warn("Price has more than 3 decimal places", 10)
        if decimal_places(game_run.ad_spend) > 3:
            check.warn("Ad spend has more than 3 decimal places", 10)

        for receipt in game_run.powerup_receipts:
            if not receipt.receipt_id or not receipt.sku or not receipt.user_id or receipt.amount <= 0:
                check.fail(f"Malformed power-up receipt: {receipt.receipt_id or '<missing id>'}", 25)
        return check

    def validate_result(
        self,
        game_run: GameRun,
        profile: UserProfile,
        daily_cycle: DailyCycle,
        weekly_cycle: WeeklyCycle,
        client_result: GameResult,
    ):
        check = CheckResult()

        finite_profit = _is_finite_number(client_result.profit)
        if not finite_profit:
            check.fail(f"Impossible result: non-finite profit ({client_result.profit})", 50)
        if not isinstance(client_result.cups_sold, int) or isinstance(client_result.cups_sold, bool):
            check.fail(f"Impossible result: cups sold is not a whole number ({client_result.cups_sold!r})", 50)
        elif client_result.cups_sold < 0:
            check.fail(f"Impossible result: negative cups sold ({client_result.cups_sold})", 50)
        cups = client_result.cups_sold if isinstance(client_result.cups_sold, int) else 0
        if finite_profit and _is_finite_number(game_run.price):
            revenue = max(0, cups) * game_run.price
            if client_result.profit > revenue + PROFIT_TOLERANCE:
                check.fail(
                    f"Impossible result: profit {client_result.profit:.2f} exceeds revenue {revenue:.2f}", 50
                )

        try:
            server = self.engine.run_game(game_run, profile, daily_cycle, weekly_cycle)
        except GameRunValidationError as e:
            check.fail(f"Server recomputation failed: {e}", 50)
            return check, None

        if not finite_profit or abs(server.profit - client_result.profit) > PROFIT_TOLERANCE:
            check.fail(
                f"Profit mismatch: client {_dollars(client_result.profit)}, server {server.profit:.2f}", 40
            )
        if server.cups_sold != client_result.cups_sold:
            check.fail(
                f"Cups sold mismatch: client {client_result.cups_sold}, server {server.cups_sold}", 35
            )
        if server.weather != client_result.weather:
            check.fail(
                f"Weather mismatch: client {client_result.weather.value}, server {server.weather.value}", 20
            )
        if server.event != client_result.event:
            check.fail(
                f"Event mismatch: client {client_result.event.value}, server {server.event.value}", 20
            )
        if server.festival != client_result.festival:
            check.fail(
                f"Festival mismatch: client {client_result.festival}, server {server.festival}", 15
            )
        if server.seed != client_result.seed:
            check.fail(f"Seed mismatch: client {client_result.seed}, server {server.seed}", 30)
        return check, server

    def detect_suspicious_patterns(
        self,
        game_run: GameRun,
        profile: Optional[UserProfile],
        client_result: GameResult,
    ) -> List[str]:
        patterns = []

        profit = client_result.profit
        if not _is_finite_number(profit):
            return patterns + _precision_patterns(game_run)
        if profit > ROUND_PROFIT_THRESHOLD and profit == int(profit):
            patterns.append(f"Suspiciously round profit: {profit:.2f}")

        if profile is not None:
            progress = profile.progress
            if (
                progress.total_runs > MIN_RUNS_FOR_IMPROVEMENT_CHECK
                and progress.best_profit > 0
                and profit / progress.best_profit > IMPROVEMENT_RATIO_LIMIT
            ):
                patterns.append(
                    f"Improvement of {profit / progress.best_profit:.1f}x over personal best "
                    f"{progress.best_profit:.2f}"
                )

        return patterns + _precision_patterns(game_run)


def log_validation_result(report: ValidationReport, user_id: str, game_run: GameRun) -> None:
    """Log a validation outcome with its risk details."""
    payload = {
        "user_id": user_id,
        "risk_score": report.risk_score,
        "input_errors": report.input_validation.errors,
        "input_warnings": report.input_validation.warnings,
        "result_errors": report.result_validation.errors,
        "suspicious_patterns": report.suspicious_patterns,
        "input": {
            "price": game_run.price,
            "ad_spend": game_run.ad_spend,
            "powerups": len(game_run.powerup_receipts),
        },
    }
    if report.overall_valid:
        logger.info("Game run validated for %s (risk %d)", user_id, report.risk_score, extra={"validation": payload})
    else:
        logger.warning("Game run failed validation for %s: %s", user_id, payload)


def _finite_between(value: float, low: float, high: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and low <= value <= high


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _dollars(value) -> str:
    return f"{value:.2f}" if _is_finite_number(value) else repr(value)


def _precision_patterns(game_run: GameRun) -> List[str]:
    if decimal_places(game_run.price) > 2 or decimal_places(game_run.ad_spend) > 2:
        return ["Input precision beyond cents (possible automation)"]
    return []
