# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Service boundary: one `run_game` call per player request.

GameService is the composition point for the pieces the engine treats as
external collaborators:
- ProfileStore loads and saves profiles (InMemoryProfileStore for tests and
  the CLI)
- ReceiptVerifier confirms power-up purchases (ReceiptLedger keeps issued
  receipts in memory)
- CycleProvider supplies today's cycles from an injected clock
- RunRateLimiter (optional) paces runs per user

Saves are optimistic: a profile whose total_runs moved since it was read is
rejected with ConcurrentRunError, so two concurrent runs never share a seed.
"""

import logging
import threading
import uuid
from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Protocol, Sequence

from .bonuses.powerups import ReceiptVerification, ReceiptVerifier
from .cycles.clock import Clock
from .cycles.provider import CycleProvider
from .engine.game_engine import GameEngine
from .errors import ConcurrentRunError, GameRunValidationError
from .models import GameResult, GameRun, PaymentReceipt, UserProfile
from .progress import ProgressUpdate, apply_game_result
from .security.rate_limiter import RunRateLimiter
from .security.validator import GameValidator, ValidationReport, log_validation_result

logger = logging.getLogger("karma_lemonade.service")

RECEIPT_TTL_SECONDS = 24 * 60 * 60


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    def save_profile(self, profile: UserProfile, expected_total_runs: int) -> None:
        ...


class InMemoryProfileStore:
    """Thread-safe dict-backed ProfileStore."""

    def __init__(self, profiles: Optional[List[UserProfile]] = None):
        self._lock = threading.Lock()
        self._profiles: Dict[str, UserProfile] = {}
        for profile in profiles or []:
            self._profiles[profile.user_id] = deepcopy(profile)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return deepcopy(profile) if profile is not None else None

    def save_profile(self, profile: UserProfile, expected_total_runs: int) -> None:
        """Store a profile if nobody else finished a run since it was read."""
        with self._lock:
            current = self._profiles.get(profile.user_id)
            actual = current.progress.total_runs if current is not None else 0
            if actual != expected_total_runs:
                raise ConcurrentRunError(profile.user_id, expected_total_runs, actual)
            self._profiles[profile.user_id] = deepcopy(profile)


class ReceiptLedger:
    """In-memory ReceiptVerifier: receipts it issued are valid for 24 hours."""

    def __init__(self, clock: Clock, ttl_seconds: int = RECEIPT_TTL_SECONDS):
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self._receipts: Dict[str, PaymentReceipt] = {}

    def issue(self, user_id: str, sku: str, amount: int, currency: str = "USD") -> PaymentReceipt:
        receipt = PaymentReceipt(
            receipt_id=f"rcpt_{uuid.uuid4().hex[:16]}",
            user_id=user_id,
            sku=sku,
            amount=amount,
            currency=currency,
            signature=uuid.uuid4().hex,
            issued_at=self.clock.now().timestamp(),
        )
        self._receipts[receipt.receipt_id] = receipt
        return receipt

    def get(self, receipt_id: str) -> Optional[PaymentReceipt]:
        return self._receipts.get(receipt_id)

    def verify_receipt(self, receipt_id: str) -> ReceiptVerification:
        receipt = self._receipts.get(receipt_id)
        if receipt is None:
            return ReceiptVerification(valid=False, reason="receipt not found")
        if self.clock.now().timestamp() - receipt.issued_at > self.ttl_seconds:
            return ReceiptVerification(valid=False, receipt=receipt, reason="receipt expired")
        return ReceiptVerification(valid=True, receipt=receipt)


class SubmittedReceipts:
    """ReceiptVerifier over receipts that arrived with a submission (offline re-checks)."""

    def __init__(self, receipts: Sequence[PaymentReceipt] = ()):
        self._receipts: Dict[str, PaymentReceipt] = {r.receipt_id: r for r in receipts}

    def verify_receipt(self, receipt_id: str) -> ReceiptVerification:
        receipt = self._receipts.get(receipt_id)
        if receipt is None:
            return ReceiptVerification(valid=False, reason="receipt not found")
        return ReceiptVerification(valid=True, receipt=receipt)


@dataclass(kw_only=True)
class GameRunRequest:
    price: float
    ad_spend: float
    powerup_receipts: List[str] = field(default_factory=list)  # receipt ids


@dataclass(kw_only=True)
class GameRunResponse:
    result: GameResult
    profile: UserProfile
    progress: ProgressUpdate


class GameService:
    def __init__(
        self,
        engine: GameEngine,
        profile_store: ProfileStore,
        receipt_verifier: ReceiptVerifier,
        cycles: CycleProvider,
        validator: Optional[GameValidator] = None,
        rate_limiter: Optional[RunRateLimiter] = None,
    ):
        if engine is None or profile_store is None or receipt_verifier is None or cycles is None:
            raise TypeError("GameService requires an engine, profile store, receipt verifier and cycles")
        self.engine = engine
        self.profile_store = profile_store
        self.receipt_verifier = receipt_verifier
        self.cycles = cycles
        self.validator = validator
        self.rate_limiter = rate_limiter

    def run_game(self, user_id: str, request: GameRunRequest) -> GameRunResponse:
        """
        Run, record and persist one game for a user.

        Raises:
            GameRunValidationError: bad input or unknown user
            ConcurrentRunError: another run for the user finished first
            RateLimitError: the user ran too often
        """
        profile = self.profile_store.get_profile(user_id)
        if profile is None:
            raise GameRunValidationError(f"No profile for user {user_id}", field="profile")
        if self.rate_limiter is not None:
            self.rate_limiter.enforce(user_id)

        receipts, unresolved = self._resolve_receipts(request.powerup_receipts)
        game_run = GameRun(
            user_id=user_id,
            price=request.price,
            ad_spend=request.ad_spend,
            powerup_receipts=receipts,
        )
        current = self.cycles.current()
        result = self.engine.run_game(game_run, profile, current.daily, current.weekly)
        if unresolved:
            result = replace(result, powerup_effects=result.powerup_effects + tuple(unresolved))

        updated, progress = apply_game_result(profile, result, current.daily.date, result.powerup_skus)
        self.profile_store.save_profile(updated, expected_total_runs=profile.progress.total_runs)
        if self.rate_limiter is not None:
            self.rate_limiter.record(user_id)
        logger.info(
            "Run %d for %s: %d cups, profit %.2f",
            updated.progress.total_runs, user_id, result.cups_sold, result.profit,
        )
        return GameRunResponse(result=result, profile=updated, progress=progress)

    def verify_submission(
        self,
        game_run: GameRun,
        profile: UserProfile,
        client_result: GameResult,
    ) -> ValidationReport:
        """Re-run a client-reported result against today's cycles."""
        if self.validator is None:
            raise RuntimeError("GameService was built without a validator")
        current = self.cycles.current()
        report = self.validator.validate_game_run(
            game_run, profile, current.daily, current.weekly, client_result
        )
        log_validation_result(report, game_run.user_id, game_run)
        return report

    def _resolve_receipts(self, receipt_ids: List[str]):
        receipts: List[PaymentReceipt] = []
        unresolved: List[str] = []
        for receipt_id in receipt_ids:
            verification = self.receipt_verifier.verify_receipt(receipt_id)
            if verification.receipt is None:
                logger.warning("Unknown power-up receipt %s", receipt_id)
                unresolved.append(f"Omitted receipt {receipt_id}: {verification.reason or 'not found'}")
                continue
            # Expired receipts still go through so the engine records why they were skipped
            receipts.append(verification.receipt)
        return receipts, unresolved
