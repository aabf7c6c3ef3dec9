# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Tests for the service boundary: stores, receipts and full runs."""

from copy import deepcopy

import pytest

from karma_lemonade.bonuses.powerups import PowerupEffectsApplier
from karma_lemonade.cycles.clock import FixedClock
from karma_lemonade.cycles.daily import DailyCycleManager
from karma_lemonade.cycles.provider import CycleProvider
from karma_lemonade.cycles.weekly import WeeklyCycleManager
from karma_lemonade.engine.game_engine import GameEngine
from karma_lemonade.engine.seed import SeedGenerator
from karma_lemonade.config import GameConfig, RunLimitsConfig
from karma_lemonade.errors import ConcurrentRunError, GameRunValidationError, RateLimitError
from karma_lemonade.models import GameResult, GameRun, GameStats, Progress, UserProfile
from karma_lemonade.security.rate_limiter import RunRateLimiter
from karma_lemonade.security.validator import GameValidator
from karma_lemonade.service import (
    GameRunRequest,
    GameService,
    InMemoryProfileStore,
    ReceiptLedger,
)

from .conftest import TEST_DAY


def new_player(user_id: str = "user_1") -> UserProfile:
    return UserProfile(
        user_id=user_id,
        username="lemon_fan",
        game_stats=GameStats(service=5.0, marketing=5.0, reputation=5.0),
    )


class RacingStore(InMemoryProfileStore):
    """Finishes a competing run between every read and the caller's save."""

    def get_profile(self, user_id):
        profile = super().get_profile(user_id)
        if profile is not None:
            bumped = deepcopy(profile)
            bumped.progress.total_runs += 1
            super().save_profile(bumped, expected_total_runs=profile.progress.total_runs)
        return profile


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock.on(TEST_DAY)


@pytest.fixture
def ledger(clock) -> ReceiptLedger:
    return ReceiptLedger(clock)


@pytest.fixture
def store() -> InMemoryProfileStore:
    return InMemoryProfileStore([new_player()])


@pytest.fixture
def service_engine(default_config, ledger) -> GameEngine:
    return GameEngine.from_config(
        default_config, powerup_applier=PowerupEffectsApplier(default_config, ledger)
    )


@pytest.fixture
def cycles(default_config, clock) -> CycleProvider:
    return CycleProvider(DailyCycleManager(), WeeklyCycleManager(default_config), clock)


@pytest.fixture
def service(default_config, service_engine, store, ledger, cycles) -> GameService:
    return GameService(
        service_engine,
        store,
        ledger,
        cycles,
        validator=GameValidator(service_engine, default_config),
    )


class TestProfileStore:
    """Test the in-memory profile store."""

    def test_returns_copies(self, store):
        profile = store.get_profile("user_1")
        profile.progress.total_runs = 99
        assert store.get_profile("user_1").progress.total_runs == 0

    def test_unknown_user(self, store):
        assert store.get_profile("ghost") is None

    def test_stale_save_rejected(self, store):
        profile = new_player()
        profile.progress = Progress(total_runs=1)
        with pytest.raises(ConcurrentRunError) as exc_info:
            store.save_profile(profile, expected_total_runs=5)
        assert exc_info.value.actual_runs == 0
        assert exc_info.value.expected_runs == 5


class TestReceiptLedger:
    """Test receipt issue and verification."""

    def test_issued_receipt_verifies(self, ledger):
        receipt = ledger.issue("user_1", "super_sugar_boost", 99)
        verification = ledger.verify_receipt(receipt.receipt_id)
        assert verification.valid
        assert verification.receipt == receipt
        assert ledger.get(receipt.receipt_id) == receipt

    def test_unknown_receipt(self, ledger):
        verification = ledger.verify_receipt("rcpt_missing")
        assert verification.valid is False
        assert verification.reason == "receipt not found"

    def test_receipt_expiry(self, ledger, clock):
        """Receipts are good for exactly 24 hours."""
        receipt = ledger.issue("user_1", "super_sugar_boost", 99)
        clock.advance(hours=24)
        assert ledger.verify_receipt(receipt.receipt_id).valid
        clock.advance(seconds=1)
        verification = ledger.verify_receipt(receipt.receipt_id)
        assert verification.valid is False
        assert verification.reason == "receipt expired"
        assert verification.receipt == receipt


class TestGameService:
    """Test full runs through the service."""

    def test_run_records_progress(self, service, store):
        response = service.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        saved = store.get_profile("user_1")

        assert response.result.seed == SeedGenerator().generate_seed("user_1", 1)
        assert saved.progress.total_runs == 1
        assert saved.progress.last_play_date == TEST_DAY
        assert saved.progress.best_profit == response.result.profit
        assert response.progress.new_personal_best is True
        assert response.profile == saved

    def test_each_run_gets_new_seed(self, service):
        first = service.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        second = service.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        assert first.result.seed != second.result.seed
        assert second.profile.progress.total_runs == 2

    def test_unknown_user(self, service):
        with pytest.raises(GameRunValidationError) as exc_info:
            service.run_game("ghost", GameRunRequest(price=1.5, ad_spend=10))
        assert exc_info.value.field == "profile"

    def test_invalid_price_not_saved(self, service, store):
        with pytest.raises(GameRunValidationError) as exc_info:
            service.run_game("user_1", GameRunRequest(price=0.1, ad_spend=10))
        assert exc_info.value.field == "price"
        assert store.get_profile("user_1").progress.total_runs == 0

    def test_issued_powerup_applied(self, service, ledger, store):
        receipt = ledger.issue("user_1", "super_sugar_boost", 99)
        response = service.run_game(
            "user_1", GameRunRequest(price=1.5, ad_spend=10, powerup_receipts=[receipt.receipt_id])
        )
        assert response.result.powerups_applied == ("SUPER_SUGAR",)
        assert store.get_profile("user_1").powerups.used_today == {"super_sugar_boost": 1}

    def test_unknown_receipt_omitted(self, service, store):
        response = service.run_game(
            "user_1", GameRunRequest(price=1.5, ad_spend=10, powerup_receipts=["rcpt_forged"])
        )
        assert response.result.powerups_applied == ()
        assert "Omitted receipt rcpt_forged: receipt not found" in response.result.powerup_effects
        assert store.get_profile("user_1").powerups.used_today == {}

    def test_expired_receipt_omitted(self, service, ledger, clock):
        receipt = ledger.issue("user_1", "super_sugar_boost", 99)
        clock.advance(hours=25)
        response = service.run_game(
            "user_1", GameRunRequest(price=1.5, ad_spend=10, powerup_receipts=[receipt.receipt_id])
        )
        assert response.result.powerups_applied == ()
        assert any("receipt expired" in e for e in response.result.powerup_effects)

    def test_unconfigured_sku_rejected(self, service, ledger):
        receipt = ledger.issue("user_1", "mega_boost", 499)
        with pytest.raises(GameRunValidationError) as exc_info:
            service.run_game(
                "user_1", GameRunRequest(price=1.5, ad_spend=10, powerup_receipts=[receipt.receipt_id])
            )
        assert exc_info.value.field == "powerup_sku"

    def test_concurrent_run_rejected(self, service_engine, ledger, cycles):
        racing = GameService(service_engine, RacingStore([new_player()]), ledger, cycles)
        with pytest.raises(ConcurrentRunError):
            racing.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))

    def test_skus_sharing_an_effect_type_counted_separately(self, ledger, cycles):
        """Daily usage is recorded per SKU even when SKUs share an effect."""
        config = GameConfig.from_dict({
            "powerups": {
                "sugar_small": {"daily_limit": 1, "effects": {"type": "SUPER_SUGAR", "demand_bonus": 0.1}},
                "sugar_large": {"daily_limit": 1, "effects": {"type": "SUPER_SUGAR", "demand_bonus": 0.3}},
            }
        })
        engine = GameEngine.from_config(config, powerup_applier=PowerupEffectsApplier(config, ledger))
        store = InMemoryProfileStore([new_player()])
        service = GameService(engine, store, ledger, cycles)
        receipt = ledger.issue("user_1", "sugar_large", 199)
        response = service.run_game(
            "user_1", GameRunRequest(price=1.5, ad_spend=10, powerup_receipts=[receipt.receipt_id])
        )
        assert response.result.powerup_skus == ("sugar_large",)
        assert store.get_profile("user_1").powerups.used_today == {"sugar_large": 1}

    def test_requires_collaborators(self, service_engine, store, ledger):
        with pytest.raises(TypeError):
            GameService(service_engine, store, ledger, None)


class TestVerifySubmission:
    """Test server-side verification of client results."""

    def test_honest_submission(self, service, store):
        before = store.get_profile("user_1")
        response = service.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        report = service.verify_submission(
            GameRun(user_id="user_1", price=1.5, ad_spend=10), before, response.result
        )
        assert report.result_validation.valid
        assert report.server_result == response.result

    def test_tampered_submission(self, service, store):
        before = store.get_profile("user_1")
        response = service.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        forged = response.result.to_dict()
        forged["cups_sold"] += 50
        report = service.verify_submission(
            GameRun(user_id="user_1", price=1.5, ad_spend=10), before, GameResult.from_dict(forged)
        )
        assert report.overall_valid is False
        assert any("Cups sold mismatch" in e for e in report.result_validation.errors)

    def test_requires_validator(self, service_engine, store, ledger, cycles):
        bare = GameService(service_engine, store, ledger, cycles)
        with pytest.raises(RuntimeError):
            bare.verify_submission(GameRun(user_id="user_1", price=1.5, ad_spend=10), new_player(), None)


class TestRunPacing:
    """Test run limits enforced by the service."""

    @pytest.fixture
    def paced(self, service_engine, store, ledger, cycles, clock) -> GameService:
        limiter = RunRateLimiter(RunLimitsConfig(max_posts_per_user_per_day=2, min_seconds_between_runs=30), clock)
        return GameService(service_engine, store, ledger, cycles, rate_limiter=limiter)

    def test_run_too_soon_rejected(self, paced, store):
        """A second run inside the cooldown is refused before simulation."""
        paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        with pytest.raises(RateLimitError) as exc_info:
            paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        assert exc_info.value.retry_after == 30
        assert store.get_profile("user_1").progress.total_runs == 1

    def test_daily_cap(self, paced, clock):
        paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        clock.advance(minutes=1)
        paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
        clock.advance(minutes=1)
        with pytest.raises(RateLimitError, match="daily limit"):
            paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))

    def test_rejected_input_not_counted(self, paced):
        """Runs that fail validation do not use up the allowance."""
        with pytest.raises(GameRunValidationError):
            paced.run_game("user_1", GameRunRequest(price=0.1, ad_spend=10))
        paced.run_game("user_1", GameRunRequest(price=1.5, ad_spend=10))
