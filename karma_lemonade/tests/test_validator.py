# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Tests for server-side result validation."""

import logging
from dataclasses import replace

import pytest

from karma_lemonade.models import GameResult, GameRun, MarketEvent, Progress, UserProfile, Weather
from karma_lemonade.security.validator import GameValidator, decimal_places, log_validation_result

from .conftest import make_receipt


@pytest.fixture
def validator(engine, default_config) -> GameValidator:
    return GameValidator(engine, default_config)


@pytest.fixture
def game_run() -> GameRun:
    return GameRun(user_id="user_1", price=1.25, ad_spend=10.0)


@pytest.fixture
def honest(engine, game_run, profile, sunny_day, festival_week):
    """The result the server itself computes."""
    return engine.run_game(game_run, profile, sunny_day, festival_week)


class TestResultValidation:
    """Test recomputation and field comparison."""

    def test_honest_result_passes(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """A faithful client result matches the server."""
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, honest)
        assert report.input_validation.valid
        assert report.result_validation.valid
        assert report.result_validation.errors == []
        assert report.server_result == honest
        assert report.overall_valid == (not report.suspicious_patterns)

    def test_profit_tampering(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """A profit off by more than a cent is reported, not raised."""
        tampered = replace(honest, profit=honest.profit + 0.5)
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, tampered)
        assert report.result_validation.valid is False
        assert any("Profit mismatch" in e for e in report.result_validation.errors)
        assert report.risk_score >= 40
        assert report.overall_valid is False

    def test_profit_within_tolerance(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Sub-cent floating differences are accepted."""
        nudged = replace(honest, profit=honest.profit + 0.004)
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, nudged)
        assert report.result_validation.valid

    @pytest.mark.parametrize(
        "field,value,message",
        [
            ("weather", Weather.HOT, "Weather mismatch"),
            ("event", MarketEvent.VIRAL, "Event mismatch"),
            ("festival", "MUSIC_FESTIVAL", "Festival mismatch"),
            ("seed", "0", "Seed mismatch"),
        ],
    )
    def test_exact_fields(self, validator, game_run, profile, sunny_day, festival_week, honest,
                          field, value, message):
        """Categorical fields and the seed must match exactly."""
        report = validator.validate_game_run(
            game_run, profile, sunny_day, festival_week, replace(honest, **{field: value})
        )
        assert report.result_validation.valid is False
        assert any(message in e for e in report.result_validation.errors)

    def test_cups_mismatch(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Cups sold must match exactly."""
        report = validator.validate_game_run(
            game_run, profile, sunny_day, festival_week, replace(honest, cups_sold=honest.cups_sold + 1)
        )
        assert any("Cups sold mismatch" in e for e in report.result_validation.errors)

    def test_impossible_profit(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Profit above revenue is impossible."""
        impossible = replace(honest, cups_sold=10, profit=1000.0)
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, impossible)
        assert any("exceeds revenue" in e for e in report.result_validation.errors)

    def test_negative_cups(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Negative cups are impossible."""
        report = validator.validate_game_run(
            game_run, profile, sunny_day, festival_week, replace(honest, cups_sold=-1)
        )
        assert any("negative cups" in e for e in report.result_validation.errors)

    def test_engine_rejection_is_structured(self, validator, profile, sunny_day, festival_week, honest):
        """Invalid input is reported rather than raised."""
        bad_run = GameRun(user_id="user_1", price=99.0, ad_spend=10.0)
        report = validator.validate_game_run(bad_run, profile, sunny_day, festival_week, honest)
        assert report.input_validation.valid is False
        assert report.result_validation.valid is False
        assert any("recomputation failed" in e for e in report.result_validation.errors)
        assert report.server_result is None
        assert report.risk_score <= 100


class TestNonFiniteResults:
    """Test client results carrying NaN, infinities or non-integer cups."""

    @pytest.mark.parametrize("profit", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_profit_rejected(self, validator, game_run, profile, sunny_day, festival_week, honest,
                                        profit):
        """A non-finite profit fails result validation and the overall verdict."""
        forged = GameResult.from_dict({**honest.to_dict(), "profit": profit})
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, forged)
        assert report.result_validation.valid is False
        assert any("non-finite profit" in e for e in report.result_validation.errors)
        assert any("Profit mismatch" in e for e in report.result_validation.errors)
        assert report.overall_valid is False
        assert report.risk_score >= 90

    def test_nan_profit_from_string(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """A "nan" string in a client payload is parsed and still rejected."""
        forged = GameResult.from_dict({**honest.to_dict(), "profit": "nan"})
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, forged)
        assert report.overall_valid is False

    def test_fractional_cups_rejected(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Cups sold must be a whole number."""
        report = validator.validate_game_run(
            game_run, profile, sunny_day, festival_week, replace(honest, cups_sold=honest.cups_sold + 0.5)
        )
        assert report.result_validation.valid is False
        assert any("whole number" in e for e in report.result_validation.errors)

    def test_unparseable_cups_raise(self, honest):
        """Non-numeric cups never reach the validator."""
        with pytest.raises(ValueError):
            GameResult.from_dict({**honest.to_dict(), "cups_sold": "lots"})

    @pytest.mark.parametrize("profit", [float("nan"), float("inf")])
    def test_non_finite_profit_skips_profit_patterns(self, validator, game_run, honest, profit):
        """Pattern checks do not choke on a non-finite profit."""
        veteran = UserProfile(user_id="user_1", progress=Progress(total_runs=10, best_profit=10.0))
        patterns = validator.detect_suspicious_patterns(game_run, veteran, replace(honest, profit=profit))
        assert patterns == []


class TestInputValidation:
    """Test input checks."""

    def test_user_mismatch(self, validator, profile):
        """Runs for another user are flagged."""
        check = validator.validate_input(GameRun(user_id="other", price=1.0, ad_spend=0.0), profile)
        assert check.valid is False
        assert check.risk_score == 50

    def test_excess_precision_warns(self, validator, profile):
        """More than three decimals is a warning, not an error."""
        check = validator.validate_input(GameRun(user_id="user_1", price=1.2345, ad_spend=0.0), profile)
        assert check.valid is True
        assert check.warnings
        assert check.risk_score == 10

    def test_malformed_receipt(self, validator, profile):
        """Receipts missing an id are flagged."""
        receipt = replace(make_receipt(), receipt_id="")
        check = validator.validate_input(
            GameRun(user_id="user_1", price=1.0, ad_spend=0.0, powerup_receipts=[receipt]), profile
        )
        assert check.valid is False
        assert check.risk_score == 25


class TestSuspiciousPatterns:
    """Test heuristics that raise the risk score."""

    def test_round_profit(self, validator, game_run, profile, honest):
        """Whole-dollar profits above $50 look fabricated."""
        patterns = validator.detect_suspicious_patterns(game_run, profile, replace(honest, profit=200.0))
        assert any("round profit" in p for p in patterns)

    def test_small_round_profit_ignored(self, validator, game_run, profile, honest):
        """Whole-dollar profits at or below $50 are normal."""
        patterns = validator.detect_suspicious_patterns(game_run, profile, replace(honest, profit=12.0))
        assert not any("round profit" in p for p in patterns)

    def test_improvement_ratio(self, validator, game_run, honest):
        """A jump over 5x the personal best with enough history is flagged."""
        veteran = UserProfile(user_id="user_1", progress=Progress(total_runs=10, best_profit=10.0))
        patterns = validator.detect_suspicious_patterns(game_run, veteran, replace(honest, profit=60.5))
        assert any("Improvement" in p for p in patterns)

    def test_improvement_needs_history(self, validator, game_run, honest):
        """New players are not judged on improvement."""
        rookie = UserProfile(user_id="user_1", progress=Progress(total_runs=3, best_profit=10.0))
        patterns = validator.detect_suspicious_patterns(game_run, rookie, replace(honest, profit=60.5))
        assert not any("Improvement" in p for p in patterns)

    def test_bot_like_precision(self, validator, profile, honest):
        """Sub-cent prices suggest automation."""
        run = GameRun(user_id="user_1", price=1.234, ad_spend=10.0)
        patterns = validator.detect_suspicious_patterns(run, profile, replace(honest, profit=12.34))
        assert any("automation" in p for p in patterns)

    def test_patterns_raise_risk(self, validator, game_run, profile, sunny_day, festival_week, honest):
        """Each pattern adds to the risk score."""
        veteran = replace(profile, progress=Progress(total_runs=10, best_profit=1.0))
        inflated = replace(honest, profit=300.0)
        report = validator.validate_game_run(game_run, veteran, sunny_day, festival_week, inflated)
        assert len(report.suspicious_patterns) >= 2
        assert report.risk_score == min(
            100,
            report.input_validation.risk_score
            + report.result_validation.risk_score
            + 10 * len(report.suspicious_patterns),
        )


class TestHelpers:
    """Test helper functions."""

    @pytest.mark.parametrize("value,places", [(1.0, 0), (1.25, 2), (1.234, 3), (0.1234, 4), (1e-05, 5), (10, 0)])
    def test_decimal_places(self, value, places):
        """Decimal places are counted from the shortest repr."""
        assert decimal_places(value) == places

    def test_log_valid_result(self, validator, game_run, profile, sunny_day, festival_week, honest, caplog):
        """Valid runs log at INFO, invalid ones at WARNING."""
        report = validator.validate_game_run(game_run, profile, sunny_day, festival_week, honest)
        report.suspicious_patterns.clear()
        report.overall_valid = True
        with caplog.at_level(logging.INFO, logger="karma_lemonade.security"):
            log_validation_result(report, "user_1", game_run)
        assert caplog.records[-1].levelno == logging.INFO

        report.overall_valid = False
        with caplog.at_level(logging.INFO, logger="karma_lemonade.security"):
            log_validation_result(report, "user_1", game_run)
        assert caplog.records[-1].levelno == logging.WARNING
