# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Tests for community stat conversion."""

import pytest

from karma_lemonade.config import DEFAULT_CONFIG
from karma_lemonade.stats import CommunityStats, StatConverter, stat_tier


@pytest.fixture
def converter() -> StatConverter:
    return StatConverter(DEFAULT_CONFIG)


class TestStatConverter:
    """Test karma and account age scaling."""

    def test_new_account(self, converter):
        stats = converter.convert(CommunityStats())
        assert (stats.service, stats.marketing, stats.reputation) == (0.0, 0.0, 0.0)

    def test_comment_karma_to_service(self, converter):
        """10k comment karma is worth about 0.6 service."""
        stats = converter.convert(CommunityStats(comment_karma=10_000))
        assert stats.service == 0.6
        assert stats.marketing == 0.0

    def test_post_karma_to_marketing(self, converter):
        stats = converter.convert(CommunityStats(post_karma=1_000_000))
        assert stats.marketing == 2.08

    def test_account_age_to_reputation(self, converter):
        assert converter.convert(CommunityStats(account_age_days=100)).reputation == 2.0

    def test_stats_capped(self, converter):
        stats = converter.convert(CommunityStats(account_age_days=3650, comment_karma=10 ** 12))
        assert stats.reputation == 10.0
        assert stats.service <= 10.0

    def test_negative_inputs_floor_at_zero(self, converter):
        stats = converter.convert(CommunityStats(post_karma=-50, comment_karma=-1, account_age_days=-10))
        assert (stats.service, stats.marketing, stats.reputation) == (0.0, 0.0, 0.0)

    def test_requires_config(self):
        with pytest.raises(TypeError):
            StatConverter(None)


class TestStatTier:
    @pytest.mark.parametrize(
        "value,tier",
        [(0, "New"), (0.99, "New"), (1, "Rookie"), (4.5, "Competent"), (9, "Legendary"), (10, "Legendary")],
    )
    def test_tiers(self, value, tier):
        assert stat_tier(value) == tier
