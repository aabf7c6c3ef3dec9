# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Deterministic simulation core.

GameEngine lives in karma_lemonade.engine.game_engine; it is not re-exported
here because it depends on the bonus layers, which depend on these modules.
"""

from .demand import DemandCalculator, DemandInput
from .profit import CostBreakdown, ProfitCalculator, ProfitInput
from .seed import SeedGenerator, SeedStream, hash_string

__all__ = [
    "DemandCalculator",
    "DemandInput",
    "ProfitCalculator",
    "ProfitInput",
    "CostBreakdown",
    "SeedGenerator",
    "SeedStream",
    "hash_string",
]
