# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Deterministic daily and weekly environment cycles."""

from .clock import Clock, FixedClock, SystemClock
from .daily import DailyCycleManager
from .provider import CurrentCycles, CycleProvider
from .weekly import WeeklyCycleManager, iso_week

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "DailyCycleManager",
    "WeeklyCycleManager",
    "CycleProvider",
    "CurrentCycles",
    "iso_week",
]
