# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Rounding and clamping helpers shared by the calculators."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return math.floor(value + 0.5)


def round_cents(value: float) -> float:
    """Round a dollar amount to cents (ties toward +infinity)."""
    return math.floor(value * 100 + 0.5) / 100


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def finite_or(value: float, default: float = 0.0) -> float:
    """Replace NaN and infinities with a default."""
    if value is None or not math.isfinite(value):
        return default
    return value


def floor_cents(value: float) -> float:
    """Round a dollar amount down to cents, ignoring float noise below 1e-9 cents."""
    return math.floor(value * 100 + 1e-9) / 100


def cap_to_revenue(profit: float, cups_sold: int, price: float) -> float:
    """Keep profit at or below the revenue of the cups sold."""
    return min(profit, floor_cents(max(0, cups_sold) * price))
