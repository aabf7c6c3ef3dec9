# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Exceptions raised by the engine and its collaborators."""

from typing import Optional


class GameRunValidationError(ValueError):
    """
    A submitted run was rejected before simulation.

    Attributes:
        field: Name of the offending input ("price", "ad_spend", "powerup_sku",
            "user_id" or "profile")
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConcurrentRunError(RuntimeError):
    """A profile changed between read and save, so two runs would share a seed."""

    def __init__(self, user_id: str, expected_runs: int, actual_runs: int):
        super().__init__(
            f"Profile for {user_id} changed during run: "
            f"expected total_runs={expected_runs}, found {actual_runs}"
        )
        self.user_id = user_id
        self.expected_runs = expected_runs
        self.actual_runs = actual_runs


class RateLimitError(RuntimeError):
    """A user ran too often. `retry_after` is in seconds."""

    def __init__(self, user_id: str, reason: str, retry_after: int):
        super().__init__(f"Run limit for {user_id}: {reason}")
        self.user_id = user_id
        self.reason = reason
        self.retry_after = retry_after
