# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Anti-cheat recomputation of submitted runs and per-user run pacing."""

from .rate_limiter import RateLimitResult, RateLimitStatus, RunRateLimiter
from .validator import CheckResult, GameValidator, ValidationReport, log_validation_result

__all__ = [
    "CheckResult",
    "GameValidator",
    "RateLimitResult",
    "RateLimitStatus",
    "RunRateLimiter",
    "ValidationReport",
    "log_validation_result",
]
