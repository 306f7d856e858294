"""Runtime safety layer — authorization guard and rate limiting."""

from mcpk8s.runtime.errors import GuardError, GuardViolationError, RateLimitExceededError

__all__ = [
    "GuardError",
    "GuardViolationError",
    "RateLimitExceededError",
]
