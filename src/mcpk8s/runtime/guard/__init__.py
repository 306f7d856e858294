"""Guard subsystem — static mutation gates plus per-tool rate limiting."""

from mcpk8s.runtime.guard.guard import Guard
from mcpk8s.runtime.guard.models import MutationTarget, Violation, ViolationCode
from mcpk8s.runtime.guard.policy import MutationPolicy
from mcpk8s.runtime.guard.ratelimit import RateLimiter, TokenBucket

__all__ = [
    "Guard",
    "MutationPolicy",
    "MutationTarget",
    "RateLimiter",
    "TokenBucket",
    "Violation",
    "ViolationCode",
]
