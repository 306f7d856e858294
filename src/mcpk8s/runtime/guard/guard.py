"""Guard — the authorization layer every mutating tool call passes through.

Combines the static :class:`MutationPolicy` gates (re-evaluated against
fresh settings on each call) with a stateful :class:`RateLimiter`.
"""

from __future__ import annotations

import logging
from typing import Callable

from mcpk8s.config import ServerSettings
from mcpk8s.runtime.errors import GuardViolationError
from mcpk8s.runtime.guard.models import MutationTarget
from mcpk8s.runtime.guard.policy import MutationPolicy
from mcpk8s.runtime.guard.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

SettingsProvider = Callable[[], ServerSettings]

DEFAULT_BURST = 10
DEFAULT_RATE = 5


class Guard:
    """Enforces read-only mode, allow-lists, and per-tool rate limits.

    Usage::

        guard = Guard()
        guard.rate_limit("resources_apply")
        guard.enforce_mutating("resources_apply", namespace="prod", kind="Deployment")
    """

    def __init__(
        self,
        settings: SettingsProvider = ServerSettings.from_env,
        *,
        limiter: RateLimiter | None = None,
    ) -> None:
        self._settings = settings
        self._limiter = limiter or RateLimiter()

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    def is_read_only(self) -> bool:
        return self._settings().read_only

    def enforce_mutating(self, tool_name: str, namespace: str = "", kind: str = "") -> None:
        """Raise :class:`GuardViolationError` for the first failing static gate."""
        target = MutationTarget(tool_name=tool_name, namespace=namespace, kind=kind)
        violation = MutationPolicy(self._settings()).evaluate(target)
        if violation is None:
            return
        logger.warning("Guard rejected %s: %s", tool_name, violation.code.value)
        raise GuardViolationError(violation.code.value, violation.message, violation.suggestion)

    def rate_limit(
        self, tool_name: str, burst: int = DEFAULT_BURST, rate: float = DEFAULT_RATE
    ) -> None:
        """Take a token for *tool_name*; raises :class:`RateLimitExceededError`."""
        self._limiter.acquire(tool_name, burst, rate)
