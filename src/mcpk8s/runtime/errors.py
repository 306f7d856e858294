"""Shared error types for the runtime safety layer."""

from __future__ import annotations


class GuardError(Exception):
    """Base error for all authorization guard failures."""


class GuardViolationError(GuardError):
    """A policy gate rejected the call.

    ``code`` is a fixed diagnostic identifier (e.g. ``READ_ONLY_BLOCKED``);
    the string form is ``"<code>: <message>"``.
    """

    def __init__(self, code: str, message: str, suggestion: str = "") -> None:
        self.code = code
        self.message = message
        self.suggestion = suggestion
        super().__init__(f"{code}: {message}")


class RateLimitExceededError(GuardViolationError):
    """The per-tool token bucket is empty."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(
            "RATE_LIMIT",
            f"Rate limit exceeded for {tool_name}",
            suggestion="Slow down or try again shortly",
        )
