"""MutationPolicy — evaluates a mutating call against the static gates.

Pure logic, no I/O.  Gates run in a fixed order (read-only, namespace
allow-list, kind allow-list) and the first failure wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcpk8s.runtime.guard.models import MutationTarget, Violation, ViolationCode

if TYPE_CHECKING:
    from mcpk8s.config import ServerSettings


class MutationPolicy:
    """Evaluate a :class:`MutationTarget` against a :class:`ServerSettings`."""

    def __init__(self, settings: ServerSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> ServerSettings:
        return self._settings

    def evaluate(self, target: MutationTarget) -> Violation | None:
        """Return the first violated gate, or ``None`` if the call may proceed."""
        if self._settings.read_only:
            return Violation(
                code=ViolationCode.READ_ONLY_BLOCKED,
                message=f"{target.tool_name} is blocked in read-only mode",
                suggestion="Unset MCP_K8S_READONLY or use dryRun only",
            )
        if not self.namespace_allowed(target.namespace):
            return Violation(
                code=ViolationCode.NS_NOT_ALLOWED,
                message=f"Namespace {target.namespace} is not in allowlist",
                suggestion="Add namespace to MCP_K8S_NAMESPACE_ALLOWLIST",
            )
        if not self.kind_allowed(target.kind):
            return Violation(
                code=ViolationCode.KIND_NOT_ALLOWED,
                message=f"Kind {target.kind} is not in allowlist",
                suggestion="Add kind to MCP_K8S_KIND_ALLOWLIST",
            )
        return None

    def namespace_allowed(self, namespace: str) -> bool:
        return _allowed(namespace, self._settings.namespace_allowlist)

    def kind_allowed(self, kind: str) -> bool:
        return _allowed(kind, self._settings.kind_allowlist)


def _allowed(value: str, allowlist: list[str]) -> bool:
    # An empty value (cluster-scoped / not applicable) or an empty list allows all.
    if not value or not allowlist:
        return True
    return value in allowlist
