"""Kubernetes tools exposed over MCP."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcpk8s.tools import cluster, resources, secrets, workloads
from mcpk8s.tools._base import ToolSpec

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard

ALL_SPECS: tuple[ToolSpec, ...] = (
    *cluster.SPECS,
    *workloads.SPECS,
    *resources.SPECS,
    *secrets.SPECS,
)


def register_kubernetes_tools(
    registry: ToolRegistry, backend: ResourceBackend | None, guard: Guard
) -> None:
    """Register every Kubernetes tool; placeholders when *backend* is ``None``."""
    cluster.register_cluster_tools(registry, backend, guard)
    workloads.register_workload_tools(registry, backend, guard)
    resources.register_resource_tools(registry, backend, guard)
    secrets.register_secret_tools(registry, backend, guard)


__all__ = ["ALL_SPECS", "ToolSpec", "register_kubernetes_tools"]
