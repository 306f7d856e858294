"""Cluster-level tools: health, kube contexts, namespaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from mcpk8s.tools._base import (
    NoArgs,
    ToolArgs,
    ToolSpec,
    bind,
    metadata,
    register_placeholders,
    utc_now,
)

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard


class SetContextArgs(ToolArgs):
    context: str = Field(..., min_length=1)


class ListNamespacesArgs(ToolArgs):
    limit: int | None = Field(default=None, gt=0)


CLUSTER_HEALTH = ToolSpec("cluster_health", "Get basic cluster health and version")
CLUSTER_LIST_CONTEXTS = ToolSpec(
    "cluster_list_contexts", "List kubeconfig contexts and current selection"
)
CLUSTER_SET_CONTEXT = ToolSpec(
    "cluster_set_context", "Set current kube context", SetContextArgs, burst=5, rate=2
)
NS_LIST_NAMESPACES = ToolSpec("ns_list_namespaces", "List namespaces", ListNamespacesArgs)

SPECS = (CLUSTER_HEALTH, CLUSTER_LIST_CONTEXTS, CLUSTER_SET_CONTEXT, NS_LIST_NAMESPACES)


def register_cluster_tools(
    registry: ToolRegistry, backend: ResourceBackend | None, guard: Guard
) -> None:
    if backend is None:
        register_placeholders(registry, SPECS)
        return

    async def health(_: NoArgs) -> dict[str, Any]:
        version = await backend.server_version()
        return {"status": "ok", "clusterVersion": version, "timestamp": utc_now()}

    async def list_contexts(_: NoArgs) -> dict[str, Any]:
        current, contexts = await backend.list_contexts()
        return {"current": current, "contexts": [c.model_dump() for c in contexts]}

    async def set_context(args: SetContextArgs) -> dict[str, Any]:
        _, contexts = await backend.list_contexts()
        if args.context not in {c.name for c in contexts}:
            msg = f"Context {args.context} not found"
            raise ValueError(msg)
        await backend.switch_context(args.context)
        return {"current": args.context}

    async def list_namespaces(args: ListNamespacesArgs) -> dict[str, Any]:
        items = await backend.list_namespaces()
        rows = [
            {
                "name": metadata(ns).get("name", ""),
                "status": (ns.get("status") or {}).get("phase", "Unknown"),
                "age": metadata(ns).get("creationTimestamp"),
            }
            for ns in items
        ]
        if args.limit is not None:
            rows = rows[: args.limit]
        return {"namespaces": rows}

    registry.register(bind(CLUSTER_HEALTH, health, guard))
    registry.register(bind(CLUSTER_LIST_CONTEXTS, list_contexts, guard))
    registry.register(bind(CLUSTER_SET_CONTEXT, set_context, guard))
    registry.register(bind(NS_LIST_NAMESPACES, list_namespaces, guard))
