"""Generic resource tools: get/list, server-side apply, delete by GVK."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import Field

from mcpk8s.backend.models import DeleteOptions, ListSelector
from mcpk8s.runtime.errors import GuardViolationError
from mcpk8s.tools._base import (
    FIELD_MANAGER,
    ToolArgs,
    ToolSpec,
    bind,
    metadata,
    register_placeholders,
)

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard


class GetResourceArgs(ToolArgs):
    group: str | None = None
    version: str
    kind: str
    name: str | None = None
    namespace: str | None = None
    label_selector: str | None = None
    field_selector: str | None = None
    limit: int | None = Field(default=None, gt=0)


class ApplyResourceArgs(ToolArgs):
    manifest_yaml: str = Field(..., min_length=1, alias="manifestYAML")
    field_manager: str = FIELD_MANAGER
    dry_run: bool = True


class DeleteResourceArgs(ToolArgs):
    group: str | None = None
    version: str
    kind: str
    name: str
    namespace: str | None = None
    propagation_policy: Literal["Foreground", "Background", "Orphan"] | None = None
    grace_period_seconds: int | None = Field(default=None, ge=0)
    dry_run: bool = True


RESOURCES_GET = ToolSpec(
    "resources_get", "Get or list arbitrary resources by GVK", GetResourceArgs, "json"
)
RESOURCES_APPLY = ToolSpec(
    "resources_apply",
    "Apply manifest YAML (server-side apply, dry run by default)",
    ApplyResourceArgs,
    "json",
)
RESOURCES_DELETE = ToolSpec(
    "resources_delete", "Delete a resource by GVK/name", DeleteResourceArgs, "json"
)

SPECS = (RESOURCES_GET, RESOURCES_APPLY, RESOURCES_DELETE)


def summarize_object(obj: dict[str, Any]) -> dict[str, Any]:
    meta = metadata(obj)
    return {
        "apiVersion": obj.get("apiVersion"),
        "kind": obj.get("kind"),
        "name": meta.get("name"),
        "namespace": meta.get("namespace"),
        "uid": meta.get("uid"),
        "creationTimestamp": meta.get("creationTimestamp"),
    }


def split_manifests(manifest_yaml: str) -> list[Any]:
    """Parse a multi-document YAML stream, dropping empty documents."""
    return [doc for doc in yaml.safe_load_all(manifest_yaml) if doc is not None]


def register_resource_tools(
    registry: ToolRegistry, backend: ResourceBackend | None, guard: Guard
) -> None:
    if backend is None:
        register_placeholders(registry, SPECS)
        return

    async def get_resources(args: GetResourceArgs) -> dict[str, Any]:
        namespace = args.namespace or backend.default_namespace
        if args.name:
            item = await backend.get_object(
                args.group, args.version, args.kind, namespace, args.name
            )
            return {"item": item}
        selector = ListSelector(
            label_selector=args.label_selector, field_selector=args.field_selector
        )
        items = await backend.list_objects(
            args.group, args.version, args.kind, namespace, selector, args.limit
        )
        summary = [summarize_object(it) for it in items]
        if args.limit is not None:
            summary = summary[: args.limit]
        return {"items": summary}

    async def apply_resources(args: ApplyResourceArgs) -> dict[str, Any]:
        results: list[dict[str, Any]] = []
        for doc in split_manifests(args.manifest_yaml):
            results.append(await _apply_one(doc, args))
        return {"results": results}

    async def _apply_one(doc: Any, args: ApplyResourceArgs) -> dict[str, Any]:
        if not isinstance(doc, dict):
            return {"error": "manifest document is not a mapping"}
        meta = metadata(doc)
        namespace = meta.get("namespace") or ""
        kind = doc.get("kind") or ""
        try:
            guard.enforce_mutating(RESOURCES_APPLY.name, namespace, kind)
            applied = await backend.apply_object(doc, args.field_manager, args.dry_run)
        except GuardViolationError as exc:
            return {"error": str(exc), "code": exc.code}
        except Exception as exc:
            return {"error": str(exc) or type(exc).__name__}
        applied_meta = metadata(applied)
        return {
            "kind": applied.get("kind", kind),
            "name": applied_meta.get("name", meta.get("name")),
            "namespace": applied_meta.get("namespace", namespace),
        }

    async def delete_resource(args: DeleteResourceArgs) -> dict[str, Any]:
        namespace = args.namespace or ""
        if not namespace and await backend.is_namespaced(args.group, args.version, args.kind):
            namespace = backend.default_namespace
        guard.enforce_mutating(RESOURCES_DELETE.name, namespace, args.kind)
        options = DeleteOptions(
            propagation_policy=args.propagation_policy,
            grace_period_seconds=args.grace_period_seconds,
            dry_run=args.dry_run,
        )
        await backend.delete_object(
            args.group,
            args.version,
            args.kind,
            namespace,
            args.name,
            options,
        )
        return {"status": "Success", "dryRun": args.dry_run}

    registry.register(bind(RESOURCES_GET, get_resources, guard))
    registry.register(bind(RESOURCES_APPLY, apply_resources, guard))
    registry.register(bind(RESOURCES_DELETE, delete_resource, guard))
