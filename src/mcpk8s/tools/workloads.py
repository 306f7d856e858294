"""Pod tools: list, inspect, logs, exec."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import Field

from mcpk8s.backend.models import ListSelector, LogOptions
from mcpk8s.tools._base import ToolArgs, ToolSpec, bind, metadata, register_placeholders

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 1000
MAX_EVENTS = 10


class ListPodsArgs(ToolArgs):
    namespace: str | None = None
    label_selector: str | None = None
    field_selector: str | None = None
    limit: int | None = Field(default=None, gt=0)


class GetPodArgs(ToolArgs):
    namespace: str
    name: str


class LogsArgs(ToolArgs):
    namespace: str
    name: str
    container: str | None = None
    tail_lines: int = Field(default=200, gt=0, le=5000)
    since_seconds: int | None = Field(default=None, gt=0)
    timestamps: bool = False


class ExecArgs(ToolArgs):
    namespace: str
    name: str
    container: str | None = None
    command: list[str] = Field(..., min_length=1)
    timeout_seconds: int | None = Field(default=None, gt=0, le=3600)


PODS_LIST = ToolSpec("pods_list", "List pods with optional selectors", ListPodsArgs)
PODS_GET = ToolSpec("pods_get", "Get a pod summary including containers and events", GetPodArgs)
PODS_LOGS = ToolSpec("pods_logs", "Get pod logs (tail by default)", LogsArgs)
PODS_EXEC = ToolSpec("pods_exec", "Execute a command in a pod", ExecArgs, burst=5, rate=2)

SPECS = (PODS_LIST, PODS_GET, PODS_LOGS, PODS_EXEC)


def summarize_pod(pod: dict[str, Any]) -> dict[str, Any]:
    meta = metadata(pod)
    status = pod.get("status") or {}
    spec = pod.get("spec") or {}
    restarts = sum(cs.get("restartCount", 0) for cs in status.get("containerStatuses") or [])
    return {
        "name": meta.get("name", ""),
        "namespace": meta.get("namespace", ""),
        "phase": status.get("phase", "Unknown"),
        "node": spec.get("nodeName", ""),
        "restarts": restarts,
        "age": meta.get("creationTimestamp"),
    }


def _containers(spec: dict[str, Any], key: str) -> list[dict[str, Any]]:
    return [{"name": c.get("name"), "image": c.get("image")} for c in spec.get(key) or []]


def register_workload_tools(
    registry: ToolRegistry, backend: ResourceBackend | None, guard: Guard
) -> None:
    if backend is None:
        register_placeholders(registry, SPECS)
        return

    async def list_pods(args: ListPodsArgs) -> dict[str, Any]:
        namespace = args.namespace or backend.default_namespace
        selector = ListSelector(
            label_selector=args.label_selector, field_selector=args.field_selector
        )
        pods = await backend.list_objects(None, "v1", "Pod", namespace, selector, args.limit)
        rows = [summarize_pod(p) for p in pods]
        if args.limit is not None:
            rows = rows[: args.limit]
        return {"pods": rows}

    async def get_pod(args: GetPodArgs) -> dict[str, Any]:
        pod = await backend.get_object(None, "v1", "Pod", args.namespace, args.name)
        meta = metadata(pod)
        status = pod.get("status") or {}
        spec = pod.get("spec") or {}
        return {
            "metadata": {
                "name": meta.get("name"),
                "namespace": meta.get("namespace"),
                "uid": meta.get("uid"),
                "creationTimestamp": meta.get("creationTimestamp"),
                "labels": meta.get("labels"),
            },
            "status": {
                "phase": status.get("phase"),
                "podIP": status.get("podIP"),
                "hostIP": status.get("hostIP"),
                "conditions": (status.get("conditions") or [])[-5:],
            },
            "containers": _containers(spec, "containers"),
            "initContainers": _containers(spec, "initContainers"),
            "events": await _pod_events(backend, args.namespace, args.name),
        }

    async def pod_logs(args: LogsArgs) -> str:
        options = LogOptions(
            tail_lines=args.tail_lines,
            since_seconds=args.since_seconds,
            timestamps=args.timestamps,
        )
        text = await backend.get_logs(args.namespace, args.name, args.container, options)
        lines = text.rstrip("\n").split("\n") if text else []
        return "\n".join(lines[-MAX_LOG_LINES:])

    async def pod_exec(args: ExecArgs) -> dict[str, Any]:
        guard.enforce_mutating(PODS_EXEC.name, args.namespace, "Pod")
        run = backend.exec(args.namespace, args.name, args.container, args.command)
        if not args.timeout_seconds:
            return {"exitCode": await run}
        try:
            code = await asyncio.wait_for(run, timeout=args.timeout_seconds)
        except TimeoutError:
            msg = f"exec in {args.namespace}/{args.name} timed out after {args.timeout_seconds}s"
            raise TimeoutError(msg) from None
        return {"exitCode": code}

    registry.register(bind(PODS_LIST, list_pods, guard))
    registry.register(bind(PODS_GET, get_pod, guard))
    registry.register(bind(PODS_LOGS, pod_logs, guard))
    registry.register(bind(PODS_EXEC, pod_exec, guard))


async def _pod_events(backend: ResourceBackend, namespace: str, name: str) -> list[dict[str, Any]]:
    # best-effort
    selector = ListSelector(field_selector=f"involvedObject.name={name}")
    try:
        events = await backend.list_objects(None, "v1", "Event", namespace, selector)
    except Exception as exc:
        logger.debug("Could not list events for %s/%s: %s", namespace, name, exc)
        return []
    return [
        {
            "type": e.get("type"),
            "reason": e.get("reason"),
            "message": e.get("message"),
            "age": e.get("eventTime") or e.get("lastTimestamp") or e.get("firstTimestamp"),
        }
        for e in events[-MAX_EVENTS:]
    ]
