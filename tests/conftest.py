"""Shared fixtures: in-memory streams, a fake cluster backend, and settings."""

from __future__ import annotations

import asyncio
import copy
import json
from typing import Any, Callable

import pytest

from mcpk8s.backend.errors import ResourceNotFoundError
from mcpk8s.backend.models import DeleteOptions, KubeContext, ListSelector, LogOptions
from mcpk8s.config import ServerSettings
from mcpk8s.protocol.models import JsonContent, ToolCallResult
from mcpk8s.protocol.registry import ToolRegistry
from mcpk8s.runtime.guard import Guard
from mcpk8s.tools import register_kubernetes_tools


class MemoryWriter:
    """Collects everything written, like a StreamWriter onto a bytearray."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.drains = 0

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        self.drains += 1


class SettingsBox:
    """A mutable settings provider; assign ``value`` to change policy mid-test."""

    def __init__(self, value: ServerSettings | None = None) -> None:
        self.value = value or ServerSettings()

    def __call__(self) -> ServerSettings:
        return self.value


class FakeBackend:
    """In-memory ResourceBackend keyed by (kind, namespace, name)."""

    cluster_scoped = frozenset(
        {"Namespace", "Node", "ClusterRole", "ClusterRoleBinding", "PersistentVolume"}
    )

    def __init__(self, default_namespace: str = "default") -> None:
        self._default_namespace = default_namespace
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.applied: list[tuple[dict[str, Any], str, bool]] = []
        self.deleted: list[tuple[str, str, str, DeleteOptions]] = []
        self.exec_calls: list[tuple[str, str, str | None, list[str]]] = []
        self.log_calls: list[LogOptions] = []
        self.list_calls: list[tuple[str, str, ListSelector, int | None]] = []
        self.logs = ""
        self.exec_code = 0
        self.exec_delay = 0.0
        self.version = "v1.29.2"
        self.namespaces: list[dict[str, Any]] = []
        self.contexts = [
            KubeContext(name="dev", cluster="dev-cluster", user="dev-user"),
            KubeContext(name="prod", cluster="prod-cluster", user="admin"),
        ]
        self.current_context = "dev"
        self.closed = False

    def add(self, obj: dict[str, Any]) -> dict[str, Any]:
        meta = obj.get("metadata") or {}
        self.objects[(obj["kind"], meta.get("namespace", ""), meta["name"])] = obj
        return obj

    @property
    def default_namespace(self) -> str:
        return self._default_namespace

    async def server_version(self) -> str:
        return self.version

    async def list_namespaces(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.namespaces)

    async def is_namespaced(self, group: str | None, version: str, kind: str) -> bool:
        return kind not in self.cluster_scoped

    async def get_object(
        self, group: str | None, version: str, kind: str, namespace: str, name: str
    ) -> dict[str, Any]:
        try:
            return copy.deepcopy(self.objects[(kind, namespace, name)])
        except KeyError:
            raise ResourceNotFoundError(kind, name, namespace) from None

    async def list_objects(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        selector: ListSelector,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self.list_calls.append((kind, namespace, selector, limit))
        items = [
            copy.deepcopy(obj)
            for (k, ns, _), obj in self.objects.items()
            if k == kind and (not namespace or ns == namespace)
        ]
        return items[:limit] if limit else items

    async def apply_object(
        self, manifest: dict[str, Any], field_manager: str, dry_run: bool
    ) -> dict[str, Any]:
        self.applied.append((copy.deepcopy(manifest), field_manager, dry_run))
        if not dry_run:
            self.add(copy.deepcopy(manifest))
        return copy.deepcopy(manifest)

    async def delete_object(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        name: str,
        options: DeleteOptions,
    ) -> None:
        if (kind, namespace, name) not in self.objects:
            raise ResourceNotFoundError(kind, name, namespace)
        self.deleted.append((kind, namespace, name, options))

    async def get_logs(
        self, namespace: str, pod: str, container: str | None, options: LogOptions
    ) -> str:
        self.log_calls.append(options)
        return self.logs

    async def exec(
        self, namespace: str, pod: str, container: str | None, command: list[str]
    ) -> int:
        self.exec_calls.append((namespace, pod, container, command))
        if self.exec_delay:
            await asyncio.sleep(self.exec_delay)
        return self.exec_code

    async def switch_context(self, name: str) -> None:
        self.current_context = name

    async def list_contexts(self) -> tuple[str, list[KubeContext]]:
        return self.current_context, list(self.contexts)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_writer() -> MemoryWriter:
    return MemoryWriter()


@pytest.fixture
def make_reader() -> Callable[[bytes], asyncio.StreamReader]:
    """Build a StreamReader pre-loaded with *data* (call inside a running loop)."""

    def _make(data: bytes) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        reader.feed_data(data)
        reader.feed_eof()
        return reader

    return _make


@pytest.fixture
def settings() -> SettingsBox:
    return SettingsBox()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def guard(settings: SettingsBox) -> Guard:
    return Guard(settings)


@pytest.fixture
def registry(backend: FakeBackend, guard: Guard) -> ToolRegistry:
    registry = ToolRegistry()
    register_kubernetes_tools(registry, backend, guard)
    return registry


def payload(result: ToolCallResult) -> Any:
    """Structured payload of a single-block result (json block or JSON text)."""
    block = result.content[0]
    if isinstance(block, JsonContent):
        return block.data
    return json.loads(block.text)


@pytest.fixture
def result_payload() -> Callable[[ToolCallResult], Any]:
    return payload
