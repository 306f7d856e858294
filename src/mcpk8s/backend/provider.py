"""ResourceBackend protocol — what tool handlers need from a cluster.

Any object satisfying this protocol can back the Kubernetes tools; the
concrete :class:`~mcpk8s.backend.kubernetes.KubernetesBackend` talks to a
real API server, tests use fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mcpk8s.backend.models import DeleteOptions, KubeContext, ListSelector, LogOptions


@runtime_checkable
class ResourceBackend(Protocol):
    """Performs cluster operations on behalf of tool handlers.

    Objects are plain dicts in the API server's JSON shape (camelCase keys).
    Failures raise :class:`~mcpk8s.backend.errors.BackendError` subclasses
    or the client library's own exceptions.
    """

    @property
    def default_namespace(self) -> str: ...

    async def server_version(self) -> str: ...

    async def list_namespaces(self) -> list[dict[str, Any]]: ...

    async def is_namespaced(self, group: str | None, version: str, kind: str) -> bool:
        """Whether objects of this kind live in a namespace."""
        ...

    async def get_object(
        self, group: str | None, version: str, kind: str, namespace: str, name: str
    ) -> dict[str, Any]:
        """Return one object; raise ``ResourceNotFoundError`` if absent."""
        ...

    async def list_objects(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        selector: ListSelector,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def apply_object(
        self, manifest: dict[str, Any], field_manager: str, dry_run: bool
    ) -> dict[str, Any]:
        """Server-side apply *manifest* and return the resulting object."""
        ...

    async def delete_object(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        name: str,
        options: DeleteOptions,
    ) -> None: ...

    async def get_logs(
        self, namespace: str, pod: str, container: str | None, options: LogOptions
    ) -> str: ...

    async def exec(
        self, namespace: str, pod: str, container: str | None, command: list[str]
    ) -> int:
        """Run *command* in the pod and return its exit code."""
        ...

    async def switch_context(self, name: str) -> None: ...

    async def list_contexts(self) -> tuple[str, list[KubeContext]]:
        """Return ``(current_context, contexts)``."""
        ...

    async def close(self) -> None: ...
