"""Error types raised by resource backends."""

from __future__ import annotations


class BackendError(Exception):
    """Base error for all resource backend failures."""


class BackendNotReadyError(BackendError):
    """The backend has not finished initializing yet."""

    def __init__(self) -> None:
        super().__init__("Kubernetes client not initialized yet")


class ResourceNotFoundError(BackendError):
    """The requested object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str = "") -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f" in namespace {namespace}" if namespace else ""
        super().__init__(f"{kind} {name} not found{where}")


class ContextSwitchError(BackendError):
    """Kube contexts cannot be listed or switched (e.g. running in-cluster)."""
