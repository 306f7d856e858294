"""Resource backends — the cluster operations tool handlers delegate to.

:class:`~mcpk8s.backend.kubernetes.KubernetesBackend` is imported from its
module directly so that importing this package does not load the
Kubernetes client library.
"""

from mcpk8s.backend.errors import (
    BackendError,
    BackendNotReadyError,
    ContextSwitchError,
    ResourceNotFoundError,
)
from mcpk8s.backend.models import DeleteOptions, KubeContext, ListSelector, LogOptions, api_version
from mcpk8s.backend.provider import ResourceBackend

__all__ = [
    "BackendError",
    "BackendNotReadyError",
    "ContextSwitchError",
    "DeleteOptions",
    "KubeContext",
    "ListSelector",
    "LogOptions",
    "ResourceBackend",
    "ResourceNotFoundError",
    "api_version",
]
