"""KubernetesBackend — a :class:`ResourceBackend` over kubernetes-asyncio.

Configuration is loaded from ``KUBECONFIG`` (path list), then in-cluster
service account credentials, then ``~/.kube/config``.

API clients live in an immutable :class:`_ClientSnapshot`.  Every operation
reads the current snapshot once and uses it to completion, and
``switch_context`` builds a complete new snapshot before swapping the
reference, so an in-flight call never sees a half-switched client.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.rest import ApiException
from kubernetes_asyncio.dynamic import DynamicClient
from kubernetes_asyncio.stream import WsApiClient

from mcpk8s.backend.errors import BackendError, ContextSwitchError, ResourceNotFoundError
from mcpk8s.backend.models import KubeContext, api_version

if TYPE_CHECKING:
    from mcpk8s.backend.models import DeleteOptions, ListSelector, LogOptions
    from mcpk8s.config import ServerSettings

logger = logging.getLogger(__name__)

DEFAULT_KUBECONFIG = os.path.join("~", ".kube", "config")
APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


@dataclass(frozen=True)
class _ClientSnapshot:
    configuration: k8s_client.Configuration
    api_client: k8s_client.ApiClient
    dynamic: DynamicClient
    context: str | None = None


class KubernetesBackend:
    """Cluster access for the Kubernetes tools.

    Usage::

        backend = await KubernetesBackend.create(ServerSettings.from_env())
        namespaces = await backend.list_namespaces()
        await backend.close()
    """

    def __init__(
        self,
        snapshot: _ClientSnapshot,
        *,
        default_namespace: str = "default",
        kubeconfig_paths: list[str] | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._default_namespace = default_namespace
        self._kubeconfig_paths = list(kubeconfig_paths or [])
        self._retired: list[_ClientSnapshot] = []
        self._switch_lock = asyncio.Lock()

    @classmethod
    async def create(cls, settings: ServerSettings) -> KubernetesBackend:
        """Load cluster configuration and build the API clients."""
        paths = list(settings.kubeconfig_paths)
        if paths:
            snapshot = await _load_kubeconfig(paths)
            logger.info("Kubernetes client initialized from KUBECONFIG (%d path(s))", len(paths))
        elif _is_in_cluster():
            configuration = k8s_client.Configuration()
            k8s_config.load_incluster_config(client_configuration=configuration)
            snapshot = await _build_snapshot(configuration)
            logger.info("Kubernetes client initialized (in-cluster)")
        else:
            default = os.path.expanduser(DEFAULT_KUBECONFIG)
            if not os.path.exists(default):
                msg = "no kubeconfig found and not running in-cluster"
                raise BackendError(msg)
            paths = [default]
            snapshot = await _load_kubeconfig(paths)
            logger.info("Kubernetes client initialized from %s", default)
        return cls(
            snapshot,
            default_namespace=settings.default_namespace,
            kubeconfig_paths=paths,
        )

    @property
    def default_namespace(self) -> str:
        return self._default_namespace

    # -- reads ---------------------------------------------------------------

    async def server_version(self) -> str:
        snap = self._snapshot
        info = await k8s_client.VersionApi(snap.api_client).get_code()
        return str(info.git_version)

    async def list_namespaces(self) -> list[dict[str, Any]]:
        snap = self._snapshot
        resp = await k8s_client.CoreV1Api(snap.api_client).list_namespace()
        return list(snap.api_client.sanitize_for_serialization(resp).get("items", []))

    async def is_namespaced(self, group: str | None, version: str, kind: str) -> bool:
        resource = await self._resolve(self._snapshot, group, version, kind)
        return bool(resource.namespaced)

    async def get_object(
        self, group: str | None, version: str, kind: str, namespace: str, name: str
    ) -> dict[str, Any]:
        snap = self._snapshot
        resource = await self._resolve(snap, group, version, kind)
        ns = namespace if resource.namespaced else None
        try:
            obj = await snap.dynamic.get(resource, name=name, namespace=ns)
        except ApiException as exc:
            raise _translate(exc, kind, name, namespace) from exc
        return dict(obj.to_dict())

    async def list_objects(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        selector: ListSelector,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        snap = self._snapshot
        resource = await self._resolve(snap, group, version, kind)
        kwargs: dict[str, Any] = {}
        if resource.namespaced and namespace:
            kwargs["namespace"] = namespace
        if selector.label_selector:
            kwargs["label_selector"] = selector.label_selector
        if selector.field_selector:
            kwargs["field_selector"] = selector.field_selector
        if limit:
            kwargs["limit"] = limit
        result = await snap.dynamic.get(resource, **kwargs)
        return list(result.to_dict().get("items", []))

    async def get_logs(
        self, namespace: str, pod: str, container: str | None, options: LogOptions
    ) -> str:
        snap = self._snapshot
        kwargs: dict[str, Any] = {"timestamps": options.timestamps}
        if container:
            kwargs["container"] = container
        if options.tail_lines is not None:
            kwargs["tail_lines"] = options.tail_lines
        if options.since_seconds is not None:
            kwargs["since_seconds"] = options.since_seconds
        core = k8s_client.CoreV1Api(snap.api_client)
        try:
            return str(await core.read_namespaced_pod_log(name=pod, namespace=namespace, **kwargs))
        except ApiException as exc:
            raise _translate(exc, "Pod", pod, namespace) from exc

    # -- writes --------------------------------------------------------------

    async def apply_object(
        self, manifest: dict[str, Any], field_manager: str, dry_run: bool
    ) -> dict[str, Any]:
        snap = self._snapshot
        group, _, version = manifest.get("apiVersion", "").rpartition("/")
        kind = manifest.get("kind", "")
        metadata = manifest.get("metadata") or {}
        resource = await self._resolve(snap, group or None, version, kind)
        kwargs: dict[str, Any] = {
            "body": manifest,
            "name": metadata.get("name"),
            "content_type": APPLY_PATCH_CONTENT_TYPE,
            "field_manager": field_manager,
            "force": True,
        }
        if resource.namespaced:
            if not metadata.get("namespace"):
                msg = f"metadata.namespace is required for namespaced kind {kind}"
                raise BackendError(msg)
            kwargs["namespace"] = metadata["namespace"]
        if dry_run:
            kwargs["dry_run"] = "All"
        applied = await snap.dynamic.patch(resource, **kwargs)
        return dict(applied.to_dict())

    async def delete_object(
        self,
        group: str | None,
        version: str,
        kind: str,
        namespace: str,
        name: str,
        options: DeleteOptions,
    ) -> None:
        snap = self._snapshot
        resource = await self._resolve(snap, group, version, kind)
        body: dict[str, Any] = {"apiVersion": "v1", "kind": "DeleteOptions"}
        if options.propagation_policy:
            body["propagationPolicy"] = options.propagation_policy
        if options.grace_period_seconds is not None:
            body["gracePeriodSeconds"] = options.grace_period_seconds
        if options.dry_run:
            body["dryRun"] = ["All"]
        ns = namespace if resource.namespaced else None
        try:
            await snap.dynamic.delete(resource, name=name, namespace=ns, body=body)
        except ApiException as exc:
            raise _translate(exc, kind, name, namespace) from exc

    async def exec(
        self, namespace: str, pod: str, container: str | None, command: list[str]
    ) -> int:
        snap = self._snapshot
        kwargs: dict[str, Any] = {
            "command": command,
            "stderr": True,
            "stdin": False,
            "stdout": True,
            "tty": False,
        }
        if container:
            kwargs["container"] = container
        async with WsApiClient(configuration=snap.configuration) as ws_api:
            core = k8s_client.CoreV1Api(api_client=ws_api)
            try:
                await core.connect_get_namespaced_pod_exec(pod, namespace, **kwargs)
            except ApiException as exc:
                logger.info("exec in %s/%s failed: %s", namespace, pod, exc.reason)
                return 1
        return 0

    # -- contexts ------------------------------------------------------------

    async def list_contexts(self) -> tuple[str, list[KubeContext]]:
        if not self._kubeconfig_paths:
            msg = "contexts unavailable in in-cluster mode"
            raise ContextSwitchError(msg)
        contexts, active = k8s_config.list_kube_config_contexts(
            config_file=os.pathsep.join(self._kubeconfig_paths)
        )
        items = [
            KubeContext(
                name=c["name"],
                cluster=c.get("context", {}).get("cluster", ""),
                user=c.get("context", {}).get("user", ""),
            )
            for c in contexts
        ]
        current = self._snapshot.context or (active or {}).get("name", "")
        return current, items

    async def switch_context(self, name: str) -> None:
        if not self._kubeconfig_paths:
            msg = "context switching not available (in-cluster)"
            raise ContextSwitchError(msg)
        async with self._switch_lock:
            snapshot = await _load_kubeconfig(self._kubeconfig_paths, context=name)
            self._retired.append(self._snapshot)
            self._snapshot = snapshot
        logger.info("Switched kube context to %s", name)

    async def close(self) -> None:
        for snap in [*self._retired, self._snapshot]:
            await snap.api_client.close()
        self._retired.clear()

    # -- helpers -------------------------------------------------------------

    @staticmethod
    async def _resolve(snap: _ClientSnapshot, group: str | None, version: str, kind: str) -> Any:
        return await snap.dynamic.resources.get(api_version=api_version(group, version), kind=kind)


async def _load_kubeconfig(paths: list[str], context: str | None = None) -> _ClientSnapshot:
    configuration = k8s_client.Configuration()
    await k8s_config.load_kube_config(
        config_file=os.pathsep.join(paths),
        context=context,
        client_configuration=configuration,
    )
    return await _build_snapshot(configuration, context)


async def _build_snapshot(
    configuration: k8s_client.Configuration, context: str | None = None
) -> _ClientSnapshot:
    api_client = k8s_client.ApiClient(configuration=configuration)
    dynamic = await DynamicClient(api_client)
    return _ClientSnapshot(
        configuration=configuration, api_client=api_client, dynamic=dynamic, context=context
    )


def _is_in_cluster() -> bool:
    return bool(os.environ.get("KUBERNETES_SERVICE_HOST"))


def _translate(exc: ApiException, kind: str, name: str, namespace: str) -> Exception:
    if exc.status == 404:
        return ResourceNotFoundError(kind, name, namespace)
    return BackendError(f"{kind} {name}: {exc.status} {exc.reason}")
