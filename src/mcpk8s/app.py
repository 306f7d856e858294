"""Server assembly: placeholder tools now, live Kubernetes tools after initialize."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from mcpk8s.config import ServerSettings
from mcpk8s.protocol.server import MCPServer
from mcpk8s.runtime.guard import Guard
from mcpk8s.tools import register_kubernetes_tools

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[ServerSettings], Awaitable["ResourceBackend"]]
SettingsProvider = Callable[[], ServerSettings]


async def _kubernetes_backend(settings: ServerSettings) -> ResourceBackend:
    from mcpk8s.backend.kubernetes import KubernetesBackend

    return await KubernetesBackend.create(settings)


class Application:
    """Owns the server, the guard, and (once connected) the backend.

    Usage::

        app = Application()
        await app.server.run(reader, writer)
        await app.close()
    """

    def __init__(
        self,
        *,
        settings: SettingsProvider = ServerSettings.from_env,
        backend_factory: BackendFactory = _kubernetes_backend,
        guard: Guard | None = None,
    ) -> None:
        self._settings = settings
        self._backend_factory = backend_factory
        self._guard = guard or Guard(settings)
        self._backend: ResourceBackend | None = None
        self.server = MCPServer(settings=settings)
        register_kubernetes_tools(self.server.registry, None, self._guard)
        self.server.on_initialized(self._connect_backend)

    @property
    def guard(self) -> Guard:
        return self._guard

    @property
    def backend(self) -> ResourceBackend | None:
        return self._backend

    async def _connect_backend(self, server: MCPServer) -> None:
        """Build the backend and upgrade the placeholder tools in place."""
        backend = await self._backend_factory(self._settings())
        self._backend = backend
        register_kubernetes_tools(server.registry, backend, self._guard)
        logger.info("Kubernetes tools ready (%d tools registered)", len(server.registry))

    async def close(self) -> None:
        task = self.server.init_task
        if task is not None and not task.done():
            task.cancel()
        if self._backend is not None:
            await self._backend.close()
            self._backend = None
