"""MCPServer — the read-dispatch-write loop behind the stdio server.

Implements the three built-in methods (``initialize``, ``tools/list``,
``tools/call``) on top of a :class:`ToolRegistry` and a framed transport.
Messages are processed strictly one at a time.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from mcpk8s import SERVER_NAME, __version__
from mcpk8s.config import ServerSettings
from mcpk8s.protocol.models import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    InitializeParams,
    InitializeResult,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
    ToolsCallParams,
    ToolsListResult,
)
from mcpk8s.protocol.registry import Tool, ToolRegistry
from mcpk8s.protocol.transport import detect_transport
from mcpk8s.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_FRAMING,
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    get_tracer,
    request_id_attribute,
)

if TYPE_CHECKING:
    from mcpk8s.protocol.transport import ByteReader, ByteWriter, MessageTransport

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

InitializedCallback = Callable[["MCPServer"], Awaitable[None]]
SettingsProvider = Callable[[], ServerSettings]


class ServerState(str, Enum):
    AWAITING_INITIALIZE = "awaiting_initialize"
    READY = "ready"


class _EchoParams(BaseModel):
    text: str = ""


class MCPServer:
    """Minimal MCP-compatible JSON-RPC server.

    Usage::

        server = MCPServer()
        server.registry.register(Tool(...))
        server.on_initialized(upgrade_tools)
        await server.run(reader, writer)

    Dispatch is permissive: ``tools/list`` and ``tools/call`` are served
    before ``initialize`` has been seen.
    """

    def __init__(
        self,
        *,
        registry: ToolRegistry | None = None,
        settings: SettingsProvider = ServerSettings.from_env,
        name: str = SERVER_NAME,
        version: str = __version__,
    ) -> None:
        self._registry = registry or ToolRegistry()
        self._settings = settings
        self._server_info = ServerInfo(name=name, version=version)
        self._state = ServerState.AWAITING_INITIALIZE
        self._on_initialized: InitializedCallback | None = None
        self._init_fired = False
        self._init_task: asyncio.Task[None] | None = None
        self._install_builtins()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def init_task(self) -> asyncio.Task[None] | None:
        """The background task running the post-initialize callback, once started."""
        return self._init_task

    def on_initialized(self, callback: InitializedCallback) -> None:
        """Register the coroutine to run once after the first ``initialize`` reply."""
        self._on_initialized = callback

    # -- loop ---------------------------------------------------------------

    async def run(self, reader: ByteReader, writer: ByteWriter) -> None:
        """Serve until end of stream.

        Transport write failures propagate; end of stream returns normally.
        """
        transport = await detect_transport(reader, writer)
        framing = getattr(transport, "framing", "unknown")
        logger.info(
            "MCP server started (version %s, framing %s)", self._server_info.version, framing
        )
        await self.serve(transport)
        logger.info("MCP server stopped (input closed)")

    async def serve(self, transport: MessageTransport) -> None:
        while True:
            raw = await transport.read_message()
            if raw is None:
                return
            request, response = await self.handle_message(raw)
            if response is None:
                continue
            with _tracer.start_as_current_span("mcp.response.write") as span:
                span.set_attribute(ATTR_FRAMING, getattr(transport, "framing", "unknown"))
                await transport.write_message(json.dumps(response.to_wire()).encode())
            if request is not None and request.method == "initialize" and response.error is None:
                self._mark_initialized()

    async def handle_message(
        self, raw: bytes
    ) -> tuple[JsonRpcRequest | None, JsonRpcResponse | None]:
        """Decode one message and produce its response (``None`` for notifications)."""
        try:
            payload = json.loads(raw)
        except ValueError:
            return None, JsonRpcResponse.failure(PARSE_ERROR, "parse error")

        if not isinstance(payload, dict):
            return None, JsonRpcResponse.failure(INVALID_REQUEST, "invalid request")

        has_id = "id" in payload
        request_id = payload.get("id")
        if payload.get("jsonrpc") != JSONRPC_VERSION:
            return None, JsonRpcResponse.failure(
                INVALID_REQUEST, "invalid request", request_id=request_id, has_id=has_id
            )
        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError:
            return None, JsonRpcResponse.failure(
                INVALID_REQUEST, "invalid request", request_id=request_id, has_id=has_id
            )

        if request.is_notification and request.method.startswith("notifications/"):
            logger.debug("Notification %s", request.method)
            return request, None

        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            if request.has_id:
                span.set_attribute(ATTR_REQUEST_ID, request_id_attribute(request.id))
            try:
                response = await self._dispatch(request)
            except Exception as exc:
                logger.exception("Unhandled error while dispatching %s", request.method)
                response = self._error(request, SERVER_ERROR, str(exc) or "server error")
            if response.error is not None:
                span.set_attribute(ATTR_ERROR_CODE, response.error.code)
        return request, response

    # -- built-in methods ---------------------------------------------------

    async def _dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse:
        if request.method == "initialize":
            return self._initialize(request)
        if request.method == "tools/list":
            return self._tools_list(request)
        if request.method == "tools/call":
            return await self._tools_call(request)
        return self._error(request, METHOD_NOT_FOUND, "Method not found")

    def _initialize(self, request: JsonRpcRequest) -> JsonRpcResponse:
        if request.params is not None:
            try:
                params = InitializeParams.model_validate(request.params)
            except ValidationError:
                return self._error(request, INVALID_PARAMS, "invalid params")
            if params.client_info is not None:
                logger.info(
                    "Initialize from client %s %s",
                    params.client_info.name,
                    params.client_info.version,
                )
        result = InitializeResult(server_info=self._server_info)
        return JsonRpcResponse.success(request, result.model_dump(mode="json", by_alias=True))

    def _tools_list(self, request: JsonRpcRequest) -> JsonRpcResponse:
        result = ToolsListResult(tools=self._registry.list())
        return JsonRpcResponse.success(
            request, result.model_dump(mode="json", by_alias=True, exclude_unset=True)
        )

    async def _tools_call(self, request: JsonRpcRequest) -> JsonRpcResponse:
        try:
            params = ToolsCallParams.model_validate(request.params)
        except ValidationError:
            return self._error(request, INVALID_PARAMS, "invalid params")

        timeout = self._settings().call_timeout
        result = await self._registry.call(params.name, params.arguments, timeout=timeout)
        return JsonRpcResponse.success(request, result.model_dump(mode="json", by_alias=True))

    @staticmethod
    def _error(request: JsonRpcRequest, code: int, message: str) -> JsonRpcResponse:
        return JsonRpcResponse.failure(
            code, message, request_id=request.id, has_id=request.has_id
        )

    # -- deferred initialization --------------------------------------------

    def _mark_initialized(self) -> None:
        self._state = ServerState.READY
        if self._init_fired:
            return
        self._init_fired = True
        callback = self._on_initialized
        if callback is None:
            return
        self._init_task = asyncio.create_task(self._run_initialized(callback))

    async def _run_initialized(self, callback: InitializedCallback) -> None:
        try:
            await callback(self)
        except Exception:
            logger.exception("Post-initialize callback failed")
        else:
            logger.info("Post-initialize callback completed")

    def _install_builtins(self) -> None:
        async def echo(arguments: dict[str, Any]) -> str:
            return _EchoParams.model_validate(arguments).text

        self._registry.register(
            Tool(
                name="echo",
                description="Echo back the provided text",
                handler=echo,
                input_schema=_EchoParams.model_json_schema(),
            )
        )
