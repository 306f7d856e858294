"""MCP models — JSON-RPC 2.0 messages and tool payloads.

Implements the message format used by the Model Context Protocol for the
handshake (``initialize``), tool discovery (``tools/list``) and execution
(``tools/call``).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request (or notification, when ``id`` is absent).

    ``id`` is opaque. Whether it was present on the wire is read from
    ``model_fields_set`` so that an explicit ``null`` id survives.
    """

    jsonrpc: str
    method: str
    id: Any = None
    params: Any = None

    @property
    def has_id(self) -> bool:
        return "id" in self.model_fields_set

    @property
    def is_notification(self) -> bool:
        return not self.has_id


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message carrying exactly one of result/error."""

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        has_result = "result" in self.model_fields_set
        has_error = "error" in self.model_fields_set and self.error is not None
        if has_result == has_error:
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request: JsonRpcRequest | None, result: Any) -> JsonRpcResponse:
        if request is not None and request.has_id:
            return cls(jsonrpc=JSONRPC_VERSION, id=request.id, result=result)
        return cls(jsonrpc=JSONRPC_VERSION, result=result)

    @classmethod
    def failure(
        cls,
        code: int,
        message: str,
        *,
        request_id: Any = None,
        has_id: bool = False,
    ) -> JsonRpcResponse:
        error = JsonRpcError(code=code, message=message)
        if has_id:
            return cls(jsonrpc=JSONRPC_VERSION, id=request_id, error=error)
        return cls(jsonrpc=JSONRPC_VERSION, error=error)

    def to_wire(self) -> dict[str, Any]:
        """Dump only the fields that were set, so an absent id stays absent."""
        return self.model_dump(mode="json", exclude_unset=True)


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ClientInfo(BaseModel):
    name: str = ""
    version: str = ""


class InitializeParams(BaseModel):
    """Parameters of ``initialize``; everything is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    protocol_version: str | None = Field(default=None, alias="protocolVersion")
    client_info: ClientInfo | None = Field(default=None, alias="clientInfo")
    capabilities: dict[str, Any] = Field(default_factory=dict)


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(default=MCP_PROTOCOL_VERSION, alias="protocolVersion")
    server_info: ServerInfo = Field(..., alias="serverInfo")
    capabilities: dict[str, Any] = Field(default_factory=lambda: {"tools": {}})


class ToolInfo(BaseModel):
    """A tool definition as returned by ``tools/list`` (never the handler)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")


class ToolsListResult(BaseModel):
    tools: list[ToolInfo]


class ToolsCallParams(BaseModel):
    name: str
    arguments: dict[str, Any] | None = None


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class JsonContent(BaseModel):
    type: Literal["json"] = "json"
    data: Any = None


ContentBlock = TextContent | JsonContent


class ToolCallResult(BaseModel):
    """Domain-level outcome of ``tools/call``.

    ``is_error`` marks a tool failure; the envelope is still delivered as a
    successful JSON-RPC result.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: list[ContentBlock] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> ToolCallResult:
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @classmethod
    def error(cls, message: str) -> ToolCallResult:
        return cls.from_text(message, is_error=True)

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "\n".join(b.text for b in self.content if isinstance(b, TextContent))
