"""MCP protocol — JSON-RPC stdio server, tool registry, and framing."""

from mcpk8s.protocol.errors import FramingError, ProtocolError, ToolNotFoundError
from mcpk8s.protocol.models import (
    JsonContent,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    TextContent,
    ToolCallResult,
    ToolInfo,
)
from mcpk8s.protocol.registry import Tool, ToolRegistry
from mcpk8s.protocol.server import MCPServer, ServerState
from mcpk8s.protocol.transport import (
    HeaderFramedTransport,
    MessageTransport,
    NewlineTransport,
    detect_transport,
    open_stdio,
)

__all__ = [
    "FramingError",
    "HeaderFramedTransport",
    "JsonContent",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPServer",
    "MessageTransport",
    "NewlineTransport",
    "ProtocolError",
    "ServerState",
    "TextContent",
    "Tool",
    "ToolCallResult",
    "ToolInfo",
    "ToolNotFoundError",
    "ToolRegistry",
    "detect_transport",
    "open_stdio",
]
