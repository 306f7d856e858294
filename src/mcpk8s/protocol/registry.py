"""ToolRegistry — maps tool names to handlers and normalizes their results."""

from __future__ import annotations

import asyncio
import copy
import datetime
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from pydantic import BaseModel

from mcpk8s.protocol.errors import ToolNotFoundError
from mcpk8s.protocol.models import JsonContent, TextContent, ToolCallResult, ToolInfo
from mcpk8s.utils.telemetry import ATTR_TOOL_IS_ERROR, ATTR_TOOL_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]
ResultFormat = Literal["text", "json"]


@dataclass(frozen=True)
class Tool:
    """A registered tool: metadata plus the coroutine that runs it."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] | None = None
    result_format: ResultFormat = "text"

    def info(self) -> ToolInfo:
        if self.input_schema is None:
            return ToolInfo(name=self.name, description=self.description)
        return ToolInfo(
            name=self.name,
            description=self.description,
            input_schema=copy.deepcopy(self.input_schema),
        )


class ToolRegistry:
    """Name-to-tool map with last-write-wins registration.

    Usage::

        registry = ToolRegistry()
        registry.register(Tool(name="echo", description="...", handler=echo))

        tools = registry.list()                            # metadata snapshot
        result = await registry.call("echo", {"text": "hi"})

    Not safe for concurrent mutation while a ``call`` is in flight on another
    thread; on a single event loop a ``register`` swaps the entry atomically.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Insert *tool*, replacing any previous tool of the same name in place."""
        if tool.name in self._tools:
            logger.debug("Replacing tool %s", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def names(self) -> list[str]:
        return list(self._tools)

    def list(self) -> list[ToolInfo]:
        """Return name/description/schema of every tool, in registration order."""
        return [tool.info() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def call(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolCallResult:
        """Run the named tool and wrap its outcome in a :class:`ToolCallResult`.

        Tool failures (unknown name, handler exception, timeout) come back as
        ``is_error=True`` results; only external cancellation propagates.
        """
        with _tracer.start_as_current_span("mcp.tools.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            result = await self._call(name, arguments or {}, timeout)
            span.set_attribute(ATTR_TOOL_IS_ERROR, result.is_error)
            return result

    async def _call(
        self, name: str, arguments: dict[str, Any], timeout: float | None
    ) -> ToolCallResult:
        try:
            tool = self.get(name)
        except ToolNotFoundError as exc:
            return ToolCallResult.error(str(exc))

        deadline = asyncio.timeout(timeout or None)
        try:
            async with deadline:
                value = await tool.handler(arguments)
        except TimeoutError as exc:
            if not deadline.expired():
                # raised by the handler itself
                return ToolCallResult.error(str(exc) or type(exc).__name__)
            logger.warning("Tool %s timed out after %ss", name, timeout)
            return ToolCallResult.error(f"tool {name} timed out after {timeout}s")
        except Exception as exc:
            logger.debug("Tool %s failed: %s", name, exc)
            return ToolCallResult.error(str(exc) or type(exc).__name__)

        return normalize_result(value, tool.result_format)


def normalize_result(value: Any, result_format: ResultFormat = "text") -> ToolCallResult:
    """Turn a handler's return value into a :class:`ToolCallResult`.

    - ``ToolCallResult`` — forwarded untouched.
    - ``str`` — a single text block, as-is.
    - anything else — one block: canonical JSON text, or a ``json`` block
      carrying the structured value when *result_format* is ``"json"``.
    """
    if isinstance(value, ToolCallResult):
        return value
    if isinstance(value, str):
        return ToolCallResult(content=[TextContent(text=value)])
    if result_format == "json":
        data = json.loads(canonical_json(value))
        return ToolCallResult(content=[JsonContent(data=data)])
    return ToolCallResult(content=[TextContent(text=canonical_json(value))])


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)
