"""Tests for ToolRegistry and result normalization."""

from __future__ import annotations

import asyncio
import datetime
import json
from typing import Any

import pytest
from pydantic import BaseModel

from mcpk8s.protocol.errors import ToolNotFoundError
from mcpk8s.protocol.models import JsonContent, TextContent, ToolCallResult
from mcpk8s.protocol.registry import Tool, ToolRegistry, canonical_json, normalize_result


def make_tool(name: str, value: Any = "ok", **kwargs: Any) -> Tool:
    async def handler(arguments: dict[str, Any]) -> Any:
        return value

    return Tool(name=name, description=f"{name} tool", handler=handler, **kwargs)


class TestRegistration:
    def test_list_in_registration_order(self) -> None:
        registry = ToolRegistry()
        for name in ("b", "a", "c"):
            registry.register(make_tool(name))
        assert registry.names() == ["b", "a", "c"]
        assert [t.name for t in registry.list()] == ["b", "a", "c"]
        assert len(registry) == 3
        assert "a" in registry

    def test_last_write_wins_in_place(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("a"))
        registry.register(make_tool("b"))
        registry.register(Tool(name="a", description="newer", handler=make_tool("x").handler))
        assert registry.names() == ["a", "b"]
        assert registry.get("a").description == "newer"

    def test_get_unknown_raises(self) -> None:
        with pytest.raises(ToolNotFoundError, match="tool nope not found"):
            ToolRegistry().get("nope")

    def test_list_returns_schema_copies(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("a", input_schema={"type": "object", "properties": {}}))
        registry.list()[0].input_schema["properties"]["x"] = {}
        assert registry.list()[0].input_schema == {"type": "object", "properties": {}}


class TestCall:
    async def test_unknown_tool_is_error_result(self) -> None:
        result = await ToolRegistry().call("nope", {})
        assert result.is_error
        assert result.text == "tool nope not found"

    async def test_string_result(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("a", "hello"))
        result = await registry.call("a")
        assert not result.is_error
        assert result.content == [TextContent(text="hello")]

    async def test_structured_result_is_canonical_json(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("a", {"b": 1, "a": [1, 2]}))
        result = await registry.call("a")
        assert result.text == '{"a": [1, 2], "b": 1}'

    async def test_json_format_result(self) -> None:
        registry = ToolRegistry()
        registry.register(make_tool("a", {"items": []}, result_format="json"))
        result = await registry.call("a")
        assert result.content == [JsonContent(data={"items": []})]

    async def test_handler_exception_is_error_result(self) -> None:
        async def broken(arguments: dict[str, Any]) -> Any:
            msg = "kaput"
            raise RuntimeError(msg)

        registry = ToolRegistry()
        registry.register(Tool(name="broken", description="", handler=broken))
        result = await registry.call("broken", {})
        assert result.is_error
        assert result.text == "kaput"

    async def test_arguments_default_to_empty_dict(self) -> None:
        seen: list[dict[str, Any]] = []

        async def record(arguments: dict[str, Any]) -> str:
            seen.append(arguments)
            return "ok"

        registry = ToolRegistry()
        registry.register(Tool(name="rec", description="", handler=record))
        await registry.call("rec", None)
        assert seen == [{}]

    async def test_timeout_is_error_result(self) -> None:
        async def slow(arguments: dict[str, Any]) -> str:
            await asyncio.sleep(5)
            return "late"

        registry = ToolRegistry()
        registry.register(Tool(name="slow", description="", handler=slow))
        result = await registry.call("slow", {}, timeout=0.01)
        assert result.is_error
        assert "timed out" in result.text

    async def test_handler_timeout_is_not_reported_as_call_timeout(self) -> None:
        async def own_deadline(arguments: dict[str, Any]) -> str:
            await asyncio.wait_for(asyncio.sleep(1), 0.01)
            return "unreachable"

        registry = ToolRegistry()
        registry.register(Tool(name="t", description="", handler=own_deadline))
        for timeout in (None, 5):
            result = await registry.call("t", {}, timeout=timeout)
            assert result.is_error
            assert result.text == "TimeoutError"

    async def test_handler_timeout_message_is_kept(self) -> None:
        async def explicit(arguments: dict[str, Any]) -> str:
            msg = "upstream took too long"
            raise TimeoutError(msg)

        registry = ToolRegistry()
        registry.register(Tool(name="t", description="", handler=explicit))
        result = await registry.call("t", {})
        assert result.text == "upstream took too long"


class TestNormalizeResult:
    def test_passthrough(self) -> None:
        original = ToolCallResult.error("x")
        assert normalize_result(original) is original

    def test_pydantic_and_datetime_values(self) -> None:
        class Row(BaseModel):
            name: str

        stamp = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
        text = normalize_result({"row": Row(name="n"), "at": stamp}).text
        assert json.loads(text) == {"row": {"name": "n"}, "at": "2024-01-02T03:04:05+00:00"}

    def test_canonical_json_sorts_keys(self) -> None:
        assert canonical_json({"z": 1, "a": {"y": 2, "b": 3}}) == '{"a": {"b": 3, "y": 2}, "z": 1}'
