"""Shared plumbing for Kubernetes tools: argument models, specs, and binding."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mcpk8s.backend.errors import BackendNotReadyError
from mcpk8s.protocol.registry import ResultFormat, Tool
from mcpk8s.runtime.guard.guard import DEFAULT_BURST, DEFAULT_RATE

if TYPE_CHECKING:
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard

FIELD_MANAGER = "mcp-k8s-server"


class ToolArgs(BaseModel):
    """Base for tool argument models; accepts camelCase (wire) or snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoArgs(ToolArgs):
    pass


@dataclass(frozen=True)
class ToolSpec:
    """Static description of a tool, shared by its placeholder and live forms."""

    name: str
    description: str
    args_model: type[ToolArgs] = NoArgs
    result_format: ResultFormat = "text"
    burst: int = DEFAULT_BURST
    rate: float = DEFAULT_RATE

    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)


def bind(spec: ToolSpec, handler: Callable[[Any], Awaitable[Any]], guard: Guard) -> Tool:
    """Wrap *handler* with rate limiting and argument validation."""

    async def run(arguments: dict[str, Any]) -> Any:
        guard.rate_limit(spec.name, spec.burst, spec.rate)
        args = spec.args_model.model_validate(arguments)
        return await handler(args)

    return Tool(
        name=spec.name,
        description=spec.description,
        handler=run,
        input_schema=spec.input_schema(),
        result_format=spec.result_format,
    )


def placeholder(spec: ToolSpec) -> Tool:
    """A stand-in that fails with :class:`BackendNotReadyError` until upgraded."""

    async def not_ready(arguments: dict[str, Any]) -> Any:
        raise BackendNotReadyError()

    return Tool(
        name=spec.name,
        description=spec.description,
        handler=not_ready,
        input_schema=spec.input_schema(),
        result_format=spec.result_format,
    )


def register_placeholders(registry: ToolRegistry, specs: tuple[ToolSpec, ...]) -> None:
    for spec in specs:
        registry.register(placeholder(spec))


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}
