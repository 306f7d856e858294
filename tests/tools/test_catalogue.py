"""Tests for tool registration, placeholders, and argument schemas."""

from __future__ import annotations

from mcpk8s.protocol.registry import ToolRegistry
from mcpk8s.runtime.guard import Guard
from mcpk8s.tools import ALL_SPECS, register_kubernetes_tools

EXPECTED = [
    "cluster_health",
    "cluster_list_contexts",
    "cluster_set_context",
    "ns_list_namespaces",
    "pods_list",
    "pods_get",
    "pods_logs",
    "pods_exec",
    "resources_get",
    "resources_apply",
    "resources_delete",
    "secrets_get",
    "secrets_set",
]


class TestCatalogue:
    def test_spec_names(self) -> None:
        assert [s.name for s in ALL_SPECS] == EXPECTED

    def test_placeholders_and_live_tools_share_metadata(self, backend) -> None:
        guard = Guard()
        placeholders, live = ToolRegistry(), ToolRegistry()
        register_kubernetes_tools(placeholders, None, guard)
        register_kubernetes_tools(live, backend, guard)
        assert placeholders.list() == live.list()

    def test_schemas_use_wire_names(self, registry) -> None:
        schemas = {t.name: t.input_schema for t in registry.list()}
        assert "manifestYAML" in schemas["resources_apply"]["properties"]
        assert "labelSelector" in schemas["pods_list"]["properties"]
        assert schemas["pods_exec"]["required"] == ["namespace", "name", "command"]
        assert schemas["cluster_health"]["properties"] == {}


class TestPlaceholders:
    async def test_placeholder_reports_not_ready(self) -> None:
        registry = ToolRegistry()
        register_kubernetes_tools(registry, None, Guard())
        for name in EXPECTED:
            result = await registry.call(name, {})
            assert result.is_error
            assert result.text == "Kubernetes client not initialized yet"

    async def test_upgrade_replaces_in_place(self, backend) -> None:
        registry = ToolRegistry()
        guard = Guard()
        register_kubernetes_tools(registry, None, guard)
        before = registry.names()
        register_kubernetes_tools(registry, backend, guard)
        assert registry.names() == before
        result = await registry.call("cluster_health", {})
        assert not result.is_error
