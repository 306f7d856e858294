"""Tests for environment-driven ServerSettings."""

from __future__ import annotations

import os

from mcpk8s.config import ServerSettings, parse_csv


class TestServerSettings:
    def test_defaults(self) -> None:
        settings = ServerSettings.from_env({})
        assert settings.read_only is False
        assert settings.namespace_allowlist == []
        assert settings.kind_allowlist == []
        assert settings.call_timeout is None
        assert settings.default_namespace == "default"
        assert settings.kubeconfig_paths == []

    def test_read_only_requires_literal_true(self) -> None:
        assert ServerSettings.from_env({"MCP_K8S_READONLY": "true"}).read_only
        assert not ServerSettings.from_env({"MCP_K8S_READONLY": "1"}).read_only
        assert not ServerSettings.from_env({"MCP_K8S_READONLY": "TRUE"}).read_only

    def test_allowlists(self) -> None:
        settings = ServerSettings.from_env(
            {
                "MCP_K8S_NAMESPACE_ALLOWLIST": " dev, staging ,,",
                "MCP_K8S_KIND_ALLOWLIST": "ConfigMap",
            }
        )
        assert settings.namespace_allowlist == ["dev", "staging"]
        assert settings.kind_allowlist == ["ConfigMap"]

    def test_timeout(self) -> None:
        assert ServerSettings.from_env({"MCP_K8S_TIMEOUT_MS": "1500"}).call_timeout == 1.5
        assert ServerSettings.from_env({"MCP_K8S_TIMEOUT_MS": "0"}).call_timeout is None
        assert ServerSettings.from_env({"MCP_K8S_TIMEOUT_MS": "-5"}).call_timeout is None
        assert ServerSettings.from_env({"MCP_K8S_TIMEOUT_MS": "soon"}).call_timeout is None

    def test_namespace_and_kubeconfig(self) -> None:
        settings = ServerSettings.from_env(
            {"K8S_NAMESPACE": "apps", "KUBECONFIG": os.pathsep.join(["/a", "", "/b"])}
        )
        assert settings.default_namespace == "apps"
        assert settings.kubeconfig_paths == ["/a", "/b"]

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("MCP_K8S_READONLY", "true")
        assert ServerSettings.from_env().read_only
        monkeypatch.delenv("MCP_K8S_READONLY")
        assert not ServerSettings.from_env().read_only


def test_parse_csv() -> None:
    assert parse_csv("") == []
    assert parse_csv("a,b , c") == ["a", "b", "c"]
