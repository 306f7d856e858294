"""Server configuration — read from the environment on every access."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

ENV_READONLY = "MCP_K8S_READONLY"
ENV_NAMESPACE_ALLOWLIST = "MCP_K8S_NAMESPACE_ALLOWLIST"
ENV_KIND_ALLOWLIST = "MCP_K8S_KIND_ALLOWLIST"
ENV_TIMEOUT_MS = "MCP_K8S_TIMEOUT_MS"
ENV_DEFAULT_NAMESPACE = "K8S_NAMESPACE"
ENV_KUBECONFIG = "KUBECONFIG"


class ServerSettings(BaseModel):
    """Policy and runtime knobs consumed by the guard and the dispatcher.

    Build a fresh instance per decision with :meth:`from_env` so that
    environment changes take effect without a restart.
    """

    read_only: bool = False
    namespace_allowlist: list[str] = Field(default_factory=list)
    kind_allowlist: list[str] = Field(default_factory=list)
    call_timeout_ms: int = Field(default=0, ge=0, description="0 disables the per-call timeout.")
    default_namespace: str = "default"
    kubeconfig_paths: list[str] = Field(default_factory=list)

    @property
    def call_timeout(self) -> float | None:
        """Per-call timeout in seconds, or ``None`` when disabled."""
        if self.call_timeout_ms <= 0:
            return None
        return self.call_timeout_ms / 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        env = os.environ if environ is None else environ
        return cls(
            read_only=env.get(ENV_READONLY, "") == "true",
            namespace_allowlist=parse_csv(env.get(ENV_NAMESPACE_ALLOWLIST, "")),
            kind_allowlist=parse_csv(env.get(ENV_KIND_ALLOWLIST, "")),
            call_timeout_ms=_parse_int(env.get(ENV_TIMEOUT_MS, "")),
            default_namespace=env.get(ENV_DEFAULT_NAMESPACE) or "default",
            kubeconfig_paths=[p for p in env.get(ENV_KUBECONFIG, "").split(os.pathsep) if p],
        )


def parse_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_int(value: str) -> int:
    try:
        return max(int(value), 0)
    except ValueError:
        return 0
