"""mcpk8s — Model Context Protocol server for Kubernetes over stdio."""

from __future__ import annotations

__version__ = "0.1.0"

SERVER_NAME = "mcp-k8s-server"
