"""Secret tools. Values are redacted unless explicitly revealed."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING, Any

from pydantic import Field

from mcpk8s.backend.errors import ResourceNotFoundError
from mcpk8s.tools._base import (
    FIELD_MANAGER,
    ToolArgs,
    ToolSpec,
    bind,
    metadata,
    register_placeholders,
)

if TYPE_CHECKING:
    from mcpk8s.backend.provider import ResourceBackend
    from mcpk8s.protocol.registry import ToolRegistry
    from mcpk8s.runtime.guard import Guard

REDACTED = "REDACTED"


class GetSecretArgs(ToolArgs):
    namespace: str
    name: str
    keys: list[str] | None = None
    show_values: bool = False


class SetSecretArgs(ToolArgs):
    namespace: str
    name: str
    data: dict[str, str] = Field(..., min_length=1)
    type: str = "Opaque"
    base64_encoded: bool = False
    create_if_missing: bool = True
    dry_run: bool = True


SECRETS_GET = ToolSpec("secrets_get", "Get a secret (redacted by default)", GetSecretArgs)
SECRETS_SET = ToolSpec(
    "secrets_set",
    "Create/update a secret with provided keys (values never logged)",
    SetSecretArgs,
)

SPECS = (SECRETS_GET, SECRETS_SET)


def encode_values(data: dict[str, str], *, already_encoded: bool) -> dict[str, str]:
    """Return *data* with base64 values, validating them when already encoded."""
    if not already_encoded:
        return {k: base64.b64encode(v.encode()).decode() for k, v in data.items()}
    for key, value in data.items():
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error:
            msg = f"value for key {key} is not valid base64"
            raise ValueError(msg) from None
    return dict(data)


def register_secret_tools(
    registry: ToolRegistry, backend: ResourceBackend | None, guard: Guard
) -> None:
    if backend is None:
        register_placeholders(registry, SPECS)
        return

    async def get_secret(args: GetSecretArgs) -> dict[str, Any]:
        secret = await backend.get_object(None, "v1", "Secret", args.namespace, args.name)
        stored = secret.get("data") or {}
        keys = args.keys or list(stored)
        show = args.show_values and not guard.is_read_only()
        data: dict[str, str] = {}
        for key in keys:
            value = stored.get(key)
            data[key] = value if show and isinstance(value, str) else REDACTED
        return {"type": secret.get("type"), "data": data}

    async def set_secret(args: SetSecretArgs) -> dict[str, Any]:
        guard.enforce_mutating(SECRETS_SET.name, args.namespace, "Secret")
        try:
            await backend.get_object(None, "v1", "Secret", args.namespace, args.name)
            exists = True
        except ResourceNotFoundError:
            exists = False
        if not exists and not args.create_if_missing:
            msg = "Secret does not exist and createIfMissing=false"
            raise ValueError(msg)

        data = encode_values(args.data, already_encoded=args.base64_encoded)
        manifest = {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": args.name, "namespace": args.namespace},
            "type": args.type,
            "data": data,
        }
        applied = await backend.apply_object(manifest, FIELD_MANAGER, args.dry_run)
        outcome = "updated" if exists else "created"
        return {
            outcome: True,
            "name": metadata(applied).get("name", args.name),
            "keys": sorted(data),
        }

    registry.register(bind(SECRETS_GET, get_secret, guard))
    registry.register(bind(SECRETS_SET, set_secret, guard))
