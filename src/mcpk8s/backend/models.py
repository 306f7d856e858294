"""Option and result models shared by backends and tool handlers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ListSelector(BaseModel):
    label_selector: str | None = None
    field_selector: str | None = None


class DeleteOptions(BaseModel):
    propagation_policy: Literal["Foreground", "Background", "Orphan"] | None = None
    grace_period_seconds: int | None = Field(default=None, ge=0)
    dry_run: bool = True


class LogOptions(BaseModel):
    tail_lines: int | None = Field(default=None, gt=0)
    since_seconds: int | None = Field(default=None, gt=0)
    timestamps: bool = False


class KubeContext(BaseModel):
    name: str
    cluster: str = ""
    user: str = ""


def api_version(group: str | None, version: str) -> str:
    """``apps`` + ``v1`` -> ``apps/v1``; the core group yields bare ``v1``."""
    return f"{group}/{version}" if group else version
