"""Data models for the authorization guard."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ViolationCode(str, Enum):
    """Fixed diagnostic codes returned by the guard."""

    READ_ONLY_BLOCKED = "READ_ONLY_BLOCKED"
    NS_NOT_ALLOWED = "NS_NOT_ALLOWED"
    KIND_NOT_ALLOWED = "KIND_NOT_ALLOWED"
    RATE_LIMIT = "RATE_LIMIT"


class MutationTarget(BaseModel):
    """What a mutating tool is about to touch."""

    tool_name: str
    namespace: str = Field(default="", description="Empty for cluster-scoped objects.")
    kind: str = Field(default="", description="Empty when the kind is not applicable.")


class Violation(BaseModel):
    """The first failing gate for a :class:`MutationTarget`."""

    code: ViolationCode
    message: str
    suggestion: str = ""
