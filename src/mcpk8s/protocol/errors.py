"""Shared error types for the protocol layer."""


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class FramingError(ProtocolError):
    """A frame on the wire could not be decoded (e.g. bad ``Content-Length``)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Malformed frame" + (f": {detail}" if detail else ""))


class ToolNotFoundError(ProtocolError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"tool {name} not found")
