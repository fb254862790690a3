"""Error taxonomy for byte-limited streams.

Every error raised by this package derives from :class:`ByteLimitError`.
Errors raised by an upstream producer are never wrapped: they reach the
consumer exactly as the producer raised them.
"""

from __future__ import annotations


class ByteLimitError(Exception):
    """Base class for bytelimit errors."""


class ConfigurationError(ByteLimitError, ValueError):
    """Invalid construction parameters, reported before any streaming."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class SizeLimitExceeded(ByteLimitError, ValueError):
    """A chunk would push the forwarded total past the configured limit."""

    def __init__(self, limit: int, *, forwarded: int = 0, attempted: int = 0) -> None:
        super().__init__(f"Exceeded byte size limit of '{limit}'")
        self.limit = limit
        self.forwarded = forwarded
        self.attempted = attempted


class ChunkTypeError(ByteLimitError, TypeError):
    """A chunk that is not a bytes-like object."""

    def __init__(self, chunk: object) -> None:
        super().__init__(f"Expected a bytes-like chunk, got {type(chunk).__name__}")
        self.chunk_type = type(chunk)


class StageReusedError(ByteLimitError, RuntimeError):
    """A stage instance asked to serve more than one stream."""

    def __init__(self) -> None:
        super().__init__("ByteLimitStage already serves a stream; create a new stage")


__all__ = [
    "ByteLimitError",
    "ChunkTypeError",
    "ConfigurationError",
    "SizeLimitExceeded",
    "StageReusedError",
]
