"""bytelimit: cap the number of bytes that flow through a chunked stream."""

from bytelimit.config import PipelineSettings, StageOptions
from bytelimit.enums import OverflowPolicy, StageState
from bytelimit.errors import (
    ByteLimitError,
    ChunkTypeError,
    ConfigurationError,
    SizeLimitExceeded,
    StageReusedError,
)
from bytelimit.pipeline import buffered, pipe_through, pump
from bytelimit.sources import iter_chunks, read_chunks, read_file_chunks
from bytelimit.stage import ByteLimitStage, limit_bytes

__version__ = "0.1.0"

__all__ = [
    "ByteLimitError",
    "ByteLimitStage",
    "ChunkTypeError",
    "ConfigurationError",
    "OverflowPolicy",
    "PipelineSettings",
    "SizeLimitExceeded",
    "StageOptions",
    "StageReusedError",
    "StageState",
    "buffered",
    "iter_chunks",
    "limit_bytes",
    "pipe_through",
    "pump",
    "read_chunks",
    "read_file_chunks",
]
