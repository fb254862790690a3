"""Validated configuration models for stages and pipelines."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ByteSize, ConfigDict, Field, ValidationError, field_validator

from bytelimit.enums import OverflowPolicy
from bytelimit.errors import ConfigurationError
from bytelimit.limits import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_QUEUE_SIZE,
    MAX_CHUNK_SIZE,
    MAX_QUEUE_SIZE,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

CHUNK_SIZE_ENV = "BYTELIMIT_CHUNK_SIZE"
QUEUE_SIZE_ENV = "BYTELIMIT_QUEUE_SIZE"


def _first_error(exc: ValidationError) -> tuple[str, str]:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ())) or "value"
    return location, error.get("msg", "invalid value")


class StageOptions(BaseModel):
    """Construction parameters of a :class:`~bytelimit.stage.ByteLimitStage`."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(strict=True, ge=0, description="Maximum cumulative bytes to forward")
    policy: OverflowPolicy = Field(
        default=OverflowPolicy.TERMINATE,
        description="Behaviour when a chunk would exceed the limit",
    )

    @field_validator("limit", mode="before")
    @classmethod
    def validate_limit(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("limit must be an integer byte count, not a boolean")
        return value

    @classmethod
    def build(cls, limit: Any, policy: Any = OverflowPolicy.TERMINATE) -> StageOptions:
        """Validate raw parameters, raising ConfigurationError on failure."""
        try:
            return cls(limit=limit, policy=policy)
        except ValidationError as exc:
            field, reason = _first_error(exc)
            raise ConfigurationError(field, reason) from exc


class PipelineSettings(BaseModel):
    """Read sizes and buffering used when wiring sources to stages."""

    model_config = ConfigDict(frozen=True)

    chunk_size: ByteSize = ByteSize(DEFAULT_CHUNK_SIZE)
    queue_size: int = Field(default=DEFAULT_QUEUE_SIZE, gt=0, le=MAX_QUEUE_SIZE)

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, value: ByteSize) -> ByteSize:
        if not 0 < value <= MAX_CHUNK_SIZE:
            limit = ByteSize(MAX_CHUNK_SIZE).human_readable()
            raise ValueError(f"must be between 1 byte and {limit}")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineSettings:
        """Build settings from ``BYTELIMIT_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        raw_chunk = env.get(CHUNK_SIZE_ENV, "").strip()
        if raw_chunk:
            values["chunk_size"] = raw_chunk
        raw_queue = env.get(QUEUE_SIZE_ENV, "").strip()
        if raw_queue:
            values["queue_size"] = raw_queue
        return cls.build(**values)

    @classmethod
    def build(cls, **values: Any) -> PipelineSettings:
        """Validate raw settings, raising ConfigurationError on failure."""
        try:
            return cls(**values)
        except ValidationError as exc:
            field, reason = _first_error(exc)
            raise ConfigurationError(field, reason) from exc


__all__ = [
    "CHUNK_SIZE_ENV",
    "QUEUE_SIZE_ENV",
    "PipelineSettings",
    "StageOptions",
]
