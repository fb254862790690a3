"""Chunk producers over readers and file objects."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from bytelimit.errors import ConfigurationError
from bytelimit.limits import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


class SupportsAsyncRead(Protocol):
    async def read(self, n: int = -1, /) -> bytes: ...


class SupportsRead(Protocol):
    def read(self, n: int = -1, /) -> bytes: ...


def _check_chunk_size(chunk_size: int) -> None:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ConfigurationError("chunk_size", f"must be a positive integer, got {chunk_size!r}")


def read_chunks(
    reader: SupportsAsyncRead,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """Yield chunks from an async reader such as :class:`asyncio.StreamReader`.

    Stops at the first empty read.
    """
    _check_chunk_size(chunk_size)
    return _read_chunks(reader, chunk_size)


async def _read_chunks(reader: SupportsAsyncRead, chunk_size: int) -> AsyncIterator[bytes]:
    while chunk := await reader.read(chunk_size):
        yield chunk


def read_file_chunks(
    fileobj: SupportsRead,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """Yield chunks from a blocking binary file without blocking the event loop."""
    _check_chunk_size(chunk_size)
    return _read_file_chunks(fileobj, chunk_size)


async def _read_file_chunks(fileobj: SupportsRead, chunk_size: int) -> AsyncIterator[bytes]:
    while chunk := await asyncio.to_thread(fileobj.read, chunk_size):
        yield chunk


def iter_chunks(fileobj: SupportsRead, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield chunks from a blocking binary file."""
    _check_chunk_size(chunk_size)
    return _iter_chunks(fileobj, chunk_size)


def _iter_chunks(fileobj: SupportsRead, chunk_size: int) -> Iterator[bytes]:
    while chunk := fileobj.read(chunk_size):
        yield chunk


__all__ = [
    "SupportsAsyncRead",
    "SupportsRead",
    "iter_chunks",
    "read_chunks",
    "read_file_chunks",
]
