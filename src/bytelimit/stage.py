"""Byte-limiting transform stage.

A :class:`ByteLimitStage` sits between a chunk producer and a consumer and
forwards chunks only while the cumulative number of forwarded bytes stays
within its limit. The decision is made per chunk: the chunk that would cross
the limit is withheld in full, never split.

Usage:
    stage = ByteLimitStage(512 * 1024)
    async for chunk in stage.pipe(read_chunks(reader)):
        sink.write(chunk)
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeAlias, assert_never

from bytelimit.config import StageOptions
from bytelimit.enums import OverflowPolicy, StageState
from bytelimit.errors import ChunkTypeError, SizeLimitExceeded, StageReusedError
from bytelimit.instrumentation import StreamStats
from bytelimit.utils import aclose_iterator, close_iterator

if TYPE_CHECKING:
    from collections.abc import (
        AsyncGenerator,
        AsyncIterable,
        AsyncIterator,
        Generator,
        Iterable,
        Iterator,
    )

Chunk: TypeAlias = bytes | bytearray | memoryview


def chunk_length(chunk: object) -> int:
    """Return the number of bytes in a bytes-like chunk."""
    if isinstance(chunk, memoryview):
        return chunk.nbytes
    if isinstance(chunk, bytes | bytearray):
        return len(chunk)
    raise ChunkTypeError(chunk)


class ByteLimitStage:
    """Gate a chunked byte stream so at most ``limit`` bytes pass through.

    Args:
        limit: Maximum cumulative bytes to forward. Must be a non-negative int.
        policy: ``TERMINATE`` ends the stream normally at the overflowing chunk,
            ``FAIL`` raises :class:`SizeLimitExceeded` instead.

    Raises:
        ConfigurationError: If ``limit`` or ``policy`` is invalid.

    A stage serves exactly one stream and its terminal state is sticky.
    """

    def __init__(
        self,
        limit: int,
        policy: OverflowPolicy | str = OverflowPolicy.TERMINATE,
    ) -> None:
        options = StageOptions.build(limit, policy)
        self._limit = options.limit
        self._policy = options.policy
        self._forwarded = 0
        self._state = StageState.ACTIVE
        self._attached = False
        self._stats = StreamStats("stage")

    @classmethod
    def from_options(cls, options: StageOptions) -> ByteLimitStage:
        return cls(options.limit, options.policy)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def policy(self) -> OverflowPolicy:
        return self._policy

    @property
    def forwarded(self) -> int:
        """Bytes forwarded downstream so far."""
        return self._forwarded

    @property
    def remaining(self) -> int:
        return self._limit - self._forwarded

    @property
    def state(self) -> StageState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state.is_terminal

    @property
    def stats(self) -> StreamStats:
        """Chunks and bytes forwarded by :meth:`pipe` or :meth:`iter`."""
        return self._stats

    def __repr__(self) -> str:
        return (
            f"ByteLimitStage(limit={self._limit}, policy={self._policy.value}, "
            f"forwarded={self._forwarded}, state={self._state.value})"
        )

    def process(self, chunk: Chunk) -> bool:
        """Account for one chunk and report whether it may be forwarded.

        Returns False once the stage is terminal, and for the chunk that
        terminates it under ``TERMINATE``.

        Raises:
            SizeLimitExceeded: Under ``FAIL``, for the chunk that would
                cross the limit.
            ChunkTypeError: If ``chunk`` is not bytes-like.
        """
        if self._state.is_terminal:
            return False

        incoming = chunk_length(chunk)
        if self._forwarded + incoming <= self._limit:
            self._forwarded += incoming
            return True

        if self._policy is OverflowPolicy.FAIL:
            self._state = StageState.FAILED
            raise SizeLimitExceeded(self._limit, forwarded=self._forwarded, attempted=incoming)
        if self._policy is OverflowPolicy.TERMINATE:
            self._state = StageState.TERMINATED
            return False
        assert_never(self._policy)

    def __call__(self, source: AsyncIterable[Chunk]) -> AsyncIterator[Chunk]:
        return self.pipe(source)

    def pipe(self, source: AsyncIterable[Chunk]) -> AsyncIterator[Chunk]:
        """Return an async iterator over the chunks of ``source`` that fit.

        Raises:
            StageReusedError: If this stage already serves a stream.
        """
        self._attach()
        return _StageStream(self, source)

    def iter(self, source: Iterable[Chunk]) -> Iterator[Chunk]:
        """Synchronous counterpart of :meth:`pipe` for plain iterables."""
        self._attach()
        return _SyncStageStream(self, source)

    def _attach(self) -> None:
        if self._attached:
            raise StageReusedError()
        self._attached = True

    async def _pipe(self, source: AsyncIterable[Chunk]) -> AsyncGenerator[Chunk, None]:
        iterator = aiter(source)
        try:
            async for chunk in iterator:
                before = self._forwarded
                if not self.process(chunk):
                    break
                self._stats.add(self._forwarded - before)
                yield chunk
        except BaseException as exc:
            self._settle(exc)
            raise
        else:
            self._settle(None)
        finally:
            await aclose_iterator(iterator)

    def _iter(self, source: Iterable[Chunk]) -> Generator[Chunk, None, None]:
        iterator = iter(source)
        try:
            for chunk in iterator:
                before = self._forwarded
                if not self.process(chunk):
                    break
                self._stats.add(self._forwarded - before)
                yield chunk
        except BaseException as exc:
            self._settle(exc)
            raise
        else:
            self._settle(None)
        finally:
            close_iterator(iterator)

    def _settle(self, exc: BaseException | None) -> None:
        """Record how the stream ended."""
        if exc is None:
            if self._state is StageState.ACTIVE:
                self._state = StageState.COMPLETED
        elif not self._state.is_terminal:
            if isinstance(exc, GeneratorExit | asyncio.CancelledError):
                self._state = StageState.CANCELLED
            else:
                self._state = StageState.FAILED
        self._stats.finish(self._state)


class _StageStream:
    """Async iterator handed out by :meth:`ByteLimitStage.pipe`.

    Closing it before the first pull still cancels the stage and closes
    the source.
    """

    def __init__(self, stage: ByteLimitStage, source: AsyncIterable[Chunk]) -> None:
        self._stage = stage
        self._source = source
        self._chunks = stage._pipe(source)
        self._started = False

    def __aiter__(self) -> _StageStream:
        return self

    async def __anext__(self) -> Chunk:
        self._started = True
        return await anext(self._chunks)

    async def aclose(self) -> None:
        if not self._started:
            self._started = True
            self._stage._settle(GeneratorExit())
            await aclose_iterator(self._source)
        await self._chunks.aclose()


class _SyncStageStream:
    """Iterator handed out by :meth:`ByteLimitStage.iter`."""

    def __init__(self, stage: ByteLimitStage, source: Iterable[Chunk]) -> None:
        self._stage = stage
        self._source = source
        self._chunks = stage._iter(source)
        self._started = False

    def __iter__(self) -> _SyncStageStream:
        return self

    def __next__(self) -> Chunk:
        self._started = True
        return next(self._chunks)

    def close(self) -> None:
        if not self._started:
            self._started = True
            self._stage._settle(GeneratorExit())
            close_iterator(self._source)
        self._chunks.close()


def limit_bytes(
    source: AsyncIterable[Chunk],
    limit: int,
    *,
    error: bool = False,
) -> AsyncIterator[Chunk]:
    """Limit ``source`` to ``limit`` bytes, raising instead of ending when ``error``."""
    policy = OverflowPolicy.FAIL if error else OverflowPolicy.TERMINATE
    return ByteLimitStage(limit, policy).pipe(source)


__all__ = ["ByteLimitStage", "Chunk", "chunk_length", "limit_bytes"]
