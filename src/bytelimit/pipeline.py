"""Composition helpers that connect producers, stages and consumers.

Stages are pull-driven: a consumer asks for the next chunk and every stage
in between asks its upstream in turn, so a slow consumer naturally pauses
the producer. :func:`buffered` adds a bounded queue when producer and
consumer should run concurrently.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, cast

from bytelimit.enums import StageState
from bytelimit.errors import ConfigurationError
from bytelimit.instrumentation import StreamStats
from bytelimit.limits import DEFAULT_QUEUE_SIZE, MAX_QUEUE_SIZE
from bytelimit.stage import chunk_length
from bytelimit.utils import aclose_iterator

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable

    from bytelimit.stage import Chunk

log = logging.getLogger(__name__)


class TransformStage(Protocol):
    """Anything that turns one chunk stream into another."""

    def pipe(self, source: AsyncIterable[Chunk]) -> AsyncIterator[Chunk]: ...


def pipe_through(source: AsyncIterable[Chunk], *stages: TransformStage) -> AsyncIterator[Chunk]:
    """Feed ``source`` through ``stages`` left to right."""
    stream: AsyncIterable[Chunk] = source
    for stage in stages:
        stream = stage.pipe(stream)
    return aiter(stream)


@dataclass(frozen=True, slots=True)
class _ProducerFailed:
    error: Exception


_END_OF_STREAM = object()


def buffered(
    source: AsyncIterable[Chunk],
    *,
    maxsize: int = DEFAULT_QUEUE_SIZE,
) -> AsyncIterator[Chunk]:
    """Run ``source`` in a producer task that stays at most ``maxsize`` chunks ahead.

    Errors raised by the producer are re-raised to the consumer unchanged.
    Closing the returned iterator cancels the producer.
    """
    if not 0 < maxsize <= MAX_QUEUE_SIZE:
        raise ConfigurationError(
            "maxsize", f"must be between 1 and {MAX_QUEUE_SIZE}, got {maxsize}"
        )
    return _buffered(source, maxsize)


async def _next_item(queue: asyncio.Queue[object], producer: asyncio.Task[None]) -> object:
    """Return the next queued item, or surface how the producer died without one."""
    if not queue.empty():
        return queue.get_nowait()
    getter = asyncio.ensure_future(queue.get())
    try:
        await asyncio.wait((getter, producer), return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not getter.done():
            getter.cancel()
    if getter.done() and not getter.cancelled():
        return getter.result()
    if not queue.empty():
        return queue.get_nowait()
    # Re-raises the producer's exception or cancellation.
    producer.result()
    return _END_OF_STREAM


async def _buffered(source: AsyncIterable[Chunk], maxsize: int) -> AsyncIterator[Chunk]:
    queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)

    async def produce() -> None:
        iterator = aiter(source)
        try:
            async for chunk in iterator:
                await queue.put(chunk)
        except asyncio.CancelledError:
            log.debug("Buffered producer cancelled")
            raise
        except Exception as exc:
            log.debug("Buffered producer failed: %s", exc)
            await queue.put(_ProducerFailed(exc))
            return
        finally:
            await aclose_iterator(iterator)
        await queue.put(_END_OF_STREAM)

    producer = asyncio.create_task(produce(), name="bytelimit-buffered-producer")
    try:
        while True:
            item = await _next_item(queue, producer)
            if item is _END_OF_STREAM:
                return
            if isinstance(item, _ProducerFailed):
                raise item.error
            yield cast("Chunk", item)
    finally:
        if not producer.done():
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer


async def pump(
    source: AsyncIterable[Chunk],
    write: Callable[[Chunk], Awaitable[object] | object],
) -> int:
    """Deliver every chunk of ``source`` to ``write`` and return the byte count.

    ``write`` may be a coroutine function; its result is awaited before the
    next chunk is pulled.
    """
    stats = StreamStats("pump")
    iterator = aiter(source)
    try:
        async for chunk in iterator:
            result = write(chunk)
            if inspect.isawaitable(result):
                await result
            stats.add(chunk_length(chunk))
    except asyncio.CancelledError:
        stats.finish(StageState.CANCELLED)
        raise
    except BaseException:
        stats.finish(StageState.FAILED)
        raise
    else:
        stats.finish(StageState.COMPLETED)
    finally:
        await aclose_iterator(iterator)
    return stats.nbytes


__all__ = ["TransformStage", "buffered", "pipe_through", "pump"]
