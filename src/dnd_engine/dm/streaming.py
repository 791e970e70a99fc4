"""Chunk channel and cancellation helpers for streamed narration.

A provider task writes fragments into a bounded ChunkChannel and the
caller reads them back in the same order. The channel carries three
terminal signals: closed (normal end), failed (an error to re-raise on
the reading side) and cancelled (reading ends quietly).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar


T = TypeVar("T")

_CLOSED = object()
_CANCELLED = object()


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error


class ChunkChannel:
    """Bounded FIFO of text chunks between one writer and one reader.

    ``send`` waits when the buffer is full, which applies backpressure to
    the provider. Iterating the channel yields chunks until it is closed
    or cancelled, or re-raises the writer's failure.
    """

    def __init__(self, maxsize: int = 32) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._finished = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._finished

    async def send(self, chunk: str) -> bool:
        """Queue a chunk for the reader.

        Args:
            chunk: Text fragment.

        Returns:
            False if the channel was cancelled or finished and the chunk
            was dropped; the writer should stop.
        """
        if self._cancelled or self._finished:
            return False
        await self._queue.put(chunk)
        return not self._cancelled

    async def close(self) -> None:
        """Signal a normal end of stream."""
        if self._cancelled or self._finished:
            return
        self._finished = True
        await self._queue.put(_CLOSED)

    async def fail(self, error: BaseException) -> None:
        """End the stream with an error the reader will re-raise."""
        if self._cancelled or self._finished:
            return
        self._finished = True
        await self._queue.put(_Failure(error))

    def cancel(self) -> None:
        """Stop the stream now, discarding undelivered chunks."""
        if self._cancelled:
            return
        self._cancelled = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CANCELLED)

    def __aiter__(self) -> ChunkChannel:
        return self

    async def __anext__(self) -> str:
        if self._cancelled and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or item is _CANCELLED:
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            raise item.error
        return item  # type: ignore[return-value]


async def run_cancellable(awaitable: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
    """Await something, abandoning it as soon as ``cancel_event`` fires.

    Args:
        awaitable: The operation to run.
        cancel_event: Cancellation signal, or None to just await.

    Returns:
        The operation's result.

    Raises:
        asyncio.CancelledError: If the event fired first.
    """
    if cancel_event is None:
        return await awaitable
    if cancel_event.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise asyncio.CancelledError()

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not work.done():
            work.cancel()
        if not waiter.done():
            waiter.cancel()
        await asyncio.gather(work, waiter, return_exceptions=True)

    if work.cancelled():
        raise asyncio.CancelledError()
    return work.result()


def cancellable_sleep(cancel_event: asyncio.Event | None) -> Callable[[float], Awaitable[None]]:
    """Build a sleep function that wakes early when cancelled.

    Args:
        cancel_event: Cancellation signal, or None for a plain sleep.

    Returns:
        An async ``sleep(seconds)`` callable.
    """

    async def sleep(seconds: float) -> None:
        await run_cancellable(asyncio.sleep(seconds), cancel_event)

    return sleep


__all__ = [
    "ChunkChannel",
    "run_cancellable",
    "cancellable_sleep",
]
