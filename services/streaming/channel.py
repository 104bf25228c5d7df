"""
Bounded progress channel.

Lets a consumer task iterate over progress ticks while the job client
runs in another task. The job client calls the channel synchronously from
its poll loop, so putting a tick never waits: when the buffer is full the
oldest tick is dropped.

Usage:
    channel = ProgressChannel()
    job = asyncio.create_task(client.submit_and_await(request, on_progress=channel))
    job.add_done_callback(lambda _: channel.close())

    async for tick in channel:
        print(tick.elapsed_seconds)
    video = await job
"""

import asyncio
import logging

from services.video_generation.models import ProgressTick

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressChannel:
    """Bounded, non-blocking queue of ProgressTick values."""

    def __init__(self, maxsize: int = 16):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, item):
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(item)

    def send(self, tick: ProgressTick):
        """Queue a tick; ticks sent after close() are ignored."""
        if self._closed:
            logger.debug(f"Dropping tick after close: {tick.elapsed_seconds}s")
            return
        self._put(tick)

    __call__ = send

    def close(self):
        """End iteration once the queued ticks are consumed."""
        if self._closed:
            return
        self._closed = True
        self._put(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressTick:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item
