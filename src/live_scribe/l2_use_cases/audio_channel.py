"""Cross-domain audio FIFO: one capture thread produces, the event loop consumes."""

from __future__ import annotations

import asyncio
import logging
import threading

log = logging.getLogger('scribe.audio')

DEFAULT_MAX_CHUNKS = 500


class AudioChannel:
    """Single-producer, single-consumer chunk queue with a bounded drop-oldest policy.

    ``send`` is called from the capture thread and never blocks: the chunk is handed to the
    loop with ``call_soon_threadsafe`` and enqueued there, so all queue mutation happens on
    the loop thread. ``close`` enqueues an end marker; ``get`` returns ``None`` once it is reached.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = DEFAULT_MAX_CHUNKS) -> None:
        self._loop = loop
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._end_queued = False
        self._drained = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, chunk: bytes) -> bool:
        """Producer side. Returns False when the chunk was discarded because the channel is closed."""
        if self._closed.is_set():
            return False
        try:
            self._loop.call_soon_threadsafe(self._enqueue, chunk)
        except RuntimeError:  # loop already closed during shutdown
            self._closed.set()
            return False
        return True

    def _enqueue(self, chunk: bytes | None) -> None:
        if self._end_queued:
            return
        if chunk is None:
            self._end_queued = True
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 100 == 0:
                log.warning('Audio channel full; dropped %d oldest chunk(s) so far', self.dropped)
        self._queue.put_nowait(chunk)

    def close(self) -> None:
        """Loop-side close. Chunks sent before this call are still delivered ahead of the end marker."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._loop.call_soon(self._enqueue, None)

    async def get(self) -> bytes | None:
        if self._drained:
            return None
        chunk = await self._queue.get()
        if chunk is None:
            self._drained = True
        return chunk

    def get_nowait(self) -> bytes | None:
        """Return the next queued chunk; raises asyncio.QueueEmpty when none is ready."""
        if self._drained:
            return None
        chunk = self._queue.get_nowait()
        if chunk is None:
            self._drained = True
        return chunk

    def qsize(self) -> int:
        return self._queue.qsize()
