"""Thin thread worker shell for audio capture — connects an AudioSource to an AudioChannel.

Each generation runs in its own thread holding one open device stream. The
thread blocks in a short poll on its stop event; the PortAudio callback does
the only real work (convert and send), and is skipped while paused.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from live_scribe.l2_use_cases.audio_channel import AudioChannel
from live_scribe.l2_use_cases.ports.audio_source import AudioSource
from live_scribe.l2_use_cases.utils.pcm import to_pcm16

log = logging.getLogger('scribe.audio')

DEFAULT_POLL_INTERVAL = 0.1


@dataclass
class CaptureHandle:
    """One live capture generation. Owned by the CaptureWorker that spawned it."""

    generation: int
    device_index: int
    device_name: str | None
    stop_event: threading.Event
    thread: threading.Thread
    channel: AudioChannel

    @property
    def alive(self) -> bool:
        return self.thread.is_alive()


class CaptureWorker:
    """Spawns, pauses, stops and restarts capture threads, never more than one at a time.

    ``source_factory`` builds a fresh AudioSource per generation. ``on_error`` is
    called from the capture thread when a device fails to open.
    """

    def __init__(
        self,
        source_factory: Callable[[], AudioSource],
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._source_factory = source_factory
        self._poll_interval = poll_interval
        self.on_error = on_error
        self._pause_event = threading.Event()
        self._generation = 0
        self._lock = threading.Lock()
        self._live: set[int] = set()

    @property
    def paused(self) -> bool:
        return self._pause_event.is_set()

    def set_paused(self, paused: bool) -> None:
        """Pause keeps the device stream open; blocks are simply not forwarded."""
        if paused:
            self._pause_event.set()
        else:
            self._pause_event.clear()

    @property
    def alive_count(self) -> int:
        """Capture threads currently inside their run body."""
        with self._lock:
            return len(self._live)

    def spawn(self, device_index: int, channel: AudioChannel, device_name: str | None = None) -> CaptureHandle:
        """Start a new generation. *device_name* is preferred over *device_index* when the source opens."""
        self._generation += 1
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(self._generation, device_index, device_name, stop_event, channel),
            name=f'capture-{self._generation}',
            daemon=True,
        )
        handle = CaptureHandle(
            generation=self._generation,
            device_index=device_index,
            device_name=device_name,
            stop_event=stop_event,
            thread=thread,
            channel=channel,
        )
        thread.start()
        log.info('Capture generation %d started on device %d', handle.generation, device_index)
        return handle

    def stop(self, handle: CaptureHandle, timeout: float | None = None) -> None:
        """Signal the thread and join it. Blocks until the thread exits or *timeout* elapses."""
        handle.stop_event.set()
        if handle.thread.is_alive() and handle.thread is not threading.current_thread():
            handle.thread.join(timeout)
        if handle.thread.is_alive():  # pragma: no cover -- only when a driver hangs past the timeout
            log.warning('Capture generation %d did not exit within %ss', handle.generation, timeout)
        else:
            log.info('Capture generation %d stopped', handle.generation)

    def restart(
        self,
        handle: CaptureHandle,
        device_index: int,
        channel: AudioChannel | None = None,
        device_name: str | None = None,
    ) -> CaptureHandle:
        """Stop and join *handle*, then spawn a replacement. Reuses the old channel unless given one."""
        self.stop(handle)
        return self.spawn(device_index, channel if channel is not None else handle.channel, device_name)

    def _run(
        self,
        generation: int,
        device_index: int,
        device_name: str | None,
        stop_event: threading.Event,
        channel: AudioChannel,
    ) -> None:
        with self._lock:
            self._live.add(generation)
        source: AudioSource | None = None

        def _on_block(block: np.ndarray) -> None:
            if self._pause_event.is_set() or stop_event.is_set():
                return
            try:
                channel.send(to_pcm16(block))
            except Exception as e:  # noqa: BLE001 -- per-block glitches must not reach the host callback
                log.debug('Dropped audio block: %s', e)

        try:
            try:
                source = self._source_factory()
                source.open(device_index, _on_block, device_name)
            except Exception as e:  # noqa: BLE001 -- any driver failure is reported, not raised
                log.error('Failed to open input device %d: %s', device_index, e, exc_info=True)
                if self.on_error is not None:
                    self.on_error(e)
                return

            while not stop_event.wait(self._poll_interval):
                pass
        finally:
            if source is not None:
                try:
                    source.close()
                except Exception as e:  # noqa: BLE001 -- teardown of a dead device stream
                    log.warning('Error closing input device %d: %s', device_index, e)
            with self._lock:
                self._live.discard(generation)
