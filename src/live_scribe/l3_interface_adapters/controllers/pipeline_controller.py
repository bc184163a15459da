"""PipelineController — wires capture, transcription session and transcript buffer together."""

from __future__ import annotations

import asyncio
import logging

from live_scribe.l1_entities.audio_constants import CHANNELS, SAMPLE_RATE
from live_scribe.l1_entities.commands import Command, CommandKind
from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.settings import SettingsSnapshot
from live_scribe.l1_entities.status import ConnectionState, PipelineStatus
from live_scribe.l1_entities.transcript import TranscriptEvent
from live_scribe.l2_use_cases.audio_channel import AudioChannel
from live_scribe.l2_use_cases.device_resolution import resolve_device
from live_scribe.l2_use_cases.ports.audio_source import CaptureService
from live_scribe.l2_use_cases.ports.renderer import Renderer
from live_scribe.l2_use_cases.ports.settings_store import SettingsStore
from live_scribe.l2_use_cases.ports.transcriber import SessionOptions, TranscriptionProvider, TranscriptionSession
from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer

log = logging.getLogger('scribe.controller')

_BUFFER_COMMANDS = {
    CommandKind.FOCUS_PREV: TranscriptBuffer.focus_prev,
    CommandKind.FOCUS_NEXT: TranscriptBuffer.focus_next,
    CommandKind.FOCUS_LEFT: TranscriptBuffer.focus_left,
    CommandKind.FOCUS_RIGHT: TranscriptBuffer.focus_right,
    CommandKind.SCROLL_UP: TranscriptBuffer.scroll_up,
    CommandKind.SCROLL_DOWN: TranscriptBuffer.scroll_down,
    CommandKind.START_EDIT: TranscriptBuffer.start_editing,
    CommandKind.APPLY_EDIT: TranscriptBuffer.apply_edit,
    CommandKind.CANCEL_EDIT: TranscriptBuffer.cancel_editing,
    CommandKind.BACKSPACE: TranscriptBuffer.backspace,
    CommandKind.DELETE: TranscriptBuffer.delete,
    CommandKind.CURSOR_LEFT: TranscriptBuffer.cursor_left,
    CommandKind.CURSOR_RIGHT: TranscriptBuffer.cursor_right,
    CommandKind.CURSOR_HOME: TranscriptBuffer.cursor_home,
    CommandKind.CURSOR_END: TranscriptBuffer.cursor_end,
}


def _session_key(snapshot: SettingsSnapshot) -> tuple[str | None, str, str]:
    return snapshot.api_key, snapshot.language, snapshot.model


class PipelineController:
    """Single-threaded orchestrator of the capture, transcribe and render pipeline.

    ``run`` waits on three sources at once: user commands, transcript events
    and the redraw tick. Each wake handles only the highest-priority ready
    source, in that order, and redraws only when something changed.
    """

    def __init__(
        self,
        config: AppConfig,
        capture: CaptureService,
        provider: TranscriptionProvider,
        settings: SettingsStore,
        renderer: Renderer,
        device_names: list[str],
        *,
        device_index: int | None = None,
        buffer: TranscriptBuffer | None = None,
    ) -> None:
        self._config = config
        self._capture = capture
        self._provider = provider
        self._settings = settings
        self._renderer = renderer
        self._device_names = list(device_names)
        self._explicit_device = device_index

        self.buffer = buffer if buffer is not None else TranscriptBuffer(capacity=config.ui.max_messages)
        self.status = PipelineStatus()
        self.snapshot = settings.snapshot()

        self._input: asyncio.Queue[Command] = asyncio.Queue()
        self._events: asyncio.Queue[TranscriptEvent] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._audio: AudioChannel | None = None
        self._handle = None
        self._session: TranscriptionSession | None = None
        self._session_task: asyncio.Task | None = None
        self._device_index = 0
        self._dirty = True
        self._quit = False

    @property
    def device_index(self) -> int:
        return self._device_index

    @property
    def started(self) -> bool:
        return self._audio is not None

    def submit(self, command: Command) -> None:
        """Queue a user command. Must be called on the controller's event loop."""
        self._input.put_nowait(command)

    def report_capture_error(self, error: Exception) -> None:
        """Thread-safe hook for the capture worker's device-open failures."""
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._set_error, f'Audio device error: {error}')

    def _set_error(self, message: str) -> None:
        self.status.error = message
        self._dirty = True

    # --- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Resolve the device, spawn capture and open the first session.

        Raises NoInputDevicesError when there is nothing to capture from.
        """
        self._loop = asyncio.get_running_loop()
        if self._explicit_device is not None:
            index = resolve_device(self._device_names, preferred_index=self._explicit_device)
        else:
            index = resolve_device(self._device_names, preferred_name=self.snapshot.device_name)
        self._device_index = index

        self._audio = AudioChannel(self._loop, maxsize=self._config.audio.queue_max_chunks)
        self._handle = self._capture.spawn(index, self._audio, self._device_names[index])
        self._sync_device_status()
        self._open_session()
        log.info('Pipeline started on %r', self.status.device_name)

    def _open_session(self) -> None:
        snap = self.snapshot
        options = SessionOptions(api_key=snap.api_key, language=snap.language, model=snap.model)
        self._session = self._provider.open(SAMPLE_RATE, CHANNELS, options, self._events)
        self._session_task = asyncio.create_task(self._session.run(self._audio), name='transcription-session')
        self._session_task.add_done_callback(self._on_session_done)
        self.status.connection = ConnectionState.CONNECTING
        self.status.language = snap.language
        self.status.model = snap.model
        self._dirty = True

    def _on_session_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error('Transcription session crashed: %s', exc, exc_info=exc)
        if task is self._session_task:
            self.status.connection = ConnectionState.DISCONNECTED
            self._dirty = True

    def _sync_device_status(self) -> None:
        self.status.device_name = self._device_names[self._device_index]
        self.status.generation = getattr(self._handle, 'generation', 0)
        self.status.paused = self._capture.paused

    async def run(self) -> None:
        """Main loop until QUIT; always shuts the pipeline down on the way out."""
        if not self.started:
            await self.start()
        try:
            await self._loop_until_quit()
        finally:
            await self._shutdown()

    async def _loop_until_quit(self) -> None:
        tick = self._config.ui.tick_interval
        events = self._events
        input_task = asyncio.create_task(self._input.get())
        event_task = asyncio.create_task(events.get())
        tick_task = asyncio.create_task(asyncio.sleep(tick))
        try:
            while not self._quit:
                self._refresh_connection()
                if self._dirty:
                    self._render()

                await asyncio.wait({input_task, event_task, tick_task}, return_when=asyncio.FIRST_COMPLETED)

                if input_task.done():
                    await self._handle_command(input_task.result())
                    input_task = asyncio.create_task(self._input.get())
                    if events is not self._events:
                        # session was replaced; anything left on the old queue is discarded
                        event_task.cancel()
                        events = self._events
                        event_task = asyncio.create_task(events.get())
                elif event_task.done():
                    self._on_event(event_task.result())
                    self._drain_events()
                    event_task = asyncio.create_task(events.get())
                else:
                    self._dirty = True
                    tick_task = asyncio.create_task(asyncio.sleep(tick))
        finally:
            for task in (input_task, event_task, tick_task):
                task.cancel()

    async def _shutdown(self) -> None:
        """Stop capture (join), close the audio channel, then let the session finalize."""
        if self._handle is not None:
            self._capture.stop(self._handle, timeout=self._config.transcription.shutdown_timeout)
            self._handle = None
        if self._audio is not None:
            self._audio.close()

        task = self._session_task
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=self._config.transcription.shutdown_timeout)
            except TimeoutError:
                log.warning(
                    'Session did not finish within %ss; aborting', self._config.transcription.shutdown_timeout
                )
                task.cancel()
        self._drain_events()
        self.status.connection = ConnectionState.DISCONNECTED
        self._render()
        log.info('Pipeline stopped')

    # --- sources ---------------------------------------------------------

    def _refresh_connection(self) -> None:
        if (
            self.status.connection is ConnectionState.CONNECTING
            and self._session is not None
            and not self._session.closed
        ):
            self.status.connection = ConnectionState.LIVE
            self._dirty = True
        if self._audio is not None and self._audio.dropped != self.status.dropped_chunks:
            self.status.dropped_chunks = self._audio.dropped

    def _on_event(self, event: TranscriptEvent) -> None:
        if event.ended:
            log.info('Transcription stream ended')
            self.status.connection = ConnectionState.DISCONNECTED
        else:
            focus = self.buffer.focus
            follow = self.snapshot.auto_scroll and (focus is None or focus.message_index == len(self.buffer) - 1)
            self.buffer.append_event(event, follow=follow)
        self._dirty = True

    def _drain_events(self) -> None:
        while True:
            try:
                event = self._events.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._on_event(event)

    def _render(self) -> None:
        self._dirty = False
        self._renderer.render(self.buffer, self.status, self.snapshot)

    # --- commands --------------------------------------------------------

    async def _handle_command(self, command: Command) -> None:
        self._dirty = True
        kind = command.kind
        action = _BUFFER_COMMANDS.get(kind)
        if action is not None:
            action(self.buffer)
        elif kind is CommandKind.INSERT_CHAR:
            self.buffer.insert_char(command.char)
        elif kind is CommandKind.RESIZE:
            self.buffer.set_viewport_height(command.value)
        elif kind is CommandKind.TOGGLE_PAUSE:
            self._capture.set_paused(not self._capture.paused)
            self.status.paused = self._capture.paused
            log.info('Capture %s', 'paused' if self.status.paused else 'resumed')
        elif kind is CommandKind.CHANGE_DEVICE:
            self.change_device(command.value)
        elif kind is CommandKind.RELOAD_SETTINGS:
            self.reload_settings()
        elif kind is CommandKind.QUIT:
            self._quit = True

    def change_device(self, index: int) -> None:
        """Swap the capture device in place. The session keeps running on the same channel."""
        if not 0 <= index < len(self._device_names):
            log.warning('Ignoring device change to out-of-range index %d', index)
            self._set_error(f'No input device at index {index}')
            return
        self._device_index = index
        self.status.error = ''
        if self._handle is not None:
            self._handle = self._capture.restart(self._handle, index, device_name=self._device_names[index])
        self._sync_device_status()
        log.info('Switched input to %r', self.status.device_name)

    def reload_settings(self) -> None:
        """Re-read the settings snapshot; restart the session only when its parameters changed."""
        previous, self.snapshot = self.snapshot, self._settings.snapshot()
        if _session_key(previous) != _session_key(self.snapshot) and self.started:
            self._reconfigure()

    def _reconfigure(self) -> None:
        """Abort the old session, then rewire capture and a new session onto fresh channels."""
        log.info('Restarting session: language=%s model=%s', self.snapshot.language, self.snapshot.model)
        if self._session_task is not None:
            self._session_task.cancel()

        old_audio = self._audio
        self._audio = AudioChannel(self._loop, maxsize=self._config.audio.queue_max_chunks)
        self._events = asyncio.Queue()
        if self._handle is not None:
            self._handle = self._capture.restart(
                self._handle, self._device_index, self._audio, self._device_names[self._device_index]
            )
        if old_audio is not None:
            old_audio.close()
        self._sync_device_status()
        self._open_session()
