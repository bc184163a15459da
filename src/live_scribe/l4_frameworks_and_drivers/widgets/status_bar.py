"""Status bar — bottom bar showing capture state, elapsed time, device, session and keybinding hints."""

from __future__ import annotations

import time

from rich.cells import cell_len
from textual.reactive import reactive
from textual.widgets import Static

from live_scribe.l1_entities.status import ConnectionState, PipelineStatus

_CONNECTION_LABELS = {
    ConnectionState.CONNECTING: '⟳ Connecting',
    ConnectionState.LIVE: '◉ Live',
    ConnectionState.DISCONNECTED: '✗ Disconnected',
}


class StatusBar(Static):
    """Bottom status bar; the elapsed timer excludes paused periods."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: auto;
        background: $surface;
        color: $text;
        padding: 0 1;
        overflow: hidden hidden;
    }
    """

    paused: reactive[bool] = reactive(False)
    connection: reactive[ConnectionState] = reactive(ConnectionState.CONNECTING)
    device_name: reactive[str] = reactive('')
    session_label: reactive[str] = reactive('')
    dropped_chunks: reactive[int] = reactive(0)
    keybinding_hints: reactive[str] = reactive('')

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._start_time = time.monotonic()
        self._pause_start: float | None = None
        self._paused_total = 0.0

    def update_status(self, status: PipelineStatus) -> None:
        self.paused = status.paused
        self.connection = status.connection
        self.device_name = status.device_name
        self.session_label = ' · '.join(part for part in (status.language, status.model) if part)
        self.dropped_chunks = status.dropped_chunks

    def watch_paused(self, value: bool) -> None:
        """Track pause start/end to exclude paused time from the elapsed timer."""
        if value:
            self._pause_start = time.monotonic()
        elif self._pause_start is not None:
            self._paused_total += time.monotonic() - self._pause_start
            self._pause_start = None

    def _recording_elapsed(self, now: float) -> float:
        paused = self._paused_total
        if self._pause_start is not None:
            paused += now - self._pause_start
        return now - self._start_time - paused

    def _format_elapsed(self, now: float) -> str:
        elapsed = max(self._recording_elapsed(now), 0.0)
        hours = int(elapsed // 3600)
        minutes = int((elapsed % 3600) // 60)
        secs = int(elapsed % 60)
        return f'{hours:02d}:{minutes:02d}:{secs:02d}'

    def render(self) -> str:
        now = time.monotonic()
        status_icon = '❚❚ Paused' if self.paused else '● Rec'

        left_parts = [status_icon, self._format_elapsed(now)]
        if self.device_name:
            left_parts.append(f'🎙 {self.device_name}')
        if self.session_label:
            left_parts.append(self.session_label)
        left_parts.append(_CONNECTION_LABELS[self.connection])
        if self.dropped_chunks:
            left_parts.append(f'dropped {self.dropped_chunks}')
        left = ' │ '.join(left_parts)

        content_width = (self.size.width or 80) - 2
        hints = self.keybinding_hints
        if hints:
            hints_width = cell_len(hints.replace(r'\[', '['))
            gap = content_width - cell_len(left) - hints_width
            if gap >= 2:
                left = left + ' ' * gap + hints
        return left
