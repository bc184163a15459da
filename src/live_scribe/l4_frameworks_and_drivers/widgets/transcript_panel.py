"""Transcript panel — draws the buffer's visible window with focus highlight and inline edit cursor."""

from __future__ import annotations

from rich.style import Style
from rich.text import Text
from textual import events
from textual.message import Message
from textual.widgets import Static

from live_scribe.l1_entities.commands import Command, CommandKind
from live_scribe.l1_entities.settings import SettingsSnapshot
from live_scribe.l1_entities.transcript import FocusSegment
from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer

_EDIT_KEYS = {
    'escape': CommandKind.CANCEL_EDIT,
    'enter': CommandKind.APPLY_EDIT,
    'backspace': CommandKind.BACKSPACE,
    'delete': CommandKind.DELETE,
    'left': CommandKind.CURSOR_LEFT,
    'right': CommandKind.CURSOR_RIGHT,
    'home': CommandKind.CURSOR_HOME,
    'end': CommandKind.CURSOR_END,
}


def _append_with_cursor(text: Text, value: str, cursor: int, style: Style) -> None:
    text.append(value[:cursor], style)
    text.append(value[cursor] if cursor < len(value) else ' ', style + Style(reverse=True))
    text.append(value[cursor + 1 :], style)


def build_transcript_text(buffer: TranscriptBuffer, accent: str, compact: bool = False) -> Text:
    """One line per visible row; blank separator lines unless compact."""
    text = Text(no_wrap=True, overflow='ellipsis')
    if not len(buffer):
        text.append('Listening… transcribed speech will appear here.', Style(dim=True, italic=True))
        return text

    start, end = buffer.visible_range()
    focus, edit = buffer.focus, buffer.edit
    label_style = Style(color=accent, bold=True)
    focused_style = Style(color='black', bgcolor=accent, bold=True)
    plain = Style()

    for index in range(start, end):
        if index > start:
            text.append('\n' if compact else '\n\n')
        row = buffer[index]
        row_focused = focus is not None and focus.message_index == index

        if row.speaker_label is not None:
            speaker_focused = row_focused and focus.segment is FocusSegment.SPEAKER
            style = focused_style if speaker_focused else label_style
            if edit is not None and edit.target_index == index and edit.target_segment is FocusSegment.SPEAKER:
                _append_with_cursor(text, edit.buffer, edit.cursor, style)
            else:
                text.append(row.speaker_label, style)
            text.append(': ', label_style)

        message_focused = row_focused and focus.segment is FocusSegment.MESSAGE
        style = Style(underline=True, color=accent) if message_focused else plain
        if edit is not None and edit.target_index == index and edit.target_segment is FocusSegment.MESSAGE:
            _append_with_cursor(text, edit.buffer, edit.cursor, style)
        else:
            text.append(row.content, style)
    return text


class TranscriptPanel(Static, can_focus=True):
    """Transcript display. While an inline edit is active it consumes editing keys itself."""

    DEFAULT_CSS = """
    TranscriptPanel {
        height: 1fr;
        border: solid $primary;
        padding: 0 1;
    }
    TranscriptPanel:focus {
        border: solid $accent;
    }
    """

    class CommandRequested(Message):
        def __init__(self, command: Command) -> None:
            super().__init__()
            self.command = command

    class ViewportChanged(Message):
        def __init__(self, rows: int) -> None:
            super().__init__()
            self.rows = rows

    def __init__(self, title: str = 'Transcript', **kwargs) -> None:
        super().__init__('', **kwargs)
        self.border_title = title
        self._editing = False
        self._compact = False
        self.transcript_text = Text()

    def show(self, buffer: TranscriptBuffer, settings: SettingsSnapshot) -> None:
        self._editing = buffer.editing
        if settings.compact_mode != self._compact:
            self._compact = settings.compact_mode
            self._post_viewport()
        self.border_subtitle = 'editing · Enter apply · Esc cancel' if buffer.editing else ''
        self.transcript_text = build_transcript_text(buffer, settings.accent_hex, settings.compact_mode)
        self.update(self.transcript_text)

    def viewport_rows(self) -> int:
        height = max(self.content_size.height, 1)
        return height if self._compact else (height + 1) // 2

    def _post_viewport(self) -> None:
        self.post_message(self.ViewportChanged(self.viewport_rows()))

    def on_resize(self, event: events.Resize) -> None:
        self._post_viewport()

    def on_key(self, event: events.Key) -> None:
        if not self._editing:
            return
        kind = _EDIT_KEYS.get(event.key)
        if kind is not None:
            command = Command(kind)
        elif event.is_printable and event.character:
            command = Command(CommandKind.INSERT_CHAR, char=event.character)
        else:
            return
        event.stop()
        event.prevent_default()
        self.post_message(self.CommandRequested(command))
