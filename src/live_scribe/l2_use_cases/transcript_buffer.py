"""Bounded, focus-aware transcript store consumed by the renderer.

Focus and the edit target are plain integer indices into the message list.
Every structural mutation shifts or revalidates them before returning, so no
caller ever holds a reference that outlives an eviction.
"""

from __future__ import annotations

import logging

from live_scribe.l1_entities.transcript import (
    EditSession,
    Focus,
    FocusSegment,
    TranscriptEvent,
    TranscriptionMessage,
)

log = logging.getLogger('scribe.buffer')

MAX_MESSAGES = 2000
DEFAULT_VIEWPORT_HEIGHT = 20


class TranscriptBuffer:
    """Ordered transcript rows with capacity, focus, scroll and one inline edit.

    ``scroll_offset`` counts rows scrolled up from the newest message.
    ``focus`` is ``None`` exactly when the buffer is empty.
    """

    def __init__(self, capacity: int = MAX_MESSAGES, viewport_height: int = DEFAULT_VIEWPORT_HEIGHT) -> None:
        if capacity < 1:
            raise ValueError(f'capacity must be positive, got {capacity}')
        self.capacity = capacity
        self.viewport_height = max(viewport_height, 1)
        self.scroll_offset = 0
        self.focus: Focus | None = None
        self.edit: EditSession | None = None
        self.speaker_map: dict[int, str] = {}
        self._messages: list[TranscriptionMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> TranscriptionMessage:
        return self._messages[index]

    @property
    def messages(self) -> tuple[TranscriptionMessage, ...]:
        return tuple(self._messages)

    @property
    def editing(self) -> bool:
        return self.edit is not None

    # --- appending -------------------------------------------------------

    def speaker_label_for(self, speaker_id: int) -> str:
        """Custom name for a diarized speaker, or the provider's numbering."""
        return self.speaker_map.get(speaker_id, f'Speaker {speaker_id}')

    def append_event(self, event: TranscriptEvent, *, follow: bool = False) -> None:
        """Append a provider event as a new row, labelling it through the speaker map."""
        label = self.speaker_label_for(event.speaker_id) if event.speaker_id is not None else None
        self.append(
            TranscriptionMessage(speaker_label=label, speaker_id=event.speaker_id, content=event.text),
            follow=follow,
        )

    def append(self, message: TranscriptionMessage, *, follow: bool = False) -> None:
        """Push *message*, evicting the oldest row first when full.

        With ``follow`` the new row takes the focus and the view pins to the
        bottom, unless an edit is in progress.
        """
        if len(self._messages) >= self.capacity:
            self._evict_oldest()
        self._messages.append(message)

        if follow and self.edit is None:
            self.focus = Focus(message_index=len(self._messages) - 1)
            self.scroll_offset = 0
        elif self.focus is None:
            self.focus = Focus(message_index=0)

        self._revalidate_focus()
        self._ensure_focus_visible()

    def _evict_oldest(self) -> None:
        self._messages.pop(0)
        if self.focus is not None:
            self.focus = self.focus.model_copy(update={'message_index': max(self.focus.message_index - 1, 0)})
        if self.edit is not None:
            if self.edit.target_index == 0:
                log.debug('Edit target evicted; discarding edit')
                self.edit = None
            else:
                self.edit.target_index -= 1

    def _revalidate_focus(self) -> None:
        if not self._messages:
            self.focus = None
            return
        if self.focus is None:
            self.focus = Focus(message_index=0)
        index = min(max(self.focus.message_index, 0), len(self._messages) - 1)
        segment = self.focus.segment
        if segment is FocusSegment.SPEAKER and self._messages[index].speaker_label is None:
            segment = FocusSegment.MESSAGE
        if index != self.focus.message_index or segment is not self.focus.segment:
            self.focus = Focus(message_index=index, segment=segment)

    # --- viewport --------------------------------------------------------

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(height, 1)
        self._ensure_focus_visible()

    def _page_rows(self) -> int:
        return min(self.viewport_height, len(self._messages))

    def clamped_offset(self) -> int:
        return min(self.scroll_offset, len(self._messages) - self._page_rows())

    def visible_range(self) -> tuple[int, int]:
        """Half-open ``(start, end)`` window of row indices currently on screen."""
        total = len(self._messages)
        offset = self.clamped_offset()
        return total - self._page_rows() - offset, total - offset

    def _ensure_focus_visible(self) -> None:
        self.scroll_offset = self.clamped_offset()
        if self.focus is None:
            return
        start, end = self.visible_range()
        index = self.focus.message_index
        total = len(self._messages)
        if index < start:
            self.scroll_offset = total - self._page_rows() - index
        elif index >= end:
            self.scroll_offset = total - index - 1

    def scroll_up(self) -> None:
        """Scroll one page towards older rows, dragging the focus into the window."""
        self.scroll_offset = self.clamped_offset() + self.viewport_height
        self.scroll_offset = self.clamped_offset()
        self._drag_focus_into_view()

    def scroll_down(self) -> None:
        self.scroll_offset = max(self.clamped_offset() - self.viewport_height, 0)
        self._drag_focus_into_view()

    def _drag_focus_into_view(self) -> None:
        if self.focus is None:
            return
        start, end = self.visible_range()
        index = min(max(self.focus.message_index, start), end - 1)
        if index != self.focus.message_index:
            self.focus = self.focus.model_copy(update={'message_index': index})
            self._revalidate_focus()

    # --- navigation ------------------------------------------------------

    def focus_prev(self) -> None:
        self._move_focus(-1)

    def focus_next(self) -> None:
        self._move_focus(1)

    def _move_focus(self, delta: int) -> None:
        if self.focus is None:
            return
        index = min(max(self.focus.message_index + delta, 0), len(self._messages) - 1)
        self.focus = self.focus.model_copy(update={'message_index': index})
        self._revalidate_focus()
        self._ensure_focus_visible()

    def focus_left(self) -> None:
        """Move to the speaker segment; no-op when the row has no speaker label."""
        if self.focus is None or self._messages[self.focus.message_index].speaker_label is None:
            return
        self.focus = self.focus.model_copy(update={'segment': FocusSegment.SPEAKER})

    def focus_right(self) -> None:
        if self.focus is None:
            return
        self.focus = self.focus.model_copy(update={'segment': FocusSegment.MESSAGE})

    # --- inline editing --------------------------------------------------

    def start_editing(self) -> bool:
        """Snapshot the focused segment into an edit session. Returns False if not possible."""
        if self.focus is None or self.edit is not None:
            return False
        message = self._messages[self.focus.message_index]
        if self.focus.segment is FocusSegment.SPEAKER:
            text = message.speaker_label or ''
        else:
            text = message.content
        self.edit = EditSession(
            target_index=self.focus.message_index,
            target_segment=self.focus.segment,
            buffer=text,
            cursor=len(text),
        )
        return True

    def insert_char(self, text: str) -> None:
        if self.edit is None or not text:
            return
        e = self.edit
        e.buffer = e.buffer[: e.cursor] + text + e.buffer[e.cursor :]
        e.cursor += len(text)

    def backspace(self) -> None:
        if self.edit is None or self.edit.cursor == 0:
            return
        e = self.edit
        e.buffer = e.buffer[: e.cursor - 1] + e.buffer[e.cursor :]
        e.cursor -= 1

    def delete(self) -> None:
        if self.edit is None or self.edit.cursor >= len(self.edit.buffer):
            return
        e = self.edit
        e.buffer = e.buffer[: e.cursor] + e.buffer[e.cursor + 1 :]

    def cursor_left(self) -> None:
        if self.edit is not None and self.edit.cursor > 0:
            self.edit.cursor -= 1

    def cursor_right(self) -> None:
        if self.edit is not None and self.edit.cursor < len(self.edit.buffer):
            self.edit.cursor += 1

    def cursor_home(self) -> None:
        if self.edit is not None:
            self.edit.cursor = 0

    def cursor_end(self) -> None:
        if self.edit is not None:
            self.edit.cursor = len(self.edit.buffer)

    def apply_edit(self) -> bool:
        """Commit the edit session. Returns True when a row was changed.

        A speaker rename on a diarized row is propagated to every buffered row
        with the same speaker id and remembered for future rows. An empty
        speaker label is rejected and the edit is discarded.
        """
        edit, self.edit = self.edit, None
        if edit is None:
            return False
        message = self._messages[edit.target_index]

        if edit.target_segment is FocusSegment.MESSAGE:
            message.content = edit.buffer
            return True

        label = edit.buffer.strip()
        if not label:
            log.debug('Rejected empty speaker label for row %d', edit.target_index)
            return False
        if message.speaker_id is None:
            message.speaker_label = label
            return True

        self.speaker_map[message.speaker_id] = label
        for row in self._messages:
            if row.speaker_id == message.speaker_id:
                row.speaker_label = label
        return True

    def cancel_editing(self) -> None:
        self.edit = None

    # --- export ----------------------------------------------------------

    def plain_text(self) -> str:
        lines = []
        for row in self._messages:
            if row.speaker_label:
                lines.append(f'{row.speaker_label}: {row.content}')
            else:
                lines.append(row.content)
        return '\n'.join(lines)
