"""Tests for the transcript text builder."""

from __future__ import annotations

from live_scribe.l1_entities.transcript import TranscriptEvent
from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer
from live_scribe.l4_frameworks_and_drivers.widgets.transcript_panel import build_transcript_text

ACCENT = '#3b82f6'


def _buffer(*events: tuple[str, int | None], viewport: int = 20) -> TranscriptBuffer:
    buffer = TranscriptBuffer(viewport_height=viewport)
    for text, speaker in events:
        buffer.append_event(TranscriptEvent(text=text, speaker_id=speaker), follow=True)
    return buffer


class TestBuildTranscriptText:
    def test_empty_buffer_shows_placeholder(self):
        text = build_transcript_text(TranscriptBuffer(), ACCENT)
        assert text.plain.startswith('Listening')

    def test_rows_separated_by_blank_lines(self):
        text = build_transcript_text(_buffer(('hello', 0), ('plain words', None)), ACCENT)
        assert text.plain == 'Speaker 0: hello\n\nplain words'

    def test_compact_mode_drops_blank_lines(self):
        text = build_transcript_text(_buffer(('hello', 0), ('again', 1)), ACCENT, compact=True)
        assert text.plain == 'Speaker 0: hello\nSpeaker 1: again'

    def test_only_visible_window_drawn(self):
        text = build_transcript_text(_buffer(('a', None), ('b', None), ('c', None), ('d', None), viewport=2), ACCENT)
        assert text.plain == 'c\n\nd'

    def test_focused_speaker_highlighted_with_accent(self):
        buffer = _buffer(('hello', 0))
        buffer.focus_left()
        text = build_transcript_text(buffer, ACCENT)
        assert any(f'on {ACCENT}' in str(span.style) for span in text.spans)

    def test_edit_cursor_past_end_drawn_as_space(self):
        buffer = _buffer(('hello', 0))
        buffer.start_editing()
        text = build_transcript_text(buffer, ACCENT)
        assert text.plain == 'Speaker 0: hello '
        assert any('reverse' in str(span.style) for span in text.spans)

    def test_edit_buffer_replaces_row_content(self):
        buffer = _buffer(('hello', 0))
        buffer.start_editing()
        buffer.cursor_home()
        buffer.insert_char('oh ')
        text = build_transcript_text(buffer, ACCENT)
        assert text.plain == 'Speaker 0: oh hello'
