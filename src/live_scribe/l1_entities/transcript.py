"""Transcript entities: provider events, buffered rows, focus and inline-edit state."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class TranscriptEvent(BaseModel):
    """One unit of provider output: a run of words attributed to a single speaker."""

    model_config = ConfigDict(frozen=True)

    text: str = ''
    speaker_id: int | None = None
    ended: bool = False  # stream-ended sentinel; consumed by the controller, never rendered


STREAM_ENDED = TranscriptEvent(ended=True)


class TranscriptionMessage(BaseModel):
    """A single transcript row. Mutated only by inline edits and speaker renames."""

    speaker_label: str | None = None
    speaker_id: int | None = None
    content: str


class FocusSegment(enum.Enum):
    SPEAKER = 'speaker'
    MESSAGE = 'message'


class Focus(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_index: int
    segment: FocusSegment = FocusSegment.MESSAGE


class EditSession(BaseModel):
    """Inline edit in progress. ``cursor`` counts code points, so it never splits a character."""

    target_index: int
    target_segment: FocusSegment
    buffer: str
    cursor: int
