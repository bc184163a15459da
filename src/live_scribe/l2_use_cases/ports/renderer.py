"""Port: frame renderer fed by the pipeline controller."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from live_scribe.l1_entities.settings import SettingsSnapshot
from live_scribe.l1_entities.status import PipelineStatus

if TYPE_CHECKING:
    from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer


class Renderer(Protocol):
    """Draws a frame from the buffer and status. Must not mutate the buffer."""

    def render(self, buffer: TranscriptBuffer, status: PipelineStatus, settings: SettingsSnapshot) -> None: ...
