"""Port: streaming speech-to-text provider and its per-connection session."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from live_scribe.l1_entities.audio_constants import ENCODING
from live_scribe.l1_entities.transcript import TranscriptEvent
from live_scribe.l2_use_cases.audio_channel import AudioChannel


class SessionOptions(BaseModel):
    """Parameters bound when a session opens; changing any of them requires a new session."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    language: str | None = None
    model: str | None = None
    encoding: str = ENCODING
    diarize: bool = True


class TranscriptionSession(Protocol):
    """One live streaming connection. Zero framework types leak through."""

    @property
    def closed(self) -> bool: ...

    async def run(self, audio: AudioChannel) -> None:
        """Connect and multiplex keep-alive, audio forwarding and response decoding until the stream ends."""
        ...

    async def push(self, chunk: bytes) -> None:
        """Send one audio chunk. Raises SessionClosedError when the session is not open."""
        ...

    def events(self) -> AsyncIterator[TranscriptEvent]:
        """Yield transcript events until the stream ends."""
        ...

    async def keep_alive(self) -> None:
        """Send a no-op frame so an idle connection is not timed out."""
        ...

    async def finalize(self) -> None:
        """Flush pending audio and ask the provider to close the stream gracefully."""
        ...

    async def close(self) -> None:
        """Hard close of the connection."""
        ...


class TranscriptionProvider(Protocol):
    """Factory for sessions. ``open`` performs no network I/O; ``run`` connects."""

    def open(
        self,
        sample_rate: int,
        channels: int,
        options: SessionOptions,
        events: asyncio.Queue[TranscriptEvent],
    ) -> TranscriptionSession:
        """Create a session that will emit its transcript events into *events*."""
        ...
