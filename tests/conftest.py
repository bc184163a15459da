"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import numpy as np
import pytest

from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.settings import SettingsSnapshot, build_default_schema
from live_scribe.l1_entities.status import PipelineStatus
from live_scribe.l1_entities.transcript import STREAM_ENDED, TranscriptEvent
from live_scribe.l2_use_cases.audio_channel import AudioChannel
from live_scribe.l2_use_cases.ports.transcriber import SessionOptions
from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer
from live_scribe.l3_interface_adapters.gateways.yaml_settings_store import YamlSettingsStore
from live_scribe.l4_frameworks_and_drivers.config import build_app_config

DEVICE_NAMES = ['Built-in Microphone', 'USB Headset', 'Loopback']

# --- Protocol-conforming Fakes ---


class FakeAudioSource:
    """Fake audio source for capture worker tests — implements AudioSource protocol."""

    def __init__(self, fail_on_open: Exception | None = None) -> None:
        self._fail_on_open = fail_on_open
        self.open_calls: list[int] = []
        self.open_names: list[str | None] = []
        self.close_calls = 0
        self.opened = threading.Event()
        self._on_block = None

    def open(self, device_index: int, on_block, device_name: str | None = None) -> None:
        self.open_calls.append(device_index)
        self.open_names.append(device_name)
        if self._fail_on_open is not None:
            raise self._fail_on_open
        self._on_block = on_block
        self.opened.set()

    def emit(self, block: np.ndarray) -> None:
        """Deliver a block as the host audio callback would."""
        assert self._on_block is not None, 'source not open'
        self._on_block(block)

    def close(self) -> None:
        self.close_calls += 1


class FakeHandle:
    def __init__(
        self, generation: int, device_index: int, channel: AudioChannel, device_name: str | None = None
    ) -> None:
        self.generation = generation
        self.device_index = device_index
        self.device_name = device_name
        self.channel = channel


class FakeCaptureService:
    """Synchronous stand-in for CaptureWorker. Records every lifecycle call in order."""

    def __init__(self) -> None:
        self.paused = False
        self.calls: list[tuple] = []
        self.generation = 0
        self.alive: FakeHandle | None = None
        self.on_error = None

    def set_paused(self, paused: bool) -> None:
        self.paused = paused

    def spawn(self, device_index: int, channel: AudioChannel, device_name: str | None = None) -> FakeHandle:
        assert self.alive is None, 'capture already running'
        self.generation += 1
        self.alive = FakeHandle(self.generation, device_index, channel, device_name)
        self.calls.append(('spawn', device_index, channel))
        return self.alive

    def stop(self, handle: FakeHandle, timeout: float | None = None) -> None:
        self.calls.append(('stop', handle.generation, handle.channel.closed))
        if self.alive is handle:
            self.alive = None

    def restart(
        self,
        handle: FakeHandle,
        device_index: int,
        channel: AudioChannel | None = None,
        device_name: str | None = None,
    ) -> FakeHandle:
        self.stop(handle)
        return self.spawn(device_index, channel if channel is not None else handle.channel, device_name)


class FakeSession:
    """Fake transcription session: collects audio until the channel ends, then reports stream end."""

    def __init__(self, options: SessionOptions, events: asyncio.Queue) -> None:
        self.options = options
        self.events_queue = events
        self.chunks: list[bytes] = []
        self.running = False
        self.finalized = False
        self.cancelled = False

    @property
    def closed(self) -> bool:
        return not self.running

    async def run(self, audio: AudioChannel) -> None:
        self.running = True
        try:
            while (chunk := await audio.get()) is not None:
                self.chunks.append(chunk)
            self.finalized = True
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        finally:
            self.running = False
        self.events_queue.put_nowait(STREAM_ENDED)

    def emit(self, text: str, speaker_id: int | None = None) -> None:
        self.events_queue.put_nowait(TranscriptEvent(text=text, speaker_id=speaker_id))

    async def push(self, chunk: bytes) -> None:
        self.chunks.append(chunk)

    async def keep_alive(self) -> None:
        pass

    async def finalize(self) -> None:
        self.finalized = True

    async def close(self) -> None:
        self.running = False


class FakeProvider:
    """Fake TranscriptionProvider; every opened session is kept for inspection."""

    def __init__(self, session_cls: type[FakeSession] = FakeSession) -> None:
        self._session_cls = session_cls
        self.sessions: list[FakeSession] = []
        self.open_calls: list[tuple[int, int]] = []

    def open(self, sample_rate: int, channels: int, options: SessionOptions, events: asyncio.Queue) -> FakeSession:
        self.open_calls.append((sample_rate, channels))
        session = self._session_cls(options, events)
        self.sessions.append(session)
        return session


class FakeRenderer:
    """Records a summary of every frame it is asked to draw."""

    def __init__(self) -> None:
        self.frames: list[tuple[int, PipelineStatus]] = []

    def render(self, buffer: TranscriptBuffer, status: PipelineStatus, settings: SettingsSnapshot) -> None:
        self.frames.append((len(buffer), status.model_copy()))

    @property
    def row_counts(self) -> list[int]:
        return [rows for rows, _ in self.frames]


class FakeSettingsStore:
    """Read-only SettingsStore whose snapshot tests can swap."""

    def __init__(self, **values) -> None:
        self.current = SettingsSnapshot(**values)

    def set(self, **values) -> None:
        self.current = self.current.model_copy(update=values)

    def snapshot(self) -> SettingsSnapshot:
        return self.current


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def fast_config() -> AppConfig:
    return build_app_config({'ui': {'tick_interval': 0.01}, 'transcription': {'shutdown_timeout': 1.0}})


@pytest.fixture
def device_names() -> list[str]:
    return list(DEVICE_NAMES)


@pytest.fixture
def settings_store(tmp_path: Path) -> YamlSettingsStore:
    return YamlSettingsStore(build_default_schema(DEVICE_NAMES), path=tmp_path / 'settings.yaml')


@pytest.fixture
def fake_capture() -> FakeCaptureService:
    return FakeCaptureService()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
transcription:
  keep_alive_interval: 5.0
  finalize_timeout: 2.0
audio:
  queue_max_chunks: 64
ui:
  max_messages: 300
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p
