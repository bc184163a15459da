"""Tests for the Textual TUI app using headless Pilot."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from live_scribe.l1_entities.settings import API_KEY_KEY, DEVICE_KEY, LANGUAGE_KEY, build_default_schema
from live_scribe.l1_entities.status import ConnectionState
from live_scribe.l3_interface_adapters.gateways.yaml_settings_store import YamlSettingsStore
from live_scribe.l4_frameworks_and_drivers.apps.app import LiveScribeApp
from live_scribe.l4_frameworks_and_drivers.config import build_app_config
from live_scribe.l4_frameworks_and_drivers.container import DependencyContainer
from live_scribe.l4_frameworks_and_drivers.widgets.device_modal import DeviceModal
from live_scribe.l4_frameworks_and_drivers.widgets.help_modal import HelpModal
from live_scribe.l4_frameworks_and_drivers.widgets.settings_modal import SettingsModal
from live_scribe.l4_frameworks_and_drivers.widgets.status_bar import StatusBar
from live_scribe.l4_frameworks_and_drivers.widgets.transcript_panel import TranscriptPanel
from tests.conftest import DEVICE_NAMES, FakeCaptureService, FakeProvider

MODULE = 'live_scribe.l4_frameworks_and_drivers.apps.app'


def make_app(tmp_path: Path, device_names: list[str] | None = None) -> LiveScribeApp:
    names = DEVICE_NAMES if device_names is None else device_names
    store = YamlSettingsStore(build_default_schema(names), path=tmp_path / 'settings.yaml')
    store.set_text(API_KEY_KEY, 'k')
    container = DependencyContainer(
        build_app_config({'ui': {'tick_interval': 0.01}, 'transcription': {'shutdown_timeout': 1.0}}),
        names,
        settings=store,
        provider=FakeProvider(),
        capture=FakeCaptureService(),
    )
    return LiveScribeApp(container)


async def settle(pilot, delay: float = 0.05) -> None:
    await pilot.pause(delay)


async def wait_for_session(pilot, app: LiveScribeApp, count: int = 1) -> None:
    for _ in range(100):
        if len(app._container.provider.sessions) >= count:
            break
        await pilot.pause(0.01)
    await settle(pilot)


async def wait_until(predicate, timeout: float = 2.0) -> bool:
    """Poll without the pilot; the app may already have exited."""
    for _ in range(int(timeout / 0.01)):
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


class TestAppComposition:
    @pytest.mark.asyncio
    async def test_has_panel_and_status_bar(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            assert app.query_one('#transcript-panel', TranscriptPanel).has_focus
            assert app.query_one('#status-bar', StatusBar).keybinding_hints
            assert app.controller.status.connection is ConnectionState.LIVE

    @pytest.mark.asyncio
    async def test_transcript_events_are_drawn(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            app._container.provider.sessions[0].emit('hello there', 0)
            await settle(pilot)
            panel = app.query_one('#transcript-panel', TranscriptPanel)
            assert panel.transcript_text.plain == 'Speaker 0: hello there'


class TestAppKeys:
    @pytest.mark.asyncio
    async def test_q_quits_and_shuts_pipeline_down(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            await pilot.press('q')
            session = app._container.provider.sessions[0]
            assert await wait_until(lambda: session.finalized)

        capture = app._container.capture
        assert capture.calls[-1][0] == 'stop'
        assert capture.alive is None
        assert app._container.provider.sessions[0].finalized
        assert app.fatal_error is None

    @pytest.mark.asyncio
    async def test_space_toggles_pause(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            await pilot.press('space')
            await settle(pilot)
            assert app._container.capture.paused
            assert app.controller.status.paused

            await pilot.press('space')
            await settle(pilot)
            assert not app._container.capture.paused

    @pytest.mark.asyncio
    async def test_rename_speaker_inline(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            session = app._container.provider.sessions[0]
            session.emit('hello', 0)
            session.emit('world', 1)
            await settle(pilot)

            for key in ('up', 'left', 'enter'):
                await pilot.press(key)
                await settle(pilot)
            assert app.controller.buffer.editing

            await pilot.press('x')
            await settle(pilot)
            await pilot.press('enter')
            await settle(pilot)

            buffer = app.controller.buffer
            assert not buffer.editing
            assert buffer.speaker_map == {0: 'Speaker 0x'}
            assert buffer[0].speaker_label == 'Speaker 0x'
            assert buffer[1].speaker_label == 'Speaker 1'

            session.emit('later', 0)
            await settle(pilot)
            assert buffer[2].speaker_label == 'Speaker 0x'

    @pytest.mark.asyncio
    async def test_main_keys_ignored_while_editing(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            app._container.provider.sessions[0].emit('hello', 0)
            await settle(pilot)
            await pilot.press('enter')
            await settle(pilot)

            await pilot.press('q')
            await settle(pilot)

            assert app.is_running
            assert app.controller.buffer.edit.buffer == 'helloq'

    @pytest.mark.asyncio
    async def test_help_modal_blocks_main_keys(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            await pilot.press('h')
            await settle(pilot)
            assert isinstance(app.screen, HelpModal)

            await pilot.press('space')
            await settle(pilot)
            assert not app._container.capture.paused

            await pilot.press('escape')
            await settle(pilot)
            assert not isinstance(app.screen, HelpModal)
            assert app.is_running

    @pytest.mark.asyncio
    async def test_device_modal_switches_capture(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            await pilot.press('d')
            await settle(pilot)
            assert isinstance(app.screen, DeviceModal)

            await pilot.press('down')
            await pilot.press('enter')
            await settle(pilot)

            capture = app._container.capture
            assert app.controller.device_index == 1
            assert capture.alive.device_index == 1
            assert capture.alive.generation == 2
            assert app._container.settings.select_value(DEVICE_KEY) == 'USB Headset'
            assert len(app._container.provider.sessions) == 1

    @pytest.mark.asyncio
    async def test_settings_change_restarts_session(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            await pilot.press('s')
            await settle(pilot)
            modal = app.screen
            assert isinstance(modal, SettingsModal)

            for _ in range(6):
                await pilot.press('down')
            assert modal.selected.key == LANGUAGE_KEY
            await pilot.press('right')
            await pilot.press('escape')
            await wait_for_session(pilot, app, count=2)

            sessions = app._container.provider.sessions
            assert len(sessions) == 2
            assert sessions[1].options.language == 'en-GB'
            assert sessions[1].options.api_key == 'k'
            assert app.controller.status.language == 'en-GB'

    @pytest.mark.asyncio
    async def test_copy_puts_transcript_on_clipboard(self, tmp_path: Path):
        app = make_app(tmp_path)
        async with app.run_test() as pilot:
            await wait_for_session(pilot, app)
            app._container.provider.sessions[0].emit('hello', 0)
            app._container.provider.sessions[0].emit('no speaker')
            await settle(pilot)

            with patch(f'{MODULE}.pyperclip.copy') as copy:
                await pilot.press('c')
                await settle(pilot)

            copy.assert_called_once_with('Speaker 0: hello\nno speaker')


class TestAppStartupFailure:
    @pytest.mark.asyncio
    async def test_no_devices_sets_fatal_error(self, tmp_path: Path):
        app = make_app(tmp_path, device_names=[])
        with patch.object(app, 'exit') as exit_app:
            await app._run_pipeline()

        exit_app.assert_called_once()
        assert app.fatal_error == 'no input devices found'
        assert app._container.capture.calls == []
