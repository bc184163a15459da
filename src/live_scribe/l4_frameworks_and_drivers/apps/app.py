"""LiveScribeApp — Textual shell: key decoding, frame rendering, pipeline worker."""

from __future__ import annotations

import logging

import pyperclip
from textual.app import App as TextualApp
from textual.app import ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.screen import ModalScreen
from textual.widgets import Static

from live_scribe import __version__
from live_scribe.l1_entities.commands import Command, CommandKind
from live_scribe.l1_entities.errors import InvalidDeviceError, NoInputDevicesError, SettingsError
from live_scribe.l1_entities.settings import DEVICE_KEY, SettingsSnapshot
from live_scribe.l1_entities.status import PipelineStatus
from live_scribe.l2_use_cases.transcript_buffer import TranscriptBuffer
from live_scribe.l4_frameworks_and_drivers.container import DependencyContainer
from live_scribe.l4_frameworks_and_drivers.widgets.device_modal import DeviceModal
from live_scribe.l4_frameworks_and_drivers.widgets.help_modal import HelpModal
from live_scribe.l4_frameworks_and_drivers.widgets.settings_modal import SettingsModal
from live_scribe.l4_frameworks_and_drivers.widgets.status_bar import StatusBar
from live_scribe.l4_frameworks_and_drivers.widgets.transcript_panel import TranscriptPanel

log = logging.getLogger('scribe.app')

HINTS = r'\[space] pause  \[d] device  \[s] settings  \[c] copy  \[h] help  \[q] quit'

_MAIN_SCREEN_ACTIONS = {
    'quit_app',
    'toggle_pause',
    'choose_device',
    'open_settings',
    'show_help',
    'copy_transcript',
    'command',
}


class FrameRenderer:
    """Renderer port adapter; Textual's own ``App.render`` draws the screen background."""

    def __init__(self, app: LiveScribeApp) -> None:
        self._app = app

    def render(self, buffer: TranscriptBuffer, status: PipelineStatus, settings: SettingsSnapshot) -> None:
        self._app.show_frame(buffer, status, settings)


class LiveScribeApp(TextualApp):
    """Live transcript TUI. The pipeline controller runs as a worker on the app's event loop."""

    BINDINGS = [
        Binding('q', 'quit_app', 'Quit'),
        Binding('escape', 'quit_app', 'Quit', show=False),
        Binding('space', 'toggle_pause', 'Pause'),
        Binding('d', 'choose_device', 'Device'),
        Binding('s', 'open_settings', 'Settings'),
        Binding('h', 'show_help', 'Help'),
        Binding('c', 'copy_transcript', 'Copy'),
        Binding('up', "command('focus_prev')", 'Up', show=False),
        Binding('down', "command('focus_next')", 'Down', show=False),
        Binding('left', "command('focus_left')", 'Speaker', show=False),
        Binding('right', "command('focus_right')", 'Message', show=False),
        Binding('pageup', "command('scroll_up')", 'Page up', show=False),
        Binding('pagedown', "command('scroll_down')", 'Page down', show=False),
        Binding('enter', "command('start_edit')", 'Edit', show=False),
    ]

    def __init__(self, container: DependencyContainer, **kwargs) -> None:
        super().__init__(**kwargs)
        self._container = container
        self.controller = container.build_controller(FrameRenderer(self))
        self.fatal_error: str | None = None
        self._last_error = ''

    def compose(self) -> ComposeResult:
        yield Static(f'  live-scribe {__version__}', id='header')
        yield TranscriptPanel(id='transcript-panel')
        yield StatusBar(id='status-bar')

    def on_mount(self) -> None:
        self.query_one('#status-bar', StatusBar).keybinding_hints = HINTS
        self.query_one('#transcript-panel', TranscriptPanel).focus()
        self.set_interval(0.5, self._refresh_status_bar)
        self.run_worker(self._run_pipeline(), name='pipeline', exclusive=True)

    async def _run_pipeline(self) -> None:
        try:
            await self.controller.run()
        except (NoInputDevicesError, InvalidDeviceError) as e:
            log.error('Cannot start capture: %s', e)
            self.fatal_error = str(e)
        self.exit()

    def _refresh_status_bar(self) -> None:
        try:
            self.query_one('#status-bar', StatusBar).refresh()
        except NoMatches:  # pragma: no cover -- TUI race guard; widget may not exist during shutdown
            pass

    def show_frame(self, buffer: TranscriptBuffer, status: PipelineStatus, settings: SettingsSnapshot) -> None:
        try:
            panel = self.query_one('#transcript-panel', TranscriptPanel)
            bar = self.query_one('#status-bar', StatusBar)
        except NoMatches:  # pragma: no cover -- final frame can arrive after the screen is torn down
            return
        panel.show(buffer, settings)
        panel.styles.border = ('solid', settings.accent_hex)
        bar.update_status(status)
        if status.error and status.error != self._last_error:
            self.notify(status.error, severity='error', timeout=6)
        self._last_error = status.error

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Main-screen keys are inert while a modal is open or a line is being edited."""
        if action not in _MAIN_SCREEN_ACTIONS:
            return True
        if isinstance(self.screen, ModalScreen) or self.controller.buffer.editing:
            return False
        return True

    def submit(self, kind: CommandKind, **kwargs) -> None:
        self.controller.submit(Command(kind, **kwargs))

    # --- Message Handlers ---

    def on_transcript_panel_command_requested(self, message: TranscriptPanel.CommandRequested) -> None:
        self.controller.submit(message.command)

    def on_transcript_panel_viewport_changed(self, message: TranscriptPanel.ViewportChanged) -> None:
        self.submit(CommandKind.RESIZE, value=message.rows)

    # --- Actions ---

    def action_command(self, name: str) -> None:
        self.submit(CommandKind(name))

    def action_toggle_pause(self) -> None:
        self.submit(CommandKind.TOGGLE_PAUSE)

    def action_quit_app(self) -> None:
        self.submit(CommandKind.QUIT)

    def action_show_help(self) -> None:
        self.push_screen(HelpModal())

    def action_copy_transcript(self) -> None:
        text = self.controller.buffer.plain_text()
        if not text:
            self.notify('No transcript to copy', severity='warning', timeout=2)
            return
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            log.warning('Clipboard unavailable: %s', e)
            self.notify('Clipboard unavailable', severity='warning', timeout=3)
            return
        self.notify('Transcript copied', timeout=2)

    def action_choose_device(self) -> None:
        names = self._container.device_names

        def _on_result(index: int | None) -> None:
            if index is None or index == self.controller.device_index:
                return
            try:
                self._container.settings.set_select(DEVICE_KEY, names[index])
            except SettingsError as e:
                log.warning('Could not persist device selection: %s', e)
            self.submit(CommandKind.CHANGE_DEVICE, value=index)

        self.push_screen(DeviceModal(names, self.controller.device_index), _on_result)

    def action_open_settings(self) -> None:
        settings = self._container.settings

        def _on_result(changed: bool | None) -> None:
            if not changed:
                return
            device = settings.snapshot().device_name
            names = self._container.device_names
            if device in names and names.index(device) != self.controller.device_index:
                self.submit(CommandKind.CHANGE_DEVICE, value=names.index(device))
            self.submit(CommandKind.RELOAD_SETTINGS)

        self.push_screen(SettingsModal(settings), _on_result)
