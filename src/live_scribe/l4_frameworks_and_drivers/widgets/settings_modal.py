"""Settings modal — browse and change schema-driven user settings."""

from __future__ import annotations

from rich.style import Style
from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Static

from live_scribe.l1_entities.errors import SettingsError
from live_scribe.l1_entities.settings import NumberField, SelectField, SettingEntry, TextField, ToggleField
from live_scribe.l3_interface_adapters.gateways.yaml_settings_store import YamlSettingsStore


def format_value(store: YamlSettingsStore, entry: SettingEntry) -> str:
    field = entry.field
    if isinstance(field, ToggleField):
        return '[x]' if store.bool_value(entry.key) else '[ ]'
    if isinstance(field, NumberField):
        value = store.number_value(entry.key)
        text = f'{value:.{field.precision}f}' if field.precision is not None else f'{value:g}'
        return f'{text} {field.unit}' if field.unit else text
    if isinstance(field, SelectField):
        value = store.select_value(entry.key)
        label = next((opt.label for opt in field.options if opt.value == value), value)
        return f'‹ {label} ›'
    if isinstance(field, TextField):
        value = store.text_value(entry.key)
        if not value:
            return field.placeholder or ''
        return '•' * min(len(value), 16) if field.secret else value
    return ''


class SettingsModal(ModalScreen[bool]):
    """Changes are written to the store as they are made. Dismisses with True if anything changed."""

    # the text editor is hidden until a text entry is activated; nothing may hold focus before that
    AUTO_FOCUS = None

    DEFAULT_CSS = """
    SettingsModal {
        align: center middle;
    }

    SettingsModal > Vertical {
        width: 80%;
        max-width: 100;
        height: auto;
        max-height: 90%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    SettingsModal > Vertical > #settings-title {
        text-style: bold;
        margin-bottom: 1;
    }

    SettingsModal > Vertical > #settings-input {
        display: none;
    }

    SettingsModal > Vertical > #settings-description {
        color: $text-muted;
        margin-top: 1;
    }

    SettingsModal > Vertical > #settings-hint {
        color: $text-muted;
        margin-top: 1;
        text-align: center;
    }
    """

    BINDINGS = [
        Binding('escape', 'close', 'Close'),
        Binding('up', 'cursor_up', 'Up', show=False),
        Binding('down', 'cursor_down', 'Down', show=False),
        Binding('left', 'adjust(-1)', 'Decrease', show=False),
        Binding('right', 'adjust(1)', 'Increase', show=False),
        Binding('space', 'activate', 'Toggle', show=False),
        Binding('enter', 'activate', 'Edit', show=False),
    ]

    def __init__(self, store: YamlSettingsStore, **kwargs) -> None:
        super().__init__(**kwargs)
        self._store = store
        self._entries = list(store.schema.iter_entries())
        self._index = 0
        self._changed = False
        self._editing_key: str | None = None

    @property
    def selected(self) -> SettingEntry:
        return self._entries[self._index]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static('Settings', id='settings-title')
            yield Static('', id='settings-body')
            yield Input(id='settings-input')
            yield Static('', id='settings-description')
            yield Static('↑↓ select · ←→ adjust · Space/Enter toggle or edit · Esc close', id='settings-hint')

    def on_mount(self) -> None:
        self.set_focus(None)
        self._refresh_body()

    def _refresh_body(self) -> None:
        body = Text()
        for i, entry in enumerate(self._entries):
            if i:
                body.append('\n')
            selected = i == self._index
            marker = '› ' if selected else '  '
            style = Style(bold=True, reverse=True) if selected else Style()
            body.append(f'{marker}{entry.label:<28}', style)
            body.append(' ')
            body.append(format_value(self._store, entry), Style(bold=selected))
        self.query_one('#settings-body', Static).update(body)
        self.query_one('#settings-description', Static).update(self.selected.description or '')

    def _apply(self, change) -> None:
        try:
            if change():
                self._changed = True
        except SettingsError as e:
            self.notify(str(e), severity='error', timeout=4)
        self._refresh_body()

    def action_cursor_up(self) -> None:
        if self._editing_key is None:
            self._index = (self._index - 1) % len(self._entries)
            self._refresh_body()

    def action_cursor_down(self) -> None:
        if self._editing_key is None:
            self._index = (self._index + 1) % len(self._entries)
            self._refresh_body()

    def action_adjust(self, direction: int) -> None:
        if self._editing_key is not None:
            return
        entry = self.selected
        if isinstance(entry.field, NumberField):
            self._apply(lambda: self._store.adjust_number(entry.key, direction))
        elif isinstance(entry.field, SelectField):
            self._apply(lambda: self._store.cycle_select(entry.key, direction))

    def action_activate(self) -> None:
        if self._editing_key is not None:
            return
        entry = self.selected
        if isinstance(entry.field, ToggleField):
            self._apply(lambda: self._store.toggle_bool(entry.key))
        elif isinstance(entry.field, SelectField):
            self._apply(lambda: self._store.cycle_select(entry.key, 1))
        elif isinstance(entry.field, TextField):
            self._start_text_edit(entry)

    def _start_text_edit(self, entry: SettingEntry) -> None:
        field = entry.field
        editor = self.query_one('#settings-input', Input)
        editor.value = self._store.text_value(entry.key)
        editor.placeholder = field.placeholder or ''
        editor.password = field.secret
        editor.max_length = field.max_length or 0
        editor.display = True
        editor.focus()
        self._editing_key = entry.key

    def _stop_text_edit(self) -> None:
        self._editing_key = None
        editor = self.query_one('#settings-input', Input)
        editor.display = False
        self.set_focus(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        key = self._editing_key
        if key is None:
            return
        event.stop()
        self._stop_text_edit()
        self._apply(lambda: self._store.set_text(key, event.value.strip()))

    def action_close(self) -> None:
        if self._editing_key is not None:
            self._stop_text_edit()
            return
        self.dismiss(self._changed)
