"""Device modal — pick the input device to capture from."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option


class DeviceModal(ModalScreen[int | None]):
    """Lists input devices. Enter → selected index, Escape → None."""

    DEFAULT_CSS = """
    DeviceModal {
        align: center middle;
    }

    DeviceModal > Vertical {
        width: 70;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    DeviceModal > Vertical > #device-title {
        text-style: bold;
        margin-bottom: 1;
    }

    DeviceModal > Vertical > #device-hint {
        color: $text-muted;
        margin-top: 1;
        text-align: center;
    }
    """

    BINDINGS = [
        ('escape', 'cancel', 'Cancel'),
        ('d', 'cancel', 'Cancel'),
    ]

    def __init__(self, device_names: list[str], current_index: int = 0, **kwargs) -> None:
        super().__init__(**kwargs)
        self._device_names = list(device_names)
        self._current_index = current_index

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static('Input device', id='device-title')
            yield OptionList(
                *[
                    Option(f'{"● " if i == self._current_index else "  "}{name}', id=str(i))
                    for i, name in enumerate(self._device_names)
                ],
                id='device-list',
            )
            yield Static('Enter to select · Escape to cancel', id='device-hint')

    def on_mount(self) -> None:
        option_list = self.query_one('#device-list', OptionList)
        if self._device_names:
            option_list.highlighted = min(self._current_index, len(self._device_names) - 1)
        option_list.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option_index)

    def action_cancel(self) -> None:
        self.dismiss(None)
