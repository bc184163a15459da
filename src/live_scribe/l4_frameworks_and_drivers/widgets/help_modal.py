"""Help modal — dismissible overlay showing the keybinding reference."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Markdown, Static

HELP_MD = """\
**Recording**

| Key | Action |
| --- | --- |
| `space` | Pause / resume capture |
| `d` | Choose input device |
| `s` | Settings |
| `c` | Copy transcript |
| `q` / `Esc` | Quit |

**Transcript**

| Key | Action |
| --- | --- |
| `↑` / `↓` | Previous / next line |
| `←` / `→` | Speaker / message |
| `PgUp` / `PgDn` | Scroll a page |
| `Enter` | Edit the focused speaker or message |

While editing, `Enter` applies and `Esc` cancels. Renaming a speaker renames every line from that speaker.
"""


class HelpModal(ModalScreen[None]):
    """Modal screen that displays the keybinding reference."""

    DEFAULT_CSS = """
    HelpModal {
        align: center middle;
    }

    HelpModal > VerticalScroll {
        width: 60%;
        max-width: 80;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    HelpModal > VerticalScroll > #help-title {
        text-style: bold;
        margin-bottom: 1;
    }

    HelpModal > VerticalScroll > #help-body {
        height: auto;
    }

    HelpModal > VerticalScroll > #help-hint {
        text-align: center;
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [
        ('escape', 'dismiss', 'Close'),
        ('h', 'dismiss', 'Close'),
    ]

    def __init__(self, body_md: str = HELP_MD, **kwargs) -> None:
        super().__init__(**kwargs)
        self._body_md = body_md

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static('Help', id='help-title')
            yield Markdown(self._body_md, id='help-body')
            yield Static('Press Escape or h to close', id='help-hint')
