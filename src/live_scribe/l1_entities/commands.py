"""L1 entity: user commands fed from the key layer into the pipeline controller."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class CommandKind(enum.Enum):
    FOCUS_PREV = 'focus_prev'
    FOCUS_NEXT = 'focus_next'
    FOCUS_LEFT = 'focus_left'
    FOCUS_RIGHT = 'focus_right'
    SCROLL_UP = 'scroll_up'
    SCROLL_DOWN = 'scroll_down'
    START_EDIT = 'start_edit'
    APPLY_EDIT = 'apply_edit'
    CANCEL_EDIT = 'cancel_edit'
    INSERT_CHAR = 'insert_char'
    BACKSPACE = 'backspace'
    DELETE = 'delete'
    CURSOR_LEFT = 'cursor_left'
    CURSOR_RIGHT = 'cursor_right'
    CURSOR_HOME = 'cursor_home'
    CURSOR_END = 'cursor_end'
    TOGGLE_PAUSE = 'toggle_pause'
    CHANGE_DEVICE = 'change_device'
    RELOAD_SETTINGS = 'reload_settings'
    RESIZE = 'resize'
    QUIT = 'quit'


@dataclass(frozen=True)
class Command:
    """A decoded user action. ``char`` carries typed text, ``value`` a device index or row count."""

    kind: CommandKind
    char: str = ''
    value: int = 0
