"""Gateway: schema-driven user settings persisted as YAML — implements SettingsStore port."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from live_scribe.l1_entities.errors import SettingTypeError, SettingValidationError, UnknownSettingError
from live_scribe.l1_entities.settings import (
    ACCENT_COLOR_KEY,
    API_KEY_KEY,
    AUTO_SCROLL_KEY,
    BRIGHTNESS_KEY,
    COMPACT_MODE_KEY,
    DEVICE_KEY,
    LANGUAGE_KEY,
    MODEL_KEY,
    NO_DEVICES_VALUE,
    NumberField,
    SelectField,
    SelectOption,
    SettingEntry,
    SettingGroup,
    SettingsSnapshot,
    TextField,
    ToggleField,
    build_default_schema,
)
from live_scribe.l3_interface_adapters.gateways.paths import SETTINGS_PATH

log = logging.getLogger('scribe.settings')

EPSILON = 1e-6
API_KEY_ENV = 'DEEPGRAM_API_KEY'


def _validate(field: Any, value: Any) -> Any:
    """Return the normalized stored value, or None when *value* does not fit *field*."""
    if isinstance(field, ToggleField):
        return value if isinstance(value, bool) else None
    if isinstance(field, NumberField):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return field.normalize(float(value))
    if isinstance(field, SelectField):
        return value if isinstance(value, str) and field.has_option(value) else None
    if isinstance(field, TextField):
        if not isinstance(value, str):
            return None
        if field.max_length is not None and len(value) > field.max_length:
            return None
        return value
    return None


class YamlSettingsStore:
    """Holds only values that differ from their defaults; every genuine change is written once.

    Setters return True when the stored value changed. A failed write is logged
    and the in-memory value stays authoritative for the running session.
    """

    def __init__(self, schema: SettingGroup | None = None, path: Path | None = None) -> None:
        self.schema = schema if schema is not None else build_default_schema()
        self.path = path if path is not None else SETTINGS_PATH
        self._values: dict[str, Any] = {}
        self._lookup: dict[str, SettingEntry] = {}
        self._index_schema()
        self._load()

    def _index_schema(self) -> None:
        self._lookup = {entry.key: entry for entry in self.schema.iter_entries()}

    def entry(self, key: str) -> SettingEntry:
        try:
            return self._lookup[key]
        except KeyError:
            raise UnknownSettingError(key) from None

    def _field(self, key: str, kind: type, expected: str) -> Any:
        field = self.entry(key).field
        if not isinstance(field, kind):
            raise SettingTypeError(key, expected)
        return field

    def _store(self, key: str, value: Any, default: Any) -> None:
        if value == default:
            self._values.pop(key, None)
        else:
            self._values[key] = value
        self._persist()

    # --- toggles ---------------------------------------------------------

    def bool_value(self, key: str) -> bool:
        field = self._field(key, ToggleField, 'boolean')
        value = self._values.get(key)
        return value if isinstance(value, bool) else field.default

    def set_bool(self, key: str, value: bool) -> bool:
        field = self._field(key, ToggleField, 'boolean')
        if self.bool_value(key) == value:
            return False
        self._store(key, value, field.default)
        return True

    def toggle_bool(self, key: str) -> bool:
        return self.set_bool(key, not self.bool_value(key))

    # --- numbers ---------------------------------------------------------

    def number_value(self, key: str) -> float:
        field = self._field(key, NumberField, 'number')
        value = self._values.get(key, field.default)
        return field.clamp(float(value))

    def set_number(self, key: str, value: float) -> bool:
        """Clamp and round *value*, then store it. Already-normalized current values are a no-op."""
        field = self._field(key, NumberField, 'number')
        new_value = field.normalize(float(value))
        current = self._values.get(key)
        default_equal = abs(new_value - field.default) < EPSILON
        changed = abs(current - new_value) > EPSILON if current is not None else not default_equal
        if not changed:
            return False
        if default_equal:
            self._values.pop(key, None)
            self._persist()
        else:
            self._store(key, new_value, field.default)
        return True

    def adjust_number(self, key: str, steps: float) -> bool:
        field = self._field(key, NumberField, 'number')
        current = self.number_value(key)
        new_value = field.normalize(current + (field.step or 1.0) * steps)
        if abs(new_value - current) < EPSILON:
            return False
        return self.set_number(key, new_value)

    # --- selects ---------------------------------------------------------

    def select_value(self, key: str) -> str:
        field = self._field(key, SelectField, 'select')
        value = self._values.get(key, field.default)
        return value if field.has_option(value) else field.default

    def set_select(self, key: str, value: str) -> bool:
        field = self._field(key, SelectField, 'select')
        if not field.has_option(value):
            raise SettingValidationError(key, f"'{value}' is not a valid option")
        if self._values.get(key, field.default) == value:
            return False
        self._store(key, value, field.default)
        return True

    def cycle_select(self, key: str, direction: int) -> bool:
        """Step through the options, wrapping at either end."""
        field = self._field(key, SelectField, 'select')
        if not field.options:
            return False
        values = [opt.value for opt in field.options]
        current = self.select_value(key)
        index = values.index(current) if current in values else 0
        return self.set_select(key, values[(index + direction) % len(values)])

    def update_select_options(self, key: str, options: list[SelectOption], default: str | None = None) -> None:
        """Swap in a new option list (e.g. after device enumeration), keeping a still-valid stored value."""
        field = self._field(key, SelectField, 'select')
        field.options = list(options)
        if default is not None:
            field.default = default
        elif options and not field.has_option(field.default):
            field.default = options[0].value

        if not options:
            if self._values.pop(key, None) is not None:
                self._persist()
            return

        stored = self._values.get(key)
        effective = stored if isinstance(stored, str) and field.has_option(stored) else field.default
        if not field.has_option(effective):
            effective = options[0].value
        if stored is not None and stored != effective:
            del self._values[key]
            if not self.set_select(key, effective):
                self._persist()
            return
        self.set_select(key, effective)

    # --- text ------------------------------------------------------------

    def text_value(self, key: str) -> str:
        field = self._field(key, TextField, 'text')
        value = self._values.get(key)
        return value if isinstance(value, str) else field.default

    def set_text(self, key: str, value: str) -> bool:
        field = self._field(key, TextField, 'text')
        if field.max_length is not None and len(value) > field.max_length:
            raise SettingValidationError(key, f'value exceeds maximum length of {field.max_length} characters')
        if self.text_value(key) == value:
            return False
        self._store(key, value, field.default)
        return True

    # --- snapshot --------------------------------------------------------

    def snapshot(self) -> SettingsSnapshot:
        device = self.select_value(DEVICE_KEY)
        return SettingsSnapshot(
            device_name='' if device == NO_DEVICES_VALUE else device,
            api_key=self.text_value(API_KEY_KEY).strip() or os.environ.get(API_KEY_ENV) or None,
            language=self.select_value(LANGUAGE_KEY),
            model=self.select_value(MODEL_KEY),
            auto_scroll=self.bool_value(AUTO_SCROLL_KEY),
            compact_mode=self.bool_value(COMPACT_MODE_KEY),
            accent_color=self.select_value(ACCENT_COLOR_KEY),
            brightness=self.number_value(BRIGHTNESS_KEY),
        )

    # --- persistence -----------------------------------------------------

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = yaml.safe_load(self.path.read_text(encoding='utf-8')) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning('Failed to read settings file %s: %s', self.path, e)
            return
        if not isinstance(data, dict):
            log.warning('Ignoring settings file %s: expected a mapping', self.path)
            return
        for key, value in data.items():
            entry = self._lookup.get(key)
            if entry is None:
                log.debug('Ignoring unknown setting %r', key)
                continue
            validated = _validate(entry.field, value)
            if validated is None:
                log.warning('Ignoring invalid value for %s: %r', key, value)
                continue
            self._values[key] = validated

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(yaml.safe_dump(self._values, sort_keys=True), encoding='utf-8')
        except OSError as e:
            log.error('Failed to write settings to %s: %s', self.path, e)
