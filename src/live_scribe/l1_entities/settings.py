"""Settings schema Pydantic models and the read-only snapshot consumed by the pipeline."""

from __future__ import annotations

import math
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

AUTO_SCROLL_KEY = 'ui.behavior.auto_scroll'
COMPACT_MODE_KEY = 'ui.behavior.compact_mode'
ACCENT_COLOR_KEY = 'ui.theme.accent_color'
BRIGHTNESS_KEY = 'ui.theme.brightness'
DEVICE_KEY = 'audio.input.device'
API_KEY_KEY = 'transcriber.deepgram.api_key'
LANGUAGE_KEY = 'transcriber.deepgram.language'
MODEL_KEY = 'transcriber.deepgram.model'

NO_DEVICES_VALUE = '__no_devices__'

ACCENT_RGB: dict[str, tuple[int, int, int]] = {
    'blue': (59, 130, 246),
    'cyan': (0, 188, 242),
    'magenta': (216, 46, 154),
    'amber': (255, 179, 71),
    'green': (0, 200, 117),
}


def round_half_away(value: float, precision: int | None) -> float:
    """Round to *precision* decimals, halves away from zero. ``None`` leaves the value untouched."""
    if precision is None:
        return value
    factor = 10.0**precision
    return math.copysign(math.floor(abs(value) * factor + 0.5), value) / factor


class SelectOption(BaseModel):
    value: str
    label: str


class ToggleField(BaseModel):
    kind: Literal['toggle'] = 'toggle'
    default: bool


class NumberField(BaseModel):
    kind: Literal['number'] = 'number'
    default: float
    min: float | None = None
    max: float | None = None
    step: float | None = None
    precision: int | None = None
    unit: str | None = None

    def clamp(self, value: float) -> float:
        if self.min is not None:
            value = max(value, self.min)
        if self.max is not None:
            value = min(value, self.max)
        return value

    def normalize(self, value: float) -> float:
        """Clamp into bounds, then round to the configured precision."""
        return round_half_away(self.clamp(value), self.precision)


class SelectField(BaseModel):
    kind: Literal['select'] = 'select'
    default: str
    options: list[SelectOption] = Field(default_factory=list)

    def has_option(self, value: str) -> bool:
        return any(opt.value == value for opt in self.options)


class TextField(BaseModel):
    kind: Literal['text'] = 'text'
    default: str = ''
    placeholder: str | None = None
    secret: bool = False
    max_length: int | None = None


SettingField = Annotated[
    ToggleField | NumberField | SelectField | TextField,
    Field(discriminator='kind'),
]


class SettingEntry(BaseModel):
    key: str
    label: str
    description: str | None = None
    field: SettingField


class SettingGroup(BaseModel):
    key: str
    label: str
    description: str | None = None
    children: list[SettingGroup | SettingEntry] = Field(default_factory=list)

    def iter_entries(self):
        """Yield every entry depth-first, in schema order."""
        for child in self.children:
            if isinstance(child, SettingGroup):
                yield from child.iter_entries()
            else:
                yield child


class SettingsSnapshot(BaseModel):
    """Read-only view of the user settings, taken once per pipeline cycle."""

    model_config = ConfigDict(frozen=True)

    device_name: str = ''
    api_key: str | None = None
    language: str = 'en-US'
    model: str = 'nova-3'
    auto_scroll: bool = True
    compact_mode: bool = False
    accent_color: str = 'blue'
    brightness: float = 1.0

    @property
    def accent_hex(self) -> str:
        """Accent colour scaled by brightness, as ``#rrggbb``."""
        r, g, b = ACCENT_RGB.get(self.accent_color, ACCENT_RGB['blue'])

        def _adjust(component: int) -> int:
            return int(round_half_away(min(max(component * self.brightness, 0.0), 255.0), 0))

        return f'#{_adjust(r):02x}{_adjust(g):02x}{_adjust(b):02x}'


def device_options(device_names: list[str]) -> tuple[str, list[SelectOption]]:
    """Build the device select options; an empty list yields a single placeholder option."""
    if not device_names:
        return NO_DEVICES_VALUE, [SelectOption(value=NO_DEVICES_VALUE, label='No input devices detected')]
    return device_names[0], [SelectOption(value=name, label=name) for name in device_names]


def build_default_schema(device_names: list[str] | None = None) -> SettingGroup:
    default_device, device_opts = device_options(device_names or [])
    return SettingGroup(
        key='root',
        label='Settings',
        children=[
            SettingGroup(
                key='ui',
                label='Interface',
                description='Tune how the terminal interface behaves.',
                children=[
                    SettingGroup(
                        key='ui.behavior',
                        label='Behavior',
                        children=[
                            SettingEntry(
                                key=AUTO_SCROLL_KEY,
                                label='Auto-scroll Transcripts',
                                description='Keep the most recent transcription in view automatically.',
                                field=ToggleField(default=True),
                            ),
                            SettingEntry(
                                key=COMPACT_MODE_KEY,
                                label='Compact Layout',
                                description='Reduce spacing to fit more content on screen.',
                                field=ToggleField(default=False),
                            ),
                        ],
                    ),
                    SettingGroup(
                        key='ui.theme',
                        label='Theme',
                        description='Personalize highlight and accent colors.',
                        children=[
                            SettingEntry(
                                key=ACCENT_COLOR_KEY,
                                label='Accent Color',
                                description='Highlight color used for selections and dialogs.',
                                field=SelectField(
                                    default='blue',
                                    options=[
                                        SelectOption(value='blue', label='Ocean Blue'),
                                        SelectOption(value='cyan', label='Clear Cyan'),
                                        SelectOption(value='magenta', label='Vibrant Magenta'),
                                        SelectOption(value='amber', label='Warm Amber'),
                                        SelectOption(value='green', label='Bright Green'),
                                    ],
                                ),
                            ),
                            SettingEntry(
                                key=BRIGHTNESS_KEY,
                                label='Theme Brightness',
                                description='Scale text brightness for better readability.',
                                field=NumberField(default=1.0, min=0.6, max=1.4, step=0.05, precision=2),
                            ),
                        ],
                    ),
                ],
            ),
            SettingGroup(
                key='audio',
                label='Audio',
                description='Control input capture.',
                children=[
                    SettingEntry(
                        key=DEVICE_KEY,
                        label='Input Device',
                        description='Microphone or input device to capture from.',
                        field=SelectField(default=default_device, options=device_opts),
                    ),
                ],
            ),
            SettingGroup(
                key='transcriber',
                label='Transcriber',
                description='Configure the speech-to-text provider.',
                children=[
                    SettingEntry(
                        key=API_KEY_KEY,
                        label='API Key',
                        description='Overrides the DEEPGRAM_API_KEY environment variable.',
                        field=TextField(
                            default='',
                            placeholder='Falls back to DEEPGRAM_API_KEY',
                            secret=True,
                            max_length=128,
                        ),
                    ),
                    SettingEntry(
                        key=LANGUAGE_KEY,
                        label='Language',
                        description='Primary language hint sent with streaming requests.',
                        field=SelectField(
                            default='en-US',
                            options=[
                                SelectOption(value='en-US', label='English (US)'),
                                SelectOption(value='en-GB', label='English (UK)'),
                                SelectOption(value='en', label='English (Generic)'),
                                SelectOption(value='es', label='Spanish'),
                                SelectOption(value='es-LATAM', label='Spanish (LATAM)'),
                                SelectOption(value='fr', label='French'),
                                SelectOption(value='de', label='German'),
                                SelectOption(value='it', label='Italian'),
                                SelectOption(value='pt-BR', label='Portuguese (Brazil)'),
                                SelectOption(value='hi', label='Hindi'),
                                SelectOption(value='ja', label='Japanese'),
                                SelectOption(value='ko', label='Korean'),
                            ],
                        ),
                    ),
                    SettingEntry(
                        key=MODEL_KEY,
                        label='Model',
                        description='Streaming model; changing it restarts the session.',
                        field=SelectField(
                            default='nova-3',
                            options=[
                                SelectOption(value='nova-3', label='Nova 3'),
                                SelectOption(value='nova-3-general', label='Nova 3 (General)'),
                                SelectOption(value='nova-2', label='Nova 2'),
                                SelectOption(value='nova-2-general', label='Nova 2 (General)'),
                                SelectOption(value='base', label='Base'),
                            ],
                        ),
                    ),
                ],
            ),
        ],
    )
