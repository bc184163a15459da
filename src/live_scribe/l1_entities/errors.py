"""Domain error types."""


class NoInputDevicesError(Exception):
    """Raised when device enumeration yields no input-capable devices."""


class DeviceEnumerationError(Exception):
    """Raised when the audio host cannot list its input devices."""


class InvalidDeviceError(Exception):
    """Raised when an explicit device selection does not match any input device."""


class SessionClosedError(Exception):
    """Raised when audio is pushed into a transcription session that is no longer open."""


class SettingsError(Exception):
    """Base class for settings store failures."""


class UnknownSettingError(SettingsError):
    """Raised when a settings key is not part of the schema."""

    def __init__(self, key: str) -> None:
        super().__init__(f"unknown setting '{key}'")
        self.key = key


class SettingTypeError(SettingsError):
    """Raised when a settings accessor does not match the entry's field kind."""

    def __init__(self, key: str, expected: str) -> None:
        super().__init__(f"setting '{key}' expects type {expected}")
        self.key = key
        self.expected = expected


class SettingValidationError(SettingsError):
    """Raised when a value is rejected by the entry's constraints."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"setting '{key}' failed validation: {message}")
        self.key = key
