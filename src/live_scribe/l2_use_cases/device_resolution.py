"""Map persisted or explicit device selections onto the current enumeration.

Enumeration indices are not stable across calls, so a stored selection is
matched by name first and only falls back to an index.
"""

from __future__ import annotations

from live_scribe.l1_entities.errors import InvalidDeviceError, NoInputDevicesError


def resolve_device(
    device_names: list[str],
    preferred_name: str | None = None,
    preferred_index: int | None = None,
) -> int:
    """Pick a device index: exact name match, then a valid index, then the first device."""
    if not device_names:
        raise NoInputDevicesError('no input devices found')
    if preferred_name and preferred_name in device_names:
        return device_names.index(preferred_name)
    if preferred_index is not None and 0 <= preferred_index < len(device_names):
        return preferred_index
    return 0


def parse_device_selection(selection: str, device_names: list[str]) -> int:
    """Resolve an explicit ``--device`` value (index or exact name). Raises InvalidDeviceError."""
    if not device_names:
        raise NoInputDevicesError('no input devices found')
    if selection in device_names:
        return device_names.index(selection)
    try:
        index = int(selection)
    except ValueError:
        raise InvalidDeviceError(f'no input device named {selection!r}') from None
    if not 0 <= index < len(device_names):
        raise InvalidDeviceError(f'device index {index} out of range (0-{len(device_names) - 1})')
    return index
