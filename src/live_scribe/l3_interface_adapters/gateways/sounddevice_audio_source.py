"""Gateway: sounddevice input stream and device catalog — implements AudioSource and DeviceCatalog ports."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np
import sounddevice as sd

from live_scribe.l1_entities.audio_constants import SAMPLE_RATE
from live_scribe.l1_entities.errors import DeviceEnumerationError, NoInputDevicesError
from live_scribe.l2_use_cases.device_resolution import resolve_device

log = logging.getLogger('scribe.audio')


def _input_devices() -> list[tuple[int, dict]]:
    """(PortAudio index, info) for every input-capable device, in host order."""
    try:
        devices = sd.query_devices()
    except Exception as e:  # noqa: BLE001 -- PortAudioError and host-specific failures
        raise DeviceEnumerationError(str(e)) from e
    return [(i, dev) for i, dev in enumerate(devices) if dev.get('max_input_channels', 0) > 0]


class SounddeviceDeviceCatalog:
    """Logical index ``i`` is the i-th input-capable PortAudio device."""

    def list_input_devices(self) -> list[str]:
        names = [dev['name'] for _, dev in _input_devices()]
        if not names:
            raise NoInputDevicesError('no input devices found')
        return names


class SounddeviceAudioSource:
    """Wraps sounddevice.InputStream; native blocks go to ``on_block`` on the PortAudio thread."""

    def __init__(self, sample_rate: int = SAMPLE_RATE) -> None:
        self._sample_rate = sample_rate
        self._stream: sd.InputStream | None = None

    def open(
        self,
        device_index: int,
        on_block: Callable[[np.ndarray], None],
        device_name: str | None = None,
    ) -> None:
        """Open *device_name* when it is still present, else the device at *device_index*.

        Host order can change between enumerations (hot-plug), so the name wins over the index.
        """
        inputs = _input_devices()
        names = [dev['name'] for _, dev in inputs]
        if device_name not in names and not 0 <= device_index < len(inputs):
            raise DeviceEnumerationError(f'input device {device_name or device_index} is no longer available')
        position = resolve_device(names, preferred_name=device_name, preferred_index=device_index)
        if device_name is not None and names[position] != device_name:
            log.warning('Input device %r not found; falling back to %r', device_name, names[position])
        host_index, info = inputs[position]
        channels = min(int(info['max_input_channels']), 2)

        def _callback(indata, frames, time_info, status):
            if status:
                log.debug('PortAudio status: %s', status)
            on_block(indata.copy())

        self._stream = sd.InputStream(
            device=host_index,
            samplerate=self._sample_rate,
            channels=channels,
            dtype='float32',
            callback=_callback,
        )
        self._stream.start()
        log.info('Opened input device %r (%d channel(s))', info['name'], channels)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
