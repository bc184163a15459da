"""Port: audio capture source and device enumeration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import numpy as np

from live_scribe.l2_use_cases.audio_channel import AudioChannel


class AudioSource(Protocol):
    """One physical input device stream, delivering native sample blocks to a callback."""

    def open(
        self,
        device_index: int,
        on_block: Callable[[np.ndarray], None],
        device_name: str | None = None,
    ) -> None:
        """Open the device and start streaming. ``on_block`` runs on the audio host thread.

        ``device_name`` is matched against a fresh enumeration before ``device_index`` is used.
        """
        ...

    def close(self) -> None:
        """Stop and release the device stream."""
        ...


class DeviceCatalog(Protocol):
    """Enumerates input devices. Indices are not stable across calls."""

    def list_input_devices(self) -> list[str]:
        """Return input device names in host order. Raises NoInputDevicesError when empty."""
        ...


class CaptureService(Protocol):
    """Owns capture threads. ``stop`` and ``restart`` join the outgoing thread before returning."""

    @property
    def paused(self) -> bool: ...

    def set_paused(self, paused: bool) -> None: ...

    def spawn(self, device_index: int, channel: AudioChannel, device_name: str | None = None) -> Any: ...

    def stop(self, handle: Any, timeout: float | None = None) -> None: ...

    def restart(
        self,
        handle: Any,
        device_index: int,
        channel: AudioChannel | None = None,
        device_name: str | None = None,
    ) -> Any: ...
