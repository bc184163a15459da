"""Native sample blocks to the fixed wire format: mono little-endian int16."""

from __future__ import annotations

import numpy as np

_INT16_SCALE = 32767.0


def _as_float(block: np.ndarray) -> np.ndarray:
    if block.dtype == np.int16:
        return block.astype(np.float32) / 32768.0
    if block.dtype == np.uint16:
        return (block.astype(np.float32) - 32768.0) / 32768.0
    return block.astype(np.float32, copy=False)


def to_pcm16(block: np.ndarray) -> bytes:
    """Convert a ``(frames, channels)`` or flat block to mono 16-bit PCM bytes.

    Stereo frames are averaged. Any other channel layout passes through
    flattened, so only one- and two-channel streams should be opened.
    """
    samples = _as_float(np.asarray(block))
    if samples.ndim == 2 and samples.shape[1] == 2:
        samples = samples.mean(axis=1)
    else:
        samples = samples.reshape(-1)
    samples = np.clip(samples, -1.0, 1.0)
    return (samples * _INT16_SCALE).astype('<i2').tobytes()
