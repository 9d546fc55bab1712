# Description: WAV reading and writing helpers.
"""Audio I/O helpers."""
from __future__ import annotations

import logging
import os
import wave
from typing import Tuple

import numpy as np

from .core import _ensure_array

__all__ = ["read_wav", "write_wav"]

logger = logging.getLogger(__name__)

_PCM_SCALES = {
    1: 128.0,
    2: 32768.0,
    3: 8388608.0,
    4: 2147483648.0,
}


def _decode_frames(raw: bytes, sample_width: int) -> np.ndarray:
    if sample_width == 1:
        data = np.frombuffer(raw, dtype=np.uint8).astype(np.float64) - 128.0
    elif sample_width == 2:
        data = np.frombuffer(raw, dtype="<i2").astype(np.float64)
    elif sample_width == 3:
        bytes3 = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        data = bytes3[:, 0] | (bytes3[:, 1] << 8) | (bytes3[:, 2] << 16)
        data = np.where(data >= 1 << 23, data - (1 << 24), data).astype(np.float64)
    elif sample_width == 4:
        data = np.frombuffer(raw, dtype="<i4").astype(np.float64)
    else:
        raise ValueError(f"Unsupported sample width: {sample_width} bytes")
    return data / _PCM_SCALES[sample_width]


def read_wav(path: str) -> Tuple[np.ndarray, int]:
    """Read a PCM WAV file and return mono float64 samples and the sample rate.

    Multi-channel files are mixed down by averaging the channels.
    """
    logger.info("Loading audio from %s", path)
    try:
        with wave.open(path, 'rb') as wf:
            channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            sample_rate = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as error:
        raise ValueError(f"Failed to decode audio file {path}: {error}") from error

    data = _decode_frames(raw, sample_width)
    if channels > 1:
        usable = (data.size // channels) * channels
        data = data[:usable].reshape(-1, channels).mean(axis=1)
    logger.info("Loaded %d samples at %dHz", data.size, sample_rate)
    return data, sample_rate


def write_wav(path: str, audio: np.ndarray, sampleRate: int = 44100) -> str:
    """Write ``audio`` to ``path`` as 16-bit PCM mono WAV.

    An empty ``audio`` still produces a valid file holding one silent frame.
    """
    audio = _ensure_array(audio, dtype=np.float64)
    if audio.size == 0:
        audio = np.zeros(1, dtype=np.float64)
    data16 = (np.clip(audio, -1.0, 1.0) * 32767.0).astype('<i2')
    logger.debug("Writing WAV: channels=1, bits=16, rate=%d, frames=%d", sampleRate, data16.size)
    with wave.open(path, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(int(sampleRate))
        wf.writeframes(data16.tobytes())
    return os.path.abspath(path)
