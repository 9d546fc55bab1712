# Description: Core numeric helpers shared across the analysis and synthesis modules.
"""Core numeric helpers shared across the analysis and synthesis modules."""
from __future__ import annotations

from functools import lru_cache
from math import log2

import numpy as np

from .constants import DTYPE, EPS, FRAME_PERIOD_MS, PEAK_DEFAULT

__all__ = [
    "_clamp",
    "_clamp01",
    "_lerp",
    "_ensure_array",
    "_normalize_peak",
    "_hop_size",
    "_frames_per_second",
    "_hann_window",
    "midi_to_hz",
    "hz_to_midi",
]


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _clamp01(value: float) -> float:
    return _clamp(float(value), 0.0, 1.0)


def _lerp(a, b, t):
    """Linear interpolation that works on scalars and arrays alike."""
    return a * (1.0 - t) + b * t


def _ensure_array(x: np.ndarray, *, dtype=DTYPE) -> np.ndarray:
    """Ensure ``x`` is an ndarray of the requested dtype."""
    x = np.asarray(x)
    if x.dtype != dtype:
        return x.astype(dtype, copy=False)
    return x


def _normalize_peak(sig: np.ndarray, target: float = PEAK_DEFAULT) -> np.ndarray:
    """Apply peak normalisation (guarding against silence)."""
    sig = _ensure_array(sig, dtype=np.float64)
    peak = float(np.max(np.abs(sig), initial=0.0) + EPS)
    scale = target / peak if peak > 0 else 1.0
    return sig * scale


def _hop_size(sampleRate: int, frame_period_ms: float = FRAME_PERIOD_MS) -> int:
    """Number of samples per analysis/render frame (floored)."""
    return max(1, int(sampleRate * frame_period_ms / 1000.0))


def _frames_per_second(frame_period_ms: float = FRAME_PERIOD_MS) -> float:
    return 1000.0 / frame_period_ms


def midi_to_hz(midi: float) -> float:
    """Convert a (fractional) MIDI note number to Hertz."""
    return 440.0 * 2.0 ** ((midi - 69.0) / 12.0)


def hz_to_midi(hz: float) -> float:
    """Convert Hertz to a fractional MIDI note number."""
    return 69.0 + 12.0 * log2(max(hz, EPS) / 440.0)


# Tail chunks produce one new length per file, so only the most recent are kept.
_WINDOW_CACHE_SIZE = 64


@lru_cache(maxsize=_WINDOW_CACHE_SIZE)
def _build_hann_window(length: int) -> np.ndarray:
    if length == 1:
        window = np.ones(1, dtype=np.float64)
    else:
        window = np.hanning(length).astype(np.float64)
    window.setflags(write=False)
    return window


def _hann_window(length: int) -> np.ndarray:
    """Return a read-only symmetric Hann window of ``length`` samples."""
    if length <= 0:
        return np.zeros(0, dtype=np.float64)
    return _build_hann_window(int(length))
