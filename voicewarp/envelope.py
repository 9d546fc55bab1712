# Description: Pitch-synchronous spectral envelope analysis.
"""Pitch-synchronous spectral envelope analysis."""
from __future__ import annotations

import numpy as np

from .constants import EPS, F0_FLOOR_HZ
from .core import _hann_window

__all__ = ["SpectralEnvelopeResolver"]

_SMOOTHING_KNEE_HZ = 5000.0
_PERIODS_PER_WINDOW = 3.0


class SpectralEnvelopeResolver:
    """Estimate a smooth power envelope per analysis frame.

    Voiced frames use a window spanning three pitch periods and are then
    smoothed along frequency with a moving average whose width grows with
    the square of frequency: low bands keep their formant detail while the
    sparse, noisier upper harmonics are averaged over a wider span.  Both the
    fixed and the pitch-synchronous window normalise by the window energy so
    their outputs are directly comparable.
    """

    def __init__(self, sampleRate: int, floor_hz: float = F0_FLOOR_HZ) -> None:
        if sampleRate <= 0:
            raise ValueError('Sample rate must be positive')
        self.sampleRate = int(sampleRate)
        self.floor_hz = float(floor_hz)

    def resolve(self, chunk: np.ndarray, f0: float, fft_size: int) -> np.ndarray:
        """Return a non-negative envelope row of ``fft_size // 2 + 1`` bins."""

        chunk = np.asarray(chunk, dtype=np.float64)[:fft_size]
        bins = fft_size // 2 + 1
        if chunk.size == 0:
            return np.zeros(bins, dtype=np.float64)

        if f0 <= self.floor_hz:
            window = _hann_window(chunk.size)
            return self._power_spectrum(chunk * window, window, fft_size)

        window_len = int(_PERIODS_PER_WINDOW * self.sampleRate / f0)
        used = max(1, min(window_len, chunk.size))
        pos = (np.arange(used, dtype=np.float64) + 0.5) / max(window_len, 1)
        window = 0.5 * (1.0 - np.cos(2.0 * np.pi * pos))
        power = self._power_spectrum(chunk[:used] * window, window, fft_size)

        base_width = int(round(f0 * fft_size / self.sampleRate))
        if base_width <= 1:
            return power
        return self._smooth(power, base_width, fft_size)

    @staticmethod
    def _power_spectrum(frame: np.ndarray, window: np.ndarray, fft_size: int) -> np.ndarray:
        energy = float(np.sum(window * window))
        if energy <= EPS:
            return np.zeros(fft_size // 2 + 1, dtype=np.float64)
        spectrum = np.fft.rfft(frame, fft_size)
        return (spectrum.real ** 2 + spectrum.imag ** 2) / energy

    def _smooth(self, power: np.ndarray, base_width: int, fft_size: int) -> np.ndarray:
        bins = power.size
        freqs = np.arange(bins, dtype=np.float64) * self.sampleRate / fft_size
        widths = np.rint(base_width * (1.0 + (freqs / _SMOOTHING_KNEE_HZ) ** 2)).astype(np.int64)
        half = widths // 2
        index = np.arange(bins)
        lo = np.clip(index - half, 0, bins)
        hi = np.clip(index + half + 1, 0, bins)
        cumulative = np.concatenate(([0.0], np.cumsum(power)))
        smoothed = (cumulative[hi] - cumulative[lo]) / (hi - lo)
        return np.maximum(smoothed, 0.0)
