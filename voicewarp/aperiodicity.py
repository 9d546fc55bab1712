# Description: Band aperiodicity estimation for analysis frames.
"""Band aperiodicity (noise ratio) estimation."""
from __future__ import annotations

from functools import lru_cache

import numpy as np

from .constants import F0_FLOOR_HZ

__all__ = ["AperiodicityEstimator"]

# (upper edge Hz, noise ratio) for the flat low bands
_BAND_LEVELS = (
    (1000.0, 0.01),
    (3000.0, 0.05),
    (6000.0, 0.15),
)
_HIGH_BAND_START = 0.35
_HIGH_BAND_SPAN = 0.45


@lru_cache(maxsize=16)
def _band_profile(sampleRate: int, fft_size: int) -> np.ndarray:
    bins = fft_size // 2 + 1
    freqs = np.arange(bins, dtype=np.float64) * sampleRate / fft_size
    nyquist = sampleRate * 0.5
    high_edge = _BAND_LEVELS[-1][0]

    if nyquist > high_edge:
        ramp = (freqs - high_edge) / (nyquist - high_edge)
    else:
        ramp = np.zeros_like(freqs)
    profile = _HIGH_BAND_START + np.clip(ramp, 0.0, 1.0) * _HIGH_BAND_SPAN
    for edge, level in reversed(_BAND_LEVELS):
        profile = np.where(freqs < edge, level, profile)
    profile = np.clip(profile, 0.0, 1.0)
    profile.setflags(write=False)
    return profile


class AperiodicityEstimator:
    """Per-bin noise ratio in [0, 1] that rises with frequency.

    Unvoiced frames are fully aperiodic.  Voiced frames follow a fixed band
    prior: nearly periodic below 1 kHz, rising to about 0.8 at Nyquist.
    """

    def __init__(self, sampleRate: int, floor_hz: float = F0_FLOOR_HZ) -> None:
        if sampleRate <= 0:
            raise ValueError('Sample rate must be positive')
        self.sampleRate = int(sampleRate)
        self.floor_hz = float(floor_hz)

    def estimate(self, chunk: np.ndarray, f0: float, fft_size: int) -> np.ndarray:
        if f0 <= self.floor_hz:
            return np.ones(fft_size // 2 + 1, dtype=np.float64)
        return _band_profile(self.sampleRate, int(fft_size)).copy()
