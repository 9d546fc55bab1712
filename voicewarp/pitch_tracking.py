# Description: Autocorrelation F0 tracking with local refinement.
"""Autocorrelation F0 tracker with harmonic-energy refinement."""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .constants import (
    F0_FLOOR_HZ,
    PITCH_HOP_SIZE,
    PITCH_MIN_CHUNK,
    PITCH_SEARCH_MAX_HZ,
    PITCH_SEARCH_MIN_HZ,
    PITCH_WINDOW_SIZE,
)

__all__ = ["PitchEstimator", "align_to_frames"]

logger = logging.getLogger(__name__)

# Candidate offsets (in semitones) scored by the refinement pass.
_REFINE_OFFSETS: Sequence[float] = (-1.0, -0.5, 0.0, 0.5, 1.0)


class PitchEstimator:
    """Chunked autocorrelation pitch tracker.

    Every ``hop_size`` samples a ``window_size`` chunk is searched for the lag
    with the largest raw autocorrelation.  Frames above the voicing floor are
    then refined locally by scoring a handful of nearby candidates.
    """

    def __init__(
        self,
        sampleRate: int,
        *,
        hop_size: int = PITCH_HOP_SIZE,
        window_size: int = PITCH_WINDOW_SIZE,
        floor_hz: float = F0_FLOOR_HZ,
    ) -> None:
        if sampleRate <= 0:
            raise ValueError('Sample rate must be positive')
        self.sampleRate = int(sampleRate)
        self.hop_size = int(hop_size)
        self.window_size = int(window_size)
        self.floor_hz = float(floor_hz)
        self.min_lag = max(1, int(self.sampleRate / PITCH_SEARCH_MAX_HZ))
        self.max_lag = int(self.sampleRate / PITCH_SEARCH_MIN_HZ)

    def estimate(self, x: np.ndarray) -> np.ndarray:
        """Return one F0 value (Hz, 0 = unvoiced) per ``hop_size`` chunk."""

        x = np.asarray(x, dtype=np.float64)
        frame_count = x.size // self.hop_size
        f0 = np.zeros(frame_count, dtype=np.float64)
        for index in range(frame_count):
            f0[index] = self._detect(self._chunk(x, index))
        return self._refine(x, f0)

    def _chunk(self, x: np.ndarray, index: int) -> np.ndarray:
        start = index * self.hop_size
        return x[start:min(start + self.window_size, x.size)]

    def _detect(self, chunk: np.ndarray) -> float:
        n = chunk.size
        if n < PITCH_MIN_CHUNK:
            return 0.0
        stop = min(self.max_lag, n)
        if stop <= self.min_lag:
            return 0.0

        # Linear (non-circular) autocorrelation through a zero-padded FFT.
        spectrum = np.fft.rfft(chunk, 2 * n)
        corr = np.fft.irfft(spectrum * np.conj(spectrum), 2 * n)[:n]
        scores = corr[self.min_lag:stop]
        best = int(np.argmax(scores))
        if scores[best] <= 0.0:
            return 0.0
        return self.sampleRate / float(self.min_lag + best)

    def _refine(self, x: np.ndarray, f0: np.ndarray) -> np.ndarray:
        refined = f0.copy()
        for index, initial in enumerate(f0):
            if initial <= self.floor_hz:
                continue
            chunk = self._chunk(x, index)
            if chunk.size < 2:
                continue
            refined[index] = self._refine_local(chunk, float(initial))
        return refined

    def _refine_local(self, chunk: np.ndarray, initial: float) -> float:
        best_f0 = initial
        max_energy = 0.0
        for offset in _REFINE_OFFSETS:
            candidate = initial * 2.0 ** (offset / 12.0)
            energy = self._harmonic_energy(chunk, candidate)
            if energy > max_energy:
                max_energy = energy
                best_f0 = candidate
        return best_f0

    def _harmonic_energy(self, chunk: np.ndarray, f0: float) -> float:
        """Chunk energy under a raised cosine that peaks once per period of ``f0``."""

        period = self.sampleRate / f0
        n = np.arange(chunk.size, dtype=np.float64)
        weight = 0.5 * (1.0 + np.cos(2.0 * np.pi * n / period))
        return float(np.sum(chunk * chunk * weight))


def align_to_frames(track: np.ndarray, frame_count: int, frame_hop: int, track_hop: int) -> np.ndarray:
    """Map a pitch track onto the analysis frame grid by nearest chunk start."""

    track = np.asarray(track, dtype=np.float64)
    if frame_count <= 0:
        return np.zeros(0, dtype=np.float64)
    if track.size == 0:
        return np.zeros(frame_count, dtype=np.float64)
    starts = np.arange(frame_count, dtype=np.float64) * frame_hop
    indices = np.clip(np.rint(starts / track_hop).astype(np.int64), 0, track.size - 1)
    return track[indices]
