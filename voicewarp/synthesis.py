# Description: Dual-stream harmonic and noise resynthesis engine.
"""Dual-stream (harmonic + noise) resynthesis."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .constants import DEFAULT_FFT_SIZE, FRAME_PERIOD_MS, MAX_HARMONICS, PEAK_DEFAULT
from .core import _hop_size, _normalize_peak
from .sources import _grain_window, _harmonic_frame, _noise_grain

__all__ = ["SynthesisEngine"]

logger = logging.getLogger(__name__)


class SynthesisEngine:
    """Render audio from per-frame F0, envelope and aperiodicity.

    One engine holds the harmonic phase accumulators, so successive frames
    (and successive calls) continue each harmonic without phase jumps.  Use
    one engine per render; engines are not meant to be shared across threads.
    """

    def __init__(
        self,
        sampleRate: int,
        fft_size: int = DEFAULT_FFT_SIZE,
        *,
        frame_period_ms: float = FRAME_PERIOD_MS,
        peak: float = PEAK_DEFAULT,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if sampleRate <= 0:
            raise ValueError('Sample rate must be positive')
        self.sampleRate = int(sampleRate)
        self.fft_size = int(fft_size)
        self.hop_size = _hop_size(self.sampleRate, frame_period_ms)
        self.peak = float(peak)
        self.rng = rng if rng is not None else np.random.default_rng()
        self._phases = np.zeros(MAX_HARMONICS, dtype=np.float64)

    def synthesize(self, f0: np.ndarray, envelope: np.ndarray, aperiodicity: np.ndarray) -> np.ndarray:
        """Return ``len(f0) * hop_size`` peak-normalised samples."""

        f0 = np.asarray(f0, dtype=np.float64)
        envelope = np.asarray(envelope, dtype=np.float64)
        aperiodicity = np.asarray(aperiodicity, dtype=np.float64)
        frames = f0.size
        if envelope.shape[0] != frames or aperiodicity.shape[0] != frames:
            raise ValueError('F0, envelope and aperiodicity must have the same frame count')
        if frames == 0:
            return np.zeros(0, dtype=np.float64)

        hop = self.hop_size
        harmonic = np.zeros(frames * hop, dtype=np.float64)
        # Noise grains are centred on their frame, so pad one hop on each side.
        noise = np.zeros((frames + 2) * hop, dtype=np.float64)
        window = _grain_window(min(2 * hop, self.fft_size))

        for index in range(frames):
            nxt = min(index + 1, frames - 1)
            start = index * hop
            harmonic[start:start + hop] = _harmonic_frame(
                self._phases,
                float(f0[index]),
                float(f0[nxt]),
                envelope[index],
                envelope[nxt],
                aperiodicity[index],
                aperiodicity[nxt],
                hop,
                self.sampleRate,
                self.fft_size,
            )
            grain = _noise_grain(envelope[index], aperiodicity[index], self.fft_size, window, self.rng)
            noise[start:start + grain.size] += grain

        output = harmonic + noise[hop:hop + frames * hop]
        logger.debug(
            "Synthesis: %d frames, harmonic rms=%.4g, noise rms=%.4g",
            frames,
            float(np.sqrt(np.mean(harmonic ** 2))),
            float(np.sqrt(np.mean(noise ** 2))),
        )
        return _normalize_peak(output, self.peak)
