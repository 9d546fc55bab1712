# Description: Harmonic and noise excitation streams.
"""Harmonic and noise excitation streams for the resynthesis engine."""
from __future__ import annotations

from math import pi

import numpy as np

from .constants import MAX_HARMONICS
from .core import _lerp

__all__ = ["_harmonic_frame", "_noise_grain", "_grain_window"]


def _sample_bins(row: np.ndarray, bin_pos: np.ndarray) -> np.ndarray:
    """Linear interpolation of ``row`` at fractional bin positions."""
    last = row.size - 1
    idx0 = np.clip(np.floor(bin_pos).astype(np.int64), 0, last)
    idx1 = np.minimum(idx0 + 1, last)
    frac = np.clip(bin_pos - idx0, 0.0, 1.0)
    return _lerp(row[idx0], row[idx1], frac)


def _frame_f0_track(f0_a: float, f0_b: float, alpha: np.ndarray) -> np.ndarray:
    """Per-sample F0 across one frame.

    When only one side is voiced its F0 is held so the harmonics keep their
    pitch while the amplitude fades through the aperiodicity interpolation.
    """
    if f0_a > 0.0 and f0_b > 0.0:
        return _lerp(f0_a, f0_b, alpha)
    held = f0_a if f0_a > 0.0 else f0_b
    return np.full(alpha.shape, held, dtype=np.float64)


def _harmonic_frame(
    phases: np.ndarray,
    f0_a: float,
    f0_b: float,
    env_a: np.ndarray,
    env_b: np.ndarray,
    ap_a: np.ndarray,
    ap_b: np.ndarray,
    hop: int,
    sampleRate: int,
    fft_size: int,
) -> np.ndarray:
    """Render ``hop`` samples of the harmonic stream, advancing ``phases`` in place."""

    out = np.zeros(hop, dtype=np.float64)
    if f0_a <= 0.0 and f0_b <= 0.0:
        return out

    nyquist = sampleRate * 0.5
    count = min(MAX_HARMONICS, int(nyquist / max(f0_a, f0_b)))
    if count <= 0:
        return out

    alpha = np.arange(hop, dtype=np.float64) / hop
    f0_track = _frame_f0_track(f0_a, f0_b, alpha)
    k = np.arange(1, count + 1, dtype=np.float64)

    increments = 2.0 * pi * f0_track[:, None] * k[None, :] / sampleRate
    phase = phases[:count][None, :] + np.cumsum(increments, axis=0)
    phases[:count] = np.mod(phase[-1], 2.0 * pi)

    freqs = f0_track[:, None] * k[None, :]
    bin_pos = freqs * fft_size / sampleRate
    weight = alpha[:, None]
    env = _lerp(_sample_bins(env_a, bin_pos), _sample_bins(env_b, bin_pos), weight)
    ap = _lerp(_sample_bins(ap_a, bin_pos), _sample_bins(ap_b, bin_pos), weight)
    power = np.maximum(env * (1.0 - np.clip(ap, 0.0, 1.0)), 0.0)

    # Envelope power is spread over one harmonic spacing; rescale to a sinusoid amplitude.
    amplitude = 2.0 * np.sqrt(power * f0_track[:, None] / sampleRate)
    amplitude = np.where(freqs < nyquist, amplitude, 0.0)
    out[:] = np.sum(amplitude * np.sin(phase), axis=1)
    return out


def _grain_window(length: int) -> np.ndarray:
    """Periodic raised-cosine window; copies spaced ``length / 2`` apart sum to one."""
    n = np.arange(length, dtype=np.float64)
    return 0.5 - 0.5 * np.cos(2.0 * pi * n / length)


def _noise_grain(
    env_row: np.ndarray,
    ap_row: np.ndarray,
    fft_size: int,
    window: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """One windowed noise grain shaped by ``sqrt(envelope * aperiodicity)``."""

    power = np.maximum(env_row * np.clip(ap_row, 0.0, 1.0), 0.0)
    if not np.any(power > 0.0):
        return np.zeros(window.size, dtype=np.float64)
    magnitude = np.sqrt(power * fft_size)
    phase = rng.uniform(0.0, 2.0 * pi, size=magnitude.size)
    grain = np.fft.irfft(magnitude * np.exp(1j * phase), fft_size)
    return grain[:window.size] * window
