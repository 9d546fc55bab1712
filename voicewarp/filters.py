# Description: Filter design and the zero-phase post filter chain.
"""Filter design and the zero-phase post filter chain."""
from __future__ import annotations

import logging
from math import cos, pi, sin, sqrt
from typing import Tuple

import numpy as np

from .core import _ensure_array

__all__ = [
    "_highpass_biquad_coeff",
    "_peaking_biquad_coeff",
    "_high_shelf_biquad_coeff",
    "_biquad_process",
    "_zero_phase",
    "_soft_saturate",
    "apply_vocal_enhancement",
]

logger = logging.getLogger(__name__)

Coefficients = Tuple[float, float, float, float, float]

_BUTTERWORTH_Q = 1.0 / sqrt(2.0)
_PRESENCE_CENTER_HZ = 3000.0
_PRESENCE_Q = 0.9
_AIR_SHELF_HZ = 10000.0
_SATURATION_DRIVE = 1.5


def _check_params(freq: float, Q: float, sr: int) -> float:
    """Validate design parameters and return the normalised angular frequency."""
    if sr <= 0:
        raise ValueError('Sample rate must be positive')
    if Q <= 0.0:
        raise ValueError(f'Q must be positive, got {Q}')
    if not 0.0 < freq < sr * 0.5:
        raise ValueError(f'Cutoff {freq}Hz must lie between 0 and Nyquist ({sr * 0.5}Hz)')
    return 2.0 * pi * freq / sr


def _highpass_biquad_coeff(cutoff: float, Q: float, sr: int) -> Coefficients:
    """RBJ high-pass filter coefficients."""
    w0 = _check_params(cutoff, Q, sr)
    alpha = sin(w0) / (2.0 * Q)
    cos_w0 = cos(w0)
    b0 = (1.0 + cos_w0) * 0.5
    b1 = -(1.0 + cos_w0)
    b2 = (1.0 + cos_w0) * 0.5
    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _peaking_biquad_coeff(center: float, Q: float, gain_db: float, sr: int) -> Coefficients:
    """RBJ peaking EQ coefficients."""
    w0 = _check_params(center, Q, sr)
    A = 10.0 ** (gain_db / 40.0)
    alpha = sin(w0) / (2.0 * Q)
    cos_w0 = cos(w0)
    b0 = 1.0 + alpha * A
    b1 = -2.0 * cos_w0
    b2 = 1.0 - alpha * A
    a0 = 1.0 + alpha / A
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha / A
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _high_shelf_biquad_coeff(corner: float, gain_db: float, sr: int, Q: float = _BUTTERWORTH_Q) -> Coefficients:
    """RBJ high-shelf coefficients."""
    w0 = _check_params(corner, Q, sr)
    A = 10.0 ** (gain_db / 40.0)
    alpha = sin(w0) / (2.0 * Q)
    cos_w0 = cos(w0)
    root = 2.0 * sqrt(A) * alpha
    b0 = A * ((A + 1.0) + (A - 1.0) * cos_w0 + root)
    b1 = -2.0 * A * ((A - 1.0) + (A + 1.0) * cos_w0)
    b2 = A * ((A + 1.0) + (A - 1.0) * cos_w0 - root)
    a0 = (A + 1.0) - (A - 1.0) * cos_w0 + root
    a1 = 2.0 * ((A - 1.0) - (A + 1.0) * cos_w0)
    a2 = (A + 1.0) - (A - 1.0) * cos_w0 - root
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _biquad_process(x: np.ndarray, b0: float, b1: float, b2: float, a1: float, a2: float) -> np.ndarray:
    """Process ``x`` with a single biquad filter starting from zero state."""
    x = _ensure_array(x, dtype=np.float64)
    y = np.empty_like(x)
    x1 = x2 = y1 = y2 = 0.0
    for i, xi in enumerate(x.tolist()):
        yi = b0 * xi + b1 * x1 + b2 * x2 - a1 * y1 - a2 * y2
        y[i] = yi
        x2, x1 = x1, xi
        y2, y1 = y1, yi
    return y


def _zero_phase(x: np.ndarray, coeffs: Coefficients) -> np.ndarray:
    """Forward-backward filtering: squared magnitude response, no phase shift."""
    forward = _biquad_process(x, *coeffs)
    return _biquad_process(forward[::-1], *coeffs)[::-1].copy()


def _soft_saturate(x: np.ndarray, drive: float = _SATURATION_DRIVE) -> np.ndarray:
    """Exponential soft clipper ``sign(x) * (1 - exp(-drive * |x|))``."""
    x = _ensure_array(x, dtype=np.float64)
    return np.sign(x) * (1.0 - np.exp(-drive * np.abs(x)))


def apply_vocal_enhancement(
    samples: np.ndarray,
    sampleRate: int,
    *,
    highpass_hz: float = 60.0,
    presence_db: float = 0.0,
    air_db: float = 0.0,
    saturation: bool = False,
) -> np.ndarray:
    """Run the fixed post filter cascade over a whole rendered buffer.

    A rumble high-pass always runs; presence, air and saturation stages are
    enabled by non-zero gains / the ``saturation`` switch.  If any filter
    cannot be designed for this sample rate the input is returned unchanged.
    """

    samples = _ensure_array(samples, dtype=np.float64)
    if samples.size == 0:
        return samples

    try:
        stages = [_highpass_biquad_coeff(highpass_hz, _BUTTERWORTH_Q, sampleRate)]
        if presence_db != 0.0:
            stages.append(_peaking_biquad_coeff(_PRESENCE_CENTER_HZ, _PRESENCE_Q, presence_db, sampleRate))
        if air_db != 0.0:
            stages.append(_high_shelf_biquad_coeff(_AIR_SHELF_HZ, air_db, sampleRate))
    except ValueError as error:
        logger.warning("Skipping vocal enhancement: %s", error)
        return samples

    out = samples
    for coeffs in stages:
        out = _zero_phase(out, coeffs)
    if saturation:
        out = _soft_saturate(out)
    return out
