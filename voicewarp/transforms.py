# Description: Flag-driven tone transforms on resampled frames.
"""Flag-driven tone transforms applied to resampled feature frames."""
from __future__ import annotations

import numpy as np

from .constants import DEFAULT_BREATHINESS, DEFAULT_GENDER
from .core import _clamp01, _lerp

__all__ = ["apply_gender", "apply_breathiness", "force_unvoiced_aperiodic"]


def apply_gender(envelope: np.ndarray, gender: float) -> np.ndarray:
    """Warp every envelope row along frequency by ``2 ** (gender / 120)``.

    Positive values read the envelope from higher bins (formants move down),
    negative values from lower bins.  Positions past either edge hold the
    edge value.
    """

    envelope = np.asarray(envelope, dtype=np.float64)
    if gender == DEFAULT_GENDER or envelope.size == 0:
        return envelope
    bins = envelope.shape[-1]
    shift = 2.0 ** (gender / 120.0)
    source = np.clip(np.arange(bins, dtype=np.float64) * shift, 0.0, bins - 1.0)
    idx0 = np.floor(source).astype(np.int64)
    idx1 = np.minimum(idx0 + 1, bins - 1)
    frac = source - idx0
    return _lerp(envelope[..., idx0], envelope[..., idx1], frac)


def apply_breathiness(aperiodicity: np.ndarray, breathiness: float) -> np.ndarray:
    """Mix aperiodicity toward 1.0 by ``breathiness / 100`` (50 leaves it alone)."""

    aperiodicity = np.asarray(aperiodicity, dtype=np.float64)
    if breathiness == DEFAULT_BREATHINESS:
        return aperiodicity
    mix = _clamp01(breathiness / 100.0)
    return _lerp(aperiodicity, 1.0, mix)


def force_unvoiced_aperiodic(f0: np.ndarray, aperiodicity: np.ndarray) -> None:
    """Set aperiodicity to 1 in place on every frame whose F0 is 0."""

    aperiodicity[np.asarray(f0) == 0.0] = 1.0
