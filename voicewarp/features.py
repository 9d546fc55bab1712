# Description: Feature sets, whole-signal analysis and the sidecar cache.
"""Per-file analysis results and their sidecar cache."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .aperiodicity import AperiodicityEstimator
from .constants import (
    CACHE_SUFFIX,
    DEFAULT_FFT_SIZE,
    DEFAULT_SOURCE_BASE_HZ,
    F0_FLOOR_HZ,
    FEATURE_DTYPE,
    FRAME_PERIOD_MS,
)
from .core import _frames_per_second, _hop_size
from .envelope import SpectralEnvelopeResolver
from .pitch_tracking import PitchEstimator, align_to_frames
from .voicing import VoicingSmoother

__all__ = [
    "FeatureSet",
    "analysis_path",
    "analyze_signal",
    "estimate_source_base_hz",
    "save_features",
    "load_features",
    "load_or_analyze",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSet:
    """Columnar analysis frames of one source file.

    ``envelope`` and ``aperiodicity`` are ``(frames, fft_size // 2 + 1)``
    arrays aligned with ``f0``.
    """

    f0: np.ndarray
    envelope: np.ndarray
    aperiodicity: np.ndarray
    source_base_hz: float
    fft_size: int

    def __post_init__(self) -> None:
        frames = self.f0.shape[0]
        bins = self.fft_size // 2 + 1
        if self.envelope.shape != (frames, bins) or self.aperiodicity.shape != (frames, bins):
            raise ValueError(
                f"Feature arrays are misaligned: f0={self.f0.shape}, "
                f"envelope={self.envelope.shape}, aperiodicity={self.aperiodicity.shape}, "
                f"expected {bins} bins"
            )

    @property
    def frame_count(self) -> int:
        return int(self.f0.shape[0])

    def duration_seconds(self, frame_period_ms: float = FRAME_PERIOD_MS) -> float:
        return self.frame_count / _frames_per_second(frame_period_ms)


def analysis_path(source: str) -> str:
    """Sidecar cache path: the source file name with a fixed suffix appended."""
    return os.fspath(source) + CACHE_SUFFIX


def estimate_source_base_hz(f0: np.ndarray, floor_hz: float = F0_FLOOR_HZ) -> float:
    """Median of the voiced F0 values (upper median for even counts)."""
    voiced = np.sort(np.asarray(f0, dtype=np.float64)[np.asarray(f0) > floor_hz])
    if voiced.size == 0:
        return DEFAULT_SOURCE_BASE_HZ
    return float(voiced[voiced.size // 2])


def analyze_signal(
    x: np.ndarray,
    sampleRate: int,
    *,
    fft_size: int = DEFAULT_FFT_SIZE,
    smooth_voicing: bool = True,
    frame_period_ms: float = FRAME_PERIOD_MS,
) -> FeatureSet:
    """Run pitch, envelope and aperiodicity analysis over a whole signal."""

    x = np.asarray(x, dtype=np.float64)
    hop = _hop_size(sampleRate, frame_period_ms)
    frame_count = x.size // hop
    bins = fft_size // 2 + 1

    estimator = PitchEstimator(sampleRate)
    f0 = align_to_frames(estimator.estimate(x), frame_count, hop, estimator.hop_size)
    if smooth_voicing:
        f0 = VoicingSmoother().smooth(f0)

    resolver = SpectralEnvelopeResolver(sampleRate)
    ap_estimator = AperiodicityEstimator(sampleRate)
    envelope = np.zeros((frame_count, bins), dtype=FEATURE_DTYPE)
    aperiodicity = np.zeros((frame_count, bins), dtype=FEATURE_DTYPE)
    for index in range(frame_count):
        start = index * hop
        chunk = x[start:min(start + fft_size, x.size)]
        envelope[index] = resolver.resolve(chunk, float(f0[index]), fft_size)
        aperiodicity[index] = ap_estimator.estimate(chunk, float(f0[index]), fft_size)

    base_hz = estimate_source_base_hz(f0)
    logger.info(
        "Analysis complete. Frames: %d, FFT size: %d, Median F0: %.2fHz",
        frame_count,
        fft_size,
        base_hz,
    )
    return FeatureSet(
        f0=f0.astype(FEATURE_DTYPE, copy=False),
        envelope=envelope,
        aperiodicity=aperiodicity,
        source_base_hz=base_hz,
        fft_size=int(fft_size),
    )


def save_features(path: str, features: FeatureSet) -> None:
    with open(path, 'wb') as fh:
        np.savez(
            fh,
            f0=features.f0,
            envelope=features.envelope,
            aperiodicity=features.aperiodicity,
            source_base_hz=np.float64(features.source_base_hz),
            fft_size=np.int64(features.fft_size),
        )


def load_features(path: str) -> FeatureSet:
    with np.load(path, allow_pickle=False) as data:
        return FeatureSet(
            f0=np.array(data['f0'], dtype=FEATURE_DTYPE),
            envelope=np.array(data['envelope'], dtype=FEATURE_DTYPE),
            aperiodicity=np.array(data['aperiodicity'], dtype=FEATURE_DTYPE),
            source_base_hz=float(data['source_base_hz']),
            fft_size=int(data['fft_size']),
        )


def load_or_analyze(
    source: str,
    x: np.ndarray,
    sampleRate: int,
    *,
    fft_size: int = DEFAULT_FFT_SIZE,
    smooth_voicing: bool = True,
    use_cache: bool = True,
    cache_path: Optional[str] = None,
) -> FeatureSet:
    """Return cached features for ``source`` or analyse ``x`` and cache them.

    The cache is keyed on the path only: an existing sidecar is trusted even
    if the source audio changed after it was written.
    """

    path = cache_path if cache_path is not None else analysis_path(source)
    if use_cache and os.path.exists(path):
        logger.info("Loading analysis data from %s", path)
        return load_features(path)

    logger.info("Running analysis for %s", source)
    features = analyze_signal(x, sampleRate, fft_size=fft_size, smooth_voicing=smooth_voicing)
    if use_cache:
        save_features(path, features)
        logger.debug("Analysis cached at %s", path)
    return features
