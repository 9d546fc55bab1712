# Description: Note-timing warp onto source frame positions.
"""Note-timing warp: map note parameters onto source frame positions."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .constants import FRAME_PERIOD_MS
from .core import _frames_per_second, _lerp
from .features import FeatureSet

__all__ = [
    "NoteTiming",
    "RenderFrames",
    "velocity_rate",
    "build_render_timeline",
    "resample_features",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteTiming:
    """Timing part of a render request (milliseconds, velocity in percent).

    A negative ``cutoff`` is measured from the offset, a non-negative one from
    the end of the sample.
    """

    offset: float = 0.0
    consonant: float = 0.0
    length: float = 0.0
    cutoff: float = 0.0
    velocity: float = 100.0


@dataclass(frozen=True)
class RenderFrames:
    """Feature arrays resampled along a render timeline."""

    f0_offset: np.ndarray
    envelope: np.ndarray
    aperiodicity: np.ndarray
    voiced: np.ndarray

    @property
    def frame_count(self) -> int:
        return int(self.f0_offset.shape[0])


def velocity_rate(velocity: float) -> float:
    """Consonant rate multiplier: 100% velocity plays the consonant as recorded."""
    return 2.0 ** (1.0 - velocity / 100.0)


def build_render_timeline(
    frame_count: int,
    timing: NoteTiming,
    *,
    frame_period_ms: float = FRAME_PERIOD_MS,
) -> np.ndarray:
    """Return fractional source-frame indices, one per render frame.

    The consonant region is only rate-scaled by velocity.  The sustain region
    is cut from the source when the sample is long enough and linearly
    stretched over the requested length otherwise.
    """

    if frame_count <= 0:
        return np.zeros(0, dtype=np.float64)

    fps = _frames_per_second(frame_period_ms)
    feature_seconds = frame_count / fps

    start = timing.offset / 1000.0
    consonant_end = start + timing.consonant / 1000.0
    if timing.cutoff < 0.0:
        end = start - timing.cutoff / 1000.0
    else:
        end = feature_seconds - timing.cutoff / 1000.0

    consonant_count = max(0, int(velocity_rate(timing.velocity) * timing.consonant / frame_period_ms))
    consonant_times = np.linspace(start, consonant_end, consonant_count, endpoint=False)

    length_seconds = timing.length / 1000.0
    sustain_count = max(0, int(round(length_seconds * fps)))
    if end - consonant_end > length_seconds:
        first = int(round(consonant_end * fps))
        last = min(first + sustain_count, frame_count)
        sustain_times = np.arange(max(first, 0), max(last, 0), dtype=np.float64) / fps
        mode = "truncate"
    else:
        sustain_times = np.linspace(consonant_end, end, sustain_count, endpoint=True)
        mode = "stretch"

    timeline = np.concatenate((consonant_times, sustain_times)) * fps
    timeline = np.clip(timeline, 0.0, frame_count - 1.0)
    logger.debug(
        "Render timeline: %d consonant + %d sustain frames (%s)",
        consonant_times.size,
        sustain_times.size,
        mode,
    )
    return timeline


def resample_features(features: FeatureSet, timeline: np.ndarray) -> RenderFrames:
    """Linearly interpolate every feature stream at the timeline positions.

    Pitch is resampled as the semitone deviation from the source median so
    that the note pitch can be applied on top of it.  Voicing is taken from
    the nearest source frame.
    """

    timeline = np.asarray(timeline, dtype=np.float64)
    bins = features.fft_size // 2 + 1
    if timeline.size == 0 or features.frame_count == 0:
        empty_rows = np.zeros((0, bins), dtype=np.float64)
        return RenderFrames(np.zeros(0), empty_rows, empty_rows.copy(), np.zeros(0, dtype=bool))

    last = features.frame_count - 1
    f0 = features.f0
    safe_f0 = np.where(f0 > 0.0, f0, features.source_base_hz)
    f0_offset = np.where(f0 > 0.0, 12.0 * np.log2(safe_f0 / features.source_base_hz), 0.0)

    idx0 = np.clip(np.floor(timeline).astype(np.int64), 0, last)
    idx1 = np.minimum(idx0 + 1, last)
    weight = timeline - idx0
    row_weight = weight[:, None]

    nearest = np.clip(np.floor(timeline + 0.5).astype(np.int64), 0, last)
    return RenderFrames(
        f0_offset=_lerp(f0_offset[idx0], f0_offset[idx1], weight),
        envelope=_lerp(features.envelope[idx0], features.envelope[idx1], row_weight),
        aperiodicity=_lerp(features.aperiodicity[idx0], features.aperiodicity[idx1], row_weight),
        voiced=f0[nearest] != 0.0,
    )
