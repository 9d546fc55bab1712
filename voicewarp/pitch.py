# Description: Pitch-bend decoding and render-frame pitch curves.
"""Pitch-bend codec and render-frame pitch curve generation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .constants import FRAME_PERIOD_MS
from .core import _frames_per_second


@dataclass(frozen=True)
class PitchCurve:
    """Per-render-frame pitch in MIDI note numbers and Hertz (0 = unvoiced)."""

    timeSeconds: np.ndarray
    midi: np.ndarray
    f0Hz: np.ndarray


_B64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_B64_VALUES = {char: index for index, char in enumerate(_B64_ALPHABET)}
_PITCHBEND_SCALE = 100.0
_PITCHBEND_MAX = 2047
_PITCHBEND_MIN = -2048
_MIN_RUN_TO_COMPRESS = 2


def points_per_second(tempo: float) -> float:
    """Pitch-bend sample rate: 96 points per beat."""
    return 8.0 * tempo / 5.0


def decode_pitchbend(encoded: Optional[str]) -> np.ndarray:
    """Decode a ``#``-separated base64 pitch-bend string into semitone offsets.

    Even segments hold two base64 characters per 12-bit two's-complement
    sample (hundredths of a semitone); odd segments are run-length counts
    repeating the previous sample.
    """

    values = []
    if not encoded:
        return np.zeros(0, dtype=np.float64)

    for index, segment in enumerate(encoded.split('#')):
        if index % 2 == 0:
            for pos in range(0, len(segment) - 1, 2):
                raw = (_B64_VALUES.get(segment[pos], 0) << 6) | _B64_VALUES.get(segment[pos + 1], 0)
                if raw > _PITCHBEND_MAX:
                    raw -= 4096
                values.append(raw / _PITCHBEND_SCALE)
        else:
            try:
                repeats = int(segment)
            except ValueError:
                continue
            if values and repeats > 0:
                values.extend([values[-1]] * repeats)

    return np.asarray(values, dtype=np.float64)


def _encode_sample(value: int) -> str:
    raw = value & 0xFFF
    return _B64_ALPHABET[raw >> 6] + _B64_ALPHABET[raw & 0x3F]


def encode_pitchbend(semitones: Iterable[float]) -> str:
    """Encode semitone offsets, compressing runs of repeated samples."""

    quantized = [
        int(np.clip(round(float(v) * _PITCHBEND_SCALE), _PITCHBEND_MIN, _PITCHBEND_MAX))
        for v in semitones
    ]
    parts = []
    index = 0
    while index < len(quantized):
        value = quantized[index]
        run = 1
        while index + run < len(quantized) and quantized[index + run] == value:
            run += 1
        repeats = run - 1
        if repeats >= _MIN_RUN_TO_COMPRESS:
            parts.append(_encode_sample(value) + f"#{repeats}#")
        else:
            parts.append(_encode_sample(value) * run)
        index += run
    return ''.join(parts)


def sample_pitchbend(bend: np.ndarray, timeSeconds: np.ndarray, tempo: float) -> np.ndarray:
    """Interpolate the bend curve at ``timeSeconds``, holding its last value."""

    timeSeconds = np.asarray(timeSeconds, dtype=np.float64)
    if bend.size == 0:
        return np.zeros_like(timeSeconds)
    positions = timeSeconds * points_per_second(tempo)
    return np.interp(positions, np.arange(bend.size, dtype=np.float64), bend)


def midi_to_hz_array(midi: np.ndarray) -> np.ndarray:
    """Vectorised MIDI-to-Hertz conversion."""

    return 440.0 * np.power(2.0, (np.asarray(midi, dtype=np.float64) - 69.0) / 12.0)


def generate_pitch_curve(
    basePitchMidi: float,
    f0Offset: np.ndarray,
    voiced: np.ndarray,
    *,
    tempo: float,
    pitchbend: Optional[str] = None,
    modulation: float = 0.0,
    framePeriodMs: float = FRAME_PERIOD_MS,
) -> PitchCurve:
    """Combine note pitch, pitch bend and scaled source deviation per frame.

    Args:
        basePitchMidi: Target note as a MIDI number.
        f0Offset: Source pitch deviation from its median, in semitones.
        voiced: Per-frame voicing; unvoiced frames get 0 Hz.
        tempo: Tempo in BPM, fixes the bend curve's points per second.
        pitchbend: Encoded pitch-bend string, if any.
        modulation: Fraction (0..1) of the source deviation to keep.
        framePeriodMs: Render frame period.
    """

    f0Offset = np.asarray(f0Offset, dtype=np.float64)
    voiced = np.asarray(voiced, dtype=bool)
    frameCount = f0Offset.size
    timeAxis = np.arange(frameCount, dtype=np.float64) / _frames_per_second(framePeriodMs)

    bend = sample_pitchbend(decode_pitchbend(pitchbend), timeAxis, tempo)
    midi = float(basePitchMidi) + bend + f0Offset * float(modulation)
    frequencyTrack = np.where(voiced, midi_to_hz_array(midi), 0.0)
    return PitchCurve(timeAxis, midi, frequencyTrack)


__all__ = [
    "PitchCurve",
    "points_per_second",
    "decode_pitchbend",
    "encode_pitchbend",
    "sample_pitchbend",
    "midi_to_hz_array",
    "generate_pitch_curve",
]
