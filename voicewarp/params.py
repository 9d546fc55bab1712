# Description: Parsing of positional render arguments and flags.
"""Parsing helpers for the positional render invocation."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from .constants import DEFAULT_BREATHINESS, DEFAULT_GENDER

__all__ = [
    "Flags",
    "RenderRequest",
    "parse_pitch",
    "parse_tempo",
    "parse_flags",
]

logger = logging.getLogger(__name__)

_NOTE_SEMITONES: Dict[str, int] = {
    'C': 0,
    'D': 2,
    'E': 4,
    'F': 5,
    'G': 7,
    'A': 9,
    'B': 11,
}
_FLAG_NUMBER_CHARS = set('0123456789.-+')


@dataclass(frozen=True)
class Flags:
    """Tone modifiers decoded from the flag string."""

    gender: float = DEFAULT_GENDER
    breathiness: float = DEFAULT_BREATHINESS


@dataclass(frozen=True)
class RenderRequest:
    """The ordered parameter tuple of one resampler invocation.

    Time values are milliseconds; ``velocity``, ``volume`` and ``modulation``
    are percentages.
    """

    in_file: str
    out_file: str
    pitch: int
    velocity: float = 100.0
    flags: str = ''
    offset: float = 0.0
    length: float = 0.0
    consonant: float = 0.0
    cutoff: float = 0.0
    volume: float = 100.0
    modulation: float = 0.0
    tempo: float = 120.0
    pitchbend: Optional[str] = None


def parse_pitch(text: str) -> int:
    """Parse a MIDI note number or a note name such as ``C#4`` or ``Bb3``."""

    if not text:
        raise ValueError("Pitch string cannot be empty")
    text = text.strip()
    if not text:
        raise ValueError("Invalid pitch format")

    try:
        return int(text)
    except ValueError:
        pass

    note = text[0].upper()
    if note not in _NOTE_SEMITONES:
        raise ValueError(f"Invalid note: {text[0]}")
    semitone = _NOTE_SEMITONES[note]

    rest = text[1:]
    if rest[:1] == '#':
        semitone += 1
        rest = rest[1:]
    elif rest[:1] in ('b', 'B'):
        semitone -= 1
        rest = rest[1:]

    if not rest:
        raise ValueError("Octave number required")
    try:
        octave = int(rest)
    except ValueError as error:
        raise ValueError(f"Invalid octave: {rest}") from error
    return (octave + 1) * 12 + semitone


def parse_tempo(text: str) -> float:
    """Parse a tempo value, accepting an optional leading ``!``."""

    text = text.strip()
    if text.startswith('!'):
        text = text[1:]
    try:
        tempo = float(text)
    except ValueError as error:
        raise ValueError(f"Invalid tempo value '{text}': {error}") from error
    if not math.isfinite(tempo) or tempo <= 0.0:
        raise ValueError(f"Tempo must be positive, got {tempo}")
    return tempo


def _read_number(text: str, start: int) -> tuple:
    end = start
    while end < len(text) and text[end] in _FLAG_NUMBER_CHARS:
        end += 1
    token = text[start:end]
    try:
        return float(token), end
    except ValueError:
        return None, end


def parse_flags(text: Optional[str]) -> Flags:
    """Decode ``g``/``G`` (gender) and ``b``/``B`` (breathiness) flags.

    Unknown characters are skipped and missing flags keep their defaults.
    """

    gender = DEFAULT_GENDER
    breathiness = DEFAULT_BREATHINESS
    text = (text or '').replace('/', '')

    index = 0
    while index < len(text):
        char = text[index]
        if char in ('g', 'G'):
            value, index = _read_number(text, index + 1)
            if value is not None:
                gender = value
        elif char in ('b', 'B'):
            value, index = _read_number(text, index + 1)
            if value is not None:
                breathiness = value
        else:
            index += 1

    flags = Flags(gender=gender, breathiness=breathiness)
    logger.debug("Flags parsed: gender=%s, breathiness=%s", flags.gender, flags.breathiness)
    return flags
