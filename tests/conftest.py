"""
Shared fixtures for the test suite.

Synthetic signals are generated on the fly; WAV fixtures are written into
pytest's ``tmp_path`` so no audio files are checked in.
"""

import wave

import numpy as np
import pytest

from voicewarp.io import write_wav

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SAMPLE_RATE = 22050
"""Sample rate used by every synthetic fixture."""

TONE_HZ = 220.0
"""Fundamental of the sine fixture (A3)."""

SMALL_FFT = 1024
"""FFT size that keeps analysis-heavy tests fast."""


# ---------------------------------------------------------------------------
# Signal helpers
# ---------------------------------------------------------------------------


def make_sine(
    freq: float = TONE_HZ,
    seconds: float = 1.0,
    sample_rate: int = SAMPLE_RATE,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Return a pure sine as float64."""
    t = np.arange(int(seconds * sample_rate), dtype=np.float64) / sample_rate
    return amplitude * np.sin(2.0 * np.pi * freq * t)


def make_voice(seconds: float = 1.0, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Return a crude voiced tone: a harmonic stack with a 1/k roll-off."""
    t = np.arange(int(seconds * sample_rate), dtype=np.float64) / sample_rate
    signal = np.zeros_like(t)
    for k in range(1, 11):
        signal += np.sin(2.0 * np.pi * TONE_HZ * k * t) / k
    return 0.4 * signal / np.max(np.abs(signal))


def write_stereo_wav(path, left: np.ndarray, right: np.ndarray, sample_rate: int = SAMPLE_RATE) -> None:
    """Write a 16-bit interleaved stereo WAV file."""
    frames = np.empty(left.size * 2, dtype="<i2")
    frames[0::2] = (np.clip(left, -1.0, 1.0) * 32767.0).astype("<i2")
    frames[1::2] = (np.clip(right, -1.0, 1.0) * 32767.0).astype("<i2")
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(2)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames.tobytes())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sine() -> np.ndarray:
    return make_sine()


@pytest.fixture
def voice() -> np.ndarray:
    return make_voice()


@pytest.fixture
def voice_wav(tmp_path) -> str:
    """Half a second of the voiced tone written as 16-bit PCM."""
    path = tmp_path / "voice.wav"
    write_wav(str(path), make_voice(seconds=0.5), SAMPLE_RATE)
    return str(path)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
