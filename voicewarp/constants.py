# Description: Shared constants for analysis and resynthesis.
"""Shared constants for the analysis and resynthesis modules."""
from __future__ import annotations

import numpy as np

__all__ = [
    "DTYPE",
    "FEATURE_DTYPE",
    "PEAK_DEFAULT",
    "EPS",
    "FRAME_PERIOD_MS",
    "F0_FLOOR_HZ",
    "PITCH_HOP_SIZE",
    "PITCH_WINDOW_SIZE",
    "PITCH_MIN_CHUNK",
    "PITCH_SEARCH_MIN_HZ",
    "PITCH_SEARCH_MAX_HZ",
    "DEFAULT_FFT_SIZE",
    "DEFAULT_SOURCE_BASE_HZ",
    "CACHE_SUFFIX",
    "MAX_HARMONICS",
    "DEFAULT_GENDER",
    "DEFAULT_BREATHINESS",
]

DTYPE = np.float32
FEATURE_DTYPE = np.float64
PEAK_DEFAULT = 0.9
EPS = 1e-12

# Analysis grid
FRAME_PERIOD_MS = 5.0
F0_FLOOR_HZ = 40.0

# Pitch estimator chunking (independent of the frame grid)
PITCH_HOP_SIZE = 256
PITCH_WINDOW_SIZE = 1024
PITCH_MIN_CHUNK = 512
PITCH_SEARCH_MIN_HZ = 50.0
PITCH_SEARCH_MAX_HZ = 500.0

DEFAULT_FFT_SIZE = 4096
DEFAULT_SOURCE_BASE_HZ = 261.63
CACHE_SUFFIX = ".vwf"

MAX_HARMONICS = 512

# Flag defaults (no effect)
DEFAULT_GENDER = 0.0
DEFAULT_BREATHINESS = 50.0
