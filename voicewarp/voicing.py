# Description: Voiced and unvoiced cleanup for raw pitch tracks.
"""Voiced/unvoiced cleanup for raw pitch tracks."""
from __future__ import annotations

import enum
import logging
from math import log
from typing import List

import numpy as np

from .constants import F0_FLOOR_HZ

__all__ = ["VoicingState", "VoicingSmoother"]

logger = logging.getLogger(__name__)

_P_VOICED_STAY = 0.95
_P_UNVOICED_STAY = 0.85
_EMIT_VOICED_MATCH = -0.5
_EMIT_VOICED_MISS = -3.0
_EMIT_UNVOICED_MATCH = -0.05
_EMIT_UNVOICED_HUM = -8.0
_INIT_MATCH = -0.3
_INIT_MISMATCH = -2.0
_MEDIAN_RADIUS = 2

_VOICED = 0
_UNVOICED = 1


class VoicingState(enum.Enum):
    VOICED = "voiced"
    UNVOICED = "unvoiced"


class VoicingSmoother:
    """Two-state HMM voicing decoder followed by gap filling and a median filter.

    Observations are the raw F0 values: a frame at or above ``floor_hz`` looks
    voiced.  Hearing pitch while unvoiced ("humming" on breathy consonants) is
    penalised more heavily than losing pitch while voiced, so single-frame
    detector dropouts inside a note are bridged while longer gaps survive.
    """

    def __init__(self, floor_hz: float = F0_FLOOR_HZ) -> None:
        self.floor_hz = float(floor_hz)
        self._log_trans = np.array([
            [log(_P_VOICED_STAY), log(1.0 - _P_VOICED_STAY)],
            [log(1.0 - _P_UNVOICED_STAY), log(_P_UNVOICED_STAY)],
        ], dtype=np.float64)

    def _emission(self, f0: float) -> np.ndarray:
        if f0 >= self.floor_hz:
            return np.array([_EMIT_VOICED_MATCH, _EMIT_UNVOICED_HUM])
        return np.array([_EMIT_VOICED_MISS, _EMIT_UNVOICED_MATCH])

    def decode(self, f0_raw: np.ndarray) -> List[VoicingState]:
        """Viterbi decoding of the most likely voicing sequence."""

        f0_raw = np.asarray(f0_raw, dtype=np.float64)
        n = f0_raw.size
        if n == 0:
            return []

        scores = np.full((n, 2), -np.inf, dtype=np.float64)
        backptr = np.zeros((n, 2), dtype=np.int64)

        first_voiced = f0_raw[0] >= self.floor_hz
        initial = np.array([
            _INIT_MATCH if first_voiced else _INIT_MISMATCH,
            _INIT_MISMATCH if first_voiced else _INIT_MATCH,
        ])
        scores[0] = initial + self._emission(f0_raw[0])

        for t in range(1, n):
            emit = self._emission(f0_raw[t])
            # candidates[i, j]: arrive in state j from state i
            candidates = scores[t - 1][:, None] + self._log_trans
            best_prev = np.argmax(candidates, axis=0)
            backptr[t] = best_prev
            scores[t] = candidates[best_prev, np.arange(2)] + emit

        path = np.empty(n, dtype=np.int64)
        path[-1] = _VOICED if scores[-1, _VOICED] > scores[-1, _UNVOICED] else _UNVOICED
        for t in range(n - 2, -1, -1):
            path[t] = backptr[t + 1, path[t + 1]]

        states = [VoicingState.VOICED if s == _VOICED else VoicingState.UNVOICED for s in path]
        voiced_count = int(np.sum(path == _VOICED))
        logger.debug("HMM V/UV: %d/%d frames voiced", voiced_count, n)
        return states

    def smooth(self, f0_raw: np.ndarray) -> np.ndarray:
        """Return a cleaned copy of ``f0_raw`` (0 marks unvoiced frames)."""

        f0_raw = np.asarray(f0_raw, dtype=np.float64)
        states = self.decode(f0_raw)
        n = f0_raw.size
        smoothed = np.zeros(n, dtype=np.float64)
        anchors = np.flatnonzero(f0_raw >= self.floor_hz)

        for index, state in enumerate(states):
            if state is VoicingState.UNVOICED:
                continue
            if f0_raw[index] >= self.floor_hz:
                smoothed[index] = f0_raw[index]
                continue
            smoothed[index] = self._fill_gap(f0_raw, anchors, index)

        return self._median_filter(smoothed)

    @staticmethod
    def _fill_gap(f0_raw: np.ndarray, anchors: np.ndarray, index: int) -> float:
        if anchors.size == 0:
            return 0.0
        pos = int(np.searchsorted(anchors, index))
        prev_idx = int(anchors[pos - 1]) if pos > 0 else None
        next_idx = int(anchors[pos]) if pos < anchors.size else None
        if prev_idx is not None and next_idx is not None:
            alpha = (index - prev_idx) / float(next_idx - prev_idx)
            return float(f0_raw[prev_idx] * (1.0 - alpha) + f0_raw[next_idx] * alpha)
        if prev_idx is not None:
            return float(f0_raw[prev_idx])
        return float(f0_raw[next_idx])

    @staticmethod
    def _median_filter(track: np.ndarray) -> np.ndarray:
        """Median filter restricted to each contiguous run of positive values."""

        filtered = track.copy()
        n = track.size
        index = 0
        while index < n:
            if track[index] <= 0.0:
                index += 1
                continue
            run_start = index
            while index < n and track[index] > 0.0:
                index += 1
            run_end = index
            for pos in range(run_start, run_end):
                lo = max(run_start, pos - _MEDIAN_RADIUS)
                hi = min(run_end, pos + _MEDIAN_RADIUS + 1)
                window = np.sort(track[lo:hi])
                filtered[pos] = window[window.size // 2]
        return filtered
