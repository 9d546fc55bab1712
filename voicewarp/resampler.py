# Description: End-to-end render pipeline for one note.
"""Render pipeline: analysis, note-timing warp, resynthesis and post filtering."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from .config import RenderConfig
from .core import midi_to_hz
from .features import load_or_analyze
from .filters import apply_vocal_enhancement
from .io import read_wav, write_wav
from .params import RenderRequest, parse_flags
from .pitch import generate_pitch_curve
from .plugins import VoicePlugin, run_audio_hooks, run_feature_hooks
from .synthesis import SynthesisEngine
from .timeline import NoteTiming, build_render_timeline, resample_features
from .transforms import apply_breathiness, apply_gender, force_unvoiced_aperiodic

__all__ = ["apply_volume", "resample", "render_file"]

logger = logging.getLogger(__name__)


def apply_volume(samples: np.ndarray, volume: float) -> np.ndarray:
    """Scale ``samples`` in place by ``volume`` percent."""
    samples *= volume / 100.0
    return samples


def resample(
    request: RenderRequest,
    samples: np.ndarray,
    sampleRate: int,
    *,
    config: Optional[RenderConfig] = None,
    plugins: Sequence[VoicePlugin] = (),
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Render one note from a source recording.

    Args:
        request: Invocation parameters (pitch, timing, flags, ...).
        samples: Mono source audio.
        sampleRate: Sample rate of ``samples`` and of the output.
        config: Render configuration; defaults apply when omitted.
        plugins: Active plugins, called in order at both hook points.
        rng: Random generator for the noise stream.

    Returns:
        np.ndarray: Rendered float64 samples, empty for an empty source.
    """

    config = config if config is not None else RenderConfig()
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        return np.zeros(0, dtype=np.float64)

    logger.info(
        "Starting resampling: pitch=%.2fHz (MIDI %d), tempo=%s",
        midi_to_hz(request.pitch),
        request.pitch,
        request.tempo,
    )
    flags = parse_flags(request.flags)

    general = config.general
    features = load_or_analyze(
        request.in_file,
        samples,
        sampleRate,
        fft_size=general.fftSize,
        smooth_voicing=general.voicingSmoothing,
        use_cache=general.analysisCache,
    )

    timing = NoteTiming(
        offset=request.offset,
        consonant=request.consonant,
        length=request.length,
        cutoff=request.cutoff,
        velocity=request.velocity,
    )
    timeline = build_render_timeline(features.frame_count, timing)
    frames = resample_features(features, timeline)

    envelope = apply_gender(frames.envelope, flags.gender)
    curve = generate_pitch_curve(
        request.pitch,
        frames.f0_offset,
        frames.voiced,
        tempo=request.tempo,
        pitchbend=request.pitchbend,
        modulation=request.modulation / 100.0,
    )
    f0 = np.array(curve.f0Hz, dtype=np.float64)
    aperiodicity = np.array(apply_breathiness(frames.aperiodicity, flags.breathiness), dtype=np.float64)
    envelope = np.array(envelope, dtype=np.float64)

    run_feature_hooks(plugins, f0, envelope, aperiodicity, sampleRate)
    force_unvoiced_aperiodic(f0, aperiodicity)

    engine = SynthesisEngine(sampleRate, features.fft_size, rng=rng)
    output = engine.synthesize(f0, envelope, aperiodicity)

    run_audio_hooks(plugins, output, sampleRate)
    apply_volume(output, request.volume)

    enhancement = config.enhancement
    output = apply_vocal_enhancement(
        output,
        sampleRate,
        highpass_hz=enhancement.highpassHz,
        presence_db=enhancement.presenceDb,
        air_db=enhancement.airDb,
        saturation=enhancement.saturation,
    )
    logger.info("Resampling complete. Output: %d samples", output.size)
    return output


def render_file(
    request: RenderRequest,
    config: Optional[RenderConfig] = None,
    plugins: Sequence[VoicePlugin] = (),
) -> str:
    """Read ``request.in_file``, render it and write ``request.out_file``.

    The output file is written only after the whole pipeline has succeeded.
    """

    try:
        samples, sampleRate = read_wav(request.in_file)
    except (OSError, ValueError) as error:
        raise ValueError(f"Failed to load audio from {request.in_file}: {error}") from error

    rendered = resample(request, samples, sampleRate, config=config, plugins=plugins)
    return write_wav(request.out_file, rendered, sampleRate)
