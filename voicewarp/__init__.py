# Description: Package exports for the voicewarp resampler.
"""Analysis/resynthesis voice resampler for UTAU-style note rendering."""
from __future__ import annotations

__version__ = "0.1.0"

from .constants import DEFAULT_FFT_SIZE, FRAME_PERIOD_MS, PEAK_DEFAULT
from .config import EnhancementConfig, GeneralConfig, PluginConfig, RenderConfig
from .core import hz_to_midi, midi_to_hz
from .features import FeatureSet, analyze_signal, load_features, load_or_analyze, save_features
from .io import read_wav, write_wav
from .params import Flags, RenderRequest, parse_flags, parse_pitch, parse_tempo
from .pitch import PitchCurve, decode_pitchbend, encode_pitchbend, generate_pitch_curve
from .pitch_tracking import PitchEstimator
from .plugins import PluginError, PluginMetadata, VoicePlugin, load_plugins
from .resampler import render_file, resample
from .synthesis import SynthesisEngine
from .timeline import NoteTiming, build_render_timeline, resample_features
from .voicing import VoicingSmoother

__all__ = [
    "DEFAULT_FFT_SIZE",
    "FRAME_PERIOD_MS",
    "PEAK_DEFAULT",
    "GeneralConfig",
    "EnhancementConfig",
    "PluginConfig",
    "RenderConfig",
    "midi_to_hz",
    "hz_to_midi",
    "FeatureSet",
    "analyze_signal",
    "save_features",
    "load_features",
    "load_or_analyze",
    "read_wav",
    "write_wav",
    "Flags",
    "RenderRequest",
    "parse_pitch",
    "parse_tempo",
    "parse_flags",
    "PitchCurve",
    "decode_pitchbend",
    "encode_pitchbend",
    "generate_pitch_curve",
    "PitchEstimator",
    "VoicingSmoother",
    "PluginError",
    "PluginMetadata",
    "VoicePlugin",
    "load_plugins",
    "NoteTiming",
    "build_render_timeline",
    "resample_features",
    "SynthesisEngine",
    "resample",
    "render_file",
]
