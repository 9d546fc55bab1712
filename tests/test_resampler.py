"""End-to-end tests for voicewarp/resampler.py and voicewarp/cli.py."""

import json
import os
import wave

import numpy as np
import pytest

from conftest import SAMPLE_RATE, SMALL_FFT
from voicewarp.cli import main
from voicewarp.config import GeneralConfig, RenderConfig
from voicewarp.features import load_features
from voicewarp.io import read_wav
from voicewarp.params import RenderRequest
from voicewarp.plugins import PluginError, VoicePlugin
from voicewarp.resampler import apply_volume, render_file, resample

HOP = int(SAMPLE_RATE * 5.0 / 1000.0)
# 0.5 s source: 100 frames; 10 consonant frames + 60 truncated sustain frames
EXPECTED_FRAMES = 70


def _config(**general) -> RenderConfig:
    return RenderConfig(general=GeneralConfig(fftSize=SMALL_FFT, **general))


def _request(in_file: str, out_file: str = "", **overrides) -> RenderRequest:
    params = dict(
        in_file=in_file,
        out_file=out_file,
        pitch=60,
        velocity=100.0,
        flags="",
        offset=0.0,
        length=300.0,
        consonant=50.0,
        cutoff=0.0,
        volume=100.0,
        modulation=0.0,
        tempo=120.0,
    )
    params.update(overrides)
    return RenderRequest(**params)


class FeatureSpy(VoicePlugin):
    def __init__(self, settings=None) -> None:
        super().__init__(settings)
        self.shapes = None

    def process_features(self, f0, envelope, aperiodicity, sampleRate) -> None:
        self.shapes = (f0.shape, envelope.shape, aperiodicity.shape)


class Mute(VoicePlugin):
    def process_audio(self, samples, sampleRate) -> None:
        samples[:] = 0.0


class Explode(VoicePlugin):
    def process_features(self, f0, envelope, aperiodicity, sampleRate) -> None:
        raise ValueError("bad features")


# ---------------------------------------------------------------------------
# resample()
# ---------------------------------------------------------------------------


class TestResample:
    def test_output_length_follows_timeline(self, voice_wav: str, rng) -> None:
        samples, sr = read_wav(voice_wav)
        out = resample(_request(voice_wav), samples, sr, config=_config(), rng=rng)
        assert out.size == EXPECTED_FRAMES * HOP
        assert np.all(np.isfinite(out))
        assert np.max(np.abs(out)) > 0.1

    def test_empty_source_renders_nothing(self, tmp_path) -> None:
        out = resample(_request(str(tmp_path / "none.wav")), np.zeros(0), SAMPLE_RATE, config=_config())
        assert out.size == 0
        assert not os.path.exists(str(tmp_path / "none.wav.vwf"))

    def test_volume_scales_output(self, voice_wav: str) -> None:
        samples, sr = read_wav(voice_wav)
        config = _config()
        full = resample(_request(voice_wav), samples, sr, config=config, rng=np.random.default_rng(7))
        half = resample(
            _request(voice_wav, volume=50.0), samples, sr, config=config, rng=np.random.default_rng(7)
        )
        np.testing.assert_allclose(half, full * 0.5, atol=1e-9)

    def test_feature_hook_sees_render_frames(self, voice_wav: str) -> None:
        samples, sr = read_wav(voice_wav)
        spy = FeatureSpy()
        resample(_request(voice_wav), samples, sr, config=_config(), plugins=[spy])
        bins = SMALL_FFT // 2 + 1
        assert spy.shapes == ((EXPECTED_FRAMES,), (EXPECTED_FRAMES, bins), (EXPECTED_FRAMES, bins))

    def test_audio_hook_runs_before_volume(self, voice_wav: str) -> None:
        samples, sr = read_wav(voice_wav)
        out = resample(_request(voice_wav), samples, sr, config=_config(), plugins=[Mute()])
        np.testing.assert_array_equal(out, np.zeros(EXPECTED_FRAMES * HOP))

    def test_plugin_failure_aborts(self, voice_wav: str) -> None:
        samples, sr = read_wav(voice_wav)
        with pytest.raises(PluginError):
            resample(_request(voice_wav), samples, sr, config=_config(), plugins=[Explode()])

    def test_repeated_renders_share_cached_features(self, voice_wav: str) -> None:
        samples, sr = read_wav(voice_wav)
        resample(_request(voice_wav), samples, sr, config=_config(), rng=np.random.default_rng(1))
        first = load_features(voice_wav + ".vwf")
        a = resample(_request(voice_wav), samples, sr, config=_config(), rng=np.random.default_rng(2))
        b = resample(_request(voice_wav), samples, sr, config=_config(), rng=np.random.default_rng(3))
        second = load_features(voice_wav + ".vwf")
        np.testing.assert_array_equal(first.f0, second.f0)
        np.testing.assert_array_equal(first.envelope, second.envelope)
        np.testing.assert_array_equal(first.aperiodicity, second.aperiodicity)
        rms_a = float(np.sqrt(np.mean(a ** 2)))
        rms_b = float(np.sqrt(np.mean(b ** 2)))
        assert rms_a == pytest.approx(rms_b, rel=0.2)

    def test_apply_volume_in_place(self) -> None:
        samples = np.ones(3)
        apply_volume(samples, 25.0)
        np.testing.assert_array_equal(samples, np.full(3, 0.25))


# ---------------------------------------------------------------------------
# render_file()
# ---------------------------------------------------------------------------


class TestRenderFile:
    def test_writes_output(self, voice_wav: str, tmp_path) -> None:
        out_path = str(tmp_path / "out.wav")
        written = render_file(_request(voice_wav, out_path), _config())
        assert written == os.path.abspath(out_path)
        data, sr = read_wav(out_path)
        assert sr == SAMPLE_RATE
        assert data.size == EXPECTED_FRAMES * HOP

    def test_empty_source_writes_one_frame(self, tmp_path) -> None:
        source = tmp_path / "empty.wav"
        with wave.open(str(source), "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(SAMPLE_RATE)
        out_path = str(tmp_path / "out.wav")
        render_file(_request(str(source), out_path), _config())
        data, _ = read_wav(out_path)
        np.testing.assert_array_equal(data, [0.0])

    def test_missing_input(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="Failed to load audio"):
            render_file(_request(str(tmp_path / "missing.wav"), str(tmp_path / "out.wav")))
        assert not os.path.exists(str(tmp_path / "out.wav"))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _config_file(tmp_path, **general) -> str:
    path = tmp_path / "config.json"
    payload = {"general": dict({"fftSize": SMALL_FFT}, **general)}
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _argv(in_file: str, out_file: str, *extra: str) -> list:
    return [in_file, out_file, "C4", "100", "g-10", "0", "300", "50", "0", "100", "0", "!120", *extra]


class TestCli:
    def test_successful_render(self, voice_wav: str, tmp_path) -> None:
        out_path = str(tmp_path / "out.wav")
        code = main(_argv(voice_wav, out_path, "AAAA#5#", "--config", _config_file(tmp_path)))
        assert code == 0
        data, _ = read_wav(out_path)
        assert data.size == EXPECTED_FRAMES * HOP
        assert os.path.exists(voice_wav + ".vwf")

    def test_cache_can_be_disabled(self, voice_wav: str, tmp_path) -> None:
        out_path = str(tmp_path / "out.wav")
        config = _config_file(tmp_path, analysisCache=False)
        assert main(_argv(voice_wav, out_path, "--config", config)) == 0
        assert not os.path.exists(voice_wav + ".vwf")

    def test_negative_cutoff_argument(self, voice_wav: str, tmp_path) -> None:
        out_path = str(tmp_path / "out.wav")
        argv = [voice_wav, out_path, "60", "100", "", "0", "200", "0", "-400", "100", "0", "120"]
        assert main(argv + ["--config", _config_file(tmp_path)]) == 0
        data, _ = read_wav(out_path)
        assert data.size == 40 * HOP

    def test_bad_pitch(self, voice_wav: str, tmp_path, capsys) -> None:
        argv = _argv(voice_wav, str(tmp_path / "out.wav"))
        argv[2] = "H4"
        assert main(argv) == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_bad_tempo(self, voice_wav: str, tmp_path, capsys) -> None:
        argv = _argv(voice_wav, str(tmp_path / "out.wav"))
        argv[11] = "0"
        assert main(argv) == 1
        assert "Tempo" in capsys.readouterr().err

    def test_bad_number(self, voice_wav: str, tmp_path, capsys) -> None:
        argv = _argv(voice_wav, str(tmp_path / "out.wav"))
        argv[3] = "fast"
        assert main(argv) == 1
        assert "velocity" in capsys.readouterr().err

    def test_missing_input(self, tmp_path, capsys) -> None:
        out_path = str(tmp_path / "out.wav")
        assert main(_argv(str(tmp_path / "missing.wav"), out_path)) == 1
        assert "Failed to load audio" in capsys.readouterr().err
        assert not os.path.exists(out_path)

    def test_bad_config(self, voice_wav: str, tmp_path, capsys) -> None:
        argv = _argv(voice_wav, str(tmp_path / "out.wav"), "--config", str(tmp_path / "nope.json"))
        assert main(argv) == 1
        assert "Config file not found" in capsys.readouterr().err
