"""Tests for voicewarp/config.py."""

import json
import logging

import pytest

from voicewarp.config import EnhancementConfig, GeneralConfig, PluginConfig, RenderConfig


def _write(tmp_path, payload) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


class TestDefaults:
    def test_render_config_defaults(self) -> None:
        config = RenderConfig()
        assert config.general == GeneralConfig()
        assert config.general.fftSize == 4096
        assert config.general.voicingSmoothing is True
        assert config.general.analysisCache is True
        assert config.general.level == logging.WARNING
        assert config.enhancement == EnhancementConfig()
        assert config.enhancement.highpassHz == 60.0
        assert config.plugins == ()

    def test_empty_document(self) -> None:
        assert RenderConfig.from_dict({}) == RenderConfig()


class TestFromFile:
    def test_full_document(self, tmp_path) -> None:
        path = _write(
            tmp_path,
            {
                "general": {
                    "logLevel": "debug",
                    "voicingSmoothing": False,
                    "analysisCache": False,
                    "fftSize": 2048,
                },
                "enhancement": {"highpassHz": 80, "presenceDb": 2.5, "airDb": -1, "saturation": True},
                "plugins": [
                    {"name": "echo", "enabled": False, "settings": {"mix": 0.3}},
                    {"name": "gain"},
                ],
            },
        )
        config = RenderConfig.from_file(path)
        assert config.general.logLevel == "DEBUG"
        assert config.general.level == logging.DEBUG
        assert config.general.voicingSmoothing is False
        assert config.general.analysisCache is False
        assert config.general.fftSize == 2048
        assert config.enhancement == EnhancementConfig(80.0, 2.5, -1.0, True)
        assert config.plugins == (
            PluginConfig(name="echo", enabled=False, settings={"mix": "0.3"}),
            PluginConfig(name="gain"),
        )

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(RuntimeError, match="not found"):
            RenderConfig.from_file(str(tmp_path / "absent.json"))

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RuntimeError, match="not valid JSON") as info:
            RenderConfig.from_file(str(path))
        assert isinstance(info.value.__cause__, json.JSONDecodeError)

    @pytest.mark.parametrize("fft_size", [1000, 0, -512, "4096", 4096.0, True])
    def test_fft_size_must_be_power_of_two(self, tmp_path, fft_size) -> None:
        path = _write(tmp_path, {"general": {"fftSize": fft_size}})
        with pytest.raises(RuntimeError, match="fftSize"):
            RenderConfig.from_file(path)

    def test_unknown_log_level(self, tmp_path) -> None:
        with pytest.raises(RuntimeError, match="logLevel"):
            RenderConfig.from_file(_write(tmp_path, {"general": {"logLevel": "LOUD"}}))

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"general": []},
            {"plugins": {"name": "x"}},
            {"plugins": [{"enabled": True}]},
            {"plugins": [{"name": "x", "settings": []}]},
            {"enhancement": {"highpassHz": "high"}},
        ],
    )
    def test_malformed_sections(self, tmp_path, payload) -> None:
        with pytest.raises(RuntimeError):
            RenderConfig.from_file(_write(tmp_path, payload))
