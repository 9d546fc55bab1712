# Description: JSON render configuration loading and saving.
"""JSON render configuration."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from .constants import DEFAULT_FFT_SIZE

__all__ = [
    "GeneralConfig",
    "EnhancementConfig",
    "PluginConfig",
    "RenderConfig",
]

CONFIG_FILE_ENCODING = "utf-8"
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, Mapping):
        raise RuntimeError(f"Config section '{key}' must be an object")
    return value


@dataclass(frozen=True)
class GeneralConfig:
    logLevel: str = "WARNING"
    voicingSmoothing: bool = True
    analysisCache: bool = True
    fftSize: int = DEFAULT_FFT_SIZE

    @property
    def level(self) -> int:
        return getattr(logging, self.logLevel)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeneralConfig":
        level = str(data.get("logLevel", cls.logLevel)).strip().upper()
        if level not in _LOG_LEVELS:
            raise RuntimeError(f"Unknown logLevel: {level}")
        fft_size = data.get("fftSize", cls.fftSize)
        if isinstance(fft_size, bool) or not isinstance(fft_size, int) or fft_size <= 0 or fft_size & (fft_size - 1):
            raise RuntimeError(f"fftSize must be a positive power of two, got {fft_size!r}")
        return cls(
            logLevel=level,
            voicingSmoothing=bool(data.get("voicingSmoothing", cls.voicingSmoothing)),
            analysisCache=bool(data.get("analysisCache", cls.analysisCache)),
            fftSize=fft_size,
        )


@dataclass(frozen=True)
class EnhancementConfig:
    """Post filter chain settings."""

    highpassHz: float = 60.0
    presenceDb: float = 0.0
    airDb: float = 0.0
    saturation: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnhancementConfig":
        try:
            return cls(
                highpassHz=float(data.get("highpassHz", cls.highpassHz)),
                presenceDb=float(data.get("presenceDb", cls.presenceDb)),
                airDb=float(data.get("airDb", cls.airDb)),
                saturation=bool(data.get("saturation", cls.saturation)),
            )
        except (TypeError, ValueError) as error:
            raise RuntimeError(f"Invalid enhancement settings: {error}") from error


@dataclass(frozen=True)
class PluginConfig:
    name: str
    enabled: bool = True
    settings: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PluginConfig":
        if not isinstance(data, Mapping):
            raise RuntimeError("Plugin entries must be objects")
        name = str(data.get("name", "")).strip()
        if not name:
            raise RuntimeError("Plugin entry is missing a name")
        settings = data.get("settings", {})
        if not isinstance(settings, Mapping):
            raise RuntimeError(f"Settings of plugin '{name}' must be an object")
        return cls(
            name=name,
            enabled=bool(data.get("enabled", True)),
            settings={str(key): str(value) for key, value in settings.items()},
        )


@dataclass(frozen=True)
class RenderConfig:
    """Everything a render needs besides the invocation parameters."""

    general: GeneralConfig = field(default_factory=GeneralConfig)
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)
    plugins: Tuple[PluginConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderConfig":
        if not isinstance(data, Mapping):
            raise RuntimeError("Config root must be an object")
        plugins = data.get("plugins", [])
        if not isinstance(plugins, list):
            raise RuntimeError("Config 'plugins' must be a list")
        return cls(
            general=GeneralConfig.from_dict(_section(data, "general")),
            enhancement=EnhancementConfig.from_dict(_section(data, "enhancement")),
            plugins=tuple(PluginConfig.from_dict(entry) for entry in plugins),
        )

    @classmethod
    def from_file(cls, path: str) -> "RenderConfig":
        """Build a configuration from a JSON file.

        Args:
            path (str): Path to the configuration JSON file.

        Returns:
            RenderConfig: Parsed configuration; missing keys keep their defaults.
        """
        try:
            with open(path, "r", encoding=CONFIG_FILE_ENCODING) as config_file:
                data = json.load(config_file)
        except FileNotFoundError as error:
            raise RuntimeError(f"Config file not found: {path}") from error
        except json.JSONDecodeError as error:
            raise RuntimeError(f"Config file is not valid JSON: {path}") from error
        return cls.from_dict(data)
