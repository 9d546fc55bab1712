# Description: Plugin extension points and entry point discovery.
"""Feature- and sample-domain extension points and their discovery."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .config import PluginConfig

__all__ = [
    "ENTRY_POINT_GROUP",
    "PluginMetadata",
    "VoicePlugin",
    "PluginError",
    "discover_plugins",
    "load_plugins",
    "unload_plugins",
    "run_feature_hooks",
    "run_audio_hooks",
]

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "voicewarp.plugins"

PluginFactory = Callable[[Mapping[str, str]], "VoicePlugin"]


@dataclass(frozen=True)
class PluginMetadata:
    name: str
    version: str = "0.0.0"
    author: str = ""
    description: str = ""


class PluginError(RuntimeError):
    """A plugin hook failed; the render is aborted."""

    def __init__(self, plugin_name: str, message: str) -> None:
        super().__init__(f"Plugin '{plugin_name}' failed: {message}")
        self.plugin_name = plugin_name


class VoicePlugin:
    """Base class for render plugins.

    Subclasses override either hook.  ``process_features`` receives the final
    render-frame arrays and ``process_audio`` the synthesised buffer; both
    modify their arrays in place.
    """

    metadata = PluginMetadata(name="unnamed")

    def __init__(self, settings: Optional[Mapping[str, str]] = None) -> None:
        self.settings: Dict[str, str] = dict(settings or {})

    def on_load(self) -> None:
        pass

    def on_unload(self) -> None:
        pass

    def process_features(
        self,
        f0: np.ndarray,
        envelope: np.ndarray,
        aperiodicity: np.ndarray,
        sampleRate: int,
    ) -> None:
        pass

    def process_audio(self, samples: np.ndarray, sampleRate: int) -> None:
        pass


def discover_plugins() -> Dict[str, Callable[[], PluginFactory]]:
    """Map entry point names in :data:`ENTRY_POINT_GROUP` to their loaders.

    Entries are loaded lazily by :func:`load_plugins`; here only the entry
    point objects are collected.
    """

    return {entry.name: entry.load for entry in entry_points(group=ENTRY_POINT_GROUP)}


def _instantiate(loader: Callable[[], PluginFactory], settings: Mapping[str, str]) -> VoicePlugin:
    factory = loader()
    plugin = factory(settings)
    if not isinstance(plugin, VoicePlugin):
        raise TypeError(f"{type(plugin).__name__} is not a VoicePlugin")
    plugin.on_load()
    return plugin


def load_plugins(
    configs: Iterable[PluginConfig],
    *,
    registry: Optional[Mapping[str, Callable[[], PluginFactory]]] = None,
) -> List[VoicePlugin]:
    """Instantiate every enabled plugin, in configuration order.

    ``registry`` maps plugin names to zero-argument loaders returning a
    factory; it defaults to the installed entry points.  A plugin that is
    missing or fails to load is logged and left out.
    """

    available = discover_plugins() if registry is None else dict(registry)
    active: List[VoicePlugin] = []
    for config in configs:
        if not config.enabled:
            logger.debug("Plugin %s is disabled", config.name)
            continue
        loader = available.get(config.name)
        if loader is None:
            logger.warning("Plugin %s is not installed; skipping", config.name)
            continue
        try:
            plugin = _instantiate(loader, config.settings)
        except Exception as error:
            logger.warning("Failed to load plugin %s: %s", config.name, error)
            continue
        meta = plugin.metadata
        logger.info("Loaded plugin %s %s", meta.name, meta.version)
        active.append(plugin)
    return active


def unload_plugins(plugins: Sequence[VoicePlugin]) -> None:
    for plugin in plugins:
        try:
            plugin.on_unload()
        except Exception as error:
            logger.warning("Plugin %s failed to unload: %s", plugin.metadata.name, error)


def run_feature_hooks(
    plugins: Sequence[VoicePlugin],
    f0: np.ndarray,
    envelope: np.ndarray,
    aperiodicity: np.ndarray,
    sampleRate: int,
) -> None:
    for plugin in plugins:
        try:
            plugin.process_features(f0, envelope, aperiodicity, sampleRate)
        except Exception as error:
            raise PluginError(plugin.metadata.name, str(error)) from error


def run_audio_hooks(plugins: Sequence[VoicePlugin], samples: np.ndarray, sampleRate: int) -> None:
    for plugin in plugins:
        try:
            plugin.process_audio(samples, sampleRate)
        except Exception as error:
            raise PluginError(plugin.metadata.name, str(error)) from error
