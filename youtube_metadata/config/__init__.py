"""Configuration helpers for the metadata plugin."""

from .loader import HostPaths, IdType, PluginConfig, get_plugin_config, load_plugin_config

__all__ = [
    "HostPaths",
    "IdType",
    "PluginConfig",
    "get_plugin_config",
    "load_plugin_config",
]
