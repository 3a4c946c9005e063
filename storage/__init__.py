"""Data persistence components."""

from .device_registry import DeviceRegistry
from .settings import AppConfig, load_config, save_config

__all__ = [
    "AppConfig",
    "DeviceRegistry",
    "load_config",
    "save_config",
]
