"""Public API for shared Urchin configuration utilities."""

from .loader import DEFAULT_CONFIG_PATH, load_config, load_settings
from .models import ClientSettings, LoggingSettings, UrchinSettings

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ClientSettings",
    "LoggingSettings",
    "UrchinSettings",
    "load_config",
    "load_settings",
]
