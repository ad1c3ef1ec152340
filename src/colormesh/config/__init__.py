"""
colormesh configuration.

- Pydantic-based settings (environment variables, .env files)
- Optional YAML topology file overlaid on the settings
"""

from colormesh.config.loader import ConfigLoader, get_config_path, load_config
from colormesh.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "ConfigLoader",
    "load_config",
    "get_config_path",
]
