"""
Topology file loading and merging.

Search order:
1. Explicit path (--config flag)
2. .colormesh/topology.yaml (project root)
3. ~/.colormesh/topology.yaml (user home)
4. Environment-based settings only
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic
import structlog
import yaml

from colormesh.config.settings import Settings, get_settings
from colormesh.core.errors import ConfigurationError

logger = structlog.get_logger()

CONFIG_DIR = ".colormesh"
CONFIG_FILE = "topology.yaml"


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the topology file to use.

    Returns:
        Path to the topology file or None if not found

    Raises:
        ConfigurationError: If an explicit path was given but does not exist
    """
    if explicit_path:
        path = Path(explicit_path)
        if not path.exists():
            raise ConfigurationError(
                f"Topology file not found: {path}", details={"path": str(path)}
            )
        return path

    cwd_config = Path.cwd() / CONFIG_DIR / CONFIG_FILE
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_DIR / CONFIG_FILE
    if home_config.exists():
        return home_config

    return None


class ConfigLoader:
    """
    Loads a topology file and overlays it on environment settings.
    """

    def __init__(self, config_path: Path | None = None, base: Settings | None = None):
        self.config_path = config_path
        self.base = base or get_settings()

    def load(self) -> Settings:
        """Return settings with the topology file applied, if any."""
        if self.config_path is None:
            return self.base
        return self._merge(self._read(self.config_path))

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {path}: {e}", details={"path": str(path)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Topology file must contain a mapping, got {type(data).__name__}",
                details={"path": str(path)},
            )

        # Allow either a flat mapping or one nested under "topology:"
        if isinstance(data.get("topology"), dict):
            data = data["topology"]

        logger.debug("loaded_topology_file", path=str(path), keys=sorted(data))
        return data

    def _merge(self, overrides: dict[str, Any]) -> Settings:
        unknown = sorted(set(overrides) - set(Settings.model_fields))
        if unknown:
            raise ConfigurationError(
                f"Unknown topology settings: {', '.join(unknown)}",
                details={"unknown": unknown},
            )

        merged = {**self.base.model_dump(), **overrides}
        try:
            return Settings(**merged)
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid topology settings: {e}") from e


def load_config(path: str | Path | None = None, base: Settings | None = None) -> Settings:
    """
    Convenience function to load topology settings.

    Args:
        path: Optional explicit topology file path
        base: Settings to overlay on (defaults to environment settings)

    Returns:
        Settings instance
    """
    loader = ConfigLoader(get_config_path(path), base=base)
    return loader.load()
