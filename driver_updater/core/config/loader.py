"""
Configuration loader — reads drivers.yml into an UpdaterConfig.

The file is optional. Without one the built-in AWS driver table and
default settings are used. A file may override settings only, drivers
only, or both.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from driver_updater.core.data.drivers import DEFAULT_DRIVERS
from driver_updater.core.models.config import UpdaterConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "drivers.yml"


class ConfigError(Exception):
    """Raised when the updater configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for drivers.yml starting from the given directory, walking up.

    Returns:
        Path to drivers.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def default_config() -> UpdaterConfig:
    return UpdaterConfig(drivers=list(DEFAULT_DRIVERS))


def load_config(path: Path | None = None, search: bool = True) -> UpdaterConfig:
    """Load and validate the updater configuration.

    Args:
        path: Explicit path to drivers.yml. Must exist when given.
        search: When no path is given, look for drivers.yml upward from
            the cwd before falling back to the defaults.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using built-in driver table", CONFIG_FILE)
        return default_config()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading updater config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    if "drivers" not in data:
        data["drivers"] = [spec.model_dump() for spec in DEFAULT_DRIVERS]

    try:
        config = UpdaterConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid updater configuration: {e}") from e

    if not config.drivers:
        raise ConfigError(f"No drivers configured in {path}")

    logger.info("Loaded %d drivers from %s", len(config.drivers), path)
    return config
