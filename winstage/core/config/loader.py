"""
Configuration loader — reads winstage.yml into a StageConfig.

The file is optional.  When none is given and none is found walking
up from the working directory, the built-in defaults apply.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from winstage.core.models.config import StageConfig

logger = logging.getLogger(__name__)

# Default config filename
STAGE_CONFIG_FILE = "winstage.yml"


class ConfigError(Exception):
    """Raised when the stage configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for winstage.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to winstage.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / STAGE_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> StageConfig:
    """Load and validate the stage configuration.

    Args:
        path: Explicit path to winstage.yml. If None, searches upward
            and falls back to defaults when nothing is found.

    Returns:
        Validated StageConfig.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", STAGE_CONFIG_FILE)
            return StageConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading stage config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return StageConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "winstage" key or be flat
    stage_data = data["winstage"] if "winstage" in data else data
    if stage_data is None:
        stage_data = {}
    if not isinstance(stage_data, dict):
        raise ConfigError(f"Expected a mapping under 'winstage' in {path}")

    try:
        config = StageConfig.model_validate(stage_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid stage configuration: {e}") from e

    logger.info(
        "Loaded %s: inspector=%s, library_dir=%s, %d extra exclusions",
        path.name,
        config.inspector,
        config.library_dir,
        len(config.exclude),
    )
    return config
