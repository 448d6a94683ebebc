"""
Config check use case — validate winstage.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from winstage.adapters.registry import InspectorRegistry
from winstage.core.config.loader import ConfigError, find_config_file, load_config
from winstage.core.exclusions import DEFAULT_EXCLUDED, normalize_name
from winstage.core.models.config import StageConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: StageConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "config": self.config.model_dump(mode="json") if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the stage configuration and report issues.

    Args:
        config_path: Optional explicit path to winstage.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            result.warnings.append("No winstage.yml found, using built-in defaults.")
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Exclusions must be bare file names
    for name in config.exclude:
        if "/" in name or "\\" in name:
            result.errors.append(f"Exclusion '{name}' must be a bare library name, not a path")

    defaults = {normalize_name(n) for n in DEFAULT_EXCLUDED}
    redundant = sorted(n for n in config.exclude if normalize_name(n) in defaults)
    if redundant:
        result.warnings.append(f"Already excluded by default: {', '.join(redundant)}")

    registry = InspectorRegistry.from_config(config)
    inspector = registry.get(config.inspector)
    if inspector is not None and not inspector.is_available():
        result.warnings.append(
            f"Inspector '{config.inspector}' is not available"
            + (f" ({config.objdump} not on PATH)" if config.inspector == "objdump" else "")
        )

    result.valid = len(result.errors) == 0
    return result
