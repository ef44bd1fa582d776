"""
Config check use case — validate drivers.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from driver_updater.core.domain.workspace import is_archive
from driver_updater.core.config.loader import ConfigError, find_config_file, load_config
from driver_updater.core.models.config import UpdaterConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: UpdaterConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "driver_count": len(self.config.drivers) if self.config else 0,
            "drivers": [d.id for d in self.config.drivers] if self.config else [],
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the updater configuration and report issues.

    Without a drivers.yml the built-in table is checked, with a warning.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    result.config_path = config_path

    try:
        config = load_config(config_path, search=False)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if config_path is None:
        result.warnings.append("No drivers.yml found. Using the built-in driver table.")

    # Semantic checks
    for spec in config.drivers:
        if not spec.file_name:
            result.errors.append(f"Driver '{spec.id}': cannot derive a file name from {spec.download_url}")
        elif not is_archive(spec.file_name):
            result.warnings.append(
                f"Driver '{spec.id}': {spec.file_name} is not an archive and will not be extracted."
            )
        if not spec.install_command.split():
            result.errors.append(f"Driver '{spec.id}': install_command is empty")
        rule = spec.eligibility
        if rule is not None and not rule.classes and not rule.prefixes:
            if rule.policy == "allow":
                result.warnings.append(
                    f"Driver '{spec.id}': allow-list is empty, the driver applies to no host."
                )
            else:
                result.warnings.append(f"Driver '{spec.id}': deny-list is empty.")

    result.valid = len(result.errors) == 0
    return result
