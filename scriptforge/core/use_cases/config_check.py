"""
Config check use case — validate scriptforge.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from scriptforge.core.config.loader import ConfigError, ForgeConfig, find_config_file, load_config
from scriptforge.core.use_cases.bootstrap import import_generator_modules


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ForgeConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "name": self.config.name if self.config else None,
            "store_path": self.config.store_path if self.config else None,
            "generator_modules": self.config.generator_modules if self.config else [],
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate configuration and report issues.

    Args:
        config_path: Optional explicit path to scriptforge.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()

    if config_path is None:
        result.errors.append("No scriptforge.yml found.")
        return result

    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    if not config.generator_modules:
        result.warnings.append("No generator modules configured. Nothing will be discovered.")

    dupes = {m for m in config.generator_modules if config.generator_modules.count(m) > 1}
    if dupes:
        result.warnings.append(f"Duplicate generator modules: {', '.join(sorted(dupes))}")

    result.errors.extend(import_generator_modules(config.generator_modules))

    store_path = config.resolve_store_path(config_path.parent)
    if store_path.suffix != ".json":
        result.warnings.append(f"Store path does not end in .json: {config.store_path}")
    if store_path.exists() and not store_path.is_file():
        result.errors.append(f"Store path is not a file: {config.store_path}")

    result.valid = len(result.errors) == 0
    return result
