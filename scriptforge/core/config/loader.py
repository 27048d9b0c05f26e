"""
Configuration loader — reads scriptforge.yml into a ForgeConfig.

The config file is optional: without one, defaults apply and the
current directory is the project root. With one, its directory is the
project root and relative paths in it resolve against that directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from scriptforge.core.persistence.backends import DEFAULT_STORE_DIR, DEFAULT_STORE_FILE

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "scriptforge.yml"


class ConfigError(Exception):
    """Raised when scriptforge configuration is invalid or missing."""


class ForgeConfig(BaseModel):
    """Validated contents of scriptforge.yml."""

    name: str = ""
    store_path: str = f"{DEFAULT_STORE_DIR}/{DEFAULT_STORE_FILE}"
    generator_modules: list[str] = Field(default_factory=lambda: ["scriptforge.generators"])

    def resolve_store_path(self, root: Path) -> Path:
        path = Path(self.store_path)
        return path if path.is_absolute() else root / path


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for scriptforge.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to scriptforge.yml, or None if not found.
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


def load_config(path: Path) -> ForgeConfig:
    """Load and validate configuration.

    Args:
        path: Path to scriptforge.yml.

    Returns:
        Validated ForgeConfig.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

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

    # The YAML may wrap everything under a "scriptforge" key or be flat
    section = data.get("scriptforge", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected a mapping under 'scriptforge' in {path}")

    try:
        config = ForgeConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config '%s' (%d generator module(s))", config.name, len(config.generator_modules))
    return config


def load_or_default(path: Path | None = None) -> tuple[ForgeConfig, Path]:
    """Load config from ``path`` (or search for it), else use defaults.

    Returns:
        (config, project_root). The root is the config file's directory,
        or the current directory when no config file exists.

    Raises:
        ConfigError: If an explicit path is given but invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return ForgeConfig(), Path.cwd().resolve()
    return load_config(path), path.parent.resolve()
