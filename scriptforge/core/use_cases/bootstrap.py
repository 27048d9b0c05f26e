"""
Bootstrap use case — build a ready-to-use registry handle.

Entry points call ``open_registry()`` once per process (or per
session), use the returned handle, and close it with ``shutdown()``
(or a ``with`` block) so every property value is persisted.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

from scriptforge.core.config.loader import ForgeConfig, load_or_default
from scriptforge.core.context import set_project_root
from scriptforge.core.persistence.backends import JsonFileBackend
from scriptforge.core.persistence.preference_store import PreferenceStore
from scriptforge.core.registry import GeneratorRegistry, known_generator_types

logger = logging.getLogger(__name__)


def import_generator_modules(modules: list[str]) -> list[str]:
    """Import the configured generator modules so their classes register.

    Returns:
        Error messages for modules that failed to import.
    """
    errors = []
    for name in modules:
        try:
            importlib.import_module(name)
        except Exception as e:
            message = f"Cannot import generator module '{name}': {type(e).__name__}: {e}"
            logger.error(message)
            errors.append(message)
    return errors


def open_registry(
    config_path: Path | None = None,
    config: ForgeConfig | None = None,
    project_root: Path | None = None,
) -> GeneratorRegistry:
    """Load config, open the preference store and discover generators.

    Args:
        config_path: Explicit scriptforge.yml (default: search upward).
        config: Already-loaded config; skips file loading.
        project_root: Root to use with an already-loaded config.

    Raises:
        ConfigError: If an explicit config file is invalid.
    """
    if config is None:
        config, project_root = load_or_default(config_path)
    elif project_root is None:
        project_root = Path.cwd().resolve()

    set_project_root(project_root)

    store_path = config.resolve_store_path(project_root)
    store = PreferenceStore(JsonFileBackend(store_path))

    import_generator_modules(config.generator_modules)

    types = known_generator_types(config.generator_modules)
    registry = GeneratorRegistry(store, generator_types=types)
    registry.discover_and_setup()
    logger.debug("Registry opened for %s (store: %s)", project_root, store_path)
    return registry
