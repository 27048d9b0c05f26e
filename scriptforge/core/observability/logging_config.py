"""
Logging configuration for the scriptforge CLI.

main.py calls ``setup_logging()`` once before any command runs; every
module logs through ``logging.getLogger(__name__)`` and picks it up.

The overall level comes from the CLI flags, then
``SCRIPTFORGE_LOG_LEVEL``, then WARNING. Individual parts of the
pipeline can be turned up on their own with
``SCRIPTFORGE_LOG_COMPONENTS``, for example::

    SCRIPTFORGE_LOG_COMPONENTS="registry=DEBUG,store=INFO"

which traces discovery and restore without drowning the console in
session or synthesis output. ``SCRIPTFORGE_LOG_FILE`` adds a file with
full detail, at ``SCRIPTFORGE_LOG_FILE_LEVEL`` if set.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Short names accepted in SCRIPTFORGE_LOG_COMPONENTS
COMPONENTS: dict[str, str] = {
    "registry": "scriptforge.core.registry",
    "introspection": "scriptforge.core.introspection",
    "session": "scriptforge.core.session",
    "store": "scriptforge.core.persistence",
    "symbols": "scriptforge.core.symbols",
    "synthesis": "scriptforge.core.synthesis",
    "config": "scriptforge.core.config",
    "generators": "scriptforge.generators",
}

_DATEFMT_CONSOLE = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Console formats, keyed by the most verbose level that reaches the console
_CONSOLE_FORMATS = {
    logging.DEBUG: "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s",
    logging.INFO: "%(asctime)s [%(name)s] %(message)s",
}
_FMT_CONSOLE_DEFAULT = "%(levelname)s: %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"

# yaml and pydantic log at DEBUG while parsing config and preference files
_THIRD_PARTY = ("yaml", "pydantic")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
    component_levels: dict[str, int] | None = None,
) -> None:
    """Configure process-wide logging.

    Args:
        level: Overall level name for the console.
        log_file: Optional log file; its directory is created if needed.
        log_file_level: Level for the file. Defaults to ``level``.
        quiet_third_party: Keep yaml and pydantic at WARNING unless the
            overall level is DEBUG.
        component_levels: Logger name to level, as returned by
            ``parse_component_levels()``. Those loggers are turned up
            independently of ``level``.
    """
    overall = parse_level(level)
    components = component_levels or {}

    for name, component_level in components.items():
        logging.getLogger(name).setLevel(component_level)

    # A component turned up past the overall level still has to reach the console.
    console_level = min([overall, *components.values()])
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(overall)

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else overall
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(file_handler)
        root.setLevel(min(overall, file_level))

    if quiet_third_party and overall > logging.DEBUG:
        for name in _THIRD_PARTY:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Level name to its numeric value. Unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING


def parse_component_levels(text: str | None) -> dict[str, int]:
    """Parse ``name=LEVEL`` pairs separated by commas.

    ``name`` is one of ``COMPONENTS`` or a full ``scriptforge.`` logger
    name. Unknown components and levels are dropped with a warning so a
    typo never stops the CLI from starting.
    """
    levels: dict[str, int] = {}
    if not text:
        return levels
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, level_name = item.partition("=")
        name = name.strip()
        logger_name = COMPONENTS.get(name.lower())
        if logger_name is None and (name == "scriptforge" or name.startswith("scriptforge.")):
            logger_name = name
        numeric = logging.getLevelName(level_name.strip().upper()) if sep else None
        if logger_name is None or not isinstance(numeric, int):
            logging.getLogger(__name__).warning("Ignoring log component setting %r", item)
            continue
        levels[logger_name] = numeric
    return levels


def _console_formatter(level: int) -> logging.Formatter:
    for threshold in sorted(_CONSOLE_FORMATS):
        if level <= threshold:
            return logging.Formatter(_CONSOLE_FORMATS[threshold], datefmt=_DATEFMT_CONSOLE)
    return logging.Formatter(_FMT_CONSOLE_DEFAULT)
