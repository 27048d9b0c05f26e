"""
Project context — which project directory generators write into.

The root is set ONCE at startup by whichever entry point launches the
app:

    - CLI:    main.py   → context.set_project_root(root)
    - Tests:  fixtures  → context.set_project_root(tmp_path)

Generators resolve their relative output paths against it and fall
back to the current directory when it is unset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_project_root: Optional[Path] = None


def set_project_root(root: Path | None) -> None:
    """Register the project root for the current process (None clears it)."""
    global _project_root
    _project_root = root


def get_project_root() -> Optional[Path]:
    """Return the current project root, or None if not yet set."""
    return _project_root


def resolve_project_root() -> Path:
    """Project root, or the current directory when unset."""
    return _project_root if _project_root is not None else Path.cwd()
