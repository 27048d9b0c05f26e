"""
Preference backends — where the preference document actually lives.

The store only needs two operations from a backend: read the whole
document, and write the whole document. ``JsonFileBackend`` is the
default; ``MemoryBackend`` is used by tests and dry runs.

JSON writes are atomic (write to temp file, then rename) so a crash
mid-save never leaves a truncated preferences file behind.
"""

from __future__ import annotations

import json
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from scriptforge.core.models.preference import PreferenceDocument, PreferenceEntry

logger = logging.getLogger(__name__)

# Default preferences file path (relative to project root)
DEFAULT_STORE_DIR = ".scriptforge"
DEFAULT_STORE_FILE = "preferences.json"


def default_store_path(project_root: Path) -> Path:
    """Get the default preferences file path for a project."""
    return project_root / DEFAULT_STORE_DIR / DEFAULT_STORE_FILE


class PreferenceBackend(ABC):
    """Persistence medium for the preference document."""

    @abstractmethod
    def read(self) -> PreferenceDocument:
        """Load the stored document. Missing storage yields an empty one."""

    @abstractmethod
    def write(self, document: PreferenceDocument) -> None:
        """Durably replace the stored document.

        Raises:
            OSError: If the document could not be written.
        """


class MemoryBackend(PreferenceBackend):
    """Keeps the document in memory. Survives store instances, not processes."""

    def __init__(self, document: PreferenceDocument | None = None):
        self._data = document.model_dump(mode="json") if document else None
        self.write_count = 0

    def read(self) -> PreferenceDocument:
        if self._data is None:
            return PreferenceDocument()
        return PreferenceDocument.model_validate(self._data)

    def write(self, document: PreferenceDocument) -> None:
        self._data = document.model_dump(mode="json")
        self.write_count += 1


class JsonFileBackend(PreferenceBackend):
    """Preference document stored as a JSON file."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> PreferenceDocument:
        """Load the document, skipping entries that fail validation.

        A missing or corrupt file yields an empty document.
        """
        if not self._path.is_file():
            logger.info("No preferences file at %s — starting fresh", self._path)
            return PreferenceDocument()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Corrupt preferences file %s: %s — starting fresh", self._path, e)
            return PreferenceDocument()
        except OSError as e:
            logger.warning("Cannot read preferences from %s: %s — starting fresh", self._path, e)
            return PreferenceDocument()

        if not isinstance(data, dict):
            logger.warning("Preferences file %s is not a JSON object — starting fresh", self._path)
            return PreferenceDocument()

        entries: list[PreferenceEntry] = []
        for index, raw in enumerate(data.get("entries") or []):
            try:
                entries.append(PreferenceEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping invalid preference entry #%d in %s: %s", index, self._path, e)

        document = PreferenceDocument(
            schema_version=data.get("schema_version", 1),
            entries=entries,
        )
        if isinstance(data.get("updated_at"), str):
            document.updated_at = data["updated_at"]
        logger.debug("Loaded %d preferences from %s", len(entries), self._path)
        return document

    def write(self, document: PreferenceDocument) -> None:
        """Write the document (atomic write)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        content = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        _fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=".preferences_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
            tmp.replace(self._path)
            logger.debug("Preferences saved to %s", self._path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
