"""
Generator base — the contract between the registry and a generator plugin.

Every generator subclasses ``Generator``. The registry creates exactly
one instance per concrete subclass, restores its persisted properties,
and only then calls ``setup()`` if the restored ``enabled`` flag is set.

To create a new generator:
    1. Subclass Generator
    2. Declare configurable properties in ``configurable`` and back each
       with a ``property`` that has both a getter and a setter
    3. Implement ``generate()``
    4. Put the module in ``generator_modules`` in scriptforge.yml
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from scriptforge.core.models.descriptor import Configurable
from scriptforge.core.models.generation import GenerationResult
from scriptforge.core.persistence.preference_store import PreferenceStore

logger = logging.getLogger(__name__)


class ArtifactPathError(Exception):
    """Raised when a generator's output location cannot be used."""

    def __init__(self, path: Path | str | None, reason: str):
        super().__init__(f"Invalid output path '{path}': {reason}")
        self.path = path
        self.reason = reason


def type_name(cls: type) -> str:
    """Fully-qualified name of a generator class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def write_artifact(path: Path, content: str) -> None:
    """Write a generated file.

    The handle is always closed, even when writing fails partway; a
    partially written file is left in place and not retried.

    Raises:
        OSError: If the file cannot be written.
    """
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(content)
        f.flush()
    logger.debug("Wrote %d bytes to %s", len(content.encode("utf-8")), path)


class Generator(ABC):
    """Abstract base class for all generators.

    ``generate()`` never raises: failures are captured in the returned
    ``GenerationResult``.
    """

    configurable: ClassVar[tuple[Configurable, ...]] = (
        Configurable("enabled", bool, tooltip="Whether this generator is active."),
    )

    def __init__(self) -> None:
        self._enabled = False
        self.is_restored = False
        self.last_result: GenerationResult | None = None
        self._store: PreferenceStore | None = None

    # ── Identity ────────────────────────────────────────────────

    @classmethod
    def full_name(cls) -> str:
        return type_name(cls)

    @property
    def display_name(self) -> str:
        return type(self).__name__

    # ── Store access ────────────────────────────────────────────

    def attach(self, store: PreferenceStore) -> None:
        """Give the generator access to the preference store for its own state."""
        self._store = store

    @property
    def store(self) -> PreferenceStore:
        if self._store is None:
            raise RuntimeError(f"{self.display_name} is not attached to a preference store")
        return self._store

    # ── Enabled state ───────────────────────────────────────────

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, state: bool) -> None:
        if state == self._enabled:
            return
        self._enabled = state
        if state:
            self.on_enabled()
        else:
            self.on_disabled()

    # ── Hooks ───────────────────────────────────────────────────

    def setup(self) -> None:
        """Called once after restore, only if enabled."""

    def on_apply(self) -> None:
        """Called once after a batch of property writes from the editor."""

    def on_enabled(self) -> None:
        """Called when ``enabled`` transitions to True."""

    def on_disabled(self) -> None:
        """Called when ``enabled`` transitions to False."""

    @abstractmethod
    def generate(self) -> GenerationResult:
        """Produce the generator's artifact."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} enabled={self.enabled!r}>"


class GeneratorActions(ABC):
    """Optional capability: labeled buttons the host shows for a generator.

    The host does not know what the buttons do. It asks for the labels,
    asks whether each one is currently interactable, and invokes them
    by index.
    """

    @abstractmethod
    def action_labels(self) -> list[str]:
        """Labels of the available actions, in display order."""

    @abstractmethod
    def is_action_interactable(self, index: int) -> bool:
        """Whether the action at ``index`` can be invoked right now."""

    @abstractmethod
    def invoke_action(self, index: int) -> GenerationResult | None:
        """Run the action at ``index``."""
