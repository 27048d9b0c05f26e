"""
Shared test fixtures and sample generators.
"""

from pathlib import Path

import pytest

from scriptforge.core.context import set_project_root
from scriptforge.core.models.descriptor import Configurable, StringDecorator
from scriptforge.core.models.generation import GenerationResult
from scriptforge.core.models.preference import PreferenceDocument
from scriptforge.core.persistence.backends import MemoryBackend, PreferenceBackend
from scriptforge.core.persistence.preference_store import PreferenceStore
from scriptforge.generators.base import Generator, GeneratorActions


class SampleGenerator(Generator):
    """Generator with one property of each kind plus some that get filtered."""

    configurable = (
        Configurable("title", str, tooltip="Display title.", decorator=StringDecorator("<", ">")),
        Configurable("count", int),
        Configurable("ratio", float),
        Configurable("read_only", str),
        Configurable("items", list),
        Configurable("missing", str),
    )

    def __init__(self) -> None:
        super().__init__()
        self._title = "default"
        self._count = 1
        self._ratio = 0.5
        self._items: list[str] = []
        self.setup_calls = 0
        self.setup_saw: tuple | None = None
        self.apply_calls = 0
        self.enabled_calls = 0
        self.disabled_calls = 0

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = value

    @property
    def count(self) -> int:
        return self._count

    @count.setter
    def count(self, value: int) -> None:
        self._count = value

    @property
    def ratio(self) -> float:
        return self._ratio

    @ratio.setter
    def ratio(self, value: float) -> None:
        self._ratio = value

    @property
    def read_only(self) -> str:
        return "fixed"

    @property
    def items(self) -> list:
        return self._items

    @items.setter
    def items(self, value: list) -> None:
        self._items = value

    def setup(self) -> None:
        self.setup_calls += 1
        self.setup_saw = (self.enabled, self.title, self.count)

    def on_apply(self) -> None:
        self.apply_calls += 1

    def on_enabled(self) -> None:
        self.enabled_calls += 1

    def on_disabled(self) -> None:
        self.disabled_calls += 1

    def generate(self) -> GenerationResult:
        return GenerationResult.success(f"generated {self.title}")


class ActionGenerator(Generator, GeneratorActions):
    """Generator exposing two actions; the second needs the first to run."""

    def __init__(self) -> None:
        super().__init__()
        self.primed = False

    def action_labels(self) -> list[str]:
        return ["Prime", "Fire"]

    def is_action_interactable(self, index: int) -> bool:
        return index == 0 or (index == 1 and self.primed)

    def invoke_action(self, index: int) -> GenerationResult | None:
        if index == 0:
            self.primed = True
            return GenerationResult.success("primed")
        return GenerationResult.success("fired")

    def generate(self) -> GenerationResult:
        return GenerationResult.success()


class BrokenConstructorGenerator(Generator):
    def __init__(self) -> None:
        raise RuntimeError("cannot build")

    def generate(self) -> GenerationResult:
        return GenerationResult.success()


class BrokenSetupGenerator(Generator):
    def setup(self) -> None:
        raise ValueError("setup exploded")

    def generate(self) -> GenerationResult:
        return GenerationResult.success()


class FailingBackend(PreferenceBackend):
    """Reads an empty document; every write fails."""

    def read(self) -> PreferenceDocument:
        return PreferenceDocument()

    def write(self, document: PreferenceDocument) -> None:
        raise OSError("disk full")


@pytest.fixture
def backend() -> MemoryBackend:
    """In-memory backend; share it between stores to simulate a restart."""
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> PreferenceStore:
    return PreferenceStore(backend)


@pytest.fixture
def project_dir(tmp_path: Path):
    """Register tmp_path as the project root for the duration of a test."""
    set_project_root(tmp_path)
    yield tmp_path
    set_project_root(None)
