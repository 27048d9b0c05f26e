"""
Tag enum generator — emits a C# [Flags] enum from the project's tag list.

Tags are read from ``tags_path`` (a YAML list, or plain text with one
tag per line). The last generated tag list and render settings are kept
in the preference store, so an unchanged list does not rewrite an
existing file and does not trigger a rebuild downstream.

After generating, the ``SCRIPTFORGE_CUSTOM_TAGS`` define symbol is set
so code guarded by it starts compiling against the new enum.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from scriptforge.core.context import resolve_project_root
from scriptforge.core.models.descriptor import Configurable, StringDecorator
from scriptforge.core.models.generation import GeneratedFile, GenerationResult
from scriptforge.core.models.preference import PreferenceKey
from scriptforge.core.persistence.preference_store import (
    PreferenceDecodeError,
    PreferenceStoreError,
)
from scriptforge.core.symbols import SymbolSet
from scriptforge.core.synthesis.identifiers import (
    MAX_ENTRIES,
    has_changed,
    render_enum,
    synthesize,
)
from scriptforge.generators.base import (
    ArtifactPathError,
    Generator,
    GeneratorActions,
    write_artifact,
)

logger = logging.getLogger(__name__)

# Tags and render settings of the last generation, so regeneration can be skipped
SNAPSHOT_KEY = PreferenceKey("$scriptforge", "TAG_GENERATOR", "EDITOR_TAGS")

SYMBOL = "SCRIPTFORGE_CUSTOM_TAGS"

OUTPUT_SUFFIX = ".cs"


class TagEnumGenerator(Generator, GeneratorActions):
    """Generate a bitmask enum with one member per project tag."""

    configurable = (
        Configurable(
            "output_path",
            str,
            tooltip="The path of the output file, relative to the project root.",
            decorator=StringDecorator(prefix="<project>/"),
        ),
        Configurable(
            "tags_path",
            str,
            tooltip="File listing the project's tags (YAML list or one per line).",
            decorator=StringDecorator(prefix="<project>/"),
        ),
        Configurable("namespace", str, tooltip="Namespace of the generated enum."),
        Configurable("enum_name", str, tooltip="Name of the generated enum type."),
    )

    def __init__(self) -> None:
        super().__init__()
        self._output_path = ""
        self._tags_path = "tags.yml"
        self._namespace = "Project"
        self._enum_name = "Tags"

    # ── Configurable properties ─────────────────────────────────

    @property
    def output_path(self) -> str:
        return self._output_path

    @output_path.setter
    def output_path(self, value: str) -> None:
        # While restoring, just take the stored value.
        if not self.is_restored:
            self._output_path = value
            return

        if value == self._output_path:
            return

        new_path = self._full_path(value)
        if new_path is None or new_path.suffix != OUTPUT_SUFFIX:
            raise ArtifactPathError(value, f"must be a {OUTPUT_SUFFIX} file name")

        old_path = self._full_path(self._output_path)
        if old_path is not None and old_path.is_file():
            if new_path.exists():
                raise ArtifactPathError(
                    new_path, "a file already exists there, output path has not been updated"
                )
            try:
                new_path.parent.mkdir(parents=True, exist_ok=True)
                old_path.rename(new_path)
            except OSError as e:
                raise ArtifactPathError(new_path, f"cannot move {old_path}: {e}") from e
            logger.info("Moved generated tags file %s → %s", old_path, new_path)

        self._output_path = value

    @property
    def tags_path(self) -> str:
        return self._tags_path

    @tags_path.setter
    def tags_path(self, value: str) -> None:
        self._tags_path = value

    @property
    def namespace(self) -> str:
        return self._namespace

    @namespace.setter
    def namespace(self, value: str) -> None:
        self._namespace = value

    @property
    def enum_name(self) -> str:
        return self._enum_name

    @enum_name.setter
    def enum_name(self, value: str) -> None:
        self._enum_name = value

    # ── Generation ──────────────────────────────────────────────

    @property
    def symbols(self) -> SymbolSet:
        return SymbolSet(self.store)

    def generate(self) -> GenerationResult:
        """Regenerate the enum file unless it already matches the tags and settings."""
        self.last_result = self._generate()
        return self.last_result

    def _generate(self) -> GenerationResult:
        if not self.is_restored:
            return GenerationResult.error("Tags enum was not generated: settings are not restored yet.")

        try:
            target = self.validate_output_path()
        except ArtifactPathError as e:
            logger.error("Tags enum was not generated: %s", e)
            return GenerationResult.error(f"Tags enum was not generated: {e}")

        try:
            current = self.load_tags()
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error("Cannot read tags from %s: %s", self._tags_path, e)
            return GenerationResult.error(f"Cannot read tags from '{self._tags_path}': {e}")

        if self._is_up_to_date(self.load_snapshot(), current, target):
            logger.info("Tags enum did not need to be regenerated.")
            try:
                self.symbols.add(SYMBOL)
            except PreferenceStoreError as e:
                return GenerationResult.warning(
                    f"Tags enum is up to date, but {SYMBOL} could not be saved: {e}"
                )
            return GenerationResult.success("Tags enum did not need to be regenerated.")

        result = synthesize(current)
        content = render_enum(result, namespace=self._namespace, enum_name=self._enum_name)

        try:
            write_artifact(target, content)
        except OSError as e:
            logger.error("Failed to write tags enum to %s: %s", target, e)
            return GenerationResult.error(f"Failed to write '{target}': {e}")

        artifact = GeneratedFile(
            path=str(target),
            content=content,
            reason=f"{len(result.entries)} tag(s)",
        )
        logger.info("Generated %s with %d tag(s)", target, len(result.entries))

        try:
            self.store.set(SNAPSHOT_KEY, json.dumps(self._snapshot(current, target)))
            self.store.save()
            self.symbols.add(SYMBOL)
        except PreferenceStoreError as e:
            logger.error("Generated %s but could not save the tag snapshot: %s", target, e)
            return GenerationResult.warning(
                f"Generated {target}, but preferences could not be saved: {e}",
                artifact=artifact,
            )

        if result.truncated:
            return GenerationResult.warning(
                f"{result.total} tags found, only the first {MAX_ENTRIES} were included.",
                artifact=artifact,
            )
        return GenerationResult.success(f"Generated {target}", artifact=artifact)

    def _snapshot(self, tags: list[str], target: Path) -> dict:
        return {
            "tags": list(tags),
            "namespace": self._namespace,
            "enum_name": self._enum_name,
            "output": str(target),
        }

    def _is_up_to_date(self, previous: dict | None, current: list[str], target: Path) -> bool:
        """Whether the file on disk already matches these tags and settings."""
        if previous is None or has_changed(previous["tags"], current):
            return False
        expected = self._snapshot(current, target)
        if any(previous.get(field) != expected[field] for field in ("namespace", "enum_name", "output")):
            return False
        return target.is_file()

    def validate_output_path(self) -> Path:
        """Resolve the output file and make sure its directory exists.

        Raises:
            ArtifactPathError: If the path is empty, not a .cs file, or its
                directory cannot be created.
        """
        full_path = self._full_path(self._output_path)
        if full_path is None:
            raise ArtifactPathError(self._output_path, "no output path configured")
        if full_path.suffix != OUTPUT_SUFFIX:
            raise ArtifactPathError(full_path, f"must be a {OUTPUT_SUFFIX} file name")
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactPathError(full_path, f"cannot create directory: {e}") from e
        return full_path

    def load_tags(self) -> list[str]:
        """Read the raw tag list from ``tags_path``.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If a YAML file does not contain a list.
        """
        path = self._full_path(self._tags_path)
        if path is None:
            raise ValueError("no tags file configured")

        text = path.read_text(encoding="utf-8")
        if path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(text)
            if isinstance(data, dict):
                data = data.get("tags")
            if data is None:
                return []
            if not isinstance(data, list):
                raise ValueError(f"expected a list of tags, got {type(data).__name__}")
            return ["" if item is None else str(item) for item in data]

        return [line for line in text.splitlines() if line.strip()]

    def load_snapshot(self) -> dict | None:
        """The tags and render settings of the last successful generation, if any."""
        try:
            raw = self.store.get_string(SNAPSHOT_KEY)
        except PreferenceDecodeError as e:
            logger.warning("Ignoring tag snapshot: %s", e)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt tag snapshot: %s", e)
            return None
        if not isinstance(data, dict):
            logger.info("Tag snapshot has an older format, the enum will be regenerated")
            return None
        tags = data.get("tags")
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            logger.warning("Ignoring tag snapshot without a list of tags")
            return None
        return data

    def _full_path(self, name: str | None) -> Path | None:
        if name is None or not name.strip():
            return None
        return resolve_project_root() / name

    # ── Actions ─────────────────────────────────────────────────

    def action_labels(self) -> list[str]:
        return ["Generate and Enable Tags", "Disable Tags"]

    def is_action_interactable(self, index: int) -> bool:
        if index == 0:
            return True
        if index == 1:
            return self.symbols.has(SYMBOL)
        return False

    def invoke_action(self, index: int) -> GenerationResult | None:
        if index == 0:
            return self.generate()
        if index == 1:
            try:
                removed = self.symbols.remove(SYMBOL)
            except PreferenceStoreError as e:
                logger.error("Could not remove define symbol %s: %s", SYMBOL, e)
                return GenerationResult.error(f"Define symbol {SYMBOL} could not be removed: {e}")
            if removed:
                return GenerationResult.success(f"Define symbol {SYMBOL} removed.")
            return GenerationResult.warning(f"Define symbol {SYMBOL} was not set.")
        return None
