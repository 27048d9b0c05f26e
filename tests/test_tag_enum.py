"""
Tests for TagEnumGenerator and define symbols.
"""

import json
from pathlib import Path

import pytest
from conftest import FailingBackend

from scriptforge.core.models.generation import ResultState
from scriptforge.core.persistence.preference_store import PreferenceStore
from scriptforge.core.registry import GeneratorRegistry
from scriptforge.core.session import EditSession
from scriptforge.core.symbols import SYMBOLS_KEY, SymbolSet
from scriptforge.generators.base import ArtifactPathError
from scriptforge.generators.tag_enum import SNAPSHOT_KEY, SYMBOL, TagEnumGenerator


def _write_tags(root: Path, tags: list[str]) -> None:
    (root / "tags.yml").write_text(
        "".join(f"- {json.dumps(tag)}\n" for tag in tags), encoding="utf-8"
    )


@pytest.fixture
def registry(store, project_dir):
    registry = GeneratorRegistry(store, generator_types=[TagEnumGenerator])
    registry.discover_and_setup()
    return registry


@pytest.fixture
def generator(registry) -> TagEnumGenerator:
    generator = registry.get_factory(0).generator
    generator.output_path = "Generated/Tags.cs"
    return generator


class TestGenerate:
    def test_writes_enum(self, generator, project_dir):
        _write_tags(project_dir, ["Player", "3Enemy", "Player", ""])
        result = generator.generate()

        assert result.state == ResultState.SUCCESS
        output = project_dir / "Generated" / "Tags.cs"
        text = output.read_text(encoding="utf-8")
        assert "\t\tPlayer = 0," in text
        assert "\t\tEnemy = 1," in text
        assert "\t\tPlayer_0 = 2," in text
        assert "\t\tTag_3 = 4" in text
        assert result.artifact.path == str(output)
        assert generator.last_result is result

    def test_snapshot_and_symbol_after_write(self, generator, project_dir, store):
        _write_tags(project_dir, ["A", "B"])
        generator.generate()
        snapshot = json.loads(store.get_string(SNAPSHOT_KEY))
        assert snapshot == {
            "tags": ["A", "B"],
            "namespace": "Project",
            "enum_name": "Tags",
            "output": str(project_dir / "Generated" / "Tags.cs"),
        }
        assert SymbolSet(store).has(SYMBOL)

    def test_unchanged_tags_skip_write(self, generator, project_dir):
        _write_tags(project_dir, ["A", "B"])
        generator.generate()
        output = project_dir / "Generated" / "Tags.cs"
        output.write_text("sentinel", encoding="utf-8")

        result = generator.generate()
        assert result.message == "Tags enum did not need to be regenerated."
        assert output.read_text(encoding="utf-8") == "sentinel"

    def test_changed_tags_regenerate(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        _write_tags(project_dir, ["A", "B"])
        result = generator.generate()
        assert result.artifact is not None
        assert "B = 1" in (project_dir / "Generated" / "Tags.cs").read_text()

    def test_renamed_enum_regenerates(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        generator.enum_name = "GameTags"

        result = generator.generate()
        assert result.artifact is not None
        assert "public enum GameTags : int" in (project_dir / "Generated" / "Tags.cs").read_text()

    def test_new_namespace_regenerates(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        generator.namespace = "Game"

        assert generator.generate().artifact is not None
        assert "namespace Game {" in (project_dir / "Generated" / "Tags.cs").read_text()

    def test_deleted_file_regenerates(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        output = project_dir / "Generated" / "Tags.cs"
        output.unlink()

        result = generator.generate()
        assert result.artifact is not None
        assert output.is_file()

    def test_moved_output_regenerates(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        generator.output_path = "Moved/Tags.cs"

        result = generator.generate()
        assert result.artifact.path == str(project_dir / "Moved" / "Tags.cs")

    def test_list_snapshot_regenerates(self, generator, project_dir, store):
        """A snapshot holding only the tag list does not count as up to date."""
        _write_tags(project_dir, ["A"])
        generator.generate()
        store.set(SNAPSHOT_KEY, json.dumps(["A"]))

        assert generator.generate().artifact is not None
        assert json.loads(store.get_string(SNAPSHOT_KEY))["tags"] == ["A"]

    def test_unsaved_preferences_are_a_warning(self, project_dir):
        store = PreferenceStore(FailingBackend())
        registry = GeneratorRegistry(store, generator_types=[TagEnumGenerator])
        registry.discover_and_setup()
        generator = registry.get_factory(0).generator
        generator.output_path = "Generated/Tags.cs"
        _write_tags(project_dir, ["A"])

        result = generator.generate()
        assert result.state == ResultState.WARNING
        assert "preferences could not be saved" in result.message
        assert result.artifact is not None
        assert (project_dir / "Generated" / "Tags.cs").is_file()

    def test_truncation_is_a_warning(self, generator, project_dir):
        _write_tags(project_dir, [f"Tag{i}" for i in range(40)])
        result = generator.generate()
        assert result.state == ResultState.WARNING
        assert result.ok is True
        assert "40 tags found" in result.message

    def test_plain_text_tags(self, generator, project_dir):
        (project_dir / "tags.txt").write_text("Alpha\n\nBeta\n", encoding="utf-8")
        generator.tags_path = "tags.txt"
        generator.generate()
        text = (project_dir / "Generated" / "Tags.cs").read_text()
        assert "Alpha = 0," in text
        assert "Beta = 1" in text

    def test_yaml_mapping_with_tags_key(self, generator, project_dir):
        (project_dir / "tags.yml").write_text("tags:\n  - One\n", encoding="utf-8")
        assert generator.load_tags() == ["One"]

    def test_custom_namespace_and_name(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.namespace = "Game"
        generator.enum_name = "GameTags"
        generator.generate()
        text = (project_dir / "Generated" / "Tags.cs").read_text()
        assert "namespace Game {" in text
        assert "public enum GameTags : int" in text

    def test_missing_tags_file(self, generator):
        result = generator.generate()
        assert result.state == ResultState.ERROR
        assert "Cannot read tags" in result.message

    def test_no_output_path(self, registry):
        result = registry.get_factory(0).generator.generate()
        assert result.state == ResultState.ERROR
        assert "no output path configured" in result.message

    def test_not_restored(self, store, project_dir):
        generator = TagEnumGenerator()
        generator.attach(store)
        assert generator.generate().state == ResultState.ERROR


class TestOutputPath:
    def test_rejects_wrong_extension(self, generator):
        with pytest.raises(ArtifactPathError):
            generator.output_path = "Generated/Tags.txt"
        assert generator.output_path == "Generated/Tags.cs"

    def test_restore_accepts_anything(self):
        generator = TagEnumGenerator()
        generator.output_path = "whatever.txt"
        assert generator.output_path == "whatever.txt"

    def test_moves_existing_file(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        generator.output_path = "Moved/Tags.cs"
        assert not (project_dir / "Generated" / "Tags.cs").exists()
        assert (project_dir / "Moved" / "Tags.cs").is_file()

    def test_refuses_to_overwrite(self, generator, project_dir):
        _write_tags(project_dir, ["A"])
        generator.generate()
        (project_dir / "Other.cs").write_text("keep me", encoding="utf-8")

        with pytest.raises(ArtifactPathError, match="already exists"):
            generator.output_path = "Other.cs"
        assert generator.output_path == "Generated/Tags.cs"
        assert (project_dir / "Other.cs").read_text() == "keep me"

    def test_setter_error_surfaces_in_session(self, registry):
        session = EditSession(registry)
        session.select(0)
        session.set_value("output_path", "Tags.txt")
        report = session.apply()
        assert [e.property_name for e in report.errors] == ["output_path"]
        assert "output_path" in session.errors
        assert session.get_value("output_path") == ""


class TestActions:
    def test_labels(self, generator):
        assert generator.action_labels() == ["Generate and Enable Tags", "Disable Tags"]

    def test_disable_needs_symbol(self, generator, project_dir):
        assert generator.is_action_interactable(0) is True
        assert generator.is_action_interactable(1) is False

        _write_tags(project_dir, ["A"])
        assert generator.invoke_action(0).ok
        assert generator.is_action_interactable(1) is True

        generator.invoke_action(1)
        assert generator.is_action_interactable(1) is False
        assert generator.is_action_interactable(2) is False

    def test_disable_with_unsaved_preferences(self, project_dir):
        store = PreferenceStore(FailingBackend())
        registry = GeneratorRegistry(store, generator_types=[TagEnumGenerator])
        registry.discover_and_setup()
        store.set(SYMBOLS_KEY, SYMBOL)

        result = registry.get_factory(0).generator.invoke_action(1)
        assert result.state == ResultState.ERROR
        assert "could not be removed" in result.message


class TestSymbolSet:
    def test_add_remove(self, store):
        symbols = SymbolSet(store)
        assert symbols.add("B_SYMBOL") is True
        assert symbols.add("A_SYMBOL") is True
        assert symbols.add("A_SYMBOL") is False
        assert symbols.symbols() == ["A_SYMBOL", "B_SYMBOL"]
        assert symbols.remove("A_SYMBOL") is True
        assert symbols.remove("A_SYMBOL") is False
        assert symbols.symbols() == ["B_SYMBOL"]

    @pytest.mark.parametrize("symbol", ["", "X", "1ABC", "HAS SPACE", "A;B"])
    def test_invalid(self, store, symbol):
        assert SymbolSet(store).add(symbol) is False
        assert SymbolSet(store).symbols() == []

    def test_persisted(self, store, backend):
        SymbolSet(store).add("MY_SYMBOL")
        assert SymbolSet(PreferenceStore(backend)).has("MY_SYMBOL")
