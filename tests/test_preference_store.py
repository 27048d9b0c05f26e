"""
Tests for the preference store and its backends.
"""

import json
from datetime import datetime
from pathlib import Path

import pytest
from conftest import FailingBackend

from scriptforge.core.models.preference import (
    OverridePolicy,
    PreferenceKey,
    ScalarKind,
)
from scriptforge.core.persistence.backends import (
    JsonFileBackend,
    MemoryBackend,
    default_store_path,
)
from scriptforge.core.persistence.preference_store import (
    PreferenceDecodeError,
    PreferenceStore,
    PreferenceStoreError,
    UnsupportedValueError,
)

KEY = PreferenceKey("%scriptforge", "pkg.Gen", "title")


# ── Get / Set ───────────────────────────────────────────────────────


class TestGetSet:
    @pytest.mark.parametrize("value", [True, False, 0, -7, 2.5, "", "hello"])
    def test_round_trip(self, store, value):
        store.set(KEY, value)
        got, found = store.get(KEY)
        assert found is True
        assert got == value
        assert type(got) is type(value)

    def test_missing_key(self, store):
        assert store.get(KEY) == (None, False)
        assert store.contains(KEY) is False

    def test_bool_is_not_int(self, store):
        """A bool is stored as a bool, not an int."""
        store.set(KEY, True)
        with pytest.raises(PreferenceDecodeError) as exc:
            store.get(KEY, ScalarKind.INT)
        assert exc.value.expected == ScalarKind.INT
        assert exc.value.actual == ScalarKind.BOOL

    def test_kind_mismatch_raises(self, store):
        store.set(KEY, "text")
        with pytest.raises(PreferenceDecodeError):
            store.get(KEY, ScalarKind.FLOAT)

    def test_matching_kind(self, store):
        store.set(KEY, 3)
        assert store.get(KEY, ScalarKind.INT) == (3, True)

    def test_get_value_is_tagged(self, store):
        assert store.get_value(KEY) is None
        store.set(KEY, 2.5)
        stored = store.get_value(KEY)
        assert stored.kind == "float"
        assert stored.value == 2.5

    def test_get_string_default(self, store):
        assert store.get_string(KEY, "fallback") == "fallback"
        store.set(KEY, "value")
        assert store.get_string(KEY, "fallback") == "value"

    @pytest.mark.parametrize("value", [None, [1], {"a": 1}, b"raw", object()])
    def test_unsupported_value(self, store, value):
        with pytest.raises(UnsupportedValueError):
            store.set(KEY, value)
        assert store.contains(KEY) is False

    def test_overwrite_if_absent_keeps_existing(self, store):
        store.set(KEY, "user edit")
        store.set(KEY, "default", OverridePolicy.OVERWRITE_IF_ABSENT)
        assert store.get(KEY) == ("user edit", True)

    def test_overwrite_if_absent_seeds(self, store):
        store.set(KEY, "default", OverridePolicy.OVERWRITE_IF_ABSENT)
        assert store.get(KEY) == ("default", True)

    def test_always_overwrite_replaces_kind(self, store):
        store.set(KEY, "text")
        store.set(KEY, 5, OverridePolicy.ALWAYS_OVERWRITE)
        assert store.get(KEY, ScalarKind.INT) == (5, True)

    def test_delete(self, store):
        store.set(KEY, 1)
        assert store.delete(KEY) is True
        assert store.delete(KEY) is False
        assert store.contains(KEY) is False

    def test_keys_sorted(self, store):
        b = PreferenceKey("ns", "b", "x")
        a = PreferenceKey("ns", "a", "y")
        store.set(b, 1)
        store.set(a, 2)
        assert store.keys() == [a, b]
        assert list(store) == [a, b]
        assert len(store) == 2

    def test_keys_differ_by_any_component(self, store):
        store.set(PreferenceKey("a", "b", "c"), 1)
        store.set(PreferenceKey("a", "b", "d"), 2)
        store.set(PreferenceKey("a", "x", "c"), 3)
        store.set(PreferenceKey("z", "b", "c"), 4)
        assert len(store) == 4


# ── Save / Reload ───────────────────────────────────────────────────


class TestSaveReload:
    def test_unsaved_flag(self, store):
        assert store.has_unsaved_changes is False
        store.set(KEY, 1)
        assert store.has_unsaved_changes is True
        store.save()
        assert store.has_unsaved_changes is False

    def test_survives_new_store(self, backend):
        """Values saved through one store are visible to the next one."""
        first = PreferenceStore(backend)
        first.set(KEY, 42)
        first.save()

        second = PreferenceStore(backend)
        assert second.get(KEY, ScalarKind.INT) == (42, True)

    def test_unsaved_changes_lost(self, backend):
        first = PreferenceStore(backend)
        first.set(KEY, 42)

        second = PreferenceStore(backend)
        assert second.get(KEY) == (None, False)

    def test_reload_discards_edits(self, store):
        store.set(KEY, "saved")
        store.save()
        store.set(KEY, "edited")
        store.reload()
        assert store.get(KEY) == ("saved", True)

    def test_save_failure_raises(self):
        store = PreferenceStore(FailingBackend())
        store.set(KEY, 1)
        with pytest.raises(PreferenceStoreError, match="disk full"):
            store.save()
        assert store.has_unsaved_changes is True

    def test_memory_backend_counts_writes(self):
        backend = MemoryBackend()
        store = PreferenceStore(backend)
        store.save()
        store.save()
        assert backend.write_count == 2


# ── JSON file backend ───────────────────────────────────────────────


class TestJsonFileBackend:
    def test_default_path(self, tmp_path: Path):
        assert default_store_path(tmp_path) == tmp_path / ".scriptforge" / "preferences.json"

    def test_missing_file_is_empty(self, tmp_path: Path):
        store = PreferenceStore(JsonFileBackend(tmp_path / "prefs.json"))
        assert len(store) == 0

    def test_round_trip_all_kinds(self, tmp_path: Path):
        path = tmp_path / "nested" / "prefs.json"
        store = PreferenceStore(JsonFileBackend(path))
        keys = {name: PreferenceKey("ns", "cat", name) for name in ("b", "i", "f", "s")}
        store.set(keys["b"], True)
        store.set(keys["i"], 7)
        store.set(keys["f"], 1.0)
        store.set(keys["s"], "x")
        store.save()

        reloaded = PreferenceStore(JsonFileBackend(path))
        assert reloaded.get(keys["b"], ScalarKind.BOOL) == (True, True)
        assert reloaded.get(keys["i"], ScalarKind.INT) == (7, True)
        assert reloaded.get(keys["f"], ScalarKind.FLOAT) == (1.0, True)
        assert reloaded.get(keys["s"], ScalarKind.STR) == ("x", True)

    def test_file_format(self, tmp_path: Path):
        path = tmp_path / "prefs.json"
        store = PreferenceStore(JsonFileBackend(path))
        store.set(KEY, "hello")
        store.save()

        data = json.loads(path.read_text())
        assert data["schema_version"] == 1
        assert set(data) == {"schema_version", "updated_at", "entries"}
        assert datetime.fromisoformat(data["updated_at"]).tzinfo is not None
        assert data["entries"] == [{
            "namespace": "%scriptforge",
            "category": "pkg.Gen",
            "name": "title",
            "value": {"kind": "str", "value": "hello"},
        }]

    def test_no_temp_files_left(self, tmp_path: Path):
        path = tmp_path / "prefs.json"
        store = PreferenceStore(JsonFileBackend(path))
        store.set(KEY, 1)
        store.save()
        store.save()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["prefs.json"]

    def test_corrupt_file_starts_fresh(self, tmp_path: Path, caplog):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        store = PreferenceStore(JsonFileBackend(path))
        assert len(store) == 0
        assert "Corrupt" in caplog.text or "corrupt" in caplog.text

    def test_invalid_entry_skipped(self, tmp_path: Path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({
            "schema_version": 1,
            "entries": [
                {"namespace": "ns", "category": "c", "name": "good",
                 "value": {"kind": "int", "value": 1}},
                {"namespace": "ns", "category": "c", "name": "bad",
                 "value": {"kind": "complex", "value": [1, 2]}},
            ],
        }))
        store = PreferenceStore(JsonFileBackend(path))
        assert store.get(PreferenceKey("ns", "c", "good")) == (1, True)
        assert store.contains(PreferenceKey("ns", "c", "bad")) is False


# ── Reentrancy ──────────────────────────────────────────────────────


class TestReentrancy:
    def test_listener_receives_changes(self, store):
        seen = []
        store.add_listener(lambda key, value: seen.append((key, value)))
        store.set(KEY, 1)
        store.delete(KEY)
        assert seen == [(KEY, 1), (KEY, None)]

    def test_remove_listener(self, store):
        seen = []
        listener = lambda key, value: seen.append(key)  # noqa: E731
        store.add_listener(listener)
        store.remove_listener(listener)
        store.set(KEY, 1)
        assert seen == []

    def test_nested_set_is_queued(self, store):
        """A set issued from a listener runs after the outer set completes."""
        other = PreferenceKey("ns", "cat", "mirror")
        observed = []

        def listener(key, value):
            if key == KEY:
                store.set(other, value)
                observed.append(store.contains(other))

        store.add_listener(listener)
        store.set(KEY, "v")

        assert observed == [False]
        assert store.get(other) == ("v", True)

    def test_nested_save_sees_outer_write(self, backend):
        store = PreferenceStore(backend)
        store.add_listener(lambda key, value: store.save())
        store.set(KEY, 9)

        assert backend.write_count == 1
        assert PreferenceStore(backend).get(KEY) == (9, True)

    def test_nested_delete_is_queued(self, store):
        """A delete issued from a listener reports False but still removes the key."""
        other = PreferenceKey("ns", "cat", "stale")
        store.set(other, 1)
        results = []

        def listener(key, value):
            if key == KEY:
                results.append(store.delete(other))

        store.add_listener(listener)
        store.set(KEY, "v")

        assert results == [False]
        assert store.contains(other) is False

    def test_dropped_operations_logged(self, store, caplog):
        """Queued operations left behind by a failing one are reported."""
        other = PreferenceKey("ns", "cat", "never")

        def listener(key, value):
            if key == KEY:
                store.set(other, 1)
                raise RuntimeError("listener failed")

        store.add_listener(listener)
        with caplog.at_level("WARNING"), pytest.raises(RuntimeError):
            store.set(KEY, "v")

        assert "Dropped 1 queued preference operation(s)" in caplog.text
        assert store.contains(other) is False

        store.remove_listener(listener)
        store.set(other, 2)
        assert store.get(other) == (2, True)
