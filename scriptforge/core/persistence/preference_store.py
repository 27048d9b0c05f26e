"""
Preference store — durable mapping from PreferenceKey to a tagged scalar.

The store holds the working copy in memory and writes it through its
backend on ``save()``. Every ``set`` since the last ``save`` is durable
once ``save`` returns normally; a failed save raises.

Store operations never interleave. A ``set``, ``delete`` or ``save``
issued while another store operation is still running (for example
from a change listener, or from a property setter reacting to a
restored value) is queued and runs once the outer operation has
finished, so callers never observe a half-applied write.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterator
from typing import Any

from scriptforge.core.models.preference import (
    OverridePolicy,
    PreferenceDocument,
    PreferenceEntry,
    PreferenceKey,
    PrefValue,
    ScalarKind,
    make_value,
    value_kind,
)
from scriptforge.core.persistence.backends import MemoryBackend, PreferenceBackend

logger = logging.getLogger(__name__)

Listener = Callable[[PreferenceKey, Any], None]


class PreferenceStoreError(Exception):
    """Raised when the preference store cannot complete an operation."""


class PreferenceDecodeError(PreferenceStoreError):
    """Raised when a stored value does not have the requested kind."""

    def __init__(self, key: PreferenceKey, expected: ScalarKind, actual: ScalarKind):
        super().__init__(f"Preference {key} holds a {actual} value, expected {expected}")
        self.key = key
        self.expected = expected
        self.actual = actual


class UnsupportedValueError(PreferenceStoreError):
    """Raised when a value is not one of the storable scalar kinds."""

    def __init__(self, key: PreferenceKey, value: Any):
        super().__init__(
            f"Cannot store value of type {type(value).__name__} under {key} "
            "(supported: bool, int, float, str)"
        )
        self.key = key
        self.value = value


class PreferenceStore:
    """Typed key-value store with explicit save.

    Args:
        backend: Where the document is read from and saved to.
            Defaults to an in-memory backend.
    """

    def __init__(self, backend: PreferenceBackend | None = None):
        self._backend = backend or MemoryBackend()
        self._values: dict[PreferenceKey, Any] = {}
        self._unsaved = False
        self._busy = False
        self._pending: deque[Callable[[], None]] = deque()
        self._listeners: list[Listener] = []
        self.reload()

    @property
    def backend(self) -> PreferenceBackend:
        return self._backend

    @property
    def has_unsaved_changes(self) -> bool:
        return self._unsaved

    # ── Reads ────────────────────────────────────────────────────

    def get(self, key: PreferenceKey, kind: ScalarKind | None = None) -> tuple[Any, bool]:
        """Look up a value.

        Args:
            key: Preference address.
            kind: Expected kind. When given, a stored value of another
                kind raises instead of being returned.

        Returns:
            (value, found). ``value`` is None when not found.

        Raises:
            PreferenceDecodeError: If ``kind`` is given and does not match.
        """
        stored = self._values.get(key)
        if stored is None:
            return None, False
        actual = value_kind(stored)
        if kind is not None and actual != kind:
            raise PreferenceDecodeError(key, kind, actual)
        return stored.value, True

    def get_value(self, key: PreferenceKey) -> PrefValue | None:
        """The stored tagged value, or None if the key is absent."""
        return self._values.get(key)

    def get_string(self, key: PreferenceKey, default: str | None = None) -> str | None:
        """Convenience read for string preferences."""
        value, found = self.get(key, ScalarKind.STR)
        return value if found else default

    def contains(self, key: PreferenceKey) -> bool:
        return key in self._values

    def keys(self) -> list[PreferenceKey]:
        return sorted(self._values, key=_sort_key)

    def __iter__(self) -> Iterator[PreferenceKey]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._values)

    # ── Writes ───────────────────────────────────────────────────

    def set(
        self,
        key: PreferenceKey,
        value: Any,
        policy: OverridePolicy = OverridePolicy.ALWAYS_OVERWRITE,
    ) -> None:
        """Store a scalar value.

        ``OVERWRITE_IF_ABSENT`` leaves an existing value untouched, which
        lets callers seed defaults without clobbering user edits.

        Raises:
            UnsupportedValueError: If the value is not bool, int, float or str.
        """
        wrapped = make_value(value)
        if wrapped is None:
            raise UnsupportedValueError(key, value)

        def _op() -> None:
            if policy == OverridePolicy.OVERWRITE_IF_ABSENT and key in self._values:
                return
            self._values[key] = wrapped
            self._unsaved = True
            self._notify(key, wrapped.value)

        self._run(_op)

    def delete(self, key: PreferenceKey) -> bool:
        """Remove a value.

        Returns whether the key was removed. A delete issued from inside
        another store operation is queued and runs later, so it returns
        False even if the key is removed once the queue drains.
        """
        removed = False

        def _op() -> None:
            nonlocal removed
            if self._values.pop(key, None) is not None:
                removed = True
                self._unsaved = True
                self._notify(key, None)

        self._run(_op)
        return removed

    def save(self) -> None:
        """Write all values through the backend.

        Raises:
            PreferenceStoreError: If the backend write fails.
        """
        self._run(self._save)

    def reload(self) -> None:
        """Discard the in-memory copy and re-read from the backend."""
        document = self._backend.read()
        self._values = {entry.key: entry.value for entry in document.entries}
        self._unsaved = False

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after each completed set/delete.

        The callback receives the key and the new value (None on delete).
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Internals ────────────────────────────────────────────────

    def _save(self) -> None:
        document = PreferenceDocument(
            entries=[
                PreferenceEntry(
                    namespace=key.namespace,
                    category=key.category,
                    name=key.name,
                    value=self._values[key],
                )
                for key in self.keys()
            ],
        )
        try:
            self._backend.write(document)
        except OSError as e:
            logger.error("Failed to save preferences: %s", e)
            raise PreferenceStoreError(f"Failed to save preferences: {e}") from e
        self._unsaved = False
        logger.debug("Saved %d preferences", len(document.entries))

    def _run(self, op: Callable[[], None]) -> None:
        if self._busy:
            self._pending.append(op)
            return
        self._busy = True
        try:
            op()
            while self._pending:
                self._pending.popleft()()
        finally:
            if self._pending:
                logger.warning(
                    "Dropped %d queued preference operation(s) after an error", len(self._pending)
                )
                self._pending.clear()
            self._busy = False

    def _notify(self, key: PreferenceKey, value: Any) -> None:
        for listener in list(self._listeners):
            listener(key, value)


def _sort_key(key: PreferenceKey) -> tuple[str, str, str]:
    return (key.namespace, key.category, key.name)
