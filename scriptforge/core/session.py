"""
Edit session — transactional editing of one generator at a time.

States:
    NO_SELECTION → nothing selected.
    CLEAN        → a generator is selected, snapshot equals live values.
    DIRTY        → the snapshot has edits not yet applied.

Transitions:
    select(i)              NO_SELECTION/CLEAN → CLEAN
    set_value(...)         CLEAN → DIRTY (only if the value changed)
    apply()                DIRTY → CLEAN (writes instance + store)
    revert()               DIRTY → CLEAN (reloads live values)
    select(j) while DIRTY  blocked until the caller resolves it with
                           DirtyResolution.APPLY or DirtyResolution.DISCARD

Apply is best-effort, not atomic: a property whose value cannot be
stored is reported, and the remaining properties are still committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from scriptforge.core.models.descriptor import PropertyDescriptor
from scriptforge.core.models.generation import GenerationResult
from scriptforge.core.models.preference import OverridePolicy, kind_of
from scriptforge.core.persistence.preference_store import (
    PreferenceStoreError,
    UnsupportedValueError,
)
from scriptforge.core.registry import GeneratorInfo, GeneratorRegistry

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    NO_SELECTION = "no_selection"
    CLEAN = "clean"
    DIRTY = "dirty"


class DirtyResolution(StrEnum):
    """How to leave a generator that has unapplied edits."""

    APPLY = "apply"
    DISCARD = "discard"


class UnresolvedChangesError(Exception):
    """Raised when switching away from a dirty generator without a resolution."""

    def __init__(self, type_name: str):
        super().__init__(
            f"{type_name} has unapplied changes; apply or discard them before switching"
        )
        self.type_name = type_name


@dataclass
class PropertyError:
    """A property whose new value could not be committed."""

    type_name: str
    property_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.type_name}.{self.property_name}: {self.message}"


@dataclass
class ApplyReport:
    """Outcome of ``EditSession.apply()``."""

    type_name: str = ""
    applied: list[str] = field(default_factory=list)
    errors: list[PropertyError] = field(default_factory=list)
    hook_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.errors and self.hook_error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "applied": self.applied,
            "errors": [str(e) for e in self.errors],
            "hook_error": self.hook_error,
        }


class EditSession:
    """Single-selection editor over the registry's generators."""

    def __init__(self, registry: GeneratorRegistry):
        self._registry = registry
        self._selected: int | None = None
        self._info: GeneratorInfo | None = None
        self._snapshot: list[Any] = []
        self._values: list[Any] = []
        self._dirty = False
        self.errors: dict[str, str] = {}

    # ── State ───────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        if self._info is None:
            return SessionState.NO_SELECTION
        return SessionState.DIRTY if self._dirty else SessionState.CLEAN

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def selected(self) -> int | None:
        return self._selected

    @property
    def info(self) -> GeneratorInfo | None:
        return self._info

    @property
    def values(self) -> list[Any]:
        return list(self._values)

    # ── Selection ───────────────────────────────────────────────

    def select(self, index: int, resolve: DirtyResolution | None = None) -> bool:
        """Select the generator at ``index``.

        Returns:
            True if a generator is selected afterwards.

        Raises:
            UnresolvedChangesError: If the current selection is dirty and
                no resolution was given. The selection is unchanged.
        """
        if index == self._selected and self._info is not None:
            return True

        if self._dirty:
            if resolve is None:
                raise UnresolvedChangesError(self._info.type_name if self._info else "?")
            if resolve == DirtyResolution.APPLY:
                self.apply()
            else:
                logger.info("Discarding unapplied changes to %s", self._info.type_name if self._info else "?")

        self._clear()
        info = self._registry.get_factory(index)
        if info is None:
            return False

        self._selected = index
        self._info = info
        self._reload()
        return True

    def deselect(self, resolve: DirtyResolution | None = None) -> None:
        """Drop the selection, with the same dirty-state rules as ``select``."""
        if self._dirty:
            if resolve is None:
                raise UnresolvedChangesError(self._info.type_name if self._info else "?")
            if resolve == DirtyResolution.APPLY:
                self.apply()
        self._clear()

    # ── Values ──────────────────────────────────────────────────

    def descriptor(self, slot: int | str) -> PropertyDescriptor:
        """Resolve a slot index or property name to its descriptor.

        Raises:
            LookupError: If nothing is selected or the slot does not exist.
        """
        return self._require().descriptor(self._slot(slot))

    def get_value(self, slot: int | str) -> Any:
        return self._values[self._slot(slot)]

    def set_value(self, slot: int | str, value: Any) -> bool:
        """Edit a snapshot slot. Returns whether the value changed."""
        index = self._slot(slot)
        current = self._values[index]
        if type(current) is type(value) and current == value:
            return False
        self._values[index] = value
        self._dirty = True
        return True

    # ── Commit / rollback ───────────────────────────────────────

    def apply(self) -> ApplyReport:
        """Commit changed slots to the live generator and the store.

        Each changed value is checked against the property kind, goes
        through the property setter, then into the store. Kind mismatches
        and store failures are reported per property and do not stop the
        remaining properties. ``on_apply()`` runs once at
        the end.
        """
        info = self._require()
        generator = info.generator
        report = ApplyReport(type_name=info.type_name)
        if not self._dirty:
            return report

        store = self._registry.store
        self.errors = {}

        for index, descriptor in enumerate(info.descriptors):
            new_value = self._values[index]
            old_value = self._snapshot[index]
            if type(new_value) is type(old_value) and new_value == old_value:
                continue

            kind = kind_of(new_value)
            if kind is not None and kind != descriptor.kind:
                error = PropertyError(
                    info.type_name, descriptor.name, f"Expected a {descriptor.kind} value, got {kind}"
                )
                report.errors.append(error)
                self.errors[descriptor.name] = error.message
                logger.error("%s", error)
                continue

            try:
                descriptor.set(generator, new_value)
            except Exception as e:
                error = PropertyError(info.type_name, descriptor.name, f"Setter raised {type(e).__name__}: {e}")
                report.errors.append(error)
                self.errors[descriptor.name] = error.message
                logger.error("%s", error)
                continue
            report.applied.append(descriptor.name)

            key = self._registry.property_key(type(generator), descriptor.name)
            try:
                store.set(key, new_value, OverridePolicy.ALWAYS_OVERWRITE)
            except UnsupportedValueError:
                error = PropertyError(
                    type_name=info.type_name,
                    property_name=descriptor.name,
                    message=f"Could not store a value of type {type(new_value).__name__} "
                    f"(expected {descriptor.kind})",
                )
                report.errors.append(error)
                self.errors[descriptor.name] = error.message
                logger.error("%s", error)

        try:
            self._registry.persist_all()
        except PreferenceStoreError as e:
            report.errors.append(PropertyError(info.type_name, "*", str(e)))

        self._dirty = False
        self._reload(keep_errors=True)

        try:
            generator.on_apply()
        except Exception as e:
            report.hook_error = f"{type(e).__name__}: {e}"
            logger.error("%s.on_apply() failed: %s", info.type_name, report.hook_error)

        return report

    def revert(self) -> None:
        """Throw away edits and reload the live values."""
        self._require()
        self._dirty = False
        self._reload()

    # ── Actions ─────────────────────────────────────────────────

    def action_labels(self) -> list[str]:
        if self._info is None or self._info.actions is None:
            return []
        return self._info.actions.action_labels()

    def is_action_interactable(self, index: int) -> bool:
        if self._info is None or self._info.actions is None:
            return False
        labels = self._info.actions.action_labels()
        return 0 <= index < len(labels) and self._info.actions.is_action_interactable(index)

    def invoke_action(self, index: int) -> GenerationResult | None:
        """Run a generator action if it is currently interactable."""
        if not self.is_action_interactable(index):
            return None
        assert self._info is not None and self._info.actions is not None
        return self._info.actions.invoke_action(index)

    # ── Internals ───────────────────────────────────────────────

    def _require(self) -> GeneratorInfo:
        if self._info is None:
            raise LookupError("No generator selected")
        return self._info

    def _slot(self, slot: int | str) -> int:
        info = self._require()
        if isinstance(slot, int):
            if 0 <= slot < info.property_count:
                return slot
            raise LookupError(f"{info.type_name} has no property slot {slot}")
        for index, descriptor in enumerate(info.descriptors):
            if descriptor.name == slot:
                return index
        raise LookupError(f"{info.type_name} has no configurable property '{slot}'")

    def _reload(self, keep_errors: bool = False) -> None:
        info = self._require()
        self._snapshot = info.values()
        self._values = list(self._snapshot)
        if not keep_errors:
            self.errors = {}

    def _clear(self) -> None:
        self._selected = None
        self._info = None
        self._snapshot = []
        self._values = []
        self._dirty = False
        self.errors = {}
