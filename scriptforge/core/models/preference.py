"""
Preference models — keys, tagged scalar values, and the stored document.

A preference is one scalar value addressed by a three-part key:

    namespace  → owning subsystem ("%scriptforge" for generator properties)
    category   → generator type name (or a subsystem constant)
    name       → property name (or a subsystem constant)

Values are a tagged variant over the four supported scalar kinds. The
``kind`` tag travels with the value on disk so a type mismatch on read
can be detected instead of silently coerced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ScalarKind(StrEnum):
    """The scalar kinds a configurable property may hold."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STR = "str"

    @classmethod
    def from_type(cls, py_type: type) -> ScalarKind | None:
        """Map a Python type to its kind. Only exact matches count."""
        return _TYPE_TO_KIND.get(py_type)

    @property
    def python_type(self) -> type:
        return _KIND_TO_TYPE[self]

    def parse(self, text: str) -> bool | int | float | str:
        """Parse user-entered text into a value of this kind.

        Raises:
            ValueError: If the text is not a valid literal for the kind.
        """
        if self is ScalarKind.BOOL:
            lowered = text.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"Not a boolean: {text!r}")
        if self is ScalarKind.INT:
            return int(text)
        if self is ScalarKind.FLOAT:
            return float(text)
        return text


_TYPE_TO_KIND: dict[type, ScalarKind] = {
    bool: ScalarKind.BOOL,
    int: ScalarKind.INT,
    float: ScalarKind.FLOAT,
    str: ScalarKind.STR,
}
_KIND_TO_TYPE: dict[ScalarKind, type] = {kind: t for t, kind in _TYPE_TO_KIND.items()}


def kind_of(value: Any) -> ScalarKind | None:
    """Return the scalar kind of a live value, or None if unsupported.

    ``bool`` is checked by exact type so ``True`` never passes as an int.
    """
    return _TYPE_TO_KIND.get(type(value))


# ── Tagged scalar values ────────────────────────────────────────


class BoolValue(BaseModel):
    kind: Literal["bool"] = "bool"
    value: StrictBool


class IntValue(BaseModel):
    kind: Literal["int"] = "int"
    value: StrictInt


class FloatValue(BaseModel):
    kind: Literal["float"] = "float"
    value: StrictFloat


class StringValue(BaseModel):
    kind: Literal["str"] = "str"
    value: StrictStr


PrefValue = Annotated[
    Union[BoolValue, IntValue, FloatValue, StringValue],
    Field(discriminator="kind"),
]

_VALUE_MODELS: dict[ScalarKind, type[BaseModel]] = {
    ScalarKind.BOOL: BoolValue,
    ScalarKind.INT: IntValue,
    ScalarKind.FLOAT: FloatValue,
    ScalarKind.STR: StringValue,
}


def make_value(value: Any) -> BoolValue | IntValue | FloatValue | StringValue | None:
    """Wrap a live scalar in its tagged variant.

    Returns None when the value is not one of the supported kinds
    (``None``, lists, objects, ...).
    """
    if isinstance(value, (BoolValue, IntValue, FloatValue, StringValue)):
        return value
    kind = kind_of(value)
    if kind is None:
        return None
    return _VALUE_MODELS[kind](value=value)


def value_kind(value: BoolValue | IntValue | FloatValue | StringValue) -> ScalarKind:
    return ScalarKind(value.kind)


# ── Keys ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PreferenceKey:
    """Composite address of one persisted scalar."""

    namespace: str
    category: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.category}/{self.name}"


class OverridePolicy(StrEnum):
    """What ``set`` does when the key already holds a value."""

    OVERWRITE_IF_ABSENT = "overwrite_if_absent"
    ALWAYS_OVERWRITE = "always_overwrite"


# ── Stored document ─────────────────────────────────────────────


class PreferenceEntry(BaseModel):
    """One key/value pair as it appears on disk."""

    namespace: str
    category: str
    name: str
    value: PrefValue

    @property
    def key(self) -> PreferenceKey:
        return PreferenceKey(self.namespace, self.category, self.name)


class PreferenceDocument(BaseModel):
    """Root of the preferences file."""

    schema_version: int = 1
    updated_at: str = Field(default_factory=_now_iso)
    entries: list[PreferenceEntry] = Field(default_factory=list)
