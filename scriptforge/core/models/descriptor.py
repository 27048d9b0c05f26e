"""
Property declarations and descriptors.

Generators declare their configurable state statically:

    class MyGenerator(Generator):
        configurable = (
            Configurable("output_path", str, tooltip="Where to write."),
        )

        @property
        def output_path(self) -> str: ...

        @output_path.setter
        def output_path(self, value: str) -> None: ...

The introspector turns accepted declarations into ``PropertyDescriptor``
instances, which carry the bound ``property`` so the host can read and
write values without attribute lookups by name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from scriptforge.core.models.preference import ScalarKind


@dataclass(frozen=True)
class StringDecorator:
    """Fixed text shown before/after a string property's editor."""

    prefix: str | None = None
    suffix: str | None = None


@dataclass(frozen=True)
class Configurable:
    """Static declaration of one configurable property.

    Attributes:
        name:       Attribute name of the property on the generator class.
        value_type: Declared Python type. Only bool, int, float and str
                    are accepted by the introspector.
        tooltip:    Optional help text for the editor.
        decorator:  Optional prefix/suffix for string editors.
    """

    name: str
    value_type: type
    tooltip: str | None = None
    decorator: StringDecorator | None = None


@dataclass(frozen=True)
class PropertyDescriptor:
    """Introspected metadata for one configurable property."""

    name: str
    kind: ScalarKind
    tooltip: str | None = None
    decorator: StringDecorator | None = None
    accessor: property | None = field(default=None, compare=False, repr=False)

    def get(self, instance: Any) -> Any:
        """Read the live value from a generator instance."""
        if self.accessor is None or self.accessor.fget is None:
            raise AttributeError(f"Property '{self.name}' has no getter")
        return self.accessor.fget(instance)

    def set(self, instance: Any, value: Any) -> None:
        """Write a value into a generator instance through its setter."""
        if self.accessor is None or self.accessor.fset is None:
            raise AttributeError(f"Property '{self.name}' has no setter")
        self.accessor.fset(instance, value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "tooltip": self.tooltip,
            "prefix": self.decorator.prefix if self.decorator else None,
            "suffix": self.decorator.suffix if self.decorator else None,
        }
