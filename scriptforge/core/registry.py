"""
Generator registry — the catalogue of live generator instances.

The registry is the single owner of generator instances. It discovers
generator classes, creates one instance of each, restores persisted
property values before anything else touches the instance, and writes
the values back on shutdown.

Lifecycle for each generator, in this fixed order:

    instantiate → attach store → analyze → restore → setup (if enabled)

A generator whose constructor or ``setup()`` raises is left out of the
catalogue; the failure is logged and recorded in ``failures``, and
discovery carries on with the remaining generators.

Persistence happens on ``persist_all()``: after every apply from the
editor and from ``shutdown()``. Edits made since the last persist are
lost if the process ends without ``shutdown()``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from scriptforge.core.introspection import PropertyIntrospector
from scriptforge.core.models.descriptor import PropertyDescriptor
from scriptforge.core.models.preference import PreferenceKey, kind_of
from scriptforge.core.persistence.preference_store import (
    PreferenceDecodeError,
    PreferenceStore,
    UnsupportedValueError,
)
from scriptforge.generators.base import Generator, GeneratorActions, type_name

logger = logging.getLogger(__name__)

# Namespace for all generator property preferences
PROPERTY_NAMESPACE = "%scriptforge"


def property_key(generator_type: type, property_name: str) -> PreferenceKey:
    """Preference key of one generator property."""
    return PreferenceKey(PROPERTY_NAMESPACE, type_name(generator_type), property_name)


def known_generator_types(modules: Iterable[str] | None = None) -> list[type[Generator]]:
    """Concrete Generator subclasses currently imported, sorted by full name.

    Args:
        modules: If given, only classes defined in these modules (or their
            submodules) are returned.
    """
    prefixes = list(modules) if modules is not None else None
    found: dict[str, type[Generator]] = {}
    pending = list(Generator.__subclasses__())
    while pending:
        cls = pending.pop()
        pending.extend(cls.__subclasses__())
        if inspect.isabstract(cls):
            continue
        if prefixes is not None and not any(
            cls.__module__ == p or cls.__module__.startswith(p + ".") for p in prefixes
        ):
            continue
        found[type_name(cls)] = cls
    return [found[name] for name in sorted(found)]


@dataclass
class DiscoveryFailure:
    """A generator that could not be added to the catalogue."""

    type_name: str
    stage: str  # construct, setup
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type_name, "stage": self.stage, "error": self.error}


@dataclass
class GeneratorInfo:
    """A catalogued generator plus its property descriptors."""

    generator: Generator
    descriptors: list[PropertyDescriptor] = field(default_factory=list)

    @property
    def type_name(self) -> str:
        return type_name(type(self.generator))

    @property
    def property_count(self) -> int:
        return len(self.descriptors)

    def descriptor(self, index: int) -> PropertyDescriptor:
        return self.descriptors[index]

    def descriptor_by_name(self, name: str) -> PropertyDescriptor | None:
        for descriptor in self.descriptors:
            if descriptor.name == name:
                return descriptor
        return None

    def get_value(self, descriptor: PropertyDescriptor) -> Any:
        return descriptor.get(self.generator)

    def set_value(self, descriptor: PropertyDescriptor, value: Any) -> None:
        descriptor.set(self.generator, value)

    def values(self) -> list[Any]:
        return [d.get(self.generator) for d in self.descriptors]

    @property
    def actions(self) -> GeneratorActions | None:
        if isinstance(self.generator, GeneratorActions):
            return self.generator
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "name": self.generator.display_name,
            "enabled": self.generator.enabled,
            "properties": [
                {**d.to_dict(), "value": d.get(self.generator)} for d in self.descriptors
            ],
        }


class GeneratorRegistry:
    """Discovers generators and owns their persisted configuration.

    Args:
        store: Preference store holding property values.
        generator_types: Classes to instantiate. If None, every concrete
            ``Generator`` subclass imported at discovery time is used.
        introspector: Shared introspector (one is created if omitted).
    """

    def __init__(
        self,
        store: PreferenceStore,
        generator_types: Iterable[type[Generator]] | None = None,
        introspector: PropertyIntrospector | None = None,
    ):
        self._store = store
        self._generator_types = list(generator_types) if generator_types is not None else None
        self._introspector = introspector or PropertyIntrospector()
        self._infos: list[GeneratorInfo] = []
        self.failures: list[DiscoveryFailure] = []
        self._shut_down = False

    @property
    def store(self) -> PreferenceStore:
        return self._store

    @property
    def introspector(self) -> PropertyIntrospector:
        return self._introspector

    @property
    def factory_count(self) -> int:
        return len(self._infos)

    def __len__(self) -> int:
        return len(self._infos)

    def __iter__(self) -> Iterator[GeneratorInfo]:
        return iter(list(self._infos))

    def __enter__(self) -> GeneratorRegistry:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    # ── Lookup ──────────────────────────────────────────────────

    def get_factory(self, index: int) -> GeneratorInfo | None:
        """Bounds-checked lookup. Out-of-range indexes return None."""
        if index < 0 or index >= len(self._infos):
            return None
        return self._infos[index]

    def find(self, name: str) -> GeneratorInfo | None:
        """Look up a generator by full type name or class name."""
        for info in self._infos:
            if name in (info.type_name, info.generator.display_name):
                return info
        return None

    def property_key(self, generator_type: type, property_name: str) -> PreferenceKey:
        return property_key(generator_type, property_name)

    # ── Lifecycle ───────────────────────────────────────────────

    def discover_and_setup(self) -> None:
        """Instantiate, analyze, restore and set up every generator."""
        types = (
            self._generator_types
            if self._generator_types is not None
            else known_generator_types()
        )
        self._infos = []
        self.failures = []

        for cls in types:
            if inspect.isabstract(cls):
                continue

            try:
                generator = cls()
            except Exception as e:
                self._fail(cls, "construct", e)
                continue

            generator.attach(self._store)
            descriptors = self._introspector.analyze(cls)
            self._restore(generator, descriptors)
            generator.is_restored = True

            if generator.enabled:
                try:
                    generator.setup()
                except Exception as e:
                    self._fail(cls, "setup", e)
                    continue

            self._infos.append(GeneratorInfo(generator=generator, descriptors=descriptors))
            logger.debug("Registered generator: %s", type_name(cls))

        logger.info(
            "Discovered %d generator(s), %d failed", len(self._infos), len(self.failures)
        )

    def load(self) -> None:
        """Start a new session: re-read the store and rebuild the catalogue."""
        self._store.reload()
        self._shut_down = False
        self.discover_and_setup()

    def persist_all(self) -> None:
        """Write every live property value to the store, then save.

        Values that cannot be stored, or whose kind does not match the
        property, are skipped with a warning.

        Raises:
            PreferenceStoreError: If the store cannot be saved.
        """
        for info in self._infos:
            cls = type(info.generator)
            for descriptor in info.descriptors:
                value = descriptor.get(info.generator)
                kind = kind_of(value)
                if kind is not None and kind != descriptor.kind:
                    logger.warning(
                        "Not persisting %s.%s: holds a %s value, expected %s",
                        type_name(cls), descriptor.name, kind, descriptor.kind,
                    )
                    continue
                try:
                    self._store.set(property_key(cls, descriptor.name), value)
                except UnsupportedValueError:
                    logger.warning(
                        "Could not persist %s.%s: value of type %s is not storable",
                        type_name(cls), descriptor.name, type(value).__name__,
                    )
        self._store.save()

    def shutdown(self) -> None:
        """Persist everything before the process (or session) ends."""
        if self._shut_down:
            return
        self.persist_all()
        self._shut_down = True
        logger.debug("Registry shut down, %d generator(s) persisted", len(self._infos))

    # ── Internals ───────────────────────────────────────────────

    def _restore(self, generator: Generator, descriptors: list[PropertyDescriptor]) -> None:
        cls = type(generator)
        for descriptor in descriptors:
            key = property_key(cls, descriptor.name)
            try:
                value, found = self._store.get(key, descriptor.kind)
            except PreferenceDecodeError as e:
                logger.warning("Not restoring %s.%s: %s", type_name(cls), descriptor.name, e)
                continue
            if not found or kind_of(value) != descriptor.kind:
                continue
            try:
                descriptor.set(generator, value)
            except Exception as e:
                logger.warning(
                    "Restoring %s.%s raised %s: %s",
                    type_name(cls), descriptor.name, type(e).__name__, e,
                )

    def _fail(self, cls: type, stage: str, error: Exception) -> None:
        failure = DiscoveryFailure(
            type_name=type_name(cls),
            stage=stage,
            error=f"{type(error).__name__}: {error}",
        )
        self.failures.append(failure)
        logger.error("Generator %s failed during %s: %s", failure.type_name, stage, failure.error)
