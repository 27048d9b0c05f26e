"""
Property introspector — which properties of a generator type are configurable.

Each generator class declares a static ``configurable`` table. Analysis
checks every declaration against the class and keeps only those backed
by a concrete ``property`` with both getter and setter, whose declared
type is one of the supported scalar kinds. Anything else is skipped
quietly; that is a filtering rule, not an error.

Declarations are visited most-derived class first, each class in
declaration order, and every accepted descriptor is prepended. The
resulting list is therefore in reverse visiting order, so base-class
properties such as ``enabled`` come first. Editors and stored
snapshots depend on this order.

Results are cached per class for the process lifetime.
"""

from __future__ import annotations

import logging
import threading

from scriptforge.core.models.descriptor import Configurable, PropertyDescriptor
from scriptforge.core.models.preference import ScalarKind

logger = logging.getLogger(__name__)


class PropertyIntrospector:
    """Analyze generator classes into cached descriptor lists."""

    def __init__(self) -> None:
        self._cache: dict[type, tuple[PropertyDescriptor, ...]] = {}
        self._lock = threading.Lock()
        self.analysis_count = 0

    def analyze(self, cls: type) -> list[PropertyDescriptor]:
        """Return the configurable property descriptors of ``cls``.

        Repeated calls return the cached result without re-analysis.
        """
        cached = self._cache.get(cls)
        if cached is not None:
            return list(cached)

        with self._lock:
            cached = self._cache.get(cls)
            if cached is None:
                cached = tuple(self._analyze(cls))
                self._cache[cls] = cached
                self.analysis_count += 1
        return list(cached)

    def is_cached(self, cls: type) -> bool:
        return cls in self._cache

    def _analyze(self, cls: type) -> list[PropertyDescriptor]:
        found: list[PropertyDescriptor] = []
        seen: set[str] = set()

        for klass in cls.__mro__:
            declared: tuple[Configurable, ...] = vars(klass).get("configurable", ())
            for decl in declared:
                if decl.name in seen:
                    continue
                seen.add(decl.name)

                descriptor = self._describe(cls, decl)
                if descriptor is not None:
                    found.insert(0, descriptor)

        logger.debug(
            "Analyzed %s: %s",
            cls.__qualname__,
            ", ".join(d.name for d in found) or "(no configurable properties)",
        )
        return found

    def _describe(self, cls: type, decl: Configurable) -> PropertyDescriptor | None:
        kind = ScalarKind.from_type(decl.value_type)
        if kind is None:
            logger.debug("Skipping %s.%s: unsupported type %r", cls.__qualname__, decl.name, decl.value_type)
            return None

        accessor = getattr(cls, decl.name, None)
        if not isinstance(accessor, property):
            logger.debug("Skipping %s.%s: not a property", cls.__qualname__, decl.name)
            return None

        if accessor.fget is None or accessor.fset is None:
            logger.debug("Skipping %s.%s: needs both getter and setter", cls.__qualname__, decl.name)
            return None

        if getattr(accessor, "__isabstractmethod__", False):
            logger.debug("Skipping %s.%s: accessor is abstract", cls.__qualname__, decl.name)
            return None

        return PropertyDescriptor(
            name=decl.name,
            kind=kind,
            tooltip=decl.tooltip,
            decorator=decl.decorator,
            accessor=accessor,
        )
