"""
Define symbols — project-wide compile symbols toggled by generators.

Generated code is often guarded by a compile symbol (``#if MY_SYMBOL``)
so a project still builds before the generated file exists. The set of
active symbols is persisted in the preference store as a single
``;``-joined string.
"""

from __future__ import annotations

import logging
import re

from scriptforge.core.models.preference import PreferenceKey
from scriptforge.core.persistence.preference_store import PreferenceStore

logger = logging.getLogger(__name__)

SYMBOLS_KEY = PreferenceKey("$scriptforge", "SYMBOLS", "define_symbols")

_SYMBOL_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]+$")


class SymbolSet:
    """Persisted set of define symbols."""

    def __init__(self, store: PreferenceStore, key: PreferenceKey = SYMBOLS_KEY):
        self._store = store
        self._key = key

    @staticmethod
    def is_valid(symbol: str) -> bool:
        return bool(_SYMBOL_PATTERN.match(symbol))

    def symbols(self) -> list[str]:
        raw = self._store.get_string(self._key, "") or ""
        return sorted({s for s in raw.split(";") if s})

    def has(self, symbol: str) -> bool:
        return self.is_valid(symbol) and symbol in self.symbols()

    def add(self, symbol: str) -> bool:
        """Add a symbol. Returns False if invalid or already present."""
        if not self.is_valid(symbol):
            logger.warning("Invalid define symbol: %r", symbol)
            return False
        current = self.symbols()
        if symbol in current:
            return False
        self._write([*current, symbol])
        logger.info("Define symbol added: %s", symbol)
        return True

    def remove(self, symbol: str) -> bool:
        """Remove a symbol. Returns False if it was not present."""
        current = self.symbols()
        if symbol not in current:
            return False
        current.remove(symbol)
        self._write(current)
        logger.info("Define symbol removed: %s", symbol)
        return True

    def _write(self, symbols: list[str]) -> None:
        self._store.set(self._key, ";".join(sorted(symbols)))
        self._store.save()
