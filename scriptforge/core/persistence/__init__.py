"""Persistence — the preference store and its backends."""

from scriptforge.core.persistence.backends import (
    JsonFileBackend,
    MemoryBackend,
    PreferenceBackend,
    default_store_path,
)
from scriptforge.core.persistence.preference_store import (
    PreferenceDecodeError,
    PreferenceStore,
    PreferenceStoreError,
    UnsupportedValueError,
)

__all__ = [
    "JsonFileBackend",
    "MemoryBackend",
    "PreferenceBackend",
    "PreferenceDecodeError",
    "PreferenceStore",
    "PreferenceStoreError",
    "UnsupportedValueError",
    "default_store_path",
]
