"""
Domain models for scriptforge.

All models are re-exported here for convenient access:

    from scriptforge.core.models import PreferenceKey, PropertyDescriptor, GenerationResult
"""

from scriptforge.core.models.descriptor import (
    Configurable,
    PropertyDescriptor,
    StringDecorator,
)
from scriptforge.core.models.generation import (
    GeneratedFile,
    GenerationResult,
    ResultState,
)
from scriptforge.core.models.preference import (
    BoolValue,
    FloatValue,
    IntValue,
    OverridePolicy,
    PreferenceDocument,
    PreferenceEntry,
    PreferenceKey,
    PrefValue,
    ScalarKind,
    StringValue,
    kind_of,
    make_value,
)

__all__ = [
    "BoolValue",
    "Configurable",
    "FloatValue",
    "GeneratedFile",
    "GenerationResult",
    "IntValue",
    "OverridePolicy",
    "PrefValue",
    "PreferenceDocument",
    "PreferenceEntry",
    "PreferenceKey",
    "PropertyDescriptor",
    "ResultState",
    "ScalarKind",
    "StringDecorator",
    "StringValue",
    "kind_of",
    "make_value",
]
