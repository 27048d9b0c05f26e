"""Identifier synthesis for generated enums."""

from scriptforge.core.synthesis.identifiers import (
    IDENTIFIER_PATTERN,
    MAX_ENTRIES,
    SynthesisResult,
    SynthesizedEntry,
    bit_value,
    has_changed,
    render_enum,
    sanitize,
    synthesize,
)

__all__ = [
    "IDENTIFIER_PATTERN",
    "MAX_ENTRIES",
    "SynthesisResult",
    "SynthesizedEntry",
    "bit_value",
    "has_changed",
    "render_enum",
    "sanitize",
    "synthesize",
]
