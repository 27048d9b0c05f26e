"""
Identifier synthesis — turn raw names into a flags-enum member list.

Raw names (tags, layers, ...) are arbitrary strings. Each becomes a
source-safe identifier:

    1. trim surrounding whitespace
    2. collapse internal whitespace runs to "_"
       (any other character outside [A-Za-z0-9_] also becomes "_")
    3. strip leading digits
    4. empty → "Tag_<index>", index in the full input
    5. de-duplicate with "_0", "_1", ... (smallest unused suffix)

Only the first 32 names are used; each gets one bit. The value of the
i-th entry is ``int(2 ** (i - 1))``, so the first entry is 0 and the
bits start at the second entry. Existing generated files and the code
that reads them rely on this numbering; do not shift it.

Everything here is pure. ``render_enum`` returns identical text for
identical input.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

MAX_ENTRIES = 32

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_WHITESPACE = re.compile(r"\s+")
_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")
_LEADING_DIGITS = re.compile(r"^[0-9]+")

HEADER = "/*\tTHIS FILE IS AUTO-GENERATED. MANUAL CHANGES MAY RESULT IN ERRORS AND SHOULD BE AVOIDED.\t*/"
SUMMARY = (
    "This bitmask enum represents the project's tags as actual values. "
    "Combine members to describe a set of tags."
)
TRUNCATION_WARNING = (
    f"| Warning: The amount of tags in the project exceeds {MAX_ENTRIES}. "
    "Not all tags will be included in the bitmask."
)


@dataclass(frozen=True)
class SynthesizedEntry:
    """One enum member."""

    identifier: str
    value: int
    original: str

    @property
    def renamed(self) -> bool:
        return self.identifier != self.original

    def to_dict(self) -> dict[str, Any]:
        return {"identifier": self.identifier, "value": self.value, "original": self.original}


@dataclass(frozen=True)
class SynthesisResult:
    """Synthesized members plus how many raw names there were."""

    entries: tuple[SynthesizedEntry, ...]
    total: int

    @property
    def truncated(self) -> bool:
        return self.total > MAX_ENTRIES

    @property
    def identifiers(self) -> list[str]:
        return [e.identifier for e in self.entries]

    @property
    def values(self) -> list[int]:
        return [e.value for e in self.entries]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "truncated": self.truncated,
            "entries": [e.to_dict() for e in self.entries],
        }


def bit_value(index: int) -> int:
    """Enum value of the entry at ``index``: int(2^(index - 1))."""
    return int(2 ** (index - 1))


def sanitize(raw: str, index: int) -> str:
    """Make one raw name source-safe (steps 1-4, no de-duplication)."""
    name = raw.strip()
    name = _WHITESPACE.sub("_", name)
    name = _INVALID_CHARS.sub("_", name)
    name = _LEADING_DIGITS.sub("", name)
    if not name:
        name = f"Tag_{index}"
    return name


def synthesize(raw_names: Sequence[str]) -> SynthesisResult:
    """Convert raw names into unique identifiers with bit values."""
    used: set[str] = set()
    entries: list[SynthesizedEntry] = []

    for index, raw in enumerate(raw_names[:MAX_ENTRIES]):
        base = sanitize(raw, index)
        identifier = base
        suffix = 0
        while identifier in used:
            identifier = f"{base}_{suffix}"
            suffix += 1
        used.add(identifier)
        entries.append(SynthesizedEntry(identifier=identifier, value=bit_value(index), original=raw))

    return SynthesisResult(entries=tuple(entries), total=len(raw_names))


def has_changed(previous: Sequence[str] | None, current: Sequence[str] | None) -> bool:
    """Whether two raw name lists differ (ordinal, position by position)."""
    if previous is None and current is None:
        return False
    if previous is None or current is None:
        return True
    if len(previous) != len(current):
        return True
    return any(a != b for a, b in zip(previous, current))


def render_enum(
    result: SynthesisResult,
    namespace: str = "Project",
    enum_name: str = "Tags",
) -> str:
    """Render the synthesized members as a C# [Flags] enum file."""
    warning = TRUNCATION_WARNING if result.truncated else ""
    lines = [
        HEADER,
        "",
        "using System;",
        "",
        f"namespace {namespace} {{",
        "",
        f"\t///<summary>{SUMMARY}</summary>",
        "\t[Flags]",
        f"\tpublic enum {enum_name} : int\t// {result.total} of {MAX_ENTRIES} {warning}",
        "\t{",
    ]

    last = len(result.entries) - 1
    for position, entry in enumerate(result.entries):
        if entry.renamed:
            lines.append(
                "\t\t/// <summary> Tag name was changed to maintain syntax compatibility. "
                f"Original Name: '{entry.original}' </summary>"
            )
        separator = "," if position < last else ""
        lines.append(f"\t\t{entry.identifier} = {entry.value}{separator}")

    lines += [
        "\t}",
        "}",
        "",
        HEADER,
    ]
    return "\n".join(lines)
