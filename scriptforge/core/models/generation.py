"""
Generation models — what a generator run produces.

Generators never raise out of ``generate()``; the outcome of a run is
captured in a ``GenerationResult`` instead.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class GeneratedFile(BaseModel):
    """A file written by a generator.

    Attributes:
        path:    Absolute path of the artifact.
        content: Full file content.
        reason:  Why this file was generated.
    """

    path: str
    content: str
    reason: str = ""


class ResultState(StrEnum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class GenerationResult(BaseModel):
    """Outcome of one ``generate()`` call."""

    state: ResultState
    message: str = ""
    timestamp: str = Field(default_factory=_now_iso)
    artifact: GeneratedFile | None = None

    @property
    def ok(self) -> bool:
        """Whether the run did not fail (warnings count as ok)."""
        return self.state != ResultState.ERROR

    @classmethod
    def success(cls, message: str = "", **kwargs: Any) -> GenerationResult:
        return cls(state=ResultState.SUCCESS, message=message, **kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: Any) -> GenerationResult:
        return cls(state=ResultState.WARNING, message=message, **kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: Any) -> GenerationResult:
        return cls(state=ResultState.ERROR, message=message, **kwargs)
