"""Structured outcomes and errors shared by the canvas runtime.

Nothing in the runtime terminates the process on bad generated text. Every
failure is either one of the result types below or a per-entity fault that
the frame driver contains. The exception classes exist for callers that
prefer a raising API (``ObjectRegistry.require`` and ``ObjectRegistry.add``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CanvasError(Exception):
    """Base class for runtime errors raised by the canvas core."""


class RegistryConflict(CanvasError):
    pass


class NotFound(CanvasError):
    pass


class RegistryStatus(Enum):
    OK = "ok"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


@dataclass(frozen=True)
class RegistryResult:
    status: RegistryStatus
    id: str
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is RegistryStatus.OK

    def __bool__(self) -> bool:
        return self.ok


class FailureKind(Enum):
    """Failure taxonomy reported to the HUD and to callers."""

    GENERATION = "generation"
    COMPILE = "compile"
    INVOCATION = "invocation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Report:
    level: str  # "info" | "warning" | "error"
    message: str
    failure: Optional[FailureKind] = None
