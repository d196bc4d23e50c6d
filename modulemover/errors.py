"""
Error classification and the result type returned by the module workflows.

Every failure raised by the components in this package is a subclass of
:class:`ModuleMoverError` and carries an :class:`ErrorKind`.  The workflow
layer catches these at its boundary and converts them into an
:class:`Outcome`, so callers (the CLI, the editor bridge) never see an
unhandled exception for an expected failure.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

__all__ = [
    "ErrorKind",
    "ModuleMoverError",
    "ValidationError",
    "InvalidModuleName",
    "SourceNotFound",
    "RegistryFileMissing",
    "Outcome",
]


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    SOURCE_NOT_FOUND = "source_not_found"
    NO_FILES_FOUND = "no_files_found"
    PER_FILE_IO = "per_file_io"
    REGISTRY_FILE_MISSING = "registry_file_missing"
    PATCH_NOT_APPLIED = "patch_not_applied"


class ModuleMoverError(Exception):
    """Base class for classified failures."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(ModuleMoverError, ValueError):
    """User input was rejected before any file was touched."""

    kind = ErrorKind.VALIDATION


class InvalidModuleName(ValidationError):
    """A module token does not have the ``:segment[:segment...]`` form."""


class SourceNotFound(ModuleMoverError, FileNotFoundError):
    """The directory selected for relocation does not exist."""

    kind = ErrorKind.SOURCE_NOT_FOUND


class RegistryFileMissing(ModuleMoverError, FileNotFoundError):
    """Neither ``settings.gradle.kts`` nor ``settings.gradle`` was found."""

    kind = ErrorKind.REGISTRY_FILE_MISSING


@dataclass
class Outcome:
    """Terminal state of a workflow.

    ``ok`` is true for full and partial success alike; partial success is
    signalled through ``warnings``.  On failure ``kind`` holds the
    classification and ``files`` lists whatever was created before the
    failure occurred.
    """

    ok: bool
    message: str
    kind: Optional[ErrorKind] = None
    files: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, exc: ModuleMoverError, files: Optional[List[Path]] = None) -> "Outcome":
        return cls(ok=False, message=str(exc), kind=exc.kind, files=list(files or []))

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "message": self.message,
            "kind": self.kind.value if self.kind else None,
            "files": [str(p) for p in self.files],
            "warnings": list(self.warnings),
        }
