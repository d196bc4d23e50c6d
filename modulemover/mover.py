"""
Core routines for relocating Kotlin and Java sources into a new module.

This module implements the functionality behind ``modulemover relocate``.
It copies every ``.kt`` and ``.java`` file below a source directory into the
source set of a Gradle module, rewrites the ``package`` declaration of each
copied file to match its new location, and finally rewrites the imports of
all copied files that referred to one of the relocated packages.

The work happens in two passes.  The first pass copies files and rewrites
their own package declarations, collecting a mapping from each original
package to its new name.  Only once every file has been copied is the
mapping complete, so import rewriting runs as a separate second pass over
all copied files.

Rewriting is purely textual.  No Kotlin or Java parser is involved, which
means a line of a multi-line string or block comment that begins with
``package`` or ``import`` can be matched as well.  The source tree itself
is never modified.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import ErrorKind, SourceNotFound

__all__ = [
    "SOURCE_EXTENSIONS",
    "RelocationResult",
    "relocate",
    "collect_source_files",
    "compute_relative_path",
    "rewrite_package_declaration",
    "rewrite_imports",
    "update_file_imports",
]

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".kt", ".java")

# declarations and imports start a line
PACKAGE_PATTERN = re.compile(r"^[ \t]*package\s+([a-zA-Z0-9_.]+)", re.MULTILINE)


@dataclass
class RelocationResult:
    """Files written by :func:`relocate` and what happened along the way."""

    moved_files: List[Path] = field(default_factory=list)
    namespace_mapping: Dict[str, str] = field(default_factory=dict)
    failures: List[Tuple[Path, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    @property
    def warning_kind(self) -> Optional[ErrorKind]:
        if self.failures:
            return ErrorKind.PER_FILE_IO
        if not self.moved_files and self.warnings:
            return ErrorKind.NO_FILES_FOUND
        return None


def compute_relative_path(file_path: Path, root: Path) -> Path:
    """Return ``file_path`` relative to ``root``.

    Falls back to the bare file name when ``file_path`` does not live below
    ``root`` (for instance when one of them went through a symlink).

    Parameters
    ----------
    file_path: Path
        A file discovered while walking ``root``.
    root: Path
        The directory being relocated.
    """
    try:
        return file_path.absolute().relative_to(root.absolute())
    except ValueError:
        return Path(file_path.name)


def collect_source_files(source_dir: Path) -> List[Path]:
    """Return every Kotlin or Java file below ``source_dir``, sorted."""
    found: List[Path] = []
    for root, dirs, files in os.walk(source_dir):
        dirs.sort()
        for filename in sorted(files):
            if filename.endswith(SOURCE_EXTENSIONS):
                found.append(Path(root) / filename)
    return found


def rewrite_package_declaration(content: str, new_package: str) -> Tuple[str, Optional[str]]:
    """Replace the first line-leading ``package`` declaration in ``content``.

    Returns
    -------
    tuple[str, str | None]
        The rewritten content and the package that was declared before, or
        ``None`` (with ``content`` unchanged) when there is no declaration.
    """
    match = PACKAGE_PATTERN.search(content)
    if match is None:
        return content, None
    updated = content[: match.start(1)] + new_package + content[match.end(1):]
    return updated, match.group(1)


def _import_pattern(mapping: Dict[str, str]) -> Optional[re.Pattern]:
    originals = sorted((k for k in mapping if k), key=len, reverse=True)
    if not originals:
        return None
    alternation = "|".join(re.escape(name) for name in originals)
    return re.compile(rf"(^[ \t]*import\s+)({alternation})\.([a-zA-Z0-9_.*]+)", re.MULTILINE)


def rewrite_imports(content: str, mapping: Dict[str, str]) -> str:
    """Point imports of relocated packages at their new names.

    ``import old.pkg.Foo`` becomes ``import new.pkg.Foo`` when ``mapping``
    holds ``{"old.pkg": "new.pkg"}``.  When several original packages prefix
    the same import the longest one is used, and each import is rewritten at
    most once.  Anything following the imported name on the same line (an
    ``as`` alias, a ``;``) is kept.
    """
    pattern = _import_pattern(mapping)
    if pattern is None:
        return content
    return pattern.sub(lambda m: f"{m.group(1)}{mapping[m.group(2)]}.{m.group(3)}", content)


def update_file_imports(file_path: Path, mapping: Dict[str, str]) -> bool:
    """Rewrite the imports of a single file on disk.

    The file is only written when at least one import changed.  Returns
    whether the file was written.
    """
    source = file_path.read_text(encoding="utf-8")
    updated = rewrite_imports(source, mapping)
    if updated == source:
        return False
    file_path.write_text(updated, encoding="utf-8")
    return True


def _sub_package(target_file: Path, package_dir: Path) -> str:
    relative_dir = target_file.parent.relative_to(package_dir)
    return "".join("." + part for part in relative_dir.parts)


def _discard(target_file: Path) -> None:
    """Remove a half-written copy so it does not linger with its old package."""
    try:
        target_file.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove partial copy %s", target_file, exc_info=True)


def relocate(
    source_dir: Path,
    target_module_root: Path,
    target_namespace: str,
    *,
    language: str = "kotlin",
) -> RelocationResult:
    """Copy a source tree into a module and rewrite packages and imports.

    Every source file below ``source_dir`` is copied to
    ``target_module_root/src/main/<language>/<target_namespace as path>/``,
    keeping its path relative to ``source_dir``.  A file copied into a
    subdirectory gets the matching sub-package of ``target_namespace``.

    Parameters
    ----------
    source_dir: Path
        Directory whose sources are relocated.  It is only read.
    target_module_root: Path
        Root directory of the destination module.
    target_namespace: str
        Dotted package name of the destination module.
    language: str
        Name of the source set directory, ``kotlin`` or ``java``.

    Returns
    -------
    RelocationResult
        ``moved_files`` lists the destination files that were written.
        Files that could not be read or written are listed in ``failures``
        instead and their partial copies are removed; they do not abort
        the relocation.

    Raises
    ------
    SourceNotFound
        If ``source_dir`` does not exist or is not a directory.  Nothing is
        created in that case.
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise SourceNotFound(f"Source directory {source_dir} does not exist or is not a directory")
    result = RelocationResult()
    source_files = collect_source_files(source_dir)
    if not source_files:
        message = f"No source files found to move in {source_dir.absolute()}"
        logger.warning(message)
        result.warnings.append(message)
        return result

    package_dir = Path(target_module_root, "src", "main", language, *target_namespace.split("."))
    package_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[Path, Path] = {}

    # Pass 1: copy and rewrite each file's own package declaration.
    for source_file in source_files:
        target_file = package_dir / compute_relative_path(source_file, source_dir)
        try:
            target_file.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_file, target_file)
            package_name = target_namespace + _sub_package(target_file, package_dir)
            content = target_file.read_text(encoding="utf-8")
            updated, original = rewrite_package_declaration(content, package_name)
            if original:
                # first declaration of an original package decides its target
                result.namespace_mapping.setdefault(original, package_name)
            if updated != content:
                target_file.write_text(updated, encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            logger.exception("Failed to relocate %s", source_file)
            _discard(target_file)
            result.failures.append((source_file, str(exc)))
            continue
        written[source_file.absolute()] = target_file
        logger.debug("Copied %s -> %s (package %s)", source_file, target_file, package_name)

    # Pass 2: the mapping is complete, fix imports across all copied files.
    for source_file, target_file in written.items():
        try:
            if update_file_imports(target_file, result.namespace_mapping):
                logger.debug("Rewrote imports in %s", target_file)
        except (OSError, UnicodeError) as exc:
            logger.exception("Failed to rewrite imports in %s", target_file)
            _discard(target_file)
            result.failures.append((source_file, str(exc)))
            continue
        result.moved_files.append(target_file)

    if result.failures:
        result.warnings.append(
            f"{len(result.failures)} of {len(source_files)} files could not be relocated"
        )
    logger.info(
        "Relocated %d files from %s to %s", len(result.moved_files), source_dir, package_dir
    )
    return result
