"""
Resolution of user-selected source directories and namespace derivation.

The directory a user picks in an editor is often ambiguous: it may be
relative to the project root, relative to the working directory, or it may
start with the project's own directory name.  :func:`resolve_source_directory`
tries each reading in turn.  :func:`derive_namespace_from_path` turns a
directory path below a Gradle source root into a dotted package name, e.g.::

    derive_namespace_from_path("app/src/main/kotlin/com/x/y")
    # -> 'com.x.y'
"""

from __future__ import annotations

import os
import re
from pathlib import Path

__all__ = [
    "DEFAULT_SRC_VALUE",
    "resolve_source_directory",
    "derive_namespace_from_path",
    "clean_selected_path",
    "feature_namespace",
    "validate_feature_input",
]

DEFAULT_SRC_VALUE = "Select a source directory"

# Shortest prefix ending at a java or kotlin source root.
_SOURCE_ROOT_PREFIX = re.compile(r"^(?:.*?/)?src/main/(?:java|kotlin)/")


def _split(path: str) -> list[str]:
    # keeps the empty leading segment of an absolute path
    return re.split(r"[\\/]", path)


def resolve_source_directory(project_base: str | os.PathLike, selected: str) -> Path:
    """Return the directory a user most likely meant by ``selected``.

    Candidates are tried in order:

    1. ``project_base / selected``
    2. ``selected`` as given (absolute, or relative to the working directory)
    3. ``project_base / selected`` without its first segment, when there is
       more than one segment (the first one usually repeats the project
       directory name)

    The first candidate that is an existing directory wins.  If none exists
    the first candidate is returned anyway; callers must check existence.
    """
    base = Path(project_base)
    if not selected or not selected.strip():
        return base
    candidates = [base / selected, Path(selected)]
    parts = _split(selected)
    if len(parts) > 1:
        candidates.append(base.joinpath(*parts[1:]))
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return candidates[0]


def derive_namespace_from_path(cleaned_relative_path: str) -> str:
    """Convert a source directory path into a dotted package name.

    Everything up to and including the first ``src/main/java/`` or
    ``src/main/kotlin/`` segment is dropped.  Without such a marker the whole
    path is dot-joined as is.
    """
    path = cleaned_relative_path.replace("\\", "/")
    if not path.endswith("/"):
        # lets a path that *is* the source root match the marker
        path += "/"
    path = _SOURCE_ROOT_PREFIX.sub("", path, count=1)
    return ".".join(part for part in path.split("/") if part)


def clean_selected_path(project_root: str | os.PathLike, selected: str) -> str:
    """Strip a leading segment equal to the project directory name."""
    project_name = Path(project_root).name
    for sep in ("/", os.sep):
        prefix = project_name + sep
        if project_name and selected.startswith(prefix):
            return selected[len(prefix):]
    return selected


def feature_namespace(project_root: str | os.PathLike, selected: str, feature_name: str) -> str:
    """Package name for a new feature created below ``selected``."""
    base = derive_namespace_from_path(clean_selected_path(project_root, selected))
    return f"{base}.{feature_name.lower()}" if base else feature_name.lower()


def validate_feature_input(feature_name: str, selected: str) -> bool:
    return bool(feature_name) and selected != DEFAULT_SRC_VALUE
