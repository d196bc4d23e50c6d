"""
Detection of the project modules a source directory depends on.

Before sources are extracted into a new module, the modules they import
from must become dependencies of that module.  :func:`discover_project_modules`
maps every package declared in an included module to that module, and
:func:`analyze_source_directory` matches the imports of the selected sources
against that map.  Like the relocation itself this is plain text matching
on ``package`` and ``import`` lines.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from .descriptor import module_path
from .errors import InvalidModuleName
from .gradle import find_settings_file, load_existing_modules
from .mover import PACKAGE_PATTERN, collect_source_files

__all__ = [
    "discover_project_modules",
    "module_packages",
    "analyze_source_directory",
    "detect_module_dependencies",
]

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(r"^[ \t]*import\s+(?:static\s+)?([a-zA-Z0-9_.]+)", re.MULTILINE)


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeError):
        logger.warning("Skipping unreadable source %s", path, exc_info=True)
        return None


def _declared_packages(directory: Path) -> Set[str]:
    packages = set()
    for source in collect_source_files(directory):
        content = _read(source)
        match = PACKAGE_PATTERN.search(content) if content is not None else None
        if match:
            packages.add(match.group(1))
    return packages


def _owner(name: str, packages: Dict[str, str]) -> Optional[str]:
    """Module owning the longest package that ``name`` lies in."""
    best = None
    for package in packages:
        if name == package or name.startswith(package + "."):
            if best is None or len(package) > len(best):
                best = package
    return packages[best] if best is not None else None


def discover_project_modules(project_root: Path) -> Dict[str, Path]:
    """Map each module included by the settings file to its directory.

    Modules whose directory does not exist are left out.  Include entries
    without a leading ``:`` are normalised to one.
    """
    root = Path(project_root)
    settings_file = find_settings_file(root)
    if settings_file is None:
        return {}
    modules: Dict[str, Path] = {}
    for token in load_existing_modules(settings_file.read_text(encoding="utf-8")):
        token = token if token.startswith(":") else ":" + token
        try:
            directory = root / module_path(token)
        except InvalidModuleName:
            logger.debug("Ignoring malformed include %r", token)
            continue
        if directory.is_dir():
            modules[token] = directory
    return modules


def module_packages(modules: Dict[str, Path]) -> Dict[str, str]:
    """Map every package declared in ``modules`` to the declaring module.

    Deeper modules are scanned first, so a module nested in another one's
    directory keeps its own packages.
    """
    packages: Dict[str, str] = {}
    for token, directory in sorted(modules.items(), key=lambda item: -len(item[1].parts)):
        for package in _declared_packages(directory):
            packages.setdefault(package, token)
    return packages


def analyze_source_directory(
    source_dir: Path,
    modules: Dict[str, Path],
    exclude: Iterable[str] = (),
) -> List[str]:
    """Return the sorted modules that sources below ``source_dir`` import from.

    Imports of packages declared inside ``source_dir`` itself are ignored,
    since they move along with it, and so is the module containing
    ``source_dir``.
    """
    source_dir = Path(source_dir)
    local = {package: "" for package in _declared_packages(source_dir)}
    packages = module_packages(modules)
    skipped = set(exclude)
    resolved = source_dir.resolve()
    for token, directory in modules.items():
        if directory.resolve() in resolved.parents or directory.resolve() == resolved:
            skipped.add(token)

    found = set()
    for source in collect_source_files(source_dir):
        content = _read(source)
        if content is None:
            continue
        for match in IMPORT_PATTERN.finditer(content):
            name = match.group(1)
            if _owner(name, local) is not None:
                continue
            token = _owner(name, packages)
            if token is not None and token not in skipped:
                found.add(token)
    return sorted(found)


def detect_module_dependencies(project_root: Path, source_dir: Path, exclude: Iterable[str] = ()) -> List[str]:
    """Modules of ``project_root`` that ``source_dir`` depends on."""
    modules = discover_project_modules(project_root)
    detected = analyze_source_directory(source_dir, modules, exclude)
    logger.info("Detected %d module dependencies in %s", len(detected), source_dir)
    return detected
