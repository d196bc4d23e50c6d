"""
Validation of module tokens and formatting of Gradle dependency declarations.

A module token is the Gradle project path of the module to create, such as
``:home`` or ``:feature:home``.  :func:`build_descriptor` validates the token
and derives everything else the workflow needs from it: the directory the
module lives in, its package name and the dependency lines for its build
file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .errors import InvalidModuleName, ValidationError

__all__ = [
    "DEFAULT_MODULE_NAME",
    "ModuleDescriptor",
    "build_descriptor",
    "module_namespace",
    "module_path",
    "module_accessor",
    "validate_module_input",
    "format_library_dependencies",
    "format_plugin_dependencies",
    "format_module_dependencies",
    "group_libraries",
    "render_build_file",
]

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAME = ":module"


@dataclass(frozen=True)
class ModuleDescriptor:
    """Everything derived from a validated module token."""

    token: str
    path: Path
    namespace: str
    libraries: Tuple[str, ...] = field(default=())
    plugins: Tuple[str, ...] = field(default=())
    modules: Tuple[str, ...] = field(default=())

    @property
    def segments(self) -> List[str]:
        return self.token.lstrip(":").split(":")

    @property
    def library_declarations(self) -> str:
        return format_library_dependencies(self.libraries)

    @property
    def plugin_declarations(self) -> str:
        return format_plugin_dependencies(self.plugins)

    @property
    def module_declarations(self) -> str:
        return format_module_dependencies(self.modules)


def _unique(tokens: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for token in tokens:
        token = token.strip()
        if token:
            seen.setdefault(token, None)
    return tuple(seen)


def _segments(token: str) -> List[str]:
    token = token.strip()
    if not token.startswith(":"):
        raise InvalidModuleName(
            f"Module name must start with ':' (e.g. ':home' or ':feature:home'), got {token!r}"
        )
    segments = token[1:].split(":")
    if not all(segments):
        raise InvalidModuleName(f"Module name {token!r} contains an empty segment")
    return segments


def module_namespace(token: str, base_package: str) -> str:
    """Return ``base_package`` extended by the lower-cased token segments.

    ``module_namespace(":feature:Home", "com.app")`` is ``com.app.feature.home``.
    """
    return base_package + "." + ".".join(s.lower() for s in _segments(token))


def module_path(token: str) -> Path:
    """Directory of a module relative to the project root, ``:a:b`` -> ``a/b``."""
    return Path(*_segments(token))


def module_accessor(token: str) -> str:
    """Dotted form of a module token as used by type-safe project accessors."""
    return token.strip().lstrip(":").replace(":", ".")


def build_descriptor(
    raw_token: str,
    base_package: str,
    libraries: Iterable[str] = (),
    plugins: Iterable[str] = (),
    modules: Iterable[str] = (),
) -> ModuleDescriptor:
    """Validate ``raw_token`` and derive a :class:`ModuleDescriptor`.

    Raises
    ------
    InvalidModuleName
        If the trimmed token does not start with ``:``.
    ValidationError
        If ``base_package`` is empty.
    """
    token = raw_token.strip()
    base = base_package.strip()
    if not base:
        raise ValidationError("Package name must not be empty")
    descriptor = ModuleDescriptor(
        token=token,
        path=module_path(token),
        namespace=module_namespace(token, base),
        libraries=_unique(libraries),
        plugins=_unique(plugins),
        modules=_unique(m for m in modules if m.strip() != token),
    )
    logger.debug("Module %s -> %s (%s)", token, descriptor.path, descriptor.namespace)
    return descriptor


def validate_module_input(base_package: str, token: str) -> bool:
    return bool(base_package) and bool(token) and token != DEFAULT_MODULE_NAME


def _catalog_accessor(alias: str) -> str:
    return alias.strip().replace("-", ".").replace("_", ".")


def format_library_dependencies(aliases: Iterable[str]) -> str:
    """``implementation(libs.x.y)`` lines for version catalog library aliases."""
    return "\n".join(f"implementation(libs.{_catalog_accessor(a)})" for a in _unique(aliases))


def format_plugin_dependencies(aliases: Iterable[str]) -> str:
    return "\n".join(f"alias(libs.plugins.{_catalog_accessor(a)})" for a in _unique(aliases))


def format_module_dependencies(tokens: Iterable[str]) -> str:
    return "\n".join(f"implementation(projects.{module_accessor(t)})" for t in _unique(tokens))


def group_libraries(aliases: List[str]) -> Dict[str, List[str]]:
    """Group catalog aliases by their first ``-`` separated word.

    A prefix only forms a group when at least two aliases share it; the
    remaining aliases are collected under ``"Other"``.
    """
    grouped: Dict[str, List[str]] = {}
    ungrouped: List[str] = []
    for alias in aliases:
        prefix, sep, _ = alias.partition("-")
        if sep and sum(1 for a in aliases if a.startswith(prefix + "-")) > 1:
            grouped.setdefault(prefix, []).append(alias)
        else:
            ungrouped.append(alias)
    if ungrouped:
        grouped["Other"] = ungrouped
    return {key: sorted(value) for key, value in grouped.items()}


def _indent(block: str) -> str:
    return "\n".join("    " + line for line in block.splitlines())


def render_build_file(descriptor: ModuleDescriptor) -> str:
    """Minimal ``build.gradle.kts`` for a freshly created module."""
    plugins = descriptor.plugin_declarations
    dependencies = "\n".join(
        part for part in (descriptor.library_declarations, descriptor.module_declarations) if part
    )
    sections = [
        "plugins {\n" + (_indent(plugins) + "\n" if plugins else "") + "}",
        "dependencies {\n" + (_indent(dependencies) + "\n" if dependencies else "") + "}",
    ]
    return "\n\n".join(sections) + "\n"
