"""
Targeted text edits to Gradle settings and build files.

Neither file is parsed.  Each patch function takes the file content and
returns the patched content, anchored on a small regular expression.  All
patches are idempotent: applying one to its own output returns that output
unchanged, so a flow that is retried after a failed sync converges.

The dependency patch assumes the build file has a single top-level
``dependencies { ... }`` block without nested braces; the first such block
is the one edited.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional

from .descriptor import module_accessor

__all__ = [
    "SETTINGS_FILE_NAMES",
    "APP_BUILD_FILE_CANDIDATES",
    "FEATURE_FLAG_MARKER",
    "find_settings_file",
    "find_app_build_file",
    "ensure_feature_flag_enabled",
    "register_dependency",
    "register_module",
    "load_existing_modules",
    "dependency_line",
    "apply_patch",
]

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAMES = ("settings.gradle.kts", "settings.gradle")

APP_MODULE_DIRS = ("app", "mobile", "androidApp")
APP_BUILD_FILE_CANDIDATES = tuple(
    f"{module}/{name}" for module in APP_MODULE_DIRS for name in ("build.gradle", "build.gradle.kts")
)

FEATURE_FLAG_MARKER = "TYPESAFE_PROJECT_ACCESSORS"
FEATURE_FLAG_LINE = f'enableFeaturePreview("{FEATURE_FLAG_MARKER}")'

_ROOT_PROJECT_NAME = re.compile(r"""rootProject\.name\s*=\s*["']([^"']+)["']""")
_DEPENDENCIES_BLOCK = re.compile(r"dependencies\s*\{([^}]*)\}", re.DOTALL)
_INCLUDE_STATEMENT = re.compile(r"""\binclude\s*\(?((?:\s*["'][^"']+["']\s*,?)+)""")
_QUOTED = re.compile(r"""["']([^"']+)["']""")


def find_settings_file(project_root: Path) -> Optional[Path]:
    """Return the project's settings file, preferring the Kotlin DSL one."""
    for name in SETTINGS_FILE_NAMES:
        candidate = Path(project_root) / name
        if candidate.is_file():
            return candidate
    return None


def find_app_build_file(project_root: Path) -> Optional[Path]:
    """Locate the build file of the application module, Groovy DSL first."""
    for location in APP_BUILD_FILE_CANDIDATES:
        candidate = Path(project_root) / location
        if candidate.is_file():
            return candidate
    return None


def ensure_feature_flag_enabled(content: str) -> str:
    """Enable type-safe project accessors in a settings file.

    The ``enableFeaturePreview`` line is inserted right after the
    ``rootProject.name`` line, whose quoted value loses any spaces on the
    way (accessor generation rejects them).  Content that mentions the
    feature anywhere is returned untouched.
    """
    if FEATURE_FLAG_MARKER in content:
        return content
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if not line.strip().startswith("rootProject.name"):
            continue
        match = _ROOT_PROJECT_NAME.search(line)
        if match:
            original = match.group(1)
            cleaned = original.replace(" ", "")
            if cleaned != original:
                quote = '"' if '"' in line else "'"
                lines[index] = (
                    line[: match.start()]
                    + f"rootProject.name = {quote}{cleaned}{quote}"
                    + line[match.end():]
                )
        lines.insert(index + 1, FEATURE_FLAG_LINE)
        return "\n".join(lines)
    logger.warning("No rootProject.name line found; %s not enabled", FEATURE_FLAG_MARKER)
    return content


def dependency_line(token: str) -> str:
    return f"    implementation(projects.{module_accessor(token)})"


def register_dependency(content: str, token: str) -> str:
    """Add a project dependency on ``token`` to a build file.

    The line goes right before the closing brace of the first
    ``dependencies`` block.  Nothing changes when the block already holds
    the line or when there is no block at all.
    """
    match = _DEPENDENCIES_BLOCK.search(content)
    if match is None:
        logger.warning("No dependencies block found; dependency on %s not added", token)
        return content
    line = dependency_line(token)
    body = match.group(1)
    if line in body:
        return content
    stripped = body.rstrip()
    closing_indent = body[len(stripped):].rpartition("\n")[2]
    new_body = f"{stripped}\n{line}\n{closing_indent}"
    return content[: match.start(1)] + new_body + content[match.end(1):]


def load_existing_modules(content: str) -> List[str]:
    """Return the sorted module paths included by a settings file.

    Understands ``include(":a")``, ``include ':a', ':b'`` and include lists
    continued over several lines.
    """
    modules = set()
    for statement in _INCLUDE_STATEMENT.finditer(content):
        for quoted in _QUOTED.finditer(statement.group(1)):
            modules.add(quoted.group(1))
    return sorted(modules)


def register_module(content: str, token: str) -> str:
    """Append ``include("<token>")`` unless ``token`` is already included."""
    if token in load_existing_modules(content):
        return content
    separator = "" if not content or content.endswith("\n") else "\n"
    return f'{content}{separator}include("{token}")\n'


def apply_patch(path: Path, patch: Callable[..., str], *args) -> bool:
    """Apply a content patch to the file at ``path``.

    The file is only written when ``patch`` changed its content.  Returns
    whether it was written.
    """
    content = path.read_text(encoding="utf-8")
    updated = patch(content, *args)
    if updated == content:
        return False
    path.write_text(updated, encoding="utf-8")
    logger.debug("Patched %s with %s", path, patch.__name__)
    return True
