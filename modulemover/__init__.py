"""
Utilities for extracting Kotlin and Java sources into new Gradle modules.

This package provides a command‑line interface (CLI) that creates a Gradle
module and relocates the sources of an existing directory into it.  During a
move every copied file gets a ``package`` declaration matching its new
location, and imports between the moved files are rewritten so that they
keep referring to each other.  The rewrite is textual; no Kotlin or Java
parser is used.  The settings file and the application module's build file
are patched so that the new module is included and depended upon.

Example::

    # Create :feature:home and move sources into it
    modulemover create‑module :feature:home --package com.example \\
        --src app/src/main/kotlin/com/example/home --move

    # Only relocate sources into an existing module
    modulemover relocate app/src/main/kotlin/com/example/home :feature:home \\
        --namespace com.example.feature.home

The CLI is built on top of :mod:`click`.  See ``modulemover.cli`` for
details.
"""

__all__ = [
    "relocate",
    "build_descriptor",
    "create_module",
    "relocate_sources",
    "detect_module_dependencies",
    "ModuleRequest",
    "Outcome",
]

from .analyzer import detect_module_dependencies  # noqa: F401
from .descriptor import build_descriptor  # noqa: F401
from .errors import Outcome  # noqa: F401
from .mover import relocate  # noqa: F401
from .workflow import ModuleRequest, create_module, relocate_sources  # noqa: F401
