"""Shared fixtures: a small Gradle project laid out on disk."""

from __future__ import annotations

from pathlib import Path

import pytest

SETTINGS = 'rootProject.name = "Demo App"\ninclude(":app")\n'

APP_BUILD = """plugins {
    alias(libs.plugins.android.application)
}

dependencies {
    implementation(libs.coil)
}
"""

HOME_SCREEN = """package com.example.home

import com.example.home.ui.Card
import com.example.core.Logger

class HomeScreen(val card: Card)
"""

CARD = """package com.example.home.ui

class Card
"""


@pytest.fixture
def gradle_project(tmp_path: Path) -> Path:
    """Project ``Demo`` with an app module holding a ``home`` package."""
    root = tmp_path / "demo"
    home = root / "app" / "src" / "main" / "kotlin" / "com" / "example" / "home"
    (home / "ui").mkdir(parents=True)
    (root / "settings.gradle.kts").write_text(SETTINGS, encoding="utf-8")
    (root / "app" / "build.gradle.kts").write_text(APP_BUILD, encoding="utf-8")
    (home / "HomeScreen.kt").write_text(HOME_SCREEN, encoding="utf-8")
    (home / "ui" / "Card.kt").write_text(CARD, encoding="utf-8")
    return root


@pytest.fixture
def project_with_core(gradle_project: Path) -> Path:
    """``gradle_project`` plus an included ``:core`` module declaring ``com.example.core``."""
    core = gradle_project / "core" / "src" / "main" / "kotlin" / "com" / "example" / "core"
    core.mkdir(parents=True)
    (core / "Logger.kt").write_text("package com.example.core\n\nobject Logger\n", encoding="utf-8")
    (gradle_project / "settings.gradle.kts").write_text(
        'rootProject.name = "Demo App"\ninclude(":app", ":core")\n', encoding="utf-8"
    )
    return gradle_project
