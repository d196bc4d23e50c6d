import threading
from pathlib import Path

from modulemover.errors import ErrorKind, Outcome
from modulemover.workflow import BackgroundRunner, ModuleRequest, create_module, relocate_sources

HOME_SRC = "app/src/main/kotlin/com/example/home"


def module_package_dir(root: Path) -> Path:
    return root / "feature" / "home" / "src" / "main" / "kotlin" / "com" / "example" / "feature" / "home"


def request(root: Path, **overrides) -> ModuleRequest:
    values = dict(
        project_root=root,
        module=":feature:home",
        package="com.example",
        source=HOME_SRC,
        move_files=True,
        libraries=("coil",),
    )
    values.update(overrides)
    return ModuleRequest(**values)


# -----------------------------------------------------------------------------
# create_module
# -----------------------------------------------------------------------------

def test_create_module_end_to_end(gradle_project):
    outcome = create_module(request(gradle_project))

    assert outcome.ok, outcome.message
    assert outcome.kind is None
    assert outcome.warnings == []
    assert outcome.message == "Module ':feature:home' created successfully"

    settings = (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8")
    assert settings == (
        'rootProject.name = "DemoApp"\n'
        'enableFeaturePreview("TYPESAFE_PROJECT_ACCESSORS")\n'
        'include(":app")\n'
        'include(":feature:home")\n'
    )

    app_build = (gradle_project / "app" / "build.gradle.kts").read_text(encoding="utf-8")
    assert "    implementation(projects.feature.home)\n}" in app_build

    build_file = gradle_project / "feature" / "home" / "build.gradle.kts"
    assert "implementation(libs.coil)" in build_file.read_text(encoding="utf-8")

    package_dir = module_package_dir(gradle_project)
    screen = package_dir / "HomeScreen.kt"
    card = package_dir / "ui" / "Card.kt"
    assert outcome.files == [build_file, screen, card]
    assert screen.read_text(encoding="utf-8") == (
        "package com.example.feature.home\n\n"
        "import com.example.feature.home.ui.Card\n"
        "import com.example.core.Logger\n\n"
        "class HomeScreen(val card: Card)\n"
    )
    assert card.read_text(encoding="utf-8").startswith("package com.example.feature.home.ui\n")


def test_create_module_twice_converges(gradle_project):
    create_module(request(gradle_project))
    settings = (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8")
    app_build = (gradle_project / "app" / "build.gradle.kts").read_text(encoding="utf-8")

    outcome = create_module(request(gradle_project))

    assert outcome.ok
    assert (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8") == settings
    assert (gradle_project / "app" / "build.gradle.kts").read_text(encoding="utf-8") == app_build
    # the existing build file is kept, only the moved files are reported
    assert len(outcome.files) == 2


def test_create_module_without_moving_files(gradle_project):
    outcome = create_module(request(gradle_project, move_files=False))

    assert outcome.ok
    assert module_package_dir(gradle_project).is_dir()
    assert list(module_package_dir(gradle_project).iterdir()) == []
    assert outcome.files == [gradle_project / "feature" / "home" / "build.gradle.kts"]


def test_invalid_module_token_touches_nothing(gradle_project):
    settings_before = (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8")

    outcome = create_module(request(gradle_project, module="feature:home"))

    assert not outcome.ok
    assert outcome.kind is ErrorKind.VALIDATION
    assert "must start with ':'" in outcome.message
    assert not (gradle_project / "feature").exists()
    assert (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8") == settings_before


def test_missing_settings_file_aborts(gradle_project):
    (gradle_project / "settings.gradle.kts").unlink()

    outcome = create_module(request(gradle_project))

    assert not outcome.ok
    assert outcome.kind is ErrorKind.REGISTRY_FILE_MISSING
    assert not (gradle_project / "feature").exists()


def test_missing_app_build_file_is_a_warning(gradle_project):
    (gradle_project / "app" / "build.gradle.kts").unlink()

    outcome = create_module(request(gradle_project))

    assert outcome.ok
    assert outcome.warnings == ["patch_not_applied: no application build file found"]


def test_app_build_file_without_dependencies_block_is_a_warning(gradle_project):
    (gradle_project / "app" / "build.gradle.kts").write_text("plugins {\n}\n", encoding="utf-8")

    outcome = create_module(request(gradle_project))

    assert outcome.ok
    assert len(outcome.warnings) == 1
    assert outcome.warnings[0].startswith("patch_not_applied: no dependencies block")


def test_missing_source_directory_touches_nothing(gradle_project):
    settings_before = (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8")
    app_build_before = (gradle_project / "app" / "build.gradle.kts").read_text(encoding="utf-8")

    outcome = create_module(request(gradle_project, source="app/src/main/kotlin/nowhere"))

    assert not outcome.ok
    assert outcome.kind is ErrorKind.SOURCE_NOT_FOUND
    assert outcome.files == []
    assert not (gradle_project / "feature").exists()
    assert (gradle_project / "settings.gradle.kts").read_text(encoding="utf-8") == settings_before
    assert (gradle_project / "app" / "build.gradle.kts").read_text(encoding="utf-8") == app_build_before


def test_detected_dependencies_are_added_to_the_build_file(project_with_core):
    outcome = create_module(request(project_with_core, detect_dependencies=True, modules=(":shared",)))

    assert outcome.ok, outcome.message
    build = (project_with_core / "feature" / "home" / "build.gradle.kts").read_text(encoding="utf-8")
    assert "implementation(projects.shared)" in build
    assert "implementation(projects.core)" in build
    assert "projects.app" not in build


def test_detection_without_matching_modules_adds_nothing(gradle_project):
    outcome = create_module(request(gradle_project, move_files=False, detect_dependencies=True))

    assert outcome.ok
    build = (gradle_project / "feature" / "home" / "build.gradle.kts").read_text(encoding="utf-8")
    assert "projects." not in build


# -----------------------------------------------------------------------------
# relocate_sources
# -----------------------------------------------------------------------------

def test_relocate_sources(gradle_project):
    outcome = relocate_sources(gradle_project, HOME_SRC, ":feature:home", "com.example.feature.home")

    assert outcome.ok
    assert outcome.message == "Files moved to new module: feature/home"
    assert [p.name for p in outcome.files] == ["HomeScreen.kt", "Card.kt"]


def test_relocate_sources_resolves_project_name_prefix(gradle_project, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path / "demo" / "app")
    outcome = relocate_sources(gradle_project, "demo/" + HOME_SRC, ":home", "com.example.home")
    assert outcome.ok
    assert len(outcome.files) == 2


def test_relocate_sources_missing_directory(gradle_project):
    outcome = relocate_sources(gradle_project, "does/not/exist", ":feature:home", "com.example")

    assert not outcome.ok
    assert outcome.kind is ErrorKind.SOURCE_NOT_FOUND
    assert not (gradle_project / "feature").exists()


def test_relocate_sources_without_files(gradle_project):
    (gradle_project / "empty").mkdir()

    outcome = relocate_sources(gradle_project, "empty", ":feature:home", "com.example")

    assert outcome.ok
    assert outcome.files == []
    assert outcome.message.startswith("No source files found")
    assert outcome.warnings[0].startswith("no_files_found: ")


def test_relocate_sources_rejects_bad_token(gradle_project):
    outcome = relocate_sources(gradle_project, HOME_SRC, "home", "com.example")
    assert outcome.kind is ErrorKind.VALIDATION


# -----------------------------------------------------------------------------
# BackgroundRunner
# -----------------------------------------------------------------------------

def test_background_runner_delivers_outcome(gradle_project):
    received = []
    with BackgroundRunner() as runner:
        future = runner.submit(create_module, request(gradle_project), on_complete=received.append)
        outcome = future.result(timeout=30)

    assert outcome.ok
    assert received == [outcome]


def test_background_runner_skips_cancelled_work(gradle_project):
    cancel = threading.Event()
    cancel.set()
    received = []
    with BackgroundRunner() as runner:
        future = runner.submit(
            create_module, request(gradle_project), on_complete=received.append, cancel_event=cancel
        )
        assert future.result(timeout=30) is None

    assert received == []
    assert not (gradle_project / "feature").exists()


def test_background_runner_converts_unexpected_errors():
    def explode() -> Outcome:
        raise RuntimeError("boom")

    with BackgroundRunner() as runner:
        outcome = runner.submit(explode).result(timeout=30)

    assert not outcome.ok
    assert outcome.message == "boom"
