"""
Command‑line interface for the modulemover package.

This module exposes the following commands using :mod:`click`:

* ``relocate`` – copy the sources of a directory into a module and rewrite
  their packages and imports.
* ``create‑module`` – register a new Gradle module, write its build file,
  optionally move sources into it and add it to the application module.
* ``list‑modules`` – print the modules included by the settings file.
* ``analyze`` – print the project modules a source directory imports from.
* ``namespace`` – print the package name derived from a source directory.

All commands accept a ``--project‑root`` option which defaults to the
current working directory, or to ``$MODULEMOVER_PROJECT_ROOT`` when set.
Source directories are resolved relative to the project root first.
"""

from __future__ import annotations

import logging
import pathlib
import sys

import click

from .analyzer import detect_module_dependencies
from .errors import Outcome
from .gradle import find_settings_file, load_existing_modules
from .paths import clean_selected_path, derive_namespace_from_path, resolve_source_directory
from .workflow import ModuleRequest, create_module, relocate_sources

project_root_option = click.option(
    "--project-root", "project_root", type=click.Path(file_okay=False), default=None,
    envvar="MODULEMOVER_PROJECT_ROOT",
    help="Root directory of the Gradle project (defaults to current working directory).",
)


def resolve_root(project_root: str | None) -> pathlib.Path:
    """Return the absolute project root, failing when it is not a directory."""
    root = pathlib.Path(project_root) if project_root else pathlib.Path.cwd()
    if not root.is_dir():
        raise click.UsageError(f"Project root {root!s} does not exist or is not a directory")
    return root.resolve()


def report(outcome: Outcome, root: pathlib.Path) -> None:
    """Print an outcome, raising :class:`click.ClickException` on failure."""
    for warning in outcome.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not outcome.ok:
        raise click.ClickException(f"[{outcome.kind.value if outcome.kind else 'error'}] {outcome.message}")
    for path in outcome.files:
        try:
            click.echo(f"  {path.relative_to(root)}")
        except ValueError:
            click.echo(f"  {path}")
    click.echo(outcome.message)


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Log every file that is copied or patched.")
def cli(verbose: bool) -> None:
    """Extract Kotlin and Java sources into new Gradle modules.

    Sources are copied into the module's source set, their package
    declarations are rewritten to the module's package, and imports
    between the moved files are updated to match.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("relocate", help="Move sources into a module and rewrite packages and imports.")
@click.argument("src")
@click.argument("module")
@click.option("--namespace", "namespace", required=True, help="Package name of the target module.")
@click.option(
    "--lang", "language", type=click.Choice(["kotlin", "java"]), default="kotlin", show_default=True,
    help="Source set directory to place files in.",
)
@project_root_option
def relocate_cmd(src: str, module: str, namespace: str, language: str, project_root: str | None) -> None:
    """Relocate the sources below ``SRC`` into module ``MODULE``.

    ``SRC`` is resolved relative to the project root, then as given, then
    relative to the project root with its first segment dropped.  ``MODULE``
    is a Gradle project path such as ``:feature:home``; the files land in
    ``feature/home/src/main/<lang>/<namespace>/``.  The source directory is
    left untouched.
    """
    root = resolve_root(project_root)
    click.echo(f"Moving sources from {src} to {module} ({namespace})…")
    report(relocate_sources(root, src, module, namespace, language=language), root)


@cli.command("create-module", help="Create a module, optionally moving sources into it.")
@click.argument("module")
@click.option("--package", "package", required=True, help="Base package; module segments are appended.")
@click.option("--src", "source", default="", help="Source directory to move into the module.")
@click.option("--move/--no-move", "move_files", default=False, help="Relocate the sources of --src.")
@click.option("--library", "libraries", multiple=True, help="Version catalog library alias.")
@click.option("--plugin", "plugins", multiple=True, help="Version catalog plugin alias.")
@click.option("--depends-on", "modules", multiple=True, help="Module token the new module depends on.")
@click.option(
    "--detect-deps", "detect_dependencies", is_flag=True,
    help="Add the project modules imported by the sources of --src as dependencies.",
)
@click.option(
    "--lang", "language", type=click.Choice(["kotlin", "java"]), default="kotlin", show_default=True,
)
@project_root_option
def create_module_cmd(
    module: str,
    package: str,
    source: str,
    move_files: bool,
    libraries: tuple[str, ...],
    plugins: tuple[str, ...],
    modules: tuple[str, ...],
    detect_dependencies: bool,
    language: str,
    project_root: str | None,
) -> None:
    """Create Gradle module ``MODULE`` and wire it into the project.

    The module is included in the settings file, gets a build file declaring
    the requested plugins and dependencies, and is added as a dependency of
    the application module.  With ``--move`` the sources of ``--src`` are
    relocated into it, and with ``--detect-deps`` the project modules they
    import from become dependencies of the new module.
    """
    root = resolve_root(project_root)
    if (move_files or detect_dependencies) and not source:
        raise click.UsageError("--move and --detect-deps require --src")
    request = ModuleRequest(
        project_root=root,
        module=module,
        package=package,
        source=source,
        move_files=move_files,
        libraries=libraries,
        plugins=plugins,
        modules=modules,
        language=language,
        detect_dependencies=detect_dependencies,
    )
    report(create_module(request), root)


@cli.command("list-modules", help="List modules included by the settings file.")
@project_root_option
def list_modules_cmd(project_root: str | None) -> None:
    root = resolve_root(project_root)
    settings_file = find_settings_file(root)
    if settings_file is None:
        raise click.ClickException(f"Couldn't find settings.gradle(.kts) file in {root}")
    for module in load_existing_modules(settings_file.read_text(encoding="utf-8")):
        click.echo(module)


@cli.command("analyze", help="List the project modules imported by a source directory.")
@click.argument("src")
@project_root_option
def analyze_cmd(src: str, project_root: str | None) -> None:
    root = resolve_root(project_root)
    source_dir = resolve_source_directory(root, src)
    if not source_dir.is_dir():
        raise click.ClickException(f"[source_not_found] Source directory {source_dir} does not exist")
    detected = detect_module_dependencies(root, source_dir)
    if not detected:
        click.echo("No dependencies detected", err=True)
    for module in detected:
        click.echo(module)


@cli.command("namespace", help="Print the package name derived from a source directory.")
@click.argument("path")
@project_root_option
def namespace_cmd(path: str, project_root: str | None) -> None:
    root = pathlib.Path(project_root) if project_root else pathlib.Path.cwd()
    click.echo(derive_namespace_from_path(clean_selected_path(root, path)))


def main(argv: list[str] | None = None) -> None:
    """Entrypoint for console_scripts."""
    cli.main(args=argv, prog_name="modulemover")


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
