"""
End-to-end flows built from the individual components.

:func:`create_module` validates a module request, registers the module in
the settings file, writes its build file, optionally relocates sources into
it and wires it into the application module.  :func:`relocate_sources` runs
only the relocation step.  Both return an :class:`~modulemover.errors.Outcome`
instead of raising, so they can be handed to :class:`BackgroundRunner` and
reported by any front end.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from . import gradle
from .analyzer import detect_module_dependencies
from .descriptor import ModuleDescriptor, build_descriptor, module_path, render_build_file
from .errors import (
    ErrorKind,
    ModuleMoverError,
    Outcome,
    RegistryFileMissing,
    SourceNotFound,
    ValidationError,
)
from .mover import RelocationResult, relocate
from .paths import resolve_source_directory

__all__ = [
    "ModuleRequest",
    "create_module",
    "relocate_sources",
    "BackgroundRunner",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleRequest:
    """Inputs of :func:`create_module`."""

    project_root: Path
    module: str
    package: str
    source: str = ""
    move_files: bool = False
    libraries: Tuple[str, ...] = field(default=())
    plugins: Tuple[str, ...] = field(default=())
    modules: Tuple[str, ...] = field(default=())
    language: str = "kotlin"
    detect_dependencies: bool = False


def _relocation_warnings(result: RelocationResult) -> List[str]:
    kind = result.warning_kind
    return [f"{kind.value}: {w}" for w in result.warnings] if kind else list(result.warnings)


def _write_build_file(module_dir: Path, descriptor: ModuleDescriptor) -> Optional[Path]:
    for name in ("build.gradle.kts", "build.gradle"):
        if (module_dir / name).exists():
            logger.info("Keeping existing %s", module_dir / name)
            return None
    build_file = module_dir / "build.gradle.kts"
    build_file.write_text(render_build_file(descriptor), encoding="utf-8")
    return build_file


def create_module(request: ModuleRequest) -> Outcome:
    """Create and register a module, moving sources into it on request.

    Steps, in order:

    1. validate the module token and derive the module descriptor
    2. when sources are moved or analysed, check the source directory exists
       (aborts with ``source_not_found`` before anything is written) and,
       with ``detect_dependencies``, add the modules its imports come from
    3. locate the settings file (aborts with ``registry_file_missing``)
    4. enable type-safe project accessors and include the module
    5. create the module directory, its build file and package directory
    6. if ``move_files`` is set, relocate the selected sources
    7. add the module as a dependency of the application module

    A settings or build file patch that does not apply only adds a warning.
    """
    root = Path(request.project_root)
    files: List[Path] = []
    warnings: List[str] = []
    try:
        descriptor = build_descriptor(
            request.module, request.package, request.libraries, request.plugins, request.modules
        )
        source_dir = None
        if request.move_files or request.detect_dependencies:
            source_dir = resolve_source_directory(root, request.source)
            if not source_dir.is_dir():
                raise SourceNotFound(f"Source directory {source_dir} does not exist or is not a directory")
        if request.detect_dependencies:
            detected = detect_module_dependencies(root, source_dir, exclude=(descriptor.token,))
            descriptor = build_descriptor(
                request.module,
                request.package,
                request.libraries,
                request.plugins,
                tuple(request.modules) + tuple(detected),
            )
        settings_file = gradle.find_settings_file(root)
        if settings_file is None:
            raise RegistryFileMissing(f"Couldn't find settings.gradle(.kts) file in {root}")

        gradle.apply_patch(settings_file, gradle.ensure_feature_flag_enabled)
        if gradle.FEATURE_FLAG_MARKER not in settings_file.read_text(encoding="utf-8"):
            warnings.append(f"{ErrorKind.PATCH_NOT_APPLIED.value}: type-safe accessors not enabled")
        gradle.apply_patch(settings_file, gradle.register_module, descriptor.token)

        module_dir = root / descriptor.path
        module_dir.mkdir(parents=True, exist_ok=True)
        build_file = _write_build_file(module_dir, descriptor)
        if build_file is not None:
            files.append(build_file)
        Path(module_dir, "src", "main", request.language, *descriptor.namespace.split(".")).mkdir(
            parents=True, exist_ok=True
        )

        if request.move_files:
            result = relocate(source_dir, module_dir, descriptor.namespace, language=request.language)
            files.extend(result.moved_files)
            warnings.extend(_relocation_warnings(result))

        app_build_file = gradle.find_app_build_file(root)
        if app_build_file is None:
            warnings.append(f"{ErrorKind.PATCH_NOT_APPLIED.value}: no application build file found")
        else:
            gradle.apply_patch(app_build_file, gradle.register_dependency, descriptor.token)
            if gradle.dependency_line(descriptor.token) not in app_build_file.read_text(encoding="utf-8"):
                warnings.append(
                    f"{ErrorKind.PATCH_NOT_APPLIED.value}: no dependencies block in {app_build_file}"
                )
    except ModuleMoverError as exc:
        logger.error("Error creating module %s: %s", request.module, exc)
        return Outcome.failure(exc, files)
    except OSError as exc:
        logger.exception("Error creating module %s", request.module)
        return Outcome(ok=False, message=f"Error creating module: {exc}", kind=ErrorKind.PER_FILE_IO, files=files)

    return Outcome(
        ok=True,
        message=f"Module '{descriptor.token}' created successfully",
        files=files,
        warnings=warnings,
    )


def relocate_sources(
    project_root: Path,
    source: str,
    module: str,
    namespace: str,
    *,
    language: str = "kotlin",
) -> Outcome:
    """Relocate sources into an existing module directory.

    ``module`` is a module token; the module directory is derived from it
    the same way :func:`create_module` does.
    """
    root = Path(project_root)
    try:
        target = module_path(module)
        if not namespace.strip():
            raise ValidationError("Package name must not be empty")
        source_dir = resolve_source_directory(root, source)
        result = relocate(source_dir, root / target, namespace.strip(), language=language)
    except ModuleMoverError as exc:
        logger.error("Error moving files: %s", exc)
        return Outcome.failure(exc)
    message = f"Files moved to new module: {target.as_posix()}"
    if result.warning_kind is ErrorKind.NO_FILES_FOUND:
        message = result.warnings[0]
    return Outcome(
        ok=True,
        message=message,
        files=result.moved_files,
        warnings=_relocation_warnings(result),
    )


class BackgroundRunner:
    """Runs flows on a single worker thread owned by the caller.

    Results are delivered to ``on_complete`` from the worker thread; a front
    end with thread affinity must marshal them itself.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="modulemover")

    def submit(
        self,
        fn: Callable[..., Outcome],
        *args,
        on_complete: Optional[Callable[[Outcome], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[Optional[Outcome]]":
        return self._executor.submit(self._run, fn, args, on_complete, cancel_event)

    @staticmethod
    def _run(fn, args, on_complete, cancel_event) -> Optional[Outcome]:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Worker: %s cancelled before start", getattr(fn, "__name__", fn))
            return None
        try:
            outcome = fn(*args)
        except Exception as exc:
            logger.critical("Worker: unexpected failure in %s", getattr(fn, "__name__", fn), exc_info=True)
            outcome = Outcome(ok=False, message=str(exc))
        if on_complete is not None:
            on_complete(outcome)
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundRunner":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
