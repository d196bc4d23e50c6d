#!/usr/bin/env python
import json
import sys
from pathlib import Path

USAGE = (
    "Usage: relocate_module.py '{\"project_root\": \"/path\", \"module\": \":feature:home\", "
    "\"package\": \"com.example\", \"source\": \"app/src/main/kotlin/com/example/home\", \"move_files\": true}'"
)

LANGUAGES = ("kotlin", "java")


def _string(payload, key, default=None):
    value = payload.get(key, default) if default is not None else payload[key]
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value


def _flag(payload, key):
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise TypeError(f"'{key}' must be true or false")
    return value


def _strings(payload, key):
    value = payload.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"'{key}' must be a list of strings")
    return tuple(value)


def parse_payload(raw):
    """Turn the JSON argument into ``ModuleRequest`` keyword arguments."""
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise TypeError("payload must be a JSON object")
    language = _string(payload, "language", "kotlin")
    if language not in LANGUAGES:
        raise ValueError(f"'language' must be one of {', '.join(LANGUAGES)}")
    return dict(
        project_root=Path(_string(payload, "project_root")).resolve(),
        module=_string(payload, "module"),
        package=_string(payload, "package"),
        source=_string(payload, "source", ""),
        move_files=_flag(payload, "move_files"),
        libraries=_strings(payload, "libraries"),
        plugins=_strings(payload, "plugins"),
        modules=_strings(payload, "modules"),
        language=language,
        detect_dependencies=_flag(payload, "detect_dependencies"),
    )


def main():
    if len(sys.argv) < 2:
        print(USAGE, file=sys.stderr)
        sys.exit(2)

    try:
        arguments = parse_payload(sys.argv[1])
    except (ValueError, KeyError, TypeError) as e:
        print(f"Invalid payload: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        # Import here so the extension fails gracefully if modulemover isn't installed yet
        from modulemover.workflow import ModuleRequest, create_module
    except ImportError as e:
        print("Could not import 'modulemover'. Make sure it is installed in the selected Python environment.", file=sys.stderr)
        print(str(e), file=sys.stderr)
        sys.exit(3)

    outcome = create_module(ModuleRequest(**arguments))
    print(json.dumps(outcome.to_dict(), indent=2))
    sys.exit(0 if outcome.ok else 1)


if __name__ == "__main__":
    main()
