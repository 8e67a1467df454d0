"""Project and framework detection from manifest files."""

import json
import os
from collections.abc import Callable
from typing import Any

from .filesystem import FileSystem, LocalFileSystem
from .models import ProjectInfo

UNKNOWN_FRAMEWORK = "Unknown"
NODE_FRAMEWORK = "Node.js"

# Dependency name → label; meta-frameworks come before the base framework
NODE_FRAMEWORKS: tuple[tuple[str, str], ...] = (
    ("next", "Next.js"),
    ("nuxt", "Nuxt"),
    ("@sveltejs/kit", "SvelteKit"),
    ("@angular/core", "Angular"),
    ("react", "React"),
    ("vue", "Vue"),
    ("svelte", "Svelte"),
    ("vite", "Vite"),
    ("express", "Express"),
)

PYTHON_FRAMEWORKS: tuple[tuple[str, str], ...] = (
    ("django", "Django"),
    ("flask", "Flask"),
    ("fastapi", "FastAPI"),
)

ErrorHook = Callable[[str, BaseException], None]


def detect_project(
    working_dir: str | None,
    filesystem: FileSystem | None = None,
    on_error: ErrorHook | None = None,
) -> ProjectInfo | None:
    """Detect the project and framework living at a working directory.

    Manifests are checked in fixed order and the first one present decides:
    package.json, requirements.txt, Gemfile, composer.json, pom.xml.
    Detection is best-effort: read or parse faults are reported to
    ``on_error`` and yield None.

    Args:
        working_dir: Resolved working directory of the process
        filesystem: Filesystem query capability
        on_error: Called with (working_dir, exception) when detection fails

    Returns:
        ProjectInfo, or None if nothing could be detected
    """
    if not working_dir:
        return None
    fs = filesystem or LocalFileSystem()

    try:
        if not fs.is_dir(working_dir):
            return None
        framework = _detect_framework(working_dir, fs)
    except (OSError, ValueError, UnicodeError) as e:
        if on_error is not None:
            on_error(working_dir, e)
        return None

    name = os.path.basename(os.path.normpath(working_dir)) or working_dir
    return ProjectInfo(name=name, path=working_dir, framework=framework)


def _detect_framework(working_dir: str, fs: FileSystem) -> str:
    detectors: list[tuple[str, Callable[[str], str]]] = [
        ("package.json", _framework_from_package_json),
        ("requirements.txt", _framework_from_requirements),
        ("Gemfile", _framework_from_gemfile),
        ("composer.json", _framework_from_composer),
        ("pom.xml", _framework_from_pom),
    ]

    for filename, detector in detectors:
        manifest = os.path.join(working_dir, filename)
        if fs.exists(manifest):
            return detector(fs.read_text(manifest))

    return UNKNOWN_FRAMEWORK


def _framework_from_package_json(content: str) -> str:
    """Match known framework dependencies in package.json.

    Raises:
        ValueError: If the manifest is not valid JSON
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        return NODE_FRAMEWORK

    deps: dict[str, Any] = {}
    for section in ("dependencies", "devDependencies"):
        value = data.get(section)
        if isinstance(value, dict):
            deps.update(value)

    for dependency, label in NODE_FRAMEWORKS:
        if dependency in deps:
            return label
    return NODE_FRAMEWORK


def _framework_from_requirements(content: str) -> str:
    lower = content.lower()
    for marker, label in PYTHON_FRAMEWORKS:
        if marker in lower:
            return label
    return "Python"


def _framework_from_gemfile(content: str) -> str:
    return "Ruby on Rails" if "rails" in content.lower() else "Ruby"


def _framework_from_composer(content: str) -> str:
    lower = content.lower()
    if "laravel/framework" in lower:
        return "Laravel"
    if "symfony/" in lower:
        return "Symfony"
    return "PHP"


def _framework_from_pom(content: str) -> str:
    return "Spring Boot" if "spring-boot" in content.lower() else "Java/Maven"
