"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for keeping checkpoint commits small and readable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigurationError, ManifestError

# Key of this tool's table under [tool] in any pyproject.toml.
TOOL_KEY = "ordered-wheels"

# Trove classifier PyPI uses to refuse uploads of private packages.
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ManifestError: If the file cannot be read or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except (OSError, TOMLKitError) as exc:
        raise ManifestError(f"Failed to load {path}: {exc}", operation="load") from exc


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    try:
        path.write_text(tomlkit.dumps(doc))
    except OSError as exc:
        raise ManifestError(f"Failed to write {path}: {exc}", operation="save") from exc


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def get_runtime_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect the dependency strings that end up in published metadata.

    Gathers dependencies from two locations:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [cli], [async])

    [dependency-groups] (PEP 735) are left out: they are development-only
    and never reach the registry, so they cannot constrain publish order.

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    """
    project = doc.get("project", {})
    deps: list[str] = [str(d) for d in project.get("dependencies", [])]
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(str(d) for d in group_deps)
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        ConfigurationError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ConfigurationError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members]


def get_tool_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return [tool.ordered-wheels] as a plain dict (empty if absent)."""
    table = doc.get("tool", {}).get(TOOL_KEY)
    if table is None:
        return {}
    return table.unwrap()


def is_publishable(doc: tomlkit.TOMLDocument) -> bool:
    """Whether a package may be uploaded to a registry.

    A package opts out either with the standard "Private :: Do Not Upload"
    classifier or with ``publish = false`` in [tool.ordered-wheels].
    """
    classifiers = [str(c) for c in doc.get("project", {}).get("classifiers", [])]
    if PRIVATE_CLASSIFIER in classifiers:
        return False
    return bool(get_tool_table(doc).get("publish", True))


def get_registry(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract the upload URL override from [tool.ordered-wheels].registry."""
    registry = get_tool_table(doc).get("registry")
    return str(registry) if registry else None


def set_tool_value(doc: tomlkit.TOMLDocument, key: str, value: Any) -> None:
    """Set a key in [tool.ordered-wheels], creating the tables as needed."""
    tool = doc.get("tool")
    if tool is None:
        tool = tomlkit.table(is_super_table=True)
        doc["tool"] = tool
    section = tool.get(TOOL_KEY)
    if section is None:
        section = tomlkit.table()
        tool[TOOL_KEY] = section
    section[key] = value
