"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings and rewriting
pyproject.toml files: pinning internal workspace dependencies to exact
versions, setting a package's own version, and recording a registry
override.
"""

from __future__ import annotations

from typing import Any, cast

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name

from .models import Workspace
from .toml import load_pyproject, save_pyproject, set_tool_value


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version.

    Preserves any extras and environment markers specified in the original
    dependency string, but replaces the version specifier with an exact pin.

    Examples:
        pin_dep("requests>=2.0", "2.31.0") → "requests==2.31.0"
        pin_dep("pkg[extra1,extra2]~=1.0", "1.5.0") → "pkg[extra1,extra2]==1.5.0"
        pin_dep('pkg>=1; python_version<"3.11"', "1.5.0")
            → 'pkg==1.5.0; python_version < "3.11"'
    """
    req = Requirement(dep_str)
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}=={version}{marker}"


def _pin_dep_list(deps: list, versions: dict[str, str]) -> bool:
    """Pin internal dependencies in a list, modifying in place.

    Args:
        deps: List of dependency strings (modified in place).
        versions: Map of canonical package name → version to pin.

    Returns:
        True if any entry was rewritten.
    """
    changed = False
    for i, dep_str in enumerate(deps):
        name = dep_canonical_name(str(dep_str))
        if name in versions:
            pinned = pin_dep(str(dep_str), versions[name])
            if pinned != str(dep_str):
                deps[i] = pinned
                changed = True
    return changed


def write_dependency_versions(
    workspace: Workspace, target: str, versions: dict[str, str]
) -> bool:
    """Pin several internal dependencies of one package at once.

    Deps are pinned in every location:
    - [project].dependencies
    - [project].optional-dependencies.*
    - [dependency-groups].*

    The manifest is only rewritten when a pin actually changed, so calling
    this on a package that does not depend on any of `versions` leaves the
    working tree untouched.

    Args:
        workspace: Workspace owning the target package.
        target: Package whose manifest is rewritten.
        versions: Map of dependency name → version to pin.

    Returns:
        True if the manifest was modified.
    """
    path = workspace.manifest_path(target)
    doc = load_pyproject(path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc.get("project", {}))

    changed = False
    deps = project.get("dependencies")
    if isinstance(deps, list):
        changed |= _pin_dep_list(deps, versions)

    opt_deps = project.get("optional-dependencies")
    if isinstance(opt_deps, dict):
        for group in opt_deps.values():
            if isinstance(group, list):
                changed |= _pin_dep_list(group, versions)

    dep_groups = doc.get("dependency-groups")
    if isinstance(dep_groups, dict):
        for group in dep_groups.values():
            if isinstance(group, list):
                changed |= _pin_dep_list(group, versions)

    if changed:
        save_pyproject(path, doc)
    return changed


def write_dependency_version(
    workspace: Workspace, target: str, dependency: str, version: str
) -> bool:
    """Pin `dependency` to `version` wherever `target`'s manifest requires it."""
    return write_dependency_versions(workspace, target, {dependency: version})


def write_package_version(workspace: Workspace, name: str, version: str) -> None:
    """Set [project].version of a package on disk and in memory."""
    path = workspace.manifest_path(name)
    doc = load_pyproject(path)
    project = cast(dict[str, Any], doc["project"])
    project["version"] = version
    save_pyproject(path, doc)
    workspace[name].version = version


def set_registry(workspace: Workspace, name: str, registry_url: str) -> None:
    """Record an upload URL override for a package on disk and in memory."""
    path = workspace.manifest_path(name)
    doc = load_pyproject(path)
    set_tool_value(doc, "registry", registry_url)
    save_pyproject(path, doc)
    workspace[name].registry = registry_url
