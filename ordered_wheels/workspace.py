"""Workspace discovery: turn a uv workspace on disk into a Workspace model.

Loading happens in two passes, mirroring how the dependency graph is
consumed later on:

1. load_workspace() reads every member manifest (name, version, publish
   flag, registry override, raw runtime requirements).
2. finalize() resolves each package's dependencies to publish, i.e. the
   requirements that name another workspace member.
"""

from __future__ import annotations

import glob
from pathlib import Path

from .deps import dep_canonical_name
from .errors import ManifestError
from .logs import get_logger
from .models import Package, Workspace
from .toml import (
    get_project_name,
    get_project_version,
    get_registry,
    get_runtime_dependency_strings,
    get_workspace_member_globs,
    is_publishable,
    load_pyproject,
)

log = get_logger(__name__)


def find_member_dirs(root: Path, member_globs: list[str]) -> list[Path]:
    """Expand member globs into package directories that have a pyproject.toml."""
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists() and p not in member_dirs:
                member_dirs.append(p)
    return member_dirs


def load_workspace(root: Path) -> Workspace:
    """Scan the workspace and load all member packages.

    Reads [tool.uv.workspace].members from the root pyproject.toml to find
    package directories, then extracts name, version, publish flag and
    runtime requirements from each package's pyproject.toml.

    Raises:
        ManifestError: If a manifest is unreadable, no members exist, or two
            members share a name.
        ConfigurationError: If the root manifest defines no members.
    """
    root = root.resolve()
    root_doc = load_pyproject(root / "pyproject.toml")
    member_dirs = find_member_dirs(root, get_workspace_member_globs(root_doc))
    if not member_dirs:
        raise ManifestError(
            f"No packages found matching workspace members in {root}",
            operation="load",
        )

    packages: dict[str, Package] = {}
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        rel_path = d.relative_to(root).as_posix()
        if name in packages:
            raise ManifestError(
                f"Package {name} is defined twice: in {packages[name].path} "
                f"and in {rel_path}",
                package=name,
                operation="load",
            )
        packages[name] = Package(
            name=name,
            path=rel_path,
            version=get_project_version(doc),
            publishable=is_publishable(doc),
            registry=get_registry(doc),
            requires=get_runtime_dependency_strings(doc),
        )

    log.info("loaded workspace", root=str(root), packages=len(packages))
    return Workspace(root=root, packages=packages)


def finalize(workspace: Workspace) -> Workspace:
    """Resolve each package's dependencies to publish.

    Only requirements naming another workspace member are kept; external
    packages and self references are ignored. Declaration order is kept and
    duplicates (e.g. the same dep in two extras) are collapsed.
    """
    for name, info in workspace.packages.items():
        seen: set[str] = set()
        deps: list[str] = []
        for dep_str in info.requires:
            try:
                dep_name = dep_canonical_name(dep_str)
            except ValueError as exc:
                raise ManifestError(
                    f"Invalid requirement {dep_str!r} in {info.manifest}: {exc}",
                    package=name,
                    operation="load",
                ) from exc
            if dep_name in workspace and dep_name != name and dep_name not in seen:
                deps.append(dep_name)
                seen.add(dep_name)
        info.deps = deps

    for name, info in workspace.packages.items():
        log.debug(
            "discovered package",
            package=name,
            version=info.version,
            path=info.path,
            deps=info.deps,
            publishable=info.publishable,
        )
    return workspace
