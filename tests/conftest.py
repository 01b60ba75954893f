"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

from ordered_wheels.checkpoint import CheckpointKind
from ordered_wheels.models import Package, Workspace


def build_workspace(
    graph: dict[str, list[str]], private: tuple[str, ...] = ()
) -> Workspace:
    """Workspace in memory from a name → dependencies map."""
    return Workspace(
        root=Path("/ws"),
        packages={
            name: Package(
                name=name,
                path=f"packages/{name}",
                version="1.0.0",
                publishable=name not in private,
                deps=list(deps),
            )
            for name, deps in graph.items()
        },
    )


def write_package(
    root: Path,
    name: str,
    version: str = "1.0.0",
    deps: list[str] | None = None,
    extra: str = "",
) -> Path:
    """Write packages/<name>/pyproject.toml below `root`."""
    pkg_dir = root / "packages" / name
    pkg_dir.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.document()
    project = tomlkit.table()
    project["name"] = name
    project["version"] = version
    project["dependencies"] = deps or []
    doc["project"] = project
    (pkg_dir / "pyproject.toml").write_text(tomlkit.dumps(doc) + extra)
    return pkg_dir


@pytest.fixture
def make_workspace(tmp_path: Path) -> Callable[..., Path]:
    """Write a uv workspace to disk; returns its root.

    Usage: make_workspace({"base": [], "app": ["base>=1.0"]}, versions={...})
    """

    def _make(
        packages: dict[str, list[str]],
        versions: dict[str, str] | None = None,
        extras: dict[str, str] | None = None,
        root_extra: str = "",
    ) -> Path:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.uv.workspace]\nmembers = ["packages/*"]\n' + root_extra
        )
        for name, deps in packages.items():
            write_package(
                tmp_path,
                name,
                version=(versions or {}).get(name, "1.0.0"),
                deps=deps,
                extra=(extras or {}).get(name, ""),
            )
        return tmp_path

    return _make


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
"""
    return tomlkit.parse(content)


class FakeCheckpointStore:
    """In-memory checkpoint store over a dict standing in for the tree."""

    def __init__(self, tree: dict[str, str] | None = None) -> None:
        self.tree: dict[str, str] = dict(tree or {})
        self.commits: list[tuple[CheckpointKind | None, dict[str, str]]] = [
            (None, dict(self.tree))
        ]

    def is_dirty(self) -> bool:
        return self.tree != self.commits[-1][1]

    def commit(self, kind: CheckpointKind) -> None:
        self.commits.append((kind, dict(self.tree)))

    def last_kind(self) -> CheckpointKind | None:
        return self.commits[-1][0]

    def discard_last(self) -> None:
        self.commits.pop()
        self.tree = dict(self.commits[-1][1])

    @property
    def kinds(self) -> list[CheckpointKind | None]:
        return [kind for kind, _ in self.commits[1:]]


@pytest.fixture
def fake_store() -> FakeCheckpointStore:
    return FakeCheckpointStore({"a.txt": "original"})
