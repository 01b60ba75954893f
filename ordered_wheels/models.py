"""Data models for ordered-wheels.

These Pydantic models represent the core data structures shared by the
order resolver, the selection resolver, the validator and the publish
pipeline.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError


class Package(BaseModel):
    """Metadata for a single package in the uv workspace.

    Attributes:
        name: Canonical (PEP 503) package name.
        path: Relative path from workspace root to the package directory.
        version: Current version string from pyproject.toml. Rewritten in
                 place when the package is bumped.
        publishable: False when the manifest opts out of uploads.
        registry: Upload URL override, if any.
        requires: Raw PEP 508 strings of the runtime dependencies.
        deps: Workspace packages this one must be published after
              (its dependencies to publish). Filled in by finalize().
    """

    name: str
    path: str
    version: str
    publishable: bool = True
    registry: str | None = None
    requires: list[str] = Field(default_factory=list)
    deps: list[str] = Field(default_factory=list)

    @property
    def manifest(self) -> str:
        """Manifest location relative to the workspace root."""
        return f"{self.path.rstrip('/')}/pyproject.toml"

    def dependencies_to_publish(self) -> Iterator[str]:
        """Iterate over in-workspace dependencies destined for publication."""
        return iter(self.deps)


class Workspace(BaseModel):
    """All packages under one uv workspace root.

    The workspace owns its Package objects for the duration of a run; the
    pipeline mutates versions on them in place.
    """

    root: Path
    packages: dict[str, Package] = Field(default_factory=dict)

    def __getitem__(self, name: str) -> Package:
        try:
            return self.packages[name]
        except KeyError:
            raise ConfigurationError(f"Package not found: {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def names(self) -> list[str]:
        return list(self.packages)

    def manifest_path(self, name: str) -> Path:
        """Absolute path of a package's pyproject.toml."""
        return self.root / self[name].manifest


class SelectionPlan(BaseModel):
    """Packages one invocation acts on, in publish order.

    Attributes:
        packages: Selected package names, ordered by the publish order.
        excluded: Every excluded package, including those excluded
                  transitively because they depend on an excluded one.
    """

    model_config = ConfigDict(frozen=True)

    packages: tuple[str, ...]
    excluded: frozenset[str] = frozenset()


class VersionBump(BaseModel):
    """Records a version change for a package.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str
