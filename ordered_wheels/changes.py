"""Decide which packages need a new release.

A package needs publishing when its current version is not on the
registry yet, or when what would be uploaded differs from what already
is. The comparison builds a local sdist and diffs its files against the
published one.
"""

from __future__ import annotations

import io
import tarfile
import tempfile
from collections.abc import Collection, Sequence
from pathlib import Path

from .deps import write_package_version
from .errors import ExternalCollaboratorFailure
from .graph import dependency_closure
from .logs import get_logger
from .models import VersionBump, Workspace
from .registry import RegistryClient
from .shell import run
from .versions import is_published, next_version

log = get_logger(__name__)


def sdist_contents(data: bytes) -> dict[str, bytes]:
    """Files of an sdist keyed by path below its top-level directory.

    PKG-INFO is left out: it is regenerated on every build.
    """
    files: dict[str, bytes] = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
        for member in tar.getmembers():
            if not member.isfile():
                continue
            _, _, relative = member.name.partition("/")
            if not relative or relative.rsplit("/", 1)[-1] == "PKG-INFO":
                continue
            extracted = tar.extractfile(member)
            if extracted is not None:
                files[relative] = extracted.read()
    return files


class VersionPolicy:
    """Change detection and version bumping against one registry."""

    def __init__(self, workspace: Workspace, registry: RegistryClient) -> None:
        self.workspace = workspace
        self.registry = registry

    def build_local_sdist(self, name: str) -> bytes:
        info = self.workspace[name]
        with tempfile.TemporaryDirectory(prefix="ordered-wheels-") as tmp:
            result = run(
                "uv", "build", "--sdist", info.path, "--out-dir", tmp,
                cwd=self.workspace.root, check=False, capture=True,
            )
            sdists = sorted(Path(tmp).glob("*.tar.gz"))
            if result.returncode != 0 or not sdists:
                raise ExternalCollaboratorFailure(
                    f"Failed to build sdist of {name}: {result.stderr}",
                    package=name,
                    operation="build",
                )
            return sdists[0].read_bytes()

    def needs_publishing(self, name: str, prior_versions: Sequence[str]) -> bool:
        info = self.workspace[name]
        if not is_published(info.version, prior_versions):
            log.info("version not yet published", package=name, version=info.version)
            return True

        url = self.registry.sdist_url(name, info.version)
        if url is None:
            log.warning("no published sdist to compare against", package=name, version=info.version)
            return True

        published = sdist_contents(self.registry.download(url))
        local = sdist_contents(self.build_local_sdist(name))
        if published != local:
            changed = sorted(
                path
                for path in published.keys() | local.keys()
                if published.get(path) != local.get(path)
            )
            log.info("package changed since last release", package=name)
            log.debug("changed files", package=name, files=changed)
            return True
        return False

    def bump_version(self, name: str, prior_versions: Sequence[str]) -> VersionBump:
        info = self.workspace[name]
        old = info.version
        new = next_version(old, prior_versions)
        if new != old:
            write_package_version(self.workspace, name, new)
            log.info("bumped version", package=name, old=old, new=new)
        return VersionBump(old=old, new=new)


def what_needs_publishing(
    workspace: Workspace,
    selected: str,
    order: Sequence[str],
    policy: VersionPolicy,
    registry: RegistryClient,
    processed: Collection[str] = (),
) -> list[str]:
    """Packages, in publish order, to release so `selected` can be released.

    Covers `selected` and its transitive dependencies to publish. A package
    is in the work set if it changed itself or one of its dependencies is
    in the work set (its pin has to move).

    Packages in `processed` are kept in the result so callers can report
    them as skipped. They are never checked again and never pull their
    dependents in: their final version is already pinned downstream.
    """
    scope = dependency_closure(workspace, selected) | {selected}
    work: list[str] = []
    dirty: set[str] = set()
    for name in order:
        if name not in scope:
            continue
        if name in processed:
            work.append(name)
            continue
        dirty_dep = next((d for d in workspace[name].dependencies_to_publish() if d in dirty), None)
        if dirty_dep is not None:
            log.info("dependency needs publishing", package=name, dependency=dirty_dep)
        elif not policy.needs_publishing(name, registry.query_versions(name)):
            continue
        work.append(name)
        dirty.add(name)
    return work
