"""Dependency graph utilities.

Computes the publish order for a workspace. Packages must be published in
dependency order so that when package A depends on package B, B is already
on the registry (at the version A pins) by the time A is uploaded.
"""

from __future__ import annotations

from .errors import GraphInconsistency
from .logs import get_logger
from .models import Workspace

log = get_logger(__name__)


def rank_packages(workspace: Workspace) -> dict[str, int]:
    """Assign every orderable package a rank.

    Packages are placed in layers: a package becomes orderable once all
    of its dependencies to publish are ordered, and gets rank
    1 + sum(ranks of those dependencies). A package without dependencies
    has rank 1. Passes repeat until one adds nothing.

    Since a rank is strictly greater than the rank of each dependency,
    sorting by rank yields a valid topological order, and deeper
    dependents sort later.

    Returns:
        Map of package name → rank. Packages caught in a cycle or
        depending on an unknown name are missing from the result.
    """
    ranks: dict[str, int] = {}
    names = sorted(workspace.packages)
    progressed = True
    while progressed:
        progressed = False
        for name in names:
            if name in ranks:
                continue
            deps = set(workspace.packages[name].dependencies_to_publish())
            if all(dep in ranks for dep in deps):
                ranks[name] = 1 + sum(ranks[dep] for dep in deps)
                progressed = True
    return ranks


def publish_order(workspace: Workspace) -> list[str]:
    """Compute the deterministic publish order of a workspace.

    Args:
        workspace: Workspace with resolved dependencies to publish.

    Returns:
        Package names sorted by (rank, name): dependencies first, ties
        broken alphabetically so repeated runs agree.

    Raises:
        GraphInconsistency: If some packages cannot be ordered (cycle or
            dependency on a package outside the workspace).

    Example:
        If A depends on B, and B depends on C:
        publish_order({A, B, C}) → [C, B, A]
    """
    ranks = rank_packages(workspace)
    unordered = [name for name in workspace.packages if name not in ranks]
    if unordered:
        raise GraphInconsistency(unordered)

    order = sorted(ranks, key=lambda name: (ranks[name], name))
    log.info("computed publish order", order=order)
    return order


def dependency_closure(workspace: Workspace, name: str) -> set[str]:
    """All packages `name` transitively depends on (excluding itself)."""
    closure: set[str] = set()
    stack = list(workspace[name].dependencies_to_publish())
    while stack:
        dep = stack.pop()
        if dep in closure:
            continue
        closure.add(dep)
        stack.extend(workspace[dep].dependencies_to_publish())
    closure.discard(name)
    return closure
