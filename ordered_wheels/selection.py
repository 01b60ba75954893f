"""Selection scope: turn CLI intent into the ordered list of packages to visit.

Inputs are the publish order plus the options an operator passes on the
command line: an explicit package list (empty means "everything"), a
start-from point for resuming, an exclude list, and whether dependents of
the explicit packages should be pulled in.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import ConfigurationError
from .logs import get_logger
from .models import SelectionPlan, Workspace

log = get_logger(__name__)


def _check_known(workspace: Workspace, names: Sequence[str], option: str) -> None:
    unknown = [name for name in names if name not in workspace]
    if unknown:
        raise ConfigurationError(
            f"Unknown package(s) passed to {option}: {', '.join(unknown)}"
        )


def exclusion_closure(
    workspace: Workspace, order: Sequence[str], exclude: Sequence[str]
) -> set[str]:
    """Extend an exclude list with everything that depends on it.

    Excluding a package transitively excludes its dependents: they could
    not be published without it. Repeats until a pass adds nothing, so
    feeding the result back in returns it unchanged.
    """
    excluded = set(exclude)
    progressed = True
    while progressed:
        progressed = False
        for name in order:
            if name in excluded:
                continue
            cause = next(
                (
                    dep
                    for dep in workspace[name].dependencies_to_publish()
                    if dep in excluded
                ),
                None,
            )
            if cause is not None:
                excluded.add(name)
                progressed = True
                log.info("excluding package", package=name, depends_on=cause)
    return excluded


def dependents_closure(
    workspace: Workspace,
    order: Sequence[str],
    included: set[str],
    excluded: set[str],
) -> set[str]:
    """Extend an include set with publishable, non-excluded dependents."""
    included = set(included)
    progressed = True
    while progressed:
        progressed = False
        for name in order:
            if name in included or name in excluded:
                continue
            info = workspace[name]
            if not info.publishable:
                continue
            cause = next(
                (dep for dep in info.dependencies_to_publish() if dep in included),
                None,
            )
            if cause is not None:
                included.add(name)
                progressed = True
                log.info("including package", package=name, depends_on=cause)
    return included


def resolve_selection(
    workspace: Workspace,
    order: Sequence[str],
    *,
    packages: Sequence[str] = (),
    start_from: str | None = None,
    include_dependents: bool = False,
    exclude: Sequence[str] = (),
) -> SelectionPlan:
    """Resolve CLI options into a SelectionPlan.

    Rules:
    1. The exclude list is closed over dependents (exclusion_closure).
    2. With no explicit packages, every publishable, non-excluded package
       is selected. Otherwise exactly the requested packages are, plus
       (with include_dependents) their publishable, non-excluded
       dependents.
    3. The selection is put in publish order.
    4. With start_from, everything before its position in the publish
       order is dropped. Exclusion always wins: start_from never forces a
       package into the selection, and an excluded or unpublishable
       start_from is dropped while still marking where to start.

    Args:
        workspace: Workspace the order was computed for.
        order: Publish order.
        packages: Explicitly requested packages; empty selects everything.
        start_from: Package to resume from.
        include_dependents: Also select dependents of `packages`.
        exclude: Packages that must not be published.

    Raises:
        ConfigurationError: On unknown package names or an empty selection.
    """
    _check_known(workspace, packages, "--package")
    _check_known(workspace, exclude, "--exclude")
    if start_from is not None:
        _check_known(workspace, [start_from], "--start-from")

    excluded = exclusion_closure(workspace, order, exclude)

    if not packages:
        selected: list[str] = []
        for name in order:
            if name in excluded:
                continue
            if not workspace[name].publishable:
                log.info("filtering out package that should not be published", package=name)
                continue
            selected.append(name)
    else:
        included = set(packages)
        if include_dependents:
            included = dependents_closure(workspace, order, included, excluded)
        selected = [name for name in order if name in included]

    if start_from is not None:
        cut = list(order).index(start_from)
        position = {name: i for i, name in enumerate(order)}
        selected = [name for name in selected if position[name] >= cut]
        if start_from in excluded and start_from in selected:
            log.info("dropping excluded start-from package", package=start_from)
            selected.remove(start_from)

    if not selected:
        raise ConfigurationError("No packages could be selected from the CLI options")

    log.info("selected packages", packages=selected)
    return SelectionPlan(packages=tuple(selected), excluded=frozenset(excluded))
