"""Pre-flight validation of a selection.

Before anything is mutated, every selected package's dependency tree is
walked to make sure it does not reach an excluded or unpublishable
package. Publishing such a tree would upload something that pins a
version which never reaches the registry.
"""

from __future__ import annotations

from collections.abc import Collection

from .errors import ValidationFailure
from .logs import get_logger
from .models import SelectionPlan, Workspace

log = get_logger(__name__)


def validate_package(
    workspace: Workspace, initial: str, excluded: Collection[str]
) -> None:
    """Walk `initial`'s dependencies to publish, depth first.

    Raises:
        ValidationFailure: On the first excluded or unpublishable package
            found. Its `parent` is the package that pulled it in, or None
            when that is `initial` itself.
    """
    visited: set[str] = set()
    stack: list[tuple[str, str | None]] = [(initial, None)]
    while stack:
        name, parent = stack.pop()
        if name in visited:
            continue
        visited.add(name)

        info = workspace[name]
        if name in excluded:
            raise ValidationFailure(name, parent, initial, "excluded")
        if not info.publishable:
            raise ValidationFailure(
                name, parent, initial, "unpublishable", manifest=info.manifest
            )

        reported_parent = None if name == initial else name
        # Reversed so the first declared dependency is checked first.
        for dep in reversed(list(info.dependencies_to_publish())):
            if dep not in visited:
                stack.append((dep, reported_parent))


def validate_plan(workspace: Workspace, plan: SelectionPlan) -> None:
    """Validate every selected package; stops at the first failure."""
    for name in plan.packages:
        log.info("validating package", package=name)
        validate_package(workspace, name, plan.excluded)
