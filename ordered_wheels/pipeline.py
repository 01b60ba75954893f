"""Publish pipeline: load → order → select → validate → publish → check.

This module orchestrates an ordered-wheels run:
1. Load the workspace and resolve dependencies to publish
2. Compute the publish order
3. Resolve the selection and validate it (nothing is mutated before this)
4. For each selected package, in order:
   a. Sync the pins of every earlier package into its manifest
   b. Plan the work set: the package plus its changed dependencies
   c. Bump, publish and propagate the new version of each work-set member
5. Optionally refresh the lockfile and import every processed package

Every mutation of the tree happens under a SAVE checkpoint, so an aborted
run leaves the tree at its last committed state and can be resumed with
``--start-from``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from .changes import VersionPolicy, what_needs_publishing
from .checkpoint import Checkpointer, CheckpointKind, GitCheckpointStore
from .config import PublishOptions
from .deps import set_registry, write_dependency_version, write_dependency_versions
from .errors import ConfigurationError, ExternalCollaboratorFailure
from .graph import publish_order
from .logs import get_logger
from .models import SelectionPlan, VersionBump, Workspace
from .publisher import Publisher, import_name
from .registry import RegistryClient
from .selection import resolve_selection
from .shell import run
from .validation import validate_plan
from .workspace import finalize, load_workspace

log = get_logger(__name__)


@dataclass
class PublishContext:
    """Mutable state of one publish run.

    Attributes:
        verify: Packages whose built wheel is smoke-tested before upload.
                None means every package is.
        processed: Packages finalized during this run (the processed set).
        bumps: Version changes made during this run.
        published: Packages uploaded during this run, in upload order.
    """

    workspace: Workspace
    order: list[str]
    checkpointer: Checkpointer
    registry: RegistryClient
    policy: VersionPolicy
    publisher: Publisher
    verify: set[str] | None = None
    post_publish_delay: float = 0.0
    processed: set[str] = field(default_factory=set)
    bumps: dict[str, VersionBump] = field(default_factory=dict)
    published: list[str] = field(default_factory=list)


def sync_dependency_versions(ctx: PublishContext, name: str) -> None:
    """Pin every package before `name` in the order at its current version."""
    position = ctx.order.index(name)
    versions = {dep: ctx.workspace[dep].version for dep in ctx.order[:position]}
    if not versions:
        return

    def action() -> bool:
        return write_dependency_versions(ctx.workspace, name, versions)

    if ctx.checkpointer.with_checkpoint(CheckpointKind.SAVE, action):
        log.info("synced dependency versions", package=name)


def propagate_version(ctx: PublishContext, name: str, version: str) -> None:
    """Pin `name` at `version` in every other package's manifest."""

    def action() -> list[str]:
        return [
            target
            for target in ctx.workspace.names()
            if target != name
            and write_dependency_version(ctx.workspace, target, name, version)
        ]

    updated = ctx.checkpointer.with_checkpoint(CheckpointKind.SAVE, action)
    if updated:
        log.info("propagated version", package=name, version=version, dependents=updated)


def publish_package(ctx: PublishContext, name: str) -> None:
    """Bump and upload `name` if it needs a release, then propagate its version."""
    prior = ctx.registry.query_versions(name)
    if ctx.policy.needs_publishing(name, prior):
        bump = ctx.checkpointer.with_checkpoint(
            CheckpointKind.SAVE, lambda: ctx.policy.bump_version(name, prior)
        )
        ctx.bumps[name] = bump
        verify = ctx.verify is None or name in ctx.verify
        log.info("publishing package", package=name, version=bump.new, verify=verify)
        ctx.publisher.publish(name, verify, ctx.post_publish_delay)
        ctx.published.append(name)
    else:
        log.info("package is up to date", package=name, version=ctx.workspace[name].version)

    propagate_version(ctx, name, ctx.workspace[name].version)
    ctx.processed.add(name)


def process_selected(ctx: PublishContext, name: str) -> None:
    """Run every pipeline step for one selected package."""
    with structlog.contextvars.bound_contextvars(package=name):
        sync_dependency_versions(ctx, name)

        work = what_needs_publishing(
            ctx.workspace, name, ctx.order, ctx.policy, ctx.registry, ctx.processed
        )
        skipped = [pkg for pkg in work if pkg in ctx.processed]
        if skipped:
            log.info("skipping already processed packages", skipped=skipped)
        pending = [pkg for pkg in work if pkg not in ctx.processed]
        if not pending:
            log.info("nothing to publish")

        for pkg in pending:
            publish_package(ctx, pkg)

        ctx.processed.add(name)


def run_pipeline(ctx: PublishContext, plan: SelectionPlan) -> None:
    """Process every selected package in publish order."""
    for name in plan.packages:
        process_selected(ctx, name)


def post_check(root: Path, processed: Sequence[str]) -> None:
    """Refresh the lockfile and import each processed package.

    Raises:
        ExternalCollaboratorFailure: If locking or any import fails.
    """
    if not processed:
        return
    log.info("running post-check", packages=list(processed))
    upgrades = [arg for name in processed for arg in ("--upgrade-package", name)]
    if run("uv", "lock", *upgrades, cwd=root, check=False).returncode != 0:
        raise ExternalCollaboratorFailure("uv lock failed", operation="post-check")
    for name in processed:
        result = run(
            "uv", "run", "--package", name, "python", "-c", f"import {import_name(name)}",
            cwd=root, check=False,
        )
        if result.returncode != 0:
            raise ExternalCollaboratorFailure(
                f"Post-check import of {name} failed", package=name, operation="post-check"
            )


def plan_publish(options: PublishOptions) -> tuple[Workspace, list[str], SelectionPlan]:
    """Load, order, select and validate without touching the tree."""
    workspace = finalize(load_workspace(options.root))
    order = publish_order(workspace)
    plan = resolve_selection(
        workspace,
        order,
        packages=options.packages,
        start_from=options.start_from,
        include_dependents=options.include_dependents,
        exclude=options.exclude,
    )
    validate_plan(workspace, plan)
    return workspace, order, plan


def run_publish(options: PublishOptions) -> PublishContext:
    """Publish the selected packages of the workspace at `options.root`."""
    workspace, order, plan = plan_publish(options)

    verify: set[str] | None = None
    if options.verify_from is not None:
        if options.verify_from not in workspace:
            raise ConfigurationError(
                f"Unknown package(s) passed to --verify-from: {options.verify_from}"
            )
        verify = set(order[order.index(options.verify_from):])

    checkpointer = Checkpointer(GitCheckpointStore(workspace.root))

    if options.registry:
        log.info("overriding registry", registry=options.registry)

        def override() -> None:
            for name in order:
                set_registry(workspace, name, options.registry)

        checkpointer.with_checkpoint(CheckpointKind.SAVE, override)

    with RegistryClient(options.index_url) as registry:
        ctx = PublishContext(
            workspace=workspace,
            order=order,
            checkpointer=checkpointer,
            registry=registry,
            policy=VersionPolicy(workspace, registry),
            publisher=Publisher(workspace),
            verify=verify,
            post_publish_delay=options.post_publish_delay,
        )
        run_pipeline(ctx, plan)

    if options.post_check:
        post_check(workspace.root, [name for name in order if name in ctx.processed])

    log.info(
        "publish finished",
        published=ctx.published,
        bumps={name: f"{b.old} -> {b.new}" for name, b in ctx.bumps.items()},
    )
    return ctx
