"""Error types for ordered-wheels.

Every error is fatal: it propagates up to the CLI, which logs it and exits
non-zero. Recovery is left to the operator (fix the cause, optionally run
``ordered-wheels revert``, resume with ``--start-from``).
"""

from __future__ import annotations


class PublishError(Exception):
    """Base class for all errors that abort a publish run."""


class GraphInconsistency(PublishError):
    """The dependency graph has a cycle or a dangling reference.

    Attributes:
        unordered: Names of the packages that could not be ordered.
    """

    def __init__(self, unordered: list[str]) -> None:
        self.unordered = sorted(unordered)
        super().__init__(
            "Failed to determine publish order for the following packages: "
            + ", ".join(self.unordered)
        )


class ConfigurationError(PublishError):
    """Options or manifests ask for something that cannot be done."""


class ValidationFailure(PublishError):
    """An excluded or unpublishable package is reachable from a selected one.

    Attributes:
        package: The offending package.
        parent: The package that depends on it, or None when that is the
            initial package itself.
        initial: The selected package whose dependency walk found it.
        reason: Either "excluded" or "unpublishable".
        manifest: Manifest of the offending package (unpublishable only).
    """

    def __init__(
        self,
        package: str,
        parent: str | None,
        initial: str,
        reason: str,
        manifest: str | None = None,
    ) -> None:
        self.package = package
        self.parent = parent
        self.initial = initial
        self.reason = reason
        self.manifest = manifest

        if parent is not None:
            chain = (
                f"it is a dependency of {parent}, and that is a dependency of "
                f"{initial}, which would be published"
            )
        else:
            chain = f"it is a dependency of {initial}, which would be published"

        if reason == "excluded":
            message = f"Package {package} was excluded, but {chain}."
        else:
            message = (
                f"Package {package} should not be published, but {chain}. "
                f'Check if {package} is marked "Private :: Do Not Upload" or '
                f"has publish = false in {manifest}."
            )
        super().__init__(message)


class TransactionFailure(PublishError):
    """A version-control command backing a checkpoint failed."""


class ExternalCollaboratorFailure(PublishError):
    """A manifest rewrite, registry call, build or upload failed.

    Attributes:
        package: Package being handled when the failure happened, if any.
        operation: Short name of the failed operation (e.g. "publish").
    """

    def __init__(self, message: str, *, package: str | None = None, operation: str = "") -> None:
        self.package = package
        self.operation = operation
        super().__init__(message)


class ManifestError(ExternalCollaboratorFailure):
    """A pyproject.toml could not be read, parsed or written."""
