"""Build, verify and upload one package with uv."""

from __future__ import annotations

import tempfile
import time
from pathlib import Path

from .errors import ExternalCollaboratorFailure
from .logs import get_logger
from .models import Workspace
from .shell import run

log = get_logger(__name__)


def import_name(name: str) -> str:
    """Module a distribution is expected to provide ("pkg-alpha" → "pkg_alpha")."""
    return name.replace("-", "_").replace(".", "_")


class Publisher:
    """Uploads workspace packages to their registry.

    Artifacts are built into a temporary directory so the working tree
    stays clean between checkpoints.
    """

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def build(self, name: str, out_dir: Path) -> list[Path]:
        """Build sdist and wheel for `name` into `out_dir`."""
        info = self.workspace[name]
        log.info("building package", package=name, version=info.version)
        result = run(
            "uv", "build", info.path, "--out-dir", str(out_dir),
            cwd=self.workspace.root, check=False,
        )
        if result.returncode != 0:
            raise ExternalCollaboratorFailure(
                f"Failed to build {name}", package=name, operation="build"
            )
        artifacts = sorted(out_dir.iterdir())
        if not artifacts:
            raise ExternalCollaboratorFailure(
                f"Building {name} produced no artifacts", package=name, operation="build"
            )
        return artifacts

    def verify(self, name: str, wheel: Path) -> None:
        """Install the wheel into a throwaway environment and import it."""
        log.info("verifying package", package=name, wheel=wheel.name)
        result = run(
            "uv", "run", "--isolated", "--no-project", "--with", str(wheel),
            "python", "-c", f"import {import_name(name)}",
            cwd=self.workspace.root, check=False,
        )
        if result.returncode != 0:
            raise ExternalCollaboratorFailure(
                f"Verification of {name} failed", package=name, operation="verify"
            )

    def upload(self, name: str, artifacts: list[Path]) -> None:
        info = self.workspace[name]
        args = ["uv", "publish", *(str(a) for a in artifacts)]
        if info.registry:
            args += ["--publish-url", info.registry]
        log.info("uploading package", package=name, version=info.version, registry=info.registry)
        result = run(*args, cwd=self.workspace.root, check=False)
        if result.returncode != 0:
            raise ExternalCollaboratorFailure(
                f"Failed to publish {name}", package=name, operation="publish"
            )

    def publish(self, name: str, verify: bool, post_publish_delay: float = 0.0) -> None:
        """Build, optionally verify, and upload `name`, then wait.

        Args:
            name: Package to publish.
            verify: Smoke-test the built wheel before uploading.
            post_publish_delay: Seconds to sleep after the upload so the
                registry index catches up before dependents are published.
        """
        with tempfile.TemporaryDirectory(prefix="ordered-wheels-") as tmp:
            artifacts = self.build(name, Path(tmp))
            if verify:
                wheels = [a for a in artifacts if a.suffix == ".whl"]
                if not wheels:
                    raise ExternalCollaboratorFailure(
                        f"No wheel built for {name}", package=name, operation="verify"
                    )
                self.verify(name, wheels[0])
            self.upload(name, artifacts)

        if post_publish_delay > 0:
            log.info("waiting after publish", package=name, seconds=post_publish_delay)
            time.sleep(post_publish_delay)
