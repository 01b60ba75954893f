"""Git-backed checkpoints for the source tree.

Every mutation a publish run makes to the working tree (version bumps,
dependency pins, registry overrides) is captured in a checkpoint commit.
A checkpoint's kind says what `ordered-wheels revert` does with it:

- SAVE: kept. Revert stops at the first SAVE checkpoint.
- REVERT_LATER: discarded by revert.

The kind travels as a commit trailer so it survives across processes.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Protocol, TypeVar

from .errors import TransactionFailure
from .logs import get_logger
from .shell import git

log = get_logger(__name__)

T = TypeVar("T")

TRAILER_KEY = "Ordered-Wheels-Checkpoint"


class CheckpointKind(str, Enum):
    SAVE = "save"
    REVERT_LATER = "revert-later"


class CheckpointStore(Protocol):
    """Where checkpoints are recorded."""

    def is_dirty(self) -> bool: ...

    def commit(self, kind: CheckpointKind) -> None: ...

    def last_kind(self) -> CheckpointKind | None: ...

    def discard_last(self) -> None: ...


class GitCheckpointStore:
    """Checkpoints as commits in the git repository at `root`.

    Only paths below `root` take part in checkpoints, so edits elsewhere
    in the repository are left alone.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _git(self, *args: str, check: bool = True) -> str:
        try:
            return git(*args, cwd=self.root, check=check)
        except (subprocess.CalledProcessError, OSError) as exc:
            stderr = getattr(exc, "stderr", None) or ""
            raise TransactionFailure(
                f"git {' '.join(args)} failed in {self.root}: {stderr.strip() or exc}"
            ) from exc

    def is_dirty(self) -> bool:
        return bool(self._git("status", "--porcelain=v1", "--", "."))

    def commit(self, kind: CheckpointKind) -> None:
        self._git("add", "--all", ".")
        self._git(
            "commit",
            "--quiet",
            "-m",
            f"[ordered-wheels] checkpoint ({kind.value})",
            "-m",
            f"{TRAILER_KEY}: {kind.value}",
            "--",
            ".",
        )

    def last_kind(self) -> CheckpointKind | None:
        # An empty repository has no HEAD to inspect.
        if not self._git("rev-parse", "--verify", "--quiet", "HEAD", check=False):
            return None
        value = self._git(
            "log", "-1", f"--format=%(trailers:key={TRAILER_KEY},valueonly)"
        )
        try:
            return CheckpointKind(value.strip())
        except ValueError:
            return None

    def discard_last(self) -> None:
        self._git("reset", "--quiet", "--soft", "HEAD~1")
        self._git("restore", "--quiet", "--source=HEAD", "--staged", "--worktree", "--", ".")


class Checkpointer:
    """Wraps tree mutations in checkpoints and unwinds them again."""

    def __init__(self, store: CheckpointStore) -> None:
        self.store = store

    def checkpoint(self, kind: CheckpointKind) -> bool:
        """Record a checkpoint if the tree has uncommitted changes.

        Returns:
            True if a checkpoint was created.
        """
        if not self.store.is_dirty():
            return False
        self.store.commit(kind)
        log.debug("created checkpoint", kind=kind.value)
        return True

    def with_checkpoint(self, kind: CheckpointKind, action: Callable[[], T]) -> T:
        """Run `action` between two checkpoints.

        Whatever was pending before the action is saved first, so a
        REVERT_LATER checkpoint only ever holds the action's own changes.
        """
        if kind is not CheckpointKind.SAVE:
            self.checkpoint(CheckpointKind.SAVE)
        result = action()
        self.checkpoint(kind)
        return result

    def revert(self) -> int:
        """Discard trailing REVERT_LATER checkpoints.

        Returns:
            Number of checkpoints discarded.
        """
        count = 0
        while self.store.last_kind() is CheckpointKind.REVERT_LATER:
            self.store.discard_last()
            count += 1
        log.info("reverted checkpoints", count=count)
        return count
