"""Models for the ephemeral directory a repository is fetched into."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic.dataclasses import dataclass


class WorkingTreeState(str, Enum):
    """Progress of a working tree through the fetch and checkout sequence."""

    EMPTY = "empty"
    INITIALIZED = "initialized"
    FETCHED = "fetched"
    CHECKED_OUT = "checked-out"
    NARROWED = "narrowed"


@dataclass
class WorkingTree:
    """A fresh directory owned by a single resolution call.

    The caller owns deletion. Nothing in this project removes a working
    tree, including after a failure, so its contents stay available for
    inspection.

    Attributes:
        root: Directory holding the checked-out files and the .git metadata
        state: Furthest step of the sequence that has completed
        checked_out: Name that was successfully checked out, if any
        context_path: Directory a build should use as its root, once known
    """

    root: Path
    state: WorkingTreeState = WorkingTreeState.EMPTY
    checked_out: Optional[str] = None
    context_path: Optional[Path] = None

    @property
    def git_dir(self) -> Path:
        """Location of the repository metadata."""
        return self.root / ".git"

    def advance(self, state: WorkingTreeState) -> None:
        """Record that the tree reached ``state``."""
        self.state = state
