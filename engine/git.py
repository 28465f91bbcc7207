"""Invocation of the git executable against a working tree."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from config.settings import settings

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """Exception raised when a git command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], output: str, returncode: Optional[int]):
        """Initialize with the command and what it produced.

        Args:
            args: Argument vector passed to git
            output: Combined stdout and stderr of the command
            returncode: Exit status, None if the command could not be started
        """
        self.git_args = list(args)
        self.output = output
        self.returncode = returncode
        super().__init__(f"git {' '.join(self.git_args)} exited with {returncode}: {output}")


def git(*args: str, git_binary: Optional[str] = None) -> str:
    """Run git and return its combined output.

    Args:
        *args: Arguments passed to git
        git_binary: Executable to run, defaults to the configured one

    Returns:
        Combined stdout and stderr

    Raises:
        GitCommandError: If git exits with a non-zero status or cannot be run
    """
    cmd = [git_binary or settings.git_binary, *args]
    logger.debug(f"Running {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise GitCommandError(args, str(e), None) from e

    if result.returncode != 0:
        raise GitCommandError(args, result.stdout, result.returncode)
    return result.stdout


def git_within_dir(root: str | Path, *args: str, git_binary: Optional[str] = None) -> str:
    """Run git with its work tree and metadata pinned to ``root``."""
    root = Path(root)
    scoped = ["--work-tree", str(root), "--git-dir", str(root / ".git")]
    return git(*scoped, *args, git_binary=git_binary)
