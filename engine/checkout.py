"""Checking out a fetched ref and narrowing to a subdirectory."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional

from pydantic.dataclasses import dataclass

from config.settings import ResolverSettings, settings as default_settings
from engine.git import GitCommandError, git_within_dir
from engine.paths import ScopeError, follow_symlink_in_scope
from models.working_tree import WorkingTree, WorkingTreeState

logger = logging.getLogger(__name__)

FETCH_HEAD = "FETCH_HEAD"


class CheckoutError(Exception):
    """Exception raised when a build context cannot be checked out."""

    def __init__(self, message: str, output: str = ""):
        """Initialize with a description and the git output.

        Args:
            message: What failed
            output: Combined output of the failed git command, if any
        """
        self.message = message
        self.output = output
        super().__init__(f"{message}: {output}" if output else message)


@dataclass(frozen=True)
class CheckoutStrategy:
    """A single ``git checkout`` attempt.

    Attributes:
        target: Name passed to ``git checkout``
        detached: Whether a successful checkout leaves HEAD detached
    """

    target: str
    detached: bool = False


@dataclass
class CheckoutAttempt:
    """Outcome of trying one strategy."""

    strategy: CheckoutStrategy
    output: str
    succeeded: bool


def checkout_strategies(ref: str) -> List[CheckoutStrategy]:
    """Return the checkout attempts for ``ref`` in the order they are tried.

    Checking out by name works for branches and points HEAD at the branch.
    The fetched marker covers tags and commits that have no local name.
    """
    return [CheckoutStrategy(target=ref), CheckoutStrategy(target=FETCH_HEAD, detached=True)]


def run_strategies(
    root: Path,
    strategies: List[CheckoutStrategy],
    git_binary: Optional[str] = None,
) -> List[CheckoutAttempt]:
    """Try each strategy in order, stopping at the first success."""
    attempts: List[CheckoutAttempt] = []
    for strategy in strategies:
        try:
            output = git_within_dir(root, "checkout", strategy.target, git_binary=git_binary)
        except GitCommandError as e:
            logger.debug(f"git checkout {strategy.target} failed: {e.output}")
            attempts.append(CheckoutAttempt(strategy=strategy, output=e.output, succeeded=False))
            continue
        attempts.append(CheckoutAttempt(strategy=strategy, output=output, succeeded=True))
        break
    return attempts


def narrow_to_subdir(root: Path, subdir: str) -> Path:
    """Resolve ``subdir`` inside ``root`` without letting symlinks escape it.

    Raises:
        CheckoutError: If the path leaves ``root``, is missing or is not a
            directory
    """
    try:
        context = follow_symlink_in_scope(root / subdir, root)
    except (ScopeError, OSError, RuntimeError) as e:
        raise CheckoutError(f"error setting git context, {subdir!r} not within git root", str(e)) from e

    try:
        mode = os.stat(context).st_mode
    except OSError as e:
        raise CheckoutError(f"error setting git context, cannot stat {context}", str(e)) from e
    if not stat.S_ISDIR(mode):
        raise CheckoutError(f"error setting git context, not a directory: {context}")
    return context


def checkout(
    tree: WorkingTree,
    ref: str,
    subdir: Optional[str] = "",
    settings: Optional[ResolverSettings] = None,
) -> str:
    """Check out ``ref`` and return the directory to use as a build context.

    Args:
        tree: Working tree that has been fetched into
        ref: Ref to check out, falling back to the fetched commit
        subdir: Optional path under the root to narrow the context to
        settings: Settings to use instead of the environment-derived ones

    Returns:
        Absolute path of the build context

    Raises:
        CheckoutError: If the ref looks like an option, no checkout succeeds
            or the subdir is unusable
    """
    if ref.startswith("-"):
        # git checkout would read it as an option
        raise CheckoutError(f"error checking out {ref}, refs must not start with '-'")

    settings = settings or default_settings
    attempts = run_strategies(tree.root, checkout_strategies(ref), settings.git_binary)
    final = attempts[-1]
    if not final.succeeded:
        # Report why the named ref failed, not the fallback
        primary = attempts[0]
        logger.error(
            f"Checkout of {ref} failed",
            extra={"root": str(tree.root), "error": primary.output},
        )
        raise CheckoutError(f"error checking out {ref}", primary.output)

    tree.checked_out = final.strategy.target
    tree.advance(WorkingTreeState.CHECKED_OUT)
    if final.strategy.detached:
        logger.info(f"Checked out {FETCH_HEAD} for {ref} in {tree.root}")
    else:
        logger.info(f"Checked out {ref} in {tree.root}")

    context = tree.root.resolve()
    if subdir:
        context = narrow_to_subdir(tree.root, subdir)
        tree.advance(WorkingTreeState.NARROWED)

    tree.context_path = context
    return str(context)
