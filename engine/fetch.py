"""Fetching a remote repository into a fresh working tree."""
from __future__ import annotations

import logging
from typing import Optional

from config.settings import ResolverSettings, settings as default_settings
from engine.git import GitCommandError, git_within_dir
from models.repo_descriptor import RepoDescriptor
from models.working_tree import WorkingTree, WorkingTreeState
from remote.transport import fetch_args, supports_shallow

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Exception raised when a repository cannot be initialized or fetched."""

    def __init__(self, message: str, output: str = ""):
        """Initialize with a description and the git output.

        Args:
            message: What failed
            output: Combined output of the git command, verbatim
        """
        self.message = message
        self.output = output
        super().__init__(f"{message}: {output}" if output else message)


def init_repo(tree: WorkingTree, settings: Optional[ResolverSettings] = None) -> None:
    """Create empty repository metadata in the working tree.

    Raises:
        FetchError: If ``git init`` fails
    """
    settings = settings or default_settings
    try:
        git_within_dir(tree.root, "init", git_binary=settings.git_binary)
    except GitCommandError as e:
        raise FetchError(f"failed to init repo at {tree.root}", e.output) from e
    tree.advance(WorkingTreeState.INITIALIZED)


def register_remote_and_fetch(
    tree: WorkingTree,
    descriptor: RepoDescriptor,
    shallow: bool,
    settings: Optional[ResolverSettings] = None,
) -> None:
    """Register the remote and fetch the descriptor's ref from it.

    The remote is added under a fixed name rather than cloned so that local
    refs are created for fetched branches. The two phases form a single
    operation: the tree is only marked as fetched when both succeed.

    Args:
        tree: Initialized working tree
        descriptor: Repository to fetch
        shallow: Whether to fetch only the tip commit
        settings: Settings to use instead of the environment-derived ones

    Raises:
        FetchError: If registering the remote or fetching fails
    """
    settings = settings or default_settings
    remote_name = settings.remote_name
    try:
        git_within_dir(
            tree.root, "remote", "add", "--", remote_name, descriptor.remote,
            git_binary=settings.git_binary,
        )
    except GitCommandError as e:
        raise FetchError(f"failed to add {remote_name} repo at {descriptor.remote}", e.output) from e

    args = fetch_args(descriptor.ref, shallow, remote_name)
    try:
        git_within_dir(tree.root, *args, git_binary=settings.git_binary)
    except GitCommandError as e:
        logger.error(
            "Fetch failed",
            extra={"remote": descriptor.remote, "ref": descriptor.ref, "error": e.output},
        )
        raise FetchError("error fetching", e.output) from e
    tree.advance(WorkingTreeState.FETCHED)


def fetch(
    tree: WorkingTree,
    descriptor: RepoDescriptor,
    shallow: Optional[bool] = None,
    settings: Optional[ResolverSettings] = None,
) -> None:
    """Populate an empty working tree with the descriptor's ref.

    Args:
        tree: Empty working tree owned by the caller
        descriptor: Repository to fetch
        shallow: Force or forbid a shallow fetch; probe the remote when None
        settings: Settings to use instead of the environment-derived ones

    Raises:
        FetchError: If any git step fails
    """
    if shallow is None:
        shallow = supports_shallow(descriptor.remote)

    logger.info(
        f"Fetching {descriptor.ref} from {descriptor.remote} into {tree.root}",
        extra={"shallow": shallow},
    )
    init_repo(tree, settings)
    register_remote_and_fetch(tree, descriptor, shallow, settings)
