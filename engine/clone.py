"""Resolving a git locator into a local build context directory."""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Optional

from config.settings import ResolverSettings, settings as default_settings
from engine.checkout import checkout
from engine.fetch import fetch
from models.repo_descriptor import RepoDescriptor
from models.working_tree import WorkingTree
from remote.locator import parse
from remote.transport import supports_shallow

logger = logging.getLogger(__name__)


def allocate_working_tree(settings: ResolverSettings) -> WorkingTree:
    """Create a fresh, uniquely named directory for one resolution."""
    root = tempfile.mkdtemp(prefix=settings.temp_prefix, dir=settings.temp_dir)
    return WorkingTree(root=Path(root))


def clone_into(
    tree: WorkingTree,
    descriptor: RepoDescriptor,
    settings: Optional[ResolverSettings] = None,
) -> str:
    """Fetch and check out ``descriptor`` in an empty working tree.

    Args:
        tree: Empty working tree owned by the caller
        descriptor: Parsed locator
        settings: Settings to use instead of the environment-derived ones

    Returns:
        Absolute path of the directory to use as a build context

    Raises:
        FetchError: If the repository cannot be initialized or fetched
        CheckoutError: If the ref cannot be checked out or the subdir is invalid
    """
    settings = settings or default_settings
    shallow = supports_shallow(descriptor.remote)

    fetch(tree, descriptor, shallow=shallow, settings=settings)
    context = checkout(tree, descriptor.ref, descriptor.subdir, settings=settings)

    logger.info(
        f"Resolved {descriptor.remote}#{descriptor.ref} to {context}",
        extra={"subdir": descriptor.subdir, "shallow": shallow},
    )
    return context


def clone(locator: str, settings: Optional[ResolverSettings] = None) -> str:
    """Fetch the repository named by ``locator`` and return its build context.

    The working tree is created under the configured temporary directory and
    is never removed here, even when a step fails. Callers own its cleanup.

    Args:
        locator: Remote address with an optional ``#ref:subdir`` fragment
        settings: Settings to use instead of the environment-derived ones

    Returns:
        Absolute path of the directory to use as a build context

    Raises:
        ParseError: If the locator is malformed
        FetchError: If the repository cannot be initialized or fetched
        CheckoutError: If the ref cannot be checked out or the subdir is invalid
    """
    settings = settings or default_settings
    descriptor = parse(locator, default_branch=settings.default_branch)

    tree = allocate_working_tree(settings)
    logger.info(f"Resolving {locator} in {tree.root}")
    return clone_into(tree, descriptor, settings=settings)
