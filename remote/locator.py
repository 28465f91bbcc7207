"""Parsing of git locators into repository descriptors.

A locator is a remote address optionally followed by a ``#ref:subdir``
fragment, for example ``https://host/org/repo.git#feature:docs`` or
``git@host:org/repo.git#v1.0``. Bare addresses such as ``host/org/repo``
are treated as HTTPS remotes.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Tuple
from urllib.parse import unquote, urlsplit, urlunsplit

from config.settings import settings
from models.repo_descriptor import RepoDescriptor

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http://", "https://", "git://", "ssh://", "git+ssh://", "ssh+git://", "file://")

# user@host:path, the scp-like syntax git accepts for ssh remotes
_SCP_LIKE_RE = re.compile(r"^[A-Za-z0-9._~-]+@[A-Za-z0-9.-]+:")


class ParseError(Exception):
    """Exception raised when a locator cannot be parsed."""

    def __init__(self, locator: str, error_msg: str):
        """Initialize with the locator and the reason it was rejected.

        Args:
            locator: The locator string that failed to parse
            error_msg: Description of the syntax problem
        """
        self.locator = locator
        self.error_msg = error_msg
        super().__init__(f"Failed to parse git locator {locator!r}: {error_msg}")


def is_url(value: str) -> bool:
    """Return True if ``value`` is an HTTP or HTTPS URL."""
    lowered = value.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def _is_scp_like(value: str) -> bool:
    return value.startswith("git@") or bool(_SCP_LIKE_RE.match(value))


def is_git_transport(value: str) -> bool:
    """Return True if ``value`` already names a transport git understands.

    Args:
        value: Remote address, possibly carrying a fragment

    Returns:
        True for URLs with a known scheme and for scp-like ``user@host:`` forms
    """
    lowered = value.lower()
    return any(lowered.startswith(scheme) for scheme in URL_SCHEMES) or _is_scp_like(value)


def get_ref_and_subdir(fragment: str, default_branch: str) -> Tuple[str, str]:
    """Split a ``ref[:subdir]`` fragment.

    Args:
        fragment: Fragment without the leading ``#``, possibly empty
        default_branch: Ref to use when the ref segment is empty

    Returns:
        Tuple of (ref, subdir); subdir is empty when absent
    """
    ref, _, subdir = fragment.partition(":")
    # Keep subdir relative to the checkout root
    return ref or default_branch, subdir.lstrip("/")


def parse(locator: str, default_branch: Optional[str] = None) -> RepoDescriptor:
    """Parse a git locator into a repository descriptor.

    Args:
        locator: Remote address with an optional ``#ref:subdir`` fragment
        default_branch: Ref used for an empty ref segment, defaults to the
            configured primary branch name

    Returns:
        Descriptor with the remote, ref and subdir

    Raises:
        ParseError: If the locator is not valid URL syntax or its ref
            starts with ``-``
    """
    default_branch = default_branch or settings.default_branch
    remote_url = locator if is_git_transport(locator) else f"https://{locator}"

    if _is_scp_like(remote_url):
        # user@host:path is not a URL and cannot be parsed as one
        remote, _, fragment = remote_url.partition("#")
    else:
        try:
            parts = urlsplit(remote_url)
            # Raises for a port that is not a number or out of range
            parts.port
        except ValueError as e:
            raise ParseError(locator, str(e)) from e
        fragment = unquote(parts.fragment)
        remote = urlunsplit(parts._replace(fragment=""))

    ref, subdir = get_ref_and_subdir(fragment, default_branch)
    if ref.startswith("-"):
        # git would read it as an option
        raise ParseError(locator, f"ref {ref!r} must not start with '-'")
    logger.debug(f"Parsed locator {locator!r}: remote={remote} ref={ref} subdir={subdir!r}")
    return RepoDescriptor(remote=remote, ref=ref, subdir=subdir)
