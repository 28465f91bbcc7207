"""Descriptor of a parsed git locator."""
from __future__ import annotations

from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class RepoDescriptor:
    """Repository to fetch and the part of it to use as a build context.

    Attributes:
        remote: Fetchable URL or transport-qualified address
        ref: Branch, tag or commit-ish to check out, never empty
        subdir: Path relative to the checkout root, empty for the root itself
    """

    remote: str
    ref: str
    subdir: str = ""
