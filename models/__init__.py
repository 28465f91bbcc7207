"""Data models shared by the resolver components."""
from __future__ import annotations

from models.repo_descriptor import RepoDescriptor
from models.working_tree import WorkingTree, WorkingTreeState

__all__ = ["RepoDescriptor", "WorkingTree", "WorkingTreeState"]
