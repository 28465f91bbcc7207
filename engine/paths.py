"""Confinement of user-supplied paths to a directory tree."""
from __future__ import annotations

from pathlib import Path


class ScopeError(Exception):
    """Exception raised when a path resolves outside its root."""

    def __init__(self, path: Path, root: Path):
        self.path = path
        self.root = root
        super().__init__(f"{path} resolves outside of {root}")


def follow_symlink_in_scope(path: str | Path, root: str | Path) -> Path:
    """Resolve ``path`` following symlinks and require it to stay under ``root``.

    Args:
        path: Candidate path, usually ``root`` joined with a relative path
        root: Directory the result must stay within

    Returns:
        The canonical absolute path

    Raises:
        ScopeError: If the resolved path is outside ``root``
    """
    real_root = Path(root).resolve()
    resolved = Path(path).resolve()
    if resolved != real_root and real_root not in resolved.parents:
        raise ScopeError(resolved, real_root)
    return resolved
