"""Locator parsing and transport classification for git remotes."""
from __future__ import annotations

from remote.locator import ParseError, is_git_transport, parse
from remote.transport import fetch_args, probe_with_fallback, supports_shallow

__all__ = [
    "ParseError",
    "fetch_args",
    "is_git_transport",
    "parse",
    "probe_with_fallback",
    "supports_shallow",
]
