"""Fetch and checkout engine for git build contexts."""
from __future__ import annotations

from engine.checkout import CheckoutError, checkout
from engine.clone import clone, clone_into
from engine.fetch import FetchError, fetch
from engine.git import GitCommandError

__all__ = [
    "CheckoutError",
    "FetchError",
    "GitCommandError",
    "checkout",
    "clone",
    "clone_into",
    "fetch",
]
