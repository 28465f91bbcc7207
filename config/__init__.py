"""Configuration for git context resolution."""
from __future__ import annotations

from config.settings import ResolverSettings, settings

__all__ = ["ResolverSettings", "settings"]
