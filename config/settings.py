"""Resolver settings loaded from the environment."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ResolverSettings(BaseSettings):
    """Settings for resolving git locators into build contexts.

    Attributes:
        default_branch: Ref used when a locator has no ref segment
        git_binary: Name or path of the git executable
        remote_name: Name the fetched remote is registered under
        temp_dir: Parent directory for working trees, system default if unset
        temp_prefix: Prefix of each working tree directory name
        max_retained_contexts: Working trees the API keeps before removing the
            oldest
    """

    default_branch: str = "master"
    git_binary: str = "git"
    remote_name: str = "origin"
    temp_dir: Optional[str] = None
    temp_prefix: str = "docker-build-git"
    max_retained_contexts: int = 16

    class Config:
        """Pydantic config."""

        env_prefix = "GITCTX_"


# Global settings instance
settings = ResolverSettings()
