#!/usr/bin/env python
"""Example of resolving a git locator into a local build context."""
from __future__ import annotations

import argparse
import logging
import sys

from config.settings import ResolverSettings
from engine.checkout import CheckoutError
from engine.clone import clone
from engine.fetch import FetchError
from remote.locator import ParseError

logger = logging.getLogger(__name__)


def main() -> int:
    """Fetch the repository named by a locator and print its context path.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        description="Fetch a git repository and print the build context directory"
    )
    parser.add_argument(
        "locator",
        help="Remote with an optional #ref:subdir fragment, e.g. github.com/org/repo#main:docs"
    )
    parser.add_argument(
        "-b", "--default-branch",
        help="Branch to use when the locator names no ref"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    overrides = {"default_branch": args.default_branch} if args.default_branch else {}
    settings = ResolverSettings(**overrides)

    try:
        path = clone(args.locator, settings=settings)
    except (ParseError, FetchError, CheckoutError) as e:
        logger.error(f"Error resolving {args.locator}: {e}")
        return 1

    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
