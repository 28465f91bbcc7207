"""FastAPI service for resolving git locators into build contexts.

The service is meant to run on the same host as the builds that consume its
paths. Working trees it creates follow a fixed retention policy:

- a request that fails removes its working tree before responding;
- successful trees are kept until deleted through ``DELETE /contexts/{id}``,
  or until more than ``max_retained_contexts`` are held, at which point the
  oldest ones are removed.
"""
from __future__ import annotations

import logging
import shutil
import threading
from collections import OrderedDict
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from config.settings import settings
from engine.checkout import CheckoutError
from engine.clone import allocate_working_tree, clone_into
from engine.fetch import FetchError
from remote.locator import ParseError, parse

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Git Context API",
    description="API for fetching git repositories as local build contexts",
    version="0.1.0",
)


def remove_tree(root: Path) -> None:
    """Delete a working tree, logging instead of failing if it cannot be removed."""
    try:
        shutil.rmtree(root)
    except OSError as e:
        logger.warning(f"Failed to remove working tree {root}: {e}")


class ContextRegistry:
    """Working trees kept after successful requests, oldest first."""

    def __init__(self) -> None:
        self._trees: OrderedDict[str, Path] = OrderedDict()
        self._lock = threading.Lock()

    def add(self, context_id: str, root: Path, limit: int) -> List[Path]:
        """Keep ``root`` and drop the oldest trees beyond ``limit``.

        Returns:
            Roots evicted to stay within the limit; the caller removes them
        """
        with self._lock:
            self._trees[context_id] = root
            evicted = []
            while len(self._trees) > max(limit, 1):
                _, old_root = self._trees.popitem(last=False)
                evicted.append(old_root)
        return evicted

    def pop(self, context_id: str) -> Optional[Path]:
        with self._lock:
            return self._trees.pop(context_id, None)

    def __len__(self) -> int:
        return len(self._trees)


contexts = ContextRegistry()


# Request and response models
class ContextRequest(BaseModel):
    """Request to resolve a git locator."""

    locator: str = Field(min_length=1, description="Remote with optional #ref:subdir")


class ContextResponse(BaseModel):
    """Response model for a resolved build context."""

    id: str
    path: str
    remote: str
    ref: str
    subdir: str


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: str


# Routes
@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Report that the service is running.

    Returns:
        HealthResponse: Service status.
    """
    return HealthResponse(status="ok")


@app.post("/contexts", response_model=ContextResponse)
def create_context(request: ContextRequest) -> ContextResponse:
    """Fetch a repository and return the directory to build from.

    Args:
        request: Locator to resolve.

    Returns:
        ContextResponse: Context id, local path and the parsed locator parts.

    Raises:
        HTTPException: 400 for a malformed locator, 502 if the fetch fails,
            422 if the ref or subdirectory cannot be checked out.
    """
    try:
        descriptor = parse(request.locator, default_branch=settings.default_branch)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    tree = allocate_working_tree(settings)
    try:
        path = clone_into(tree, descriptor, settings=settings)
    except FetchError as e:
        logger.error("Fetch failed", extra={"locator": request.locator, "error": e.output})
        remove_tree(tree.root)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except CheckoutError as e:
        remove_tree(tree.root)
        raise HTTPException(status_code=422, detail=str(e)) from e

    context_id = tree.root.name
    for old_root in contexts.add(context_id, tree.root, settings.max_retained_contexts):
        logger.info(f"Removing working tree {old_root} over the retention limit")
        remove_tree(old_root)

    return ContextResponse(
        id=context_id,
        path=path,
        remote=descriptor.remote,
        ref=descriptor.ref,
        subdir=descriptor.subdir,
    )


@app.delete("/contexts/{context_id}", status_code=204)
def delete_context(context_id: str) -> Response:
    """Remove a working tree created by this service.

    Args:
        context_id: Id returned when the context was created.

    Raises:
        HTTPException: 404 if the id is unknown or already removed.
    """
    root = contexts.pop(context_id)
    if root is None:
        raise HTTPException(status_code=404, detail=f"Unknown context {context_id}")
    remove_tree(root)
    return Response(status_code=204)
