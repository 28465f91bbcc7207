"""Detection of whether a remote can serve a shallow fetch."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import httpx

from config.settings import settings
from remote.locator import is_url

logger = logging.getLogger(__name__)

UPLOAD_PACK_SERVICE = "git-upload-pack"
SMART_CONTENT_TYPE = "application/x-git-upload-pack-advertisement"


def probe_with_fallback(
    client: httpx.Client,
    url: str,
    methods: Sequence[str] = ("HEAD", "GET"),
    accept: Callable[[httpx.Response], bool] = lambda response: response.is_success,
) -> Optional[httpx.Response]:
    """Request ``url`` with each method in turn until a response is accepted.

    A transport error counts as a rejected attempt and moves on to the next
    method.

    Args:
        client: HTTP client used for the requests
        url: URL to probe
        methods: HTTP methods to try, in order
        accept: Predicate deciding whether a response ends the probe

    Returns:
        The first accepted response, or None if every attempt failed
    """
    for method in methods:
        try:
            response = client.request(method, url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"{method} {url} failed: {e}")
            continue
        if accept(response):
            return response
        logger.debug(f"{method} {url} returned {response.status_code}")
    return None


def is_smart_http(client: httpx.Client, remote: str) -> bool:
    """Check whether an HTTP remote speaks the smart git protocol.

    Smart servers must answer the upload-pack discovery request with the
    advertisement media type.
    """
    service_url = f"{remote}/info/refs?service={UPLOAD_PACK_SERVICE}"
    response = probe_with_fallback(client, service_url)
    if response is None:
        logger.info(f"Discovery request failed for {remote}, using a full fetch")
        return False

    content_type = response.headers.get("content-type")
    if content_type != SMART_CONTENT_TYPE:
        logger.info(
            f"{remote} is not a smart HTTP server, using a full fetch",
            extra={"content_type": content_type},
        )
        return False
    return True


def supports_shallow(remote: str, client: Optional[httpx.Client] = None) -> bool:
    """Check whether a remote supports a shallow fetch.

    Non-HTTP transports always do. HTTP(S) remotes only do when they are
    smart servers.

    Args:
        remote: Remote address without a fragment
        client: Optional HTTP client, a new one is created when omitted

    Returns:
        True if ``--depth`` can be passed to the fetch
    """
    if not is_url(remote):
        return True

    if client is not None:
        return is_smart_http(client, remote)
    with httpx.Client(follow_redirects=True) as owned_client:
        return is_smart_http(owned_client, remote)


def fetch_args(
    ref: str,
    shallow: bool,
    remote_name: Optional[str] = None,
) -> List[str]:
    """Build the git arguments for fetching ``ref`` from the named remote.

    Args:
        ref: Ref to fetch
        shallow: Whether to limit the fetch to the tip commit
        remote_name: Registered remote name, defaults to the configured one

    Returns:
        Argument vector starting with ``fetch``, with the remote and ref
        after a ``--`` separator
    """
    args = ["fetch", "--recurse-submodules=yes"]
    if shallow:
        args.extend(["--depth", "1"])
    # Nothing after -- is read as an option
    args.extend(["--", remote_name or settings.remote_name, ref])
    return args
