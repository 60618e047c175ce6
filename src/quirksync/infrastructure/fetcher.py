"""Upstream reader for the password-manager-resources quirks files.

The GitHub contents API returns the file itself when asked for the raw
media type. Requests are unauthenticated; the job runs rarely enough to
stay inside the anonymous rate limit.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from quirksync.errors import FetchError

log = structlog.get_logger(__name__)

GITHUB_RAW_ACCEPT = "application/vnd.github.v3.raw"


def fetch_json(url: str, *, client: httpx.Client) -> Any:
    """GET *url* and return the decoded JSON payload.

    Raises:
        FetchError: transport failure, non-2xx status, or a body that is
            not valid JSON.
    """
    log.debug("fetch.start", url=url)
    try:
        response = client.get(url, headers={"Accept": GITHUB_RAW_ACCEPT})
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"{url} answered {exc.response.status_code}", url=url
        ) from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"Could not reach {url}: {exc}", url=url) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise FetchError(f"{url} did not return JSON: {exc}", url=url) from exc

    log.debug("fetch.done", url=url, bytes=len(response.content))
    return payload
