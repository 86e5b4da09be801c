"""
HTTP helpers.

All outbound calls (the encyclopedia geosearch and page summaries) go through
`get_json` so that timeouts and the User-Agent header are set in one place.

Errors are raised, not swallowed: the search client decides how to degrade.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "poipilot/0.1.0 (+https://local)"


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    user_agent: str | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds, follow_redirects=True) as client:
        resp = client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
