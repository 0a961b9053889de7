"""
http.py - JSON fetching with retries.

Transient failures (connection errors, 429 and 5xx responses) are retried
with exponential backoff. Everything else surfaces to the caller.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar, cast

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

P = ParamSpec("P")
R = TypeVar("R")

USER_AGENT = "dep-updater"
DEFAULT_TIMEOUT = 15


def typed_retry(*args: Any, **kwargs: Any) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Typed wrapper to avoid untyped decorator issues with tenacity retry."""
    return cast(Callable[[Callable[P, R]], Callable[P, R]], retry(*args, **kwargs))


def is_transient(error: BaseException) -> bool:
    """Return True for errors worth retrying."""
    if isinstance(error, urllib.error.HTTPError):
        return error.code == 429 or error.code >= 500
    return isinstance(error, (urllib.error.URLError, TimeoutError, ConnectionError))


@typed_retry(
    retry=retry_if_exception(is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def fetch_json(url: str, allow_missing: bool = False, timeout: int = DEFAULT_TIMEOUT) -> Any:
    """Fetch and decode a JSON document.

    Args:
        url: Document URL
        allow_missing: Return None for 4xx responses instead of raising
        timeout: Socket timeout in seconds

    Returns:
        Parsed JSON, or None if allow_missing and the document is absent

    Raises:
        urllib.error.URLError: Network failure, or HTTP error not allowed
        ValueError: Response body is not valid JSON
    """
    req = urllib.request.Request(
        url,
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            body = response.read()
    except urllib.error.HTTPError as e:
        if allow_missing and 400 <= e.code < 500 and e.code != 429:
            return None
        raise

    return json.loads(body)
