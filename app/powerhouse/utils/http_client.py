"""
HTTP client singleton for the live data endpoints.

Provides a single ``requests.Session`` configured with JSON headers and a
helper for fetching JSON documents with bearer-token auth and in-memory TTL
caching.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from powerhouse.utils.config import CACHE_TTL, HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """Raised when an upstream data endpoint cannot be read."""


# ---------------------------------------------------------------------------
# In-memory response cache
# ---------------------------------------------------------------------------
# key -> (monotonic time stored, decoded body)
_responses: dict[str, tuple[float, Any]] = {}
_responses_lock = threading.Lock()


def _expired(stored_at: float, now: float) -> bool:
    return now - stored_at >= CACHE_TTL


def _cache_get(key: str) -> Any | None:
    """Return the cached body for *key*, evicting it if older than the TTL."""
    with _responses_lock:
        entry = _responses.get(key)
        if entry is None:
            return None
        stored_at, body = entry
        if _expired(stored_at, time.monotonic()):
            del _responses[key]
            return None
        return body


def _cache_set(key: str, body: Any) -> None:
    """Store *body* and sweep out every other expired entry."""
    now = time.monotonic()
    with _responses_lock:
        stale = [k for k, (t, _) in _responses.items() if _expired(t, now)]
        for k in stale:
            del _responses[k]
        _responses[key] = (now, body)


def invalidate_cache(prefix: str | None = None) -> None:
    """Drop every cached response, or only keys starting with *prefix*."""
    with _responses_lock:
        if prefix is None:
            _responses.clear()
            return
        for k in [k for k in _responses if k.startswith(prefix)]:
            del _responses[k]


# ---------------------------------------------------------------------------
# Singleton session
# ---------------------------------------------------------------------------
_session: requests.Session | None = None


def get_session() -> requests.Session:
    """Return a cached ``requests.Session`` (created on first call)."""
    global _session
    if _session is not None:
        return _session

    logger.info("Initializing HTTP session for live data endpoints")
    _session = requests.Session()
    _session.headers.update({"Content-Type": "application/json"})
    return _session


def _auth_headers(api_key: str | None) -> dict[str, str]:
    if api_key:
        return {"Authorization": f"Bearer {api_key}"}
    return {}


# ---------------------------------------------------------------------------
# JSON helper
# ---------------------------------------------------------------------------
def fetch_json(
    url: str | None,
    api_key: str | None = None,
    *,
    params: dict[str, Any] | None = None,
    cache_key: str | None = None,
) -> Any:
    """GET a JSON document from a data endpoint.

    Parameters
    ----------
    url:
        Endpoint URL.  An empty or missing URL is a configuration error.
    api_key:
        Optional bearer token sent in the ``Authorization`` header.
    params:
        Query-string parameters.
    cache_key:
        If provided the decoded body is cached under this key for
        ``CACHE_TTL`` seconds.  Subsequent calls with the same key skip the
        request.

    Returns
    -------
    Any
        The decoded JSON body.

    Raises
    ------
    DataSourceError
        If the URL is missing, the request fails, the endpoint answers with a
        non-2xx status, or the body is not JSON.
    """
    if not url:
        raise DataSourceError("Missing endpoint URL")

    if cache_key:
        cached = _cache_get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
            return cached

    session = get_session()
    try:
        response = session.get(
            url,
            params=params,
            headers=_auth_headers(api_key),
            timeout=HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise DataSourceError(f"Request to {url} failed: {exc}") from exc

    if not response.ok:
        raise DataSourceError(
            f"HTTP {response.status_code} {response.reason} from {url}"
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise DataSourceError(f"Invalid JSON from {url}") from exc

    if cache_key:
        _cache_set(cache_key, body)
    return body
