"""Configuration constants for docsearch."""

import os

# Root of the configuration REST API. Overridden by DOCSEARCH_API_URL or --url.
DEFAULT_API_URL: str = "http://localhost:30080/conf/api/v1"

# Cache prefix, used only when --cache is passed.
API_CACHE_PREFIX: str = "/tmp/docsearch-cache/cache-"

# Socket timeout for a single HTTP request, seconds.
REQUEST_TIMEOUT: float = 30.0


def resolve_api_url(url: str | None = None) -> str:
    """Return the API root: explicit value, then environment, then default."""
    resolved = url or os.environ.get("DOCSEARCH_API_URL") or DEFAULT_API_URL
    return resolved.rstrip("/")


def resolve_fetch_timeout() -> float | None:
    """Return the per-fetch timeout from DOCSEARCH_FETCH_TIMEOUT, if set."""
    raw = os.environ.get("DOCSEARCH_FETCH_TIMEOUT")
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        msg = f"DOCSEARCH_FETCH_TIMEOUT must be a number of seconds, got {raw!r}"
        raise ValueError(msg) from None
    return timeout if timeout > 0 else None
