"""Configuration API client with optional caching."""

import json
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from docsearch.config import API_CACHE_PREFIX, REQUEST_TIMEOUT, resolve_api_url


class FetchError(RuntimeError):
    """A request to the configuration API failed."""


class ConfApi:
    """Read-only client for the configuration REST API, with caching."""

    def __init__(self, base_url: str | None = None, *, from_cache: bool = False) -> None:
        self.base_url = resolve_api_url(base_url)
        self.from_cache = from_cache
        self.sess = requests.Session()

        self.api_cache_prefix: str | None = API_CACHE_PREFIX

        if not self.from_cache:
            # We could imagine "write-only" cache mode, but for now, we do not bother.
            self.api_cache_prefix = None

        logger.debug(
            f"API ready: base_url {self.base_url!r}, "
            f"from_cache {self.from_cache!r}, api_cache_prefix {self.api_cache_prefix!r}"
        )

        if self.api_cache_prefix:
            Path(self.api_cache_prefix).parent.mkdir(parents=True, exist_ok=True)

    def call(self, path: str) -> Any:
        """GET an API path, return decoded json."""
        log_name: str | None = None
        if self.api_cache_prefix:
            log_name = self.api_cache_prefix + path.strip("/").replace("/", "--")

            if self.from_cache and Path(log_name).exists():
                logger.debug(f"Filled from cache: {log_name!r}")
                with open(log_name, encoding="utf-8") as f:
                    return json.load(f)

        logger.debug(f"Making request: {path!r}")

        try:
            r = self.sess.get(f"{self.base_url}/{path.lstrip('/')}", timeout=REQUEST_TIMEOUT)
            r.raise_for_status()
            rv = r.json()
        except (requests.RequestException, ValueError) as exc:
            msg = f"API call failed: {path!r} -> {exc}"
            raise FetchError(msg) from exc

        if self.api_cache_prefix and log_name:
            with open(log_name, "w", encoding="utf-8") as f:
                f.write(r.text)

        return rv

    def list_branches(self) -> Any:
        """List configuration branches."""
        return self.call("configs/")

    def fetch_documents(self, branch: str, doc_type: str) -> Any:
        """Fetch all documents of one type on a branch."""
        return self.call(f"configs/{branch}/d/{doc_type}/")
