"""
Read-only client for the upstream movie/TV metadata API.

Every request carries the bearer key; responses for proxy routes may be
served from a short-lived in-process cache.
"""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlencode

import aiohttp

from shared.cache import Cache
from shared.exceptions import UpstreamError
from shared.http_client import AsyncHTTPClient
from shared.utils import config, setup_logging

logger = setup_logging("upstream-client")


class UpstreamClient:
    """Bearer-authenticated GET client against one upstream host."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self.base_url = base_url or config.get("tmdb_link")
        self.api_key = api_key or config.get("tmdb_api_key", "")
        self.timeout = timeout or int(config.get_setting("upstream.timeout_seconds", 30))
        self.cache = Cache(
            default_ttl=cache_ttl or int(config.get_setting("media.cache_ttl_seconds", 600)),
            max_entries=int(config.get_setting("media.cache_max_entries", 1024)),
        )
        self._http: AsyncHTTPClient | None = None

    def _new_http(self) -> AsyncHTTPClient:
        return AsyncHTTPClient(
            timeout=self.timeout,
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        )

    async def __aenter__(self) -> "UpstreamClient":
        """Hold one HTTP session open for a batch of calls."""
        self._http = self._new_http()
        await self._http.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http:
            await self._http.__aexit__(exc_type, exc_val, exc_tb)
        self._http = None

    @staticmethod
    def build_path(path: str, params: dict[str, Any] | None = None) -> str:
        if not params:
            return path
        query = urlencode({key: value for key, value in params.items() if value is not None})
        separator = "&" if "?" in path else "?"
        return f"{path}{separator}{query}"

    async def _fetch(self, http: AsyncHTTPClient, path: str) -> dict[str, Any]:
        try:
            return await http.get(path)
        except aiohttp.ClientResponseError as e:
            logger.error(f"Upstream answered {e.status} for {path}")
            raise UpstreamError(f"HTTP error! Status: {e.status}", status=e.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Upstream request for {path} failed: {e}")
            raise UpstreamError(f"Upstream request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Upstream sent an unreadable body for {path}: {e}")
            raise UpstreamError(f"Invalid upstream response: {e}") from e

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        use_cache: bool = False,
    ) -> dict[str, Any]:
        """GET ``path`` (relative to the base URL) and return the parsed JSON body."""
        full_path = self.build_path(path, params)
        if use_cache:
            cached = self.cache.get(full_path)
            if cached is not None:
                return cached

        if self._http is not None:
            data = await self._fetch(self._http, full_path)
        else:
            async with self._new_http() as http:
                data = await self._fetch(http, full_path)

        if use_cache:
            self.cache.set(full_path, data)
        return data

    async def get_many(self, paths: list[str], use_cache: bool = False) -> list[dict[str, Any]]:
        """Fetch several paths concurrently; any failure fails the batch."""
        return list(await asyncio.gather(*(self.get(path, use_cache=use_cache) for path in paths)))


upstream_client: UpstreamClient | None = None


def get_upstream_client() -> UpstreamClient:
    """Dependency returning the shared proxy client (with its response cache)."""
    global upstream_client
    if upstream_client is None:
        upstream_client = UpstreamClient()
    return upstream_client
