"""
HTTP client utilities for upstream and identity-provider calls.
"""

import asyncio
from typing import Any

import aiohttp


class AsyncHTTPClient:
    """Async HTTP client with optional base URL and default headers."""

    def __init__(
        self,
        timeout: int = 30,
        base_url: str = "",
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize HTTP client."""
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.base_url = base_url.rstrip("/")
        self.default_headers = headers or {}
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self.session:
            await self.session.close()

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    def _headers(self, headers: dict[str, Any] | None) -> dict[str, Any] | None:
        if not self.default_headers:
            return headers
        merged = dict(self.default_headers)
        merged.update(headers or {})
        return merged

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    @staticmethod
    async def _ensure_response_ok(response: Any) -> None:
        """Invoke raise_for_status, awaiting when necessary."""
        result = response.raise_for_status()
        if asyncio.iscoroutine(result):
            await result

    async def get(self, url: str, headers: dict[str, Any] | None = None) -> dict[str, Any]:
        """Perform GET request."""
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")

        request_ctx = await self._prepare_request(
            self.session.get(self._url(url), headers=self._headers(headers))
        )
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()

    async def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
        form: bool = False,
    ) -> dict[str, Any]:
        """Perform POST request, JSON-encoded unless ``form`` is set."""
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")

        if form:
            call = self.session.post(self._url(url), data=data, headers=self._headers(headers))
        else:
            call = self.session.post(self._url(url), json=data, headers=self._headers(headers))
        request_ctx = await self._prepare_request(call)
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()
