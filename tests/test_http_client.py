"""Tests for the HTTP client and the upstream metadata client built on it."""

import json
from typing import Any
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from services.catalog.client import UpstreamClient
from shared.exceptions import UpstreamError
from shared.http_client import AsyncHTTPClient


def mock_session_returning(method: str, payload: Any = None, error: Exception | None = None) -> AsyncMock:
    mock_session = AsyncMock()
    mock_response = AsyncMock()
    mock_response.json.return_value = payload
    if error is not None:
        mock_response.raise_for_status.side_effect = error
    else:
        mock_response.raise_for_status.return_value = None
    getattr(mock_session, method).return_value.__aenter__.return_value = mock_response
    return mock_session


class TestAsyncHTTPClient:
    """Test HTTP client functionality."""

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        async with AsyncHTTPClient() as client:
            assert client.session is not None

    @pytest.mark.asyncio
    async def test_get_request(self) -> None:
        mock_response_data: dict[str, Any] = {"status": "success", "data": "test"}

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("get", mock_response_data)
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.get("https://api.example.com/test")
                assert result == mock_response_data
                mock_session.get.assert_called_once_with("https://api.example.com/test", headers=None)

    @pytest.mark.asyncio
    async def test_base_url_and_default_headers(self) -> None:
        """Relative paths join the base URL; call headers override the defaults."""
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("get", {"ok": True})
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient(
                base_url="https://api.example.com/3/",
                headers={"Authorization": "Bearer key", "Accept": "application/json"},
            ) as client:
                await client.get("/movie/550", headers={"Accept": "text/plain"})

            mock_session.get.assert_called_once_with(
                "https://api.example.com/3/movie/550",
                headers={"Authorization": "Bearer key", "Accept": "text/plain"},
            )

    @pytest.mark.asyncio
    async def test_post_request(self) -> None:
        post_data: dict[str, Any] = {"name": "test", "value": "data"}

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("post", {"id": 123})
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.post("https://api.example.com/create", data=post_data)
                assert result == {"id": 123}
                mock_session.post.assert_called_once_with(
                    "https://api.example.com/create", json=post_data, headers=None
                )

    @pytest.mark.asyncio
    async def test_form_post_request(self) -> None:
        """Form posts send the body url-encoded instead of as JSON."""
        form_data = {"code": "abc", "grant_type": "authorization_code"}

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("post", {"access_token": "t"})
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.post("https://oauth.example.com/token", data=form_data, form=True)
                assert result == {"access_token": "t"}
                mock_session.post.assert_called_once_with(
                    "https://oauth.example.com/token", data=form_data, headers=None
                )

    @pytest.mark.asyncio
    async def test_not_initialized_error(self) -> None:
        client = AsyncHTTPClient()
        with pytest.raises(RuntimeError, match="HTTP client not initialized"):
            await client.get("https://api.example.com/test")

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        error = aiohttp.ClientResponseError(request_info=AsyncMock(), history=(), status=404)
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = mock_session_returning("get", error=error)

            async with AsyncHTTPClient() as client:
                with pytest.raises(aiohttp.ClientResponseError):
                    await client.get("https://api.example.com/notfound")


class TestUpstreamClient:
    """Bearer auth, error mapping and response caching."""

    def make_client(self) -> UpstreamClient:
        return UpstreamClient(base_url="https://upstream.test/3", api_key="key", timeout=5, cache_ttl=60)

    def test_build_path_skips_none_values(self) -> None:
        path = UpstreamClient.build_path("/search/multi", {"query": "star wars", "page": 2, "year": None})
        assert path == "/search/multi?query=star+wars&page=2"
        assert UpstreamClient.build_path("/movie/1?language=en", {"page": 1}) == "/movie/1?language=en&page=1"

    @pytest.mark.asyncio
    async def test_get_sends_bearer_key(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("get", {"id": 550})
            mock_session_class.return_value = mock_session

            result = await self.make_client().get("/movie/550", {"language": "en-US"})

            assert result == {"id": 550}
            url = mock_session.get.call_args.args[0]
            headers = mock_session.get.call_args.kwargs["headers"]
            assert url == "https://upstream.test/3/movie/550?language=en-US"
            assert headers["Authorization"] == "Bearer key"

    @pytest.mark.asyncio
    async def test_error_status_becomes_upstream_error(self) -> None:
        error = aiohttp.ClientResponseError(request_info=AsyncMock(), history=(), status=401)
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = mock_session_returning("get", error=error)

            with pytest.raises(UpstreamError) as exc_info:
                await self.make_client().get("/movie/550")

        assert exc_info.value.status == 401
        assert exc_info.value.message == "HTTP error! Status: 401"

    @pytest.mark.asyncio
    async def test_cached_responses_skip_the_network(self) -> None:
        client = self.make_client()
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("get", {"results": []})
            mock_session_class.return_value = mock_session

            await client.get("/movie/popular", use_cache=True)
            await client.get("/movie/popular", use_cache=True)
            await client.get("/movie/popular")

            assert mock_session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_unreadable_body_becomes_upstream_error(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = mock_session_returning("get", {})
            response = mock_session.get.return_value.__aenter__.return_value
            response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
            mock_session_class.return_value = mock_session

            with pytest.raises(UpstreamError, match="Invalid upstream response"):
                await self.make_client().get("/genre/tv/list")
