"""
Per-client request budget enforced as HTTP middleware.
"""

from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from shared.response_models import RateLimitResponse

# 20 requests per 10 second window
DEFAULT_LIMIT = RateLimitItemPerSecond(20, 10)


class RateLimiter:
    """Fixed-window limiter keyed by client address."""

    def __init__(self, limit: RateLimitItem = DEFAULT_LIMIT) -> None:
        self.limit = limit
        self.storage = MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    @staticmethod
    def client_key(request: Request) -> str:
        return request.client.host if request.client else "anonymous"

    def hit(self, key: str) -> bool:
        """Consume one request for ``key``; False once the window is exhausted."""
        return self.strategy.hit(self.limit, key)

    def reset(self) -> None:
        self.storage.reset()

    async def __call__(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if not self.hit(self.client_key(request)):
            return JSONResponse(status_code=429, content=RateLimitResponse().model_dump())
        return await call_next(request)


rate_limiter = RateLimiter()
