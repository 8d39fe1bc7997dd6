"""Request context middleware: request id, timing, access log and rate limiting.

One pass per request. The token bucket lives in ``TokenBucketLimiter`` so it
can be exercised without an app; the middleware shares the module-level
``rate_limiter`` instance.
"""

import logging
import math
import threading
import time
import uuid
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# Probes and docs are never throttled.
EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


class TokenBucketLimiter:
    """Per-client token bucket refilled continuously at ``rate_per_minute / 60`` per second.

    Idle buckets are swept every ``evict_every`` checks so rotating client
    addresses cannot grow the table without bound.
    """

    def __init__(self, evict_every: int = 100, evict_age: float = 120.0):
        self._buckets: Dict[str, Tuple[float, float]] = {}
        self._lock = threading.Lock()
        self._checks = 0
        self._evict_every = evict_every
        self._evict_age = evict_age

    def __len__(self) -> int:
        return len(self._buckets)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._checks = 0

    def check(self, key: str, rate_per_minute: int, now: Optional[float] = None) -> Tuple[bool, float]:
        """Consume one token for *key*.

        Returns:
            ``(allowed, retry_after_seconds)``; retry_after is 0.0 when allowed.
        """
        if rate_per_minute <= 0:
            return True, 0.0
        now = time.monotonic() if now is None else now
        per_second = rate_per_minute / 60.0

        with self._lock:
            self._checks += 1
            if self._checks % self._evict_every == 0:
                self._evict(now)

            tokens, last = self._buckets.get(key, (float(rate_per_minute), now))
            tokens = min(float(rate_per_minute), tokens + (now - last) * per_second)

            if tokens >= 1.0:
                self._buckets[key] = (tokens - 1.0, now)
                return True, 0.0

            self._buckets[key] = (tokens, now)
            return False, (1.0 - tokens) / per_second

    def _evict(self, now: float) -> None:
        cutoff = now - self._evict_age
        for key in [k for k, (_, seen) in self._buckets.items() if seen < cutoff]:
            del self._buckets[key]


rate_limiter = TokenBucketLimiter()


def client_key(request: Request) -> str:
    """First ``X-Forwarded-For`` hop when proxied, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _too_many_requests(request_id: str, retry_after: float) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "error": ErrorCode.RATE_LIMITED.value,
            "message": f"Rate limit of {settings.rate_limit_per_minute} requests per minute exceeded",
            "details": {"retry_after": round(retry_after, 1)},
        },
        headers={"Retry-After": str(math.ceil(retry_after)), "X-Request-ID": request_id},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags the request with an id, throttles it, then times and logs it."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        context_token = request_id_var.set(request_id)
        try:
            if request.url.path not in EXEMPT_PATHS:
                client = client_key(request)
                allowed, retry_after = rate_limiter.check(client, settings.rate_limit_per_minute)
                if not allowed:
                    logger.warning("Throttled %s", client, extra={"path": request.url.path})
                    return _too_many_requests(request_id, retry_after)

            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"
            logger.info(
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={"duration_ms": round(elapsed_ms, 1)},
            )
            return response
        finally:
            request_id_var.reset(context_token)

