from __future__ import annotations

import os
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response


@dataclass
class _Window:
    hits: deque[float]


@dataclass(frozen=True)
class _Bucket:
    name: str
    limit: int
    window_s: float


class SlidingWindowRateLimiter:
    """Small in-process sliding-window rate limiter.

    Keys are derived from client IP + a logical bucket. Every browsing intent
    fans out into one or two catalog calls, so this mainly shields the catalog
    service from runaway clients.
    """

    def __init__(self, *, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._windows: dict[str, _Window] = {}

    def allow(self, *, key: str, limit: int, window_s: float) -> tuple[bool, int]:
        now = self._clock()
        cutoff = now - window_s
        with self._lock:
            w = self._windows.setdefault(key, _Window(hits=deque()))

            while w.hits and w.hits[0] < cutoff:
                w.hits.popleft()

            if len(w.hits) >= limit:
                return False, 0

            w.hits.append(now)
            return True, max(0, limit - len(w.hits))


def _bucket_from_env(name: str, env_key: str, default_limit: int) -> _Bucket:
    return _Bucket(
        name=name,
        limit=int(os.environ.get(f"MOVIE_BROWSER_RL_{env_key}", str(default_limit))),
        window_s=float(os.environ.get(f"MOVIE_BROWSER_RL_{env_key}_WINDOW_S", "60")),
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, limiter: SlidingWindowRateLimiter | None = None) -> None:
        super().__init__(app)
        self._limiter = limiter or SlidingWindowRateLimiter()

        # Tunable via env vars (useful for tests/deploy).
        self._global = _bucket_from_env("global", "GLOBAL", 120)
        self._sessions = _bucket_from_env("sessions", "SESSIONS", 10)

    def _buckets_for(self, request: Request) -> list[_Bucket]:
        buckets = [self._global]
        if request.method == "POST" and request.url.path.rstrip("/") == "/api/sessions":
            buckets.append(self._sessions)
        return buckets

    async def dispatch(self, request: Request, call_next) -> Response:
        client_ip = request.client.host if request.client else "unknown"

        for bucket in self._buckets_for(request):
            ok, _remaining = self._limiter.allow(
                key=f"{client_ip}:{bucket.name}", limit=bucket.limit, window_s=bucket.window_s
            )
            if not ok:
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Rate limit exceeded"},
                    headers={"Retry-After": str(int(bucket.window_s))},
                )

        return await call_next(request)
