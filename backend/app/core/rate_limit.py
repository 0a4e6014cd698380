"""Per-client sliding-window limits for the compute endpoints.

Each request carries a cost (1 for a single run; callers may charge
more for heavier work).  A client may spend at most ``max_requests``
cost units per ``window_seconds``; beyond that the request is refused
with 429 and a ``Retry-After`` hint.
"""

from __future__ import annotations

import math
import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request, status


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimiter:
    def __init__(self, max_requests: int = 5, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._spent: dict[str, deque[tuple[float, int]]] = defaultdict(deque)

    def _expire(self, window: deque[tuple[float, int]], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0][0] <= cutoff:
            window.popleft()

    def reset(self) -> None:
        self._spent.clear()

    def check(self, request: Request, cost: int = 1) -> None:
        """Record *cost* for the caller or raise 429 when over budget."""
        now = time.monotonic()
        window = self._spent[client_key(request)]
        self._expire(window, now)

        used = sum(c for _, c in window)
        if used + cost > self.max_requests:
            retry_after = self.window_seconds
            if window:
                retry_after = max(1, math.ceil(window[0][0] + self.window_seconds - now))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Max {self.max_requests} requests per {self.window_seconds}s.",
                headers={"Retry-After": str(retry_after)},
            )

        window.append((now, cost))


simulation_limiter = RateLimiter(max_requests=20, window_seconds=60)
montecarlo_limiter = RateLimiter(max_requests=5, window_seconds=60)
sensitivity_limiter = RateLimiter(max_requests=3, window_seconds=60)

ALL_LIMITERS = (simulation_limiter, montecarlo_limiter, sensitivity_limiter)
