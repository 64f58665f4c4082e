"""Token-bucket rate limiting."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import HTTPException, Request

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class RateLimiter:
    """Per-key token bucket.

    Each key starts with a full bucket of ``max_per_minute`` tokens, refilled
    continuously at ``max_per_minute / 60`` tokens per second. A request takes
    one token and is refused when less than one is left.
    """

    def __init__(
        self,
        max_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_per_minute = max_per_minute
        self.clock = clock
        self._buckets: Dict[str, _Bucket] = {}

    def allow(self, key: str) -> bool:
        """Consume a token for ``key``; return False when the bucket is empty."""
        now = self.clock()
        capacity = float(self.max_per_minute)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=capacity, updated_at=now)
            self._buckets[key] = bucket

        elapsed = max(0.0, now - bucket.updated_at)
        bucket.tokens = min(capacity, bucket.tokens + elapsed * capacity / 60.0)
        bucket.updated_at = now

        if bucket.tokens < 1:
            return False
        bucket.tokens -= 1
        return True

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key."""
        if key is None:
            self._buckets.clear()
        else:
            self._buckets.pop(key, None)


login_limiter = RateLimiter(settings.rate_limit_per_minute)
caller_limiter = RateLimiter(settings.rate_limit_per_minute)


async def limit_by_client_ip(request: Request) -> None:
    """Dependency refusing clients that exceed the login rate."""
    client_ip = request.client.host if request.client else "unknown"
    if not login_limiter.allow(client_ip):
        logger.warning(f"[RATE LIMIT] Too many requests - Client: {client_ip}")
        raise HTTPException(status_code=429, detail="Too many requests")
