"""
Rate limiting for abuse-prone endpoints (OTP dispatch)

Each limiter keeps a fixed-window counter per client IP in process memory and
mirrors it to Redis so that several API workers converge on one count.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import REDIS_DB, REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, REDIS_SSL, REDIS_URL, TRUSTED_PROXY_COUNT

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None

REDIS_SYNC_INTERVAL = 10  # seconds between Redis writes for a key


def _mask_url(url: str) -> str:
    if "@" not in url:
        return "****"
    scheme = url.split(":", 1)[0]
    return f"{scheme}:****@{url.split('@', 1)[1]}"


def get_redis_client() -> redis.Redis:
    """Return the shared Redis client, connecting on first use"""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    options = {
        "decode_responses": True,
        "socket_connect_timeout": 5,
        "socket_timeout": 10,
        "retry_on_timeout": True,
        "health_check_interval": 30,
    }

    if REDIS_URL:
        logger.info(f"🔄 Connecting to Redis at {_mask_url(REDIS_URL)}")
        client = redis.from_url(REDIS_URL, **options)
    else:
        logger.info(f"🔄 Connecting to Redis at {REDIS_HOST}:{REDIS_PORT} db={REDIS_DB}")
        client = redis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            db=REDIS_DB,
            ssl=REDIS_SSL,
            **options,
        )

    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Redis connection failed: {e}")
        raise

    logger.info("✅ Redis connected")
    _redis_client = client
    return _redis_client


def client_ip(request: Request) -> str:
    """Caller address as seen by the outermost trusted proxy, else the socket peer

    Each trusted proxy appends the address it received from, so the client is
    TRUSTED_PROXY_COUNT hops from the right. Anything further left is caller supplied.
    """
    peer = request.client.host if request.client else "unknown"
    if TRUSTED_PROXY_COUNT <= 0:
        return peer

    forwarded = request.headers.get("X-Forwarded-For")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    if not hops:
        return peer
    return hops[-min(TRUSTED_PROXY_COUNT, len(hops))]


@dataclass
class _Window:
    count: int
    resets_at: int
    synced_at: int


class RateLimiter:
    """Fixed-window counter, usable directly as a FastAPI dependency

    Requests are refused (fail-closed) when the counter cannot be evaluated.
    """

    def __init__(self, limit: int, window_seconds: int, key_prefix: str):
        self.limit = limit
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    def _load(self, key: str, now: int, client: redis.Redis) -> _Window:
        try:
            stored = client.get(key)
            ttl = client.ttl(key)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Could not read {key} from Redis, counting locally: {e}")
            stored, ttl = None, -1
        if stored and ttl > 0:
            return _Window(count=int(stored), resets_at=now + ttl, synced_at=now)
        return _Window(count=0, resets_at=now + self.window_seconds, synced_at=now)

    def _purge_expired(self, now: int) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.resets_at]
        for key in expired:
            del self._windows[key]

    def hit(self, identity: str, client: redis.Redis) -> tuple[bool, int, int]:
        """Count one request for ``identity``

        Returns (allowed, count in window, seconds until the window resets).
        """
        key = f"{self.key_prefix}:{identity}"
        now = int(time.time())

        with self._lock:
            self._purge_expired(now)
            window = self._windows.get(key)
            if window is None:
                window = self._load(key, now, client)
                self._windows[key] = window

            allowed = window.count < self.limit
            if allowed:
                window.count += 1

            if now - window.synced_at >= REDIS_SYNC_INTERVAL or window.count == 1:
                try:
                    client.set(key, window.count, ex=max(1, window.resets_at - now))
                    window.synced_at = now
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Could not sync {key} to Redis: {e}")

            return allowed, window.count, max(0, window.resets_at - now)

    async def __call__(self, request: Request) -> None:
        ip = client_ip(request)
        try:
            allowed, count, retry_after = self.hit(ip, get_redis_client())
        except Exception as e:
            logger.error(f"❌ Rate limiting unavailable for {self.key_prefix}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Rate limiting service temporarily unavailable",
            ) from e

        if not allowed:
            logger.warning(f"🚫 {self.key_prefix} limit reached for {ip} ({count}/{self.limit})")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "message": f"Too many requests. Try again in {retry_after} seconds.",
                    "retry_after": retry_after,
                    "limit": self.limit,
                    "window_seconds": self.window_seconds,
                },
                headers={"Retry-After": str(retry_after)},
            )
