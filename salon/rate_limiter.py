"""
Rate limiting for the public auth endpoints (login, register).

Each limiter counts hits per client IP in fixed windows held in process
memory. When Redis is configured (REDIS_URL or REDIS_HOST) the counters are
seeded from Redis on first sight and written back every few seconds, so
several API processes converge on a shared count. Without Redis the limiter
runs on memory alone.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

REDIS_SYNC_INTERVAL = 10
SWEEP_INTERVAL = 60

_redis: Optional[redis.Redis] = None
_limiters: list["WindowLimiter"] = []


def redis_configured() -> bool:
    return bool(os.getenv("REDIS_URL") or os.getenv("REDIS_HOST"))


def get_redis_client() -> Optional[redis.Redis]:
    """Shared Redis client, created lazily. None when Redis is not configured."""
    global _redis

    if _redis is not None or not redis_configured():
        return _redis

    options = dict(
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
    )
    url = os.getenv("REDIS_URL")
    if url:
        client = redis.from_url(url, **options)
    else:
        client = redis.Redis(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            password=os.getenv("REDIS_PASSWORD"),
            db=int(os.getenv("REDIS_DB", "0")),
            ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
            **options,
        )
    client.ping()
    logger.info("🔌 Redis connected for rate limiting")
    _redis = client
    return _redis


class _Window:
    __slots__ = ("count", "resets_at", "synced_at")

    def __init__(self, count: int, resets_at: int, synced_at: int):
        self.count = count
        self.resets_at = resets_at
        self.synced_at = synced_at


class WindowLimiter:
    """At most `limit` hits per `window_seconds` for each key."""

    def __init__(self, limit: int, window_seconds: int, key_prefix: str):
        self.limit = limit
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()
        self._swept_at = 0

    def _sweep(self, now: int) -> None:
        if now - self._swept_at < SWEEP_INTERVAL:
            return
        expired = [key for key, window in self._windows.items() if now >= window.resets_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug(f"🧹 {self.key_prefix}: dropped {len(expired)} expired windows")
        self._swept_at = now

    def _open(self, key: str, now: int, client: Optional[redis.Redis]) -> _Window:
        window = _Window(0, now + self.window_seconds, now)
        if client is not None:
            try:
                stored, ttl = client.get(key), client.ttl(key)
                if stored and ttl > 0:
                    window.count = int(stored)
                    window.resets_at = now + ttl
            except redis.RedisError as e:
                logger.warning(f"⚠️ Could not read {key} from Redis, counting in memory: {e}")
        return window

    def hit(self, key: str, client: Optional[redis.Redis] = None) -> tuple[bool, int]:
        """Record one hit. Returns (allowed, seconds until the window resets)."""
        now = int(time.time())
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = self._open(key, now, client)
            elif now >= window.resets_at:
                window.count, window.resets_at, window.synced_at = 0, now + self.window_seconds, 0

            allowed = window.count < self.limit
            if allowed:
                window.count += 1

            if client is not None and now - window.synced_at >= REDIS_SYNC_INTERVAL:
                try:
                    client.set(key, window.count, ex=self.window_seconds)
                    window.synced_at = now
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Could not write {key} to Redis: {e}")

            return allowed, max(0, window.resets_at - now)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    async def __call__(self, request: Request) -> None:
        try:
            client = get_redis_client()
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis unavailable, rate limiting from memory only: {e}")
            client = None

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"
        key = f"{self.key_prefix}:{client_ip}"

        allowed, retry_after = self.hit(key, client)
        if not allowed:
            logger.warning(f"🚫 Too many {self.key_prefix} attempts from {client_ip}")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Too many attempts. Maximum {self.limit} per {self.window_seconds} seconds.",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit") -> WindowLimiter:
    """Build a limiter usable as a FastAPI dependency: `Depends(create_rate_limiter(10, 60, "login"))`"""
    limiter = WindowLimiter(limit, window_seconds, key_prefix)
    _limiters.append(limiter)
    return limiter


def reset_rate_limits() -> None:
    for limiter in _limiters:
        limiter.clear()
