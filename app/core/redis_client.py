"""Redis connection and the per-client limiter for public confirmation links."""

import redis
import structlog

from app.config import settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Shared Redis client, created on first use.

    Timeouts are short because the limiter sits in the request path and
    fails open.
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=settings.redis_socket_timeout,
            socket_timeout=settings.redis_socket_timeout,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when it cannot be reached."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RateLimiter:
    """Fixed-window request counter keyed per client."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize rate limiter with Redis client."""
        self.redis = redis_client

    def check_rate_limit(
        self,
        key: str,
        limit: int,
        window: int = 60,
    ) -> bool:
        """
        Count one hit against ``key`` and report whether it is allowed.

        The window key is created with its expiry and incremented in one
        MULTI/EXEC transaction, so a counter never outlives its window. If
        Redis is unreachable the hit is allowed.

        Args:
            key: Counter key, e.g. ``ratelimit:confirm:<ip>``
            limit: Hits allowed per window
            window: Window length in seconds

        Returns:
            True if within limit, False if exceeded
        """
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.set(key, 0, ex=window, nx=True)
            pipe.incr(key)
            _, count = pipe.execute()
            count = int(count)
        except redis.RedisError as e:
            logger.warning("rate_limiter_unavailable", key=key, error=str(e))
            return True

        if count > limit:
            logger.info("rate_limit_exceeded", key=key, count=count, limit=limit)
            return False
        return True


def get_rate_limiter() -> RateLimiter:
    """Dependency returning a rate limiter bound to the shared Redis client."""
    return RateLimiter(get_redis_client())
