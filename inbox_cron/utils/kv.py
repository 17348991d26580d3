"""
Redis key-value reader for the optional pending-task queue.

The queue is a single keyed blob holding a JSON array of task records. It is
read-only from this service's side; producers own writing and clearing it.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class RedisTaskQueue:
    """Reader for the pending-task blob with connection pooling and retries."""

    def __init__(self, redis_url: str, key: str, max_connections: int = 10) -> None:
        """Initialize queue reader.

        Args:
            redis_url: Redis connection URL
            key: Key holding the pending-task blob
            max_connections: Connection pool size
        """
        self.redis_url = redis_url
        self.key = key
        self.max_connections = max_connections
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Establish Redis connection with connection pooling."""
        if self.client is None:
            self.client = redis.from_url(
                self.redis_url,
                max_connections=self.max_connections,
                decode_responses=False,  # Handle bytes for orjson
            )

    @retry(
        retry=retry_if_exception_type((redis.ConnectionError, redis.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def read_pending(self) -> Optional[bytes]:
        """Read the raw pending-task blob.

        Returns:
            Raw bytes, or None when the key does not exist

        Raises:
            redis.RedisError: If reading fails after retries
        """
        if self.client is None:
            await self.connect()

        raw = await self.client.get(self.key)
        logger.debug(
            "Read pending task blob",
            extra={"key": self.key, "size": len(raw) if raw else 0},
        )
        return raw

    async def close(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self.client:
            await self.client.aclose()
            self.client = None
