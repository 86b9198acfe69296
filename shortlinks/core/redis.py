"""
Redis client management module.

This module provides a Redis client manager with connection pooling
and error handling for async Redis operations. The manager is constructed
explicitly by the runtime at startup and closed at shutdown.
"""

from typing import Optional

import redis.asyncio as redis
from loguru import logger
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError


class RedisClientManager:
    """
    Async Redis client manager with connection pooling.

    Features:
    - Connection pool built once in connect()
    - Bounded socket timeouts so a hung server cannot stall callers
    - Health checking via ping()
    """

    def __init__(
        self,
        url: str,
        max_connections: int = 20,
        socket_timeout: float = 0.5,
    ):
        self.url = url
        self.max_connections = max_connections
        self.socket_timeout = socket_timeout
        self._connection_pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def connect(self) -> redis.Redis:
        """
        Create the connection pool and client.

        No network traffic happens here; the first command opens a connection.

        Returns:
            redis.Redis: Redis client instance
        """
        if self._client is not None:
            return self._client

        self._connection_pool = redis.ConnectionPool.from_url(
            self.url,
            max_connections=self.max_connections,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_timeout,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._connection_pool)
        logger.debug("Redis connection pool created", max_connections=self.max_connections)
        return self._client

    @property
    def client(self) -> redis.Redis:
        """
        Get the connected Redis client.

        Raises:
            ConnectionError: If connect() has not been called
        """
        if self._client is None:
            raise ConnectionError("Redis client has not been connected")
        return self._client

    async def ping(self) -> bool:
        """
        Test the Redis connection with a ping command.

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            logger.warning(f"Redis ping failed: {str(e)}")
            return False

    async def close(self) -> None:
        """Close the Redis client and connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

        if self._connection_pool is not None:
            await self._connection_pool.disconnect()
            self._connection_pool = None

        logger.debug("Redis connections closed")
