from loguru import logger
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from moment_client.core.config import Settings, settings
from moment_client.schemas import TokenPair
from moment_client.services.credentials.base import CredentialStore


def create_redis_client(config: Settings = settings) -> Redis:
    """
    Build a Redis client from settings.

    Returns:
        Redis: Client decoding responses to str
    """
    pool = ConnectionPool.from_url(
        config.redis_url.human_repr(),
        encoding="utf-8",
        decode_responses=True,
        retry_on_timeout=True,
        socket_connect_timeout=config.redis_socket_connect_timeout,
        socket_timeout=config.redis_socket_timeout,
    )
    logger.info(f"Redis connection pool created for {config.redis_host}:{config.redis_port}")

    return Redis(connection_pool=pool)


class RedisCredentialStore(CredentialStore):
    """
    Redis store keeping the pair in one hash.

    A single HSET with a mapping writes all three fields atomically and a
    single DELETE removes them.
    """

    def __init__(self, redis_client: Redis | None = None, key: str | None = None):
        self._redis_client = redis_client or create_redis_client()
        self.key = key or settings.redis_credentials_key

    @property
    def redis_client(self) -> Redis:
        return self._redis_client

    async def load(self) -> TokenPair | None:
        try:
            data = await self.redis_client.hgetall(self.key)
        except RedisError:
            logger.exception(f"Failed to read credentials from Redis key {self.key}")
            return None

        if not data:
            return None

        try:
            return TokenPair.model_validate(data)
        except ValueError:
            logger.warning(f"Ignoring malformed credentials in Redis key {self.key}")
            return None

    async def save(self, pair: TokenPair) -> None:
        await self.redis_client.hset(self.key, mapping=pair.model_dump())
        logger.debug(f"Credentials saved to Redis key {self.key}")

    async def clear(self) -> None:
        await self.redis_client.delete(self.key)
        logger.debug(f"Credentials cleared from Redis key {self.key}")

    async def health_check(self) -> bool:
        """
        Check Redis connection health by pinging the server.

        Returns:
            bool: True if Redis is healthy and responsive, False otherwise
        """
        try:
            await self.redis_client.ping()
            return True
        except RedisError as e:
            logger.error(f"Redis health check failed for {self.__class__.__name__}: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection gracefully"""
        try:
            await self.redis_client.aclose()
            logger.info(f"Redis connection closed for {self.__class__.__name__}")
        except RedisError as e:
            logger.error(f"Error closing Redis connection for {self.__class__.__name__}: {e}")
