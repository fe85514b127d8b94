"""
Initialization - Storage Module.

Connects the Redis key-value store.
"""

from loguru import logger
from redis.asyncio import Redis

from wallet_monitor.config.settings import Settings


async def setup_redis(app_settings: Settings) -> Redis:
    """
    Create and verify the Redis client.

    Raises:
        RedisError: If Redis is unreachable
    """
    redis_client = Redis(
        host=app_settings.redis_host,
        port=app_settings.redis_port,
        password=app_settings.redis_password,
        db=app_settings.redis_db,
        decode_responses=True,
    )
    try:
        await redis_client.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        await redis_client.aclose()
        raise

    logger.info("Redis connection established")
    return redis_client
