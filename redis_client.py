"""
Redis Client Module

Async Redis client using redis.asyncio with singleton pattern.
Backs the aiogram FSM storage so pending interactions survive a restart.
Without REDIS_URL (or if Redis is unreachable at startup) the bot falls back
to in-process MemoryStorage.
"""
import logging
from typing import Optional

import redis.asyncio as redis
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage

import config

logger = logging.getLogger(__name__)

# Global Redis client instance (singleton)
_redis_client: Optional[redis.Redis] = None
REDIS_READY: bool = False


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create Redis client instance (singleton pattern).

    Returns:
        Redis client instance if configured, None if Redis URL not set
    """
    global _redis_client

    if not config.REDIS_URL:
        return None

    if _redis_client is None:
        _redis_client = redis.from_url(
            config.REDIS_URL,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=10
        )
        logger.info("Redis client created")
    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check Redis connection health with PING.

    This function does NOT raise exceptions - returns False on any error.
    """
    global REDIS_READY

    client = get_redis_client()
    if client is None:
        REDIS_READY = False
        return False

    try:
        REDIS_READY = bool(await client.ping())
    except (redis.RedisError, OSError) as e:
        REDIS_READY = False
        logger.warning(f"REDIS_CONNECTION_FAILED [reason={str(e)[:100]}]")
        return False

    if REDIS_READY:
        logger.info("REDIS_CONNECTED")
    else:
        logger.warning("REDIS_CONNECTION_FAILED [reason=ping_returned_false]")
    return REDIS_READY


async def create_fsm_storage() -> BaseStorage:
    """RedisStorage when Redis answers, MemoryStorage otherwise"""
    if await check_redis_connection():
        logger.info("FSM storage: redis")
        return RedisStorage(redis=get_redis_client())
    if config.REDIS_URL:
        logger.warning("FSM storage: memory (Redis configured but unreachable)")
    else:
        logger.info("FSM storage: memory")
    return MemoryStorage()


async def close_redis_client():
    """
    Close Redis client connection pool.

    Safe to call multiple times - idempotent.
    """
    global _redis_client, REDIS_READY

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("Redis client closed")
        except (redis.RedisError, OSError) as e:
            logger.error(f"Error closing Redis client: {e}")
        finally:
            _redis_client = None
            REDIS_READY = False
