"""
Global concurrency limiter middleware for update processing.

Bounds how many Telegram updates are processed at once so a burst of
commands cannot starve the webhook receiver sharing the event loop.
"""
import asyncio
import logging
from typing import Callable, Awaitable, Dict, Any

from aiogram import BaseMiddleware

logger = logging.getLogger(__name__)


class ConcurrencyLimiterMiddleware(BaseMiddleware):
    """
    Middleware that limits concurrent update processing using a semaphore.

    At most MAX_CONCURRENT_UPDATES updates are processed simultaneously;
    the rest wait for a slot.
    """

    def __init__(self, semaphore: asyncio.Semaphore):
        super().__init__()
        self._semaphore = semaphore

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        if self._semaphore.locked():
            logger.debug("UPDATE_CONCURRENCY_SATURATED [waiting for slot]")
        async with self._semaphore:
            return await handler(event, data)
