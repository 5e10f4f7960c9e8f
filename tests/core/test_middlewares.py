"""
Tests for the update middlewares: error boundary and concurrency limiter.
"""
import asyncio
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from aiogram.exceptions import TelegramBadRequest

from app.core.concurrency_middleware import ConcurrencyLimiterMiddleware
from app.core.telegram_error_middleware import TelegramErrorBoundaryMiddleware
from app.i18n import DEFAULT_LANGUAGE, get_text
from app.services.ledger.exceptions import PersistenceUnavailableError


def _update():
    message = MagicMock()
    message.message_id = 7
    message.from_user.id = 2000
    message.answer = AsyncMock()
    return SimpleNamespace(update_id=42, message=message, callback_query=None)


class TestErrorBoundary:
    """Tests for TelegramErrorBoundaryMiddleware"""

    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        """Successful handlers are untouched"""
        middleware = TelegramErrorBoundaryMiddleware()
        result = await middleware(AsyncMock(return_value="done"), _update(), {})
        assert result == "done"

    @pytest.mark.asyncio
    async def test_store_outage_replies_try_again(self):
        """Store unavailable -> one "try again" reply"""
        update = _update()
        middleware = TelegramErrorBoundaryMiddleware()

        await middleware(AsyncMock(side_effect=PersistenceUnavailableError("down")), update, {})

        update.message.answer.assert_awaited_once_with(get_text(DEFAULT_LANGUAGE, "errors.try_again"))

    @pytest.mark.asyncio
    async def test_unexpected_error_replies_generic(self):
        """Anything else -> generic error reply, never raised"""
        update = _update()
        middleware = TelegramErrorBoundaryMiddleware()

        await middleware(AsyncMock(side_effect=RuntimeError("boom")), update, {})

        update.message.answer.assert_awaited_once_with(get_text(DEFAULT_LANGUAGE, "errors.generic"))

    @pytest.mark.asyncio
    async def test_not_modified_is_silent(self):
        """'message is not modified' gets no reply"""
        update = _update()
        middleware = TelegramErrorBoundaryMiddleware()
        error = TelegramBadRequest(method=MagicMock(), message="Bad Request: message is not modified")

        await middleware(AsyncMock(side_effect=error), update, {})

        update.message.answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_propagates(self):
        """Cancellation is never swallowed"""
        middleware = TelegramErrorBoundaryMiddleware()
        with pytest.raises(asyncio.CancelledError):
            await middleware(AsyncMock(side_effect=asyncio.CancelledError()), _update(), {})


class TestConcurrencyLimiter:
    """Tests for ConcurrencyLimiterMiddleware"""

    @pytest.mark.asyncio
    async def test_bounds_parallel_handlers(self):
        """No more than the semaphore size run at once"""
        middleware = ConcurrencyLimiterMiddleware(asyncio.Semaphore(2))
        running = 0
        peak = 0

        async def handler(event, data):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        await asyncio.gather(*(middleware(handler, object(), {}) for _ in range(5)))

        assert peak == 2
