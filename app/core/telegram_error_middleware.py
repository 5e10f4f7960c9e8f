"""
Global Telegram update error boundary middleware.

Ensures no handler exception can crash polling.
Never swallows CancelledError.
Handles TelegramForbiddenError and TelegramBadRequest (message not modified, query too old) silently.
A store outage is answered with a "try again" reply; anything else with a generic error reply.
"""
import asyncio
import logging
from typing import Callable, Awaitable, Dict, Any, Optional

from aiogram import BaseMiddleware
from aiogram.exceptions import TelegramForbiddenError, TelegramBadRequest

from app.core.structured_logger import log_event
from app.i18n import DEFAULT_LANGUAGE, get_text
from app.services.ledger.exceptions import PersistenceUnavailableError

logger = logging.getLogger(__name__)


def _event_parts(event: Any):
    """(message, callback_query, user_id, correlation_id) for an Update or a bare event"""
    message = getattr(event, "message", None)
    callback_query = getattr(event, "callback_query", None)
    if message is None and callback_query is None:
        if hasattr(event, "data") and hasattr(event, "message"):
            callback_query = event
        elif hasattr(event, "message_id"):
            message = event

    source = callback_query or message
    user = getattr(source, "from_user", None) if source is not None else None
    user_id = getattr(user, "id", None)

    correlation_id: Optional[str] = None
    if getattr(event, "update_id", None) is not None:
        correlation_id = str(event.update_id)
    elif callback_query is not None and getattr(callback_query, "id", None):
        correlation_id = str(callback_query.id)
    elif message is not None and getattr(message, "message_id", None):
        correlation_id = str(message.message_id)
    return message, callback_query, user_id, correlation_id


async def _reply(message, callback_query, text: str) -> None:
    try:
        if callback_query is not None:
            await callback_query.answer(text, show_alert=False)
            if getattr(callback_query, "message", None) is not None:
                await callback_query.message.answer(text)
        elif message is not None:
            await message.answer(text)
    except Exception as e:
        logger.debug("Error boundary fallback reply not delivered: %s", e)


class TelegramErrorBoundaryMiddleware(BaseMiddleware):
    """
    Middleware that wraps handler execution in a strict error boundary.

    TelegramForbiddenError (user blocked bot): debug log, return.
    TelegramBadRequest (message not modified, query too old): silent return.
    PersistenceUnavailableError: warning, "try again" reply.
    Other exception: logged with traceback, generic error reply.
    Never raises; never swallows CancelledError.
    """

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except asyncio.CancelledError:
            raise
        except TelegramForbiddenError as e:
            logger.debug("TelegramForbiddenError (user blocked bot or removed from chat): %s", e)
            return None
        except TelegramBadRequest as e:
            error_msg = str(e).lower()
            if "message is not modified" in error_msg or "query is too old" in error_msg:
                return None
            logger.warning("TelegramBadRequest: %s", e)
            return None
        except PersistenceUnavailableError as e:
            message, callback_query, user_id, correlation_id = _event_parts(event)
            log_event(
                logger,
                component="telegram",
                operation="update_processing",
                correlation_id=correlation_id,
                outcome="degraded",
                reason=f"store unavailable: {str(e)[:200]}",
                level="warning",
            )
            await _reply(message, callback_query, get_text(DEFAULT_LANGUAGE, "errors.try_again"))
            return None
        except Exception as e:
            message, callback_query, user_id, correlation_id = _event_parts(event)
            log_event(
                logger,
                component="telegram",
                operation="update_processing",
                correlation_id=correlation_id,
                outcome="failed",
                reason=f"{type(e).__name__}: {str(e)[:200]}",
                level="error",
            )
            logger.exception("UNHANDLED_HANDLER_EXCEPTION", extra={"update_type": type(event).__name__, "user_id": user_id})
            await _reply(message, callback_query, get_text(DEFAULT_LANGUAGE, "errors.generic"))
            return None
