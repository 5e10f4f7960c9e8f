"""
Centralized safe wrapper for bot.send_message.

Handles TelegramBadRequest (chat not found) and TelegramForbiddenError
(blocked, never started the bot) so a single unreachable recipient never
breaks a fan-out.
"""
import logging
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

logger = logging.getLogger(__name__)


async def safe_send_message(bot, telegram_id: int, text: str, **kwargs):
    """
    Send Telegram message with graceful error handling.
    On chat_not_found / blocked: logs at warning, returns None.
    On any other failure: logs with traceback, returns None.
    On success: returns Message.

    Returns:
        Message on success, None on any handled failure.
    """
    try:
        return await bot.send_message(telegram_id, text, **kwargs)

    except TelegramBadRequest as e:
        if "chat not found" in str(e).lower():
            logger.warning(f"SAFE_SEND_SKIP_CHAT_NOT_FOUND user={telegram_id}")
            return None
        logger.exception(f"SAFE_SEND_BAD_REQUEST user={telegram_id}")
        return None

    except TelegramForbiddenError:
        logger.warning(f"SAFE_SEND_FORBIDDEN user={telegram_id}")
        return None

    except Exception:
        logger.exception(f"SAFE_SEND_UNKNOWN_ERROR user={telegram_id}")
        return None
