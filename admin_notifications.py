"""
Admin / User Notifications Module

Unified delivery entry points for Telegram alerts. Both functions log every
attempt and never raise: one failing recipient must not affect any other.
"""
import logging
from typing import Optional

from aiogram import Bot
import config
from app.utils.telegram_safe import safe_send_message

logger = logging.getLogger(__name__)


async def send_admin_notification(
    bot: Bot,
    message: str,
    notification_type: str = "custom",
    parse_mode: Optional[str] = None,
    **kwargs
) -> bool:
    """
    Send a notification to the configured administrator.

    Args:
        bot: Telegram bot instance
        message: Notification message text
        notification_type: Type of notification (for logging/observability)
                          Examples: "payment_received", "cashout_applied", "custom"
        parse_mode: Parse mode for message (None, "HTML", "Markdown")
        **kwargs: Additional arguments passed to bot.send_message

    Returns:
        bool: True if notification sent successfully, False otherwise

    Never raises exceptions - all errors are logged and handled gracefully.
    """
    if not config.ADMIN_TELEGRAM_ID:
        logger.warning(f"ADMIN_NOTIFICATION_SKIPPED [type={notification_type}, reason=admin_id_not_configured]")
        return False

    logger.info(f"ADMIN_NOTIFICATION_ATTEMPT [type={notification_type}, admin_id={config.ADMIN_TELEGRAM_ID}]")
    sent = await safe_send_message(bot, config.ADMIN_TELEGRAM_ID, message, parse_mode=parse_mode, **kwargs)
    if sent is None:
        logger.error(f"ADMIN_NOTIFICATION_FAILED [type={notification_type}, admin_id={config.ADMIN_TELEGRAM_ID}]")
        return False
    logger.info(f"ADMIN_NOTIFICATION_SENT [type={notification_type}, admin_id={config.ADMIN_TELEGRAM_ID}]")
    return True


async def send_user_notification(
    bot: Bot,
    user_id: int,
    message: str,
    notification_type: str = "custom",
    parse_mode: Optional[str] = None,
    **kwargs
) -> bool:
    """
    Send a notification to a single user.

    Returns:
        bool: True if notification sent successfully, False otherwise

    Never raises exceptions - all errors are logged and handled gracefully.
    """
    logger.info(f"USER_NOTIFICATION_ATTEMPT [type={notification_type}, user_id={user_id}]")
    sent = await safe_send_message(bot, user_id, message, parse_mode=parse_mode, **kwargs)
    if sent is None:
        logger.warning(f"USER_NOTIFICATION_FAILED [type={notification_type}, user_id={user_id}]")
        return False
    logger.info(f"USER_NOTIFICATION_SENT [type={notification_type}, user_id={user_id}]")
    return True
