"""
Shared handler utilities: command arguments, safe edits, callback payloads.
"""
import logging
from typing import Optional, Tuple

from aiogram.types import Message, InlineKeyboardMarkup
from aiogram.exceptions import TelegramBadRequest

logger = logging.getLogger(__name__)


def command_argument(message: Message) -> Optional[str]:
    """
    Текст после команды: "/forward https://a.example/ipn" -> "https://a.example/ipn"

    Returns:
        Stripped argument, or None if the command was sent bare
    """
    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def split_callback_data(data: str, prefix: str) -> Tuple[str, ...]:
    """"cashout:all:42" with prefix "cashout:" -> ("all", "42")"""
    if not data or not data.startswith(prefix):
        return ()
    return tuple(data[len(prefix):].split(":"))


async def safe_edit_text(message: Message, text: str, reply_markup: InlineKeyboardMarkup = None, parse_mode: str = None):
    """
    Безопасное редактирование текста сообщения

    Unchanged content is skipped. If the message cannot be edited (too old,
    deleted, not ours) a new message is sent instead.
    """
    current_text = getattr(message, "text", None)
    current_markup = getattr(message, "reply_markup", None)
    if current_text == text and current_markup == reply_markup:
        return

    try:
        await message.edit_text(text, reply_markup=reply_markup, parse_mode=parse_mode)
    except TelegramBadRequest as e:
        if "message is not modified" in str(e).lower():
            return
        logger.info(f"safe_edit_text: edit failed ({e}), sending new message")
        await message.answer(text, reply_markup=reply_markup, parse_mode=parse_mode)
