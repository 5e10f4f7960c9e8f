"""
/start (self-registration) and /help.
"""
import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.ledger import service as ledger_service
from app.handlers.common.decorators import handler_exception_boundary

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(Command("start"))
@handler_exception_boundary("cmd_start", "user_register")
async def cmd_start(message: Message):
    """Регистрация: principal joins the registered set. Pending input is left as is."""
    telegram_id = message.from_user.id
    newly_registered = await ledger_service.register_principal(telegram_id)
    if not newly_registered:
        logger.debug(f"START_REPEAT [user={telegram_id}]")
    await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "start.welcome"))


@user_router.message(Command("help"))
async def cmd_help(message: Message):
    await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "help.text"))
