"""
/setfee <percentage> - global cash-out fee (admin only).
"""
import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import InvalidFeeError, UnauthorizedError, require_admin, set_fee
from app.services.ledger.money import format_percent
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.utils import command_argument

admin_fee_router = Router()
logger = logging.getLogger(__name__)


@admin_fee_router.message(Command("setfee"))
@handler_exception_boundary("cmd_setfee", "admin_set_fee")
async def cmd_setfee(message: Message):
    language = DEFAULT_LANGUAGE
    argument = command_argument(message)

    try:
        if argument is None:
            require_admin(message.from_user.id)
            await message.answer(i18n_get_text(language, "fee.usage"))
            return
        fee = await set_fee(message.from_user.id, argument)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_setfee"))
        return
    except InvalidFeeError:
        await message.answer(i18n_get_text(language, "fee.invalid"))
        return

    await message.answer(i18n_get_text(language, "fee.set", fee=format_percent(fee)))
