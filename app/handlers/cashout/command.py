"""
/cashout - opens the cash-out options for the sender.
"""
from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from app.i18n import DEFAULT_LANGUAGE
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.screens import _open_cashout_screen

cashout_command_router = Router()


@cashout_command_router.message(Command("cashout"))
@handler_exception_boundary("cmd_cashout", "cashout_open")
async def cmd_cashout(message: Message):
    await _open_cashout_screen(message, DEFAULT_LANGUAGE)
