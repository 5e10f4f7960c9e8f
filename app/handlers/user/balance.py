"""
Read-only ledger views: /balance, /transactions, /status.
"""
import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from app.i18n import DEFAULT_LANGUAGE
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.screens import render_balance, render_status, render_transactions

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(Command("balance"))
@handler_exception_boundary("cmd_balance")
async def cmd_balance(message: Message):
    await message.answer(await render_balance(DEFAULT_LANGUAGE))


@user_router.message(Command("transactions"))
@handler_exception_boundary("cmd_transactions")
async def cmd_transactions(message: Message):
    await message.answer(await render_transactions(DEFAULT_LANGUAGE))


@user_router.message(Command("status"))
@handler_exception_boundary("cmd_status")
async def cmd_status(message: Message):
    await message.answer(await render_status(DEFAULT_LANGUAGE))
