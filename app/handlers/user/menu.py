"""
/menu and the main menu buttons. Each button opens the same screen as its command.
"""
import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import UnauthorizedError, list_notified
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.keyboards import get_main_menu_keyboard
from app.handlers.common.screens import (
    _open_cashout_screen,
    render_balance,
    render_notification_list,
    render_status,
    render_transactions,
)

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(Command("menu"))
async def cmd_menu(message: Message):
    language = DEFAULT_LANGUAGE
    await message.answer(
        i18n_get_text(language, "menu.title"),
        reply_markup=get_main_menu_keyboard(language),
    )


@user_router.callback_query(F.data == "menu:balance")
@handler_exception_boundary("callback_menu_balance")
async def callback_menu_balance(callback: CallbackQuery):
    await callback.answer()
    await callback.message.answer(await render_balance(DEFAULT_LANGUAGE))


@user_router.callback_query(F.data == "menu:transactions")
@handler_exception_boundary("callback_menu_transactions")
async def callback_menu_transactions(callback: CallbackQuery):
    await callback.answer()
    await callback.message.answer(await render_transactions(DEFAULT_LANGUAGE))


@user_router.callback_query(F.data == "menu:cashout")
@handler_exception_boundary("callback_menu_cashout", "cashout_open")
async def callback_menu_cashout(callback: CallbackQuery):
    await callback.answer()
    await _open_cashout_screen(callback, DEFAULT_LANGUAGE)


@user_router.callback_query(F.data == "menu:status")
@handler_exception_boundary("callback_menu_status")
async def callback_menu_status(callback: CallbackQuery):
    await callback.answer()
    await callback.message.answer(await render_status(DEFAULT_LANGUAGE))


@user_router.callback_query(F.data == "menu:notifications")
@handler_exception_boundary("callback_menu_notifications")
async def callback_menu_notifications(callback: CallbackQuery):
    """Список уведомлений (admin only)"""
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        members = await list_notified(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_notify_list"))
        return
    await callback.message.answer(render_notification_list(members, language))
