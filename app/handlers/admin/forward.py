"""
IPN forward endpoints (admin only): /forward, /remove-forward, /list-forward,
/forward-menu and the forward menu buttons.
"""
import logging

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import (
    InvalidForwardUrlError,
    RegistryMemberNotFoundError,
    UnauthorizedError,
    add_forward_endpoint,
    clear_forward_endpoints,
    list_forward_endpoints,
    remove_forward_endpoint,
    require_admin,
)
from app.handlers.admin.keyboards import get_forward_menu_keyboard
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.screens import (
    _prompt_state,
    render_forward_list,
    render_forward_listing,
    render_forward_menu,
)
from app.handlers.common.states import PendingInteraction
from app.handlers.common.utils import command_argument, safe_edit_text

admin_forward_router = Router()
logger = logging.getLogger(__name__)


# ====================================================================================
# Commands
# ====================================================================================

@admin_forward_router.message(Command("forward"))
@handler_exception_boundary("cmd_forward", "admin_forward_add")
async def cmd_forward(message: Message):
    language = DEFAULT_LANGUAGE
    argument = command_argument(message)

    try:
        if argument is None:
            require_admin(message.from_user.id)
            await message.answer(i18n_get_text(language, "forward.usage"))
            return
        url, added = await add_forward_endpoint(message.from_user.id, argument)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_forward_add"))
        return
    except InvalidForwardUrlError:
        await message.answer(i18n_get_text(language, "forward.invalid_url"))
        return

    key = "forward.added" if added else "forward.already"
    await message.answer(i18n_get_text(language, key, url=url))


@admin_forward_router.message(Command("remove-forward", "remove_forward"))
@handler_exception_boundary("cmd_remove_forward", "admin_forward_remove")
async def cmd_remove_forward(message: Message):
    language = DEFAULT_LANGUAGE
    argument = command_argument(message)

    try:
        if argument is None:
            require_admin(message.from_user.id)
            await message.answer(i18n_get_text(language, "forward.remove_usage"))
            return
        url = await remove_forward_endpoint(message.from_user.id, argument)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_forward_remove"))
        return
    except RegistryMemberNotFoundError as e:
        await message.answer(i18n_get_text(language, "forward.not_found", url=e.member))
        return

    await message.answer(i18n_get_text(language, "forward.removed", url=url))


@admin_forward_router.message(Command("list-forward", "list_forward"))
@handler_exception_boundary("cmd_list_forward", "admin_forward_list")
async def cmd_list_forward(message: Message):
    language = DEFAULT_LANGUAGE
    try:
        endpoints = await list_forward_endpoints(message.from_user.id)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_forward_list"))
        return
    await message.answer(render_forward_list(endpoints, language))


@admin_forward_router.message(Command("forward-menu", "forward_menu"))
@handler_exception_boundary("cmd_forward_menu", "admin_forward_menu")
async def cmd_forward_menu(message: Message):
    language = DEFAULT_LANGUAGE
    try:
        endpoints = await list_forward_endpoints(message.from_user.id)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_forward_menu"))
        return
    await message.answer(
        render_forward_menu(endpoints, language),
        reply_markup=get_forward_menu_keyboard(language),
    )


# ====================================================================================
# Forward menu buttons
# ====================================================================================

@admin_forward_router.callback_query(F.data == "forward:add")
@handler_exception_boundary("callback_forward_add", "admin_forward_add")
async def callback_forward_add(callback: CallbackQuery, state: FSMContext):
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        require_admin(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_forward_add"))
        return
    await _prompt_state(
        callback.message,
        state,
        PendingInteraction.awaiting_forward_url,
        i18n_get_text(language, "forward.enter_url"),
    )


@admin_forward_router.callback_query(F.data == "forward:remove")
@handler_exception_boundary("callback_forward_remove", "admin_forward_remove")
async def callback_forward_remove(callback: CallbackQuery, state: FSMContext):
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        endpoints = await list_forward_endpoints(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_forward_remove"))
        return

    if not endpoints:
        await callback.message.answer(i18n_get_text(language, "forward.list_empty"))
        return

    await _prompt_state(
        callback.message,
        state,
        PendingInteraction.awaiting_forward_url_removal,
        i18n_get_text(language, "forward.select_remove", listing=render_forward_listing(endpoints, language)),
    )


@admin_forward_router.callback_query(F.data == "forward:list")
@handler_exception_boundary("callback_forward_list", "admin_forward_list")
async def callback_forward_list(callback: CallbackQuery):
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        endpoints = await list_forward_endpoints(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_forward_list"))
        return
    await callback.message.answer(render_forward_list(endpoints, language))


@admin_forward_router.callback_query(F.data == "forward:clear")
@handler_exception_boundary("callback_forward_clear", "admin_forward_clear")
async def callback_forward_clear(callback: CallbackQuery):
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        removed = await clear_forward_endpoints(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_forward_clear"))
        return
    await callback.message.answer(i18n_get_text(language, "forward.cleared", count=removed))


@admin_forward_router.callback_query(F.data == "forward:refresh")
@handler_exception_boundary("callback_forward_refresh", "admin_forward_menu")
async def callback_forward_refresh(callback: CallbackQuery):
    language = DEFAULT_LANGUAGE
    await callback.answer()
    try:
        endpoints = await list_forward_endpoints(callback.from_user.id)
    except UnauthorizedError:
        await callback.message.answer(i18n_get_text(language, "admin.only_forward_menu"))
        return
    await safe_edit_text(
        callback.message,
        render_forward_menu(endpoints, language),
        reply_markup=get_forward_menu_keyboard(language),
    )
