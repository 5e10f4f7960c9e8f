"""
Payment alert list (admin only): /notify, /unnotify, /notificationlist.
"""
import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import (
    InvalidPrincipalError,
    RegistryMemberNotFoundError,
    UnauthorizedError,
    add_notified,
    list_notified,
    remove_notified,
    require_admin,
)
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.screens import render_notification_list
from app.handlers.common.utils import command_argument

admin_notify_router = Router()
logger = logging.getLogger(__name__)


@admin_notify_router.message(Command("notify"))
@handler_exception_boundary("cmd_notify", "admin_notify_add")
async def cmd_notify(message: Message):
    language = DEFAULT_LANGUAGE
    argument = command_argument(message)

    try:
        if argument is None:
            require_admin(message.from_user.id)
            await message.answer(i18n_get_text(language, "notify.usage"))
            return
        principal_id, added = await add_notified(message.from_user.id, argument)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_notify_add"))
        return
    except InvalidPrincipalError:
        await message.answer(i18n_get_text(language, "notify.invalid_id"))
        return

    key = "notify.added" if added else "notify.already"
    await message.answer(i18n_get_text(language, key, principal=principal_id))


@admin_notify_router.message(Command("unnotify"))
@handler_exception_boundary("cmd_unnotify", "admin_notify_remove")
async def cmd_unnotify(message: Message):
    language = DEFAULT_LANGUAGE
    argument = command_argument(message)

    try:
        if argument is None:
            require_admin(message.from_user.id)
            await message.answer(i18n_get_text(language, "unnotify.usage"))
            return
        principal_id = await remove_notified(message.from_user.id, argument)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_notify_remove"))
        return
    except InvalidPrincipalError:
        await message.answer(i18n_get_text(language, "notify.invalid_id"))
        return
    except RegistryMemberNotFoundError as e:
        await message.answer(i18n_get_text(language, "notify.not_found", principal=e.member))
        return

    await message.answer(i18n_get_text(language, "notify.removed", principal=principal_id))


@admin_notify_router.message(Command("notificationlist"))
@handler_exception_boundary("cmd_notificationlist", "admin_notify_list")
async def cmd_notificationlist(message: Message):
    language = DEFAULT_LANGUAGE
    try:
        members = await list_notified(message.from_user.id)
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_notify_list"))
        return
    await message.answer(render_notification_list(members, language))
