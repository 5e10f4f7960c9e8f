"""
Forward menu FSM message handlers.
Handles free text while the administrator is in one of the forward URL states.
"""
import logging

from aiogram import Router, F
from aiogram.filters import StateFilter
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import (
    InvalidForwardUrlError,
    RegistryMemberNotFoundError,
    UnauthorizedError,
    add_forward_endpoint,
    list_forward_endpoints,
    remove_forward_endpoint,
)
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.states import PendingInteraction

admin_forward_fsm_router = Router()
logger = logging.getLogger(__name__)


@admin_forward_fsm_router.message(
    StateFilter(PendingInteraction.awaiting_forward_url),
    F.text,
    ~F.text.startswith("/"),
)
@handler_exception_boundary("process_forward_url", "admin_forward_add")
async def process_forward_url(message: Message, state: FSMContext):
    """URL для пересылки. Invalid input keeps the prompt open."""
    language = DEFAULT_LANGUAGE
    actor_id = message.from_user.id

    try:
        url, added = await add_forward_endpoint(actor_id, message.text)
    except InvalidForwardUrlError:
        await message.answer(i18n_get_text(language, "forward.invalid_url"))
        return
    except UnauthorizedError:
        await state.clear()
        await message.answer(i18n_get_text(language, "admin.only_forward_add"))
        return

    await state.clear()
    if not added:
        await message.answer(i18n_get_text(language, "forward.already", url=url))
        return
    endpoints = await list_forward_endpoints(actor_id)
    await message.answer(i18n_get_text(language, "forward.added_total", url=url, count=len(endpoints)))


@admin_forward_fsm_router.message(
    StateFilter(PendingInteraction.awaiting_forward_url_removal),
    F.text,
    ~F.text.startswith("/"),
)
@handler_exception_boundary("process_forward_url_removal", "admin_forward_remove")
async def process_forward_url_removal(message: Message, state: FSMContext):
    """Удаление URL по номеру или полному адресу. One attempt, state cleared either way."""
    language = DEFAULT_LANGUAGE
    actor_id = message.from_user.id
    await state.clear()

    try:
        await remove_forward_endpoint(actor_id, message.text)
    except RegistryMemberNotFoundError:
        await message.answer(i18n_get_text(language, "forward.not_found_retry"))
        return
    except UnauthorizedError:
        await message.answer(i18n_get_text(language, "admin.only_forward_remove"))
        return

    endpoints = await list_forward_endpoints(actor_id)
    await message.answer(i18n_get_text(language, "forward.removed_total", count=len(endpoints)))
