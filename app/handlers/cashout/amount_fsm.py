"""
Custom cash-out amount FSM message handler.
Handles free text while the principal is in PendingInteraction.awaiting_cashout_amount.
"""
import logging

from aiogram import Bot, Router, F
from aiogram.filters import StateFilter
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

import config
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import UnauthorizedError
from app.services.cashout import (
    InsufficientBalanceError,
    InvalidAmountError,
    NotRegisteredError,
    parse_amount,
    request_cash_out,
)
from app.services.ledger.models import CashOutMode
from app.services.ledger.money import format_money
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.screens import _send_cashout_result
from app.handlers.common.states import PendingInteraction

cashout_amount_router = Router()
logger = logging.getLogger(__name__)


@cashout_amount_router.message(
    StateFilter(PendingInteraction.awaiting_cashout_amount),
    F.text,
    ~F.text.startswith("/"),
)
@handler_exception_boundary("process_cashout_amount", "cashout_custom")
async def process_cashout_amount(message: Message, state: FSMContext, bot: Bot):
    """Сумма вывода. Invalid or too large amounts keep the prompt open."""
    language = DEFAULT_LANGUAGE
    principal_id = message.from_user.id

    try:
        amount = parse_amount(message.text)
        result = await request_cash_out(principal_id, CashOutMode.CUSTOM, amount)
    except InvalidAmountError:
        await message.answer(i18n_get_text(language, "cashout.invalid_amount"))
        return
    except InsufficientBalanceError as e:
        await message.answer(
            i18n_get_text(
                language,
                "cashout.insufficient",
                remaining=format_money(e.remaining),
                currency=config.ACCOUNTING_CURRENCY,
            )
        )
        return
    except NotRegisteredError:
        await state.clear()
        await message.answer(i18n_get_text(language, "cashout.start_first"))
        return
    except UnauthorizedError:
        await state.clear()
        await message.answer(i18n_get_text(language, "cashout.admin_only"))
        return

    await state.clear()
    await _send_cashout_result(message, bot, result, language)
