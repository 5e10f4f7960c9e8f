"""
Cash-out option buttons: cashout:<all|half|custom>:<principal_id>.

Buttons are bound to the principal they were issued to; anyone else pressing
them gets a denial and nothing changes.
"""
import logging

from aiogram import Bot, Router, F
from aiogram.types import CallbackQuery
from aiogram.fsm.context import FSMContext

import config
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import UnauthorizedError
from app.services.cashout import (
    AmountRequiredError,
    InsufficientBalanceError,
    InvalidAmountError,
    NotRegisteredError,
    request_cash_out,
)
from app.services.ledger.models import CashOutMode
from app.utils.security import owns_resource
from app.handlers.common.decorators import handler_exception_boundary
from app.handlers.common.keyboards import CASHOUT_PREFIX
from app.handlers.common.screens import _prompt_state, _send_cashout_result
from app.handlers.common.states import PendingInteraction
from app.handlers.common.utils import split_callback_data

cashout_callbacks_router = Router()
logger = logging.getLogger(__name__)


@cashout_callbacks_router.callback_query(F.data.startswith(CASHOUT_PREFIX))
@handler_exception_boundary("callback_cashout", "cashout_request")
async def callback_cashout(callback: CallbackQuery, state: FSMContext, bot: Bot):
    language = DEFAULT_LANGUAGE
    principal_id = callback.from_user.id
    parts = split_callback_data(callback.data, CASHOUT_PREFIX)

    if len(parts) != 2 or not owns_resource(principal_id, parts[1]):
        logger.warning(f"CASHOUT_BUTTON_REJECTED [user={principal_id}, data={callback.data}]")
        await callback.answer(i18n_get_text(language, "cashout.not_for_you"))
        return

    try:
        mode = CashOutMode(parts[0])
    except ValueError:
        await callback.answer(i18n_get_text(language, "cashout.not_for_you"))
        return

    try:
        result = await request_cash_out(principal_id, mode)
    except AmountRequiredError:
        await callback.answer()
        await _prompt_state(
            callback.message,
            state,
            PendingInteraction.awaiting_cashout_amount,
            i18n_get_text(language, "cashout.enter_amount", currency=config.ACCOUNTING_CURRENCY),
        )
        return
    except (InsufficientBalanceError, InvalidAmountError) as e:
        logger.info(f"CASHOUT_REJECTED [user={principal_id}, mode={mode.value}, reason={type(e).__name__}]")
        await callback.answer(i18n_get_text(language, "cashout.insufficient_short"))
        return
    except NotRegisteredError:
        await callback.answer()
        await callback.message.answer(i18n_get_text(language, "cashout.start_first"))
        return
    except UnauthorizedError:
        await callback.answer()
        await callback.message.answer(i18n_get_text(language, "cashout.admin_only"))
        return

    await callback.answer()
    await _send_cashout_result(callback.message, bot, result, language)
