"""
Pure presentation screen helpers. Reusable for callbacks and message commands.
No router decorators - only rendering, keyboard building and screen opening.
"""
import logging
from typing import List, Union

from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

import config
from admin_notifications import send_admin_notification
from app.i18n import get_text as i18n_get_text
from app.services.admin import UnauthorizedError
from app.services.cashout import (
    CashOutResult,
    NotRegisteredError,
    quote as cashout_quote,
)
from app.services.ledger import service as ledger_service
from app.services.ledger.models import TransactionRecord
from app.services.ledger.money import format_money, format_percent
from app.handlers.common.keyboards import get_cashout_keyboard

logger = logging.getLogger(__name__)


def _target_message(event: Union[Message, CallbackQuery]) -> Message:
    return event.message if isinstance(event, CallbackQuery) else event


# ====================================================================================
# Ledger screens
# ====================================================================================

async def render_balance(language: str) -> str:
    summary = await ledger_service.get_balance_summary()
    return i18n_get_text(
        language,
        "balance.summary",
        received=format_money(summary.total_received),
        cashed_out=format_money(summary.total_cashed_out),
        remaining=format_money(summary.remaining),
        currency=config.ACCOUNTING_CURRENCY,
    )


def render_transaction_item(index: int, record: TransactionRecord, language: str) -> str:
    return i18n_get_text(
        language,
        "transactions.item",
        index=index,
        gross=record.gross_amount,
        origin_currency=record.currency,
        amount=format_money(record.amount_accounting),
        currency=config.ACCOUNTING_CURRENCY,
        date=record.occurred_at or record.recorded_at.isoformat(),
        txn_id=record.txn_id,
    )


async def render_transactions(language: str) -> str:
    """Most recent first, at most RECENT_TRANSACTIONS_LIMIT entries"""
    records = await ledger_service.get_recent_transactions()
    if not records:
        return i18n_get_text(language, "transactions.empty")
    text = i18n_get_text(language, "transactions.header")
    for index, record in enumerate(records, start=1):
        text += render_transaction_item(index, record, language)
    return text.rstrip()


async def render_status(language: str) -> str:
    status = await ledger_service.get_status()
    return i18n_get_text(
        language,
        "status.text",
        count=status.transaction_count,
        received=format_money(status.total_received),
        currency=config.ACCOUNTING_CURRENCY,
        registered=status.registered_count,
        notified=status.notified_count,
        fee=format_percent(status.fee_percent),
    )


# ====================================================================================
# Registry screens
# ====================================================================================

def render_notification_list(members: List[str], language: str) -> str:
    if not members:
        return i18n_get_text(language, "notify.list_empty")
    text = i18n_get_text(language, "notify.list_header")
    for member in members:
        text += i18n_get_text(language, "notify.list_item", principal=member)
    return text.rstrip()


def render_forward_listing(endpoints: List[str], language: str) -> str:
    """Numbered endpoints; the numbers are what /remove-forward accepts"""
    return "".join(
        i18n_get_text(language, "forward.list_item", index=index, url=url)
        for index, url in enumerate(endpoints, start=1)
    )


def render_forward_list(endpoints: List[str], language: str) -> str:
    if not endpoints:
        return i18n_get_text(language, "forward.list_empty")
    return (i18n_get_text(language, "forward.list_header") + render_forward_listing(endpoints, language)).rstrip()


def render_forward_menu(endpoints: List[str], language: str) -> str:
    if endpoints:
        listing = i18n_get_text(language, "forward.menu_list_header") + render_forward_listing(endpoints, language)
    else:
        listing = i18n_get_text(language, "forward.list_empty") + "\n"
    return i18n_get_text(language, "forward.menu", listing=listing)


# ====================================================================================
# Cash-out screens
# ====================================================================================

def render_cashout_result(result: CashOutResult, language: str) -> str:
    return i18n_get_text(
        language,
        "cashout.success",
        amount=format_money(result.amount),
        fee_percent=format_percent(result.fee_percent),
        fee=format_money(result.fee),
        net=format_money(result.net),
        remaining=format_money(result.remaining_after),
        currency=config.ACCOUNTING_CURRENCY,
    )


def render_cashout_audit(result: CashOutResult, language: str) -> str:
    return i18n_get_text(
        language,
        "cashout.admin_audit",
        principal=result.principal_id,
        amount=format_money(result.amount),
        fee_percent=format_percent(result.fee_percent),
        fee=format_money(result.fee),
        remaining=format_money(result.remaining_after),
        currency=config.ACCOUNTING_CURRENCY,
    )


async def _open_cashout_screen(event: Union[Message, CallbackQuery], language: str) -> None:
    """Вывод средств. Reusable for /cashout and the main menu button."""
    msg = _target_message(event)
    principal_id = event.from_user.id

    try:
        current = await cashout_quote(principal_id)
    except NotRegisteredError:
        await msg.answer(i18n_get_text(language, "cashout.start_first"))
        return
    except UnauthorizedError:
        await msg.answer(i18n_get_text(language, "cashout.admin_only"))
        return

    if not current.has_balance:
        await msg.answer(i18n_get_text(language, "cashout.no_balance"))
        return

    text = i18n_get_text(
        language,
        "cashout.options",
        remaining=format_money(current.remaining),
        fee=format_percent(current.fee_percent),
        currency=config.ACCOUNTING_CURRENCY,
    )
    await msg.answer(text, reply_markup=get_cashout_keyboard(language, principal_id))


async def _prompt_state(msg: Message, state: FSMContext, new_state, text: str) -> None:
    """Replace whatever the principal was pending on, then prompt"""
    await state.set_state(new_state)
    logger.info(f"PENDING_INTERACTION_SET [state={new_state.state}]")
    await msg.answer(text)


async def _send_cashout_result(msg: Message, bot, result: CashOutResult, language: str) -> None:
    """Receipt to the principal, audit copy to the administrator if someone else cashed out"""
    await msg.answer(render_cashout_result(result, language))
    if result.principal_id != config.ADMIN_TELEGRAM_ID:
        await send_admin_notification(bot, render_cashout_audit(result, language), notification_type="cashout_applied")
