"""
Notification Service Layer

Fan-out of payment alerts after a transaction has been recorded.

Audience rules:
- Users: members of the notified set that are also registered (/start)
- Administrator: always receives the short payment alert

Sends are isolated: each recipient is attempted independently and a failure
is only logged and reported.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from aiogram import Bot

import config
from admin_notifications import send_admin_notification, send_user_notification
from app.i18n import DEFAULT_LANGUAGE, get_text
from app.services.ledger.models import Registry, TransactionRecord
from app.services.ledger.money import format_money
from app.services.ledger.store import get_ledger_store

logger = logging.getLogger(__name__)


@dataclass
class FanOutReport:
    """Outcome of one payment alert fan-out"""
    delivered: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    admin_delivered: bool = False


def build_user_alert(record: TransactionRecord, language: str = DEFAULT_LANGUAGE) -> str:
    return get_text(
        language,
        "alert.user_payment",
        gross=record.gross_amount,
        origin_currency=record.currency,
        currency=config.ACCOUNTING_CURRENCY,
        amount=format_money(record.amount_accounting),
        payer=record.payer or "-",
        txn_id=record.txn_id,
    )


def build_admin_alert(record: TransactionRecord, language: str = DEFAULT_LANGUAGE) -> str:
    return get_text(
        language,
        "alert.admin_payment",
        amount=format_money(record.amount_accounting),
        currency=config.ACCOUNTING_CURRENCY,
        gross=record.gross_amount,
        origin_currency=record.currency,
    )


async def resolve_audience() -> List[int]:
    """
    Notified principals that are also registered, in notify-list order.

    Registry members are stored as strings; non-numeric entries are skipped.
    """
    store = get_ledger_store()
    notified = await store.list_members(Registry.NOTIFIED)
    registered = set(await store.list_members(Registry.REGISTERED))

    audience: List[int] = []
    for member in notified:
        if member not in registered:
            continue
        try:
            audience.append(int(member))
        except ValueError:
            logger.warning(f"NOTIFY_AUDIENCE_SKIP [member={member!r}, reason=not_numeric]")
    return audience


async def notify_payment(bot: Bot, record: TransactionRecord) -> FanOutReport:
    """
    Send payment alerts for a recorded transaction.

    Never raises for delivery failures; a store failure while resolving the
    audience only skips the user alerts.
    """
    report = FanOutReport()

    try:
        audience = await resolve_audience()
    except Exception as e:
        logger.error(
            f"NOTIFY_AUDIENCE_FAILED [txn_id={record.txn_id}, error={type(e).__name__}: {str(e)[:100]}]"
        )
        audience = []

    user_text = build_user_alert(record)
    results = await asyncio.gather(
        *(
            send_user_notification(bot, principal_id, user_text, notification_type="payment_received")
            for principal_id in audience
        )
    )
    for principal_id, delivered in zip(audience, results):
        (report.delivered if delivered else report.failed).append(principal_id)

    report.admin_delivered = await send_admin_notification(
        bot, build_admin_alert(record), notification_type="payment_received"
    )

    logger.info(
        f"PAYMENT_FANOUT_DONE [txn_id={record.txn_id}, delivered={len(report.delivered)}, "
        f"failed={len(report.failed)}, admin={report.admin_delivered}]"
    )
    return report
