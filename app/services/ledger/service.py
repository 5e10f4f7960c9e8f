"""
Ledger Service Layer

Read-side aggregates and the append path for received payments.
All functions are pure business logic - no aiogram imports or Telegram-specific types.
"""
import logging
from typing import List, Optional

import config
from app.services.ledger.models import (
    BalanceSummary,
    LedgerStatus,
    Registry,
    TransactionRecord,
)
from app.services.ledger.money import format_money
from app.services.ledger.store import get_ledger_store

logger = logging.getLogger(__name__)


async def record_transaction(record: TransactionRecord) -> None:
    """
    Append a received payment to the log.

    Returns only after the store has durably accepted the record.

    Raises:
        InvalidTransactionError: non-positive amount
        PersistenceUnavailableError: store unreachable
    """
    store = get_ledger_store()
    await store.append_transaction(record)
    logger.info(
        "TRANSACTION_RECORDED [txn_id=%s, gross=%s %s, accounting=%s %s]",
        record.txn_id,
        record.gross_amount,
        record.currency,
        format_money(record.amount_accounting),
        config.ACCOUNTING_CURRENCY,
    )


async def get_balance_summary() -> BalanceSummary:
    return await get_ledger_store().balance_summary()


async def get_recent_transactions(limit: Optional[int] = None) -> List[TransactionRecord]:
    if limit is None:
        limit = config.RECENT_TRANSACTIONS_LIMIT
    return await get_ledger_store().recent_transactions(limit)


async def get_status() -> LedgerStatus:
    store = get_ledger_store()
    return LedgerStatus(
        transaction_count=await store.transaction_count(),
        total_received=await store.total_received(),
        registered_count=len(await store.list_members(Registry.REGISTERED)),
        notified_count=len(await store.list_members(Registry.NOTIFIED)),
        fee_percent=await store.get_fee_percent(),
    )


async def register_principal(principal_id: int) -> bool:
    """
    Add a principal to the registered set (/start).

    Returns:
        True if newly registered, False if already registered
    """
    added = await get_ledger_store().add_member(Registry.REGISTERED, str(principal_id))
    if added:
        logger.info("PRINCIPAL_REGISTERED [principal=%s]", principal_id)
    return added


async def is_registered(principal_id: int) -> bool:
    return await get_ledger_store().is_member(Registry.REGISTERED, str(principal_id))
