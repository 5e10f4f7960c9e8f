"""
Ledger Service Layer

Append-only transaction log, per-principal cash-out totals and the derived
balance aggregates.
"""

from app.services.ledger.models import (
    BalanceSummary,
    CashOutApplied,
    CashOutMode,
    LedgerStatus,
    Registry,
    TransactionRecord,
)

from app.services.ledger.exceptions import (
    LedgerServiceError,
    InvalidTransactionError,
    InvalidAmountError,
    InsufficientBalanceError,
    PersistenceUnavailableError,
)

from app.services.ledger.store import (
    LedgerStore,
    MemoryLedgerStore,
    get_ledger_store,
    set_ledger_store,
    is_store_ready,
)

__all__ = [
    "BalanceSummary",
    "CashOutApplied",
    "CashOutMode",
    "LedgerStatus",
    "Registry",
    "TransactionRecord",
    "LedgerServiceError",
    "InvalidTransactionError",
    "InvalidAmountError",
    "InsufficientBalanceError",
    "PersistenceUnavailableError",
    "LedgerStore",
    "MemoryLedgerStore",
    "get_ledger_store",
    "set_ledger_store",
    "is_store_ready",
]
