"""
Ledger value types.

All monetary fields are Decimal in the accounting currency unless stated otherwise.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class CashOutMode(str, Enum):
    ALL = "all"
    HALF = "half"
    CUSTOM = "custom"


class Registry(str, Enum):
    """Named membership sets kept by the store"""
    REGISTERED = "registered"
    NOTIFIED = "notified"
    FORWARD = "forward"


@dataclass(frozen=True)
class TransactionRecord:
    """A received payment. Immutable once appended."""
    txn_id: str
    gross_amount: Decimal  # origin currency
    currency: str
    amount_accounting: Decimal
    payer: str
    occurred_at: str  # origin-supplied, display only
    recorded_at: datetime  # ingestion time (UTC), authoritative for ordering
    subject: Optional[str] = None


@dataclass(frozen=True)
class BalanceSummary:
    """Consistent snapshot of the ledger aggregates"""
    total_received: Decimal
    total_cashed_out: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.total_received - self.total_cashed_out


@dataclass(frozen=True)
class CashOutApplied:
    """Result of an atomic cash-out mutation in the store"""
    principal_id: int
    amount: Decimal
    fee_percent: Decimal
    remaining_before: Decimal

    @property
    def remaining_after(self) -> Decimal:
        return self.remaining_before - self.amount


@dataclass(frozen=True)
class LedgerStatus:
    """Figures shown by /status"""
    transaction_count: int
    total_received: Decimal
    registered_count: int
    notified_count: int
    fee_percent: Decimal
