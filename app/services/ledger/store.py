"""
Ledger store contract and the in-process implementation.

The store is the single source of truth for money in (append-only transaction
log) and money out (cumulative cash-out total per principal). Every mutating
operation is linearized: the cash-out read-validate-increment sequence runs as
one atomic unit so concurrent requests can never overdraw.

The PostgreSQL implementation lives in database.py.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional

import config
from app.services.ledger.exceptions import (
    InvalidTransactionError,
    PersistenceUnavailableError,
)
from app.services.ledger.models import (
    BalanceSummary,
    CashOutApplied,
    CashOutMode,
    Registry,
    TransactionRecord,
)
from app.services.ledger.money import ZERO, resolve_cash_out_amount

logger = logging.getLogger(__name__)


def validate_record(record: TransactionRecord) -> None:
    if record.gross_amount <= ZERO or record.amount_accounting <= ZERO:
        raise InvalidTransactionError(
            f"Transaction {record.txn_id} has non-positive amount "
            f"(gross={record.gross_amount}, accounting={record.amount_accounting})"
        )


def member_position(target: str) -> Optional[int]:
    """1-based list position named by target, or None if target is not a plain number"""
    if not target.isdigit() or len(target) > 18:
        return None
    position = int(target)
    return position if position >= 1 else None


class LedgerStore(ABC):
    """Async storage contract required by the ledger, cash-out and admin services"""

    # --- transaction log ---

    @abstractmethod
    async def append_transaction(self, record: TransactionRecord) -> None:
        """Durably append a record. Raises InvalidTransactionError for non-positive amounts."""

    @abstractmethod
    async def recent_transactions(self, limit: int) -> List[TransactionRecord]:
        """Latest `limit` records by recorded_at, most recent first"""

    @abstractmethod
    async def transaction_count(self) -> int:
        ...

    @abstractmethod
    async def total_received(self) -> Decimal:
        ...

    # --- cash-out ledger ---

    @abstractmethod
    async def total_cashed_out(self) -> Decimal:
        ...

    @abstractmethod
    async def cashed_out_by(self, principal_id: int) -> Decimal:
        ...

    @abstractmethod
    async def balance_summary(self) -> BalanceSummary:
        """Received and cashed-out totals read as one consistent snapshot"""

    @abstractmethod
    async def apply_cash_out(
        self,
        principal_id: int,
        mode: CashOutMode,
        custom_amount: Optional[Decimal] = None,
    ) -> CashOutApplied:
        """
        Atomically read remaining, resolve and validate the amount, and
        increment the principal's cashed-out total.

        Raises InvalidAmountError / InsufficientBalanceError with no mutation.
        """

    # --- registries ---

    @abstractmethod
    async def add_member(self, registry: Registry, member: str) -> bool:
        """Returns False if already a member"""

    @abstractmethod
    async def remove_member(self, registry: Registry, member: str) -> bool:
        """Returns False if not a member"""

    @abstractmethod
    async def remove_member_or_position(self, registry: Registry, target: str) -> Optional[str]:
        """
        Remove the member at 1-based position target, or else the member equal
        to target, as one atomic step.

        Returns:
            The removed member, or None if nothing matched
        """

    @abstractmethod
    async def list_members(self, registry: Registry) -> List[str]:
        """Members in insertion order"""

    @abstractmethod
    async def is_member(self, registry: Registry, member: str) -> bool:
        ...

    @abstractmethod
    async def clear_registry(self, registry: Registry) -> int:
        """Remove all members, return how many were removed"""

    # --- settings ---

    @abstractmethod
    async def get_fee_percent(self) -> Decimal:
        ...

    @abstractmethod
    async def set_fee_percent(self, fee_percent: Decimal) -> None:
        ...

    async def close(self) -> None:
        pass


class MemoryLedgerStore(LedgerStore):
    """
    Single-process store (local/stage without DATABASE_URL, and tests).

    Lock layout: one lock for the transaction log and cash-out ledger together
    (cash-out reads the log), one per registry, one for the fee. When both are
    needed the ledger lock is taken before the fee lock.
    """

    def __init__(self, fee_percent: Optional[Decimal] = None):
        self._transactions: List[TransactionRecord] = []
        self._cashed_out: Dict[int, Decimal] = {}
        self._ledger_lock = asyncio.Lock()
        self._registries: Dict[Registry, List[str]] = {registry: [] for registry in Registry}
        self._registry_locks: Dict[Registry, asyncio.Lock] = {registry: asyncio.Lock() for registry in Registry}
        if fee_percent is None:
            fee_percent = config.DEFAULT_CASHOUT_FEE_PERCENT
        self._fee_percent = Decimal(fee_percent)
        self._fee_lock = asyncio.Lock()

    async def append_transaction(self, record: TransactionRecord) -> None:
        validate_record(record)
        async with self._ledger_lock:
            self._transactions.append(record)

    async def recent_transactions(self, limit: int) -> List[TransactionRecord]:
        if limit <= 0:
            return []
        async with self._ledger_lock:
            # Append position breaks ties between equal timestamps
            ordered = sorted(
                enumerate(self._transactions),
                key=lambda item: (item[1].recorded_at, item[0]),
                reverse=True,
            )
        return [record for _, record in ordered[:limit]]

    async def transaction_count(self) -> int:
        async with self._ledger_lock:
            return len(self._transactions)

    async def total_received(self) -> Decimal:
        async with self._ledger_lock:
            return self._sum_received()

    async def total_cashed_out(self) -> Decimal:
        async with self._ledger_lock:
            return self._sum_cashed_out()

    async def cashed_out_by(self, principal_id: int) -> Decimal:
        async with self._ledger_lock:
            return self._cashed_out.get(principal_id, ZERO)

    async def balance_summary(self) -> BalanceSummary:
        async with self._ledger_lock:
            return BalanceSummary(
                total_received=self._sum_received(),
                total_cashed_out=self._sum_cashed_out(),
            )

    async def apply_cash_out(
        self,
        principal_id: int,
        mode: CashOutMode,
        custom_amount: Optional[Decimal] = None,
    ) -> CashOutApplied:
        async with self._ledger_lock:
            remaining = self._sum_received() - self._sum_cashed_out()
            amount = resolve_cash_out_amount(mode, remaining, custom_amount)
            async with self._fee_lock:
                fee_percent = self._fee_percent
            self._cashed_out[principal_id] = self._cashed_out.get(principal_id, ZERO) + amount
        return CashOutApplied(
            principal_id=principal_id,
            amount=amount,
            fee_percent=fee_percent,
            remaining_before=remaining,
        )

    async def add_member(self, registry: Registry, member: str) -> bool:
        async with self._registry_locks[registry]:
            members = self._registries[registry]
            if member in members:
                return False
            members.append(member)
            return True

    async def remove_member(self, registry: Registry, member: str) -> bool:
        async with self._registry_locks[registry]:
            members = self._registries[registry]
            if member not in members:
                return False
            members.remove(member)
            return True

    async def remove_member_or_position(self, registry: Registry, target: str) -> Optional[str]:
        async with self._registry_locks[registry]:
            members = self._registries[registry]
            position = member_position(target)
            if position is not None and position <= len(members):
                return members.pop(position - 1)
            if target in members:
                members.remove(target)
                return target
            return None

    async def list_members(self, registry: Registry) -> List[str]:
        async with self._registry_locks[registry]:
            return list(self._registries[registry])

    async def is_member(self, registry: Registry, member: str) -> bool:
        async with self._registry_locks[registry]:
            return member in self._registries[registry]

    async def clear_registry(self, registry: Registry) -> int:
        async with self._registry_locks[registry]:
            removed = len(self._registries[registry])
            self._registries[registry] = []
            return removed

    async def get_fee_percent(self) -> Decimal:
        async with self._fee_lock:
            return self._fee_percent

    async def set_fee_percent(self, fee_percent: Decimal) -> None:
        async with self._fee_lock:
            self._fee_percent = Decimal(fee_percent)

    def _sum_received(self) -> Decimal:
        return sum((record.amount_accounting for record in self._transactions), ZERO)

    def _sum_cashed_out(self) -> Decimal:
        return sum(self._cashed_out.values(), ZERO)


# ====================================================================================
# Active store (set once at startup)
# ====================================================================================

_store: Optional[LedgerStore] = None


def set_ledger_store(store: Optional[LedgerStore]) -> None:
    global _store
    _store = store
    if store is not None:
        logger.info("LEDGER_STORE_SET [type=%s]", type(store).__name__)


def get_ledger_store() -> LedgerStore:
    """
    Get the active store.

    Raises:
        PersistenceUnavailableError: store not initialized yet
    """
    if _store is None:
        raise PersistenceUnavailableError("Ledger store is not initialized")
    return _store


def is_store_ready() -> bool:
    return _store is not None
