"""
PostgreSQL persistence: asyncpg pool lifecycle and the ledger store.

STEP 1.3 - EXTERNAL DEPENDENCIES POLICY:
- DB unavailable → PersistenceUnavailableError (callers answer "try again" / HTTP 503)
- Pool creation retried on transient errors only
- Domain errors (InvalidAmountError, InsufficientBalanceError) are NEVER wrapped
"""
import asyncio
import functools
import logging
import os
from decimal import Decimal
from typing import List, Optional

import asyncpg

import config
from app.services.ledger.exceptions import PersistenceUnavailableError
from app.services.ledger.models import (
    BalanceSummary,
    CashOutApplied,
    CashOutMode,
    Registry,
    TransactionRecord,
)
from app.services.ledger.money import ZERO, resolve_cash_out_amount
from app.services.ledger.store import LedgerStore, member_position, validate_record
from app.utils.retry import retry_async

logger = logging.getLogger(__name__)

# ====================================================================================
# SAFE STARTUP GUARD: Глобальный флаг готовности базы данных
# ====================================================================================
# True только после успешного подключения и применения миграций.
# ====================================================================================
DB_READY: bool = False

DATABASE_URL = config.DATABASE_URL

# Single global key: all cash-outs are serialized against the one shared balance
CASHOUT_LOCK_KEY = 0x1F0C_A5E0
FEE_SETTING_KEY = "cashout_fee_percent"

# Infrastructure failures that mean "store unreachable", never domain errors
_INFRA_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


# ====================================================================================
# DB POOL CONFIG: ENV-overridable, single source of truth
# ====================================================================================
def _get_pool_config() -> dict:
    """Build asyncpg.create_pool kwargs. Single source of truth for all pool creation."""
    return {
        "min_size": int(os.getenv("DB_POOL_MIN_SIZE", "2")),
        "max_size": int(os.getenv("DB_POOL_MAX_SIZE", "10")),
        "max_inactive_connection_lifetime": 300,
        "timeout": int(os.getenv("DB_POOL_ACQUIRE_TIMEOUT", "10")),
        "command_timeout": int(os.getenv("DB_POOL_COMMAND_TIMEOUT", "30")),
    }


_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """
    Получить пул соединений, создав его при необходимости

    Raises:
        PersistenceUnavailableError: DATABASE_URL missing or pool creation failed
    """
    global _pool
    if not DATABASE_URL:
        raise PersistenceUnavailableError(f"{config.APP_ENV.upper()}_DATABASE_URL is not configured")
    if _pool is None:
        pool_config = _get_pool_config()
        try:
            _pool = await retry_async(
                lambda: asyncpg.create_pool(DATABASE_URL, **pool_config),
                retries=1,
                base_delay=0.5,
                max_delay=5.0,
                retry_on=_INFRA_ERRORS,
            )
        except _INFRA_ERRORS as e:
            raise PersistenceUnavailableError(f"Cannot create database pool: {type(e).__name__}") from e
        logger.info(
            "DB_POOL_CONFIG min=%s max=%s acquire_timeout=%s command_timeout=%s",
            pool_config["min_size"], pool_config["max_size"],
            pool_config["timeout"], pool_config["command_timeout"],
        )
    return _pool


async def close_pool():
    """Закрыть пул соединений"""
    global _pool, DB_READY
    if _pool:
        await _pool.close()
        _pool = None
        DB_READY = False
        logger.info("Database connection pool closed")


async def init_db() -> bool:
    """
    Подключение к БД и применение миграций. Idempotent.

    Returns:
        True if the database is ready, False on any failure (caller retries with backoff)
    """
    global DB_READY

    if DB_READY:
        logger.info("Database already initialized (DB_READY=True), skipping init")
        return True

    if not DATABASE_URL:
        logger.error("DATABASE_URL not configured")
        return False

    try:
        pool = await get_pool()
    except PersistenceUnavailableError as e:
        logger.error(f"DB pool unavailable: {e}")
        return False

    # Yield before migrations so startup tasks (health server) keep running
    await asyncio.sleep(0)

    import migrations
    try:
        migrations_success = await migrations.run_migrations_safe(pool)
    except _INFRA_ERRORS as e:
        logger.error(f"Migration execution failed: {type(e).__name__}: {e}")
        return False
    if not migrations_success:
        logger.error("Migration execution failed")
        return False

    DB_READY = True
    logger.info("Database initialized (DB_READY=True)")
    return True


# ====================================================================================
# LEDGER STORE
# ====================================================================================

def _persistence_guard(method):
    """Translate infrastructure failures of a store method into PersistenceUnavailableError"""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except _INFRA_ERRORS as e:
            logger.error(
                f"LEDGER_STORE_UNAVAILABLE [operation={method.__name__}, error={type(e).__name__}: {str(e)[:100]}]"
            )
            raise PersistenceUnavailableError(f"{method.__name__} failed: {type(e).__name__}") from e
    return wrapper


def _row_to_record(row) -> TransactionRecord:
    return TransactionRecord(
        txn_id=row["txn_id"],
        gross_amount=row["gross_amount"],
        currency=row["currency"],
        amount_accounting=row["amount_accounting"],
        payer=row["payer"],
        occurred_at=row["occurred_at"],
        recorded_at=row["recorded_at"],
        subject=row["subject"],
    )


class PostgresLedgerStore(LedgerStore):
    """
    LedgerStore over asyncpg.

    Aggregates are computed with SUM() in SQL. Cash-out runs in one transaction
    under a global advisory transaction lock, so concurrent requests are
    serialized and always see each other's committed increments.
    """

    def __init__(self, pool: asyncpg.Pool, default_fee_percent: Optional[Decimal] = None):
        self._pool = pool
        if default_fee_percent is None:
            default_fee_percent = config.DEFAULT_CASHOUT_FEE_PERCENT
        self._default_fee_percent = Decimal(default_fee_percent)

    # --- transaction log ---

    @_persistence_guard
    async def append_transaction(self, record: TransactionRecord) -> None:
        validate_record(record)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """INSERT INTO ipn_transactions
                       (txn_id, gross_amount, currency, amount_accounting, payer, occurred_at, subject, recorded_at)
                   VALUES ($1, $2, $3, $4, $5, $6, $7, $8)""",
                record.txn_id,
                record.gross_amount,
                record.currency,
                record.amount_accounting,
                record.payer,
                record.occurred_at,
                record.subject,
                record.recorded_at,
            )

    @_persistence_guard
    async def recent_transactions(self, limit: int) -> List[TransactionRecord]:
        if limit <= 0:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT txn_id, gross_amount, currency, amount_accounting, payer, occurred_at, subject, recorded_at
                   FROM ipn_transactions
                   ORDER BY recorded_at DESC, id DESC
                   LIMIT $1""",
                limit,
            )
        return [_row_to_record(row) for row in rows]

    @_persistence_guard
    async def transaction_count(self) -> int:
        async with self._pool.acquire() as conn:
            return await conn.fetchval("SELECT COUNT(*) FROM ipn_transactions")

    @_persistence_guard
    async def total_received(self) -> Decimal:
        async with self._pool.acquire() as conn:
            return await self._sum_received(conn)

    # --- cash-out ledger ---

    @_persistence_guard
    async def total_cashed_out(self) -> Decimal:
        async with self._pool.acquire() as conn:
            return await self._sum_cashed_out(conn)

    @_persistence_guard
    async def cashed_out_by(self, principal_id: int) -> Decimal:
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(
                "SELECT cashed_out FROM cashouts WHERE principal_id = $1", principal_id
            )
        return value if value is not None else ZERO

    @_persistence_guard
    async def balance_summary(self) -> BalanceSummary:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """SELECT
                       (SELECT COALESCE(SUM(amount_accounting), 0) FROM ipn_transactions) AS received,
                       (SELECT COALESCE(SUM(cashed_out), 0) FROM cashouts) AS cashed_out"""
            )
        return BalanceSummary(total_received=row["received"], total_cashed_out=row["cashed_out"])

    @_persistence_guard
    async def apply_cash_out(
        self,
        principal_id: int,
        mode: CashOutMode,
        custom_amount: Optional[Decimal] = None,
    ) -> CashOutApplied:
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                # CRITICAL: one global lock, the balance is shared by all principals
                await conn.execute("SELECT pg_advisory_xact_lock($1)", CASHOUT_LOCK_KEY)

                remaining = await self._sum_received(conn) - await self._sum_cashed_out(conn)
                # Raises InvalidAmountError / InsufficientBalanceError → rollback, nothing applied
                amount = resolve_cash_out_amount(mode, remaining, custom_amount)
                fee_percent = await self._fetch_fee(conn)

                await conn.execute(
                    """INSERT INTO cashouts (principal_id, cashed_out, updated_at)
                       VALUES ($1, $2, NOW())
                       ON CONFLICT (principal_id)
                       DO UPDATE SET cashed_out = cashouts.cashed_out + EXCLUDED.cashed_out,
                                     updated_at = NOW()""",
                    principal_id,
                    amount,
                )

        return CashOutApplied(
            principal_id=principal_id,
            amount=amount,
            fee_percent=fee_percent,
            remaining_before=remaining,
        )

    # --- registries ---

    @_persistence_guard
    async def add_member(self, registry: Registry, member: str) -> bool:
        async with self._pool.acquire() as conn:
            inserted = await conn.fetchval(
                """INSERT INTO registry_members (registry, member) VALUES ($1, $2)
                   ON CONFLICT (registry, member) DO NOTHING
                   RETURNING id""",
                Registry(registry).value,
                member,
            )
        return inserted is not None

    @_persistence_guard
    async def remove_member(self, registry: Registry, member: str) -> bool:
        async with self._pool.acquire() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM registry_members WHERE registry = $1 AND member = $2 RETURNING id",
                Registry(registry).value,
                member,
            )
        return deleted is not None

    @_persistence_guard
    async def remove_member_or_position(self, registry: Registry, target: str) -> Optional[str]:
        async with self._pool.acquire() as conn:
            # Single statement: position lookup and delete see the same snapshot
            return await conn.fetchval(
                """DELETE FROM registry_members
                   WHERE id = COALESCE(
                       (SELECT id FROM registry_members
                        WHERE registry = $1 AND $3::bigint IS NOT NULL
                        ORDER BY id
                        OFFSET GREATEST(COALESCE($3::bigint, 1) - 1, 0) LIMIT 1),
                       (SELECT id FROM registry_members WHERE registry = $1 AND member = $2)
                   )
                   RETURNING member""",
                Registry(registry).value,
                target,
                member_position(target),
            )

    @_persistence_guard
    async def list_members(self, registry: Registry) -> List[str]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT member FROM registry_members WHERE registry = $1 ORDER BY id",
                Registry(registry).value,
            )
        return [row["member"] for row in rows]

    @_persistence_guard
    async def is_member(self, registry: Registry, member: str) -> bool:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT EXISTS (SELECT 1 FROM registry_members WHERE registry = $1 AND member = $2)",
                Registry(registry).value,
                member,
            )

    @_persistence_guard
    async def clear_registry(self, registry: Registry) -> int:
        async with self._pool.acquire() as conn:
            status = await conn.execute(
                "DELETE FROM registry_members WHERE registry = $1",
                Registry(registry).value,
            )
        # asyncpg returns the command tag, e.g. "DELETE 3"
        return int(status.split()[-1])

    # --- settings ---

    @_persistence_guard
    async def get_fee_percent(self) -> Decimal:
        async with self._pool.acquire() as conn:
            return await self._fetch_fee(conn)

    @_persistence_guard
    async def set_fee_percent(self, fee_percent: Decimal) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """INSERT INTO settings (key, value, updated_at) VALUES ($1, $2, NOW())
                   ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()""",
                FEE_SETTING_KEY,
                str(Decimal(fee_percent)),
            )

    async def close(self) -> None:
        await close_pool()

    # --- helpers (run on a caller-held connection) ---

    @staticmethod
    async def _sum_received(conn) -> Decimal:
        return await conn.fetchval("SELECT COALESCE(SUM(amount_accounting), 0) FROM ipn_transactions")

    @staticmethod
    async def _sum_cashed_out(conn) -> Decimal:
        return await conn.fetchval("SELECT COALESCE(SUM(cashed_out), 0) FROM cashouts")

    async def _fetch_fee(self, conn) -> Decimal:
        value = await conn.fetchval("SELECT value FROM settings WHERE key = $1", FEE_SETTING_KEY)
        if value is None:
            return self._default_fee_percent
        return Decimal(value)


async def create_ledger_store() -> PostgresLedgerStore:
    """
    Store over the initialized pool.

    Raises:
        PersistenceUnavailableError: init_db() has not succeeded
    """
    if not DB_READY:
        raise PersistenceUnavailableError("Database is not initialized")
    return PostgresLedgerStore(await get_pool())
