"""
Unit tests for the ledger: money helpers, the in-memory store and the ledger service.

Tests focus on:
- Aggregates (total received, cashed out, remaining)
- Ordering of recent transactions
- Atomic cash-out validation
- Registries and fee storage
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.services.ledger import service as ledger_service
from app.services.ledger.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidTransactionError,
    PersistenceUnavailableError,
)
from app.services.ledger.models import CashOutMode, Registry
from app.services.ledger.money import (
    format_money,
    format_percent,
    resolve_cash_out_amount,
    split_fee,
    to_decimal,
)
from app.services.ledger.store import get_ledger_store, is_store_ready, set_ledger_store
from tests.factories import make_record


class TestMoneyHelpers:
    """Tests for Decimal money helpers"""

    def test_to_decimal_accepts_comma_separator(self):
        """A comma is read as the decimal separator"""
        assert to_decimal("12,50") == Decimal("12.50")

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", True, None])
    def test_to_decimal_rejects_non_numbers(self, value):
        """Non-numeric and non-finite values are rejected"""
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_fee_split_is_exact(self):
        """100 at 10% -> fee 10, net 90 exactly"""
        fee, net = split_fee(Decimal("100"), Decimal("10"))
        assert fee == Decimal("10")
        assert net == Decimal("90")

    def test_format_money_rounds_half_up(self):
        """Money renders with two decimals"""
        assert format_money(Decimal("54.345")) == "54.35"
        assert format_money(Decimal("100")) == "100.00"

    def test_format_percent_drops_trailing_zeros(self):
        """Fee percentages render without a trailing .0"""
        assert format_percent(Decimal("10.0")) == "10"
        assert format_percent(Decimal("2.5")) == "2.5"

    def test_half_of_remaining(self):
        """Half mode takes remaining / 2"""
        assert resolve_cash_out_amount(CashOutMode.HALF, Decimal("75")) == Decimal("37.5")

    def test_all_with_empty_balance(self):
        """All/half with nothing remaining is insufficient"""
        with pytest.raises(InsufficientBalanceError):
            resolve_cash_out_amount(CashOutMode.ALL, Decimal("0"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), None])
    def test_custom_requires_positive_amount(self, amount):
        """Custom amounts must be present and positive"""
        with pytest.raises(InvalidAmountError):
            resolve_cash_out_amount(CashOutMode.CUSTOM, Decimal("100"), amount)


class TestMemoryLedgerStore:
    """Tests for MemoryLedgerStore"""

    @pytest.mark.asyncio
    async def test_total_received_is_sum_of_appends(self, store):
        """total_received equals the sum of accounting amounts"""
        await store.append_transaction(make_record("TX1", "100"))
        await store.append_transaction(make_record("TX2", "50", "EUR", accounting="54.35"))
        assert await store.total_received() == Decimal("154.35")
        assert await store.transaction_count() == 2

    @pytest.mark.asyncio
    async def test_rejects_non_positive_record(self, store):
        """Appending a non-positive amount is a programming error"""
        with pytest.raises(InvalidTransactionError):
            await store.append_transaction(make_record("TX1", "0"))
        assert await store.transaction_count() == 0

    @pytest.mark.asyncio
    async def test_recent_transactions_newest_first(self, store):
        """Recent transactions are ordered by recorded_at, newest first, and capped"""
        base = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        for index in range(12):
            await store.append_transaction(make_record(f"TX{index}", "1", recorded_at=base + timedelta(minutes=index)))

        recent = await store.recent_transactions(10)

        assert len(recent) == 10
        assert recent[0].txn_id == "TX11"
        assert recent[-1].txn_id == "TX2"

    @pytest.mark.asyncio
    async def test_recent_transactions_is_idempotent(self, store):
        """Reading twice without an append returns the same list"""
        await store.append_transaction(make_record("TX1", "10"))
        await store.append_transaction(make_record("TX2", "20"))
        assert await store.recent_transactions(10) == await store.recent_transactions(10)

    @pytest.mark.asyncio
    async def test_cash_out_over_remaining_leaves_ledger_unchanged(self, store):
        """amount > remaining is rejected without mutation"""
        await store.append_transaction(make_record("TX1", "100"))

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await store.apply_cash_out(1000, CashOutMode.CUSTOM, Decimal("100.01"))

        assert exc_info.value.remaining == Decimal("100")
        assert await store.total_cashed_out() == Decimal("0")

    @pytest.mark.asyncio
    async def test_cash_out_accumulates_per_principal(self, store):
        """Cash-outs add to the principal's total and reduce remaining"""
        await store.append_transaction(make_record("TX1", "100"))

        applied = await store.apply_cash_out(1000, CashOutMode.CUSTOM, Decimal("30"))
        await store.apply_cash_out(2000, CashOutMode.HALF)

        assert applied.remaining_after == Decimal("70")
        assert await store.cashed_out_by(1000) == Decimal("30")
        assert await store.cashed_out_by(2000) == Decimal("35")
        summary = await store.balance_summary()
        assert summary.remaining == Decimal("35")

    @pytest.mark.asyncio
    async def test_registry_membership(self, store):
        """Registries keep insertion order and reject duplicates"""
        assert await store.add_member(Registry.FORWARD, "https://a.example/ipn") is True
        assert await store.add_member(Registry.FORWARD, "https://b.example/ipn") is True
        assert await store.add_member(Registry.FORWARD, "https://a.example/ipn") is False

        assert await store.list_members(Registry.FORWARD) == ["https://a.example/ipn", "https://b.example/ipn"]
        assert await store.remove_member(Registry.FORWARD, "https://c.example/ipn") is False
        assert await store.clear_registry(Registry.FORWARD) == 2
        assert await store.list_members(Registry.FORWARD) == []

    @pytest.mark.asyncio
    async def test_remove_by_position_or_value(self, store):
        """A plain number within range is a position, anything else is matched verbatim"""
        for member in ("https://a.example/ipn", "https://b.example/ipn", "7"):
            await store.add_member(Registry.FORWARD, member)

        assert await store.remove_member_or_position(Registry.FORWARD, "2") == "https://b.example/ipn"
        assert await store.remove_member_or_position(Registry.FORWARD, "7") == "7"
        assert await store.remove_member_or_position(Registry.FORWARD, "0") is None
        assert await store.remove_member_or_position(Registry.FORWARD, "https://a.example/ipn") == "https://a.example/ipn"
        assert await store.list_members(Registry.FORWARD) == []

    @pytest.mark.asyncio
    async def test_registries_are_independent(self, store):
        """Adding to one registry does not affect another"""
        await store.add_member(Registry.NOTIFIED, "2000")
        assert await store.is_member(Registry.NOTIFIED, "2000") is True
        assert await store.is_member(Registry.REGISTERED, "2000") is False


class TestLedgerService:
    """Tests for the ledger service functions"""

    @pytest.mark.asyncio
    async def test_register_principal_is_idempotent(self, store):
        """Second /start reports already registered"""
        assert await ledger_service.register_principal(2000) is True
        assert await ledger_service.register_principal(2000) is False
        assert await ledger_service.is_registered(2000) is True

    @pytest.mark.asyncio
    async def test_status_figures(self, store):
        """Status reflects the log, registries and fee"""
        await ledger_service.record_transaction(make_record("TX1", "100"))
        await ledger_service.register_principal(2000)
        await store.add_member(Registry.NOTIFIED, "2000")
        await store.add_member(Registry.NOTIFIED, "3000")

        status = await ledger_service.get_status()

        assert status.transaction_count == 1
        assert status.total_received == Decimal("100")
        assert status.registered_count == 1
        assert status.notified_count == 2
        assert status.fee_percent == Decimal("10")

    @pytest.mark.asyncio
    async def test_store_not_initialized(self):
        """Without a store every operation reports persistence unavailable"""
        set_ledger_store(None)
        assert is_store_ready() is False
        with pytest.raises(PersistenceUnavailableError):
            get_ledger_store()
        with pytest.raises(PersistenceUnavailableError):
            await ledger_service.get_balance_summary()
