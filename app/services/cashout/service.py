"""
Cash-Out Service Layer

Manual cash-out bookkeeping against the global remaining balance.

Lifecycle per principal: Idle -> AwaitingAmount -> Idle. Only the custom mode
waits for input; the waiting state itself is owned by the bot FSM, this module
only raises AmountRequiredError to request it.

All functions are pure business logic - no aiogram imports or Telegram-specific types.

Policy:
- amount must be finite and > 0 -> InvalidAmountError (NOT applied)
- amount > remaining -> InsufficientBalanceError (NOT applied)
- success -> cashed_out += amount; fee only reduces the payout
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import config
from app.services.admin.exceptions import UnauthorizedError
from app.services.cashout.exceptions import (
    AmountRequiredError,
    InvalidAmountError,
    NotRegisteredError,
)
from app.services.ledger import service as ledger_service
from app.services.ledger.models import CashOutMode
from app.services.ledger.money import ZERO, format_money, split_fee, to_decimal
from app.services.ledger.store import get_ledger_store
from app.utils.security import is_admin

logger = logging.getLogger(__name__)


# ====================================================================================
# Result Types
# ====================================================================================

@dataclass(frozen=True)
class CashOutQuote:
    """What a principal would be offered right now"""
    remaining: Decimal
    fee_percent: Decimal

    @property
    def has_balance(self) -> bool:
        return self.remaining > ZERO


@dataclass(frozen=True)
class CashOutResult:
    """Applied cash out"""
    principal_id: int
    mode: CashOutMode
    amount: Decimal
    fee_percent: Decimal
    fee: Decimal
    net: Decimal
    remaining_after: Decimal


# ====================================================================================
# Eligibility
# ====================================================================================

async def check_eligibility(principal_id: int) -> None:
    """
    Raises:
        UnauthorizedError: cash out restricted to the administrator
        NotRegisteredError: principal never used /start
    """
    if config.CASHOUT_ADMIN_ONLY and not is_admin(principal_id):
        raise UnauthorizedError(f"Cash out is restricted to the administrator (user {principal_id})")
    if not await ledger_service.is_registered(principal_id):
        raise NotRegisteredError(f"User {principal_id} is not registered")


# ====================================================================================
# Operations
# ====================================================================================

async def quote(principal_id: int) -> CashOutQuote:
    """Current remaining balance and fee. No state change."""
    await check_eligibility(principal_id)
    store = get_ledger_store()
    summary = await store.balance_summary()
    fee_percent = await store.get_fee_percent()
    return CashOutQuote(remaining=summary.remaining, fee_percent=fee_percent)


def parse_amount(text: Optional[str]) -> Decimal:
    """
    Parse a free-text custom amount ("12.50", "12,50").

    Raises:
        InvalidAmountError: not a finite positive number
    """
    try:
        amount = to_decimal(text if text is not None else "")
    except ValueError:
        raise InvalidAmountError(f"Not a number: {text!r}")
    if amount <= ZERO:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
    return amount


async def request_cash_out(
    principal_id: int,
    mode: CashOutMode,
    custom_amount: Optional[Decimal] = None,
) -> CashOutResult:
    """
    Cash out from the global remaining balance.

    all -> remaining, half -> remaining / 2, custom -> custom_amount.
    Read, validation and increment happen as one atomic unit in the store, so
    two concurrent requests for the full balance yield exactly one success.

    Raises:
        AmountRequiredError: custom mode without an amount
        InvalidAmountError, InsufficientBalanceError: rejected, nothing applied
        NotRegisteredError, UnauthorizedError: principal may not cash out
    """
    mode = CashOutMode(mode)
    await check_eligibility(principal_id)

    if mode == CashOutMode.CUSTOM and custom_amount is None:
        raise AmountRequiredError("Custom cash out requires an amount")

    applied = await get_ledger_store().apply_cash_out(principal_id, mode, custom_amount)
    fee, net = split_fee(applied.amount, applied.fee_percent)

    result = CashOutResult(
        principal_id=principal_id,
        mode=mode,
        amount=applied.amount,
        fee_percent=applied.fee_percent,
        fee=fee,
        net=net,
        remaining_after=applied.remaining_after,
    )
    logger.info(
        f"CASHOUT_APPLIED [principal={principal_id}, mode={mode.value}, "
        f"amount={format_money(result.amount)}, fee_percent={result.fee_percent}, "
        f"fee={format_money(fee)}, net={format_money(net)}, "
        f"remaining={format_money(result.remaining_after)}]"
    )
    return result
