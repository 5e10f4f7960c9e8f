"""
Decimal money helpers shared by the ledger stores and the cash-out engine.

Amounts are kept exact; rounding to cents happens only in format_money().
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from app.services.ledger.exceptions import InvalidAmountError, InsufficientBalanceError
from app.services.ledger.models import CashOutMode

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a user- or wire-supplied value to a finite Decimal.

    Accepts Decimal, int, float and numeric strings (a comma is read as the
    decimal separator). Raises ValueError for anything else, NaN and infinities.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            raise ValueError("Empty amount")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")
    else:
        raise ValueError(f"Not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def resolve_cash_out_amount(
    mode: CashOutMode,
    remaining: Decimal,
    custom_amount: Optional[Decimal] = None,
) -> Decimal:
    """
    Resolve and validate the amount a cash-out request takes from the balance.

    Must be called with the remaining balance read inside the same critical
    section that applies the mutation.

    Raises:
        InvalidAmountError: custom amount missing, non-finite or not positive
        InsufficientBalanceError: nothing to cash out, or amount > remaining
    """
    mode = CashOutMode(mode)

    if mode == CashOutMode.CUSTOM:
        if custom_amount is None:
            raise InvalidAmountError("Custom cash out requires an amount")
        try:
            amount = to_decimal(custom_amount)
        except ValueError as e:
            raise InvalidAmountError(str(e))
        if amount <= ZERO:
            raise InvalidAmountError(f"Amount must be positive, got {amount}")
    else:
        if remaining <= ZERO:
            raise InsufficientBalanceError(ZERO, remaining)
        amount = remaining if mode == CashOutMode.ALL else remaining / 2

    if amount > remaining:
        raise InsufficientBalanceError(amount, remaining)
    return amount


def split_fee(amount: Decimal, fee_percent: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (fee, net) for a cash-out amount. Exact, no rounding."""
    fee = amount * fee_percent / HUNDRED
    return fee, amount - fee


def format_money(value: Decimal) -> str:
    """Render an amount with two decimals, e.g. Decimal('54.347') -> '54.35'"""
    return str(Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def format_percent(value: Decimal) -> str:
    """Render a fee percentage without trailing zeros, e.g. Decimal('10.0') -> '10'"""
    value = Decimal(value)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")
