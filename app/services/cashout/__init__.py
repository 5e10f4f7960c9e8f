"""
Cash-Out Service Layer

This package provides the cash-out request lifecycle (all / half / custom),
fee computation and the atomic ledger mutation.
"""

from app.services.cashout.service import (
    check_eligibility,
    quote,
    parse_amount,
    request_cash_out,
    CashOutQuote,
    CashOutResult,
)

from app.services.cashout.exceptions import (
    CashOutServiceError,
    AmountRequiredError,
    NotRegisteredError,
    InvalidAmountError,
    InsufficientBalanceError,
)

__all__ = [
    "check_eligibility",
    "quote",
    "parse_amount",
    "request_cash_out",
    "CashOutQuote",
    "CashOutResult",
    "CashOutServiceError",
    "AmountRequiredError",
    "NotRegisteredError",
    "InvalidAmountError",
    "InsufficientBalanceError",
]
