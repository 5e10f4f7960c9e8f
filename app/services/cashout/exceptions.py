"""
Cash-Out Service Domain Exceptions

Amount validation errors are raised by the ledger store inside the atomic
cash-out unit and are re-exported here for handler convenience.
"""

from app.services.ledger.exceptions import InvalidAmountError, InsufficientBalanceError


class CashOutServiceError(Exception):
    """Base exception for cash-out service errors"""
    pass


class AmountRequiredError(CashOutServiceError):
    """Raised when a custom cash-out is requested without an amount (prompt the user)"""
    pass


class NotRegisteredError(CashOutServiceError):
    """Raised when a principal that never used /start requests a cash out"""
    pass


__all__ = [
    "CashOutServiceError",
    "AmountRequiredError",
    "NotRegisteredError",
    "InvalidAmountError",
    "InsufficientBalanceError",
]
