"""
Ledger Service Domain Exceptions

All exceptions raised by the ledger store and ledger service layer.
"""


class LedgerServiceError(Exception):
    """Base exception for ledger errors"""
    pass


class InvalidTransactionError(LedgerServiceError):
    """Raised when a transaction record with a non-positive amount is appended"""
    pass


class InvalidAmountError(LedgerServiceError):
    """Raised when a cash-out amount is not a finite positive number"""
    pass


class InsufficientBalanceError(LedgerServiceError):
    """Raised when a cash-out amount exceeds the remaining balance"""

    def __init__(self, requested, remaining):
        self.requested = requested
        self.remaining = remaining
        super().__init__(f"Requested {requested} exceeds remaining balance {remaining}")


class PersistenceUnavailableError(LedgerServiceError):
    """Raised when the backing store cannot be reached (transient, retry later)"""
    pass
