"""
Rate Service Domain Exceptions
"""


class RateServiceError(Exception):
    """Base exception for currency rate errors"""
    pass


class ConversionUnavailableError(RateServiceError):
    """Raised when an amount cannot be converted to the accounting currency (fail closed)"""

    def __init__(self, currency: str, reason: str):
        self.currency = currency
        self.reason = reason
        super().__init__(f"Conversion from {currency!r} unavailable: {reason}")
