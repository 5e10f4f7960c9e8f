"""
Currency Rate Service

Conversion of payment amounts to the accounting currency.
"""

from app.services.rates.service import (
    convert,
    convert_with_rates,
    fetch_rates,
    get_rates,
    reset_cache,
)

from app.services.rates.exceptions import (
    RateServiceError,
    ConversionUnavailableError,
)

__all__ = [
    "convert",
    "convert_with_rates",
    "fetch_rates",
    "get_rates",
    "reset_cache",
    "RateServiceError",
    "ConversionUnavailableError",
]
