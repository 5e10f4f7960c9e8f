"""
Currency Rate Service

Converts an amount in an origin currency to the accounting currency using a
public JSON rate table keyed by lower-case currency code. The table gives how
many units of a currency equal one unit of the accounting currency, so
accounting = amount / rate.

STEP 1.3 - EXTERNAL DEPENDENCIES POLICY:
- Rate source unavailable / timeout / bad payload -> ConversionUnavailableError
- Missing or non-positive rate -> ConversionUnavailableError (never guess)
- Transient network errors are retried once with backoff
- Failed fetches are never cached
"""
import logging
import time
from decimal import Decimal
from typing import Dict, Optional, Tuple

import httpx

import config
from app.services.rates.exceptions import ConversionUnavailableError
from app.utils.retry import retry_async

logger = logging.getLogger(__name__)

# (fetched_at monotonic, table)
_cache: Optional[Tuple[float, Dict[str, Decimal]]] = None


def reset_cache() -> None:
    global _cache
    _cache = None


def _to_rate(value) -> Optional[Decimal]:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    rate = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


def convert_with_rates(
    amount: Decimal,
    currency: str,
    rates: Dict[str, Decimal],
    accounting_currency: Optional[str] = None,
) -> Decimal:
    """
    Pure conversion against an already fetched table.

    Raises:
        ConversionUnavailableError: rate missing or not a positive number
    """
    accounting_currency = accounting_currency or config.ACCOUNTING_CURRENCY
    code = (currency or "").strip()
    if not code:
        raise ConversionUnavailableError(currency, "empty currency code")
    if code.upper() == accounting_currency.upper():
        return amount

    rate = _to_rate(rates.get(code.lower()))
    if rate is None:
        raise ConversionUnavailableError(code, "rate not found")
    return amount / rate


async def fetch_rates(client: Optional[httpx.AsyncClient] = None) -> Dict[str, Decimal]:
    """
    Fetch the rate table for the accounting currency.

    Args:
        client: Optional shared client (a short-lived one is created otherwise)

    Raises:
        ConversionUnavailableError: network failure, timeout, non-2xx, malformed JSON
    """
    base = config.ACCOUNTING_CURRENCY.lower()
    url = config.EXCHANGE_RATES_URL.format(currency=base)

    async def _get(http: httpx.AsyncClient) -> httpx.Response:
        return await retry_async(
            lambda: http.get(url),
            retries=1,
            base_delay=0.5,
            max_delay=2.0,
        )

    try:
        if client is not None:
            response = await _get(client)
        else:
            async with httpx.AsyncClient(timeout=config.EXCHANGE_RATES_TIMEOUT) as http:
                response = await _get(http)
    except (httpx.HTTPError, OSError) as e:
        logger.warning(f"RATES_FETCH_FAILED [url={url}, error={type(e).__name__}: {str(e)[:100]}]")
        raise ConversionUnavailableError("*", f"rate source unreachable: {type(e).__name__}")

    if response.status_code < 200 or response.status_code >= 300:
        logger.warning(f"RATES_FETCH_FAILED [url={url}, status={response.status_code}]")
        raise ConversionUnavailableError("*", f"rate source returned HTTP {response.status_code}")

    try:
        payload = response.json(parse_float=Decimal)
    except ValueError:
        logger.warning(f"RATES_FETCH_FAILED [url={url}, reason=invalid_json]")
        raise ConversionUnavailableError("*", "rate source returned invalid JSON")

    table = payload.get(base) if isinstance(payload, dict) else None
    if not isinstance(table, dict):
        logger.warning(f"RATES_FETCH_FAILED [url={url}, reason=missing_table]")
        raise ConversionUnavailableError("*", f"rate table '{base}' missing")

    rates: Dict[str, Decimal] = {}
    for code, value in table.items():
        rate = _to_rate(value)
        if rate is not None:
            rates[str(code).lower()] = rate
    logger.debug(f"RATES_FETCHED [count={len(rates)}]")
    return rates


async def get_rates() -> Dict[str, Decimal]:
    """Rate table, served from the short-TTL cache when enabled"""
    global _cache
    ttl = config.EXCHANGE_RATES_CACHE_TTL
    if ttl > 0 and _cache is not None:
        fetched_at, rates = _cache
        if time.monotonic() - fetched_at < ttl:
            return rates

    rates = await fetch_rates()
    if ttl > 0:
        _cache = (time.monotonic(), rates)
    return rates


async def convert(amount: Decimal, currency: str) -> Decimal:
    """
    Convert amount to the accounting currency.

    The accounting currency itself (any case) is returned unchanged without a lookup.

    Raises:
        ConversionUnavailableError
    """
    code = (currency or "").strip()
    if code and code.upper() == config.ACCOUNTING_CURRENCY.upper():
        return amount
    if not code:
        raise ConversionUnavailableError(currency, "empty currency code")

    rates = await get_rates()
    return convert_with_rates(amount, code, rates)
