"""
Structured logging helpers for handler observability.

Logging contract:
- correlation_id: Telegram message_id / callback id (UUID fallback)
- component: handler
- operation: handler operation name
- outcome: success | degraded | failed

Failure taxonomy:
- infra_error: Infrastructure errors (store, network, timeouts)
- dependency_error: External dependency errors (rate source, verification, forwarding)
- domain_error: Business rule errors (validation, authorization, balance)
- unexpected_error: Unexpected errors (bugs, unhandled exceptions)
"""

import asyncio
import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

import asyncpg
import httpx

from app.services.admin.exceptions import AdminServiceError
from app.services.cashout.exceptions import CashOutServiceError
from app.services.forwarding.exceptions import ForwardingServiceError
from app.services.ipn.exceptions import IpnServiceError
from app.services.ledger.exceptions import LedgerServiceError, PersistenceUnavailableError
from app.services.rates.exceptions import RateServiceError

# Context variable for correlation ID (per-request/operation)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_handler_entry(
    handler_name: str,
    telegram_id: Optional[int] = None,
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **kwargs
) -> str:
    """
    Log handler entry point as a JSON line.

    Returns:
        Correlation ID for this request
    """
    if correlation_id is None:
        correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)

    log_data = {
        "event": "HANDLER_ENTRY",
        "handler": handler_name,
        "correlation_id": correlation_id,
        "component": "handler",
        "operation": operation or handler_name,
        "timestamp": _now_iso(),
        "level": "INFO",
    }
    if telegram_id:
        log_data["telegram_id"] = telegram_id
    if kwargs:
        log_data.update(kwargs)

    logger.info(json.dumps(log_data))
    return correlation_id


def log_handler_exit(
    handler_name: str,
    outcome: str,  # "success" | "degraded" | "failed"
    telegram_id: Optional[int] = None,
    operation: Optional[str] = None,
    error_type: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> None:
    """Log handler exit point as a JSON line, level matching the outcome."""
    log_data = {
        "event": "HANDLER_EXIT",
        "handler": handler_name,
        "correlation_id": get_correlation_id(),
        "component": "handler",
        "operation": operation or handler_name,
        "outcome": outcome,
        "timestamp": _now_iso(),
    }
    if telegram_id:
        log_data["telegram_id"] = telegram_id
    if error_type:
        log_data["error_type"] = error_type
    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)
    if kwargs:
        log_data.update(kwargs)

    if outcome == "failed":
        log_data["level"] = "ERROR"
        logger.error(json.dumps(log_data))
    elif outcome == "degraded":
        log_data["level"] = "WARNING"
        logger.warning(json.dumps(log_data))
    else:
        log_data["level"] = "INFO"
        logger.info(json.dumps(log_data))


def classify_error(exception: Exception) -> str:
    """
    Classify error type for failure taxonomy.

    Returns:
        "infra_error" | "dependency_error" | "domain_error" | "unexpected_error"
    """
    if isinstance(exception, PersistenceUnavailableError):
        return "infra_error"

    if isinstance(exception, (RateServiceError, ForwardingServiceError, IpnServiceError)):
        return "dependency_error"

    if isinstance(exception, (
        LedgerServiceError,
        CashOutServiceError,
        AdminServiceError,
    )):
        return "domain_error"

    if isinstance(exception, (
        asyncpg.PostgresError,
        asyncio.TimeoutError,
        ConnectionError,
        OSError,
    )):
        return "infra_error"

    if isinstance(exception, httpx.HTTPError):
        return "dependency_error"

    return "unexpected_error"
