"""
Structured logging normalization.

Single contract for critical lifecycle logs:
- component
- operation
- correlation_id (optional; txn_id for IPN processing, update_id for Telegram)
- outcome
- duration_ms (optional, omitted if None)
- reason (optional)

Do not log secrets or full payloads.
"""
from logging import Logger
from typing import Optional


def log_event(
    logger: Logger,
    *,
    component: str,
    operation: str,
    correlation_id: Optional[str] = None,
    outcome: str,
    duration_ms: Optional[int] = None,
    reason: Optional[str] = None,
    level: str = "info",
    message: Optional[str] = None,
) -> None:
    """
    Emit structured log event.

    Args:
        logger: Logger instance
        component: Component name (e.g., "ipn", "http", "telegram", "startup")
        operation: Operation name (e.g., "ipn_ingest", "store_init", "update_processing")
        correlation_id: Request/task identifier (optional)
        outcome: Outcome (e.g., "success", "failed", "recorded", "rejected")
        duration_ms: Duration in milliseconds (omitted if None)
        reason: Short non-PII explanation (optional)
        level: Log level ("info", "warning", "error", "critical", "debug")
        message: Optional override message (defaults to "<component> <operation> outcome=<outcome>")
    """
    extra: dict = {
        "component": component,
        "operation": operation,
        "outcome": outcome,
    }
    if correlation_id is not None:
        extra["correlation_id"] = str(correlation_id)
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    if reason is not None:
        extra["reason"] = reason

    msg = message or f"{component} {operation} outcome={outcome}"
    if reason is not None and message is None:
        msg = f"{msg} reason={reason}"
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(msg, extra=extra)
