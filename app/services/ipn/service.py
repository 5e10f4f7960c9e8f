"""
IPN Service Layer

Inbound payment notification pipeline:

    parse -> verify (optional) -> convert -> durable append -> [ack]
          -> background: alert fan-out + raw forwarding

Only "Completed" notifications with a positive gross amount are recorded.
Every parsed and verified notification is forwarded, recorded or not.

STEP 1.3 - EXTERNAL DEPENDENCIES POLICY:
- Verification endpoint unavailable -> VerificationFailedError (dropped, acknowledged)
- Rate source unavailable -> not recorded, still forwarded, acknowledged
- Store unavailable -> PersistenceUnavailableError propagates (caller answers 503)
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Coroutine, List, Mapping, Optional, Sequence, Set, Tuple, Union

import httpx
from aiogram import Bot

import config
from app.core.structured_logger import log_event
from app.services.forwarding import service as forwarding_service
from app.services.ipn.exceptions import InvalidNotificationError, VerificationFailedError
from app.services.ledger import service as ledger_service
from app.services.ledger.models import TransactionRecord
from app.services.ledger.money import ZERO, to_decimal
from app.services.notifications import service as notification_service
from app.services.rates import service as rates_service
from app.services.rates.exceptions import ConversionUnavailableError

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "Completed"
VERIFIED_RESPONSE = "VERIFIED"
SUBJECT_FIELDS = ("item_name", "memo", "transaction_subject")

Fields = Sequence[Tuple[str, str]]


# ====================================================================================
# Result Types
# ====================================================================================

@dataclass(frozen=True)
class InboundNotification:
    """Validated view of an IPN payload; `raw` keeps the original pairs for forwarding"""
    payment_status: str
    gross_amount: Optional[Decimal]
    currency: str
    payer: str
    txn_id: str
    payment_date: str
    subject: Optional[str]
    raw: Tuple[Tuple[str, str], ...]

    @property
    def is_completed(self) -> bool:
        return self.payment_status == COMPLETED_STATUS


class IngestOutcome(str, Enum):
    RECORDED = "recorded"
    IGNORED = "ignored"
    CONVERSION_UNAVAILABLE = "conversion_unavailable"
    UNVERIFIED = "unverified"
    INVALID = "invalid"


@dataclass(frozen=True)
class IngestResult:
    outcome: IngestOutcome
    notification: Optional[InboundNotification] = None
    record: Optional[TransactionRecord] = None
    reason: Optional[str] = None


# ====================================================================================
# Parsing / verification
# ====================================================================================

def parse_notification(payload: Union[Mapping[str, Any], Sequence[Tuple[str, Any]], None]) -> InboundNotification:
    """
    Build an InboundNotification from form fields.

    Accepts a mapping (JSON body) or a sequence of (key, value) pairs (form body,
    order and repeated keys preserved). The first occurrence of a key wins.

    Raises:
        InvalidNotificationError: empty or not key/value shaped
    """
    if payload is None:
        raise InvalidNotificationError("Empty notification")
    try:
        items = list(payload.items()) if isinstance(payload, Mapping) else list(payload)
        raw = tuple((str(key), "" if value is None else str(value)) for key, value in items)
    except (TypeError, ValueError):
        raise InvalidNotificationError("Notification is not a set of key/value fields")
    if not raw:
        raise InvalidNotificationError("Empty notification")

    values = {}
    for key, value in raw:
        values.setdefault(key, value)

    gross_amount: Optional[Decimal]
    try:
        gross_amount = to_decimal(values.get("mc_gross", ""))
    except ValueError:
        gross_amount = None

    subject = next((values[name].strip() for name in SUBJECT_FIELDS if values.get(name, "").strip()), None)

    return InboundNotification(
        payment_status=values.get("payment_status", "").strip(),
        gross_amount=gross_amount,
        currency=values.get("mc_currency", "").strip().upper(),
        payer=values.get("payer_email", "").strip(),
        txn_id=values.get("txn_id", "").strip(),
        payment_date=values.get("payment_date", "").strip(),
        subject=subject,
        raw=raw,
    )


async def verify_notification(fields: Fields, client: Optional[httpx.AsyncClient] = None) -> None:
    """
    Post the notification back to the processor (cmd=_notify-validate first,
    then the original fields in order) and require the literal VERIFIED.

    Raises:
        VerificationFailedError: any other body, non-2xx, network failure or timeout
    """
    body = forwarding_service.encode_payload([("cmd", "_notify-validate"), *fields])
    headers = {"Content-Type": forwarding_service.FORM_CONTENT_TYPE}

    try:
        if client is not None:
            response = await client.post(config.IPN_VERIFY_URL, content=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=config.IPN_VERIFY_TIMEOUT) as http:
                response = await http.post(config.IPN_VERIFY_URL, content=body, headers=headers)
    except (httpx.HTTPError, OSError) as e:
        raise VerificationFailedError(f"Verification request failed: {type(e).__name__}")

    if response.status_code < 200 or response.status_code >= 300:
        raise VerificationFailedError(f"Verification endpoint returned HTTP {response.status_code}")
    if response.text.strip() != VERIFIED_RESPONSE:
        raise VerificationFailedError(f"Verification answered {response.text.strip()[:20]!r}")


# ====================================================================================
# Ingestion
# ====================================================================================

async def ingest_notification(notification: InboundNotification) -> IngestResult:
    """
    Record a Completed notification with a positive amount.

    The append is awaited to completion before returning.

    Raises:
        PersistenceUnavailableError: store unreachable
    """
    if not notification.is_completed:
        return IngestResult(IngestOutcome.IGNORED, notification, reason=f"status={notification.payment_status or '-'}")
    if notification.gross_amount is None or notification.gross_amount <= ZERO:
        return IngestResult(IngestOutcome.IGNORED, notification, reason="non-positive or missing mc_gross")
    if not notification.txn_id:
        return IngestResult(IngestOutcome.IGNORED, notification, reason="missing txn_id")

    try:
        amount_accounting = await rates_service.convert(notification.gross_amount, notification.currency)
    except ConversionUnavailableError as e:
        logger.warning(
            f"IPN_CONVERSION_UNAVAILABLE [txn_id={notification.txn_id}, currency={notification.currency}, reason={e.reason}]"
        )
        return IngestResult(IngestOutcome.CONVERSION_UNAVAILABLE, notification, reason=e.reason)

    if amount_accounting <= ZERO:
        return IngestResult(IngestOutcome.IGNORED, notification, reason="non-positive converted amount")

    record = TransactionRecord(
        txn_id=notification.txn_id,
        gross_amount=notification.gross_amount,
        currency=notification.currency,
        amount_accounting=amount_accounting,
        payer=notification.payer,
        occurred_at=notification.payment_date,
        recorded_at=datetime.now(timezone.utc),
        subject=notification.subject,
    )
    await ledger_service.record_transaction(record)
    return IngestResult(IngestOutcome.RECORDED, notification, record=record)


# ====================================================================================
# Background fan-out tasks
# ====================================================================================

_background_tasks: Set[asyncio.Task] = set()


def _spawn(coro: Coroutine, name: str) -> asyncio.Task:
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_on_background_done)
    return task


def _on_background_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"IPN_BACKGROUND_TASK_FAILED [task={task.get_name()}, error={type(error).__name__}: {str(error)[:100]}]")


def pending_background_tasks() -> List[asyncio.Task]:
    return list(_background_tasks)


async def drain_background_tasks(timeout: float = 10.0) -> None:
    """Wait for in-flight alert/forward tasks (shutdown)"""
    tasks = pending_background_tasks()
    if not tasks:
        return
    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        logger.warning(f"IPN_BACKGROUND_TASKS_CANCELLED [count={len(pending)}]")


# ====================================================================================
# Pipeline entry point
# ====================================================================================

async def handle_ipn(payload, bot: Optional[Bot]) -> IngestResult:
    """
    Run the full pipeline for one inbound notification.

    Returns once the notification is either durably recorded or definitively
    not recordable; alerts and forwarding continue in the background.

    Raises:
        PersistenceUnavailableError: append could not be completed (caller should answer 503)
    """
    try:
        notification = parse_notification(payload)
    except InvalidNotificationError as e:
        log_event(logger, component="ipn", operation="ipn_parse", outcome="rejected", reason=str(e), level="warning")
        return IngestResult(IngestOutcome.INVALID, reason=str(e))

    correlation_id = notification.txn_id or None
    log_event(
        logger,
        component="ipn",
        operation="ipn_received",
        correlation_id=correlation_id,
        outcome="accepted",
        reason=f"status={notification.payment_status or '-'}",
        message=f"IPN_RECEIVED [txn_id={notification.txn_id or '-'}, status={notification.payment_status or '-'}]",
    )

    if config.IPN_VERIFY_ENABLED:
        try:
            await verify_notification(notification.raw)
        except VerificationFailedError as e:
            log_event(
                logger, component="ipn", operation="ipn_verify", correlation_id=correlation_id,
                outcome="rejected", reason=str(e), level="warning",
            )
            return IngestResult(IngestOutcome.UNVERIFIED, notification, reason=str(e))

    result = await ingest_notification(notification)
    log_event(
        logger,
        component="ipn",
        operation="ipn_ingest",
        correlation_id=correlation_id,
        outcome=result.outcome.value,
        reason=result.reason,
    )

    if result.record is not None and bot is not None:
        _spawn(notification_service.notify_payment(bot, result.record), name=f"ipn-notify-{notification.txn_id}")
    _spawn(
        forwarding_service.forward_notification(notification.raw, correlation_id=correlation_id),
        name=f"ipn-forward-{notification.txn_id or 'unknown'}",
    )
    return result
