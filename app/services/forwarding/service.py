"""
IPN Forwarding Service

Replays the raw inbound notification, form-encoded and unmodified, to every
configured forward endpoint.

STEP 1.3 - EXTERNAL DEPENDENCIES POLICY:
- Each endpoint is attempted independently and concurrently
- Network error / timeout / non-2xx -> ForwardDeliveryFailed, logged, NOT retried
- Nothing here ever raises to the caller; outcomes are returned as a report
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlencode

import httpx

import config
from app.services.forwarding.exceptions import ForwardDeliveryFailed
from app.services.ledger.models import Registry
from app.services.ledger.store import get_ledger_store

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class ForwardAttempt:
    url: str
    delivered: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ForwardReport:
    attempts: List[ForwardAttempt] = field(default_factory=list)

    @property
    def delivered(self) -> List[str]:
        return [attempt.url for attempt in self.attempts if attempt.delivered]

    @property
    def failed(self) -> List[str]:
        return [attempt.url for attempt in self.attempts if not attempt.delivered]


def encode_payload(fields: Sequence[Tuple[str, str]]) -> str:
    """Form-encode fields preserving order and repeated keys"""
    return urlencode(list(fields))


async def deliver(client: httpx.AsyncClient, url: str, body: str) -> int:
    """
    POST one form-encoded body.

    Returns:
        HTTP status code (2xx)

    Raises:
        ForwardDeliveryFailed
    """
    try:
        response = await client.post(url, content=body, headers={"Content-Type": FORM_CONTENT_TYPE})
    except httpx.TimeoutException as e:
        raise ForwardDeliveryFailed(url, f"timeout: {type(e).__name__}")
    except (httpx.HTTPError, OSError) as e:
        raise ForwardDeliveryFailed(url, f"{type(e).__name__}: {str(e)[:100]}")

    if response.status_code < 200 or response.status_code >= 300:
        raise ForwardDeliveryFailed(url, f"HTTP {response.status_code}", status_code=response.status_code)
    return response.status_code


async def _attempt(client: httpx.AsyncClient, url: str, body: str, correlation_id: Optional[str]) -> ForwardAttempt:
    try:
        status_code = await deliver(client, url, body)
    except ForwardDeliveryFailed as e:
        logger.warning(f"FORWARD_FAILED [txn_id={correlation_id}, url={url}, reason={e.reason}]")
        return ForwardAttempt(url=url, delivered=False, status_code=e.status_code, error=e.reason)
    logger.info(f"FORWARD_DELIVERED [txn_id={correlation_id}, url={url}, status={status_code}]")
    return ForwardAttempt(url=url, delivered=True, status_code=status_code)


async def forward_notification(
    fields: Sequence[Tuple[str, str]],
    endpoints: Optional[List[str]] = None,
    client: Optional[httpx.AsyncClient] = None,
    correlation_id: Optional[str] = None,
) -> ForwardReport:
    """
    Forward the raw notification to every endpoint.

    Args:
        fields: Original (key, value) pairs as received
        endpoints: Target URLs (defaults to the forward registry)
        client: Optional shared client (a short-lived one is created otherwise)
        correlation_id: Transaction id for logs
    """
    if endpoints is None:
        try:
            endpoints = await get_ledger_store().list_members(Registry.FORWARD)
        except Exception as e:
            logger.error(f"FORWARD_ENDPOINTS_UNAVAILABLE [txn_id={correlation_id}, error={type(e).__name__}: {str(e)[:100]}]")
            return ForwardReport()

    if not endpoints:
        return ForwardReport()

    body = encode_payload(fields)

    if client is not None:
        attempts = await asyncio.gather(*(_attempt(client, url, body, correlation_id) for url in endpoints))
    else:
        async with httpx.AsyncClient(timeout=config.FORWARD_TIMEOUT) as http:
            attempts = await asyncio.gather(*(_attempt(http, url, body, correlation_id) for url in endpoints))

    return ForwardReport(attempts=list(attempts))
