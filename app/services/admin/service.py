"""
Admin Service Layer

Administrator-only operations: cash-out fee, notification registry and IPN
forward endpoints. Every operation checks the actor first and raises
UnauthorizedError without touching state.

All functions are pure business logic - no aiogram imports or Telegram-specific types.
"""
import logging
from decimal import Decimal
from typing import List, Tuple
from urllib.parse import urlparse

from app.services.admin.exceptions import (
    UnauthorizedError,
    InvalidFeeError,
    InvalidPrincipalError,
    InvalidForwardUrlError,
    RegistryMemberNotFoundError,
)
from app.services.ledger.models import Registry
from app.services.ledger.money import HUNDRED, ZERO, to_decimal
from app.services.ledger.store import get_ledger_store
from app.utils.security import is_admin, validate_chat_id

logger = logging.getLogger(__name__)


def require_admin(actor_id: int) -> None:
    """
    Raises:
        UnauthorizedError: actor is not the configured administrator
    """
    if not is_admin(actor_id):
        logger.warning(f"[SECURITY_WARNING] Unauthorized admin operation attempt: telegram_id={actor_id}")
        raise UnauthorizedError(f"User {actor_id} is not an administrator")


# ====================================================================================
# Cash-out fee
# ====================================================================================

def parse_fee(raw_value) -> Decimal:
    try:
        fee = to_decimal(raw_value)
    except ValueError:
        raise InvalidFeeError(f"Fee is not a number: {raw_value!r}")
    if fee < ZERO or fee > HUNDRED:
        raise InvalidFeeError(f"Fee must be within 0..100, got {fee}")
    return fee


async def set_fee(actor_id: int, raw_value) -> Decimal:
    """
    Set the global cash-out fee percentage.

    Returns:
        The new fee percentage

    Raises:
        UnauthorizedError, InvalidFeeError
    """
    require_admin(actor_id)
    fee = parse_fee(raw_value)
    await get_ledger_store().set_fee_percent(fee)
    logger.info(f"CASHOUT_FEE_SET [actor={actor_id}, fee_percent={fee}]")
    return fee


# ====================================================================================
# Notification registry
# ====================================================================================

def parse_principal_id(raw_value) -> int:
    text = str(raw_value or "").strip()
    is_valid, error = validate_chat_id(text)
    if not is_valid:
        raise InvalidPrincipalError(error)
    return int(text)


async def add_notified(actor_id: int, raw_principal) -> Tuple[int, bool]:
    """
    Add a principal to the payment alert list.

    Returns:
        (principal_id, added) where added is False if already present
    """
    require_admin(actor_id)
    principal_id = parse_principal_id(raw_principal)
    added = await get_ledger_store().add_member(Registry.NOTIFIED, str(principal_id))
    logger.info(f"NOTIFY_LIST_ADD [actor={actor_id}, principal={principal_id}, added={added}]")
    return principal_id, added


async def remove_notified(actor_id: int, raw_principal) -> int:
    """
    Raises:
        UnauthorizedError, InvalidPrincipalError, RegistryMemberNotFoundError
    """
    require_admin(actor_id)
    principal_id = parse_principal_id(raw_principal)
    removed = await get_ledger_store().remove_member(Registry.NOTIFIED, str(principal_id))
    if not removed:
        raise RegistryMemberNotFoundError(str(principal_id))
    logger.info(f"NOTIFY_LIST_REMOVE [actor={actor_id}, principal={principal_id}]")
    return principal_id


async def list_notified(actor_id: int) -> List[str]:
    require_admin(actor_id)
    return await get_ledger_store().list_members(Registry.NOTIFIED)


# ====================================================================================
# Forward endpoints
# ====================================================================================

def validate_forward_url(raw_url) -> str:
    """
    Accept only absolute http/https URLs with a host.

    Returns:
        The stripped URL
    """
    url = str(raw_url or "").strip()
    if not url or any(ch.isspace() for ch in url):
        raise InvalidForwardUrlError(f"Invalid URL: {url!r}")
    try:
        parsed = urlparse(url)
        # .port raises ValueError for out-of-range ports
        parsed.port
    except ValueError:
        raise InvalidForwardUrlError(f"Invalid URL: {url!r}")
    if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
        raise InvalidForwardUrlError(f"Invalid URL: {url!r}")
    return url


async def add_forward_endpoint(actor_id: int, raw_url) -> Tuple[str, bool]:
    """
    Returns:
        (url, added) where added is False if the URL was already configured

    Raises:
        UnauthorizedError, InvalidForwardUrlError
    """
    require_admin(actor_id)
    url = validate_forward_url(raw_url)
    added = await get_ledger_store().add_member(Registry.FORWARD, url)
    logger.info(f"FORWARD_ENDPOINT_ADD [actor={actor_id}, url={url}, added={added}]")
    return url, added


async def remove_forward_endpoint(actor_id: int, url_or_index) -> str:
    """
    Remove a forward endpoint by exact URL or by 1-based position in the list.

    A numeric argument within range is treated as a position; anything else is
    matched against the stored URLs verbatim.

    Returns:
        The removed URL

    Raises:
        UnauthorizedError, RegistryMemberNotFoundError
    """
    require_admin(actor_id)
    target = str(url_or_index or "").strip()

    removed = await get_ledger_store().remove_member_or_position(Registry.FORWARD, target)
    if removed is None:
        raise RegistryMemberNotFoundError(target)
    logger.info(f"FORWARD_ENDPOINT_REMOVE [actor={actor_id}, url={removed}]")
    return removed


async def list_forward_endpoints(actor_id: int) -> List[str]:
    require_admin(actor_id)
    return await get_ledger_store().list_members(Registry.FORWARD)


async def clear_forward_endpoints(actor_id: int) -> int:
    """Returns the number of endpoints removed"""
    require_admin(actor_id)
    removed = await get_ledger_store().clear_registry(Registry.FORWARD)
    logger.info(f"FORWARD_ENDPOINTS_CLEARED [actor={actor_id}, count={removed}]")
    return removed
