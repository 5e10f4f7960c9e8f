"""
Security utilities for trust boundaries and input validation.

- Input validation (Telegram user and chat ids)
- Authorization guards (single administrator identity, resource ownership)
- Secret masking for logs
"""

import hashlib
import logging
from typing import Optional, Tuple, Any

logger = logging.getLogger(__name__)


def validate_telegram_id(telegram_id: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate Telegram ID.

    Args:
        telegram_id: Telegram ID to validate (int or numeric string)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(telegram_id, bool):
        return False, "Telegram ID must be an integer"
    if not isinstance(telegram_id, int):
        try:
            telegram_id = int(telegram_id)
        except (ValueError, TypeError):
            return False, "Telegram ID must be an integer"

    # Telegram IDs are positive integers
    if telegram_id <= 0:
        return False, "Telegram ID must be positive"

    if telegram_id > 2**63:
        return False, "Telegram ID exceeds maximum value"

    return True, None


def validate_chat_id(chat_id: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a Telegram chat ID: positive for users, negative for groups and channels.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(chat_id, bool):
        return False, "Chat ID must be an integer"
    if not isinstance(chat_id, int):
        try:
            chat_id = int(chat_id)
        except (ValueError, TypeError):
            return False, "Chat ID must be an integer"

    if chat_id == 0:
        return False, "Chat ID must not be zero"

    if not -2**63 <= chat_id < 2**63:
        return False, "Chat ID is out of range"

    return True, None


def is_admin(telegram_id: int) -> bool:
    """
    Check if user is the configured administrator. Fails closed.
    """
    import config

    is_valid, error = validate_telegram_id(telegram_id)
    if not is_valid:
        logger.warning(f"[SECURITY_WARNING] Invalid telegram_id in is_admin check: {error}")
        return False

    return int(telegram_id) == config.ADMIN_TELEGRAM_ID


def owns_resource(telegram_id: int, resource_telegram_id: Any) -> bool:
    """
    Check that an action bound to resource_telegram_id (e.g. an inline button
    issued to one user) is performed by that same user. Fails closed.
    """
    is_valid1, error1 = validate_telegram_id(telegram_id)
    is_valid2, error2 = validate_telegram_id(resource_telegram_id)

    if not is_valid1 or not is_valid2:
        logger.warning(
            f"[SECURITY_WARNING] Invalid telegram_id in owns_resource check: "
            f"telegram_id={telegram_id}, resource_telegram_id={resource_telegram_id}, "
            f"errors=({error1}, {error2})"
        )
        return False

    return int(telegram_id) == int(resource_telegram_id)


def token_fingerprint(secret: Optional[str]) -> str:
    """Short sha256 prefix of a secret, safe to log"""
    if not secret:
        return "none"
    return hashlib.sha256(secret.encode()).hexdigest()[:12]
