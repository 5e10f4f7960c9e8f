"""
Admin Service Layer

This package provides administrator-only operations: fee setting, the payment
alert list and IPN forward endpoints.
"""

from app.services.admin.service import (
    require_admin,
    parse_fee,
    set_fee,
    parse_principal_id,
    add_notified,
    remove_notified,
    list_notified,
    validate_forward_url,
    add_forward_endpoint,
    remove_forward_endpoint,
    list_forward_endpoints,
    clear_forward_endpoints,
)

from app.services.admin.exceptions import (
    AdminServiceError,
    UnauthorizedError,
    InvalidFeeError,
    InvalidPrincipalError,
    InvalidForwardUrlError,
    RegistryMemberNotFoundError,
)

__all__ = [
    "require_admin",
    "parse_fee",
    "set_fee",
    "parse_principal_id",
    "add_notified",
    "remove_notified",
    "list_notified",
    "validate_forward_url",
    "add_forward_endpoint",
    "remove_forward_endpoint",
    "list_forward_endpoints",
    "clear_forward_endpoints",
    "AdminServiceError",
    "UnauthorizedError",
    "InvalidFeeError",
    "InvalidPrincipalError",
    "InvalidForwardUrlError",
    "RegistryMemberNotFoundError",
]
