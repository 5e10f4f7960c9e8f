"""
Admin Service Domain Exceptions

All exceptions raised by the admin service layer.
"""


class AdminServiceError(Exception):
    """Base exception for admin service errors"""
    pass


class UnauthorizedError(AdminServiceError):
    """Raised when a non-administrator invokes an administrator-only operation"""
    pass


class InvalidFeeError(AdminServiceError):
    """Raised when the fee is not a number within 0..100"""
    pass


class InvalidPrincipalError(AdminServiceError):
    """Raised when a principal id argument is not a valid Telegram id"""
    pass


class InvalidForwardUrlError(AdminServiceError):
    """Raised when a forward endpoint is not an absolute http(s) URL"""
    pass


class RegistryMemberNotFoundError(AdminServiceError):
    """Raised when removing a member that is not in the registry"""

    def __init__(self, member: str):
        self.member = member
        super().__init__(f"Not found: {member}")
