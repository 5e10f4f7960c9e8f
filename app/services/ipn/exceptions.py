"""
IPN Service Domain Exceptions
"""


class IpnServiceError(Exception):
    """Base exception for inbound payment notification errors"""
    pass


class InvalidNotificationError(IpnServiceError):
    """Raised when the inbound payload is empty or not a set of form fields"""
    pass


class VerificationFailedError(IpnServiceError):
    """Raised when the processor does not confirm the notification as VERIFIED"""
    pass
