"""
Forwarding Service Domain Exceptions
"""
from typing import Optional


class ForwardingServiceError(Exception):
    """Base exception for IPN forwarding errors"""
    pass


class ForwardDeliveryFailed(ForwardingServiceError):
    """Raised for a single endpoint delivery failure (network, timeout, non-2xx)"""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Forward to {url} failed: {reason}")
