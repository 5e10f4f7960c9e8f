"""
IPN Forwarding Service

Best-effort replay of inbound notifications to third-party endpoints.
"""

from app.services.forwarding.service import (
    ForwardAttempt,
    ForwardReport,
    encode_payload,
    deliver,
    forward_notification,
)

from app.services.forwarding.exceptions import (
    ForwardingServiceError,
    ForwardDeliveryFailed,
)

__all__ = [
    "ForwardAttempt",
    "ForwardReport",
    "encode_payload",
    "deliver",
    "forward_notification",
    "ForwardingServiceError",
    "ForwardDeliveryFailed",
]
