"""
IPN Service Layer

This package provides parsing, optional verification and ingestion of inbound
payment notifications.
"""

from app.services.ipn.service import (
    InboundNotification,
    IngestOutcome,
    IngestResult,
    parse_notification,
    verify_notification,
    ingest_notification,
    handle_ipn,
    drain_background_tasks,
)

from app.services.ipn.exceptions import (
    IpnServiceError,
    InvalidNotificationError,
    VerificationFailedError,
)

__all__ = [
    "InboundNotification",
    "IngestOutcome",
    "IngestResult",
    "parse_notification",
    "verify_notification",
    "ingest_notification",
    "handle_ipn",
    "drain_background_tasks",
    "IpnServiceError",
    "InvalidNotificationError",
    "VerificationFailedError",
]
