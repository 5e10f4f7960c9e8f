"""
Notification Service Layer

This package provides payment alert fan-out to subscribed users and the administrator.
"""

from app.services.notifications.service import (
    FanOutReport,
    build_user_alert,
    build_admin_alert,
    resolve_audience,
    notify_payment,
)

__all__ = [
    "FanOutReport",
    "build_user_alert",
    "build_admin_alert",
    "resolve_audience",
    "notify_payment",
]
