"""Notification utilities - booking event delivery."""

from src.staffing.core.notifications.envelope import EventEnvelope
from src.staffing.core.notifications.notifier import (
    LoggingNotifier,
    Notifier,
    NotifierUnavailable,
    RedisStreamNotifier,
    get_notifier,
)

__all__ = [
    "EventEnvelope",
    "LoggingNotifier",
    "Notifier",
    "NotifierUnavailable",
    "RedisStreamNotifier",
    "get_notifier",
]
