"""Notification and reminder vocabulary."""
from enum import Enum


class NotificationType(str, Enum):
    EVENT_UPDATE = "EVENT_UPDATE"
    EVENT_REMINDER = "EVENT_REMINDER"
    EVENT_DELETE = "EVENT_DELETE"
    EVENT_COMPLETED = "EVENT_COMPLETED"
    SYSTEM = "SYSTEM"


REMINDER_STATUS_PENDING = "pending"
REMINDER_STATUS_FIRED = "fired"
REMINDER_STATUS_CANCELLED = "cancelled"

# Pub/sub channels. Broadcast: every instance receives every message.
EVENT_UPDATES_CHANNEL = "event-updates"
EVENT_REMINDERS_CHANNEL = "event-reminders"


def user_channel(user_id: int) -> str:
    return f"user-{user_id}-notifications"


def update_dedup_key(update_id: str) -> str:
    return f"update:{update_id}"


def reminder_dedup_key(reminder_id: int) -> str:
    return f"reminder:{reminder_id}"
