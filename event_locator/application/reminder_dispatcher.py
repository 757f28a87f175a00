"""
Reminder dispatcher - fires durable reminders whose time has come.

Called by the scheduler every REMINDER_SWEEP_SECONDS. Safe to run on every
instance at once: each reminder is claimed by exactly one of them.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from event_locator.application.notification_engine import NotificationPipeline
from event_locator.domain.event import utcnow
from event_locator.infrastructure.stores.notifications import ReminderStore

logger = logging.getLogger(__name__)


def dispatch_due_reminders(db: Session, pipeline: NotificationPipeline, now: datetime | None = None) -> int:
    """
    Fire every pending reminder with fire_at <= now.

    Returns the number of reminders this call published.
    """
    now = now or utcnow()
    fired = 0
    for reminder in ReminderStore(db).due(now):
        try:
            if pipeline.fire_reminder(db, reminder, now=now):
                fired += 1
        except Exception:
            logger.exception("Firing reminder %s failed", reminder.id)
            db.rollback()
    if fired:
        logger.info("Reminder sweep fired %d reminder(s)", fired)
    return fired
