"""
Notification and reminder persistence.

Rows are only created by the notification pipeline. Every read and read-state
change is scoped to the owning user, so someone else's notification id behaves
exactly like a missing one.
"""
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_locator.domain.event import ensure_utc, utcnow
from event_locator.domain.notification import (
    REMINDER_STATUS_CANCELLED,
    REMINDER_STATUS_FIRED,
    REMINDER_STATUS_PENDING,
)
from event_locator.infrastructure.db.models import EventReminderModel, NotificationModel


class DuplicateNotification(Exception):
    """Another instance already persisted this fan-out message for the user."""


class NotificationStore:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: int,
        type: str,
        message: str,
        event_id: int | None = None,
        dedup_key: str | None = None,
    ) -> NotificationModel:
        """
        Insert one notification.

        Raises:
            DuplicateNotification: if (user_id, dedup_key) already exists
        """
        now = utcnow()
        notif = NotificationModel(
            user_id=user_id,
            type=type,
            message=message,
            event_id=event_id,
            is_read=False,
            dedup_key=dedup_key,
            created_at=now,
            updated_at=now,
        )
        self.db.add(notif)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateNotification(dedup_key) from exc
        self.db.refresh(notif)
        return notif

    def list_for_user(self, user_id: int, limit: int, offset: int) -> list[NotificationModel]:
        """Newest first; id breaks created_at ties so creation order is preserved."""
        return list(
            self.db.scalars(
                select(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .limit(limit)
                .offset(offset)
            ).all()
        )

    def count_for_user(self, user_id: int) -> int:
        return int(
            self.db.scalar(select(func.count(NotificationModel.id)).where(NotificationModel.user_id == user_id))
            or 0
        )

    def unread_count(self, user_id: int) -> int:
        return int(
            self.db.scalar(
                select(func.count(NotificationModel.id)).where(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
            )
            or 0
        )

    def get_for_user(self, notification_id: int, user_id: int) -> NotificationModel | None:
        return self.db.scalars(
            select(NotificationModel).where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
        ).first()

    def mark_as_read(self, notification_id: int, user_id: int) -> NotificationModel | None:
        notif = self.get_for_user(notification_id, user_id)
        if notif is None:
            return None
        if not notif.is_read:
            notif.is_read = True
            notif.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(notif)
        return notif

    def mark_all_as_read(self, user_id: int) -> int:
        result = self.db.execute(
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .values(is_read=True, updated_at=utcnow())
        )
        self.db.commit()
        return result.rowcount

    def delete(self, notification_id: int, user_id: int) -> bool:
        notif = self.get_for_user(notification_id, user_id)
        if notif is None:
            return False
        self.db.delete(notif)
        self.db.commit()
        return True


class ReminderStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, event_id: int, fire_at: datetime, lead_time_ms: int, recipients: list[int]) -> EventReminderModel:
        reminder = EventReminderModel(
            event_id=event_id,
            fire_at=ensure_utc(fire_at),
            lead_time_ms=lead_time_ms,
            recipients=list(recipients),
            status=REMINDER_STATUS_PENDING,
            created_at=utcnow(),
        )
        self.db.add(reminder)
        self.db.commit()
        self.db.refresh(reminder)
        return reminder

    def cancel_pending(self, event_id: int) -> int:
        result = self.db.execute(
            update(EventReminderModel)
            .where(
                EventReminderModel.event_id == event_id,
                EventReminderModel.status == REMINDER_STATUS_PENDING,
            )
            .values(status=REMINDER_STATUS_CANCELLED)
        )
        self.db.commit()
        return result.rowcount

    def claim(self, reminder_id: int, now: datetime) -> bool:
        """pending -> fired. Exactly one caller wins, whichever instance it runs on."""
        result = self.db.execute(
            update(EventReminderModel)
            .where(
                EventReminderModel.id == reminder_id,
                EventReminderModel.status == REMINDER_STATUS_PENDING,
            )
            .values(status=REMINDER_STATUS_FIRED, fired_at=ensure_utc(now))
        )
        self.db.commit()
        return result.rowcount > 0

    def due(self, now: datetime, limit: int = 500) -> list[EventReminderModel]:
        return list(
            self.db.scalars(
                select(EventReminderModel)
                .where(
                    EventReminderModel.status == REMINDER_STATUS_PENDING,
                    EventReminderModel.fire_at <= ensure_utc(now),
                )
                .order_by(EventReminderModel.fire_at.asc(), EventReminderModel.id.asc())
                .limit(limit)
            ).all()
        )

    def has_fired(self, event_id: int) -> bool:
        return (
            self.db.scalar(
                select(EventReminderModel.id)
                .where(
                    EventReminderModel.event_id == event_id,
                    EventReminderModel.status == REMINDER_STATUS_FIRED,
                )
                .limit(1)
            )
            is not None
        )

    def for_event(self, event_id: int) -> list[EventReminderModel]:
        return list(
            self.db.scalars(
                select(EventReminderModel)
                .where(EventReminderModel.event_id == event_id)
                .order_by(EventReminderModel.id.asc())
            ).all()
        )
