"""Notification inbox use cases - listing and read state, always scoped to the owner."""
import logging

from sqlalchemy.orm import Session

from event_locator.application.schemas import NotificationList, NotificationPagination, NotificationRead
from event_locator.domain.errors import NotificationNotFoundError, ValidationError
from event_locator.infrastructure.stores.notifications import NotificationStore

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 100


class NotificationInbox:
    def __init__(self, db: Session):
        self.db = db
        self.store = NotificationStore(db)

    def list_for_user(self, user_id: int, page: int = 1, limit: int = 10) -> NotificationList:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive", ["page", "limit"])
        limit = min(limit, MAX_PAGE_LIMIT)
        offset = (page - 1) * limit

        rows = self.store.list_for_user(user_id, limit, offset)
        total = self.store.count_for_user(user_id)
        return NotificationList(
            notifications=[NotificationRead.model_validate(row) for row in rows],
            unread_count=self.store.unread_count(user_id),
            pagination=NotificationPagination(
                page=page,
                limit=limit,
                total=total,
                has_more=offset + len(rows) < total,
            ),
        )

    def unread_count(self, user_id: int) -> int:
        return self.store.unread_count(user_id)

    def mark_as_read(self, notification_id: int, user_id: int) -> NotificationRead:
        notif = self.store.mark_as_read(notification_id, user_id)
        if notif is None:
            raise NotificationNotFoundError(notification_id)
        return NotificationRead.model_validate(notif)

    def mark_all_as_read(self, user_id: int) -> int:
        updated = self.store.mark_all_as_read(user_id)
        logger.info("Marked %d notification(s) read for user %s", updated, user_id)
        return updated

    def delete(self, notification_id: int, user_id: int) -> None:
        if not self.store.delete(notification_id, user_id):
            raise NotificationNotFoundError(notification_id)
