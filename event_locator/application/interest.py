"""
Interest resolver - who should hear about an event.

A user is interested when they are active and at least one of these holds:
the event's category is among their preferred categories, they registered for
the event, or they created it.
"""
import logging

from sqlalchemy import exists, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_locator.domain.user import USER_STATUS_ACTIVE, Recipient
from event_locator.infrastructure.db.models import (
    EventModel,
    EventRegistration,
    User,
    UserPreferredCategory,
)

logger = logging.getLogger(__name__)


class InterestResolver:
    def __init__(self, db: Session):
        self.db = db

    def find_interested_users(self, event_id: int, category: str | None) -> list[Recipient]:
        """Distinct recipients ordered by user id. Empty on query failure."""
        prefers_category = exists().where(
            UserPreferredCategory.user_id == User.id,
            UserPreferredCategory.category == category,
        )
        registered = exists().where(
            EventRegistration.user_id == User.id,
            EventRegistration.event_id == event_id,
        )
        created = exists().where(
            EventModel.id == event_id,
            EventModel.created_by == User.id,
        )

        stmt = (
            select(User.id, User.language)
            .where(User.status == USER_STATUS_ACTIVE, or_(prefers_category, registered, created))
            .order_by(User.id.asc())
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError:
            logger.exception("Interest lookup failed for event %s", event_id)
            self.db.rollback()
            return []

        return [Recipient(user_id=row.id, language=row.language or "en") for row in rows]
