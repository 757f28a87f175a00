"""
Read-only view of the identity service's user tables.

Account management lives elsewhere; the core only needs language, preferred
categories, status, role and email.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_locator.infrastructure.db.models import User, UserPreferredCategory
from event_locator.domain.user import UserProfile

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: int) -> UserProfile | None:
        user = self.db.get(User, user_id)
        if user is None:
            return None
        categories = self.db.scalars(
            select(UserPreferredCategory.category).where(UserPreferredCategory.user_id == user_id)
        ).all()
        return UserProfile(
            id=user.id,
            language=user.language or DEFAULT_LANGUAGE,
            preferred_categories=frozenset(categories),
            status=user.status,
            role=user.role,
            email=user.email,
        )

    def get_user_language(self, user_id: int) -> str:
        """Falls back to English when the user is unknown or the lookup fails."""
        try:
            language = self.db.scalar(select(User.language).where(User.id == user_id))
        except SQLAlchemyError:
            logger.exception("Language lookup failed for user %s", user_id)
            self.db.rollback()
            return DEFAULT_LANGUAGE
        return language or DEFAULT_LANGUAGE

    def get_user_email(self, user_id: int) -> str | None:
        return self.db.scalar(select(User.email).where(User.id == user_id))
