"""
FastAPI dependencies (container, DB session, authentication, locale, services)
"""
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from event_locator.application.events import EventService
from event_locator.application.notification_engine import NotificationPipeline
from event_locator.application.notifications import NotificationInbox
from event_locator.container import Container
from event_locator.domain.errors import AuthenticationError, AuthorizationError
from event_locator.domain.user import AuthUser
from event_locator.i18n import resolve_locale
from event_locator.infrastructure.identity import UserDirectory


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_db(container: Container = Depends(get_container)) -> Iterator[Session]:
    """One session per request, always closed."""
    db = container.session_factory()()
    try:
        yield db
    finally:
        db.close()


def get_locale(request: Request) -> str:
    return resolve_locale(request.headers.get("accept-language"))


def get_current_user(request: Request, db: Session = Depends(get_db)) -> AuthUser:
    """
    Current user from the signed session cookie.

    Raises:
        AuthenticationError: no session or unknown user (401)
        AuthorizationError: account suspended or deleted (403)
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise AuthenticationError("Not authenticated")

    profile = UserDirectory(db).get_user_by_id(int(user_id))
    if profile is None:
        raise AuthenticationError("User not found")

    user = AuthUser(id=profile.id, role=profile.role, status=profile.status)
    if not user.is_active:
        raise AuthorizationError("Account is not active", message_key="auth.account_inactive")
    return user


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        raise AuthorizationError("Admin role required")
    return user


def get_pipeline(container: Container = Depends(get_container)) -> NotificationPipeline:
    return container.pipeline()


def get_event_service(
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> EventService:
    return EventService(db, container.cache(), container.pipeline(), container.settings())


def get_inbox(db: Session = Depends(get_db)) -> NotificationInbox:
    return NotificationInbox(db)
