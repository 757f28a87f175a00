"""
Notification inbox API endpoints
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from event_locator.api.deps import get_current_user, get_db, get_inbox, get_locale, get_pipeline, require_admin
from event_locator.application.notification_engine import NotificationPipeline
from event_locator.application.notifications import NotificationInbox
from event_locator.domain.errors import MissingFieldsError
from event_locator.domain.user import AuthUser
from event_locator.i18n import render

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


class DirectNotificationRequest(BaseModel):
    userId: int | None = None
    type: str | None = None
    message: str | None = None
    eventId: int | None = None


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: AuthUser = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    result = inbox.list_for_user(user.id, page, limit)
    return {"success": True, "data": result.model_dump(mode="json", by_alias=True)}


@router.patch("/read-all")
def mark_all_as_read(
    user: AuthUser = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
    locale: str = Depends(get_locale),
):
    updated = inbox.mark_all_as_read(user.id)
    return {
        "success": True,
        "message": render("notifications.all_marked_read", locale),
        "data": {"updated": updated},
    }


@router.patch("/{notification_id}/read")
def mark_as_read(
    notification_id: int,
    user: AuthUser = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    notification = inbox.mark_as_read(notification_id, user.id)
    return {"success": True, "data": notification.model_dump(mode="json")}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    user: AuthUser = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
    locale: str = Depends(get_locale),
):
    inbox.delete(notification_id, user.id)
    return {"success": True, "message": render("notifications.deleted", locale)}


@router.post("/test", status_code=201)
def create_test_notification(
    body: DirectNotificationRequest,
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
    pipeline: NotificationPipeline = Depends(get_pipeline),
    locale: str = Depends(get_locale),
):
    """Admin only: push an arbitrary message through the pipeline to one user."""
    missing = [name for name in ("userId", "type", "message") if not getattr(body, name)]
    if missing:
        raise MissingFieldsError(missing)

    pipeline.send_direct_notification(db, body.userId, body.type, body.message, body.eventId)
    return {"success": True, "message": render("notifications.created", locale)}
