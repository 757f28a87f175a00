"""
Web Push subscription API endpoints.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from event_locator.api.deps import get_current_user, get_db, get_locale
from event_locator.domain.user import AuthUser
from event_locator.i18n import render
from event_locator.infrastructure.db.models import PushSubscription

router = APIRouter(prefix="/api/push", tags=["push"])


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class SubscribeRequest(BaseModel):
    endpoint: str
    keys: PushKeys


class UnsubscribeRequest(BaseModel):
    endpoint: str


@router.post("/subscribe")
def subscribe(
    body: SubscribeRequest,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    existing = db.scalars(select(PushSubscription).where(PushSubscription.endpoint == body.endpoint)).first()

    if existing:
        # same browser, possibly a different account now
        existing.user_id = user.id
        existing.p256dh = body.keys.p256dh
        existing.auth = body.keys.auth
    else:
        db.add(
            PushSubscription(
                user_id=user.id,
                endpoint=body.endpoint,
                p256dh=body.keys.p256dh,
                auth=body.keys.auth,
            )
        )

    db.commit()
    return {"success": True, "message": render("push.subscribed", locale)}


@router.delete("/unsubscribe")
def unsubscribe(
    body: UnsubscribeRequest,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    result = db.execute(
        delete(PushSubscription).where(
            PushSubscription.endpoint == body.endpoint,
            PushSubscription.user_id == user.id,
        )
    )
    db.commit()
    return {
        "success": True,
        "message": render("push.unsubscribed", locale),
        "data": {"deleted": result.rowcount},
    }
