"""
Delivery channels.

The durable in-app row is written by the pipeline before any channel runs;
channels only carry an already-rendered message to the user. A channel may
raise or return False, the pipeline logs it and moves on to the next one.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pywebpush import WebPushException, webpush
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from event_locator.config import Settings
from event_locator.domain.notification import user_channel
from event_locator.infrastructure.db.models import PushSubscription
from event_locator.infrastructure.identity import UserDirectory
from event_locator.infrastructure.pubsub import RedisPubSub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryMessage:
    user_id: int
    type: str
    message: str
    subject: str
    event_id: int | None = None
    notification_id: int | None = None

    def to_payload(self) -> dict:
        return {
            "id": self.notification_id,
            "type": self.type,
            "message": self.message,
            "eventId": self.event_id,
        }


class DeliveryChannel(ABC):
    name: str = "channel"

    @abstractmethod
    def send(self, db: Session, message: DeliveryMessage) -> bool:
        """Deliver one message. True when the channel accepted it."""


class RealtimeChannel(DeliveryChannel):
    """Publishes on the user's personal pub/sub channel for live clients."""

    name = "realtime"

    def __init__(self, pubsub: RedisPubSub):
        self.pubsub = pubsub

    def send(self, db: Session, message: DeliveryMessage) -> bool:
        self.pubsub.publish(user_channel(message.user_id), message.to_payload())
        return True


def _vapid_private_key(raw_key: str) -> str:
    # .env may store PEM with literal \n or real newlines depending on quoting
    if "\\n" in raw_key:
        raw_key = raw_key.replace("\\n", "\n")
    # pywebpush accepts either a PEM string or a raw base64url key
    if "BEGIN" in raw_key:
        lines = [
            line.strip()
            for line in raw_key.strip().splitlines()
            if line.strip() and not line.strip().startswith("-----")
        ]
        raw_key = "".join(lines)
    return raw_key


class WebPushChannel(DeliveryChannel):
    """Browser push to every stored subscription of the user."""

    name = "webpush"

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.VAPID_PRIVATE_KEY and self.settings.VAPID_PUBLIC_KEY)

    def send(self, db: Session, message: DeliveryMessage) -> bool:
        if not self.enabled:
            return False
        subs = db.scalars(select(PushSubscription).where(PushSubscription.user_id == message.user_id)).all()
        if not subs:
            return False

        payload = {
            "title": message.subject,
            "body": message.message,
            "url": f"/events/{message.event_id}" if message.event_id else "/notifications",
        }
        sent = 0
        for sub in subs:
            if self._push(db, sub, payload):
                sent += 1
        return sent > 0

    def _push(self, db: Session, subscription: PushSubscription, payload: dict) -> bool:
        """Stale subscriptions (404/410) are removed."""
        subscription_info = {
            "endpoint": subscription.endpoint,
            "keys": {
                "p256dh": subscription.p256dh,
                "auth": subscription.auth,
            },
        }
        try:
            webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload, ensure_ascii=False),
                vapid_private_key=_vapid_private_key(self.settings.VAPID_PRIVATE_KEY),
                vapid_claims={"sub": self.settings.VAPID_MAILTO},
            )
            return True
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else 0
            if status_code in (404, 410):
                logger.info("Subscription expired (HTTP %d), removing: %s", status_code, subscription.endpoint[:60])
                db.execute(delete(PushSubscription).where(PushSubscription.id == subscription.id))
                db.commit()
            else:
                logger.error("WebPush error (HTTP %d): %s", status_code, e)
            return False


class EmailStubChannel(DeliveryChannel):
    """Stand-in for a mail provider: logs what would have been sent."""

    name = "email"

    def __init__(self, sender: str):
        self.sender = sender

    def send(self, db: Session, message: DeliveryMessage) -> bool:
        email = UserDirectory(db).get_user_email(message.user_id)
        if not email:
            logger.warning("No email found for user %s", message.user_id)
            return False
        logger.info(
            "[Email notification] From: %s To: %s Subject: %s Message: %s",
            self.sender,
            email,
            message.subject,
            message.message,
        )
        return True
