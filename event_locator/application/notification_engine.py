"""
Notification pipeline - pub/sub fan-out, durable reminders, per-recipient delivery.

Architecture:
- publish_event_update(): mutation summary -> "event-updates" (broadcast)
- schedule_event_reminder(): durable row in event_reminders; fires immediately
  when the fire time has already passed, otherwise the reminder sweep picks it up
- fire_reminder(): pending -> fired claim, then "event-reminders"
- handle_event_update() / handle_event_reminder(): subscriber callbacks. Per
  recipient: render in the user's language, persist one row, try every channel

Stages are independent: a persistence failure does not stop channel dispatch,
a channel failure does not stop the next channel, one recipient never blocks
another. The (user_id, dedup_key) unique index lets several instances receive
the same broadcast while only the instance whose insert wins dispatches.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_locator.application.delivery import DeliveryChannel, DeliveryMessage
from event_locator.application.interest import InterestResolver
from event_locator.domain.errors import DependencyUnavailableError, ValidationError
from event_locator.domain.event import (
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELLED,
    EVENT_STATUS_COMPLETED,
    EventChangeSummary,
    ensure_utc,
    utcnow,
)
from event_locator.domain.notification import (
    EVENT_REMINDERS_CHANNEL,
    EVENT_UPDATES_CHANNEL,
    NotificationType,
    reminder_dedup_key,
    update_dedup_key,
)
from event_locator.i18n import render
from event_locator.infrastructure.db.models import EventModel, EventReminderModel
from event_locator.infrastructure.identity import UserDirectory
from event_locator.infrastructure.pubsub import RedisPubSub
from event_locator.infrastructure.stores.notifications import (
    DuplicateNotification,
    NotificationStore,
    ReminderStore,
)

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_LEAD_TIME_MS = 24 * 60 * 60 * 1000

# changes value -> (notification type, message template)
_LIFECYCLE_TEMPLATES = {
    EVENT_STATUS_CANCELLED: (NotificationType.EVENT_DELETE, "events.cancelled_notice"),
    EVENT_STATUS_COMPLETED: (NotificationType.EVENT_COMPLETED, "events.completed_notice"),
}


def format_event_time(value: datetime) -> str:
    return ensure_utc(value).strftime("%Y-%m-%d %H:%M UTC")


def _subject(type_: str, language: str, title: str) -> str:
    return render(f"email.{type_.lower()}.subject", language, {"event": title})


class NotificationPipeline:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        pubsub: RedisPubSub,
        channels: Sequence[DeliveryChannel],
        lead_time_ms: int = DEFAULT_REMINDER_LEAD_TIME_MS,
    ):
        self.session_factory = session_factory
        self.pubsub = pubsub
        self.channels = list(channels)
        self.lead_time_ms = lead_time_ms

    # ------------------------------------------------------------------
    # Publishing side
    # ------------------------------------------------------------------

    def publish_event_update(self, summary: EventChangeSummary) -> bool:
        """Broadcast a mutation. False (logged) when the bus is unavailable."""
        payload = {"update_id": uuid.uuid4().hex, **summary.to_payload()}
        try:
            self.pubsub.publish(EVENT_UPDATES_CHANNEL, payload)
        except DependencyUnavailableError as exc:
            logger.warning("Could not publish update for event %s: %s", summary.event_id, exc)
            return False
        return True

    def schedule_event_reminder(
        self,
        db: Session,
        event: EventModel,
        lead_time_ms: int | None = None,
    ) -> EventReminderModel | None:
        """
        Replace the event's pending reminder with a new one.

        Recipients are resolved now and frozen into the row. Returns None when
        nobody is interested, or when the new fire time has passed and the
        event was already reminded.
        """
        lead = self.lead_time_ms if lead_time_ms is None else lead_time_ms
        reminders = ReminderStore(db)
        superseded = reminders.cancel_pending(event.id)
        if superseded:
            logger.info("Superseded %d pending reminder(s) for event %s", superseded, event.id)

        recipients = InterestResolver(db).find_interested_users(event.id, event.category)
        if not recipients:
            return None

        fire_at = ensure_utc(event.start_time) - timedelta(milliseconds=lead)
        if fire_at <= utcnow() and reminders.has_fired(event.id):
            logger.info("Event %s already reminded, not firing again", event.id)
            return None
        reminder = reminders.create(event.id, fire_at, lead, [r.user_id for r in recipients])

        if fire_at <= utcnow():
            self.fire_reminder(db, reminder)
        return reminder

    def cancel_event_reminders(self, db: Session, event_id: int) -> int:
        return ReminderStore(db).cancel_pending(event_id)

    def fire_reminder(self, db: Session, reminder: EventReminderModel, now: datetime | None = None) -> bool:
        """Claim the reminder (one winner across instances) and publish it."""
        now = now or utcnow()
        if not ReminderStore(db).claim(reminder.id, now):
            return False

        event = db.get(EventModel, reminder.event_id)
        if event is None or event.status != EVENT_STATUS_ACTIVE:
            logger.info("Reminder %s dropped: event %s is no longer active", reminder.id, reminder.event_id)
            return False

        payload = {
            "reminder_id": reminder.id,
            "id": event.id,
            "title": event.title,
            "start_time": ensure_utc(event.start_time).isoformat(),
            "user_ids": list(reminder.recipients or []),
        }
        try:
            self.pubsub.publish(EVENT_REMINDERS_CHANNEL, payload)
        except DependencyUnavailableError as exc:
            logger.warning("Could not publish reminder %s: %s", reminder.id, exc)
            return False
        return True

    def send_direct_notification(
        self,
        db: Session,
        user_id: int,
        type: str,
        message: str,
        event_id: int | None = None,
    ) -> bool:
        """Persist and dispatch one already-rendered message to one user."""
        try:
            type_ = NotificationType(type).value
        except ValueError as exc:
            raise ValidationError(f"Unknown notification type: {type}", ["type"]) from exc

        language = UserDirectory(db).get_user_language(user_id)
        title = ""
        if event_id is not None:
            event = db.get(EventModel, event_id)
            title = event.title if event is not None else ""
        return self._deliver(
            db,
            user_id=user_id,
            type_=type_,
            text=message,
            subject=_subject(type_, language, title),
            event_id=event_id,
        )

    # ------------------------------------------------------------------
    # Subscriber side
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.pubsub.subscribe(EVENT_UPDATES_CHANNEL, self.handle_event_update)
        self.pubsub.subscribe(EVENT_REMINDERS_CHANNEL, self.handle_event_reminder)
        logger.info("Notification subscribers registered")

    def handle_event_update(self, payload: dict[str, Any]) -> int:
        """Returns the number of recipients this instance delivered to."""
        event_id = payload.get("id")
        title = payload.get("title", "")
        changes = payload.get("changes", "")
        update_id = payload.get("update_id")
        type_, template = _LIFECYCLE_TEMPLATES.get(changes, (NotificationType.EVENT_UPDATE, "events.changed"))

        delivered = 0
        with self.session_factory() as db:
            recipients = InterestResolver(db).find_interested_users(event_id, payload.get("category"))
            for recipient in recipients:
                try:
                    text = render(template, recipient.language, {"event": title, "changes": changes})
                    if self._deliver(
                        db,
                        user_id=recipient.user_id,
                        type_=type_.value,
                        text=text,
                        subject=_subject(type_.value, recipient.language, title),
                        event_id=event_id,
                        dedup_key=update_dedup_key(update_id) if update_id else None,
                    ):
                        delivered += 1
                except Exception:
                    logger.exception("Update delivery to user %s failed", recipient.user_id)
                    db.rollback()
        return delivered

    def handle_event_reminder(self, payload: dict[str, Any]) -> int:
        event_id = payload.get("id")
        title = payload.get("title", "")
        reminder_id = payload.get("reminder_id")
        start_time = payload.get("start_time")
        when = format_event_time(datetime.fromisoformat(start_time)) if start_time else ""
        type_ = NotificationType.EVENT_REMINDER.value

        delivered = 0
        with self.session_factory() as db:
            users = UserDirectory(db)
            for user_id in payload.get("user_ids", []):
                try:
                    language = users.get_user_language(user_id)
                    text = render("events.reminder", language, {"event": title, "time": when})
                    if self._deliver(
                        db,
                        user_id=user_id,
                        type_=type_,
                        text=text,
                        subject=_subject(type_, language, title),
                        event_id=event_id,
                        dedup_key=reminder_dedup_key(reminder_id) if reminder_id is not None else None,
                    ):
                        delivered += 1
                except Exception:
                    logger.exception("Reminder delivery to user %s failed", user_id)
                    db.rollback()
        return delivered

    # ------------------------------------------------------------------
    # Per-recipient stages
    # ------------------------------------------------------------------

    def _deliver(
        self,
        db: Session,
        user_id: int,
        type_: str,
        text: str,
        subject: str,
        event_id: int | None = None,
        dedup_key: str | None = None,
    ) -> bool:
        """Persist, then dispatch. False only when another instance owns the delivery."""
        notification_id = None
        try:
            notif = NotificationStore(db).create(user_id, type_, text, event_id=event_id, dedup_key=dedup_key)
            notification_id = notif.id
        except DuplicateNotification:
            logger.debug("Notification %s for user %s already delivered elsewhere", dedup_key, user_id)
            return False
        except SQLAlchemyError:
            logger.exception("Persisting notification for user %s failed", user_id)
            db.rollback()

        message = DeliveryMessage(
            user_id=user_id,
            type=type_,
            message=text,
            subject=subject,
            event_id=event_id,
            notification_id=notification_id,
        )
        for channel in self.channels:
            try:
                channel.send(db, message)
            except Exception:
                logger.exception("Channel %s failed for user %s", channel.name, user_id)
                db.rollback()
        return True
