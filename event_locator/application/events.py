"""
Event use cases - create, read, update, delete, proximity search, lifecycle.

Every mutation follows the same order: store commit, cache invalidation for the
affected keys, then the notification pipeline. Pipeline problems are logged and
never fail the request that triggered them.
"""
import dataclasses
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_locator.application.notification_engine import NotificationPipeline
from event_locator.application.schemas import (
    DistanceResult,
    EventCreate,
    EventPage,
    EventRead,
    EventUpdate,
    GeoPoint,
    NearbyPage,
    Pagination,
)
from event_locator.config import Settings
from event_locator.domain.errors import (
    AuthorizationError,
    EventNotFoundError,
    MissingFieldsError,
    ValidationError,
)
from event_locator.domain.event import (
    CATEGORIES_CACHE_KEY,
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELLED,
    EVENT_STATUS_COMPLETED,
    REQUIRED_EVENT_FIELDS,
    EventChangeSummary,
    EventFilters,
    can_transition,
    ensure_utc,
    invalidation_patterns,
    item_cache_key,
    utcnow,
)
from event_locator.domain.geo import distance_between, km_to_miles, validate_coordinates
from event_locator.domain.notification import NotificationType
from event_locator.domain.user import AuthUser
from event_locator.i18n import render
from event_locator.infrastructure.cache import RedisCache
from event_locator.infrastructure.db.models import EventModel
from event_locator.infrastructure.stores.events import SpatialEventStore

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 100

# Field -> word used in "... has been updated: time, location changed"
_CHANGE_LABELS = {
    "title": "title",
    "description": "description",
    "start_time": "time",
    "end_time": "time",
    "address": "location",
    "longitude": "location",
    "latitude": "location",
    "category": "category",
    "ticket_price": "price",
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _same(old: Any, new: Any) -> bool:
    if isinstance(old, datetime) or isinstance(new, datetime):
        return ensure_utc(old) == ensure_utc(new)
    if isinstance(old, Decimal) or isinstance(new, Decimal):
        return Decimal(str(old)) == Decimal(str(new))
    return old == new


def _require_point(latitude: float, longitude: float, lat_name: str, lon_name: str) -> None:
    if not validate_coordinates(latitude, longitude):
        raise ValidationError("Coordinates out of range", [lat_name, lon_name])


def _changed_labels(before: dict[str, Any], fields: dict[str, Any]) -> list[str]:
    labels: list[str] = []
    for key, label in _CHANGE_LABELS.items():
        if key in fields and not _same(before.get(key), fields[key]) and label not in labels:
            labels.append(label)
    return labels


class EventService:
    def __init__(
        self,
        db: Session,
        cache: RedisCache,
        pipeline: NotificationPipeline,
        settings: Settings,
    ):
        self.db = db
        self.cache = cache
        self.pipeline = pipeline
        self.settings = settings
        self.store = SpatialEventStore(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _paged(self, filters: EventFilters) -> EventFilters:
        limit = filters.limit if filters.limit is not None else self.settings.DEFAULT_PAGE_LIMIT
        if limit < 1 or filters.offset < 0:
            raise ValidationError("limit must be positive and offset not negative", ["limit", "offset"])
        return dataclasses.replace(filters, limit=min(limit, MAX_PAGE_LIMIT))

    def list_events(self, filters: EventFilters) -> EventPage:
        filters = self._paged(filters)
        key = filters.list_cache_key()
        cached = self.cache.get(key)
        if cached is not None:
            return EventPage.model_validate(cached)

        events = self.store.get_all(filters)
        total = self.store.count(filters)
        page = EventPage(
            events=[EventRead.model_validate(e) for e in events],
            pagination=Pagination(
                total=total,
                limit=filters.limit,
                offset=filters.offset,
                has_more=total > filters.offset + filters.limit,
            ),
        )
        self.cache.set(key, page.model_dump(mode="json"), self.settings.CACHE_TTL_SECONDS)
        return page

    def get_event(self, event_id: int) -> EventRead:
        key = item_cache_key(event_id)
        cached = self.cache.get(key)
        if cached is not None:
            return EventRead.model_validate(cached)

        event = self.store.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        result = EventRead.model_validate(event)
        self.cache.set(key, result.model_dump(mode="json"), self.settings.CACHE_TTL_SECONDS)
        return result

    def find_nearby(
        self,
        latitude: float | None,
        longitude: float | None,
        radius_km: float | None = None,
        filters: EventFilters | None = None,
    ) -> NearbyPage:
        if latitude is None or longitude is None:
            raise ValidationError(
                "Latitude and longitude are required",
                ["latitude", "longitude"],
                message_key="events.coordinates_required",
            )
        _require_point(latitude, longitude, "latitude", "longitude")
        radius = self.settings.DEFAULT_NEARBY_RADIUS_KM if radius_km is None else radius_km
        if radius <= 0:
            raise ValidationError("radius must be positive", ["radius"])

        filters = self._paged(filters or EventFilters())
        key = filters.nearby_cache_key(latitude, longitude, radius)
        cached = self.cache.get(key)
        if cached is not None:
            return NearbyPage.model_validate(cached)

        matches = self.store.find_nearby(latitude, longitude, radius, filters)
        events = []
        for event, distance in matches:
            item = EventRead.model_validate(event)
            item.distance_km = distance
            events.append(item)
        page = NearbyPage(
            events=events,
            center=GeoPoint(latitude=latitude, longitude=longitude),
            radius=radius,
            count=len(events),
        )
        self.cache.set(key, page.model_dump(mode="json"), self.settings.CACHE_TTL_SECONDS)
        return page

    def get_categories(self) -> list[str]:
        cached = self.cache.get(CATEGORIES_CACHE_KEY)
        if cached is not None:
            return list(cached)
        categories = self.store.get_categories()
        self.cache.set(CATEGORIES_CACHE_KEY, categories, self.settings.CATEGORIES_CACHE_TTL_SECONDS)
        return categories

    @staticmethod
    def calculate_distance(
        lat1: float | None,
        lon1: float | None,
        lat2: float | None,
        lon2: float | None,
    ) -> DistanceResult:
        missing = [n for n, v in (("lat1", lat1), ("lon1", lon1), ("lat2", lat2), ("lon2", lon2)) if v is None]
        if missing:
            raise ValidationError(
                "All coordinates (lat1, lon1, lat2, lon2) are required",
                missing,
                message_key="events.all_coordinates_required",
            )
        _require_point(lat1, lon1, "lat1", "lon1")
        _require_point(lat2, lon2, "lat2", "lon2")
        km = distance_between(lat1, lon1, lat2, lon2)
        return DistanceResult(distance_km=km, distance_miles=km_to_miles(km))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_event(self, data: EventCreate, actor: AuthUser) -> EventRead:
        fields = data.supplied()
        missing = [name for name in REQUIRED_EVENT_FIELDS if _is_blank(fields.get(name))]
        if missing:
            raise MissingFieldsError(missing)
        self._check_times(fields["start_time"], fields["end_time"])
        # new events are always active; status only moves through update/delete
        fields.pop("status", None)
        fields["created_by"] = actor.id

        event = self.store.create(fields)
        logger.info("Event %s created by user %s", event.id, actor.id)

        self._invalidate(event.id, {event.category})
        self._schedule_reminder(event)
        return EventRead.model_validate(event)

    def update_event(self, event_id: int, data: EventUpdate, actor: AuthUser, locale: str | None = None) -> EventRead:
        fields = data.supplied()
        nulled = [name for name in REQUIRED_EVENT_FIELDS if name in fields and _is_blank(fields[name])]
        if nulled:
            raise ValidationError(f"Fields cannot be empty: {', '.join(nulled)}", nulled)
        fields = {k: v for k, v in fields.items() if v is not None}
        if ("longitude" in fields) != ("latitude" in fields):
            raise ValidationError("longitude and latitude must be updated together", ["longitude", "latitude"])

        existing = self.store.get_by_id(event_id)
        if existing is None:
            raise EventNotFoundError(event_id)
        if not actor.can_manage(existing.created_by):
            raise AuthorizationError("Only the creator or an admin can modify this event")

        new_status = fields.get("status", existing.status)
        if not can_transition(existing.status, new_status):
            raise ValidationError(
                f"Event status cannot change from {existing.status} to {new_status}",
                ["status"],
                message_key="events.invalid_transition",
                params={"current": existing.status, "new": new_status},
            )
        self._check_times(fields.get("start_time", existing.start_time), fields.get("end_time", existing.end_time))

        before = {key: getattr(existing, key) for key in (*_CHANGE_LABELS, "status")}
        changed = _changed_labels(before, fields)
        start_moved = "start_time" in fields and not _same(before["start_time"], fields["start_time"])

        updated = self.store.update(event_id, fields)
        if updated is None:
            raise EventNotFoundError(event_id)

        self._invalidate(event_id, {before["category"], updated.category})

        if updated.status != before["status"]:
            self._after_lifecycle_change(updated, updated.status, actor, locale)
        elif changed:
            changes = ", ".join(changed)
            self.pipeline.publish_event_update(
                EventChangeSummary(event_id=updated.id, title=updated.title, category=updated.category, changes=changes)
            )
            self._notify_actor(
                actor,
                NotificationType.EVENT_UPDATE,
                render("events.creator_update", locale, {"title": updated.title, "changes": changes}),
                updated.id,
            )
            if start_moved:
                self._schedule_reminder(updated)

        return EventRead.model_validate(updated)

    def delete_event(self, event_id: int, actor: AuthUser, locale: str | None = None) -> None:
        """Soft delete. A second call raises EventNotFoundError."""
        existing = self.store.get_by_id(event_id)
        if existing is None:
            raise EventNotFoundError(event_id)
        if not actor.can_manage(existing.created_by):
            raise AuthorizationError("Only the creator or an admin can delete this event")
        if existing.status != EVENT_STATUS_ACTIVE:
            raise ValidationError(
                f"Event status cannot change from {existing.status} to {EVENT_STATUS_CANCELLED}",
                ["status"],
                message_key="events.invalid_transition",
                params={"current": existing.status, "new": EVENT_STATUS_CANCELLED},
            )
        category = existing.category

        if not self.store.delete(event_id):
            raise EventNotFoundError(event_id)
        logger.info("Event %s cancelled by user %s", event_id, actor.id)

        self._invalidate(event_id, {category})
        self._after_lifecycle_change(existing, EVENT_STATUS_CANCELLED, actor, locale)

    def complete_finished_events(self, now: datetime | None = None) -> int:
        """Move active events whose end_time passed to completed. Returns how many moved."""
        now = now or utcnow()
        completed = 0
        for event in self.store.finished_before(now):
            if not self.store.complete(event.id):
                continue
            completed += 1
            self._invalidate(event.id, {event.category})
            self._after_lifecycle_change(event, EVENT_STATUS_COMPLETED)
        if completed:
            logger.info("Completed %d finished event(s)", completed)
        return completed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_times(start: datetime, end: datetime) -> None:
        if ensure_utc(end) <= ensure_utc(start):
            raise ValidationError("end_time must be after start_time", ["end_time"])

    def _invalidate(self, event_id: int, categories: set[str]) -> None:
        self.cache.delete(item_cache_key(event_id))
        self.cache.delete(CATEGORIES_CACHE_KEY)
        for pattern in invalidation_patterns(categories):
            self.cache.delete_by_pattern(pattern)

    def _after_lifecycle_change(
        self,
        event: EventModel,
        status: str,
        actor: AuthUser | None = None,
        locale: str | None = None,
    ) -> None:
        try:
            self.pipeline.cancel_event_reminders(self.db, event.id)
        except SQLAlchemyError:
            logger.exception("Cancelling reminders for event %s failed", event.id)
            self.db.rollback()

        self.pipeline.publish_event_update(
            EventChangeSummary(event_id=event.id, title=event.title, category=event.category, changes=status)
        )
        if actor is not None and status == EVENT_STATUS_CANCELLED:
            self._notify_actor(
                actor,
                NotificationType.EVENT_DELETE,
                render("events.creator_delete", locale, {"title": event.title}),
                event.id,
            )

    def _notify_actor(self, actor: AuthUser, type_: NotificationType, message: str, event_id: int) -> None:
        try:
            self.pipeline.send_direct_notification(self.db, actor.id, type_.value, message, event_id)
        except Exception:
            logger.exception("Direct notification to user %s failed", actor.id)
            self.db.rollback()

    def _schedule_reminder(self, event: EventModel) -> None:
        try:
            self.pipeline.schedule_event_reminder(self.db, event, self.settings.REMINDER_LEAD_TIME_MS)
        except SQLAlchemyError:
            logger.exception("Scheduling reminder for event %s failed", event.id)
            self.db.rollback()
