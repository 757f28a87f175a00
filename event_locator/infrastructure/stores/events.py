"""
Spatial event store - persistence and proximity queries for events.

Cancelled events are invisible to every read. Proximity search narrows rows with
a lat/lon bounding box in SQL (served by ix_events_lat_lon) and then applies the
exact great-circle distance in Python, the same function exposed for direct
point-to-point queries.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from event_locator.domain.event import (
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELLED,
    EVENT_STATUS_COMPLETED,
    EventFilters,
    ensure_utc,
    utcnow,
)
from event_locator.domain.geo import bounding_box, distance_between
from event_locator.infrastructure.db.models import EventModel

_PATCHABLE_COLUMNS = (
    "title",
    "description",
    "address",
    "start_time",
    "end_time",
    "category",
    "ticket_price",
    "status",
)


def _filter_clauses(filters: EventFilters) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = [EventModel.status != EVENT_STATUS_CANCELLED]
    if filters.name:
        clauses.append(EventModel.title.icontains(filters.name, autoescape=True))
    if filters.category:
        clauses.append(EventModel.category == filters.category)
    if filters.start_date:
        clauses.append(EventModel.start_time >= filters.start_date)
    if filters.end_date:
        clauses.append(EventModel.end_time <= filters.end_date)
    if filters.address:
        clauses.append(EventModel.address.icontains(filters.address, autoescape=True))
    if filters.created_by is not None:
        clauses.append(EventModel.created_by == filters.created_by)
    return clauses


class SpatialEventStore:
    """Event persistence backed by SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, fields: dict[str, Any]) -> EventModel:
        """Insert an active event. Fields are expected to be validated already."""
        now = utcnow()
        event = EventModel(
            title=fields["title"],
            description=fields.get("description") or "",
            longitude=float(fields["longitude"]),
            latitude=float(fields["latitude"]),
            address=fields["address"],
            start_time=ensure_utc(fields["start_time"]),
            end_time=ensure_utc(fields["end_time"]),
            category=fields["category"],
            created_by=fields.get("created_by"),
            ticket_price=fields.get("ticket_price") or 0,
            status=EVENT_STATUS_ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def update(self, event_id: int, fields: dict[str, Any]) -> EventModel | None:
        """
        Patch only the supplied fields of a non-cancelled event.

        The point is recomputed only when longitude and latitude arrive together.
        updated_at always moves forward.
        """
        event = self._get_visible(event_id)
        if event is None:
            return None

        for key in _PATCHABLE_COLUMNS:
            if key in fields:
                value = fields[key]
                if key in ("start_time", "end_time"):
                    value = ensure_utc(value)
                setattr(event, key, value)

        if fields.get("longitude") is not None and fields.get("latitude") is not None:
            event.longitude = float(fields["longitude"])
            event.latitude = float(fields["latitude"])

        event.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(event)
        return event

    def delete(self, event_id: int) -> bool:
        """Soft delete (active -> cancelled). False when there was nothing active to cancel."""
        return self._transition(event_id, EVENT_STATUS_CANCELLED)

    def complete(self, event_id: int) -> bool:
        return self._transition(event_id, EVENT_STATUS_COMPLETED)

    def _transition(self, event_id: int, new_status: str) -> bool:
        result = self.db.execute(
            update(EventModel)
            .where(EventModel.id == event_id, EventModel.status == EVENT_STATUS_ACTIVE)
            .values(status=new_status, updated_at=utcnow())
        )
        self.db.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get_visible(self, event_id: int) -> EventModel | None:
        return self.db.scalars(
            select(EventModel).where(
                EventModel.id == event_id,
                EventModel.status != EVENT_STATUS_CANCELLED,
            )
        ).first()

    def get_by_id(self, event_id: int) -> EventModel | None:
        """Return a non-cancelled event, or None."""
        return self._get_visible(event_id)

    def get_all(self, filters: EventFilters) -> list[EventModel]:
        stmt = (
            select(EventModel)
            .where(*_filter_clauses(filters))
            .order_by(EventModel.start_time.asc(), EventModel.id.asc())
        )
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        return list(self.db.scalars(stmt).all())

    def count(self, filters: EventFilters) -> int:
        stmt = select(func.count(EventModel.id)).where(*_filter_clauses(filters))
        return int(self.db.scalar(stmt) or 0)

    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        filters: EventFilters,
    ) -> list[tuple[EventModel, float]]:
        """
        Events within radius_km of (latitude, longitude), nearest first.

        Ties on distance are broken by id so pages stay stable.
        """
        box = bounding_box(latitude, longitude, radius_km)
        clauses = _filter_clauses(filters)
        clauses.append(EventModel.latitude.between(box.min_lat, box.max_lat))
        if not box.covers_all_longitudes:
            clauses.append(
                or_(*(and_(EventModel.longitude >= lo, EventModel.longitude <= hi) for lo, hi in box.lon_ranges))
            )

        candidates = self.db.scalars(select(EventModel).where(*clauses)).all()

        matches = []
        for event in candidates:
            distance = distance_between(latitude, longitude, event.latitude, event.longitude)
            if distance <= radius_km:
                matches.append((event, distance))
        matches.sort(key=lambda pair: (pair[1], pair[0].id))

        start = filters.offset or 0
        end = start + filters.limit if filters.limit is not None else None
        return matches[start:end]

    def finished_before(self, now: datetime) -> list[EventModel]:
        """Active events whose end_time has passed."""
        return list(
            self.db.scalars(
                select(EventModel)
                .where(EventModel.status == EVENT_STATUS_ACTIVE, EventModel.end_time <= ensure_utc(now))
                .order_by(EventModel.end_time.asc(), EventModel.id.asc())
            ).all()
        )

    def get_categories(self) -> list[str]:
        """Distinct categories among non-cancelled events, alphabetical."""
        rows = self.db.scalars(
            select(EventModel.category)
            .where(EventModel.status != EVENT_STATUS_CANCELLED)
            .distinct()
            .order_by(EventModel.category.asc())
        ).all()
        return list(rows)
