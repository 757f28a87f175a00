"""
Pydantic models for event and notification payloads.

Input models only check types and ranges; requiredness is decided by the
service, so a create with missing fields reports every missing name at once.
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from event_locator.domain.event import EVENT_STATUSES, ensure_utc


class _EventFields(BaseModel):
    title: str | None = None
    description: str | None = None
    address: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    category: str | None = None
    longitude: float | None = None
    latitude: float | None = None
    ticket_price: Decimal | None = None
    status: str | None = None

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float | None) -> float | None:
        if v is not None and not -90 <= v <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float | None) -> float | None:
        if v is not None and not -180 <= v <= 180:
            raise ValueError("longitude must be between -180 and 180")
        return v

    @field_validator("ticket_price")
    @classmethod
    def validate_price(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("ticket_price must not be negative")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in EVENT_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(EVENT_STATUSES)}")
        return v

    @field_validator("title", "address", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    def supplied(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class EventCreate(_EventFields):
    pass


class EventUpdate(_EventFields):
    pass


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    longitude: float
    latitude: float
    address: str
    start_time: datetime
    end_time: datetime
    category: str
    created_by: int | None = None
    ticket_price: Decimal = Decimal("0")
    status: str
    created_at: datetime
    updated_at: datetime
    distance_km: float | None = None

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool = Field(serialization_alias="hasMore")


class EventPage(BaseModel):
    events: list[EventRead]
    pagination: Pagination


class GeoPoint(BaseModel):
    latitude: float
    longitude: float


class NearbyPage(BaseModel):
    events: list[EventRead]
    center: GeoPoint
    radius: float
    count: int


class DistanceResult(BaseModel):
    distance_km: float
    distance_miles: float


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    message: str
    event_id: int | None = None
    is_read: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class NotificationPagination(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool = Field(serialization_alias="hasMore")


class NotificationList(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int = Field(serialization_alias="unreadCount")
    pagination: NotificationPagination
