"""
SQLAlchemy ORM models
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON, TIMESTAMP, Boolean, CheckConstraint, Float, ForeignKey, Index, Integer, Numeric, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from event_locator.infrastructure.db.session import Base


# ============================================================================
# Identity (owned by the identity service, read by the core)
# ============================================================================

class User(Base):
    """User account. Only language, categories, status and role matter here."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    language: Mapped[str] = mapped_column(String(8), nullable=False, server_default="en")

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="active")  # active | suspended | deleted
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default="user")  # user | admin

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class UserPreferredCategory(Base):
    """Event categories a user wants to hear about."""
    __tablename__ = "user_preferred_categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_user_preferred_category"),
        Index("ix_user_preferred_categories_category", "category"),
    )


# ============================================================================
# Events
# ============================================================================

class EventModel(Base):
    """Event with a geographic point (WGS84 degrees)."""
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    start_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    category: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)  # -> users
    ticket_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default="0")
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="active")  # active | cancelled | completed

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_events_lat_lon", "latitude", "longitude"),
        Index("ix_events_status_start", "status", "start_time"),
        Index("ix_events_category", "category"),
        CheckConstraint("end_time > start_time", name="ck_events_time_order"),
        CheckConstraint("ticket_price >= 0", name="ck_events_price_non_negative"),
    )


class EventRegistration(Base):
    """Attendee registration."""
    __tablename__ = "event_registrations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registration"),
        Index("ix_event_registrations_user", "user_id"),
    )


class EventReminderModel(Base):
    """Durable reminder: fires once at fire_at unless superseded."""
    __tablename__ = "event_reminders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)  # -> events
    fire_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    lead_time_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    recipients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # user ids
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")  # pending | fired | cancelled

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    fired_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_event_reminders_due", "status", "fire_at"),
    )


# ============================================================================
# Notifications
# ============================================================================

class NotificationModel(Base):
    """In-app notification; written only by the notification pipeline."""
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    event_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # -> events
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false", default=False)
    # Same fan-out message on several instances -> one row per user
    dedup_key: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "dedup_key", name="uq_notification_dedup"),
        Index("ix_notifications_user_unread", "user_id", "is_read"),
    )


class PushSubscription(Base):
    """Web Push subscription for a user device."""
    __tablename__ = "push_subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    p256dh: Mapped[str] = mapped_column(Text, nullable=False)
    auth: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
