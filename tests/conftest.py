"""
Pytest fixtures for testing
"""
import json
from base64 import b64encode
from datetime import timedelta

import fakeredis
import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient
from itsdangerous import TimestampSigner
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from event_locator.api.deps import get_current_user
from event_locator.application.delivery import DeliveryChannel, DeliveryMessage
from event_locator.application.events import EventService
from event_locator.application.notification_engine import NotificationPipeline
from event_locator.application.schemas import EventCreate
from event_locator.config import Settings
from event_locator.container import Container
from event_locator.domain.event import utcnow
from event_locator.domain.user import ROLE_ADMIN, ROLE_USER, USER_STATUS_ACTIVE, AuthUser
from event_locator.infrastructure.cache import RedisCache
from event_locator.infrastructure.db import models
from event_locator.infrastructure.db.session import Base, build_session_factory
from event_locator.infrastructure.pubsub import RedisPubSub
from event_locator.infrastructure.stores.events import SpatialEventStore
from event_locator.main import create_app


class RecordingChannel(DeliveryChannel):
    """Delivery channel that remembers what it was asked to send."""

    name = "recording"

    def __init__(self):
        self.sent: list[DeliveryMessage] = []

    def send(self, db, message: DeliveryMessage) -> bool:
        self.sent.append(message)
        return True

    def recipients(self) -> list[int]:
        return [m.user_id for m in self.sent]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret-key",
        SCHEDULER_ENABLED=False,
        SUBSCRIBER_ENABLED=False,
    )


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every session of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client)


@pytest.fixture
def pubsub(redis_client):
    bus = RedisPubSub(redis_client)
    yield bus
    bus.stop()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def pipeline(session_factory, pubsub, channel):
    return NotificationPipeline(session_factory, pubsub, [channel])


@pytest.fixture
def service(db_session, cache, pipeline, settings):
    return EventService(db_session, cache, pipeline, settings)


@pytest.fixture
def make_user(db_session):
    """Factory: insert a user (plus preferred categories) and return its AuthUser."""
    counter = {"n": 0}

    def _make(
        categories: tuple[str, ...] = (),
        language: str = "en",
        status: str = USER_STATUS_ACTIVE,
        role: str = ROLE_USER,
        email: str | None = None,
    ) -> AuthUser:
        counter["n"] += 1
        user = models.User(
            email=email or f"user{counter['n']}@example.com",
            language=language,
            status=status,
            role=role,
        )
        db_session.add(user)
        db_session.flush()
        for category in categories:
            db_session.add(models.UserPreferredCategory(user_id=user.id, category=category))
        db_session.commit()
        return AuthUser(id=user.id, role=role, status=status)

    return _make


@pytest.fixture
def creator(make_user):
    return make_user(email="creator@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=ROLE_ADMIN, email="admin@example.com")


@pytest.fixture
def register(db_session):
    def _register(user_id: int, event_id: int) -> None:
        db_session.add(models.EventRegistration(user_id=user_id, event_id=event_id))
        db_session.commit()

    return _register


def jazz_night(**overrides) -> EventCreate:
    start = utcnow() + timedelta(days=2)
    data = {
        "title": "Jazz Night",
        "description": "Live jazz under the stars",
        "category": "music",
        "longitude": -73.97,
        "latitude": 40.78,
        "address": "Central Park",
        "start_time": start,
        "end_time": start + timedelta(hours=3),
    }
    data.update(overrides)
    return EventCreate(**data)


@pytest.fixture
def event_data():
    return jazz_night


@pytest.fixture
def make_event(db_session):
    """Factory: store an event directly, bypassing EventService side effects."""

    def _make(created_by: int | None, **overrides):
        fields = jazz_night(**overrides).supplied()
        fields["created_by"] = created_by
        return SpatialEventStore(db_session).create(fields)

    return _make


@pytest.fixture
def container(settings, db_engine, session_factory, redis_client, cache, pipeline):
    container = Container()
    container.settings.override(providers.Object(settings))
    container.engine.override(providers.Object(db_engine))
    container.session_factory.override(providers.Object(session_factory))
    container.redis_client.override(providers.Object(redis_client))
    container.cache.override(providers.Object(cache))
    container.pipeline.override(providers.Object(pipeline))
    yield container
    container.reset_override()


@pytest.fixture
def app(container):
    return create_app(container)


@pytest.fixture
def client(app):
    """Test client for FastAPI"""
    return TestClient(app)


@pytest.fixture
def login_as(app):
    """Authenticate every following request as the given user."""

    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
def session_cookie(settings):
    """Signed Starlette session cookie for a user id."""

    def _cookie(user_id):
        data = b64encode(json.dumps({"user_id": user_id}).encode("utf-8"))
        return TimestampSigner(settings.SECRET_KEY).sign(data).decode("utf-8")

    return _cookie
