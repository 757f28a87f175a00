"""
Process-wide dependency container.

Built once at startup and handed to the app; every shared client (database
engine, Redis, cache, pub/sub, notification pipeline) comes from here instead of
module globals.
"""
import redis
from dependency_injector import containers, providers

from event_locator.application.delivery import EmailStubChannel, RealtimeChannel, WebPushChannel
from event_locator.application.notification_engine import NotificationPipeline
from event_locator.config import get_settings
from event_locator.infrastructure.cache import RedisCache
from event_locator.infrastructure.db.session import build_engine, build_session_factory
from event_locator.infrastructure.pubsub import RedisPubSub


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(get_settings)

    # Database
    engine = providers.Singleton(build_engine, settings=settings)
    session_factory = providers.Singleton(build_session_factory, engine=engine)

    # Redis
    redis_client = providers.Singleton(
        redis.Redis.from_url,
        settings.provided.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.provided.REDIS_SOCKET_TIMEOUT,
    )
    cache = providers.Singleton(
        RedisCache,
        client=redis_client,
        default_ttl=settings.provided.CACHE_TTL_SECONDS,
    )
    pubsub = providers.Singleton(RedisPubSub, client=redis_client)

    # Delivery
    channels = providers.List(
        providers.Singleton(RealtimeChannel, pubsub=pubsub),
        providers.Singleton(WebPushChannel, settings=settings),
        providers.Singleton(EmailStubChannel, sender=settings.provided.EMAIL_FROM),
    )
    pipeline = providers.Singleton(
        NotificationPipeline,
        session_factory=session_factory,
        pubsub=pubsub,
        channels=channels,
        lead_time_ms=settings.provided.REMINDER_LEAD_TIME_MS,
    )
