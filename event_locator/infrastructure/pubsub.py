"""
Redis publish/subscribe bus.

Broadcast semantics: every subscribed process receives every message, so each
instance can resolve and dispatch notifications on its own. Messages are JSON
objects. Handler exceptions are logged and never stop the listener.
"""
import json
import logging
from typing import Any, Callable

import redis

from event_locator.domain.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Any]


class RedisPubSub:
    def __init__(self, client: redis.Redis):
        self.client = client
        self._handlers: dict[str, Handler] = {}
        self._pubsub: redis.client.PubSub | None = None
        self._thread = None

    def publish(self, channel: str, message: dict[str, Any]) -> int:
        """
        Publish a JSON message; returns the number of receivers Redis reported.

        Raises:
            DependencyUnavailableError: if Redis cannot be reached
        """
        try:
            return int(self.client.publish(channel, json.dumps(message, ensure_ascii=False, default=str)))
        except redis.RedisError as exc:
            raise DependencyUnavailableError("pubsub", exc) from exc

    def subscribe(self, channel: str, handler: Handler) -> None:
        """Register a handler; takes effect immediately if already listening."""
        self._handlers[channel] = handler
        if self._pubsub is not None:
            self._pubsub.subscribe(**{channel: self._dispatch})

    def _ensure_pubsub(self) -> "redis.client.PubSub":
        if self._pubsub is None:
            self._pubsub = self.client.pubsub(ignore_subscribe_messages=True)
            if self._handlers:
                self._pubsub.subscribe(**{ch: self._dispatch for ch in self._handlers})
        return self._pubsub

    def _dispatch(self, message: dict[str, Any]) -> None:
        channel = message.get("channel")
        handler = self._handlers.get(channel)
        if handler is None:
            return
        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError, KeyError):
            logger.warning("Dropping malformed message on %s", channel)
            return
        try:
            handler(payload)
        except Exception:
            logger.exception("Handler for channel %s failed", channel)

    def poll(self, timeout: float = 0.0) -> bool:
        """Process at most one pending message on the calling thread."""
        pubsub = self._ensure_pubsub()
        try:
            pubsub.get_message(timeout=timeout)
            return True
        except redis.RedisError as exc:
            logger.warning("Pub/sub poll failed: %s", exc)
            return False

    def start(self, sleep_time: float = 0.05) -> None:
        """Start the background listener thread."""
        if self._thread is not None:
            return
        pubsub = self._ensure_pubsub()
        self._thread = pubsub.run_in_thread(
            sleep_time=sleep_time,
            daemon=True,
            exception_handler=self._on_listener_error,
        )
        logger.info("Pub/sub listener started for channels: %s", ", ".join(sorted(self._handlers)))

    def _on_listener_error(self, exc: BaseException, pubsub: Any, thread: Any) -> None:
        logger.error("Pub/sub listener error: %s", exc)

    def stop(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            try:
                self._pubsub.close()
            except redis.RedisError:
                logger.warning("Pub/sub close failed")
            self._pubsub = None
