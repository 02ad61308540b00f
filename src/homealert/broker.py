"""
Message-broker ingress: Redis pub/sub subscriber with a bounded listening window.
"""

import json
import logging
import time

import redis

from homealert.config import BrokerSettings
from homealert.errors import InvalidPayloadError

logger = logging.getLogger(__name__)


def connect_broker(config: BrokerSettings) -> redis.Redis:
    """Create a Redis client for the configured broker."""
    return redis.Redis(
        host=config.host,
        port=config.port,
        username=config.username,
        password=config.password,
        ssl=config.use_tls,
        db=0,
    )


class AlertSubscriber:
    """Receives device alerts from a pub/sub channel and feeds them to the pipeline."""

    def __init__(self, redis_client: redis.Redis, channel: str, pipeline):
        self.redis_client = redis_client
        self.channel = channel
        self.pipeline = pipeline
        logger.info(f"AlertSubscriber initialized for channel '{channel}'")

    def handle_message(self, data) -> int | str | None:
        """
        Process one raw broker message.

        Malformed or incomplete payloads and processing failures are logged and
        dropped so that one bad message cannot end the subscription.

        Returns:
            Id of the stored alert, or None if the message was dropped
        """
        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"JSON decode error: {e} - raw message: {data!r}")
            return None

        try:
            return self.pipeline.ingest(payload)
        except InvalidPayloadError as e:
            logger.warning(f"Dropped broker message: {e} - payload: {payload}")
            return None
        except Exception as e:
            logger.error(f"Error processing broker message: {e}", exc_info=True)
            return None

    def listen(self, duration_seconds: float) -> int:
        """
        Listen for alerts until the window closes.

        The subscription is closed when the deadline passes, whatever is in flight.

        Args:
            duration_seconds: Length of the listening window

        Returns:
            Number of messages received

        Raises:
            redis.RedisError: If the broker connection fails
        """
        pubsub = self.redis_client.pubsub(ignore_subscribe_messages=True)
        received = 0
        try:
            pubsub.subscribe(self.channel)
            logger.info(f"Listening on '{self.channel}' for {duration_seconds:.0f}s")

            deadline = time.monotonic() + duration_seconds
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                message = pubsub.get_message(timeout=min(1.0, remaining))
                if message is None or message.get("type") != "message":
                    continue
                received += 1
                self.handle_message(message["data"])
        except redis.RedisError as e:
            logger.error(f"Broker connection error: {e}")
            raise
        finally:
            pubsub.close()

        logger.info(f"Listening window closed after {received} message(s)")
        return received
