"""
RabbitMQ transport for typing status events.
"""
import inspect
import json
import logging
from typing import Any, Callable, Dict, Optional

import aio_pika
from pydantic import ValidationError

from services.rabbitmq.core.client import RabbitMQClient
from services.rabbitmq.core.config import Settings as RabbitMQSettings
from services.shared.utils.retry import CircuitBreaker, with_retry

from .config import Settings, get_settings
from .events import SERVICE_SOURCE, EventType
from .models import Persona, TypingStatusPayload

logger = logging.getLogger(__name__)

EventHandler = Callable[[TypingStatusPayload], Any]


class TypingRabbitMQClient:
    """Delivers typing status events from the chat exchange to subscribers."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rabbitmq_settings: Optional[RabbitMQSettings] = None,
        rabbitmq: Optional[RabbitMQClient] = None,
    ):
        self.settings = settings or get_settings()
        self.rabbitmq = rabbitmq or RabbitMQClient(rabbitmq_settings)
        self.handlers: Dict[str, EventHandler] = {}
        self.circuit_breaker = CircuitBreaker(
            "rabbitmq",
            failure_threshold=3,
            reset_timeout=30.0
        )
        self._initialized = False

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register the handler for one event type, replacing any previous."""
        if event_type.value in self.handlers:
            logger.warning(f"Replacing handler for {event_type.value}")
        self.handlers[event_type.value] = handler
        logger.debug(f"Registered handler for {event_type.value} events")

    async def initialize(self) -> bool:
        """Connect, declare the topology and start consuming."""
        if self._initialized:
            logger.warning("RabbitMQ client already initialized")
            return True

        try:
            await with_retry(
                self._connect,
                max_attempts=5,
                initial_delay=1.0,
                max_delay=30.0,
                circuit_breaker=self.circuit_breaker
            )
        except Exception as e:
            logger.error(f"Failed to initialize RabbitMQ client: {e}")
            return False

        self._initialized = True
        logger.info("RabbitMQ client initialized successfully")
        return True

    async def _connect(self) -> None:
        connected = await self.rabbitmq.connect()
        if not connected:
            raise ConnectionError("Failed to connect to RabbitMQ")

        await self.rabbitmq.declare_exchange(
            self.settings.TYPING_EXCHANGE, "topic"
        )
        await self.rabbitmq.declare_queue(self.settings.TYPING_QUEUE)
        await self.rabbitmq.bind_queue(
            self.settings.TYPING_QUEUE,
            self.settings.TYPING_EXCHANGE,
            self.settings.TYPING_ROUTING_KEY
        )
        await self.rabbitmq.consume(
            self.settings.TYPING_QUEUE, self.handle_message
        )
        logger.info(
            f"Consuming typing status events from {self.settings.TYPING_QUEUE}"
        )

    async def shutdown(self) -> None:
        try:
            await self.rabbitmq.close()
            logger.info("RabbitMQ connection closed")
        except Exception as e:
            logger.error(f"Error closing RabbitMQ connection: {e}")
        finally:
            self._initialized = False

    def is_connected(self) -> bool:
        return self._initialized and self.rabbitmq.is_connected()

    async def handle_message(
        self, message: aio_pika.abc.AbstractIncomingMessage
    ) -> None:
        """Decode a typing status message and hand it to its subscriber.

        Events nobody subscribed to are acked and dropped. Malformed bodies
        are rejected here so the tracker only ever sees validated payloads.
        """
        try:
            body = json.loads(message.body.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Rejecting undecodable typing status message: {e}")
            await message.nack(requeue=False)
            return

        if not isinstance(body, dict):
            logger.warning("Rejecting typing status message that is not an object")
            await message.nack(requeue=False)
            return

        event_type = body.get("type", EventType.CHAT_TYPING_STATUS.value)
        if not isinstance(event_type, str):
            logger.warning(
                f"Rejecting message with invalid event type: {event_type!r}"
            )
            await message.nack(requeue=False)
            return

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.warning(f"Received event with no handler: {event_type}")
            await message.ack()
            return

        try:
            payload = TypingStatusPayload.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Rejecting malformed {event_type} message: {e}")
            await message.nack(requeue=False)
            return

        try:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error handling {event_type} event: {e}")
            await message.nack(requeue=False)
            return

        await message.ack()

    async def publish_typing_status(
        self,
        member_id: int,
        channel_id: int,
        is_typing: bool,
        persona: Optional[Persona] = None,
    ) -> bool:
        """Announce that a member started or stopped typing."""
        payload = TypingStatusPayload(
            id=member_id,
            channel_id=channel_id,
            persona=persona,
            is_typing=is_typing,
            source=SERVICE_SOURCE,
        )
        try:
            await self.rabbitmq.publish_message(
                exchange=self.settings.TYPING_EXCHANGE,
                routing_key=self.settings.TYPING_ROUTING_KEY,
                message=payload.model_dump_json(),
            )
        except Exception as e:
            logger.error(f"Failed to publish typing status: {e}")
            return False

        logger.debug(
            f"Published typing={is_typing} for member {member_id} "
            f"in channel {channel_id}"
        )
        return True
