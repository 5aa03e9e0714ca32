import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aio_pika

from .config import Settings

logger = logging.getLogger(__name__)

MessageHandler = Callable[[aio_pika.abc.AbstractIncomingMessage], Awaitable[Any]]

EXCHANGE_TYPES = {
    "direct": aio_pika.ExchangeType.DIRECT,
    "fanout": aio_pika.ExchangeType.FANOUT,
    "topic": aio_pika.ExchangeType.TOPIC,
    "headers": aio_pika.ExchangeType.HEADERS,
}


class RabbitMQClient:
    """Thin wrapper around a robust aio-pika connection and one channel."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
        self.channel: Optional[aio_pika.abc.AbstractChannel] = None
        self.exchanges: Dict[str, aio_pika.abc.AbstractExchange] = {}
        self.queues: Dict[str, aio_pika.abc.AbstractQueue] = {}

    async def connect(self) -> bool:
        """Open the connection and channel, replacing any previous one."""
        if self.is_connected():
            await self.close()

        try:
            self.connection = await aio_pika.connect_robust(
                self.settings.connection_url,
                reconnect_interval=1.0,
                fail_fast=False,
            )
            self.channel = await self.connection.channel()
            await self.channel.set_qos(
                prefetch_count=self.settings.RABBITMQ_PREFETCH_COUNT
            )
        except Exception as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            return False

        logger.info(
            f"[RabbitMQClient] Connected to {self.settings.RABBITMQ_HOST}:"
            f"{self.settings.RABBITMQ_PORT}"
        )
        return True

    async def close(self) -> None:
        if self.connection:
            await self.connection.close()
            logger.info("[RabbitMQClient] connection closed")
        self.connection = None
        self.channel = None
        self.exchanges.clear()
        self.queues.clear()

    def is_connected(self) -> bool:
        """Check if connected to RabbitMQ"""
        return self.connection is not None and not self.connection.is_closed

    def _require_channel(self) -> aio_pika.abc.AbstractChannel:
        if not self.is_connected() or self.channel is None:
            raise ConnectionError("Not connected to RabbitMQ")
        return self.channel

    async def declare_exchange(
        self, exchange_name: str, exchange_type: str = "direct"
    ) -> aio_pika.abc.AbstractExchange:
        """Declare a durable exchange, defaulting unknown types to direct"""
        channel = self._require_channel()
        exchange = await channel.declare_exchange(
            name=exchange_name,
            type=EXCHANGE_TYPES.get(
                exchange_type.lower(), aio_pika.ExchangeType.DIRECT
            ),
            durable=True,
        )
        self.exchanges[exchange_name] = exchange
        return exchange

    async def declare_queue(
        self, queue_name: str, durable: bool = True
    ) -> aio_pika.abc.AbstractQueue:
        channel = self._require_channel()
        queue = await channel.declare_queue(name=queue_name, durable=durable)
        self.queues[queue_name] = queue
        return queue

    async def bind_queue(
        self, queue_name: str, exchange_name: str, routing_key: str
    ) -> None:
        """Bind a declared queue to a declared exchange"""
        self._require_channel()
        queue = self.queues.get(queue_name) or await self.declare_queue(
            queue_name
        )
        exchange = self.exchanges.get(exchange_name)
        if exchange is None:
            exchange = await self.channel.get_exchange(
                exchange_name, ensure=False
            )
        await queue.bind(exchange=exchange, routing_key=routing_key)
        logger.info(
            f"Bound queue {queue_name} to exchange {exchange_name} "
            f"with routing key {routing_key}"
        )

    async def consume(self, queue_name: str, callback: MessageHandler) -> str:
        """Start consuming a declared queue, returning the consumer tag"""
        self._require_channel()
        queue = self.queues.get(queue_name) or await self.channel.get_queue(
            queue_name
        )
        return await queue.consume(callback)

    async def publish_message(
        self,
        exchange: str,
        routing_key: str,
        message: str,
    ) -> None:
        channel = self._require_channel()
        message_kwargs: Dict[str, Any] = {
            "body": message.encode("utf-8"),
            "content_type": "application/json",
        }

        if exchange:
            exchange_obj = self.exchanges.get(exchange)
            if exchange_obj is None:
                exchange_obj = await channel.get_exchange(exchange, ensure=False)
        else:
            exchange_obj = channel.default_exchange

        await exchange_obj.publish(
            aio_pika.Message(**message_kwargs), routing_key=routing_key
        )
        logger.debug(
            f"Published message to exchange {exchange or '<default>'} "
            f"with routing key {routing_key}"
        )
