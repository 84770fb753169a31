"""
RabbitMQ consumer for resume generation jobs.
Declares the queue topology, dispatches decoded jobs to a handler and
applies the redelivery policy on failure.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractExchange,
    AbstractIncomingMessage,
    AbstractQueue,
)
from aio_pika.exceptions import AMQPException, ChannelInvalidStateError
from pydantic import ValidationError

from resume_worker.config import Settings, settings as default_settings
from resume_worker.exceptions import NonRetryableError
from resume_worker.models.jobs import Job

logger = logging.getLogger(__name__)

RETRY_COUNT_HEADER = "x-retry-count"
MAX_PRIORITY = 10

JobHandler = Callable[[Job], Awaitable[None]]

_BROKER_ERRORS = (AMQPException, ChannelInvalidStateError, OSError)


def retry_count(message: AbstractIncomingMessage) -> int:
    """Read the redelivery counter; absent or unparsable headers count as 0."""
    value = (message.headers or {}).get(RETRY_COUNT_HEADER, 0)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class MessageConsumer:
    """Consumes resume jobs from RabbitMQ with manual acknowledgement."""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings
        self.url = settings.rabbitmq_url
        self.queue_name = settings.RABBITMQ_QUEUE_NAME
        self.exchange_name = settings.RABBITMQ_EXCHANGE
        self.routing_key = settings.RABBITMQ_ROUTING_KEY
        self.max_redeliveries = settings.RABBITMQ_MAX_REDELIVERIES

        self._connection: Optional[AbstractConnection] = None
        self._channel: Optional[AbstractChannel] = None
        self._exchange: Optional[AbstractExchange] = None
        self._queue: Optional[AbstractQueue] = None
        self._consumer_tag: Optional[str] = None
        self._handler: Optional[JobHandler] = None
        self._running = False
        self._closing = False
        self._reconnect_task: Optional[asyncio.Task] = None

    async def connect(self) -> None:
        """
        Open the broker connection and channel.

        Retries with exponential backoff (2, 4, 8... seconds) up to
        RABBITMQ_CONNECT_ATTEMPTS, then raises the last error.
        """
        attempts = self.settings.RABBITMQ_CONNECT_ATTEMPTS
        self._closing = False

        for attempt in range(1, attempts + 1):
            try:
                logger.info(f"Connecting to RabbitMQ (attempt {attempt}/{attempts})")
                self._connection = await aio_pika.connect(self.url)
                break
            except _BROKER_ERRORS as e:
                if attempt >= attempts:
                    logger.error(f"Failed to connect to RabbitMQ after {attempts} attempts: {e}")
                    raise
                delay = 2 ** attempt
                logger.warning(f"RabbitMQ connection failed, retrying in {delay}s: {e}")
                await asyncio.sleep(delay)

        self._connection.close_callbacks.add(self._on_connection_closed)
        self._channel = await self._connection.channel()
        self._channel.close_callbacks.add(self._on_channel_closed)
        logger.info("Connected to RabbitMQ")

    async def setup_topology(self) -> None:
        """Declare exchanges and queues, bind them and apply prefetch."""
        if self._channel is None:
            raise RuntimeError("Channel not initialized")

        s = self.settings
        await self._channel.set_qos(prefetch_count=s.RABBITMQ_PREFETCH_COUNT)

        self._exchange = await self._channel.declare_exchange(
            self.exchange_name, aio_pika.ExchangeType.DIRECT, durable=True
        )
        dead_letter_exchange = await self._channel.declare_exchange(
            s.RABBITMQ_DLX_EXCHANGE, aio_pika.ExchangeType.DIRECT, durable=True
        )

        self._queue = await self._channel.declare_queue(
            self.queue_name,
            durable=True,
            arguments={
                "x-max-priority": MAX_PRIORITY,
                "x-dead-letter-exchange": s.RABBITMQ_DLX_EXCHANGE,
                "x-dead-letter-routing-key": s.RABBITMQ_DLX_ROUTING_KEY,
            },
        )
        await self._queue.bind(self._exchange, routing_key=self.routing_key)

        dead_letter_queue = await self._channel.declare_queue(s.RABBITMQ_DLQ_NAME, durable=True)
        await dead_letter_queue.bind(dead_letter_exchange, routing_key=s.RABBITMQ_DLX_ROUTING_KEY)

        logger.info(
            f"Queue setup completed: {self.queue_name} bound to {self.exchange_name} "
            f"with routing key {self.routing_key}"
        )

    async def start(self, handler: JobHandler) -> None:
        """Begin consuming; each delivery is passed to ``handler``."""
        if self._queue is None:
            raise RuntimeError("Queue not initialized")
        self._handler = handler
        self._running = True
        self._consumer_tag = await self._queue.consume(self.on_message)
        logger.info(f"Started consuming from queue {self.queue_name}")

    async def on_message(self, message: AbstractIncomingMessage) -> None:
        """Handle one delivery and settle it exactly once."""
        correlation_id = message.correlation_id or "unknown"
        count = retry_count(message)

        try:
            job = Job.model_validate_json(message.body)
        except ValidationError as e:
            logger.error(f"Failed to decode message {correlation_id}: {e}")
            await self._retry_or_dead_letter(message, count)
            return

        logger.info(
            f"Processing resume generation job {job.jobId} for user {job.userId} "
            f"(correlation {correlation_id}, retry {count})"
        )
        loop = asyncio.get_running_loop()
        started = loop.time()

        try:
            await self._handler(job)
        except NonRetryableError as e:
            logger.error(f"Job {job.jobId} failed permanently, sending to dead letter queue: {e}")
            await message.reject(requeue=False)
            return
        except Exception as e:
            duration_ms = int((loop.time() - started) * 1000)
            logger.error(f"Job {job.jobId} processing failed after {duration_ms}ms: {e}")
            await self._retry_or_dead_letter(message, count)
            return

        duration_ms = int((loop.time() - started) * 1000)
        await message.ack()
        logger.info(f"Job {job.jobId} completed successfully in {duration_ms}ms")

    async def _retry_or_dead_letter(self, message: AbstractIncomingMessage, count: int) -> None:
        """
        Redeliver with an incremented counter, or dead-letter once the
        counter reaches the redelivery limit.
        """
        correlation_id = message.correlation_id or "unknown"

        if count >= self.max_redeliveries:
            logger.error(
                f"Message {correlation_id} exceeded max retries ({count}), moving to dead letter queue"
            )
            await message.reject(requeue=False)
            return

        headers: Dict[str, Any] = dict(message.headers or {})
        headers[RETRY_COUNT_HEADER] = count + 1
        try:
            await self._exchange.publish(
                aio_pika.Message(
                    body=message.body,
                    headers=headers,
                    correlation_id=message.correlation_id,
                    content_type=message.content_type or "application/json",
                    priority=message.priority,
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                ),
                routing_key=self.routing_key,
            )
        except _BROKER_ERRORS as e:
            logger.warning(f"Republish of {correlation_id} failed, requeueing original: {e}")
            await message.nack(requeue=True)
            return

        await message.ack()
        logger.info(f"Message {correlation_id} requeued for retry {count + 1}/{self.max_redeliveries}")

    def _on_connection_closed(self, sender: Any, exc: Optional[BaseException] = None) -> None:
        if self._closing:
            return
        logger.warning(f"RabbitMQ connection closed: {exc}")
        self._schedule_reconnect()

    def _on_channel_closed(self, sender: Any, exc: Optional[BaseException] = None) -> None:
        # fires on its own when the broker closes only the channel
        if self._closing:
            return
        logger.warning(f"RabbitMQ channel closed: {exc}")
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._running and (self._reconnect_task is None or self._reconnect_task.done()):
            self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    async def _release_connection(self) -> None:
        """Close a connection left open after its channel died."""
        connection = self._connection
        if connection is None or connection.is_closed:
            return
        connection.close_callbacks.discard(self._on_connection_closed)
        try:
            await connection.close()
        except _BROKER_ERRORS as e:
            logger.warning(f"Error closing stale connection: {e}")

    async def _reconnect(self) -> None:
        """Re-establish connection, topology and consumption after a fixed delay."""
        while self._running and not self._closing:
            logger.warning(f"Attempting to reconnect to RabbitMQ in {self.settings.RABBITMQ_RECONNECT_DELAY}s")
            await asyncio.sleep(self.settings.RABBITMQ_RECONNECT_DELAY)
            try:
                await self._release_connection()
                await self.connect()
                await self.setup_topology()
                await self.start(self._handler)
                logger.info("Reconnected to RabbitMQ")
                return
            except _BROKER_ERRORS as e:
                logger.error(f"Reconnection failed: {e}")

    async def stop(self) -> None:
        """Stop consuming and close the channel and connection."""
        self._running = False
        self._closing = True

        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()

        if self._queue is not None and self._consumer_tag is not None:
            try:
                await self._queue.cancel(self._consumer_tag)
            except _BROKER_ERRORS as e:
                logger.warning(f"Error cancelling consumer: {e}")
        if self._channel is not None:
            try:
                await self._channel.close()
            except _BROKER_ERRORS as e:
                logger.warning(f"Error closing channel: {e}")
        if self._connection is not None:
            try:
                await self._connection.close()
            except _BROKER_ERRORS as e:
                logger.warning(f"Error closing connection: {e}")

        self._consumer_tag = None
        logger.info("RabbitMQ consumer stopped")

    def is_connected(self) -> bool:
        return bool(
            self._running
            and self._connection is not None
            and not self._connection.is_closed
            and self._channel is not None
            and not self._channel.is_closed
        )
