"""Audit event publishing.

Events are pushed to a Redis list consumed by an external worker.
Publishing never blocks or fails the write that produced the event.
Each send is a bounded background task with a short timeout, and its
failures are only logged.
"""

import asyncio

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from apparel_catalog.domain.base import DomainEvent
from apparel_catalog.infrastructure.config import settings

logger = structlog.get_logger()


class AuditPublisher:
    """Fire-and-forget publisher of domain events.

    Args:
        client: Async Redis client, or None to drop events.
        queue_key: Redis list receiving events.
        max_length: The list is trimmed to this many newest events.
        max_pending: Maximum concurrent in-flight sends.
        timeout_seconds: Upper bound on a single send.
    """

    def __init__(
        self,
        client: redis.Redis | None,
        queue_key: str | None = None,
        max_length: int | None = None,
        max_pending: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.client = client
        self.queue_key = queue_key or settings.audit_queue_key
        self.max_length = max_length or settings.audit_queue_max_length
        self.max_pending = max_pending or settings.audit_max_pending
        self.timeout_seconds = timeout_seconds or settings.audit_timeout_seconds
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of sends still in flight."""
        return len(self._pending)

    def publish(self, event: DomainEvent) -> bool:
        """Schedule an event for delivery without waiting for it.

        Returns:
            True if the send was scheduled, False if the event was dropped.
        """
        if self.client is None:
            logger.debug("Audit queue disabled, dropping event", event_type=event.event_type)
            return False

        if len(self._pending) >= self.max_pending:
            logger.warning(
                "Audit queue saturated, dropping event",
                event_type=event.event_type,
                design_id=event.design_id,
                pending=len(self._pending),
            )
            return False

        task = asyncio.create_task(self._send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def drain(self) -> None:
        """Wait for every in-flight send to finish (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _send(self, event: DomainEvent) -> None:
        payload = event.to_json()
        try:
            await asyncio.wait_for(self._push(payload), timeout=self.timeout_seconds)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning(
                "Audit event enqueue failed",
                event_type=event.event_type,
                design_id=event.design_id,
                error=str(e) or type(e).__name__,
            )
        except Exception:
            logger.exception(
                "Unexpected error publishing audit event",
                event_type=event.event_type,
                design_id=event.design_id,
            )

    async def _push(self, payload: str) -> None:
        await self.client.rpush(self.queue_key, payload)
        await self.client.ltrim(self.queue_key, -self.max_length, -1)
