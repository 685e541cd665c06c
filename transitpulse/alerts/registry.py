# alerts/registry.py
"""Реестр подключённых подписчиков и fan-out рассылка.

Delivery is best effort: every subscriber is written to independently, a
failing or slow subscriber is dropped and never holds up the others.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .sse import Transport, connected_event, encode_frame

logger = logging.getLogger(__name__)


@dataclass
class Subscriber:
    transport: Transport
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    connected_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class DeliveryResult:
    subscriber_id: str
    ok: bool
    error: Optional[str] = None


class SubscriptionRegistry:
    """Owns the set of live subscribers.

    Parameters
    ----------
    write_timeout : float
        Seconds a single frame write may take before the subscriber is
        considered broken.
    """

    def __init__(self, write_timeout: float = 5.0):
        self.write_timeout = write_timeout
        self._subscribers: Dict[str, Subscriber] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscribers

    def ids(self) -> List[str]:
        return list(self._subscribers)

    async def add(self, transport: Transport) -> Optional[Subscriber]:
        """Greet ``transport`` with a ``connected`` frame, then register it.

        The greeting is written before registration, so a broadcast that is
        already running cannot reach the subscriber ahead of it.  Returns
        ``None`` if the greeting could not be delivered.
        """
        subscriber = Subscriber(transport=transport)
        try:
            await self._write(subscriber, encode_frame(connected_event()))
        except Exception as e:
            logger.info(f"Subscriber {subscriber.id} dropped before registration: {e!r}")
            transport.close()
            return None
        self._subscribers[subscriber.id] = subscriber
        logger.info(f"Subscriber {subscriber.id} connected ({len(self)} total)")
        return subscriber

    def remove(self, subscriber_id: str) -> bool:
        """Unregister a subscriber; removing an unknown id is a no-op."""
        subscriber = self._subscribers.pop(subscriber_id, None)
        if subscriber is None:
            return False
        subscriber.transport.close()
        logger.info(f"Subscriber {subscriber_id} removed ({len(self)} left)")
        return True

    async def broadcast(self, event: Dict[str, Any]) -> List[DeliveryResult]:
        """Send ``event`` to everyone registered at call time."""
        frame = encode_frame(event)
        targets = list(self._subscribers.values())
        if not targets:
            logger.debug(f"No subscribers for {event.get('type')} event")
            return []

        results = await asyncio.gather(*(self._deliver(s, frame) for s in targets))
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            f"Broadcast {event.get('type')} to {len(targets) - failed}/{len(targets)} subscribers"
        )
        return list(results)

    async def _deliver(self, subscriber: Subscriber, frame: str) -> DeliveryResult:
        if subscriber.id not in self._subscribers:
            return DeliveryResult(subscriber.id, ok=False, error="removed")
        try:
            await self._write(subscriber, frame)
        except Exception as e:
            logger.debug(f"Write to subscriber {subscriber.id} failed: {e!r}")
            self.remove(subscriber.id)
            return DeliveryResult(subscriber.id, ok=False, error=f"{type(e).__name__}: {e}")
        return DeliveryResult(subscriber.id, ok=True)

    async def _write(self, subscriber: Subscriber, frame: str) -> None:
        await asyncio.wait_for(subscriber.transport.send(frame), timeout=self.write_timeout)
