# notification_loop.py
"""Process-wide driver: aggregate, detect changes, notify.

The loop owns ``last_snapshot``.  Cadence comes from the scheduler (see
:mod:`transitpulse.scheduler`); on-demand refreshes go through
:meth:`NotificationLoop.trigger`.  Cycles never overlap: a request that
arrives while a cycle is in flight is coalesced into exactly one follow-up
cycle that starts as soon as the current one finishes.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional, Set

from .aggregator import SourceAggregator
from .alerts import SubscriptionRegistry, update_event
from .change_detector import ChangeDetector, fingerprint
from .models import Snapshot

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    AGGREGATING = "aggregating"


class NotificationLoop:
    """Связывает агрегатор, детектор изменений и реестр подписчиков."""

    def __init__(
        self,
        aggregator: SourceAggregator,
        registry: SubscriptionRegistry,
        detector: Optional[ChangeDetector] = None,
    ):
        self.aggregator = aggregator
        self.registry = registry
        self.detector = detector or ChangeDetector()

        self.last_snapshot: Optional[Snapshot] = None
        self.state = LoopState.IDLE
        self._pending = False
        self._tasks: Set[asyncio.Task] = set()

        self.cycles = 0
        self.broadcasts = 0
        self.failures = 0
        self.last_cycle_at: Optional[float] = None

    async def run_cycle(self) -> Optional[bool]:
        """Run one cycle, plus a single follow-up if more were requested meanwhile.

        Returns
        -------
        Optional[bool]
            ``True`` if an update was broadcast, ``False`` if nothing changed
            or the cycle failed, ``None`` if this call was folded into a
            cycle that was already running.
        """
        if self.state is LoopState.AGGREGATING:
            logger.debug("Cycle already in flight; queuing one follow-up")
            self._pending = True
            return None

        changed = False
        while True:
            self._pending = False
            changed = await self._cycle() or changed
            if not self._pending:
                return changed

    def trigger(self) -> "asyncio.Task[Optional[bool]]":
        """Request an immediate cycle without waiting for it."""
        task = asyncio.create_task(self.run_cycle())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _cycle(self) -> bool:
        self.state = LoopState.AGGREGATING
        try:
            snapshot = await self.aggregator.aggregate()
            if not self.detector.differs(self.last_snapshot, snapshot):
                logger.debug("No changes detected")
                return False

            self.last_snapshot = snapshot
            logger.info(f"State changed (fingerprint {fingerprint(snapshot)[:16]}...); notifying")
            await self.registry.broadcast(update_event())
            self.broadcasts += 1
            return True
        except Exception:
            self.failures += 1
            logger.exception("poll cycle failed")
            return False
        finally:
            self.cycles += 1
            self.last_cycle_at = time.time()
            self.state = LoopState.IDLE
