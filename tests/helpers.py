import asyncio
from typing import Any, Dict, List, Optional, Sequence

from transitpulse.alerts import Transport
from transitpulse.models import AlertItem, Feed, Snapshot
from transitpulse.sources import Source


class FakeSource(Source):
    """Source stub returning a fixed payload or raising a fixed error."""

    kind = "fake"

    def __init__(self, payload: Any = None, error: Optional[BaseException] = None, delay: float = 0):
        super().__init__("https://example.com/fake")
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch(self, session):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeTransport(Transport):
    """Collects frames; can fail or stall on demand."""

    def __init__(self, fail: bool = False, delay: float = 0, fail_after: Optional[int] = None):
        super().__init__()
        self.frames: List[str] = []
        self.fail = fail
        self.delay = delay
        self.fail_after = fail_after

    async def send(self, frame: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or (self.fail_after is not None and len(self.frames) >= self.fail_after):
            raise ConnectionResetError("client went away")
        self.frames.append(frame)


def make_snapshot(feeds: Dict[str, Sequence], captured_at: float = 1700000000.0) -> Snapshot:
    """Создает снимок из словаря ``{feed: [(text, is_alert), ...]}``."""
    return Snapshot(
        feeds=tuple(
            Feed(name=name, items=tuple(AlertItem(text, alert) for text, alert in items))
            for name, items in feeds.items()
        ),
        captured_at=captured_at,
    )


def items(*pairs) -> tuple:
    return tuple(AlertItem(text, alert) for text, alert in pairs)
