# alerts/sse.py
"""Server-Sent Events framing and transport.

Frames are ``data: <compact JSON>\\n\\n``.  Existing dashboard clients parse
exactly this shape, so the serialization below must stay byte-compatible:
compact separators, non-ASCII left as is, millisecond epoch timestamps.
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional

from aiohttp import web

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def now_ms() -> int:
    return int(time.time() * 1000)


def connected_event(ts: Optional[int] = None) -> Dict[str, Any]:
    return {"type": "connected", "ts": now_ms() if ts is None else ts}


def update_event(ts: Optional[int] = None) -> Dict[str, Any]:
    """Minimal change notification; clients re-pull the feeds themselves."""
    return {"type": "update", "payload": {"ts": now_ms() if ts is None else ts}}


def encode_frame(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False, separators=(',', ':'))}\n\n"


class Transport:
    """One subscriber connection able to accept text frames."""

    def __init__(self):
        self.closed = asyncio.Event()

    async def send(self, frame: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.closed.set()


class SseTransport(Transport):
    """Transport over an already prepared aiohttp ``StreamResponse``."""

    def __init__(self, response: web.StreamResponse):
        super().__init__()
        self.response = response

    async def send(self, frame: str) -> None:
        if self.closed.is_set():
            raise ConnectionResetError("SSE transport already closed")
        await self.response.write(frame.encode("utf-8"))
