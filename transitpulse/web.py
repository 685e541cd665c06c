# web.py
"""HTTP surface: pull endpoints, SSE stream, health and manual refresh.

Routes
------
``GET /api/{feed}``
    Current normalized items of one feed as ``[{"texto", "alerta"}, ...]``.
    Upstream failures never show up here; fallback items are returned with
    a normal 200.
``GET /events``
    Server-Sent Events stream of ``connected``/``update`` frames.
``POST /api/refresh``
    Ask the notification loop for an immediate cycle.
``GET /health``
    Liveness plus a few loop counters.
"""

import asyncio
import functools
import json
import logging

from aiohttp import web

from .alerts.sse import SSE_HEADERS, SseTransport
from .notification_loop import NotificationLoop

logger = logging.getLogger(__name__)

LOOP_KEY = web.AppKey("notification_loop", NotificationLoop)

# Как часто проверять, не закрыл ли клиент соединение
DISCONNECT_POLL = 1.0

_dumps = functools.partial(json.dumps, ensure_ascii=False)


async def feed_handler(request: web.Request) -> web.Response:
    """Отдать элементы ленты. Поля ``texto``/``alerta`` ждёт существующий дашборд."""
    loop = request.app[LOOP_KEY]
    name = request.match_info["feed"]
    if name not in loop.aggregator.feed_names:
        raise web.HTTPNotFound(
            text=_dumps({"error": f"unknown feed {name!r}"}),
            content_type="application/json",
        )

    snapshot = loop.last_snapshot
    feed = snapshot.feed(name) if snapshot is not None else None
    if feed is None:
        # До первого цикла отвечаем живым запросом (с тем же fallback)
        feed = await loop.aggregator.fetch_feed(name)
    return web.json_response(feed.to_list(), dumps=_dumps)


async def events_handler(request: web.Request) -> web.StreamResponse:
    registry = request.app[LOOP_KEY].registry
    response = web.StreamResponse(headers=SSE_HEADERS)
    await response.prepare(request)

    transport = SseTransport(response)
    subscriber = await registry.add(transport)
    if subscriber is None:
        return response

    try:
        while not transport.closed.is_set():
            if request.transport is None or request.transport.is_closing():
                logger.debug(f"Client of subscriber {subscriber.id} went away")
                break
            try:
                await asyncio.wait_for(transport.closed.wait(), timeout=DISCONNECT_POLL)
            except asyncio.TimeoutError:
                pass
    finally:
        registry.remove(subscriber.id)
    return response


async def refresh_handler(request: web.Request) -> web.Response:
    request.app[LOOP_KEY].trigger()
    return web.json_response({"status": "scheduled"}, status=202)


async def health_handler(request: web.Request) -> web.Response:
    loop = request.app[LOOP_KEY]
    return web.json_response({
        "status": "ok",
        "state": loop.state.value,
        "subscribers": len(loop.registry),
        "cycles": loop.cycles,
        "broadcasts": loop.broadcasts,
        "failures": loop.failures,
        "last_cycle_at": loop.last_cycle_at,
        "feeds": list(loop.aggregator.feed_names),
    })


async def _allow_any_origin(request: web.Request, response: web.StreamResponse) -> None:
    response.headers["Access-Control-Allow-Origin"] = "*"


def create_app(loop: NotificationLoop) -> web.Application:
    app = web.Application()
    app[LOOP_KEY] = loop
    app.on_response_prepare.append(_allow_any_origin)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/events", events_handler)
    app.router.add_post("/api/refresh", refresh_handler)
    app.router.add_get("/api/{feed}", feed_handler)
    return app
