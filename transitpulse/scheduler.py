"""Background service for transitpulse.

The module wires the notification loop to an APScheduler interval job and
serves the HTTP surface (pull endpoints, SSE stream, health) with aiohttp.

Run it from the command line:

```
python -m transitpulse.scheduler --port 3000 --interval 20
```

The first cycle runs immediately at startup; after that every
``POLL_INTERVAL`` seconds (20 by default).  ``POST /api/refresh`` asks for
an extra cycle at any time.

The server exposes `/health` returning ``{"status": "ok", ...}`` and can be
monitored with ``curl http://localhost:3000/health``.
"""

import argparse
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .aggregator import build_aggregator
from .alerts import SubscriptionRegistry
from .config import Settings, load_settings
from .notification_loop import NotificationLoop
from .web import create_app

logger = logging.getLogger(__name__)


def build_loop(settings: Settings) -> NotificationLoop:
    """Construct the process-wide loop, aggregator and subscriber registry."""
    registry = SubscriptionRegistry(write_timeout=settings.write_timeout)
    return NotificationLoop(build_aggregator(settings), registry)


async def run_scheduler(settings: Settings) -> None:
    """Запустить APScheduler и HTTP-сервер."""
    loop = build_loop(settings)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        loop.run_cycle,
        "interval",
        seconds=settings.poll_interval,
        next_run_time=datetime.now(),
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    runner = web.AppRunner(create_app(loop))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", settings.port)
    await site.start()
    logger.info(f"Server listening on {settings.port}")

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()
        await runner.cleanup()


def add_service_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to feeds.yaml (optional)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (overrides PORT)")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polling cycles (overrides POLL_INTERVAL)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config)
    if args.port is not None:
        settings.port = args.port
    if args.interval is not None:
        if args.interval <= 0:
            raise SystemExit("--interval must be positive")
        settings.poll_interval = args.interval
    return settings


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="transitpulse notification service")
    add_service_arguments(parser)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    asyncio.run(run_scheduler(settings_from_args(args)))


if __name__ == "__main__":  # pragma: no cover
    main()
