#!/usr/bin/env python3
"""Tests for APScheduler-based service runner."""

import asyncio
import logging
import socket

import aiohttp
import pytest

from transitpulse import scheduler
from transitpulse.config import load_settings
from transitpulse.notification_loop import NotificationLoop


class DummyScheduler:
    """Record scheduled jobs without running them."""

    def __init__(self):
        self.jobs = []
        self.started = False
        self.shutdown_called = False

    def add_job(self, func, trigger, **kwargs):
        self.jobs.append((func, trigger, kwargs))

    def start(self):
        self.started = True

    def shutdown(self):
        self.shutdown_called = True


def free_port():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def test_build_loop_uses_settings():
    settings = load_settings(environ={"WRITE_TIMEOUT": "2"})
    loop = scheduler.build_loop(settings)
    assert isinstance(loop, NotificationLoop)
    assert loop.registry.write_timeout == 2
    assert loop.aggregator.feed_names == ("trenes", "subtes", "transito", "noticias")
    assert loop.last_snapshot is None


@pytest.mark.asyncio
async def test_run_scheduler_schedules_cycles_and_serves(monkeypatch):
    """Scheduler registers the polling job and the HTTP server answers."""
    sched_instances = []

    def fake_scheduler():
        instance = DummyScheduler()
        sched_instances.append(instance)
        return instance

    monkeypatch.setattr(scheduler, "AsyncIOScheduler", fake_scheduler)

    settings = load_settings(environ={"POLL_INTERVAL": "7"})
    settings.port = free_port()
    task = asyncio.create_task(scheduler.run_scheduler(settings))

    async with aiohttp.ClientSession() as session:
        for _ in range(20):
            try:
                async with session.get(f"http://127.0.0.1:{settings.port}/health") as resp:
                    assert resp.status == 200
                    assert (await resp.json())["status"] == "ok"
                    break
            except aiohttp.ClientConnectionError:
                await asyncio.sleep(0.1)
        else:  # pragma: no cover - loop didn't break
            pytest.fail("health endpoint not responding")

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    sched = sched_instances[0]
    assert sched.started and sched.shutdown_called
    (func, trigger, kwargs), = sched.jobs
    assert func.__name__ == "run_cycle"
    assert isinstance(func.__self__, NotificationLoop)
    assert trigger == "interval"
    assert kwargs["seconds"] == 7
    assert kwargs["max_instances"] == 1
    assert kwargs["next_run_time"] is not None


def test_main_default_arguments(monkeypatch):
    """Main uses config defaults when no flags are given."""
    called = {}

    async def fake_run_scheduler(settings):
        called["settings"] = settings

    monkeypatch.setattr(scheduler, "run_scheduler", fake_run_scheduler)
    for var in ("PORT", "POLL_INTERVAL"):
        monkeypatch.delenv(var, raising=False)

    log_config = {}

    def fake_basicConfig(level, format):
        log_config["level"] = level

    monkeypatch.setattr(logging, "basicConfig", fake_basicConfig)

    monkeypatch.setattr("sys.argv", ["scheduler"])
    scheduler.main()

    assert called["settings"].port == 3000
    assert called["settings"].poll_interval == 20
    assert log_config["level"] == logging.INFO


def test_main_custom_arguments(monkeypatch):
    """Main passes CLI overrides and verbose logging."""
    called = {}

    async def fake_run_scheduler(settings):
        called["settings"] = settings

    monkeypatch.setattr(scheduler, "run_scheduler", fake_run_scheduler)
    monkeypatch.setenv("PORT", "4000")

    log_config = {}

    def fake_basicConfig(level, format):
        log_config["level"] = level

    monkeypatch.setattr(logging, "basicConfig", fake_basicConfig)

    scheduler.main(["--port", "9001", "--interval", "2.5", "--verbose"])

    assert called["settings"].port == 9001
    assert called["settings"].poll_interval == 2.5
    assert log_config["level"] == logging.DEBUG


def test_main_rejects_non_positive_interval(monkeypatch):
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
    with pytest.raises(SystemExit):
        scheduler.main(["--interval", "0"])
