#!/usr/bin/env python3
"""
Pytest configuration and fixtures
"""

import pytest
from tenacity import wait_none

from transitpulse import sources
from transitpulse.aggregator import FeedSource, SourceAggregator
from transitpulse.alerts import SubscriptionRegistry
from tests.helpers import FakeSource, items


FALLBACKS = {
    "trenes": items(("Ramal Sarmiento → Demora 10 min", True), ("Ramal Mitre → Normal", False)),
    "subtes": items(("Línea B → Normal", False),),
    "transito": items(("Av. 9 de Julio → Cortada", True),),
    "noticias": items(("[URGENTE] Demo: noticia de prueba", True),),
}


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    """Tenacity retries without sleeping between attempts"""
    monkeypatch.setattr(sources.fetch_body.retry, "wait", wait_none())


@pytest.fixture
def fallbacks():
    return dict(FALLBACKS)


@pytest.fixture
def live_sources():
    """Работающие источники для всех четырёх фидов"""
    return {
        "trenes": FakeSource([{"texto": "Delay 10 min", "alerta": True}]),
        "subtes": FakeSource(["Línea A → Normal"]),
        "transito": FakeSource([{"title": "Panamericana → Fluido"}]),
        "noticias": FakeSource([{"texto": "[URGENTE] Corte total", "alerta": True}]),
    }


@pytest.fixture
def make_aggregator(fallbacks):
    def _make(sources_by_feed):
        return SourceAggregator(
            [
                FeedSource(name=name, source=sources_by_feed.get(name), fallback=fallback)
                for name, fallback in fallbacks.items()
            ],
            clock=lambda: 1700000000.0,
        )
    return _make


@pytest.fixture
def registry():
    return SubscriptionRegistry(write_timeout=0.5)
