# aggregator.py
"""Concurrent multi-source fetching with per-feed fallback.

All configured sources are fetched in parallel within one
``aiohttp.ClientSession``.  A source that fails for any reason is replaced by
its static fallback items, so a snapshot always contains every feed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import aiohttp

from .classify import news_policy
from .models import AlertItem, Feed, Snapshot
from .normalizer import normalize
from .sources import Source, build_source
from .user_agent import get_default_user_agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSource:
    """One declared feed: its name, optional fetcher and fallback items."""

    name: str
    source: Optional[Source]
    fallback: Tuple[AlertItem, ...] = ()


class SourceAggregator:
    """Builds :class:`Snapshot` objects from a fixed, ordered set of feeds."""

    def __init__(
        self,
        feeds: Sequence[FeedSource],
        clock: Callable[[], float] = time.time,
    ):
        names = [f.name for f in feeds]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate feed names: {names}")
        self.feeds: List[FeedSource] = list(feeds)
        self.clock = clock

    @property
    def feed_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.feeds)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(headers={"User-Agent": get_default_user_agent()})

    async def aggregate(self) -> Snapshot:
        """Fetch every feed concurrently and return the combined snapshot."""
        async with self._session() as session:
            # Каждая задача сама ловит свои ошибки, gather ждёт все
            feeds = await asyncio.gather(
                *(self._fetch(feed, session) for feed in self.feeds)
            )
        snapshot = Snapshot(feeds=tuple(feeds), captured_at=self.clock())
        fallback = [f.name for f in feeds if f.fallback]
        if fallback:
            logger.info(f"Aggregated {len(feeds)} feeds ({len(fallback)} on fallback: {fallback})")
        else:
            logger.debug(f"Aggregated {len(feeds)} feeds")
        return snapshot

    async def fetch_feed(self, name: str) -> Feed:
        """Fetch a single feed with the same fallback rules as :meth:`aggregate`."""
        for feed in self.feeds:
            if feed.name == name:
                async with self._session() as session:
                    return await self._fetch(feed, session)
        raise KeyError(name)

    async def _fetch(self, feed: FeedSource, session: aiohttp.ClientSession) -> Feed:
        if feed.source is None:
            return Feed(name=feed.name, items=feed.fallback, fallback=True)
        try:
            raw = await feed.source.fetch(session)
        except Exception as e:
            # таймауты, сетевые ошибки, битый payload: всё заменяется fallback
            logger.warning(
                f"Source {feed.name} failed ({type(e).__name__}: {e}); using fallback"
            )
            return Feed(name=feed.name, items=feed.fallback, fallback=True)
        return Feed(name=feed.name, items=normalize(raw))


def build_aggregator(settings) -> SourceAggregator:
    """Create the aggregator for every feed declared in ``settings``."""
    policy = news_policy(settings.news_alert_policy)
    feeds = []
    for feed in settings.feeds:
        source = build_source(
            feed.type,
            url=feed.url,
            api_key=feed.api_key,
            timeout=settings.fetch_timeout,
            news_policy=policy,
        )
        if source is None:
            logger.info(f"Feed {feed.name} has no upstream configured; serving fallback data")
        feeds.append(FeedSource(name=feed.name, source=source, fallback=feed.fallback))
    return SourceAggregator(feeds)
