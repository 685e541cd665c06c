# sources.py
"""Асинхронные клиенты upstream-источников статуса.

Every source implements the same narrow interface: ``await
source.fetch(session)`` returns the raw parsed payload for one feed or raises.
Failures are *not* handled here beyond a short tenacity retry; the
aggregator is responsible for substituting fallback data.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
from bs4 import BeautifulSoup
from tenacity import retry, stop_after_attempt, wait_exponential_jitter
from yarl import URL

from .classify import AlertPolicy, AlwaysAlertPolicy, disruption_policy

logger = logging.getLogger(__name__)

NEWSAPI_URL = "https://newsapi.org/v2/top-headlines"


class SourceError(RuntimeError):
    """Upstream answered, but with nothing usable."""


@retry(
    wait=wait_exponential_jitter(initial=0.5, max=4),
    stop=stop_after_attempt(2),
    reraise=True,
)
async def fetch_body(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float,
    accept: str = "application/json",
) -> Tuple[str, str]:
    """GET ``url`` and return ``(content_type, text)``.

    Parameters
    ----------
    session : aiohttp.ClientSession
        Shared HTTP session
    url : str
        Upstream URL
    timeout : float
        Total request timeout in seconds

    Returns
    -------
    Tuple[str, str]
        Response content type and decoded body
    """
    async with session.get(
        url,
        headers={"Accept": accept},
        timeout=aiohttp.ClientTimeout(total=timeout),
    ) as resp:
        resp.raise_for_status()
        return resp.content_type or "", await resp.text()


class Source:
    """Base class for one upstream feed."""

    kind = "base"

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def fetch(self, session: aiohttp.ClientSession) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class JsonSource(Source):
    """Plain JSON endpoint (trains, traffic)."""

    kind = "json"

    async def fetch(self, session: aiohttp.ClientSession) -> Any:
        _, body = await fetch_body(session, self.url, self.timeout)
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise SourceError(f"Malformed JSON from {self.url}: {e}") from e
        logger.debug(f"Fetched JSON payload from {self.url}")
        return payload


class SubwayStatusSource(Source):
    """Subway status: a JSON endpoint or an HTML status page.

    HTML pages are scraped for ``.line-status``/``.linea`` blocks, each of
    which contributes ``"<line> → <status>"``.
    """

    kind = "subway_status"

    def __init__(self, url: str, timeout: float = 10.0, policy: Optional[AlertPolicy] = None):
        super().__init__(url, timeout)
        self.policy = policy or disruption_policy()

    async def fetch(self, session: aiohttp.ClientSession) -> Any:
        content_type, body = await fetch_body(
            session, self.url, self.timeout,
            accept="application/json,text/html;q=0.9",
        )
        if "application/json" in content_type:
            try:
                return json.loads(body)
            except ValueError as e:
                raise SourceError(f"Malformed JSON from {self.url}: {e}") from e

        lines = self.parse_html(body)
        if not lines:
            raise SourceError(f"No line status found in HTML from {self.url}")
        logger.info(f"Scraped {len(lines)} subway lines from {self.url}")
        return lines

    def parse_html(self, html: str) -> List[Dict[str, Any]]:
        soup = BeautifulSoup(html, "html.parser")
        lines = []
        for block in soup.select(".line-status, .linea"):
            name = _first_text(block, ".name", "h3")
            status = _first_text(block, ".status", ".estado")
            if name:
                lines.append({"texto": f"{name} → {status}", "alerta": self.policy(status)})
        return lines


def _first_text(block, *selectors: str) -> str:
    for selector in selectors:
        node = block.select_one(selector)
        text = node.get_text(strip=True) if node else ""
        if text:
            return text
    return ""


class NewsApiSource(Source):
    """Top headlines from NewsAPI."""

    kind = "newsapi"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        policy: Optional[AlertPolicy] = None,
        country: str = "ar",
        page_size: int = 8,
    ):
        url = URL(NEWSAPI_URL).with_query(
            country=country, pageSize=page_size, apiKey=api_key
        )
        super().__init__(str(url), timeout)
        self.policy = policy or AlwaysAlertPolicy()

    def __repr__(self) -> str:
        # ключ API не должен попадать в логи
        return f"{type(self).__name__}({NEWSAPI_URL!r})"

    async def fetch(self, session: aiohttp.ClientSession) -> Any:
        try:
            _, body = await fetch_body(session, self.url, self.timeout)
        except aiohttp.ClientResponseError as e:
            logger.error(f"newsapi error: HTTP {e.status} {e.message}")
            raise
        try:
            articles = json.loads(body).get("articles") or []
        except (ValueError, AttributeError) as e:
            raise SourceError(f"Malformed NewsAPI response: {e}") from e
        if not articles:
            raise SourceError("NewsAPI returned no articles")

        items = []
        for article in articles:
            title = article.get("title") or ""
            description = article.get("description") or ""
            items.append({
                "texto": f"[URGENTE] {title}",
                "alerta": self.policy(f"{title} {description}"),
            })
        logger.info(f"Fetched {len(items)} headlines from NewsAPI")
        return items


SOURCE_TYPES = {
    JsonSource.kind: JsonSource,
    SubwayStatusSource.kind: SubwayStatusSource,
    NewsApiSource.kind: NewsApiSource,
}


def build_source(
    kind: str,
    url: str = "",
    api_key: str = "",
    timeout: float = 10.0,
    news_policy: Optional[AlertPolicy] = None,
) -> Optional[Source]:
    """Create the fetcher for one feed, or ``None`` when it is not configured."""
    if kind not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type {kind!r}; expected one of {sorted(SOURCE_TYPES)}")
    if kind == NewsApiSource.kind:
        if not api_key:
            return None
        return NewsApiSource(api_key, timeout=timeout, policy=news_policy)
    if not url:
        return None
    return SOURCE_TYPES[kind](url, timeout=timeout)
