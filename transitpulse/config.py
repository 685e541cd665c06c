# config.py
"""Service configuration.

Defaults and the feed catalogue come from ``feeds.yaml`` next to this
module (or a file passed explicitly); the environment overrides scalar
settings and supplies upstream URLs and keys.

Recognized environment variables:

* ``PORT`` - HTTP listen port (3000)
* ``POLL_INTERVAL`` - seconds between aggregation cycles (20)
* ``FETCH_TIMEOUT`` - per-source request timeout in seconds (10)
* ``WRITE_TIMEOUT`` - per-subscriber write timeout in seconds (5)
* ``NEWS_ALERT_POLICY`` - ``always`` or ``keywords`` (``always``)
* per-feed URL/key variables named in ``feeds.yaml`` (``TRENES_API_URL``,
  ``SUBTE_SOURCE_URL``, ``GCBA_TRANSITO_API``, ``NEWSAPI_KEY``)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from .models import AlertItem
from .normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "feeds.yaml"


@dataclass(frozen=True)
class FeedConfig:
    name: str
    type: str
    url: str = ""
    api_key: str = ""
    fallback: Tuple[AlertItem, ...] = ()

    @property
    def configured(self) -> bool:
        return bool(self.api_key if self.type == "newsapi" else self.url)


@dataclass
class Settings:
    port: int = 3000
    poll_interval: float = 20.0
    fetch_timeout: float = 10.0
    write_timeout: float = 5.0
    news_alert_policy: str = "always"
    feeds: List[FeedConfig] = field(default_factory=list)

    @property
    def feed_names(self) -> List[str]:
        return [f.name for f in self.feeds]


def _env(environ: Mapping[str, str], key: str, default: Any) -> Any:
    # пустая переменная окружения == не задана
    return (environ.get(key) or "").strip() or default


def _number(raw: Any, name: str, cast=float):
    try:
        value = cast(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _feed(entry: Dict[str, Any], environ: Mapping[str, str]) -> FeedConfig:
    for key in ("name", "type"):
        if not entry.get(key):
            raise ValueError(f"Feed entry is missing {key!r}: {entry}")
    url = entry.get("url") or ""
    if entry.get("url_env"):
        url = environ.get(entry["url_env"], url)
    api_key = entry.get("api_key") or ""
    if entry.get("key_env"):
        api_key = environ.get(entry["key_env"], api_key)
    return FeedConfig(
        name=entry["name"],
        type=entry["type"],
        url=url.strip(),
        api_key=api_key.strip(),
        fallback=normalize(entry.get("fallback") or []),
    )


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load ``feeds.yaml`` and apply environment overrides."""
    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    feeds = [_feed(entry, environ) for entry in config.get("feeds") or []]
    if not feeds:
        raise ValueError(f"No feeds declared in {config_path}")

    settings = Settings(
        port=_number(_env(environ, "PORT", config.get("port", 3000)), "PORT", int),
        poll_interval=_number(
            _env(environ, "POLL_INTERVAL", config.get("poll_interval", 20)), "POLL_INTERVAL"
        ),
        fetch_timeout=_number(
            _env(environ, "FETCH_TIMEOUT", config.get("fetch_timeout", 10)), "FETCH_TIMEOUT"
        ),
        write_timeout=_number(
            _env(environ, "WRITE_TIMEOUT", config.get("write_timeout", 5)), "WRITE_TIMEOUT"
        ),
        news_alert_policy=str(
            _env(environ, "NEWS_ALERT_POLICY", config.get("news_alert_policy", "always"))
        ),
        feeds=feeds,
    )
    live = [f.name for f in feeds if f.configured]
    logger.info(f"Loaded {len(feeds)} feeds from {config_path} (live upstream: {live or 'none'})")
    return settings
