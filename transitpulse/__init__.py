# transitpulse package
"""Агрегатор статусов транспорта с push-уведомлениями об изменениях."""

__version__ = "1.0.0"

from .models import AlertItem, Feed, Snapshot
from .normalizer import normalize
from .classify import AlertPolicy, AlwaysAlertPolicy, KeywordAlertPolicy, news_policy
from .sources import JsonSource, NewsApiSource, Source, SourceError, SubwayStatusSource
from .aggregator import FeedSource, SourceAggregator, build_aggregator
from .change_detector import ChangeDetector, fingerprint
from .alerts import SubscriptionRegistry, SseTransport, Transport
from .notification_loop import LoopState, NotificationLoop
from .config import Settings, load_settings

__all__ = [
    # Models
    "AlertItem", "Feed", "Snapshot",

    # Normalization and classification
    "normalize", "AlertPolicy", "AlwaysAlertPolicy", "KeywordAlertPolicy", "news_policy",

    # Sources
    "Source", "SourceError", "JsonSource", "SubwayStatusSource", "NewsApiSource",
    "FeedSource", "SourceAggregator", "build_aggregator",

    # Change detection and notification
    "ChangeDetector", "fingerprint",
    "SubscriptionRegistry", "SseTransport", "Transport",
    "LoopState", "NotificationLoop",

    # Configuration
    "Settings", "load_settings",
]
