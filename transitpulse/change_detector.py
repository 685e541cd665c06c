# change_detector.py
"""Snapshot fingerprinting and change detection."""

import hashlib
import json
import logging
from typing import Optional

from .models import Snapshot

logger = logging.getLogger(__name__)


def canonical(snapshot: Snapshot) -> str:
    """Serialize feed names and items in order; timestamps are left out."""
    return json.dumps(
        [
            [feed.name, [[item.text, item.is_alert] for item in feed.items]]
            for feed in snapshot.feeds
        ],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def fingerprint(snapshot: Snapshot) -> str:
    return hashlib.sha256(canonical(snapshot).encode()).hexdigest()


class ChangeDetector:
    """Сравнивает снимки по содержимому, а не по времени захвата."""

    def differs(self, previous: Optional[Snapshot], current: Snapshot) -> bool:
        if previous is None:
            logger.info("No previous snapshot; treating first observation as a change")
            return True
        old_hash = fingerprint(previous)
        new_hash = fingerprint(current)
        logger.debug(f"Fingerprint {old_hash[:16]}... -> {new_hash[:16]}...")
        return old_hash != new_hash
