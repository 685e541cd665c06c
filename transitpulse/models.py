# models.py
"""Immutable value types shared by the aggregation and notification layers.

The shapes here are deliberately small: an :class:`AlertItem` is one line of
status text, a :class:`Feed` is the ordered list of items for one category
(trains, subway, traffic, news) and a :class:`Snapshot` is every feed as
observed at one moment.  Nothing in this module is ever mutated after
construction; every aggregation cycle builds fresh objects.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AlertItem:
    text: str
    is_alert: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation consumed by the dashboard (``texto``/``alerta``)."""
        return {"texto": self.text, "alerta": self.is_alert}


@dataclass(frozen=True)
class Feed:
    """Ordered items for one named category.

    ``fallback`` tells whether the items are the static substitute data
    rather than a live upstream response.  It never takes part in
    fingerprinting.
    """

    name: str
    items: Tuple[AlertItem, ...] = ()
    fallback: bool = False

    def to_list(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.items]


@dataclass(frozen=True)
class Snapshot:
    """All feeds at one point in time, in declared feed order."""

    feeds: Tuple[Feed, ...]
    captured_at: float = field(default_factory=time.time)

    @property
    def feed_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.feeds)

    def feed(self, name: str) -> Optional[Feed]:
        for f in self.feeds:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "captured_at": self.captured_at,
            "feeds": {f.name: f.to_list() for f in self.feeds},
            "fallback": [f.name for f in self.feeds if f.fallback],
        }
