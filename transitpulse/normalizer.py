# normalizer.py
"""Приведение сырых ответов источников к списку :class:`AlertItem`.

Upstream payloads have no agreed schema: some sources return a list of
strings, some a list of objects with ``texto``/``alerta`` (the legacy
dashboard shape), others ``title``-only objects or a single object.  The
normalizer never raises; anything unexpected degrades to text.
"""

import json
import logging
from typing import Any, Mapping, Tuple

from .models import AlertItem

logger = logging.getLogger(__name__)

# Порядок важен: первое непустое поле побеждает
TEXT_FIELDS = ("text", "texto", "title")
ALERT_FIELDS = ("isAlert", "alerta", "alert")


def render(value: Any) -> str:
    """Compact JSON rendering of ``value``; falls back to ``str``/``repr``."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    except Exception:
        # циклические ссылки, падающий __str__ и т.п.
        pass
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def _item_from_mapping(element: Mapping) -> AlertItem:
    text = None
    for key in TEXT_FIELDS:
        candidate = element.get(key)
        if candidate:
            text = candidate if isinstance(candidate, str) else render(candidate)
            break
    if text is None:
        text = render(element)

    is_alert = False
    for key in ALERT_FIELDS:
        if element.get(key) is not None:
            is_alert = bool(element[key])
            break
    return AlertItem(text=text, is_alert=is_alert)


def _item_from_element(element: Any) -> AlertItem:
    if isinstance(element, str):
        return AlertItem(text=element)
    if isinstance(element, Mapping):
        try:
            return _item_from_mapping(element)
        except Exception as e:
            # e.g. a mapping whose __bool__/__eq__ misbehaves
            logger.debug(f"Falling back to text rendering for element: {e}")
    return AlertItem(text=render(element))


def normalize(raw: Any) -> Tuple[AlertItem, ...]:
    """Convert one raw source payload into an ordered tuple of items.

    Parameters
    ----------
    raw : Any
        Already-parsed JSON value of unknown shape, or ``None`` when the
        fetch produced nothing.

    Returns
    -------
    Tuple[AlertItem, ...]
        One item per list element, a single item for any other value,
        empty for ``None``.
    """
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(_item_from_element(element) for element in raw)
    return (AlertItem(text=render(raw)),)
