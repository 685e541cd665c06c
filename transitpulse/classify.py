# classify.py
"""Alert classification policies.

Deciding whether a line of upstream text is an alert is a business rule, so
it lives here as named, swappable objects instead of inline regexes in the
fetchers.
"""

import re
from typing import Dict, Type


class AlertPolicy:
    """Base policy: nothing is an alert."""

    name = "never"

    def is_alert(self, text: str) -> bool:
        return False

    def __call__(self, text: str) -> bool:
        return self.is_alert(text or "")


class AlwaysAlertPolicy(AlertPolicy):
    """Every item is an alert.

    This is how the news feed has always behaved: every headline is
    published as urgent regardless of its content.
    """

    name = "always"

    def is_alert(self, text: str) -> bool:
        return True


class KeywordAlertPolicy(AlertPolicy):
    """Alert when ``pattern`` matches anywhere in the text (case-insensitive)."""

    name = "keywords"

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern, re.IGNORECASE)

    def is_alert(self, text: str) -> bool:
        return bool(self.pattern.search(text))


# Срочные новости: заголовок или описание
NEWS_KEYWORDS = r"urgente|rompe|explota|muert|herid"
# Статус линии метро: перерыв или задержка
DISRUPTION_KEYWORDS = r"interrump|demor"


def news_policy(name: str) -> AlertPolicy:
    """Build the news alert policy selected by ``name``."""
    policies: Dict[str, Type[AlertPolicy]] = {
        AlwaysAlertPolicy.name: AlwaysAlertPolicy,
        KeywordAlertPolicy.name: KeywordAlertPolicy,
        AlertPolicy.name: AlertPolicy,
    }
    key = (name or "").strip().lower()
    if key not in policies:
        raise ValueError(
            f"Unknown news alert policy {name!r}; expected one of {sorted(policies)}"
        )
    if key == KeywordAlertPolicy.name:
        return KeywordAlertPolicy(NEWS_KEYWORDS)
    return policies[key]()


def disruption_policy() -> AlertPolicy:
    return KeywordAlertPolicy(DISRUPTION_KEYWORDS)
