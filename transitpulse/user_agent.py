"""
Модуль для работы с User-Agent строками
"""

import platform
import sys
from typing import Optional

BOT_NAME = "TransitPulseBot"


def get_user_agent(
    contact_url: Optional[str] = None,
    version: Optional[str] = None
) -> str:
    """
    Создает User-Agent строку для запросов к источникам

    Args:
        contact_url: URL для контактной информации
        version: Версия сервиса

    Returns:
        User-Agent строка
    """
    if version is None:
        from . import __version__ as version

    parts = [
        f"{BOT_NAME}/{version}",
        "transitpulse",
        f"({platform.system()}; {platform.machine()})",
        f"Python/{sys.version_info.major}.{sys.version_info.minor}",
        f"+{contact_url or 'https://github.com/transitpulse'}",
    ]
    return " ".join(parts)


def get_default_user_agent() -> str:
    """Возвращает User-Agent по умолчанию."""
    return get_user_agent()
