# alerts package
"""Push-уведомления подписчикам: SSE-кадры и реестр подписок."""

from .registry import DeliveryResult, Subscriber, SubscriptionRegistry
from .sse import (
    SseTransport,
    Transport,
    connected_event,
    encode_frame,
    update_event,
)

__all__ = [
    "DeliveryResult",
    "Subscriber",
    "SubscriptionRegistry",
    "SseTransport",
    "Transport",
    "connected_event",
    "encode_frame",
    "update_event",
]
