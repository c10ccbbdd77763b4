"""
Competition change feed

Score, entry, competition and admin-filter changes fanned out to
websocket clients and in-process callbacks.
"""
from .events import ChangeEvent, EventPublisher, Subscription, get_publisher

__all__ = [
    "ChangeEvent",
    "EventPublisher",
    "Subscription",
    "get_publisher",
]
