"""
Change event publish/subscribe

Writes made through ScoringDB (or changes relayed from Supabase Realtime)
are published here. Judge screens, the results board and the admin filter
bar listen through per-competition queues (websocket) or local callbacks.
"""

from typing import Dict, Any, List, Callable, Optional, Iterable
from datetime import datetime
from dataclasses import dataclass, field
from loguru import logger
import json
import asyncio
from collections import defaultdict, deque

from topaz.config import realtime_config
from topaz.models import ChangeType


@dataclass
class ChangeEvent:
    """Row change on one table"""
    table: str
    change_type: ChangeType
    competition_id: Optional[str] = None
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = "local"                 # "local" or "supabase"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "change_type": ChangeType(self.change_type).value,
            "competition_id": self.competition_id,
            "new": self.new,
            "old": self.old,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


class Subscription:
    """One websocket client's view of a competition's changes"""

    def __init__(self, competition_id: str, tables: Optional[Iterable[str]] = None, maxsize: int = 256):
        self.competition_id = competition_id
        self.tables = set(tables) if tables else None
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def wants(self, event: ChangeEvent) -> bool:
        if event.competition_id is None:
            # deletes whose competition could not be resolved go to every client
            if ChangeType(event.change_type) != ChangeType.DELETE:
                return False
        elif event.competition_id != self.competition_id:
            return False
        return self.tables is None or event.table in self.tables

    def offer(self, event: ChangeEvent) -> None:
        """Queue an event, dropping the oldest one when the client lags"""
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
            logger.warning(f"Subscriber lagging on {self.competition_id}, dropped {self.dropped} events")
        self.queue.put_nowait(event)

    async def get(self, timeout: Optional[float] = None) -> ChangeEvent:
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout)


class EventPublisher:
    """Change event publisher"""

    def __init__(self, queue_size: int = None, event_log_size: int = None):
        self.queue_size = queue_size or realtime_config.queue_size
        self.local_subscribers: Dict[str, List[Callable]] = defaultdict(list)
        self._subscriptions: List[Subscription] = []
        self._event_log: deque = deque(maxlen=event_log_size or realtime_config.event_log_size)
        # True while the Supabase relay is the change source
        self.relay_active = False

    def publish(self, event: ChangeEvent) -> None:
        """Publish an event to callbacks and queue subscribers"""
        if self.relay_active and event.source == "local":
            logger.debug(f"Local change on {event.table} left to the Supabase relay")
            return

        logger.debug(
            f"Change published: {event.table} {ChangeType(event.change_type).value} "
            f"(competition {event.competition_id})"
        )

        self._event_log.append(event)

        for subscriber in list(self.local_subscribers.get(event.table, [])) + list(self.local_subscribers.get("*", [])):
            try:
                subscriber(event)
            except Exception as e:
                logger.error(f"Change callback failed: {e}")

        for subscription in list(self._subscriptions):
            if subscription.wants(event):
                subscription.offer(event)

    def publish_change(
        self,
        table: str,
        change_type: ChangeType,
        competition_id: Optional[str] = None,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
        source: str = "local"
    ) -> ChangeEvent:
        event = ChangeEvent(
            table=table,
            change_type=change_type,
            competition_id=competition_id,
            new=new,
            old=old,
            source=source,
        )
        self.publish(event)
        return event

    def subscribe(self, table: str, callback: Callable) -> None:
        """Register a callback for one table ("*" for all tables)"""
        self.local_subscribers[table].append(callback)
        logger.debug(f"Subscribed to {table}")

    def unsubscribe(self, table: str, callback: Callable) -> None:
        if callback in self.local_subscribers[table]:
            self.local_subscribers[table].remove(callback)
            logger.debug(f"Unsubscribed from {table}")

    def open_subscription(self, competition_id: str, tables: Optional[Iterable[str]] = None) -> Subscription:
        """Queue subscription for one competition, optionally limited to some tables"""
        subscription = Subscription(competition_id, tables, maxsize=self.queue_size)
        self._subscriptions.append(subscription)
        logger.info(f"Change feed opened for competition {competition_id} ({len(self._subscriptions)} open)")
        return subscription

    def close_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.info(f"Change feed closed for competition {subscription.competition_id}")

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def get_recent_events(self, limit: int = 100, competition_id: Optional[str] = None) -> List[ChangeEvent]:
        """Most recent events, oldest first"""
        events = list(self._event_log)
        if competition_id:
            events = [e for e in events if e.competition_id == competition_id]
        return events[-limit:]


_publisher: Optional[EventPublisher] = None


def get_publisher() -> EventPublisher:
    """Process-wide publisher"""
    global _publisher
    if _publisher is None:
        _publisher = EventPublisher()
    return _publisher
