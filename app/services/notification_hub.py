"""
Realtime Change Notifications
In-process publish/subscribe for row changes, filtered per subscriber
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from app.config.settings import NOTIFICATION_QUEUE_SIZE, NOTIFICATION_TTL_SECONDS

logger = logging.getLogger(__name__)


class ChangeType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    new: Dict[str, Any]
    old: Optional[Dict[str, Any]] = None
    committed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ChannelFilter:
    """Match events on one table, optionally one event type and one column value"""
    table: str
    column: Optional[str] = None
    value: Optional[Any] = None
    event: str = "*"

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        if self.event != "*" and change.event_type != self.event:
            return False
        if self.column is None:
            return True
        row = change.new if change.event_type != ChangeType.DELETE else (change.old or {})
        return str(row.get(self.column)) == str(self.value)


_CLOSED = object()


class ChangeStream:
    """
    One subscriber's stream of change events.

    Iterating waits for events forever until the stream is closed. A stream
    can be iterated only once; subscribe again for a fresh one.
    """

    def __init__(self, hub: "NotificationHub", filters: List[ChannelFilter], maxsize: int):
        self._hub = hub
        self.filters = filters
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._started = False
        self.closed = False

    def wants(self, change: ChangeEvent) -> bool:
        return any(f.matches(change) for f in self.filters)

    def offer(self, change: ChangeEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(change)
            return True
        except asyncio.QueueFull:
            logger.warning(f"Dropping {change.table} {change.event_type} event: subscriber queue full")
            return False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._hub.unsubscribe(self)
        # Pending events are discarded so the sentinel always fits
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        if self._started:
            raise RuntimeError("Change stream cannot be restarted")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChangeEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class NotificationHub:
    """Fan-out of change events to every subscriber whose filters match"""

    def __init__(self, queue_size: int = NOTIFICATION_QUEUE_SIZE):
        self.queue_size = queue_size
        self._streams: Set[ChangeStream] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._streams)

    def subscribe(self, *filters: ChannelFilter) -> ChangeStream:
        if not filters:
            raise ValueError("At least one channel filter is required")
        stream = ChangeStream(self, list(filters), self.queue_size)
        self._streams.add(stream)
        return stream

    def unsubscribe(self, stream: ChangeStream) -> None:
        self._streams.discard(stream)

    def publish(self, change: ChangeEvent) -> int:
        """Deliver to matching subscribers; returns how many accepted it"""
        delivered = 0
        for stream in list(self._streams):
            if stream.wants(change) and stream.offer(change):
                delivered += 1
        logger.debug(f"Published {change.table} {change.event_type} to {delivered} subscriber(s)")
        return delivered


def _plain(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def snapshot(record: Any) -> Dict[str, Any]:
    """Column values of an ORM row as JSON-friendly data"""
    return {c.key: _plain(getattr(record, c.key)) for c in record.__table__.columns}


def describe_change(change: ChangeEvent) -> Optional[Dict[str, Any]]:
    """
    Turn a change event into the notification an agent sees, or None when the
    change is not worth telling them about.
    """
    if change.event_type != ChangeType.UPDATE:
        return None

    row = change.new
    kind = title = message = None

    if change.table == "payments":
        if row.get("status") == "approved":
            kind, title = "payment_approved", "Payment Approved"
            message = f"Your {row.get('plan')} payment has been approved!"
        elif row.get("status") == "rejected":
            kind, title = "payment_rejected", "Payment Rejected"
            message = f"Your {row.get('plan')} payment was rejected. Please resubmit."
    elif change.table == "listings":
        if row.get("is_approved"):
            kind, title = "listing_approved", "Listing Approved"
            message = f"Your listing \"{row.get('title')}\" has been approved!"
        elif row.get("status") == "rejected":
            kind, title = "listing_rejected", "Listing Rejected"
            message = f"Your listing \"{row.get('title')}\" was rejected."
    elif change.table == "agent_approvals":
        if row.get("status") == "approved":
            kind, title = "registration_approved", "Registration Approved"
            message = "Your agent registration has been approved. Welcome aboard!"
        elif row.get("status") == "rejected":
            kind, title = "registration_rejected", "Registration Rejected"
            message = "Your agent registration was rejected."

    if kind is None:
        return None

    return {
        "id": uuid.uuid4().hex,
        "type": kind,
        "title": title,
        "message": message,
        "read": False,
        "created_at": change.committed_at.isoformat(),
        "expires_in_seconds": NOTIFICATION_TTL_SECONDS,
    }


# Global hub
notification_hub = NotificationHub()
