# File: src/parkslot/infrastructure/messaging.py
"""
In-process messaging for domain events

Slot pools raise SlotCheckedInEvent / SlotCheckedOutEvent; the parking
service drains them after every operation and publishes them here.
Handlers run synchronously on the publishing thread. A failing handler is
logged and skipped so it never affects the parking operation that raised
the event.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Any
import logging
import threading

from ..domain.models import DomainEvent, SlotCheckedInEvent, SlotCheckedOutEvent


ALL_EVENTS = "*"


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""
        pass

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class ParkingEventHandler(EventHandler):
    """
    Logs slot movements and keeps a live occupied count per pool
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._occupied: Dict[str, int] = {}
        self._minutes_billed: Dict[str, int] = {}
        self._lock = threading.Lock()

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, (SlotCheckedInEvent, SlotCheckedOutEvent))

    def handle(self, event: DomainEvent) -> None:
        pool_id = event.pool_id or "unknown"

        with self._lock:
            if isinstance(event, SlotCheckedInEvent):
                self._occupied[pool_id] = self._occupied.get(pool_id, 0) + 1
            else:
                self._occupied[pool_id] = self._occupied.get(pool_id, 0) - 1
                self._minutes_billed[pool_id] = self._minutes_billed.get(pool_id, 0) + event.minutes

        if isinstance(event, SlotCheckedInEvent):
            self.logger.info(f"Lot {pool_id}: slot {event.slot_id} taken")
        else:
            self.logger.info(f"Lot {pool_id}: slot {event.slot_id} freed after {event.minutes} min")

    def occupied(self, pool_id: str) -> int:
        with self._lock:
            return self._occupied.get(pool_id, 0)

    def minutes_billed(self, pool_id: str) -> int:
        with self._lock:
            return self._minutes_billed.get(pool_id, 0)


class InMemoryEventStore(EventHandler):
    """
    Keeps the most recent events as dictionaries
    Useful for inspection from the CLI and in tests
    """

    def __init__(self, max_events: int = 10000):
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def handle(self, event: DomainEvent) -> None:
        with self._lock:
            self._events.append(event.to_dict())

    def get_events(self, event_type: str = ALL_EVENTS) -> List[Dict[str, Any]]:
        with self._lock:
            events = list(self._events)
        if event_type == ALL_EVENTS:
            return events
        return [event for event in events if event["event_type"] == event_type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Handlers subscribe to an event type name (e.g. "SlotCheckedInEvent")
    or to ALL_EVENTS.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe to events of a specific type"""
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
        self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        self.subscribe(ALL_EVENTS, handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe handler from events"""
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                self._logger.debug(f"Unsubscribed {handler.__class__.__name__} from {event_type}")

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        self._logger.debug(f"Publishing event: {event.event_type} (ID: {event.event_id})")

        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))
            handlers += [h for h in self._subscribers.get(ALL_EVENTS, []) if h not in handlers]

        for handler in handlers:
            if not handler.can_handle(event):
                continue
            try:
                handler.handle(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling event {event.event_type} with {handler.__class__.__name__}: {e}",
                    exc_info=True
                )

    def clear_subscribers(self) -> None:
        """Clear all subscribers (for testing)"""
        with self._lock:
            self._subscribers.clear()
