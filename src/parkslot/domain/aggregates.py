# File: src/parkslot/domain/aggregates.py
"""
Aggregate Roots for the slot allocation engine

Aggregates:
1. SlotPool - fixed-capacity set of slots for one lot

Key Concepts:
- The aggregate root is the only way to change the state of its slots
- One lock per aggregate guards every read-decide-mutate sequence
- Domain events are collected for every state change and drained by the
  application layer
"""

from typing import List, Optional, Dict, Any, Callable, FrozenSet, Tuple
from datetime import datetime
import heapq
import logging
import threading
import uuid

from .exceptions import (
    InvalidCapacityError, SlotsFullError, SlotNotFoundError,
    BillingPolicyNotSetError
)
from .models import (
    Slot, Clock, SystemClock, DomainEvent,
    SlotCheckedInEvent, SlotCheckedOutEvent
)


# Any callable taking whole minutes and returning a price
BillingFunction = Callable[[int], Any]


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot:
    """
    Base class for all aggregate roots
    Provides identity, versioning, domain event collection and the
    aggregate's lock
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())
        self._version: int = 1
        self._changes: List[DomainEvent] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> int:
        """Get current aggregate version"""
        return self._version

    def _increment_version(self) -> None:
        """Increment version after state change. Caller holds the lock."""
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        """Record a domain event. Caller holds the lock."""
        self._changes.append(event)
        self._logger.debug(f"Added domain event: {event.event_type}")

    def clear_events(self) -> List[DomainEvent]:
        """
        Drain the pending domain events
        Returns: the events in the order they were raised
        """
        with self._lock:
            events = self._changes
            self._changes = []
        return events

    def has_changes(self) -> bool:
        with self._lock:
            return bool(self._changes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


# ============================================================================
# SLOT POOL AGGREGATE
# ============================================================================

class SlotPool(AggregateRoot):
    """
    Aggregate Root: the slots of one lot

    Slots live in a fixed tuple indexed by number; free numbers are kept
    in a min-heap so check-in always hands out the lowest free identifier.
    Slot identifiers are the strings "0" .. str(capacity - 1).

    Thread-safe: check-in and check-out run under the pool's lock. The
    billing function is called after the lock is released, with the
    elapsed minutes captured during the occupied->free transition.
    """

    def __init__(
        self,
        capacity: int,
        clock: Optional[Clock] = None,
        billing_policy: Optional[BillingFunction] = None,
        id: Optional[str] = None
    ):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            logging.getLogger(self.__class__.__name__).warning(f"Rejected pool capacity {capacity!r}")
            raise InvalidCapacityError(capacity)

        super().__init__(id)
        self._clock = clock or SystemClock()
        self._slots: Tuple[Slot, ...] = tuple(Slot(number) for number in range(capacity))
        self._slot_ids: Tuple[str, ...] = tuple(str(number) for number in range(capacity))
        self._numbers: Dict[str, int] = {
            slot_id: number for number, slot_id in enumerate(self._slot_ids)
        }
        # Already a valid heap: 0..capacity-1 in ascending order
        self._free: List[int] = list(range(capacity))
        self._billing_policy: Optional[BillingFunction] = None

        if billing_policy is not None:
            self.set_billing_policy(billing_policy)

        self._logger.info(f"Created SlotPool {self.id} with {capacity} slots")

    # ========================================================================
    # STATE TRANSITIONS
    # ========================================================================

    def check_in(self) -> str:
        """
        Occupy the lowest free slot
        Returns: identifier of the slot
        Raises: SlotsFullError if every slot is occupied
        """
        slot_id, _ = self.check_in_timed()
        return slot_id

    def check_in_timed(self) -> Tuple[str, datetime]:
        """
        Occupy the lowest free slot
        Returns: (slot identifier, entry time recorded on the slot)
        Raises: SlotsFullError if every slot is occupied
        """
        with self._lock:
            if not self._free:
                self._logger.warning(f"Pool {self.id} is full ({len(self._slots)} slots)")
                raise SlotsFullError(
                    f"All {len(self._slots)} slots of pool {self.id} are occupied"
                )

            number = heapq.heappop(self._free)
            now = self._clock.now()
            self._slots[number].check_in(now)
            slot_id = self._slot_ids[number]

            self._increment_version()
            self._add_domain_event(SlotCheckedInEvent(self.id, slot_id, now))

        self._logger.debug(f"Checked in slot {slot_id} of pool {self.id}")
        return slot_id, now

    def check_out(self, slot_id: str, billing_policy: Optional[BillingFunction] = None) -> Any:
        """
        Free an occupied slot and bill the stay

        Uses billing_policy if given, otherwise the policy bound with
        set_billing_policy. The policy's result is returned unchanged and
        its exceptions propagate; the slot is already free when it runs.

        Raises:
            SlotNotFoundError: slot_id is not currently occupied
            BillingPolicyNotSetError: no policy given and none bound
            TypeError: the policy is not callable
        """
        with self._lock:
            number = self._numbers.get(str(slot_id))
            if number is None or not self._slots[number].occupied:
                self._logger.warning(f"Check-out of slot {slot_id!r} rejected: not occupied")
                raise SlotNotFoundError(str(slot_id))

            policy = billing_policy if billing_policy is not None else self._billing_policy
            if policy is None:
                self._logger.warning(f"Check-out from pool {self.id} without a billing policy")
                raise BillingPolicyNotSetError(
                    f"No billing policy given and none set for pool {self.id}"
                )
            if not callable(policy):
                self._logger.warning(f"Check-out from pool {self.id} with a non-callable billing policy")
                raise TypeError(f"Billing policy must be callable, got {type(policy).__name__}")

            now = self._clock.now()
            minutes = self._slots[number].check_out(now)
            heapq.heappush(self._free, number)

            self._increment_version()
            self._add_domain_event(
                SlotCheckedOutEvent(self.id, self._slot_ids[number], minutes, now)
            )

        self._logger.debug(f"Checked out slot {slot_id} of pool {self.id} after {minutes} min")
        return policy(minutes)

    def set_billing_policy(self, billing_policy: BillingFunction) -> None:
        """Bind the default billing function used by check_out(slot_id)"""
        if not callable(billing_policy):
            raise TypeError(f"Billing policy must be callable, got {type(billing_policy).__name__}")

        with self._lock:
            self._billing_policy = billing_policy
        self._logger.info(f"Billing policy set for pool {self.id}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def billing_policy(self) -> Optional[BillingFunction]:
        return self._billing_policy

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def list_slot_ids(self) -> FrozenSet[str]:
        """All slot identifiers, free and occupied"""
        # Identifiers never change after construction, no lock needed
        return frozenset(self._slot_ids)

    def free_slot_ids(self) -> List[str]:
        """Snapshot of free identifiers, lowest first"""
        with self._lock:
            return [self._slot_ids[number] for number in sorted(self._free)]

    def occupied_slot_ids(self) -> List[str]:
        """Snapshot of occupied identifiers, lowest first"""
        with self._lock:
            return [self._slot_ids[slot.number] for slot in self._slots if slot.occupied]

    def is_occupied(self, slot_id: str) -> bool:
        number = self._numbers.get(str(slot_id))
        if number is None:
            return False
        with self._lock:
            return self._slots[number].occupied

    @property
    def free_count(self) -> int:
        with self._lock:
            return len(self._free)

    @property
    def occupied_count(self) -> int:
        with self._lock:
            return len(self._slots) - len(self._free)

    def get_occupancy_rate(self) -> float:
        """Occupied fraction between 0.0 and 1.0"""
        with self._lock:
            return (len(self._slots) - len(self._free)) / len(self._slots)

    def validate_invariants(self) -> None:
        """
        Check the free heap and the slot flags agree
        Raises: AssertionError describing the first violation found
        """
        with self._lock:
            free = set(self._free)
            if len(free) != len(self._free):
                raise AssertionError(f"Duplicate entries in free list of pool {self.id}")

            for slot in self._slots:
                if slot.occupied == (slot.number in free):
                    raise AssertionError(
                        f"Slot {slot.number} of pool {self.id} is both free and occupied"
                    )
                if slot.occupied != (slot.entry_time is not None):
                    raise AssertionError(f"Slot {slot.number} entry time out of sync")

    def get_status_report(self) -> Dict[str, Any]:
        """Consistent snapshot of the pool state"""
        with self._lock:
            free = len(self._free)
            return {
                "pool_id": self.id,
                "capacity": len(self._slots),
                "free": free,
                "occupied": len(self._slots) - free,
                "occupancy_rate": (len(self._slots) - free) / len(self._slots),
                "billing_policy_set": self._billing_policy is not None,
                "version": self._version,
            }

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            slots = [slot.to_dict() for slot in self._slots]
        return {"pool_id": self.id, "slots": slots}

    def __str__(self) -> str:
        report = self.get_status_report()
        return f"SlotPool {self.id}: {report['occupied']}/{report['capacity']} occupied"
