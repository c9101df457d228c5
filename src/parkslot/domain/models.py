# File: src/parkslot/domain/models.py
"""
Domain Models for the slot allocation engine

This module contains:
1. Clocks: injectable time sources used to measure dwell time
2. Enums: lot categories
3. Slot: a single occupancy cell
4. Domain Events: events raised when slots change state
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
import threading
import uuid

from .exceptions import UnknownParkingTypeError


# ============================================================================
# CLOCKS
# ============================================================================

class Clock(ABC):
    """
    Time source for occupancy tracking
    Must be non-decreasing for the duration of one occupancy
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time"""
        pass


class SystemClock(Clock):
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(Clock):
    """
    Clock that only moves when told to
    Used by tests and the demo to simulate long stays
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        """
        Move the clock forward
        Returns: the new current time
        """
        delta = timedelta(minutes=minutes, seconds=seconds)
        if delta < timedelta(0):
            raise ValueError("ManualClock cannot move backwards")

        with self._lock:
            self._now += delta
            return self._now


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """
    Whole minutes between two instants, truncated
    Clamped at zero if the clock went backwards
    """
    seconds = int((end - start).total_seconds())
    return max(0, seconds // 60)


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class LotCategory(Enum):
    """
    Enumeration of lot categories
    Standard lots serve fossil fuel cars, the others offer a charging outlet
    """
    STANDARD = "standard"       # No outlet
    OUTLET_20KW = "20kW"        # Outlet delivering up to 20 kW
    OUTLET_50KW = "50kW"        # Outlet delivering up to 50 kW

    @property
    def outlet_power_kw(self) -> int:
        """Maximum outlet power in kilowatts, 0 for standard lots"""
        powers = {
            LotCategory.STANDARD: 0,
            LotCategory.OUTLET_20KW: 20,
            LotCategory.OUTLET_50KW: 50,
        }
        return powers[self]

    @property
    def has_outlet(self) -> bool:
        return self.outlet_power_kw > 0

    @classmethod
    def parse(cls, value: Any) -> 'LotCategory':
        """
        Resolve a category from a member or its string value
        Raises: UnknownParkingTypeError if the value matches no category
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logging.getLogger(cls.__name__).warning(f"Unknown parking type {value!r}")
            raise UnknownParkingTypeError(value) from None

    def __str__(self) -> str:
        names = {
            LotCategory.STANDARD: "Standard",
            LotCategory.OUTLET_20KW: "20 kW Outlet",
            LotCategory.OUTLET_50KW: "50 kW Outlet",
        }
        return names[self]


# ============================================================================
# SLOT
# ============================================================================

class Slot:
    """
    A single occupancy cell with the entry time of the current stay

    The owning pool guarantees check_in is only called on a free slot
    and check_out only on an occupied one; the slot itself does not check.
    """

    __slots__ = ("number", "occupied", "entry_time")

    def __init__(self, number: int):
        self.number = number
        self.occupied = False
        self.entry_time: Optional[datetime] = None

    def check_in(self, now: datetime) -> None:
        """Mark the slot occupied and start the timer"""
        self.occupied = True
        self.entry_time = now

    def check_out(self, now: datetime) -> int:
        """
        Free the slot
        Returns: whole minutes the vehicle stayed
        """
        entry_time = self.entry_time or now
        self.occupied = False
        self.entry_time = None
        return elapsed_minutes(entry_time, now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_id": str(self.number),
            "occupied": self.occupied,
            "entry_time": self.entry_time.isoformat() if self.entry_time else None,
        }

    def __repr__(self) -> str:
        state = "occupied" if self.occupied else "free"
        return f"Slot(number={self.number}, {state})"


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for domain events
    Events are immutable records of something that happened
    """

    def __init__(self, occurred_at: datetime):
        self.event_id = str(uuid.uuid4())
        self.occurred_at = occurred_at

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.event_type}({self.event_id})"


class SlotCheckedInEvent(DomainEvent):
    """Event: a vehicle took a slot"""

    def __init__(self, pool_id: Optional[str], slot_id: str, occurred_at: datetime):
        super().__init__(occurred_at)
        self.pool_id = pool_id
        self.slot_id = slot_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"pool_id": self.pool_id, "slot_id": self.slot_id})
        return data


class SlotCheckedOutEvent(DomainEvent):
    """Event: a vehicle left its slot after the given number of minutes"""

    def __init__(
        self,
        pool_id: Optional[str],
        slot_id: str,
        minutes: int,
        occurred_at: datetime
    ):
        super().__init__(occurred_at)
        self.pool_id = pool_id
        self.slot_id = slot_id
        self.minutes = minutes

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "pool_id": self.pool_id,
            "slot_id": self.slot_id,
            "minutes": self.minutes,
        })
        return data
