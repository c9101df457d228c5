# File: src/parkslot/application/parking_service.py
"""
Parking Application Service

This module implements the lot registry: it creates slot pools, hands out
lot identifiers, routes check-in and check-out calls to the right pool and
publishes the domain events the pools raise.

Responsibilities:
1. Map lot identifiers to slot pools and lot categories
2. Validate lot identifiers and categories before the pool is touched
3. Hold the default billing policy of each lot (through its pool)
4. Report occupancy for display layers

The registry never interprets slot identifiers and never holds a pool's
lock; each pool serializes its own state changes.
"""

from typing import Dict, List, Optional, Any, Protocol, Tuple, runtime_checkable
from dataclasses import dataclass
from datetime import datetime
import logging
import threading

from ..domain.exceptions import UnknownParkingIdError
from ..domain.models import LotCategory, Clock, SystemClock, DomainEvent
from ..domain.aggregates import SlotPool, BillingFunction
from .dtos import LotStatusDTO, StatusReportDTO


@runtime_checkable
class EventPublisher(Protocol):
    """Anything that can publish domain events"""

    def publish(self, event: DomainEvent) -> None:
        ...


@dataclass(frozen=True)
class LotEntry:
    """Registry record for one lot"""
    parking_id: str
    category: LotCategory
    pool: SlotPool


# ============================================================================
# MAIN PARKING SERVICE
# ============================================================================

class ParkingService:
    """
    Lot registry and entry point for check-in / check-out

    Lot identifiers are "1", "2", ... in registration order and are unique
    per service instance. All registry state is guarded by one lock that is
    never held while calling into a pool.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        event_publisher: Optional[EventPublisher] = None
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._clock = clock or SystemClock()
        self._event_publisher = event_publisher
        self._lots: Dict[str, LotEntry] = {}
        self._next_id = 1
        self._lock = threading.Lock()

        self.logger.info("ParkingService initialized")

    @property
    def clock(self) -> Clock:
        return self._clock

    # ========================================================================
    # LOT REGISTRATION
    # ========================================================================

    def new_parking(
        self,
        number_of_slots: int,
        parking_type: Any,
        billing_policy: Optional[BillingFunction] = None
    ) -> str:
        """
        Create a lot with the given number of slots

        Returns: unique identifier of the new lot
        Raises:
            UnknownParkingTypeError: parking_type is not a known category
            InvalidCapacityError: number_of_slots < 1
        """
        category = LotCategory.parse(parking_type)

        with self._lock:
            parking_id = str(self._next_id)
            pool = SlotPool(
                number_of_slots,
                clock=self._clock,
                billing_policy=billing_policy,
                id=parking_id
            )
            self._lots[parking_id] = LotEntry(parking_id, category, pool)
            self._next_id += 1

        self.logger.info(f"Registered {category.value} lot {parking_id} with {number_of_slots} slots")
        return parking_id

    def set_billing_policy(self, parking_id: str, billing_policy: BillingFunction) -> None:
        """Bind the default billing policy used when check_out gets none"""
        self._find_lot(parking_id).pool.set_billing_policy(billing_policy)

    # ========================================================================
    # CHECK-IN / CHECK-OUT
    # ========================================================================

    def check_in(self, parking_id: str, parking_type: Any = None) -> str:
        """
        Check a vehicle in to a lot

        If parking_type is given the lot must be of that category.

        Returns: identifier of the allocated slot
        Raises:
            UnknownParkingTypeError: parking_type is not a known category
            UnknownParkingIdError: no such lot (of that category)
            SlotsFullError: the lot has no free slot
        """
        slot_id, _ = self.check_in_timed(parking_id, parking_type)
        return slot_id

    def check_in_timed(self, parking_id: str, parking_type: Any = None) -> Tuple[str, datetime]:
        """
        Same as check_in, also returning the entry time recorded on the slot
        Returns: (slot identifier, entry time)
        """
        # The type is validated before the lot is looked up
        category = LotCategory.parse(parking_type) if parking_type is not None else None
        entry = self._find_lot(parking_id)

        if category is not None and category is not entry.category:
            self.logger.warning(
                f"Lot {parking_id} is {entry.category.value}, not {category.value}"
            )
            raise UnknownParkingIdError(
                parking_id,
                f"There is no {category.value} lot with ID {parking_id!r}"
            )

        try:
            slot_id, entry_time = entry.pool.check_in_timed()
        finally:
            self._publish_events(entry.pool)

        self.logger.info(f"Checked in to lot {parking_id}, slot {slot_id}")
        return slot_id, entry_time

    def check_out(
        self,
        parking_id: str,
        slot_id: str,
        billing_policy: Optional[BillingFunction] = None
    ) -> Any:
        """
        Check a vehicle out and compute its price

        Uses billing_policy if given, otherwise the lot's bound policy.

        Returns: the price computed by the billing policy
        Raises:
            UnknownParkingIdError: no such lot
            SlotNotFoundError: the slot is not occupied
            BillingPolicyNotSetError: no policy given and none bound
        """
        entry = self._find_lot(parking_id)

        try:
            price = entry.pool.check_out(slot_id, billing_policy)
        finally:
            self._publish_events(entry.pool)

        self.logger.info(f"Checked out of lot {parking_id}, slot {slot_id}: price {price}")
        return price

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_pool(self, parking_id: str) -> SlotPool:
        return self._find_lot(parking_id).pool

    def get_parking_type(self, parking_id: str) -> LotCategory:
        return self._find_lot(parking_id).category

    def get_all_slot_ids(self, parking_id: str) -> List[str]:
        """All slot identifiers of a lot, in numeric order"""
        return sorted(self._find_lot(parking_id).pool.list_slot_ids(), key=int)

    def get_all_parking_ids(self, parking_type: Any = None) -> List[str]:
        """Identifiers of every lot, or of one category, in registration order"""
        category = LotCategory.parse(parking_type) if parking_type is not None else None

        with self._lock:
            entries = list(self._lots.values())

        return [
            entry.parking_id for entry in entries
            if category is None or entry.category is category
        ]

    def get_lot_status(self, parking_id: str) -> LotStatusDTO:
        entry = self._find_lot(parking_id)
        report = entry.pool.get_status_report()

        return LotStatusDTO(
            parking_id=entry.parking_id,
            parking_type=entry.category.value,
            capacity=report["capacity"],
            free=report["free"],
            occupied=report["occupied"],
            occupancy_rate=report["occupancy_rate"],
            billing_policy_set=report["billing_policy_set"]
        )

    def get_status_report(self) -> StatusReportDTO:
        """Occupancy of every lot"""
        return StatusReportDTO(
            lots=[self.get_lot_status(parking_id) for parking_id in self.get_all_parking_ids()],
            generated_at=self._clock.now()
        )

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _find_lot(self, parking_id: str) -> LotEntry:
        with self._lock:
            entry = self._lots.get(str(parking_id))

        if entry is None:
            self.logger.warning(f"Unknown parking ID {parking_id!r}")
            raise UnknownParkingIdError(str(parking_id))
        return entry

    def _publish_events(self, pool: SlotPool) -> None:
        events = pool.clear_events()
        if self._event_publisher is None:
            return

        for event in events:
            self._event_publisher.publish(event)


# ============================================================================
# FACTORY
# ============================================================================

class ParkingServiceFactory:
    """Factory for parking services with common setups"""

    @staticmethod
    def create_default_service(
        clock: Optional[Clock] = None,
        event_publisher: Optional[EventPublisher] = None
    ) -> ParkingService:
        """Empty registry on the system clock"""
        return ParkingService(clock=clock, event_publisher=event_publisher)

    @staticmethod
    def create_with_lots(
        lots: List[Dict[str, Any]],
        clock: Optional[Clock] = None,
        event_publisher: Optional[EventPublisher] = None
    ) -> ParkingService:
        """
        Registry pre-populated with lots
        Each item: {"number_of_slots": int, "parking_type": str, "billing_policy": callable?}
        """
        service = ParkingService(clock=clock, event_publisher=event_publisher)
        for lot in lots:
            service.new_parking(
                lot["number_of_slots"],
                lot["parking_type"],
                billing_policy=lot.get("billing_policy")
            )
        return service
