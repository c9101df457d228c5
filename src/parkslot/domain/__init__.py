# File: src/parkslot/domain/__init__.py
"""Domain layer: slots, slot pools and billing policies"""

from .exceptions import (
    ParkingError, InvalidCapacityError, SlotsFullError, SlotNotFoundError,
    BillingPolicyNotSetError, UnknownParkingIdError, UnknownParkingTypeError
)
from .models import Slot, LotCategory, Clock, SystemClock, ManualClock
from .aggregates import SlotPool
from .strategies import (
    BillingPolicy, FreeParkingPolicy, FlatFeePolicy, HourlyRatePolicy,
    TieredBillingPolicy, BillingPolicyFactory
)

__all__ = [
    "ParkingError", "InvalidCapacityError", "SlotsFullError", "SlotNotFoundError",
    "BillingPolicyNotSetError", "UnknownParkingIdError", "UnknownParkingTypeError",
    "Slot", "LotCategory", "Clock", "SystemClock", "ManualClock", "SlotPool",
    "BillingPolicy", "FreeParkingPolicy", "FlatFeePolicy", "HourlyRatePolicy",
    "TieredBillingPolicy", "BillingPolicyFactory",
]
