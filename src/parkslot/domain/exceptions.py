# File: src/parkslot/domain/exceptions.py
"""
Exceptions for the parking domain

Every error raised by slot pools and the lot registry derives from
ParkingError so callers can catch the whole family at once. Failures
raised by billing policies are not wrapped and reach the caller as-is.
"""


class ParkingError(Exception):
    """Base exception for parking errors"""
    pass


class InvalidCapacityError(ParkingError, ValueError):
    """Raised when a slot pool is created with fewer than one slot"""

    def __init__(self, capacity: int):
        super().__init__(f"Need to specify at least 1 slot, got {capacity}")
        self.capacity = capacity


class SlotsFullError(ParkingError):
    """Raised when checking in to a pool with no free slot"""
    pass


class SlotNotFoundError(ParkingError):
    """Raised when checking out a slot that is not currently occupied"""

    def __init__(self, slot_id: str):
        super().__init__(f"Tried to check out slot {slot_id!r} but it is not occupied")
        self.slot_id = slot_id


class BillingPolicyNotSetError(ParkingError):
    """Raised when checking out without a policy and none was bound to the lot"""
    pass


class UnknownParkingIdError(ParkingError):
    """Raised when a lot identifier is not registered"""

    def __init__(self, parking_id: str, message: str = ""):
        super().__init__(message or f"The requested parking ID {parking_id!r} does not exist")
        self.parking_id = parking_id


class UnknownParkingTypeError(ParkingError, ValueError):
    """Raised when a lot category is not one of the supported types"""

    def __init__(self, parking_type: object):
        super().__init__(f"Parking type {parking_type!r} does not exist")
        self.parking_type = parking_type
