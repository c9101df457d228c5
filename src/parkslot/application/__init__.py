# File: src/parkslot/application/__init__.py
"""Application layer: lot registry, commands and DTOs"""

from .parking_service import ParkingService, ParkingServiceFactory, LotEntry
from .commands import (
    Command, NewParkingCommand, CheckInCommand, CheckOutCommand,
    SetBillingPolicyCommand, LotStatusCommand, CommandProcessor
)

__all__ = [
    "ParkingService", "ParkingServiceFactory", "LotEntry",
    "Command", "NewParkingCommand", "CheckInCommand", "CheckOutCommand",
    "SetBillingPolicyCommand", "LotStatusCommand", "CommandProcessor",
]
