# File: src/parkslot/application/commands.py
"""
Command Pattern for parking operations

Each command wraps one operation of the ParkingService so that callers
(the CLI, scripted sessions) can validate, execute, log and record
operations uniformly.

Commands:
1. NewParkingCommand - register a lot
2. CheckInCommand - allocate a slot
3. CheckOutCommand - free a slot and bill the stay
4. SetBillingPolicyCommand - bind a lot's default policy
5. LotStatusCommand - report occupancy

Expected parking failures (full lot, unknown slot, ...) become failed
results; anything else, including errors raised by billing policies,
propagates to the caller.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, Optional, Any, Tuple
from datetime import datetime
import logging
import uuid

from ..domain.exceptions import ParkingError
from ..domain.aggregates import BillingFunction
from .parking_service import ParkingService
from .dtos import CheckInResultDTO, CheckOutResultDTO, CommandResultDTO


# ============================================================================
# COMMAND BASE CLASS
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all commands

    A command represents an intent to change or inspect the system state.
    Commands are named in the imperative (e.g., CheckInCommand).
    """

    def __init__(self, command_id: Optional[str] = None):
        self.command_id = command_id or str(uuid.uuid4())
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def execute(self, service: ParkingService) -> Any:
        """
        Execute the command using the provided service
        Returns: command payload
        """
        pass

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate command parameters before execution
        Returns: (is_valid, error_messages)
        """
        return True, []

    def get_description(self) -> str:
        """Get human-readable command description"""
        return self.__class__.__name__.replace("Command", "")


# ============================================================================
# PARKING COMMANDS
# ============================================================================

class NewParkingCommand(Command):
    """Command: register a lot with a number of slots"""

    def __init__(
        self,
        number_of_slots: int,
        parking_type: Any,
        billing_policy: Optional[BillingFunction] = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.number_of_slots = number_of_slots
        self.parking_type = parking_type
        self.billing_policy = billing_policy

    def validate(self) -> Tuple[bool, List[str]]:
        errors = []
        if self.billing_policy is not None and not callable(self.billing_policy):
            errors.append("Billing policy must be callable")
        return not errors, errors

    def execute(self, service: ParkingService) -> str:
        return service.new_parking(
            self.number_of_slots,
            self.parking_type,
            billing_policy=self.billing_policy
        )


class CheckInCommand(Command):
    """Command: check a vehicle in to a lot"""

    def __init__(
        self,
        parking_id: str,
        parking_type: Any = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.parking_id = parking_id
        self.parking_type = parking_type

    def validate(self) -> Tuple[bool, List[str]]:
        if not self.parking_id:
            return False, ["Parking ID is required"]
        return True, []

    def execute(self, service: ParkingService) -> CheckInResultDTO:
        slot_id, entry_time = service.check_in_timed(self.parking_id, self.parking_type)
        return CheckInResultDTO(
            parking_id=self.parking_id,
            parking_type=service.get_parking_type(self.parking_id).value,
            slot_id=slot_id,
            timestamp=entry_time
        )


class CheckOutCommand(Command):
    """Command: check a vehicle out and bill the stay"""

    def __init__(
        self,
        parking_id: str,
        slot_id: str,
        billing_policy: Optional[BillingFunction] = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.parking_id = parking_id
        self.slot_id = slot_id
        self.billing_policy = billing_policy

    def validate(self) -> Tuple[bool, List[str]]:
        errors = []
        if not self.parking_id:
            errors.append("Parking ID is required")
        if self.slot_id is None or self.slot_id == "":
            errors.append("Slot ID is required")
        if self.billing_policy is not None and not callable(self.billing_policy):
            errors.append("Billing policy must be callable")
        return not errors, errors

    def execute(self, service: ParkingService) -> CheckOutResultDTO:
        price = service.check_out(self.parking_id, self.slot_id, self.billing_policy)
        return CheckOutResultDTO(
            parking_id=self.parking_id,
            slot_id=str(self.slot_id),
            price=price,
            timestamp=service.clock.now()
        )


class SetBillingPolicyCommand(Command):
    """Command: bind the default billing policy of a lot"""

    def __init__(
        self,
        parking_id: str,
        billing_policy: BillingFunction,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.parking_id = parking_id
        self.billing_policy = billing_policy

    def validate(self) -> Tuple[bool, List[str]]:
        if not callable(self.billing_policy):
            return False, ["Billing policy must be callable"]
        return True, []

    def execute(self, service: ParkingService) -> None:
        service.set_billing_policy(self.parking_id, self.billing_policy)


class LotStatusCommand(Command):
    """Command: report occupancy of one lot, or of all lots"""

    def __init__(self, parking_id: Optional[str] = None, command_id: Optional[str] = None):
        super().__init__(command_id)
        self.parking_id = parking_id

    def execute(self, service: ParkingService) -> Any:
        if self.parking_id is None:
            return service.get_status_report().lots
        return service.get_lot_status(self.parking_id)


# ============================================================================
# COMMAND PROCESSOR
# ============================================================================

class CommandProcessor:
    """
    Executes commands against a ParkingService

    Keeps a bounded history of results. Parking errors and validation
    failures produce unsuccessful results; other exceptions propagate.
    """

    def __init__(self, service: ParkingService, max_history_size: int = 1000):
        self.service = service
        self.logger = logging.getLogger(self.__class__.__name__)
        self.history: Deque[CommandResultDTO] = deque(maxlen=max_history_size)

    def process(self, command: Command) -> CommandResultDTO:
        """
        Validate and execute a command
        Returns: the command result, also appended to the history
        """
        self.logger.info(f"Processing command: {command.get_description()}")

        is_valid, errors = command.validate()
        if not is_valid:
            self.logger.warning(f"Command {command.get_description()} invalid: {errors}")
            return self._record(command, False, error_kind="ValidationError", message="; ".join(errors))

        try:
            data = command.execute(self.service)
        except ParkingError as e:
            self.logger.warning(f"Command {command.get_description()} failed: {e}")
            return self._record(command, False, error_kind=type(e).__name__, message=str(e))

        return self._record(command, True, data=data)

    def process_batch(self, commands: List[Command], stop_on_failure: bool = False) -> List[CommandResultDTO]:
        """Process multiple commands in order"""
        results = []
        for command in commands:
            result = self.process(command)
            results.append(result)
            if stop_on_failure and not result.success:
                break
        return results

    def get_history(self) -> List[CommandResultDTO]:
        return list(self.history)

    def _record(
        self,
        command: Command,
        success: bool,
        data: Any = None,
        error_kind: Optional[str] = None,
        message: Optional[str] = None
    ) -> CommandResultDTO:
        result = CommandResultDTO(
            command_id=command.command_id,
            command_name=type(command).__name__,
            success=success,
            data=data,
            error_kind=error_kind,
            message=message,
            executed_at=datetime.now()
        )
        self.history.append(result)
        return result
