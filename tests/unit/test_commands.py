# File: tests/unit/test_commands.py
"""
Unit tests for commands, the command processor and DTOs
"""

import json
import unittest
from datetime import datetime
from decimal import Decimal

from pydantic import ValidationError

from parkslot.application.commands import (
    CommandProcessor, NewParkingCommand, CheckInCommand, CheckOutCommand,
    SetBillingPolicyCommand, LotStatusCommand
)
from parkslot.application.dtos import (
    CheckInResultDTO, CheckOutResultDTO, LotStatusDTO, StatusReportDTO
)
from parkslot.application.parking_service import ParkingService
from parkslot.domain.models import ManualClock
from parkslot.domain.strategies import TieredBillingPolicy


class TickingClock(ManualClock):
    """Moves one minute forward after every reading"""

    def __init__(self):
        super().__init__()
        self.readings = []

    def now(self):
        reading = super().now()
        self.readings.append(reading)
        self.advance(minutes=1)
        return reading


class TestCommandProcessor(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock()
        self.service = ParkingService(clock=self.clock)
        self.processor = CommandProcessor(self.service)
        self.parking_id = self.processor.process(NewParkingCommand(2, "standard")).data

    def test_new_parking(self):
        result = self.processor.process(NewParkingCommand(5, "20kW"))

        self.assertTrue(result.success)
        self.assertEqual(result.data, "2")
        self.assertEqual(result.command_name, "NewParkingCommand")

    def test_check_in_and_out(self):
        check_in = self.processor.process(CheckInCommand(self.parking_id, "standard"))
        self.assertIsInstance(check_in.data, CheckInResultDTO)
        self.assertEqual(check_in.data.slot_id, "0")
        self.assertEqual(check_in.data.parking_type, "standard")

        self.clock.advance(minutes=130)
        check_out = self.processor.process(
            CheckOutCommand(self.parking_id, check_in.data.slot_id, TieredBillingPolicy())
        )

        self.assertTrue(check_out.success)
        self.assertIsInstance(check_out.data, CheckOutResultDTO)
        self.assertEqual(check_out.data.price, Decimal("1.8"))

    def test_check_in_timestamp_is_entry_time(self):
        clock = TickingClock()
        processor = CommandProcessor(ParkingService(clock=clock))
        parking_id = processor.process(NewParkingCommand(2, "standard")).data

        result = processor.process(CheckInCommand(parking_id))

        self.assertEqual(result.data.timestamp, clock.readings[0])
        self.assertLess(result.data.timestamp, clock.now())

    def test_parking_error_becomes_failed_result(self):
        self.processor.process(CheckInCommand(self.parking_id))
        self.processor.process(CheckInCommand(self.parking_id))

        result = self.processor.process(CheckInCommand(self.parking_id))

        self.assertFalse(result.success)
        self.assertEqual(result.error_kind, "SlotsFullError")
        self.assertIsNone(result.data)

    def test_unknown_slot_becomes_failed_result(self):
        result = self.processor.process(CheckOutCommand(self.parking_id, "1", lambda minutes: 0))

        self.assertFalse(result.success)
        self.assertEqual(result.error_kind, "SlotNotFoundError")

    def test_missing_bound_policy(self):
        slot_id = self.processor.process(CheckInCommand(self.parking_id)).data.slot_id

        result = self.processor.process(CheckOutCommand(self.parking_id, slot_id))

        self.assertEqual(result.error_kind, "BillingPolicyNotSetError")

    def test_set_billing_policy(self):
        set_policy = self.processor.process(SetBillingPolicyCommand(self.parking_id, lambda minutes: 3))
        slot_id = self.processor.process(CheckInCommand(self.parking_id)).data.slot_id

        result = self.processor.process(CheckOutCommand(self.parking_id, slot_id))

        self.assertTrue(set_policy.success)
        self.assertEqual(result.data.price, 3)

    def test_validation_failure(self):
        result = self.processor.process(SetBillingPolicyCommand(self.parking_id, "free"))

        self.assertFalse(result.success)
        self.assertEqual(result.error_kind, "ValidationError")
        self.assertFalse(self.service.get_lot_status(self.parking_id).billing_policy_set)

    def test_missing_ids_fail_validation(self):
        self.assertEqual(self.processor.process(CheckInCommand("")).error_kind, "ValidationError")
        self.assertEqual(self.processor.process(CheckOutCommand(self.parking_id, "")).error_kind, "ValidationError")

    def test_billing_errors_propagate(self):
        slot_id = self.processor.process(CheckInCommand(self.parking_id)).data.slot_id

        def broken(minutes):
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.processor.process(CheckOutCommand(self.parking_id, slot_id, broken))

    def test_lot_status(self):
        single = self.processor.process(LotStatusCommand(self.parking_id))
        everything = self.processor.process(LotStatusCommand())

        self.assertIsInstance(single.data, LotStatusDTO)
        self.assertEqual(len(everything.data), 1)

    def test_batch_stops_on_failure(self):
        commands = [CheckInCommand(self.parking_id) for _ in range(4)]

        results = self.processor.process_batch(commands, stop_on_failure=True)

        self.assertEqual([r.success for r in results], [True, True, False])

    def test_history_is_bounded(self):
        processor = CommandProcessor(self.service, max_history_size=2)
        for _ in range(3):
            processor.process(LotStatusCommand())

        self.assertEqual(len(processor.get_history()), 2)


class TestDTOs(unittest.TestCase):

    def test_check_out_price_serialized_as_string(self):
        dto = CheckOutResultDTO(parking_id="1", slot_id="0", price=Decimal("1.8"))

        self.assertEqual(dto.to_dict()["price"], "1.8")
        self.assertEqual(json.loads(dto.to_json())["price"], "1.8")

    def test_float_price_kept(self):
        dto = CheckOutResultDTO(parking_id="1", slot_id="0", price=15.0)
        self.assertEqual(dto.to_dict()["price"], 15.0)

    def test_dtos_are_frozen(self):
        dto = CheckInResultDTO(parking_id="1", parking_type="standard", slot_id="0")
        with self.assertRaises(ValidationError):
            dto.slot_id = "1"

    def test_lot_status_validation(self):
        with self.assertRaises(ValidationError):
            LotStatusDTO(parking_id="1", parking_type="standard", capacity=0,
                          free=0, occupied=0, occupancy_rate=0.0)

    def test_round_trip_from_json(self):
        dto = CheckInResultDTO(parking_id="1", parking_type="50kW", slot_id="3")
        self.assertEqual(CheckInResultDTO.from_json(dto.to_json()), dto)

    def test_status_report_totals(self):
        lots = [
            LotStatusDTO(parking_id="1", parking_type="standard", capacity=4, free=1, occupied=3, occupancy_rate=0.75),
            LotStatusDTO(parking_id="2", parking_type="20kW", capacity=2, free=0, occupied=2, occupancy_rate=1.0),
        ]
        report = StatusReportDTO(lots=lots, generated_at=datetime(2024, 1, 15))

        self.assertEqual(report.total_capacity, 6)
        self.assertEqual(report.total_free, 1)
        self.assertTrue(lots[1].is_full)

    def test_command_result_serializes_nested_dto(self):
        service = ParkingService(clock=ManualClock())
        processor = CommandProcessor(service)
        parking_id = processor.process(NewParkingCommand(1, "standard")).data

        result = processor.process(CheckInCommand(parking_id))
        data = json.loads(result.to_json())

        self.assertEqual(data["data"]["slot_id"], "0")


if __name__ == "__main__":
    unittest.main()
