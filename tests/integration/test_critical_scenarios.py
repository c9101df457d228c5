# File: tests/integration/test_critical_scenarios.py
"""
Focused Integration Tests for Critical Scenarios

End-to-end flows through the registry, commands, event bus and the
command-line entry point.
"""

import io
import json
import logging
import os
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from parkslot.application.commands import CommandProcessor, NewParkingCommand, CheckInCommand, CheckOutCommand
from parkslot.domain.models import LotCategory, ManualClock
from parkslot.domain.strategies import TieredBillingPolicy
from parkslot.infrastructure.config import AppConfig, CONFIG_ENV_VAR, LOG_LEVEL_ENV_VAR
from parkslot.infrastructure.factories import ServiceFactory
from parkslot import main as cli


class TestCriticalScenarios(unittest.TestCase):
    """Test critical scenarios that must work"""

    def setUp(self):
        self.clock = ManualClock()
        self.app = ServiceFactory.create_from_config(AppConfig(), clock=self.clock)
        self.processor = CommandProcessor(self.app.service)

    def test_1_parking_workflow(self):
        """CRITICAL: check in, stay 2h10, check out with the tiered policy"""
        standard = self.processor.process(NewParkingCommand(10, LotCategory.STANDARD)).data
        self.processor.process(NewParkingCommand(10, LotCategory.OUTLET_50KW))

        slot_id = self.processor.process(CheckInCommand(standard, "standard")).data.slot_id
        self.clock.advance(minutes=130)
        result = self.processor.process(CheckOutCommand(standard, slot_id, TieredBillingPolicy()))

        self.assertTrue(result.success)
        self.assertEqual(result.data.price, Decimal("1.8"))
        self.assertEqual(self.app.monitor.minutes_billed(standard), 130)

    def test_2_full_lot_then_free_one(self):
        """CRITICAL: a full lot accepts a car again once one leaves"""
        lot = self.processor.process(NewParkingCommand(2, "20kW")).data
        first = self.processor.process(CheckInCommand(lot)).data.slot_id
        self.processor.process(CheckInCommand(lot))

        self.assertEqual(self.processor.process(CheckInCommand(lot)).error_kind, "SlotsFullError")

        self.processor.process(CheckOutCommand(lot, first, lambda minutes: 0))
        again = self.processor.process(CheckInCommand(lot))

        self.assertTrue(again.success)
        self.assertEqual(again.data.slot_id, first)

    def test_3_every_slot_listed_regardless_of_occupancy(self):
        """CRITICAL: slot listing never depends on occupancy"""
        lot = self.app.service.new_parking(5, "standard")
        for _ in range(3):
            self.app.service.check_in(lot)

        self.assertEqual(self.app.service.get_all_slot_ids(lot), ["0", "1", "2", "3", "4"])

    def test_4_event_log_matches_operations(self):
        lot = self.app.service.new_parking(3, "50kW")
        slot_id = self.app.service.check_in(lot)
        self.clock.advance(minutes=61)
        self.app.service.check_out(lot, slot_id, TieredBillingPolicy())

        events = self.app.event_store.get_events()

        self.assertEqual([e["event_type"] for e in events], ["SlotCheckedInEvent", "SlotCheckedOutEvent"])
        self.assertEqual(events[1]["minutes"], 61)


class TestCommandLine(unittest.TestCase):
    """The parkslot console script"""

    def setUp(self):
        env = patch.dict(os.environ)
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop(CONFIG_ENV_VAR, None)
        os.environ.pop(LOG_LEVEL_ENV_VAR, None)

    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def run_cli(self, *argv):
        stdout = io.StringIO()
        with patch("sys.stdout", stdout), patch("sys.stderr", io.StringIO()):
            code = cli.main(["--log-level", "error", *argv])
        return code, stdout.getvalue()

    def test_demo(self):
        code, output = self.run_cli("demo")

        self.assertEqual(code, 0)
        self.assertIn("Checked in to lot 1, slot 0", output)
        self.assertIn("price to pay: 1.80", output)

    def test_demo_short_stay_is_free(self):
        code, output = self.run_cli("demo", "--minutes", "30")

        self.assertEqual(code, 0)
        self.assertIn("price to pay: 0.00", output)

    def test_simulate(self):
        code, output = self.run_cli("simulate", "--capacity", "5", "--cars", "12", "--threads", "4")

        self.assertEqual(code, 0)
        self.assertIn("Allocated 5 slots, rejected 7 cars", output)

    def test_simulate_with_checkout(self):
        code, output = self.run_cli("simulate", "--capacity", "5", "--cars", "5", "--checkout")
        report = json.loads(output[output.index("{"):])

        self.assertEqual(code, 0)
        self.assertEqual(report["lots"][0]["free"], 5)

    def test_status_from_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "parkslot.yaml"
            path.write_text(
                "lots:\n"
                "  - {category: standard, capacity: 10, billing: {policy: tiered}}\n"
                "  - {category: 20kW, capacity: 6}\n",
                encoding="utf-8"
            )
            code, output = self.run_cli("--config", str(path), "status")

        report = json.loads(output)
        lots = report["lots"]
        self.assertEqual(code, 0)
        self.assertIn("generated_at", report)
        self.assertEqual(report["total_capacity"], 16)
        self.assertEqual([lot["parking_type"] for lot in lots], ["standard", "20kW"])
        self.assertTrue(lots[0]["billing_policy_set"])

    def test_missing_config(self):
        code, _ = self.run_cli("--config", "/nonexistent/parkslot.yaml", "status")
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
