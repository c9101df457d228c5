# File: src/parkslot/main.py
"""
Command-line entry point for parkslot

Subcommands:
    demo      check a car in, let 130 minutes pass, check out with the
              tiered policy (first hour free, 1.8 the second hour, then
              0.85 per 15 minutes)
    simulate  concurrent check-ins against one lot from a thread pool
    status    print the occupancy of the lots declared in the config file
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
import argparse
import logging
import sys

from .domain.models import LotCategory, ManualClock
from .domain.strategies import TieredBillingPolicy, FreeParkingPolicy
from .application.commands import (
    CommandProcessor, NewParkingCommand, CheckInCommand, CheckOutCommand
)
from .infrastructure.config import AppConfig, ConfigurationError, load_config, setup_logging
from .infrastructure.factories import ServiceFactory


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parkslot",
        description="Slot allocation and occupancy billing for parking lots"
    )
    parser.add_argument("--config", help="YAML configuration file (default: $PARKSLOT_CONFIG)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    demo = subparsers.add_parser("demo", help="Run the check-in/check-out walkthrough")
    demo.add_argument("--minutes", type=int, default=130, help="Simulated stay in minutes")

    simulate = subparsers.add_parser("simulate", help="Concurrent check-ins against one lot")
    simulate.add_argument("--capacity", type=int, default=10)
    simulate.add_argument("--cars", type=int, default=25)
    simulate.add_argument("--threads", type=int, default=8)
    simulate.add_argument(
        "--category",
        default=LotCategory.STANDARD.value,
        choices=[category.value for category in LotCategory]
    )
    simulate.add_argument("--checkout", action="store_true", help="Check every car out afterwards")

    subparsers.add_parser("status", help="Show the lots declared in the configuration")
    return parser


# ============================================================================
# SUBCOMMANDS
# ============================================================================

def run_demo(args: argparse.Namespace, config: AppConfig) -> int:
    clock = ManualClock()
    app = ServiceFactory.create_from_config(config, clock=clock)
    processor = CommandProcessor(app.service)

    standard = processor.process(NewParkingCommand(10, LotCategory.STANDARD))
    processor.process(NewParkingCommand(10, LotCategory.OUTLET_50KW))
    parking_id = standard.data

    check_in = processor.process(CheckInCommand(parking_id, LotCategory.STANDARD))
    if not check_in.success:
        print(f"No slots available: {check_in.message}")
        return 1

    slot_id = check_in.data.slot_id
    print(f"Checked in to lot {parking_id}, slot {slot_id}")

    clock.advance(minutes=args.minutes)
    check_out = processor.process(CheckOutCommand(parking_id, slot_id, TieredBillingPolicy()))
    if not check_out.success:
        print(f"Check-out failed: {check_out.message}")
        return 1

    print(f"Stayed {args.minutes} minutes, price to pay: {check_out.data.price:.2f}")
    return 0


def run_simulation(args: argparse.Namespace, config: AppConfig) -> int:
    app = ServiceFactory.create_from_config(config)
    processor = CommandProcessor(app.service)

    created = processor.process(NewParkingCommand(args.capacity, args.category))
    if not created.success:
        print(f"Could not create lot: {created.message}")
        return 1
    parking_id = created.data

    with ThreadPoolExecutor(max_workers=args.threads) as executor:
        results = list(executor.map(
            lambda _: processor.process(CheckInCommand(parking_id)),
            range(args.cars)
        ))

    allocated = [result.data.slot_id for result in results if result.success]
    rejected = [result for result in results if not result.success]
    print(f"Allocated {len(allocated)} slots, rejected {len(rejected)} cars")

    if len(set(allocated)) != len(allocated):
        print("Duplicate slot allocation detected")
        return 1

    if args.checkout:
        free = FreeParkingPolicy()
        with ThreadPoolExecutor(max_workers=args.threads) as executor:
            list(executor.map(
                lambda slot_id: processor.process(CheckOutCommand(parking_id, slot_id, free)),
                allocated
            ))

    print(app.service.get_status_report().to_json(indent=2))
    return 0


def run_status(args: argparse.Namespace, config: AppConfig) -> int:
    app = ServiceFactory.create_from_config(config)
    print(app.service.get_status_report().to_json(indent=2))
    return 0


COMMANDS = {
    "demo": run_demo,
    "simulate": run_simulation,
    "status": run_status,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.log_level:
        config.logging.level = args.log_level
    setup_logging(config.logging)

    logger.debug(f"Running {args.command}")
    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
