# File: src/parkslot/infrastructure/factories.py
"""
Factories wiring configuration, messaging and the parking service

The application layer does not know about YAML files or the event bus;
these factories assemble a ready-to-use ParkingService from an AppConfig.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from ..domain.models import Clock
from ..application.parking_service import ParkingService
from .config import AppConfig
from .messaging import EventBus, ParkingEventHandler, InMemoryEventStore


@dataclass
class Application:
    """Assembled application components"""
    service: ParkingService
    event_bus: EventBus
    monitor: ParkingEventHandler
    event_store: InMemoryEventStore
    parking_ids: List[str] = field(default_factory=list)


class ServiceFactory:
    """Factory for fully wired parking services"""

    logger = logging.getLogger("ServiceFactory")

    @classmethod
    def create_event_bus(cls):
        """
        Event bus with the standard handlers subscribed
        Returns: (event_bus, monitor, event_store)
        """
        bus = EventBus()
        monitor = ParkingEventHandler()
        store = InMemoryEventStore()
        bus.subscribe_all(monitor)
        bus.subscribe_all(store)
        return bus, monitor, store

    @classmethod
    def create_from_config(cls, config: AppConfig, clock: Optional[Clock] = None) -> Application:
        """
        Build a service and register the lots declared in the configuration
        Lots are registered in file order, so their IDs are "1", "2", ...
        """
        bus, monitor, store = cls.create_event_bus()
        service = ParkingService(clock=clock, event_publisher=bus)

        parking_ids = []
        for lot in config.lots:
            policy = lot.billing.build() if lot.billing else None
            parking_id = service.new_parking(lot.capacity, lot.category, billing_policy=policy)
            parking_ids.append(parking_id)

        cls.logger.info(f"Created service with {len(parking_ids)} configured lots")
        return Application(
            service=service,
            event_bus=bus,
            monitor=monitor,
            event_store=store,
            parking_ids=parking_ids
        )
