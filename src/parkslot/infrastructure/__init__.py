# File: src/parkslot/infrastructure/__init__.py
"""Infrastructure layer: configuration, logging, messaging and factories"""

from .config import AppConfig, ConfigurationError, load_config, setup_logging
from .messaging import EventBus, EventHandler, ParkingEventHandler, InMemoryEventStore
from .factories import Application, ServiceFactory

__all__ = [
    "AppConfig", "ConfigurationError", "load_config", "setup_logging",
    "EventBus", "EventHandler", "ParkingEventHandler", "InMemoryEventStore",
    "Application", "ServiceFactory",
]
