# File: src/parkslot/__init__.py
"""
parkslot - slot allocation and occupancy billing for parking lots

Layers:
1. domain - slots, slot pools, billing policies, domain events
2. application - lot registry service, commands, DTOs
3. infrastructure - configuration, logging, event bus, factories
"""

__version__ = "1.0.0"
