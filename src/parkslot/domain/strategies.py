# File: src/parkslot/domain/strategies.py
"""
Billing Strategies for the slot allocation engine

A billing function maps the whole minutes a vehicle stayed to a price.
Slot pools accept any callable with that shape; the classes below are
reference policies that can be selected at runtime or from configuration.

Strategies:
1. FreeParkingPolicy - never charges
2. FlatFeePolicy - same fee for any stay
3. HourlyRatePolicy - fixed rate per completed hour
4. TieredBillingPolicy - free period, fixed first tier, then increments
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Type, Union
from decimal import Decimal
import logging


Amount = Union[Decimal, int, float, str]


def _to_decimal(value: Amount) -> Decimal:
    """Convert a configured amount to Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ============================================================================
# STRATEGY INTERFACE
# ============================================================================

class BillingPolicy(ABC):
    """
    Abstract base class for billing policies
    Instances are callables: policy(minutes) -> price
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def bill(self, minutes: int) -> Decimal:
        """
        Calculate the price of a stay
        Returns: price for the given whole minutes
        """
        pass

    def __call__(self, minutes: int) -> Decimal:
        if minutes < 0:
            raise ValueError(f"Elapsed minutes cannot be negative: {minutes}")

        price = self.bill(minutes)
        self.logger.debug(f"{self.get_strategy_name()} billed {minutes} min: {price}")
        return price

    def get_strategy_name(self) -> str:
        """Get human-readable strategy name"""
        return self.__class__.__name__.replace("Policy", "")

    def describe(self) -> Dict[str, Any]:
        return {"policy": self.get_strategy_name()}

    def __str__(self) -> str:
        return f"{self.get_strategy_name()} Policy"


# ============================================================================
# CONCRETE POLICIES
# ============================================================================

class FreeParkingPolicy(BillingPolicy):
    """Parking never costs anything"""

    def bill(self, minutes: int) -> Decimal:
        return Decimal("0")


class FlatFeePolicy(BillingPolicy):
    """Same fee regardless of duration"""

    def __init__(self, fee: Amount):
        super().__init__()
        self.fee = _to_decimal(fee)

    def bill(self, minutes: int) -> Decimal:
        return self.fee

    def describe(self) -> Dict[str, Any]:
        return {"policy": self.get_strategy_name(), "fee": str(self.fee)}


class HourlyRatePolicy(BillingPolicy):
    """
    Charge a rate per completed hour
    A 59 minute stay is free, 119 minutes cost one hour
    """

    def __init__(self, rate: Amount):
        super().__init__()
        self.rate = _to_decimal(rate)

    def bill(self, minutes: int) -> Decimal:
        return (minutes // 60) * self.rate

    def describe(self) -> Dict[str, Any]:
        return {"policy": self.get_strategy_name(), "rate": str(self.rate)}


class TieredBillingPolicy(BillingPolicy):
    """
    Free period, then a fixed fee, then a fee per completed increment

    With the defaults: first hour free, 1.8 for the second hour, then
    0.85 for each full 15 minutes past two hours.
    """

    def __init__(
        self,
        free_minutes: int = 60,
        first_tier_minutes: int = 120,
        first_tier_fee: Amount = "1.8",
        increment_minutes: int = 15,
        increment_fee: Amount = "0.85"
    ):
        super().__init__()
        if not 0 <= free_minutes <= first_tier_minutes:
            raise ValueError("Tiers must satisfy 0 <= free_minutes <= first_tier_minutes")
        if increment_minutes < 1:
            raise ValueError("Increment must be at least one minute")

        self.free_minutes = free_minutes
        self.first_tier_minutes = first_tier_minutes
        self.first_tier_fee = _to_decimal(first_tier_fee)
        self.increment_minutes = increment_minutes
        self.increment_fee = _to_decimal(increment_fee)

    def bill(self, minutes: int) -> Decimal:
        if minutes < self.free_minutes:
            return Decimal("0")
        if minutes < self.first_tier_minutes:
            return self.first_tier_fee

        increments = (minutes - self.first_tier_minutes) // self.increment_minutes
        return increments * self.increment_fee + self.first_tier_fee

    def describe(self) -> Dict[str, Any]:
        return {
            "policy": self.get_strategy_name(),
            "free_minutes": self.free_minutes,
            "first_tier_minutes": self.first_tier_minutes,
            "first_tier_fee": str(self.first_tier_fee),
            "increment_minutes": self.increment_minutes,
            "increment_fee": str(self.increment_fee),
        }


# ============================================================================
# STRATEGY FACTORY
# ============================================================================

class BillingPolicyFactory:
    """Build billing policies by name, e.g. from a configuration file"""

    _policies: Dict[str, Type[BillingPolicy]] = {
        "free": FreeParkingPolicy,
        "flat": FlatFeePolicy,
        "hourly": HourlyRatePolicy,
        "tiered": TieredBillingPolicy,
    }

    @classmethod
    def create(cls, name: str, **params: Any) -> BillingPolicy:
        """
        Instantiate the named policy with the given parameters
        Raises: ValueError for unknown names or bad parameters
        """
        policy_class = cls._policies.get(name.lower())
        if policy_class is None:
            raise ValueError(
                f"Unknown billing policy {name!r}. Available: {', '.join(cls.available())}"
            )

        try:
            return policy_class(**params)
        except TypeError as e:
            raise ValueError(f"Invalid parameters for billing policy {name!r}: {e}") from e

    @classmethod
    def register(cls, name: str, policy_class: Type[BillingPolicy]) -> None:
        """Make a custom policy available by name"""
        cls._policies[name.lower()] = policy_class

    @classmethod
    def available(cls) -> list:
        return sorted(cls._policies)
