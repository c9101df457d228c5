# File: src/parkslot/application/dtos.py
"""
Data Transfer Objects for the parking application layer

DTOs carry results across the application boundary (CLI, event
handlers, JSON output). They are validated with pydantic and never hold
references to domain aggregates.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
from decimal import Decimal
import json

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer


# ============================================================================
# BASE DTO CLASS
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        frozen=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        """Create DTO from dictionary"""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        """Create DTO from JSON string"""
        return cls(**json.loads(json_str))


# ============================================================================
# OPERATION RESULT DTOs
# ============================================================================

class CheckInResultDTO(BaseDTO):
    """DTO for a successful check-in"""
    parking_id: str = Field(description="Lot identifier")
    parking_type: str = Field(description="Lot category")
    slot_id: str = Field(description="Allocated slot identifier")
    timestamp: Optional[datetime] = Field(default=None, description="Check-in time")


class CheckOutResultDTO(BaseDTO):
    """DTO for a successful check-out"""
    parking_id: str = Field(description="Lot identifier")
    slot_id: str = Field(description="Freed slot identifier")
    price: Any = Field(description="Amount returned by the billing policy, unchanged")
    timestamp: Optional[datetime] = Field(default=None, description="Check-out time")

    @field_serializer("price")
    def serialize_price(self, price: Any) -> Any:
        if isinstance(price, Decimal):
            return str(price)
        return price


class LotStatusDTO(BaseDTO):
    """DTO for the occupancy of one lot"""
    parking_id: str = Field(description="Lot identifier")
    parking_type: str = Field(description="Lot category")
    capacity: int = Field(ge=1, description="Total slots")
    free: int = Field(ge=0, description="Free slots")
    occupied: int = Field(ge=0, description="Occupied slots")
    occupancy_rate: float = Field(ge=0.0, le=1.0, description="Occupied fraction")
    billing_policy_set: bool = Field(default=False, description="A default billing policy is bound")

    @property
    def is_full(self) -> bool:
        return self.free == 0


class CommandResultDTO(BaseDTO):
    """DTO for the outcome of a command"""
    command_id: str = Field(description="Command identifier")
    command_name: str = Field(description="Command class name")
    success: bool = Field(description="Command succeeded")
    data: Optional[Any] = Field(default=None, description="Command payload")
    error_kind: Optional[str] = Field(default=None, description="Exception class on failure")
    message: Optional[str] = Field(default=None, description="Result message")
    executed_at: datetime = Field(description="Execution time")

    @field_serializer("data")
    def serialize_data(self, data: Any) -> Any:
        if isinstance(data, BaseDTO):
            return data.to_dict(mode="json")
        if isinstance(data, list):
            return [item.to_dict(mode="json") if isinstance(item, BaseDTO) else item for item in data]
        if isinstance(data, Decimal):
            return str(data)
        return data


class StatusReportDTO(BaseDTO):
    """DTO for the status of every lot"""
    lots: List[LotStatusDTO] = Field(default_factory=list)
    generated_at: datetime = Field(description="Report time")

    @computed_field
    @property
    def total_capacity(self) -> int:
        return sum(lot.capacity for lot in self.lots)

    @computed_field
    @property
    def total_free(self) -> int:
        return sum(lot.free for lot in self.lots)
