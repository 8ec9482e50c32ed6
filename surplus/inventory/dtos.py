from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from surplus.common.time_utils import as_utc
from surplus.stores.dtos import StoreSummary


# ============================================================
# Requests
# ============================================================

class InventoryCreate(BaseModel):
    store_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    original_price: Optional[Decimal] = Field(None, ge=0)
    unit_price: Decimal = Field(..., ge=0)
    total_quantity: int = Field(..., ge=0)
    available_from: datetime
    available_until: datetime

    @model_validator(mode="after")
    def check_window_and_price(self):
        self.available_from = as_utc(self.available_from)
        self.available_until = as_utc(self.available_until)
        if self.available_from >= self.available_until:
            raise ValueError("available_from must be before available_until")
        if self.original_price is not None and self.unit_price > self.original_price:
            raise ValueError("unit_price must not exceed original_price")
        return self


class InventoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    original_price: Optional[Decimal] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    total_quantity: Optional[int] = Field(None, ge=0)
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    is_available: Optional[bool] = None


# ============================================================
# Responses
# ============================================================

class InventoryResponse(BaseModel):
    # ORM id -> inventory_id
    inventory_id: int = Field(alias="id", serialization_alias="inventory_id")

    store_id: int
    name: str
    description: Optional[str] = None
    original_price: Optional[Decimal] = None
    unit_price: Decimal
    total_quantity: int
    reserved_quantity: int
    available_quantity: int
    available_from: datetime
    available_until: datetime
    is_available: bool

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class InventoryDetailResponse(InventoryResponse):
    store: StoreSummary
