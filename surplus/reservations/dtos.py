from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from surplus.domain.enums import ReservationStatus, parse_reservation_status


# ==========================================================
# Requests
# ==========================================================
class ReservationCreate(BaseModel):
    inventory_id: int
    quantity: int = Field(..., ge=1)
    pickup_time: datetime
    # contact overrides; default to the profile
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=20)


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        # "pending", "ACCEPTED", "canceled" ... -> canonical enum
        if v is None:
            raise ValueError("status is required")
        return parse_reservation_status(str(v) if not isinstance(v, ReservationStatus) else v)


# ==========================================================
# Responses
# ==========================================================
class ReservationResponse(BaseModel):
    # ORM id -> reservation_id
    reservation_id: int = Field(alias="id", serialization_alias="reservation_id")

    inventory_id: int
    store_id: int
    customer_id: int
    quantity: int
    unit_price: Decimal
    amount: Decimal
    pickup_time: datetime
    status: ReservationStatus
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class StatusLogResponse(BaseModel):
    from_status: Optional[ReservationStatus] = None
    to_status: ReservationStatus
    actor_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationDetailResponse(ReservationResponse):
    status_logs: List[StatusLogResponse] = []
