from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from surplus.domain.enums import StoreCategory, VerificationStatus


# ============================================================
# Requests
# ============================================================

class StoreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    category: StoreCategory = StoreCategory.OTHER
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    pickup_hours: Optional[str] = Field(None, max_length=100)


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    category: Optional[StoreCategory] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    pickup_hours: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class AdminStoreUpdate(BaseModel):
    verification_status: Optional[VerificationStatus] = None
    is_active: Optional[bool] = None


# ============================================================
# Responses
# ============================================================

class StoreResponse(BaseModel):
    # ORM id -> store_id
    store_id: int = Field(alias="id", serialization_alias="store_id")

    owner_id: int
    name: str
    address: str
    description: Optional[str] = None
    phone: Optional[str] = None
    category: StoreCategory
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    pickup_hours: Optional[str] = None
    verification_status: VerificationStatus
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class StoreSummary(BaseModel):
    store_id: int = Field(alias="id", serialization_alias="store_id")
    name: str
    address: str
    phone: Optional[str] = None
    category: StoreCategory
    pickup_hours: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class SubscriptionResponse(BaseModel):
    store_id: int
    subscribed: bool


class SubscribedStoresResponse(BaseModel):
    stores: List[StoreSummary]
