from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from surplus.domain.enums import NotificationType


class NotificationResponse(BaseModel):
    # ORM id -> notification_id
    notification_id: int = Field(alias="id", serialization_alias="notification_id")

    type: NotificationType
    title: str
    content: str
    related_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MarkReadResponse(BaseModel):
    updated: int


class NotificationSettingsResponse(BaseModel):
    reservation_updates: bool
    inventory_updates: bool
    system: bool

    model_config = ConfigDict(from_attributes=True)


class NotificationSettingsUpdate(BaseModel):
    reservation_updates: Optional[bool] = None
    inventory_updates: Optional[bool] = None
    system: Optional[bool] = None


class DispatchResult(BaseModel):
    notification_id: int
    result: str
    error: Optional[str] = None


class DispatchSummary(BaseModel):
    total_candidates: int
    sent: int
    failed: int
    retrying: int
    results: List[DispatchResult] = []
