from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from surplus.domain.enums import UserRole


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    university: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    # ORM id -> user_id
    user_id: int = Field(alias="id", serialization_alias="user_id")

    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    university: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
