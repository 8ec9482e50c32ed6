from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    is_pinned: bool = False


class NoticeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    is_pinned: Optional[bool] = None


class NoticeResponse(BaseModel):
    # ORM id -> notice_id
    notice_id: int = Field(alias="id", serialization_alias="notice_id")

    title: str
    content: str
    is_pinned: bool
    author_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
