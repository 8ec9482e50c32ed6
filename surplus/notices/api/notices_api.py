# surplus/notices/api/notices_api.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from surplus.common.errors import DomainError, to_http_exception
from surplus.db.core import get_db
from surplus.notices.dtos import NoticeResponse
from surplus.notices.services.notice_service import NoticeService

router = APIRouter(prefix="/api/notices", tags=["notices"])


@router.get("", response_model=List[NoticeResponse])
def list_notices(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return NoticeService(db).list(limit)


@router.get("/{notice_id}", response_model=NoticeResponse)
def get_notice(notice_id: int, db: Session = Depends(get_db)):
    try:
        return NoticeService(db).get(notice_id)
    except DomainError as e:
        raise to_http_exception(e)
