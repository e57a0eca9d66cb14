from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from cmdb import notifications
from cmdb.audit import recent_changes
from cmdb.crud import matches
from cmdb.db import get_session
from cmdb.models import ConfigurationItem, User
from cmdb.repository import TableRepository
from cmdb.schemas import ChangeEntry, Notification, SearchHit

router = APIRouter(tags=["activity"])


@router.get("/changes", response_model=List[ChangeEntry])
def list_changes(
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(get_session),
) -> List[ChangeEntry]:
    return recent_changes(session, limit=limit)


@router.get("/notifications", response_model=List[Notification])
def list_notifications() -> List[Notification]:
    return [Notification(**n) for n in notifications.list_all()]


@router.delete("/notifications")
def clear_notifications():
    notifications.clear()
    return {"ok": True}


@router.get("/search", response_model=List[SearchHit])
def search(
    q: Optional[str] = Query(None, description="Text to look for in item and user names"),
    session: Session = Depends(get_session),
) -> List[SearchHit]:
    hits: List[SearchHit] = []
    for item in TableRepository(session, ConfigurationItem).select(order_by="name"):
        if matches(q, item.name):
            hits.append(SearchHit(id=item.id, name=item.name, kind="configuration_item", path="/configuration-items"))
    for user in TableRepository(session, User).select(order_by="name"):
        if matches(q, user.name):
            hits.append(SearchHit(id=user.id, name=user.name, kind="user", path="/users"))
    return hits
