from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlmodel import Session

from cmdb.crud import create_record, delete_record, matches, update_record
from cmdb.db import get_session
from cmdb.models import User
from cmdb.repository import TableRepository
from cmdb.schemas import UserIn, UserOption

router = APIRouter(prefix="/users", tags=["users"])

NOUN = "user"


@router.get("", response_model=List[User])
def list_users(
    q: Optional[str] = Query(None, description="Search by name, email or role"),
    session: Session = Depends(get_session),
) -> List[User]:
    rows = TableRepository(session, User).select(order_by="created_at", descending=True)
    return [u for u in rows if matches(q, u.name, u.email, u.role)]


@router.get("/options", response_model=List[UserOption])
def user_options(session: Session = Depends(get_session)) -> List[UserOption]:
    rows = TableRepository(session, User).select(order_by="name")
    return [UserOption(id=u.id, name=u.name) for u in rows]


@router.get("/{user_id}", response_model=User)
def get_user(user_id: str, session: Session = Depends(get_session)) -> User:
    return TableRepository(session, User).get(user_id)


@router.post("", response_model=User, status_code=201)
def create_user(
    user: UserIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> User:
    return create_record(session, User, user.model_dump(), noun=NOUN, actor=x_user_id, notify=False)


@router.put("/{user_id}", response_model=User)
def update_user(
    user_id: str,
    user: UserIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> User:
    return update_record(session, User, user_id, user.model_dump(), noun=NOUN, actor=x_user_id, notify=False)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> Dict[str, Any]:
    old = delete_record(session, User, user_id, noun=NOUN, actor=x_user_id, notify=False)
    return {"ok": True, "id": old["id"]}
