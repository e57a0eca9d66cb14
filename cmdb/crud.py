"""
Audited create/update/delete shared by the item, incident and user routers.

Every mutation ends in exactly one audit row: a normal one on success, an
error-flagged one when the backend rejects the write. Successful writes can
also push a line to the notification feed.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

from fastapi import HTTPException
from sqlmodel import Session, SQLModel

from cmdb import notifications
from cmdb.audit import log_activity
from cmdb.repository import BackendError, TableRepository


def _label(data: Dict[str, Any], label_field: str) -> str:
    return str(data.get(label_field) or data.get("id") or "")


def create_record(
    session: Session,
    model: Type[SQLModel],
    values: Dict[str, Any],
    *,
    noun: str,
    label_field: str = "name",
    actor: Optional[str] = None,
    notify: bool = True,
):
    repo = TableRepository(session, model)
    try:
        row = repo.insert(values)
    except BackendError as e:
        log_activity(
            session,
            action="INSERT",
            table_name=repo.table,
            new_data=values,
            is_error=True,
            error_details=e.details(),
            description=f"Failed to create {noun}: {e.message}",
            user_id=actor,
        )
        raise HTTPException(status_code=500, detail=f"Error creating {noun}: {e.message}")

    data = row.model_dump()
    log_activity(
        session,
        action="INSERT",
        table_name=repo.table,
        record_id=data.get("id"),
        new_data=data,
        description=f"{noun.capitalize()} '{_label(data, label_field)}' was created.",
        user_id=actor,
    )
    if notify:
        notifications.add(f"New {noun} created: {_label(data, label_field)}")
    # the audit commit expires the row
    session.refresh(row)
    return row


def update_record(
    session: Session,
    model: Type[SQLModel],
    key: Any,
    values: Dict[str, Any],
    *,
    noun: str,
    label_field: str = "name",
    actor: Optional[str] = None,
    notify: bool = True,
):
    repo = TableRepository(session, model)
    old = repo.get(key).model_dump()
    try:
        row = repo.update(key, values)
    except BackendError as e:
        log_activity(
            session,
            action="UPDATE",
            table_name=repo.table,
            record_id=key,
            old_data=old,
            new_data=values,
            is_error=True,
            error_details=e.details(),
            description=f"Failed to update {noun}: {e.message}",
            user_id=actor,
        )
        raise HTTPException(status_code=500, detail=f"Error updating {noun}: {e.message}")

    data = row.model_dump()
    log_activity(
        session,
        action="UPDATE",
        table_name=repo.table,
        record_id=key,
        old_data=old,
        new_data=data,
        description=f"{noun.capitalize()} '{_label(data, label_field)}' was updated.",
        user_id=actor,
    )
    if notify:
        notifications.add(f"{noun.capitalize()} updated: {_label(data, label_field)}")
    session.refresh(row)
    return row


def delete_record(
    session: Session,
    model: Type[SQLModel],
    key: Any,
    *,
    noun: str,
    label_field: str = "name",
    actor: Optional[str] = None,
    notify: bool = True,
) -> Dict[str, Any]:
    repo = TableRepository(session, model)
    old = repo.get(key).model_dump()
    try:
        repo.delete(key)
    except BackendError as e:
        log_activity(
            session,
            action="DELETE",
            table_name=repo.table,
            record_id=key,
            old_data=old,
            is_error=True,
            error_details=e.details(),
            description=f"Failed to delete {noun}: {e.message}",
            user_id=actor,
        )
        raise HTTPException(status_code=500, detail=f"Error deleting {noun}: {e.message}")

    log_activity(
        session,
        action="DELETE",
        table_name=repo.table,
        record_id=key,
        old_data=old,
        description=f"{noun.capitalize()} '{_label(old, label_field)}' was deleted.",
        user_id=actor,
    )
    if notify:
        notifications.add(f"{noun.capitalize()} deleted: {_label(old, label_field)}")
    return old


def matches(term: Optional[str], *fields: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.lower()
    return any(needle in (f or "").lower() for f in fields)
