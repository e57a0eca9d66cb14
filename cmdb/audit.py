from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from cmdb.models import LogEntry
from cmdb.repository import BackendError, TableRepository
from cmdb.schemas import ChangeEntry, LogAction

logger = logging.getLogger(__name__)


def _to_json(data: Optional[Dict[str, Any]]) -> Optional[str]:
    if data is None:
        return None
    return json.dumps(data, default=str)


def log_activity(
    session: Session,
    *,
    action: LogAction,
    table_name: str,
    description: str,
    record_id: Any = None,
    old_data: Optional[Dict[str, Any]] = None,
    new_data: Optional[Dict[str, Any]] = None,
    is_error: bool = False,
    error_details: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> Optional[LogEntry]:
    """
    Append one audit record to the logs table.

    A failure here is reported through the application log and does not
    propagate, so it never replaces the outcome of the action being audited.
    """
    entry = {
        "user_id": user_id,
        "action": action,
        "table_name": table_name,
        "record_id": None if record_id is None else str(record_id),
        "old_data_json": _to_json(old_data),
        "new_data_json": _to_json(new_data),
        "description": description,
        "is_error": is_error,
        "error_details_json": _to_json(error_details),
    }
    if is_error:
        logger.warning("%s %s failed: %s", action, table_name, description)
    else:
        logger.info("%s %s: %s", action, table_name, description)

    try:
        return TableRepository(session, LogEntry).insert(entry)
    except BackendError as e:
        logger.error("Error logging activity: %s", e)
        return None


def recent_changes(session: Session, limit: int = 100) -> List[ChangeEntry]:
    rows = TableRepository(session, LogEntry).select(order_by="created_at", descending=True, limit=limit)
    return [
        ChangeEntry(id=r.id, created_at=r.created_at, action=r.action, table_name=r.table_name)
        for r in rows
    ]
