from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from cmdb.db import get_session
from cmdb.models import ConfigurationItem, Incident, LogEntry, User
from cmdb.repository import TableRepository
from cmdb.schemas import ActionResult, DashboardStats, TypeCount
from cmdb.settings_api import get_webhook_url
from cmdb.webhooks import WebhookError, post_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

UNDEFINED_TYPE = "Undefined"


def ci_type_summary(item_types: Iterable[Optional[str]]) -> List[TypeCount]:
    """Count items per type, in first-seen order."""
    counts = Counter(t or UNDEFINED_TYPE for t in item_types)
    return [TypeCount(name=name, value=value) for name, value in counts.items()]


def collect_stats(session: Session) -> DashboardStats:
    items = TableRepository(session, ConfigurationItem).select()
    return DashboardStats(
        config_items=len(items),
        incidents=TableRepository(session, Incident).count(),
        changes=TableRepository(session, LogEntry).count(),
        users=TableRepository(session, User).count(),
        ci_type_summary=ci_type_summary(i.item_type for i in items),
    )


def build_report_request(stats: DashboardStats) -> Dict[str, Any]:
    return {
        "type": "report_request",
        "requested_at": datetime.now(timezone.utc).isoformat(),
        "metrics": {
            "config_items": stats.config_items,
            "incidents": stats.incidents,
            "changes": stats.changes,
            "users": stats.users,
        },
        "ci_type_summary": [t.model_dump() for t in stats.ci_type_summary],
    }


@router.get("/stats", response_model=DashboardStats)
def get_stats(session: Session = Depends(get_session)) -> DashboardStats:
    return collect_stats(session)


@router.post("/report", response_model=ActionResult)
def request_report(session: Session = Depends(get_session)) -> ActionResult:
    webhook_url = get_webhook_url(session)
    if not webhook_url:
        raise HTTPException(status_code=400, detail="Workflow webhook URL is not configured in settings.")

    payload = build_report_request(collect_stats(session))
    try:
        post_json(webhook_url, payload)
    except WebhookError as e:
        logger.error("Report request failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))

    return ActionResult(success=True, message="Report request sent.")
