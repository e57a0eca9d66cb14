from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlmodel import Session

from cmdb.audit import log_activity
from cmdb.db import get_session
from cmdb.models import Setting, now_iso
from cmdb.repository import BackendError, TableRepository
from cmdb.schemas import WEBHOOK_SETTING_KEY, WebhookSettings

router = APIRouter(prefix="/settings", tags=["settings"])


def get_webhook_url(session: Session) -> Optional[str]:
    rows = TableRepository(session, Setting).select({"key": WEBHOOK_SETTING_KEY}, limit=1)
    if not rows or not rows[0].value:
        return None
    return rows[0].value


@router.get("", response_model=WebhookSettings)
def read_settings(session: Session = Depends(get_session)) -> WebhookSettings:
    return WebhookSettings(workflow_webhook_url=get_webhook_url(session) or "")


@router.put("", response_model=WebhookSettings)
def save_settings(
    settings: WebhookSettings,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> WebhookSettings:
    repo = TableRepository(session, Setting)
    old_value = get_webhook_url(session)
    values = {"value": settings.workflow_webhook_url, "updated_at": now_iso()}

    try:
        if repo.select({"key": WEBHOOK_SETTING_KEY}, limit=1):
            repo.update(WEBHOOK_SETTING_KEY, values)
        else:
            repo.insert({"key": WEBHOOK_SETTING_KEY, **values})
    except BackendError as e:
        log_activity(
            session,
            action="UPDATE",
            table_name=repo.table,
            record_id=WEBHOOK_SETTING_KEY,
            old_data={"value": old_value},
            new_data={"value": settings.workflow_webhook_url},
            is_error=True,
            error_details=e.details(),
            description=f"Failed to save workflow webhook URL: {e.message}",
            user_id=x_user_id,
        )
        raise HTTPException(status_code=500, detail=f"Error saving settings: {e.message}")

    log_activity(
        session,
        action="UPDATE",
        table_name=repo.table,
        record_id=WEBHOOK_SETTING_KEY,
        old_data={"value": old_value},
        new_data={"value": settings.workflow_webhook_url},
        description="Workflow webhook URL updated.",
        user_id=x_user_id,
    )
    return settings
