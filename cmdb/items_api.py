from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlmodel import Session

from cmdb import config
from cmdb.crud import create_record, delete_record, matches, update_record
from cmdb.db import get_session
from cmdb.models import ConfigurationItem
from cmdb.repository import TableRepository
from cmdb.schemas import ActionResult, ConfigurationItemIn, InventoryPayload
from cmdb.webhooks import WebhookError, post_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/configuration-items", tags=["configuration-items"])

NOUN = "configuration item"

ITEM_LABELS: Dict[str, str] = {
    "id": "ID",
    "name": "Name",
    "item_type": "Type",
    "status": "Status",
    "environment": "Environment",
    "item_owner": "Owner",
    "created_at": "Created",
    "cpu_core": "CPU Cores",
    "cpu_threads": "CPU Threads",
    "ip_address": "IP Address",
    "host_name": "Host Name",
    "kernel_version": "Kernel Version",
    "free_memory_gb": "Free Memory (GB)",
    "total_memory_gb": "Total Memory (GB)",
    "used_memory_percentage": "Used Memory (%)",
    "os": "Operating System",
    "storage_available": "Available Storage",
    "storage_total": "Total Storage",
    "current_cpu_usage": "Current CPU Usage",
    "windows_license": "Windows License",
    "license_status": "License Status",
    "license_expiration": "License Expiration",
}


def format_timestamp(value: str) -> str:
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def describe_item(item: Dict[str, Any]) -> List[Dict[str, str]]:
    """Labelled, non-empty fields of an item in display order."""
    rows: List[Dict[str, str]] = []
    for key, label in ITEM_LABELS.items():
        value = item.get(key)
        if value is None or value == "":
            continue
        display = format_timestamp(value) if key == "created_at" else str(value)
        rows.append({"field": key, "label": label, "value": display})
    return rows


# ----------------------------
# Registration triggers
# ----------------------------

@router.post("/register-machine", response_model=ActionResult)
def register_machine() -> ActionResult:
    url = f"{config.helper_url()}/register-machine"
    try:
        resp = requests.post(url, timeout=config.helper_timeout() + 5)
    except requests.RequestException as e:
        logger.error("Helper server unreachable at %s: %s", url, e)
        raise HTTPException(status_code=502, detail=f"Could not connect to the helper server: {e}")

    try:
        result = resp.json()
    except ValueError:
        result = {}
    if not isinstance(result, dict):
        result = {}

    message = result.get("message") or ""
    if resp.ok and result.get("success"):
        return ActionResult(success=True, message=message or "Machine registered.")
    raise HTTPException(status_code=502, detail=message or "The helper server reported an error.")


@router.post("/register-server", response_model=ActionResult)
def register_server() -> ActionResult:
    url = config.server_registration_webhook_url()
    if not url:
        raise HTTPException(status_code=400, detail="Server registration webhook is not configured.")
    try:
        post_json(url)
    except WebhookError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ActionResult(success=True, message="Server registered.")


@router.post("/inventory", response_model=ConfigurationItem)
def ingest_inventory(
    payload: InventoryPayload,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> ConfigurationItem:
    values = payload.model_dump(exclude_none=True)
    values["name"] = values.get("name") or payload.host_name

    existing = TableRepository(session, ConfigurationItem).select({"host_name": payload.host_name}, limit=1)
    if existing:
        # keep the curated fields of a known host, refresh only the facts
        for key in ("name", "item_type", "environment", "item_owner"):
            values.pop(key, None)
        return update_record(session, ConfigurationItem, existing[0].id, values, noun=NOUN, actor=x_user_id)

    values.setdefault("status", "Active")
    return create_record(session, ConfigurationItem, values, noun=NOUN, actor=x_user_id)


# ----------------------------
# CRUD
# ----------------------------

@router.get("", response_model=List[ConfigurationItem])
def list_items(
    q: Optional[str] = Query(None, description="Search by name, type or id"),
    session: Session = Depends(get_session),
) -> List[ConfigurationItem]:
    rows = TableRepository(session, ConfigurationItem).select(order_by="created_at", descending=True)
    return [r for r in rows if matches(q, r.name, r.item_type, r.id)]


@router.get("/{item_id}", response_model=ConfigurationItem)
def get_item(item_id: str, session: Session = Depends(get_session)) -> ConfigurationItem:
    return TableRepository(session, ConfigurationItem).get(item_id)


@router.get("/{item_id}/details")
def get_item_details(item_id: str, session: Session = Depends(get_session)) -> List[Dict[str, str]]:
    item = TableRepository(session, ConfigurationItem).get(item_id)
    return describe_item(item.model_dump())


@router.post("", response_model=ConfigurationItem, status_code=201)
def create_item(
    item: ConfigurationItemIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> ConfigurationItem:
    return create_record(session, ConfigurationItem, item.model_dump(), noun=NOUN, actor=x_user_id)


@router.put("/{item_id}", response_model=ConfigurationItem)
def update_item(
    item_id: str,
    item: ConfigurationItemIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> ConfigurationItem:
    return update_record(session, ConfigurationItem, item_id, item.model_dump(), noun=NOUN, actor=x_user_id)


@router.delete("/{item_id}")
def delete_item(
    item_id: str,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> Dict[str, Any]:
    old = delete_record(session, ConfigurationItem, item_id, noun=NOUN, actor=x_user_id)
    return {"ok": True, "id": old["id"]}
