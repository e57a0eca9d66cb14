from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

ItemType = Literal["Server", "Workstation", "Application", "Website", "Database"]
ItemStatus = Literal["Active", "Inactive", "Maintenance", "Decommissioned"]
IncidentStatus = Literal["Open", "In Progress", "Resolved", "Closed"]
Priority = Literal["Low", "Medium", "High", "Critical"]
LogAction = Literal["INSERT", "UPDATE", "DELETE"]

WEBHOOK_SETTING_KEY = "workflow_webhook_url"

_http_url = TypeAdapter(AnyHttpUrl)


# ----------------------------
# Configuration items
# ----------------------------

class ItemAttributes(BaseModel):
    cpu_core: Optional[str] = None
    cpu_threads: Optional[str] = None
    ip_address: Optional[str] = None
    host_name: Optional[str] = None
    kernel_version: Optional[str] = None
    free_memory_gb: Optional[str] = None
    total_memory_gb: Optional[str] = None
    used_memory_percentage: Optional[str] = None
    os: Optional[str] = None
    storage_available: Optional[str] = None
    storage_total: Optional[str] = None
    current_cpu_usage: Optional[str] = None
    windows_license: Optional[str] = None
    license_status: Optional[str] = None
    license_expiration: Optional[str] = None


class ConfigurationItemIn(ItemAttributes):
    name: str = Field(..., min_length=3, description="Item name, at least 3 characters")
    item_type: ItemType
    status: ItemStatus = "Active"
    environment: str = Field("Production", min_length=1)
    item_owner: str = Field(..., min_length=1, description="Name of the owning user")


class InventoryPayload(ItemAttributes):
    """Host facts as produced by the inventory collector."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    host_name: str = Field(..., min_length=1)
    name: Optional[str] = None
    item_type: ItemType = "Server"
    environment: str = "Production"
    item_owner: str = "Unassigned"


# ----------------------------
# Incidents
# ----------------------------

class IncidentIn(BaseModel):
    title: str = Field(..., min_length=3)
    description: Optional[str] = None
    status: IncidentStatus = "Open"
    priority: Priority = "Low"
    assigned_to_user_id: Optional[UUID] = None
    related_ci_id: Optional[UUID] = None

    @field_validator("assigned_to_user_id", "related_ci_id", mode="before")
    @classmethod
    def _blank_is_null(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_row(self) -> Dict[str, Any]:
        data = self.model_dump()
        for key in ("assigned_to_user_id", "related_ci_id"):
            if data[key] is not None:
                data[key] = str(data[key])
        return data


class IncidentOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    created_at: str
    assigned_to_user_id: Optional[str] = None
    related_ci_id: Optional[str] = None
    assigned_user_name: Optional[str] = None
    related_ci_name: Optional[str] = None


# ----------------------------
# Users
# ----------------------------

class UserIn(BaseModel):
    name: str = Field(..., min_length=3)
    email: EmailStr
    role: str = Field(..., min_length=1)


class UserOption(BaseModel):
    id: str
    name: str


# ----------------------------
# Settings
# ----------------------------

class WebhookSettings(BaseModel):
    workflow_webhook_url: str = ""

    @field_validator("workflow_webhook_url")
    @classmethod
    def _valid_url_or_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            return ""
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError("must be a valid http(s) URL") from None
        return v


# ----------------------------
# Dashboard / reports / helper
# ----------------------------

class TypeCount(BaseModel):
    name: str
    value: int


class DashboardStats(BaseModel):
    config_items: int
    incidents: int
    changes: int
    users: int
    ci_type_summary: List[TypeCount]


class ActionResult(BaseModel):
    success: bool
    message: str


class TextResult(BaseModel):
    found: bool
    content: str


class ChangeEntry(BaseModel):
    id: int
    created_at: str
    action: str
    table_name: str


class Notification(BaseModel):
    id: int
    message: str
    timestamp: str


class SearchHit(BaseModel):
    id: str
    name: str
    kind: Literal["configuration_item", "user"]
    path: str


class ReportPartIn(BaseModel):
    content: str = Field(..., min_length=1)


class SolutionIn(BaseModel):
    solution: str = Field(..., min_length=1)
