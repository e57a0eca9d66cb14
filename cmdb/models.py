from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field as SQLField


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid4())


class ConfigurationItem(SQLModel, table=True):
    __tablename__ = "configuration_items"

    id: str = SQLField(default_factory=new_id, primary_key=True, index=True)
    name: str
    item_type: str
    status: str
    environment: str
    item_owner: str = SQLField(index=True)  # user name, not id
    created_at: str = SQLField(default_factory=now_iso, index=True)

    # Server / workstation attributes, all free text
    cpu_core: Optional[str] = None
    cpu_threads: Optional[str] = None
    ip_address: Optional[str] = None
    host_name: Optional[str] = SQLField(default=None, index=True)
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


class Incident(SQLModel, table=True):
    __tablename__ = "incidents"

    id: str = SQLField(default_factory=new_id, primary_key=True, index=True)
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    assigned_to_user_id: Optional[str] = SQLField(default=None, index=True)
    related_ci_id: Optional[str] = SQLField(default=None, index=True)
    created_at: str = SQLField(default_factory=now_iso, index=True)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = SQLField(default_factory=new_id, primary_key=True, index=True)
    name: str = SQLField(index=True)
    email: str
    role: str
    created_at: str = SQLField(default_factory=now_iso, index=True)


class Setting(SQLModel, table=True):
    __tablename__ = "settings"

    key: str = SQLField(primary_key=True)
    value: Optional[str] = None
    updated_at: str = SQLField(default_factory=now_iso)


class LogEntry(SQLModel, table=True):
    __tablename__ = "logs"

    id: Optional[int] = SQLField(default=None, primary_key=True)
    created_at: str = SQLField(default_factory=now_iso, index=True)
    user_id: Optional[str] = None
    action: str  # INSERT | UPDATE | DELETE
    table_name: str
    record_id: Optional[str] = None
    old_data_json: Optional[str] = None
    new_data_json: Optional[str] = None
    description: str
    is_error: bool = False
    error_details_json: Optional[str] = None


class ReportText(SQLModel, table=True):
    """One part of a generated report, written back by the workflow engine."""

    __tablename__ = "report_texts"

    id: Optional[int] = SQLField(default=None, primary_key=True)
    created_at: str = SQLField(default_factory=now_iso, index=True)
    content: str


class IncidentSolution(SQLModel, table=True):
    __tablename__ = "incident_solutions"

    id: Optional[int] = SQLField(default=None, primary_key=True)
    created_at: str = SQLField(default_factory=now_iso, index=True)
    solution: str
