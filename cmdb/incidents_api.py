from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlmodel import Session

from cmdb.crud import create_record, delete_record, matches, update_record
from cmdb.db import get_session
from cmdb.models import ConfigurationItem, Incident, IncidentSolution, User
from cmdb.reports_api import latest_text_today
from cmdb.repository import TableRepository
from cmdb.schemas import IncidentIn, IncidentOut, SolutionIn, TextResult

router = APIRouter(prefix="/incidents", tags=["incidents"])

NOUN = "incident"
NO_SOLUTION_MESSAGE = "No suggested solution found for today."


def with_names(
    incident: Incident,
    users_by_id: Dict[str, str],
    items_by_id: Dict[str, str],
) -> IncidentOut:
    return IncidentOut(
        **incident.model_dump(),
        assigned_user_name=users_by_id.get(incident.assigned_to_user_id or ""),
        related_ci_name=items_by_id.get(incident.related_ci_id or ""),
    )


def _name_maps(session: Session) -> tuple[Dict[str, str], Dict[str, str]]:
    users = TableRepository(session, User).select()
    items = TableRepository(session, ConfigurationItem).select()
    return {u.id: u.name for u in users}, {i.id: i.name for i in items}


# ----------------------------
# Suggested solutions
# ----------------------------

@router.get("/solution", response_model=TextResult)
def get_solution(session: Session = Depends(get_session)) -> TextResult:
    rows = latest_text_today(session, IncidentSolution, limit=1)
    if not rows:
        return TextResult(found=False, content=NO_SOLUTION_MESSAGE)
    return TextResult(found=True, content=rows[0].solution)


@router.post("/solutions", response_model=IncidentSolution, status_code=201)
def add_solution(body: SolutionIn, session: Session = Depends(get_session)) -> IncidentSolution:
    return TableRepository(session, IncidentSolution).insert({"solution": body.solution})


# ----------------------------
# CRUD
# ----------------------------

@router.get("", response_model=List[IncidentOut])
def list_incidents(
    q: Optional[str] = Query(None, description="Search by title"),
    session: Session = Depends(get_session),
) -> List[IncidentOut]:
    rows = TableRepository(session, Incident).select(order_by="created_at", descending=True)
    users_by_id, items_by_id = _name_maps(session)
    return [with_names(r, users_by_id, items_by_id) for r in rows if matches(q, r.title)]


@router.get("/{incident_id}", response_model=IncidentOut)
def get_incident(incident_id: str, session: Session = Depends(get_session)) -> IncidentOut:
    row = TableRepository(session, Incident).get(incident_id)
    users_by_id, items_by_id = _name_maps(session)
    return with_names(row, users_by_id, items_by_id)


@router.post("", response_model=Incident, status_code=201)
def create_incident(
    incident: IncidentIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> Incident:
    return create_record(session, Incident, incident.to_row(), noun=NOUN, label_field="title", actor=x_user_id)


@router.put("/{incident_id}", response_model=Incident)
def update_incident(
    incident_id: str,
    incident: IncidentIn,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> Incident:
    return update_record(
        session, Incident, incident_id, incident.to_row(), noun=NOUN, label_field="title", actor=x_user_id
    )


@router.delete("/{incident_id}")
def delete_incident(
    incident_id: str,
    session: Session = Depends(get_session),
    x_user_id: Optional[str] = Header(None),
) -> Dict[str, Any]:
    old = delete_record(session, Incident, incident_id, noun=NOUN, label_field="title", actor=x_user_id)
    return {"ok": True, "id": old["id"]}
