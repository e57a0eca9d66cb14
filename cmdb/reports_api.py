from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Type

from fastapi import APIRouter, Depends
from sqlmodel import Session, SQLModel

from cmdb.db import get_session
from cmdb.models import ReportText
from cmdb.repository import TableRepository
from cmdb.schemas import ReportPartIn, TextResult

router = APIRouter(prefix="/reports", tags=["reports"])

REPORT_PARTS = 3
NO_REPORT_MESSAGE = "No report found for today."


def start_of_today() -> str:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()


def latest_text_today(session: Session, model: Type[SQLModel], limit: int) -> List:
    """Newest rows of a write-back table created since UTC midnight, newest first."""
    return TableRepository(session, model).select(
        gte={"created_at": start_of_today()},
        order_by="created_at",
        descending=True,
        limit=limit,
    )


def assemble_report(parts_newest_first: List[str]) -> str:
    return "\n\n".join(reversed(parts_newest_first))


@router.get("/latest", response_model=TextResult)
def latest_report(session: Session = Depends(get_session)) -> TextResult:
    rows = latest_text_today(session, ReportText, limit=REPORT_PARTS)
    if not rows:
        return TextResult(found=False, content=NO_REPORT_MESSAGE)
    return TextResult(found=True, content=assemble_report([r.content for r in rows]))


@router.post("/parts", response_model=ReportText, status_code=201)
def add_report_part(part: ReportPartIn, session: Session = Depends(get_session)) -> ReportText:
    return TableRepository(session, ReportText).insert({"content": part.content})
