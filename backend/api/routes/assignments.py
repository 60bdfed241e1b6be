from __future__ import annotations

import datetime as dt
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from schemas.assignment import (
    AssignmentFilter,
    AssignmentOut,
    AssignmentSummary,
    CandidateOut,
    FreezeAllResponse,
    FreezeResponse,
    ReassignRequest,
)
from services import freeze, ledger, reassignment


router = APIRouter()


def _filter_params(
    academic_year: str | None = Query(default=None),
    exam_type: str | None = Query(default=None),
    exam_year: str | None = Query(default=None),
    block: list[str] | None = Query(default=None),
    exam_date: dt.date | None = Query(default=None, alias="date"),
    subject: str | None = Query(default=None),
    frozen: bool | None = Query(default=None),
) -> AssignmentFilter:
    return AssignmentFilter(
        academic_year=academic_year,
        exam_type=exam_type,
        exam_year=exam_year,
        blocks=block,
        exam_date=exam_date,
        subject=subject,
        frozen=frozen,
    )


@router.get("/", response_model=list[AssignmentOut])
def list_assignments(
    flt: AssignmentFilter = Depends(_filter_params),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return ledger.list_assignments(db, flt)


@router.get("/summary", response_model=AssignmentSummary)
def summary(
    flt: AssignmentFilter = Depends(_filter_params),
    db: Session = Depends(get_db),
) -> AssignmentSummary:
    return AssignmentSummary(**ledger.summarize(ledger.list_assignments(db, flt)))


@router.post("/freeze-all", response_model=FreezeAllResponse)
def freeze_all(
    payload: AssignmentFilter | None = None,
    db: Session = Depends(get_db),
) -> FreezeAllResponse:
    outcome = freeze.freeze_all(db, payload)
    return FreezeAllResponse(
        frozen_count=len(outcome.frozen),
        frozen_ids=[a.id for a in outcome.frozen],
        remaining_open=outcome.remaining_open,
        complete=outcome.complete,
        error=outcome.error.to_dict() if outcome.error is not None else None,
    )


@router.post("/{assignment_id}/freeze", response_model=FreezeResponse)
def freeze_assignment(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> FreezeResponse:
    outcome = freeze.freeze_one(db, assignment_id)
    return FreezeResponse(assignment=AssignmentOut.model_validate(outcome.assignment), changed=outcome.changed)


@router.get("/{assignment_id}/candidates", response_model=list[CandidateOut])
def list_candidates(
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> list[CandidateOut]:
    assignment = ledger.get_assignment(db, assignment_id)
    return [
        CandidateOut(
            id=s.id,
            name=s.name or "",
            designation=s.designation or "",
            email=s.email or "",
            subject1=s.subject1 or "",
            subject2=s.subject2 or "",
            is_current=s.id == assignment.staff_id,
        )
        for s in reassignment.list_candidates(db, assignment_id)
    ]


@router.put("/{assignment_id}/staff", response_model=AssignmentOut)
def reassign_staff(
    assignment_id: uuid.UUID,
    payload: ReassignRequest,
    db: Session = Depends(get_db),
) -> AssignmentOut:
    return reassignment.reassign(db, assignment_id, payload.staff_id)
