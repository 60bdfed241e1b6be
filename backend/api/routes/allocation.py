from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from allocator import runs
from core.database import get_db
from schemas.allocation import (
    AllocationRequest,
    AllocationRunDetail,
    AllocationRunResponse,
    AllocationRunSummary,
    ListAllocationRunsResponse,
    UnfilledSlotOut,
)
from schemas.assignment import AssignmentOut


logger = logging.getLogger(__name__)


router = APIRouter()


@router.post("/runs", response_model=AllocationRunResponse)
def create_run(
    payload: AllocationRequest,
    db: Session = Depends(get_db),
) -> AllocationRunResponse:
    run, result = runs.execute_run(db, payload)
    return AllocationRunResponse(
        run_id=run.id,
        status=run.status,
        created=[AssignmentOut.model_validate(a) for a in result.created],
        unfilled=[
            UnfilledSlotOut(date=u.exam_date, subject=u.subject, hall=u.hall, block=u.block, reason=u.reason)
            for u in result.unfilled
        ],
    )


@router.get("/runs", response_model=ListAllocationRunsResponse)
def list_runs(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
) -> ListAllocationRunsResponse:
    return ListAllocationRunsResponse(
        runs=[AllocationRunSummary.model_validate(r) for r in runs.list_runs(db, limit=limit)]
    )


@router.get("/runs/{run_id}", response_model=AllocationRunDetail)
def get_run(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> AllocationRunDetail:
    run, unfilled = runs.get_run(db, run_id)
    summary = AllocationRunSummary.model_validate(run)
    return AllocationRunDetail(
        **summary.model_dump(),
        unfilled=[UnfilledSlotOut.model_validate(u) for u in unfilled],
    )
