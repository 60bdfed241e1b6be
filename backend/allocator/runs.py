"""Allocation run lifecycle: validate, record, lock the scope, allocate, report."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from allocator.engine import AllocationResult, allocate_duties
from core.config import settings
from core.errors import AllocationPreconditionError, DutyError, NotFoundError
from models.allocation_run import AllocationRun
from models.base import utcnow
from models.unfilled_slot import UnfilledSlot
from schemas.allocation import AllocationRequest
from services import ledger, scope_lease


logger = logging.getLogger(__name__)


MIN_SCHEDULE_ENTRIES = 5


def validate_request(request: AllocationRequest) -> None:
    """Reject a run before anything is read or written."""
    if not request.blocks:
        raise AllocationPreconditionError("Please select at least one block.", code="NO_BLOCKS_SELECTED")

    valid = len(request.valid_entries())
    if valid < MIN_SCHEDULE_ENTRIES:
        raise AllocationPreconditionError(
            f"Please enter at least {MIN_SCHEDULE_ENTRIES} exam entries.",
            code="INSUFFICIENT_SCHEDULE_ENTRIES",
            details={"valid_entries": valid, "required": MIN_SCHEDULE_ENTRIES},
        )


def _finish(db: Session, run: AllocationRun, *, status: str, notes: str | None = None) -> None:
    run.status = status
    run.finished_at = utcnow()
    if notes is not None:
        run.notes = notes[:500]
    db.add(run)
    db.commit()


def execute_run(db: Session, request: AllocationRequest) -> tuple[AllocationRun, AllocationResult]:
    validate_request(request)

    scope = ledger.Scope(request.academic_year, request.exam_type, request.exam_year)
    run = AllocationRun(
        id=uuid.uuid4(),
        status="CREATED",
        parameters=request.model_dump(mode="json"),
    )
    db.add(run)
    # Persist the run before allocating so a crash still leaves an auditable record.
    db.commit()

    try:
        scope_lease.acquire(
            db,
            scope_key=scope.key,
            run_id=run.id,
            ttl_seconds=settings.allocation_lease_seconds,
        )
    except DutyError as exc:
        _finish(db, run, status="REJECTED", notes=f"{exc.code}: {exc}")
        raise

    try:
        ledger.record_schedule(
            db,
            scope,
            [(e.date, e.subject) for e in request.valid_entries()],
            run_id=run.id,
        )
        result = allocate_duties(
            db,
            run=run,
            request=request,
            lease_ttl=settings.allocation_lease_seconds,
        )
    except Exception as exc:
        db.rollback()
        logger.exception("Allocation run %s aborted", run.id)
        _finish(db, run, status="FAILED", notes=f"{type(exc).__name__}: {exc}")
        raise
    finally:
        scope_lease.release(db, scope_key=scope.key, run_id=run.id)

    for u in result.unfilled:
        db.add(
            UnfilledSlot(
                run_id=run.id,
                exam_date=u.exam_date,
                subject=u.subject,
                hall=u.hall,
                block=u.block,
                reason=u.reason,
            )
        )
    run.created_count = len(result.created)
    run.unfilled_count = len(result.unfilled)
    _finish(db, run, status="COMPLETED")

    if result.unfilled:
        logger.warning(
            "Allocation run %s: %d halls are unassigned across %s",
            run.id,
            len(result.unfilled),
            ", ".join(request.blocks),
        )
    logger.info(
        "Allocation run %s completed: created=%d unfilled=%d already_filled=%d",
        run.id,
        len(result.created),
        len(result.unfilled),
        result.skipped,
    )
    return run, result


def list_runs(db: Session, *, limit: int = 50) -> list[AllocationRun]:
    q = select(AllocationRun).order_by(AllocationRun.created_at.desc()).limit(limit)
    return db.execute(q).scalars().all()


def get_run(db: Session, run_id: uuid.UUID) -> tuple[AllocationRun, list[UnfilledSlot]]:
    run = db.get(AllocationRun, run_id)
    if run is None:
        raise NotFoundError("Allocation run not found.", code="RUN_NOT_FOUND", details={"run_id": str(run_id)})
    unfilled = (
        db.execute(
            select(UnfilledSlot)
            .where(UnfilledSlot.run_id == run_id)
            .order_by(UnfilledSlot.exam_date.asc(), UnfilledSlot.block.asc(), UnfilledSlot.hall.asc())
        )
        .scalars()
        .all()
    )
    return run, unfilled
