from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from allocator.conflicts import reassignment_candidates
from core.errors import AssignmentFrozenError, NotFoundError, StaffNotEligibleError
from models.assignment import Assignment
from models.staff import Staff
from services import ledger, roster


logger = logging.getLogger(__name__)


def _candidates(db: Session, assignment: Assignment) -> list[Staff]:
    scope = ledger.Scope(assignment.academic_year, assignment.exam_type, assignment.exam_year)
    same_day = ledger.list_assignments(db, scope.as_filter().model_copy(update={"exam_date": assignment.exam_date}))
    scheduled = ledger.list_scheduled_exams(db, scope, exam_date=assignment.exam_date)
    return reassignment_candidates(
        roster.list_staff(db),
        assignment=assignment,
        same_day=same_day,
        scheduled_subjects=[e.subject for e in scheduled],
    )


def _ensure_open(assignment: Assignment) -> None:
    if assignment.frozen:
        raise AssignmentFrozenError(
            "Frozen assignments cannot be reassigned.",
            details={"assignment_id": str(assignment.id)},
        )


def list_candidates(db: Session, assignment_id: uuid.UUID) -> list[Staff]:
    assignment = ledger.get_assignment(db, assignment_id)
    _ensure_open(assignment)
    return _candidates(db, assignment)


def reassign(db: Session, assignment_id: uuid.UUID, staff_id: uuid.UUID) -> Assignment:
    """Hand an open assignment to another eligible staff member.

    Only the staff snapshot changes; date, subject, block and hall stay put.
    Reselecting the current holder just refreshes the snapshot.
    """
    assignment = ledger.get_assignment(db, assignment_id, for_update=True)
    _ensure_open(assignment)

    staff = roster.get_staff(db, staff_id)
    if staff is None:
        raise NotFoundError("Staff member not found.", code="STAFF_NOT_FOUND", details={"staff_id": str(staff_id)})

    if staff.id != assignment.staff_id and staff.id not in {s.id for s in _candidates(db, assignment)}:
        raise StaffNotEligibleError(
            "Staff member is busy or teaches a subject examined that day.",
            details={"assignment_id": str(assignment_id), "staff_id": str(staff_id)},
        )

    previous = assignment.staff_id
    ledger.update_assignment(
        db,
        assignment,
        staff_id=staff.id,
        staff_name=staff.name or "",
        staff_email=staff.email or "",
        designation=staff.designation or "",
    )
    logger.info("Reassigned %s from staff %s to %s", assignment_id, previous, staff.id)
    return assignment
