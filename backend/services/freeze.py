from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import DutyError, FreezeError, NotFoundError
from models.assignment import Assignment
from models.base import utcnow
from schemas.assignment import AssignmentFilter
from services import ledger, roster


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreezeOutcome:
    assignment: Assignment
    changed: bool


@dataclass
class FreezeAllOutcome:
    frozen: list[Assignment] = field(default_factory=list)
    remaining_open: list[uuid.UUID] = field(default_factory=list)
    error: DutyError | None = None

    @property
    def complete(self) -> bool:
        return self.error is None and not self.remaining_open


def freeze_one(db: Session, assignment_id: uuid.UUID) -> FreezeOutcome:
    """Lock one assignment and credit the duty to its staff member.

    The frozen flag and the staff counters are committed together. Freezing an
    already-frozen assignment changes nothing.
    """
    # Re-read under a row lock so concurrent freezes of the same row credit once.
    assignment = ledger.get_assignment(db, assignment_id, for_update=True)
    if assignment.frozen:
        db.rollback()
        logger.info("Assignment %s already frozen; nothing to do", assignment_id)
        return FreezeOutcome(assignment=assignment, changed=False)

    staff = roster.get_staff(db, assignment.staff_id, for_update=True)
    if staff is None:
        db.rollback()
        raise NotFoundError(
            "Staff member for this assignment no longer exists.",
            code="STAFF_NOT_FOUND",
            details={"assignment_id": str(assignment_id), "staff_id": str(assignment.staff_id)},
        )

    counters = roster.bump_invigilation_count(
        staff.invigilation_count,
        academic_year=assignment.academic_year,
        exam_type=assignment.exam_type,
    )
    assignment.frozen = True
    assignment.frozen_at = utcnow()
    roster.update_staff_counters(db, staff, counters)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise FreezeError(
            "Freeze was not saved; the assignment is still open. Please retry.",
            details={"assignment_id": str(assignment_id)},
        ) from exc

    logger.info("Froze assignment %s for staff %s", assignment_id, staff.id)
    return FreezeOutcome(assignment=assignment, changed=True)


def freeze_all(db: Session, flt: AssignmentFilter | None = None) -> FreezeAllOutcome:
    """Freeze every open assignment in the visible set, one at a time.

    Stops at the first failure; assignments frozen before it stay frozen.
    """
    flt = (flt or AssignmentFilter()).model_copy(update={"frozen": False})
    targets = [a.id for a in ledger.list_assignments(db, flt)]

    outcome = FreezeAllOutcome()
    for i, assignment_id in enumerate(targets):
        try:
            result = freeze_one(db, assignment_id)
        except DutyError as exc:
            outcome.error = exc
            outcome.remaining_open = targets[i:]
            logger.warning(
                "Bulk freeze stopped after %d of %d: %s",
                len(outcome.frozen),
                len(targets),
                exc.code,
            )
            break
        if result.changed:
            outcome.frozen.append(result.assignment)

    return outcome
