from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from allocator.conflicts import normalize
from core.errors import AssignmentFrozenError, NotFoundError
from models.assignment import Assignment
from models.scheduled_exam import ScheduledExam
from schemas.assignment import AssignmentFilter


STAFF_SNAPSHOT_FIELDS = ("staff_id", "staff_name", "staff_email", "designation")


@dataclass(frozen=True)
class Scope:
    """(academic_year, exam_type, exam_year): the unit caps and history are counted in."""

    academic_year: str
    exam_type: str
    exam_year: str

    @property
    def key(self) -> str:
        return f"{self.academic_year}|{self.exam_type}|{self.exam_year}"

    def as_filter(self) -> AssignmentFilter:
        return AssignmentFilter(
            academic_year=self.academic_year,
            exam_type=self.exam_type,
            exam_year=self.exam_year,
        )


def _apply_filter(q, flt: AssignmentFilter):
    if flt.academic_year is not None:
        q = q.where(Assignment.academic_year == flt.academic_year)
    if flt.exam_type is not None:
        q = q.where(Assignment.exam_type == flt.exam_type)
    if flt.exam_year is not None:
        q = q.where(Assignment.exam_year == flt.exam_year)
    if flt.blocks:
        q = q.where(Assignment.block.in_(flt.blocks))
    if flt.exam_date is not None:
        q = q.where(Assignment.exam_date == flt.exam_date)
    if flt.subject:
        q = q.where(func.lower(Assignment.subject).contains(normalize(flt.subject), autoescape=True))
    if flt.frozen is not None:
        q = q.where(Assignment.frozen.is_(flt.frozen))
    return q


def list_assignments(db: Session, flt: AssignmentFilter | None = None) -> list[Assignment]:
    q = select(Assignment)
    if flt is not None:
        q = _apply_filter(q, flt)
    q = q.order_by(
        Assignment.exam_date.asc(),
        Assignment.block.asc(),
        Assignment.hall.asc(),
        Assignment.created_at.asc(),
    )
    return db.execute(q).scalars().all()


def get_assignment(db: Session, assignment_id: uuid.UUID, *, for_update: bool = False) -> Assignment:
    q = select(Assignment).where(Assignment.id == assignment_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    assignment = db.execute(q).scalars().first()
    if assignment is None:
        raise NotFoundError("Assignment not found.", code="ASSIGNMENT_NOT_FOUND", details={"assignment_id": str(assignment_id)})
    return assignment


def create_assignment(db: Session, **fields: Any) -> Assignment:
    """Write one open assignment and commit it before returning."""
    fields["frozen"] = False
    assignment = Assignment(**fields)
    db.add(assignment)
    db.commit()
    return assignment


def update_assignment(db: Session, assignment: Assignment, **changes: Any) -> Assignment:
    """Overwrite staff snapshot fields on an open assignment."""
    if assignment.frozen:
        raise AssignmentFrozenError(
            "Frozen assignments cannot be edited.",
            details={"assignment_id": str(assignment.id)},
        )
    unknown = set(changes) - set(STAFF_SNAPSHOT_FIELDS)
    if unknown:
        raise ValueError(f"Assignment fields are immutable: {sorted(unknown)}")

    for k, v in changes.items():
        setattr(assignment, k, v)
    db.commit()
    return assignment


def list_scheduled_exams(db: Session, scope: Scope, *, exam_date: date | None = None) -> list[ScheduledExam]:
    q = (
        select(ScheduledExam)
        .where(ScheduledExam.academic_year == scope.academic_year)
        .where(ScheduledExam.exam_type == scope.exam_type)
        .where(ScheduledExam.exam_year == scope.exam_year)
    )
    if exam_date is not None:
        q = q.where(ScheduledExam.exam_date == exam_date)
    return db.execute(q.order_by(ScheduledExam.exam_date.asc(), ScheduledExam.created_at.asc())).scalars().all()


def record_schedule(db: Session, scope: Scope, schedule: Iterable[tuple[date, str]], *, run_id: uuid.UUID) -> int:
    """Add the (date, subject) pairs the scope has not seen yet. Subjects compare normalized."""
    seen = {(e.exam_date, normalize(e.subject)) for e in list_scheduled_exams(db, scope)}
    added = 0
    for exam_date, subject in schedule:
        key = (exam_date, normalize(subject))
        if not key[1] or key in seen:
            continue
        seen.add(key)
        db.add(
            ScheduledExam(
                run_id=run_id,
                academic_year=scope.academic_year,
                exam_type=scope.exam_type,
                exam_year=scope.exam_year,
                exam_date=exam_date,
                subject=subject,
            )
        )
        added += 1
    db.commit()
    return added

def summarize(assignments: Iterable[Assignment]) -> dict[str, Any]:
    assignments = list(assignments)
    frozen = sum(1 for a in assignments if a.frozen)
    by_date = Counter(a.exam_date.isoformat() for a in assignments)
    return {
        "total": len(assignments),
        "frozen": frozen,
        "open": len(assignments) - frozen,
        "unique_staff": len({a.staff_id for a in assignments}),
        "blocks": sorted({a.block for a in assignments if a.block}),
        "by_date": dict(sorted(by_date.items())),
    }
