from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from allocator.conflicts import blocked_by_date, cap_for, is_eligible, normalize
from core.errors import AllocationPersistenceError
from models.allocation_run import AllocationRun
from models.assignment import Assignment
from schemas.allocation import AllocationRequest, DutyCaps
from services import ledger, roster, scope_lease


logger = logging.getLogger(__name__)


NO_HALL_PLACEHOLDER = "No hall configured"


@dataclass(frozen=True)
class UnfilledEntry:
    exam_date: date
    subject: str
    hall: str
    block: str
    reason: str = "NO_ELIGIBLE_STAFF"


@dataclass(frozen=True)
class PlannedDuty:
    exam_date: date
    subject: str
    block: str
    hall: str
    staff: Any


class AllocationResult:
    def __init__(self, *, created: list[Assignment], unfilled: list[UnfilledEntry], skipped: int = 0):
        self.created = created
        self.unfilled = unfilled
        self.skipped = skipped


def partition_halls(halls: Iterable[Any], blocks: Sequence[str]) -> dict[str, list[str]]:
    """Hall names per selected block, in roster order. Unselected blocks are dropped."""
    by_block: dict[str, list[str]] = {b: [] for b in blocks}
    for h in halls:
        block = (h.block or "").strip()
        if block in by_block:
            by_block[block].append(h.exam_hall)
    return by_block


class DutyAllocator:
    """Round-robin duty assignment for a single run.

    The cursor, running counts and occupied dates belong to this object and
    persist across every hall of the run. Nothing is shared between runs.

    `scheduled` holds (date, subject) pairs already examined in the scope;
    together with the run's own schedule they decide who is blocked each day.
    """

    def __init__(
        self,
        staff: Sequence[Any],
        halls_by_block: dict[str, list[str]],
        *,
        caps: DutyCaps,
        history: Iterable[Any] = (),
        scheduled: Iterable[tuple[date, str]] = (),
    ):
        self.staff = list(staff)
        self.halls_by_block = halls_by_block
        self.caps = caps
        self.cursor = 0

        self.counts: dict[Any, int] = defaultdict(int)
        self.occupied: dict[Any, set[date]] = defaultdict(set)
        # (exam_date, block, hall) -> normalized subject of the duty holding it.
        self.filled: dict[tuple[date, str, str], str] = {}
        self.scheduled: list[tuple[date, str]] = list(scheduled)
        for a in history:
            self.counts[a.staff_id] += 1
            self.occupied[a.staff_id].add(a.exam_date)
            self.filled[(a.exam_date, a.block, a.hall)] = normalize(a.subject)
            self.scheduled.append((a.exam_date, a.subject))

    def _pick(self, exam_date: date, subject: str, blocked: dict[date, set[Any]]) -> tuple[Any, int] | None:
        n = len(self.staff)
        idx = self.cursor
        for _ in range(n):
            s = self.staff[idx]
            idx = (idx + 1) % n
            if is_eligible(
                s,
                exam_date=exam_date,
                subject=subject,
                counts=self.counts,
                occupied=self.occupied,
                cap=cap_for(s, self.caps),
                blocked=blocked,
            ):
                return s, idx
        return None

    def run(
        self,
        schedule: Sequence[tuple[date, str]],
        blocks: Sequence[str],
        write: Callable[[PlannedDuty], Any],
    ) -> AllocationResult:
        """Fill every (exam, block, hall) slot in order.

        `write` persists one duty and must complete before the next slot is
        considered; whatever it raises aborts the run.
        """
        blocked = blocked_by_date([*self.scheduled, *schedule], self.staff)
        created: list[Any] = []
        unfilled: list[UnfilledEntry] = []
        skipped = 0

        for exam_date, subject in schedule:
            for block in blocks:
                halls = self.halls_by_block.get(block) or []
                if not halls:
                    unfilled.append(
                        UnfilledEntry(exam_date, subject, NO_HALL_PLACEHOLDER, block, reason="NO_HALLS_IN_BLOCK")
                    )
                    continue

                for hall in halls:
                    slot = (exam_date, block, hall)
                    holder_subject = self.filled.get(slot)
                    if holder_subject is not None:
                        # One invigilator per hall per date; earlier runs count too.
                        if holder_subject == normalize(subject):
                            skipped += 1
                        else:
                            unfilled.append(UnfilledEntry(exam_date, subject, hall, block, reason="HALL_TAKEN_SAME_DATE"))
                        continue

                    choice = self._pick(exam_date, subject, blocked)
                    if choice is None:
                        logger.debug("No eligible staff for %s %s %s/%s", exam_date, subject, block, hall)
                        unfilled.append(UnfilledEntry(exam_date, subject, hall, block))
                        continue

                    staff, next_cursor = choice
                    created.append(write(PlannedDuty(exam_date, subject, block, hall, staff)))

                    self.counts[staff.id] += 1
                    self.occupied[staff.id].add(exam_date)
                    self.filled[slot] = normalize(subject)
                    self.cursor = next_cursor

        return AllocationResult(created=created, unfilled=unfilled, skipped=skipped)


def allocate_duties(
    db: Session,
    *,
    run: AllocationRun,
    request: AllocationRequest,
    lease_ttl: int | None = None,
) -> AllocationResult:
    """Load roster and scope history, then write one assignment per fillable slot.

    Each assignment is committed before the next slot is evaluated. A failed
    write raises AllocationPersistenceError; assignments committed before it stay.
    With `lease_ttl` the scope lease is renewed before every write, and a lost
    lease aborts the run with ScopeLockedError.
    """
    scope = ledger.Scope(request.academic_year, request.exam_type, request.exam_year)
    schedule = [(e.date, e.subject) for e in request.valid_entries()]

    staff = roster.list_staff(db)
    halls = roster.list_halls(db)
    history = ledger.list_assignments(db, scope.as_filter())
    scheduled = [(e.exam_date, e.subject) for e in ledger.list_scheduled_exams(db, scope)]

    allocator = DutyAllocator(
        staff,
        partition_halls(halls, request.blocks),
        caps=request.caps,
        history=history,
        scheduled=scheduled,
    )
    logger.info(
        "Allocation run %s: scope=%s blocks=%s exams=%d staff=%d prior=%d",
        run.id,
        scope.key,
        request.blocks,
        len(schedule),
        len(staff),
        len(history),
    )

    written: list[Assignment] = []

    def _write(duty: PlannedDuty) -> Assignment:
        try:
            if lease_ttl is not None:
                scope_lease.renew(db, scope_key=scope.key, run_id=run.id, ttl_seconds=lease_ttl)
            assignment = ledger.create_assignment(
                db,
                run_id=run.id,
                academic_year=scope.academic_year,
                exam_type=scope.exam_type,
                exam_year=scope.exam_year,
                exam_date=duty.exam_date,
                subject=duty.subject,
                block=duty.block,
                hall=duty.hall,
                staff_id=duty.staff.id,
                staff_name=duty.staff.name or "",
                staff_email=duty.staff.email or "",
                designation=duty.staff.designation or "",
            )
        except SQLAlchemyError as exc:
            db.rollback()
            raise AllocationPersistenceError(
                "Failed to save an assignment; the run did not complete. Please retry.",
                details={
                    "run_id": str(run.id),
                    "written": len(written),
                    "exam_date": duty.exam_date.isoformat(),
                    "block": duty.block,
                    "hall": duty.hall,
                },
            ) from exc
        written.append(assignment)
        return assignment

    return allocator.run(schedule, request.blocks, _write)
