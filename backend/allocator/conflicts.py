"""Eligibility rules shared by the allocation engine and the reassignment resolver.

Everything here is pure: staff and assignment arguments are duck-typed (ORM rows
in production, plain objects in tests).

Conflict scope is day-wide in both places: a staff member who teaches any
subject examined on a date may not invigilate anywhere on that date.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable, Mapping, Protocol


ASSOCIATE_MARKER = "associate"


class CapsLike(Protocol):
    associate: int | None
    others: int | None


def normalize(value: Any) -> str:
    return str(value or "").strip().lower()


def staff_subjects(staff: Any) -> set[str]:
    return {s for s in (normalize(staff.subject1), normalize(staff.subject2)) if s}


def teaches(staff: Any, subject: str) -> bool:
    sub = normalize(subject)
    return bool(sub) and sub in staff_subjects(staff)


def teaches_any(staff: Any, subjects: Iterable[str]) -> bool:
    return not staff_subjects(staff).isdisjoint(normalize(s) for s in subjects)


def is_associate(designation: Any) -> bool:
    return ASSOCIATE_MARKER in normalize(designation)


def cap_for(staff: Any, caps: CapsLike) -> int | None:
    """Duty cap for this staff member's designation class; None is unlimited."""
    cap = caps.associate if is_associate(staff.designation) else caps.others
    if cap is None or cap <= 0:
        return None
    return cap


def blocked_by_date(schedule: Iterable[tuple[date, str]], staff: Iterable[Any]) -> dict[date, set[Any]]:
    """Staff ids that teach a subject examined on each scheduled date."""
    subjects_by_date: dict[date, set[str]] = defaultdict(set)
    for exam_date, subject in schedule:
        bucket = subjects_by_date[exam_date]
        sub = normalize(subject)
        if sub:
            bucket.add(sub)

    staff = list(staff)
    blocked: dict[date, set[Any]] = {}
    for exam_date, subjects in subjects_by_date.items():
        blocked[exam_date] = {s.id for s in staff if not staff_subjects(s).isdisjoint(subjects)}
    return blocked


def is_eligible(
    staff: Any,
    *,
    exam_date: date,
    subject: str,
    counts: Mapping[Any, int],
    occupied: Mapping[Any, set[date]],
    cap: int | None,
    blocked: Mapping[date, set[Any]],
) -> bool:
    if teaches(staff, subject):
        return False
    if staff.id in blocked.get(exam_date, ()):
        return False
    if cap is not None and counts.get(staff.id, 0) >= cap:
        return False
    if exam_date in occupied.get(staff.id, ()):
        return False
    return True


def reassignment_candidates(
    staff: Iterable[Any],
    *,
    assignment: Any,
    same_day: Iterable[Any],
    scheduled_subjects: Iterable[str] = (),
) -> list[Any]:
    """Staff who may take over `assignment`.

    `same_day` is every assignment in the scope on the assignment's exam date,
    the assignment itself included; `scheduled_subjects` adds the subjects
    examined that date that hold no assignment. The current holder is exempt
    from the busy rule only.
    """
    same_day = list(same_day)
    busy = {a.staff_id for a in same_day if a.id != assignment.id}
    day_subjects = {normalize(a.subject) for a in same_day} | {normalize(assignment.subject)}
    day_subjects |= {normalize(s) for s in scheduled_subjects}
    day_subjects.discard("")

    out = []
    for s in staff:
        if s.id in busy and s.id != assignment.staff_id:
            continue
        if teaches_any(s, day_subjects):
            continue
        out.append(s)
    return out
