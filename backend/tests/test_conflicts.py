from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from allocator.conflicts import (
    blocked_by_date,
    cap_for,
    is_associate,
    is_eligible,
    normalize,
    reassignment_candidates,
    teaches,
)
from schemas.allocation import DutyCaps


D1 = date(2024, 9, 2)
D2 = date(2024, 9, 3)


def _staff(id, subject1="", subject2="", designation="Assistant Professor"):
    return SimpleNamespace(id=id, subject1=subject1, subject2=subject2, designation=designation)


def _assignment(id, staff_id, subject, exam_date=D1):
    return SimpleNamespace(id=id, staff_id=staff_id, subject=subject, exam_date=exam_date)


def test_normalize_lowercases_and_trims():
    assert normalize("  Physics ") == "physics"
    assert normalize(None) == ""


def test_teaches_matches_either_subject_case_insensitively():
    s = _staff(1, subject1="Math", subject2=" physics")
    assert teaches(s, "PHYSICS")
    assert teaches(s, "math ")
    assert not teaches(s, "Chemistry")


def test_blank_subjects_never_match():
    s = _staff(1)
    assert not teaches(s, "")
    assert not teaches(s, "Math")


def test_associate_marker_is_a_case_insensitive_substring():
    assert is_associate("Associate Professor")
    assert is_associate("ASSOCIATE prof")
    assert not is_associate("Assistant Professor")
    assert not is_associate(None)


def test_cap_for_picks_designation_class():
    caps = DutyCaps(associate=2, others=4)
    assert cap_for(_staff(1, designation="Associate Professor"), caps) == 2
    assert cap_for(_staff(2, designation="Professor"), caps) == 4


def test_non_positive_or_non_numeric_caps_are_unlimited():
    caps = DutyCaps(associate="abc", others=0)
    assert caps.associate is None
    assert caps.others is None
    assert cap_for(_staff(1, designation="Associate"), caps) is None
    assert DutyCaps(others="3").others == 3
    assert DutyCaps(others=-1).others is None


def test_blocked_by_date_is_day_wide():
    staff = [_staff("a", "Math"), _staff("b", "Physics"), _staff("c", "Chemistry")]
    schedule = [(D1, "Physics"), (D1, "math"), (D2, "Chemistry"), (D2, "  ")]

    blocked = blocked_by_date(schedule, staff)

    assert blocked[D1] == {"a", "b"}
    assert blocked[D2] == {"c"}


def test_is_eligible_checks_every_rule():
    s = _staff("a", "Math")
    base = dict(exam_date=D1, subject="Physics", counts={}, occupied={}, cap=None, blocked={})

    assert is_eligible(s, **base)
    assert not is_eligible(s, **{**base, "subject": " MATH"})
    assert not is_eligible(s, **{**base, "blocked": {D1: {"a"}}})
    assert not is_eligible(s, **{**base, "counts": {"a": 2}, "cap": 2})
    assert is_eligible(s, **{**base, "counts": {"a": 1}, "cap": 2})
    assert not is_eligible(s, **{**base, "occupied": {"a": {D1}}})
    assert is_eligible(s, **{**base, "occupied": {"a": {D2}}})


def test_reassignment_candidates_exclude_busy_and_day_subject_teachers():
    holder = _staff("h")
    busy = _staff("busy")
    teaches_other_exam = _staff("t", subject2="Chemistry")
    free = _staff("f", "Biology")

    target = _assignment(1, "h", "Physics")
    same_day = [target, _assignment(2, "busy", "Chemistry")]

    out = reassignment_candidates([holder, busy, teaches_other_exam, free], assignment=target, same_day=same_day)

    assert [s.id for s in out] == ["h", "f"]


def test_scheduled_subjects_without_assignments_block_candidates():
    target = _assignment(1, "h", "Math")
    physicist = _staff("p", "Physics")

    out = reassignment_candidates(
        [_staff("h"), physicist],
        assignment=target,
        same_day=[target],
        scheduled_subjects=["Math", " physics"],
    )

    assert [s.id for s in out] == ["h"]
