from __future__ import annotations

from collections import Counter
from datetime import date
from types import SimpleNamespace

from allocator.engine import NO_HALL_PLACEHOLDER, DutyAllocator, partition_halls
from schemas.allocation import DutyCaps


D = [date(2024, 9, d) for d in range(2, 9)]


def _staff(id, subject1="", designation="Assistant Professor"):
    return SimpleNamespace(id=id, name=id, subject1=subject1, subject2="", designation=designation, email="")


def _collect():
    written = []

    def write(duty):
        written.append(duty)
        return duty

    return written, write


def test_partition_halls_keeps_roster_order_and_selected_blocks():
    halls = [
        SimpleNamespace(exam_hall="H2", block="X"),
        SimpleNamespace(exam_hall="H9", block="Y"),
        SimpleNamespace(exam_hall="H1", block=" X "),
    ]
    assert partition_halls(halls, ["X", "Z"]) == {"X": ["H2", "H1"], "Z": []}


def test_cursor_rotates_across_halls_and_exams():
    staff = [_staff("a"), _staff("b"), _staff("c")]
    allocator = DutyAllocator(staff, {"X": ["H1", "H2"]}, caps=DutyCaps())
    written, write = _collect()

    result = allocator.run([(D[0], "Physics"), (D[1], "Physics")], ["X"], write)

    assert [(d.exam_date, d.hall, d.staff.id) for d in written] == [
        (D[0], "H1", "a"),
        (D[0], "H2", "b"),
        (D[1], "H1", "c"),
        (D[1], "H2", "a"),
    ]
    assert result.unfilled == []


def test_failed_search_leaves_cursor_in_place():
    staff = [_staff("a"), _staff("b", "Physics")]
    allocator = DutyAllocator(staff, {"X": ["H1", "H2"]}, caps=DutyCaps())
    written, write = _collect()

    result = allocator.run([(D[0], "Chemistry")], ["X"], write)

    assert [d.staff.id for d in written] == ["a", "b"]
    assert allocator.cursor == 0
    assert result.unfilled == []

    result = allocator.run([(D[1], "Physics")], ["X"], write)
    # b is blocked on D[1]; a fills H1, nobody is left for H2.
    assert [(u.hall, u.reason) for u in result.unfilled] == [("H2", "NO_ELIGIBLE_STAFF")]
    assert allocator.cursor == 1


def test_block_without_halls_yields_one_placeholder_per_exam():
    allocator = DutyAllocator([_staff("a")], {"X": [], "Y": ["H1"]}, caps=DutyCaps())
    written, write = _collect()

    result = allocator.run([(D[0], "Physics"), (D[1], "Physics")], ["X", "Y"], write)

    placeholders = [u for u in result.unfilled if u.block == "X"]
    assert [(u.exam_date, u.hall, u.reason) for u in placeholders] == [
        (D[0], NO_HALL_PLACEHOLDER, "NO_HALLS_IN_BLOCK"),
        (D[1], NO_HALL_PLACEHOLDER, "NO_HALLS_IN_BLOCK"),
    ]
    assert len(written) == 2


def test_history_seeds_counts_dates_and_filled_halls():
    staff = [_staff("a"), _staff("b")]
    history = [SimpleNamespace(staff_id="a", exam_date=D[0], subject="physics ", block="X", hall="H1")]
    allocator = DutyAllocator(staff, {"X": ["H1", "H2"]}, caps=DutyCaps(others=1), history=history)
    written, write = _collect()

    result = allocator.run([(D[0], "Physics"), (D[1], "Physics")], ["X"], write)

    # H1 on D[0] is already held; a is at cap, so only b gets a duty.
    assert result.skipped == 1
    assert [(d.exam_date, d.hall, d.staff.id) for d in written] == [(D[0], "H2", "b")]
    assert [(u.exam_date, u.hall) for u in result.unfilled] == [(D[1], "H1"), (D[1], "H2")]


def test_associate_cap_applies_only_to_associates():
    staff = [_staff("assoc", designation="Associate Professor"), _staff("asst")]
    allocator = DutyAllocator(staff, {"X": ["H1"]}, caps=DutyCaps(associate=1))
    written, write = _collect()

    allocator.run([(d, "Physics") for d in D[:4]], ["X"], write)

    assert Counter(d.staff.id for d in written) == {"assoc": 1, "asst": 3}


def test_run_invariants_hold_on_a_mixed_roster():
    staff = [
        _staff("a", "Math"),
        _staff("b", "Physics"),
        _staff("c", "Chemistry"),
        _staff("d", designation="Associate Professor"),
        _staff("e"),
    ]
    schedule = [(D[0], "Math"), (D[0], "Physics"), (D[1], "Chemistry"), (D[2], "Math"), (D[3], "Biology")]
    caps = DutyCaps(associate=1, others=2)
    allocator = DutyAllocator(staff, {"X": ["H1", "H2"], "Y": ["H3"]}, caps=caps)
    written, write = _collect()

    allocator.run(schedule, ["X", "Y"], write)

    by_id = {s.id: s for s in staff}
    for duty in written:
        assert (by_id[duty.staff.id].subject1 or "").lower() != duty.subject.lower()

    per_day = Counter((d.staff.id, d.exam_date) for d in written)
    assert max(per_day.values()) == 1

    per_staff = Counter(d.staff.id for d in written)
    assert per_staff["d"] <= 1
    assert all(n <= 2 for n in per_staff.values())

    slots = Counter((d.exam_date, d.block, d.hall) for d in written)
    assert max(slots.values()) == 1


def test_subjects_examined_earlier_in_the_scope_block_the_whole_day():
    # Physics was examined on D[0] by an earlier run in another block.
    staff = [_staff("math", "Math"), _staff("phys", "Physics"), _staff("free")]
    allocator = DutyAllocator(staff, {"Y": ["H2"]}, caps=DutyCaps(), scheduled=[(D[0], "Physics")])
    written, write = _collect()

    allocator.run([(D[0], "Chemistry"), (D[1], "Chemistry")], ["Y"], write)

    assert [(d.exam_date, d.staff.id) for d in written] == [(D[0], "math"), (D[1], "phys")]


def test_history_subjects_block_the_day():
    staff = [_staff("phys", "Physics"), _staff("free")]
    history = [SimpleNamespace(staff_id="free", exam_date=D[0], subject="Physics", block="X", hall="H1")]
    allocator = DutyAllocator(staff, {"Y": ["H2"]}, caps=DutyCaps(), history=history)
    written, write = _collect()

    result = allocator.run([(D[0], "Math")], ["Y"], write)

    # free already works D[0]; phys teaches a subject examined that day.
    assert written == []
    assert [u.reason for u in result.unfilled] == ["NO_ELIGIBLE_STAFF"]


def test_second_exam_on_a_taken_hall_is_reported():
    staff = [_staff("a"), _staff("b")]
    allocator = DutyAllocator(staff, {"X": ["H1"]}, caps=DutyCaps())
    written, write = _collect()

    result = allocator.run([(D[0], "Math"), (D[0], "Physics"), (D[0], "math")], ["X"], write)

    assert [(d.subject, d.staff.id) for d in written] == [("Math", "a")]
    assert [(u.subject, u.hall, u.reason) for u in result.unfilled] == [("Physics", "H1", "HALL_TAKEN_SAME_DATE")]
    # A repeated (date, subject) is the same exam, not a collision.
    assert result.skipped == 1
