from __future__ import annotations

import copy
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.hall import Hall
from models.staff import Staff


UNKNOWN_ACADEMIC_YEAR = "Unknown"


def list_staff(db: Session) -> list[Staff]:
    # Insertion order; the allocation cursor walks this list.
    return db.execute(select(Staff).order_by(Staff.created_at.asc(), Staff.id.asc())).scalars().all()


def list_halls(db: Session) -> list[Hall]:
    return db.execute(select(Hall).order_by(Hall.created_at.asc(), Hall.id.asc())).scalars().all()


def list_blocks(db: Session) -> list[str]:
    rows = db.execute(select(Hall.block).distinct()).scalars().all()
    return sorted({(b or "").strip() for b in rows if (b or "").strip()})


def get_staff(db: Session, staff_id: uuid.UUID, *, for_update: bool = False) -> Staff | None:
    q = select(Staff).where(Staff.id == staff_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    return db.execute(q).scalars().first()


def bump_invigilation_count(counts: dict[str, Any] | None, *, academic_year: str | None, exam_type: str) -> dict[str, Any]:
    """Return a copy of `counts` with one more duty under [year][exam_type] and [exam_type]."""
    out = copy.deepcopy(counts) if isinstance(counts, dict) else {}
    year_key = academic_year or UNKNOWN_ACADEMIC_YEAR

    year_counts = out.get(year_key)
    if not isinstance(year_counts, dict):
        year_counts = {}
    year_counts[exam_type] = int(year_counts.get(exam_type) or 0) + 1
    out[year_key] = year_counts

    flat = out.get(exam_type)
    out[exam_type] = (int(flat) if isinstance(flat, (int, float)) else 0) + 1
    return out


def update_staff_counters(db: Session, staff: Staff, counters: dict[str, Any]) -> None:
    """Stage new counters on `staff`. The caller owns the transaction."""
    # Assign a new object so the JSON column is flagged dirty.
    staff.invigilation_count = counters
    db.add(staff)
