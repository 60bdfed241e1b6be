from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel, Field, field_validator


class AssignmentOut(BaseModel):
    id: uuid.UUID
    run_id: uuid.UUID | None = None

    academic_year: str
    exam_type: str
    exam_year: str

    exam_date: dt.date
    subject: str
    block: str
    hall: str

    staff_id: uuid.UUID
    staff_name: str
    staff_email: str
    designation: str

    frozen: bool
    frozen_at: dt.datetime | None = None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class AssignmentFilter(BaseModel):
    """Visible-set filter shared by listing, summary and bulk freeze."""

    academic_year: str | None = None
    exam_type: str | None = None
    exam_year: str | None = None
    blocks: list[str] | None = None
    exam_date: dt.date | None = None
    subject: str | None = None
    frozen: bool | None = None

    @field_validator("academic_year", "exam_type", "exam_year", "subject", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("blocks")
    @classmethod
    def _clean_blocks(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        cleaned = [b.strip() for b in v if b and b.strip()]
        return cleaned or None


class AssignmentSummary(BaseModel):
    total: int = 0
    frozen: int = 0
    open: int = 0
    unique_staff: int = 0
    blocks: list[str] = Field(default_factory=list)
    by_date: dict[str, int] = Field(default_factory=dict)


class FreezeResponse(BaseModel):
    assignment: AssignmentOut
    changed: bool


class FreezeAllResponse(BaseModel):
    frozen_count: int = 0
    frozen_ids: list[uuid.UUID] = Field(default_factory=list)
    remaining_open: list[uuid.UUID] = Field(default_factory=list)
    complete: bool = True
    error: dict | None = None


class CandidateOut(BaseModel):
    id: uuid.UUID
    name: str
    designation: str
    email: str
    subject1: str
    subject2: str
    is_current: bool = False


class ReassignRequest(BaseModel):
    staff_id: uuid.UUID
