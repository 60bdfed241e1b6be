from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from schemas.assignment import AssignmentOut


ExamType = Literal["IA1", "IA2", "Model", "Semester"]
ExamYear = Literal["1st Year", "Higher Semester"]


class ExamScheduleEntry(BaseModel):
    """One scheduled exam. Rows with a blank date or subject are ignored by a run."""

    date: dt.date | None = None
    subject: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("subject", mode="before")
    @classmethod
    def _strip_subject(cls, v: Any) -> str:
        return str(v or "").strip()

    @property
    def is_valid(self) -> bool:
        return self.date is not None and bool(self.subject)


class DutyCaps(BaseModel):
    """Per-designation duty caps. `None` means unlimited."""

    associate: int | None = None
    others: int | None = None

    @field_validator("associate", "others", mode="before")
    @classmethod
    def _parse_cap(cls, v: Any) -> int | None:
        # Non-numeric or non-positive caps mean "unlimited".
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            cap = int(v)
        else:
            raw = str(v).strip()
            try:
                cap = int(raw)
            except ValueError:
                try:
                    cap = int(float(raw))
                except ValueError:
                    return None
        return cap if cap > 0 else None


class AllocationRequest(BaseModel):
    academic_year: str = Field(min_length=1)
    exam_type: ExamType
    exam_year: ExamYear
    blocks: list[str] = Field(default_factory=list)
    exam_schedule: list[ExamScheduleEntry] = Field(default_factory=list)
    caps: DutyCaps = Field(default_factory=DutyCaps)

    @field_validator("academic_year")
    @classmethod
    def _strip_academic_year(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("academic_year must not be blank")
        return v

    @field_validator("blocks")
    @classmethod
    def _normalize_blocks(cls, v: list[str]) -> list[str]:
        # Keep operator order; drop blanks and repeats.
        out: list[str] = []
        for block in v:
            block = (block or "").strip()
            if block and block not in out:
                out.append(block)
        return out

    def valid_entries(self) -> list[ExamScheduleEntry]:
        return [e for e in self.exam_schedule if e.is_valid]


class UnfilledSlotOut(BaseModel):
    date: dt.date = Field(validation_alias=AliasChoices("date", "exam_date"))
    subject: str
    hall: str
    block: str
    reason: str = "NO_ELIGIBLE_STAFF"

    class Config:
        from_attributes = True


class AllocationRunResponse(BaseModel):
    run_id: uuid.UUID
    status: Literal["COMPLETED", "FAILED", "REJECTED"]
    created: list[AssignmentOut] = Field(default_factory=list)
    unfilled: list[UnfilledSlotOut] = Field(default_factory=list)


class AllocationRunSummary(BaseModel):
    id: uuid.UUID
    status: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    created_count: int = 0
    unfilled_count: int = 0
    notes: str | None = None
    created_at: dt.datetime
    finished_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class AllocationRunDetail(AllocationRunSummary):
    unfilled: list[UnfilledSlotOut] = Field(default_factory=list)


class ListAllocationRunsResponse(BaseModel):
    runs: list[AllocationRunSummary] = Field(default_factory=list)
