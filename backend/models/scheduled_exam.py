from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from models.base import Base, utcnow


class ScheduledExam(Base):
    """An exam (date, subject) some run in the scope was asked to staff.

    Kept even when none of its halls got an assignment: the day-wide subject
    block applies to every exam held that date.
    """

    __tablename__ = "scheduled_exams"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id = Column(Uuid(as_uuid=True), ForeignKey("allocation_runs.id", ondelete="SET NULL"), nullable=True)

    academic_year = Column(Text, nullable=False)
    exam_type = Column(Text, nullable=False)
    exam_year = Column(Text, nullable=False)

    exam_date = Column(Date, nullable=False)
    subject = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "academic_year",
            "exam_type",
            "exam_year",
            "exam_date",
            "subject",
            name="uq_scheduled_exams_scope_date_subject",
        ),
        Index("ix_scheduled_exams_scope_date", "academic_year", "exam_type", "exam_year", "exam_date"),
    )
