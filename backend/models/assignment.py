from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from models.base import Base, utcnow


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id = Column(Uuid(as_uuid=True), ForeignKey("allocation_runs.id", ondelete="SET NULL"), nullable=True)

    # Scope
    academic_year = Column(Text, nullable=False)
    exam_type = Column(Text, nullable=False)
    exam_year = Column(Text, nullable=False)

    # Slot (immutable once created)
    exam_date = Column(Date, nullable=False)
    subject = Column(Text, nullable=False)
    block = Column(Text, nullable=False)
    hall = Column(Text, nullable=False)

    # Snapshot of the staff record at assignment time. Not refreshed when the
    # staff record changes later; it records who held the duty under which title.
    staff_id = Column(Uuid(as_uuid=True), nullable=False)
    staff_name = Column(Text, nullable=False, default="")
    staff_email = Column(Text, nullable=False, default="")
    designation = Column(Text, nullable=False, default="")

    frozen = Column(Boolean, nullable=False, default=False)
    frozen_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "academic_year",
            "exam_type",
            "exam_year",
            "exam_date",
            "block",
            "hall",
            name="uq_assignments_scope_slot",
        ),
        Index("ix_assignments_scope", "academic_year", "exam_type", "exam_year"),
        Index("ix_assignments_staff_date", "staff_id", "exam_date"),
    )
