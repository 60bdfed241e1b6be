from __future__ import annotations

from sqlalchemy import Column, DateTime, Text, Uuid

from models.base import Base


class AllocationLease(Base):
    """At most one live allocation run per (academic_year, exam_type, exam_year) scope."""

    __tablename__ = "allocation_leases"

    scope_key = Column(Text, primary_key=True)
    run_id = Column(Uuid(as_uuid=True), nullable=False)
    acquired_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
