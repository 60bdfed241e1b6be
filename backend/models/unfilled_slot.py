from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base, utcnow


UNFILLED_REASONS = ("NO_ELIGIBLE_STAFF", "NO_HALLS_IN_BLOCK", "HALL_TAKEN_SAME_DATE")


class UnfilledSlot(Base):
    __tablename__ = "unfilled_slots"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id = Column(Uuid(as_uuid=True), ForeignKey("allocation_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_date = Column(Date, nullable=False)
    subject = Column(Text, nullable=False)
    hall = Column(Text, nullable=False)
    block = Column(Text, nullable=False)
    reason = Column(String(32), nullable=False, default="NO_ELIGIBLE_STAFF")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
