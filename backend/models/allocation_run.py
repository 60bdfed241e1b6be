from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base, JSONType, utcnow


RUN_STATUSES = ("CREATED", "COMPLETED", "FAILED", "REJECTED")


class AllocationRun(Base):
    __tablename__ = "allocation_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    status = Column(String(16), nullable=False, default="CREATED")
    parameters = Column(JSONType, nullable=False, default=dict)
    created_count = Column(Integer, nullable=False, default=0)
    unfilled_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    finished_at = Column(DateTime(timezone=True), nullable=True)
