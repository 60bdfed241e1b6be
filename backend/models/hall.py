from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from models.base import Base, utcnow


class Hall(Base):
    __tablename__ = "halls"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    exam_hall = Column(Text, nullable=False)
    block = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (UniqueConstraint("block", "exam_hall", name="uq_halls_block_exam_hall"),)
