from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base, JSONType, utcnow


class Staff(Base):
    __tablename__ = "staffs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    designation = Column(Text, nullable=False, default="")
    subject1 = Column(Text, nullable=False, default="")
    subject2 = Column(Text, nullable=False, default="")
    email = Column(Text, nullable=False, default="")

    # {"2024-25": {"IA1": 2}, "IA1": 2}: per academic year and flattened per exam type.
    # Written only when an assignment is frozen.
    invigilation_count = Column(JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
