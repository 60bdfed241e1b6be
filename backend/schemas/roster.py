from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class StaffOut(BaseModel):
    id: uuid.UUID
    name: str
    designation: str
    subject1: str
    subject2: str
    email: str
    invigilation_count: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    class Config:
        from_attributes = True


class HallOut(BaseModel):
    id: uuid.UUID
    exam_hall: str
    block: str
    created_at: datetime

    class Config:
        from_attributes = True
