from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from core.database import ENGINE
from models import Base


logger = logging.getLogger(__name__)


def ensure_schema(engine: Engine | None = None) -> None:
    """Create any missing tables. Idempotent: existing tables are left alone."""
    engine = engine or ENGINE
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ensured: %s", ", ".join(sorted(Base.metadata.tables)))
