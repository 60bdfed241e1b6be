from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import ScopeLockedError
from models.allocation_lease import AllocationLease
from models.base import utcnow


logger = logging.getLogger(__name__)


def _aware(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored here is UTC.
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def acquire(db: Session, *, scope_key: str, run_id: uuid.UUID, ttl_seconds: int, now: datetime | None = None) -> None:
    """Take the scope lease for `run_id` or raise ScopeLockedError if a live one is held."""
    now = now or utcnow()
    expires_at = now + timedelta(seconds=ttl_seconds)

    q = (
        select(AllocationLease)
        .where(AllocationLease.scope_key == scope_key)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    lease = db.execute(q).scalars().first()
    if lease is not None:
        if lease.run_id != run_id and _aware(lease.expires_at) > now:
            db.rollback()
            raise ScopeLockedError(
                "Another allocation run is in progress for this scope.",
                details={
                    "scope": scope_key,
                    "holder_run_id": str(lease.run_id),
                    "expires_at": _aware(lease.expires_at).isoformat(),
                },
            )
        if lease.run_id != run_id:
            logger.warning("Taking over expired allocation lease for %s from run %s", scope_key, lease.run_id)
        lease.run_id = run_id
        lease.acquired_at = now
        lease.expires_at = expires_at
    else:
        db.add(AllocationLease(scope_key=scope_key, run_id=run_id, acquired_at=now, expires_at=expires_at))

    try:
        db.commit()
    except IntegrityError as exc:
        # Lost the insert race to a concurrent run.
        db.rollback()
        raise ScopeLockedError(
            "Another allocation run is in progress for this scope.",
            details={"scope": scope_key},
        ) from exc


def release(db: Session, *, scope_key: str, run_id: uuid.UUID) -> None:
    db.execute(
        delete(AllocationLease)
        .where(AllocationLease.scope_key == scope_key)
        .where(AllocationLease.run_id == run_id)
    )
    db.commit()


def renew(db: Session, *, scope_key: str, run_id: uuid.UUID, ttl_seconds: int, now: datetime | None = None) -> None:
    """Push the holder's expiry forward. Raises ScopeLockedError once the lease was taken over."""
    now = now or utcnow()
    res = db.execute(
        update(AllocationLease)
        .where(AllocationLease.scope_key == scope_key)
        .where(AllocationLease.run_id == run_id)
        .values(expires_at=now + timedelta(seconds=ttl_seconds))
    )
    if res.rowcount != 1:
        db.rollback()
        raise ScopeLockedError(
            "Allocation lease for this scope was lost; the run stopped before writing further duties.",
            code="SCOPE_LEASE_LOST",
            details={"scope": scope_key, "run_id": str(run_id)},
        )
    db.commit()
