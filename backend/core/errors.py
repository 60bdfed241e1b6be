from __future__ import annotations

from typing import Any


class DutyError(Exception):
    """Base class for allocation/freeze/reassignment failures surfaced to operators.

    `code` is stable and machine-readable; the API layer maps it to `status_code`.
    """

    code: str = "DUTY_ERROR"
    status_code: int = 400

    def __init__(self, message: str, *, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class NotFoundError(DutyError):
    code = "NOT_FOUND"
    status_code = 404


class AllocationPreconditionError(DutyError):
    """Run request rejected before any persistence access."""

    code = "ALLOCATION_PRECONDITION_FAILED"
    status_code = 422


class ScopeLockedError(DutyError):
    code = "SCOPE_LOCKED"
    status_code = 409


class AllocationPersistenceError(DutyError):
    """A ledger write failed mid-run; assignments written before the failure remain."""

    code = "RUN_PERSISTENCE_FAILED"
    status_code = 503


class FreezeError(DutyError):
    """Freeze was not committed; neither the flag nor the counters changed."""

    code = "FREEZE_FAILED"
    status_code = 503


class AssignmentFrozenError(DutyError):
    code = "ASSIGNMENT_FROZEN"
    status_code = 409


class StaffNotEligibleError(DutyError):
    code = "STAFF_NOT_ELIGIBLE"
    status_code = 400
