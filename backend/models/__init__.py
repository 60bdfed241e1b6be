from models.base import Base
from models.allocation_lease import AllocationLease
from models.allocation_run import AllocationRun
from models.assignment import Assignment
from models.hall import Hall
from models.scheduled_exam import ScheduledExam
from models.staff import Staff
from models.unfilled_slot import UnfilledSlot

__all__ = [
	"Base",
	"AllocationLease",
	"AllocationRun",
	"Assignment",
	"Hall",
	"ScheduledExam",
	"Staff",
	"UnfilledSlot",
]
