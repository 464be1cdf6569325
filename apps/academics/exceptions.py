# academics/exceptions.py

"""
Scheduling errors.

All of them are ``ValueError`` subclasses so callers that only care about
"bad input" can keep catching ``ValueError``; views map each one to its own
HTTP status.
"""


class SchedulingError(ValueError):
    """Base class for class-scheduling and availability errors"""


class InvalidScheduleInput(SchedulingError):
    """Weekday set, start date, session count or time window is invalid"""


class ScheduleUnsatisfiable(SchedulingError):
    """Holidays make the target session count unreachable within the search horizon"""

    def __init__(self, message, sessions_found=0, searched_until=None):
        super().__init__(message)
        self.sessions_found = sessions_found
        self.searched_until = searched_until


class HolidayCoverageExceeded(ScheduleUnsatisfiable):
    """
    The date walk ran past the last date the holiday list was loaded for.

    The schedule may well be satisfiable; the caller must reload holidays
    over a wider window and try again.
    """

    def __init__(self, message, sessions_found=0, searched_until=None, covered_until=None):
        super().__init__(message, sessions_found=sessions_found, searched_until=searched_until)
        self.covered_until = covered_until


class ReferenceNotFound(SchedulingError):
    """A branch, room, teacher, class or session reference does not resolve"""

    def __init__(self, kind, reference):
        super().__init__(f"{kind} not found: {reference}")
        self.kind = kind
        self.reference = reference


class ConflictDetected(SchedulingError):
    """A room or teacher double-booking found while committing a write"""

    def __init__(self, conflicts, message=None):
        self.conflicts = list(conflicts)
        if message is None:
            message = "; ".join(c.describe() for c in self.conflicts) or "Scheduling conflict"
        super().__init__(message)


class InvalidStatusTransition(SchedulingError):
    """A class, session or makeup cannot move from its current status to the requested one"""


class MakeupLimitExceeded(SchedulingError):
    """The student already used every makeup allowed for this class"""
