# academics/scheduling.py

"""
Session date generation.

Pure functions over plain values: nothing in this module touches the
database, so the same code serves class creation, previews, bulk
rescheduling and availability expansion.

Weekdays are numbered 0 = Sunday ... 6 = Saturday, and every date handled
here is a calendar date in the branch's local timezone.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, Iterator, List, Optional, Set, Union
import logging

from .exceptions import (
    InvalidScheduleInput,
    ScheduleUnsatisfiable,
    HolidayCoverageExceeded,
)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')

# Give up when this many days pass without a countable session
DEFAULT_HORIZON_DAYS = 730

ONE_DAY = timedelta(days=1)


def weekday_number(day: date) -> int:
    """Weekday of a date, 0 = Sunday"""
    return day.isoweekday() % 7


def weekdays_label(weekdays: Iterable[int]) -> str:
    return ', '.join(WEEKDAY_NAMES[d] for d in sorted(set(weekdays)))


# =============================================================================
# HOLIDAY VALUES
# =============================================================================

@dataclass(frozen=True)
class NationalScope:
    """Holiday observed by every branch"""

    def applies_to(self, branch_id) -> bool:
        return True


@dataclass(frozen=True)
class BranchScope:
    """Holiday observed only by the listed branches"""

    branch_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # ids arrive as UUIDs from the ORM and as strings from requests
        object.__setattr__(self, 'branch_ids', frozenset(str(b) for b in self.branch_ids))

    def applies_to(self, branch_id) -> bool:
        return branch_id is not None and str(branch_id) in self.branch_ids


HolidayScope = Union[NationalScope, BranchScope]

NATIONAL = NationalScope()


@dataclass(frozen=True)
class CalendarHoliday:
    """
    One holiday as the scheduler sees it.

    ``end_date`` is inclusive; ``None`` means a single-day holiday. The
    closure flag is independent of the scope: a holiday that does not close
    the school is shown on calendars but never removes a session.
    """

    name: str
    start_date: date
    end_date: Optional[date] = None
    scope: HolidayScope = NATIONAL
    is_school_closed: bool = True

    def __post_init__(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidScheduleInput(f"Holiday '{self.name}' ends before it starts")

    @property
    def last_date(self) -> date:
        return self.end_date or self.start_date

    def dates(self) -> Iterator[date]:
        day = self.start_date
        while day <= self.last_date:
            yield day
            day += ONE_DAY

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.last_date

    def applies_to(self, branch_id) -> bool:
        return self.scope.applies_to(branch_id)

    def closes(self, branch_id) -> bool:
        """True when this holiday removes sessions at the branch"""
        return self.is_school_closed and self.applies_to(branch_id)


def closed_dates_for(holidays: Iterable[CalendarHoliday], branch_id=None) -> Set[date]:
    """
    Build the closed-date set for one branch.

    National closures always count; branch closures count only when the
    branch is listed. With ``branch_id=None`` only national closures apply.
    """
    closed = set()
    for holiday in holidays:
        if holiday.closes(branch_id):
            closed.update(holiday.dates())
    return closed


# =============================================================================
# VALIDATION
# =============================================================================

def validate_weekdays(weekdays) -> FrozenSet[int]:
    if weekdays is None:
        raise InvalidScheduleInput("At least one weekday is required")
    days = list(weekdays)
    if not days:
        raise InvalidScheduleInput("At least one weekday is required")
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise InvalidScheduleInput(
                f"Invalid weekday {day!r}: expected 0 (Sunday) to 6 (Saturday)"
            )
    return frozenset(days)


def _validate_calendar_date(value, field_name) -> date:
    # datetimes are rejected: the caller decides which local day they mean
    if not isinstance(value, date) or isinstance(value, datetime):
        raise InvalidScheduleInput(f"{field_name} must be a calendar date, got {value!r}")
    return value


def validate_schedule_input(start_date, weekdays, total_sessions):
    """
    Check the class parameters the date walk depends on.

    Returns:
        tuple: (start_date, frozenset of weekdays)

    Raises:
        InvalidScheduleInput
    """
    start_date = _validate_calendar_date(start_date, 'Start date')
    days = validate_weekdays(weekdays)

    if isinstance(total_sessions, bool) or not isinstance(total_sessions, int) or total_sessions < 1:
        raise InvalidScheduleInput(
            f"Total sessions must be a positive whole number, got {total_sessions!r}"
        )

    if weekday_number(start_date) not in days:
        raise InvalidScheduleInput(
            f"Start date {start_date} is a {WEEKDAY_NAMES[weekday_number(start_date)]}, "
            f"which is not one of the class days ({weekdays_label(days)})"
        )

    return start_date, days


# =============================================================================
# DATE WALK
# =============================================================================

def iter_session_dates(start_date: date, weekdays: Iterable[int],
                       closed_dates: Iterable[date] = (),
                       until: Optional[date] = None) -> Iterator[date]:
    """
    Walk forward one day at a time from ``start_date`` (inclusive).

    Yields each date whose weekday is in ``weekdays`` and which is not
    closed. A closed matching date is skipped outright, never moved to a
    neighbouring day. Runs forever unless ``until`` (inclusive) is given.
    """
    days = frozenset(weekdays)
    closed = closed_dates if isinstance(closed_dates, (set, frozenset)) else set(closed_dates)
    day = start_date
    while until is None or day <= until:
        if weekday_number(day) in days and day not in closed:
            yield day
        day += ONE_DAY


def compute_schedule(start_date: date, weekdays: Iterable[int], total_sessions: int,
                     holidays: Iterable[CalendarHoliday] = (), branch_id=None, *,
                     fixed_dates: Iterable[date] = (),
                     horizon_days: int = DEFAULT_HORIZON_DAYS,
                     holidays_cover_until: Optional[date] = None) -> List[date]:
    """
    Generate the ordered session dates of a class.

    Args:
        start_date: First day of the class; its weekday must be a class day
        weekdays: Class days, 0 = Sunday
        total_sessions: Number of sessions to place
        holidays: Holidays loaded for the scheduling window
        branch_id: Branch whose closures apply
        fixed_dates: Dates that must be kept as they are (sessions that
            already carry attendance). They count towards ``total_sessions``
            whether or not they fall on a valid walk date.
        horizon_days: Fail once this many days pass with no countable date
        holidays_cover_until: Last date the ``holidays`` list is complete
            for. Walking past it raises ``HolidayCoverageExceeded``.

    Returns:
        list[date]: ``total_sessions`` strictly increasing dates (more only
        when there are more fixed dates than sessions)

    Raises:
        InvalidScheduleInput: bad weekdays, start date or session count
        ScheduleUnsatisfiable: closures leave no session within the horizon
        HolidayCoverageExceeded: the walk left the loaded holiday window
    """
    start_date, days = validate_schedule_input(start_date, weekdays, total_sessions)
    if horizon_days < 1:
        raise InvalidScheduleInput("Horizon must be at least one day")

    fixed = {_validate_calendar_date(d, 'Fixed date') for d in fixed_dates}
    closed = closed_dates_for(holidays, branch_id)
    needed = total_sessions - len(fixed)

    generated = []
    last_found = start_date - ONE_DAY
    day = start_date
    while len(generated) < needed:
        if (day - last_found).days > horizon_days:
            raise ScheduleUnsatisfiable(
                f"No session could be placed between {last_found + ONE_DAY} and {day}: "
                f"found {len(fixed) + len(generated)} of {total_sessions} sessions",
                sessions_found=len(fixed) + len(generated),
                searched_until=day,
            )
        if holidays_cover_until is not None and day > holidays_cover_until:
            raise HolidayCoverageExceeded(
                f"Schedule runs past {holidays_cover_until}, the end of the loaded holiday window",
                sessions_found=len(fixed) + len(generated),
                searched_until=day,
                covered_until=holidays_cover_until,
            )
        if day in fixed:
            last_found = day
        elif weekday_number(day) in days and day not in closed:
            generated.append(day)
            last_found = day
        day += ONE_DAY

    return sorted(fixed.union(generated))


def compute_end_date(start_date: date, weekdays: Iterable[int], total_sessions: int,
                     holidays: Iterable[CalendarHoliday] = (), branch_id=None, **kwargs) -> date:
    """Date of the last session; accepts the same arguments as ``compute_schedule``"""
    return compute_schedule(start_date, weekdays, total_sessions, holidays, branch_id, **kwargs)[-1]


def find_next_session_date(after: date, weekdays: Iterable[int],
                           holidays: Iterable[CalendarHoliday] = (), branch_id=None, *,
                           taken_dates: Iterable[date] = (),
                           horizon_days: int = DEFAULT_HORIZON_DAYS) -> date:
    """
    First class day strictly after ``after`` that is open and not already taken.

    Used when a single session has to move (cancelled by the teacher, or a
    closure added over it) and the class end date is pushed by one slot.
    """
    days = validate_weekdays(weekdays)
    closed = closed_dates_for(holidays, branch_id) | set(taken_dates)
    until = after + timedelta(days=horizon_days)
    for day in iter_session_dates(after + ONE_DAY, days, closed, until=until):
        return day
    raise ScheduleUnsatisfiable(
        f"No open {weekdays_label(days)} found between {after + ONE_DAY} and {until}",
        searched_until=until,
    )


def expand_weekdays(start_date: date, end_date: date, weekdays: Iterable[int]) -> List[date]:
    """Every date in [start_date, end_date] falling on one of the weekdays, closures included"""
    if end_date < start_date:
        raise InvalidScheduleInput("End date cannot be before start date")
    return list(iter_session_dates(start_date, validate_weekdays(weekdays), until=end_date))
