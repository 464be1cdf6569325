# academics/availability.py

"""
Room and teacher availability checking.

``check_availability`` compares a candidate time window on one or more
dates against slots that are already booked (class sessions and scheduled
makeup classes). It is a pure function: loading the booked slots and
holidays is the job of ``academics.utils`` and the service layer.

Overlap is half-open: a class ending at 10:30 and one starting at 10:30 in
the same room do not conflict.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import ClassVar, FrozenSet, Iterable, List, Optional, Tuple
import logging

from .exceptions import InvalidScheduleInput
from .scheduling import CalendarHoliday, expand_weekdays, validate_weekdays

logger = logging.getLogger(__name__)


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class TimeWindow:
    """Half-open clock interval [start, end) within one day"""

    start: time
    end: time

    def __post_init__(self):
        if not isinstance(self.start, time) or not isinstance(self.end, time):
            raise InvalidScheduleInput("Start and end must be clock times")
        if self.start >= self.end:
            raise InvalidScheduleInput(
                f"End time {self.end:%H:%M} must be after start time {self.start:%H:%M}"
            )

    def overlaps(self, other: 'TimeWindow') -> bool:
        return self.start < other.end and other.start < self.end

    def __str__(self):
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True)
class BookedSlot:
    """
    One existing occurrence that occupies a room and a teacher.

    ``kind`` is ``'class'`` for a class session (``source_id`` is the class)
    or ``'makeup'`` for a makeup class (``source_id`` is the makeup).
    """

    kind: str
    source_id: str
    label: str
    day: date
    window: TimeWindow
    branch_id: Optional[str] = None
    room_id: Optional[str] = None
    teacher_id: Optional[str] = None

    def is_excluded_by(self, exclude_id, exclude_kind=None) -> bool:
        if exclude_id is None:
            return False
        if exclude_kind is not None and exclude_kind != self.kind:
            return False
        return str(exclude_id) == str(self.source_id)

    def as_dict(self):
        return {
            'kind': self.kind,
            'source_id': str(self.source_id),
            'label': self.label,
            'date': self.day.isoformat(),
            'start_time': self.window.start.strftime('%H:%M'),
            'end_time': self.window.end.strftime('%H:%M'),
            'branch_id': _str_or_none(self.branch_id),
            'room_id': _str_or_none(self.room_id),
            'teacher_id': _str_or_none(self.teacher_id),
        }


def _str_or_none(value):
    return None if value is None else str(value)


# -----------------------------------------------------------------------------
# Conflict reasons
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class HolidayConflict:
    """A candidate date is closed. Advisory unless the caller says otherwise."""

    kind: ClassVar[str] = 'holiday'
    blocking: ClassVar[bool] = False

    date: date
    holiday_name: str = ''

    def describe(self):
        return f"{self.date} is a holiday ({self.holiday_name})" if self.holiday_name else f"{self.date} is a holiday"

    def as_dict(self):
        return {'kind': self.kind, 'date': self.date.isoformat(), 'holiday_name': self.holiday_name}


@dataclass(frozen=True)
class _BookingConflict:
    blocking: ClassVar[bool] = True
    resource: ClassVar[str] = ''

    date: date
    conflicting_class_name: str
    conflicting_time_range: TimeWindow
    source_kind: str = 'class'
    source_id: Optional[str] = None

    @property
    def kind(self):
        return f"{self.resource}_conflict"

    def describe(self):
        return (
            f"{self.resource.capitalize()} is booked on {self.date} "
            f"{self.conflicting_time_range} by {self.conflicting_class_name}"
        )

    def as_dict(self):
        return {
            'kind': self.kind,
            'date': self.date.isoformat(),
            'conflicting_class_name': self.conflicting_class_name,
            'conflicting_time_range': str(self.conflicting_time_range),
            'source_kind': self.source_kind,
            'source_id': _str_or_none(self.source_id),
        }


@dataclass(frozen=True)
class RoomConflict(_BookingConflict):
    resource: ClassVar[str] = 'room'


@dataclass(frozen=True)
class TeacherConflict(_BookingConflict):
    resource: ClassVar[str] = 'teacher'


# =============================================================================
# QUERY / RESULT
# =============================================================================

@dataclass(frozen=True)
class AvailabilityQuery:
    """
    A candidate booking.

    Exactly one date form must be given:
        - ``day``: a single date (makeup class)
        - ``dates``: explicit days (the generated sessions of a new class)
        - ``weekdays`` + ``start_date`` + ``end_date``: every matching day
          in the range (a recurring slot)

    ``exclude_id`` removes the record being edited from the comparison;
    ``exclude_kind`` narrows it to ``'class'`` or ``'makeup'``.
    """

    window: TimeWindow
    branch_id: Optional[str] = None
    room_id: Optional[str] = None
    teacher_id: Optional[str] = None
    day: Optional[date] = None
    dates: Tuple[date, ...] = ()
    weekdays: FrozenSet[int] = field(default_factory=frozenset)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    exclude_id: Optional[str] = None
    exclude_kind: Optional[str] = None

    EXCLUDE_KINDS: ClassVar[FrozenSet[str]] = frozenset({'class', 'makeup'})

    def __post_init__(self):
        if self.exclude_kind is not None and self.exclude_kind not in self.EXCLUDE_KINDS:
            raise InvalidScheduleInput(
                f"Unknown exclude kind {self.exclude_kind!r}: expected 'class' or 'makeup'"
            )

    def candidate_dates(self) -> List[date]:
        forms = [
            self.day is not None,
            bool(self.dates),
            bool(self.weekdays) or self.start_date is not None or self.end_date is not None,
        ]
        if sum(forms) != 1:
            raise InvalidScheduleInput(
                "Give exactly one of: a day, a list of dates, or weekdays with a start and end date"
            )
        if self.day is not None:
            return [self.day]
        if self.dates:
            return sorted(set(self.dates))
        if self.start_date is None or self.end_date is None:
            raise InvalidScheduleInput("A weekday query needs both a start date and an end date")
        return expand_weekdays(self.start_date, self.end_date, validate_weekdays(self.weekdays))


@dataclass(frozen=True)
class AvailabilityResult:
    conflicts: Tuple = ()
    checked_dates: Tuple[date, ...] = ()

    @property
    def available(self) -> bool:
        """No room or teacher conflict. Holidays alone never make a slot unavailable here."""
        return self.is_available()

    def is_available(self, block_on_holidays=False) -> bool:
        return not self.blocking_conflicts(block_on_holidays)

    def blocking_conflicts(self, block_on_holidays=False):
        return [
            c for c in self.conflicts
            if c.blocking or (block_on_holidays and c.kind == 'holiday')
        ]

    @property
    def holiday_conflicts(self):
        return [c for c in self.conflicts if c.kind == 'holiday']

    @property
    def room_conflicts(self):
        return [c for c in self.conflicts if c.kind == 'room_conflict']

    @property
    def teacher_conflicts(self):
        return [c for c in self.conflicts if c.kind == 'teacher_conflict']

    def as_dict(self, block_on_holidays=False):
        return {
            'available': self.is_available(block_on_holidays),
            'checked_dates': [d.isoformat() for d in self.checked_dates],
            'conflicts': [c.as_dict() for c in self.conflicts],
        }


# =============================================================================
# CHECKER
# =============================================================================

_KIND_ORDER = {'holiday': 0, 'room_conflict': 1, 'teacher_conflict': 2}


def check_availability(query: AvailabilityQuery, booked_slots: Iterable[BookedSlot],
                       holidays: Iterable[CalendarHoliday] = ()) -> AvailabilityResult:
    """
    Find every conflict for the query.

    Args:
        query: The candidate booking
        booked_slots: Existing occurrences to compare against. Slots outside
            the candidate dates are ignored, so callers may pass a superset.
        holidays: Holidays for the query's branch and date range

    Returns:
        AvailabilityResult: conflicts ordered by date, then holiday / room / teacher
    """
    dates = query.candidate_dates()
    date_set = set(dates)
    holidays = list(holidays)
    conflicts = []

    for day in dates:
        for holiday in holidays:
            if holiday.closes(query.branch_id) and holiday.covers(day):
                conflicts.append(HolidayConflict(date=day, holiday_name=holiday.name))
                break

    room_id = _str_or_none(query.room_id)
    teacher_id = _str_or_none(query.teacher_id)

    for slot in booked_slots:
        if slot.day not in date_set or slot.is_excluded_by(query.exclude_id, query.exclude_kind):
            continue
        if not query.window.overlaps(slot.window):
            continue

        details = dict(
            date=slot.day,
            conflicting_class_name=slot.label,
            conflicting_time_range=slot.window,
            source_kind=slot.kind,
            source_id=_str_or_none(slot.source_id),
        )
        if room_id and _str_or_none(slot.room_id) == room_id:
            conflicts.append(RoomConflict(**details))
        # a teacher cannot be double-booked, even across branches
        if teacher_id and _str_or_none(slot.teacher_id) == teacher_id:
            conflicts.append(TeacherConflict(**details))

    conflicts.sort(key=lambda c: (c.date, _KIND_ORDER[c.kind]))

    result = AvailabilityResult(conflicts=tuple(conflicts), checked_dates=tuple(dates))
    logger.debug(
        f"Availability check over {len(dates)} date(s): "
        f"{len(result.room_conflicts)} room, {len(result.teacher_conflicts)} teacher, "
        f"{len(result.holiday_conflicts)} holiday conflict(s)"
    )
    return result
