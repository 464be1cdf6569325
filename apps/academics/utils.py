# academics/utils.py

"""
Database-side helpers for scheduling: holiday lookup, booked-slot loading
and reference resolution. Everything returned here is a plain value from
``academics.scheduling`` / ``academics.availability`` so the pure functions
never see a queryset.
"""

from django.db.models import Q
from datetime import date, timedelta
import calendar
import logging

from core.models import Branch, SchedulingConfiguration
from hr.models import Teacher
from .availability import BookedSlot, TimeWindow
from .exceptions import ReferenceNotFound
from .models import Holiday, ClassRoom, ClassSchedule, MakeupClass

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION / DATE HELPERS
# =============================================================================

def get_scheduling_config():
    return SchedulingConfiguration.get_instance()


def add_months(day, months):
    """Same day ``months`` later, clamped to the end of shorter months"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def get_holiday_window(start_date, months=None):
    """
    Date range holidays are loaded for when generating a schedule.

    Returns:
        tuple: (start_date, last covered date)
    """
    if months is None:
        months = get_scheduling_config().holiday_lookup_months
    return start_date, add_months(start_date, months)


# =============================================================================
# HOLIDAY LOOKUP
# =============================================================================

def get_holidays_for_branch(branch, start_date, end_date, closed_only=False):
    """
    Holidays overlapping [start_date, end_date] that apply to a branch.

    Args:
        branch: Branch instance, primary key, or None for national holidays only
        start_date, end_date: Inclusive range
        closed_only: Skip holidays that do not close the school

    Returns:
        list[CalendarHoliday]
    """
    holidays = Holiday.objects.filter(
        Q(start_date__lte=end_date) & (
            Q(end_date__gte=start_date) |
            Q(end_date__isnull=True, start_date__gte=start_date)
        )
    )

    scope = Q(holiday_type='national')
    if branch is not None:
        scope |= Q(branches=getattr(branch, 'pk', branch))
    holidays = holidays.filter(scope)

    if closed_only:
        holidays = holidays.filter(is_school_closed=True)

    holidays = holidays.distinct().prefetch_related('branches').order_by('start_date')
    return [holiday.to_calendar_holiday() for holiday in holidays]


# =============================================================================
# BOOKED SLOTS
# =============================================================================

def session_to_slot(session):
    cls = session.class_instance
    return BookedSlot(
        kind='class',
        source_id=str(cls.pk),
        label=cls.name,
        day=session.session_date,
        window=TimeWindow(cls.start_time, cls.end_time),
        branch_id=cls.branch_id,
        room_id=cls.room_id,
        teacher_id=session.actual_teacher_id or cls.teacher_id,
    )


def makeup_to_slot(makeup):
    return BookedSlot(
        kind='makeup',
        source_id=str(makeup.pk),
        label=f"Makeup: {makeup.student} ({makeup.original_class.name})",
        day=makeup.makeup_date,
        window=TimeWindow(makeup.start_time, makeup.end_time),
        branch_id=makeup.branch_id,
        room_id=makeup.room_id,
        teacher_id=makeup.teacher_id,
    )


def get_booked_slots(dates, room=None, teacher=None, branch=None):
    """
    Occupied slots on the given dates for a room, a teacher or a whole branch.

    Class sessions count when the class is published or started and the
    session is not cancelled; makeup classes count only while scheduled.

    Returns:
        list[BookedSlot]
    """
    dates = sorted(set(dates))
    if not dates:
        return []

    room_id = getattr(room, 'pk', room)
    teacher_id = getattr(teacher, 'pk', teacher)
    branch_id = getattr(branch, 'pk', branch)

    session_filter = Q()
    makeup_filter = Q()
    if room_id is not None:
        session_filter |= Q(class_instance__room_id=room_id)
        makeup_filter |= Q(room_id=room_id)
    if teacher_id is not None:
        session_filter |= Q(class_instance__teacher_id=teacher_id) | Q(actual_teacher_id=teacher_id)
        makeup_filter |= Q(teacher_id=teacher_id)
    if branch_id is not None:
        session_filter |= Q(class_instance__branch_id=branch_id)
        makeup_filter |= Q(branch_id=branch_id)
    if not session_filter:
        return []

    sessions = (
        ClassSchedule.objects
        .not_cancelled()
        .filter(
            session_date__in=dates,
            class_instance__status__in=('published', 'started'),
        )
        .filter(session_filter)
        .select_related('class_instance')
    )

    makeups = (
        MakeupClass.objects
        .filter(status='scheduled', makeup_date__in=dates)
        .exclude(start_time__isnull=True)
        .exclude(end_time__isnull=True)
        .filter(makeup_filter)
        .select_related('student', 'original_class')
    )

    slots = [session_to_slot(s) for s in sessions]
    slots.extend(makeup_to_slot(m) for m in makeups)
    return slots


# =============================================================================
# REFERENCE RESOLUTION
# =============================================================================

REFERENCE_MODELS = {
    'Branch': Branch,
    'Room': ClassRoom,
    'Teacher': Teacher,
}


def load_reference(kind, pk):
    """Loader for ``ReferenceDataCache``: the record or None"""
    model = REFERENCE_MODELS[kind]
    return model.objects.get_or_none(pk=pk)


def resolve_reference(kind, value, loader=None):
    """
    Turn an instance or primary key into an instance.

    Raises:
        ReferenceNotFound: the record does not exist
    """
    if value is None or value == '':
        raise ReferenceNotFound(kind, value)
    if isinstance(value, REFERENCE_MODELS[kind]):
        return value
    instance = loader(value) if loader else load_reference(kind, value)
    if instance is None:
        raise ReferenceNotFound(kind, value)
    return instance


def date_range(start_date, end_date):
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)
