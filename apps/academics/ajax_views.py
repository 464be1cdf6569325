# academics/ajax_views.py

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods
import logging

from utils.utils import (
    paginate_queryset,
    parse_clock_time,
    parse_filters,
    parse_int_list,
    parse_iso_date,
)
from .models import Class, ClassSchedule
from .exceptions import (
    SchedulingError,
    ReferenceNotFound,
    ConflictDetected,
    ScheduleUnsatisfiable,
    InvalidStatusTransition,
    MakeupLimitExceeded,
)
from .services import ClassScheduleService

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR MAPPING
# =============================================================================

def _error_response(exc):
    """Translate a scheduling or input error into a JSON response"""
    if isinstance(exc, ReferenceNotFound):
        status = 404
    elif isinstance(exc, (ConflictDetected, InvalidStatusTransition, MakeupLimitExceeded)):
        status = 409
    elif isinstance(exc, ScheduleUnsatisfiable):
        status = 422
    else:
        status = 400

    payload = {'error': str(exc), 'error_type': exc.__class__.__name__}
    if isinstance(exc, ConflictDetected):
        payload['conflicts'] = [c.as_dict() for c in exc.conflicts]
    return JsonResponse(payload, status=status)


def _is_true(value):
    return value is not None and value.lower() in ('1', 'true', 'yes')


def _require(filters, *keys):
    """Raise ValueError naming the first required parameter that is missing"""
    for key in keys:
        if filters.get(key) is None:
            raise ValueError(f"{key} is required")


# =============================================================================
# END DATE / SCHEDULE PREVIEW
# =============================================================================

def class_end_date(request):
    """
    AJAX view: session dates and end date for a prospective class.

    GET: branch, start_date, days_of_week (comma separated, 0 = Sunday), total_sessions
    """
    filters = parse_filters(request, ['branch', 'start_date', 'days_of_week', 'total_sessions'])

    try:
        _require(filters, 'branch')
        start_date = parse_iso_date(filters['start_date'], 'start_date')
        days_of_week = parse_int_list(filters['days_of_week'], 'days_of_week')
        total_sessions = int(filters['total_sessions'] or 0)

        preview = ClassScheduleService().preview_schedule(
            filters['branch'], start_date, days_of_week, total_sessions
        )
    except (SchedulingError, ValueError) as e:
        return _error_response(e)

    return JsonResponse({
        'end_date': preview['end_date'].isoformat(),
        'session_dates': [d.isoformat() for d in preview['session_dates']],
        'total_sessions': len(preview['session_dates']),
        'skipped': [
            {'date': item['date'].isoformat(), 'holiday': item['holiday']}
            for item in preview['skipped']
        ],
    })


# =============================================================================
# AVAILABILITY
# =============================================================================

def availability_check(request):
    """
    AJAX view: room/teacher availability for a candidate slot.

    GET: branch, start_time, end_time, room, teacher, and one of
        - date
        - dates (comma separated)
        - days_of_week + start_date + end_date
    Optional: exclude_id, exclude_kind (class|makeup), block_on_holidays
    """
    filters = parse_filters(request, [
        'branch', 'room', 'teacher', 'start_time', 'end_time',
        'date', 'dates', 'days_of_week', 'start_date', 'end_date',
        'exclude_id', 'exclude_kind', 'block_on_holidays',
    ])

    try:
        _require(filters, 'branch')
        dates = [
            parse_iso_date(value.strip(), 'dates')
            for value in (filters['dates'] or '').split(',') if value.strip()
        ]
        result = ClassScheduleService().check_availability(
            branch=filters['branch'],
            start_time=parse_clock_time(filters['start_time'], 'start_time'),
            end_time=parse_clock_time(filters['end_time'], 'end_time'),
            room=filters['room'],
            teacher=filters['teacher'],
            day=parse_iso_date(filters['date'], 'date'),
            dates=dates,
            days_of_week=parse_int_list(filters['days_of_week'], 'days_of_week'),
            start_date=parse_iso_date(filters['start_date'], 'start_date'),
            end_date=parse_iso_date(filters['end_date'], 'end_date'),
            exclude_id=filters['exclude_id'],
            exclude_kind=filters['exclude_kind'],
        )
    except (SchedulingError, ValueError) as e:
        return _error_response(e)

    return JsonResponse(result.as_dict(block_on_holidays=_is_true(filters['block_on_holidays'])))


def availability_day(request):
    """
    AJAX view: busy slots and holidays for a branch on one day.

    GET: branch, date
    """
    filters = parse_filters(request, ['branch', 'date'])

    try:
        _require(filters, 'branch', 'date')
        day = parse_iso_date(filters['date'], 'date')
        overview = ClassScheduleService().get_day_overview(filters['branch'], day)
    except (SchedulingError, ValueError) as e:
        return _error_response(e)

    return JsonResponse({
        'date': overview['date'].isoformat(),
        'branch': {'id': str(overview['branch'].pk), 'name': overview['branch'].name},
        'is_closed': overview['is_closed'],
        'holidays': overview['holidays'],
        'busy_slots': [slot.as_dict() for slot in overview['busy_slots']],
    })


# =============================================================================
# CLASS SESSIONS
# =============================================================================

def class_sessions(request, pk):
    """AJAX view: paginated session list of one class"""
    cls = get_object_or_404(Class, pk=pk)
    sessions = cls.schedules.order_by('session_date', 'session_number')

    sessions_page, paginator = paginate_queryset(request, sessions, per_page=20)

    session_list = [{
        'id': str(s.id),
        'session_number': s.session_number,
        'session_date': s.session_date.isoformat(),
        'status': s.status,
        'original_date': s.original_date.isoformat() if s.original_date else None,
        'note': s.note,
    } for s in sessions_page]

    return JsonResponse({
        'class': {'id': str(cls.pk), 'code': cls.code, 'name': cls.name},
        'end_date': cls.end_date.isoformat() if cls.end_date else None,
        'sessions': session_list,
        'current_page': sessions_page.number,
        'total_pages': paginator.num_pages,
        'total_count': paginator.count,
        'has_previous': sessions_page.has_previous(),
        'has_next': sessions_page.has_next(),
    })


@require_http_methods(["POST"])
def session_reschedule(request, pk):
    """
    Move one session.

    POST: date (optional; default is the next open class day after the last session), reason
    """
    session = get_object_or_404(ClassSchedule.objects.select_related('class_instance'), pk=pk)

    try:
        new_date = parse_iso_date(request.POST.get('date', '').strip(), 'date')
        session = ClassScheduleService().reschedule_session(
            session, new_date=new_date, reason=request.POST.get('reason', '').strip()
        )
    except (SchedulingError, ValueError) as e:
        return _error_response(e)

    return JsonResponse({
        'id': str(session.pk),
        'session_number': session.session_number,
        'session_date': session.session_date.isoformat(),
        'original_date': session.original_date.isoformat() if session.original_date else None,
        'status': session.status,
        'class_end_date': session.class_instance.end_date.isoformat(),
    })


# =============================================================================
# BULK RESCHEDULE
# =============================================================================

@require_http_methods(["POST"])
def reschedule_all_classes(request):
    """
    Regenerate every published/started class.

    POST: start_after (optional class id to resume after), reason
    """
    start_after = request.POST.get('start_after', '').strip() or None
    reason = request.POST.get('reason', '').strip()

    report = ClassScheduleService().reschedule_all(start_after=start_after, reason=reason)

    logger.info(
        f"Bulk reschedule requested from {request.path}: "
        f"{report['processed_count']}/{report['total']} processed"
    )
    return JsonResponse(report)
