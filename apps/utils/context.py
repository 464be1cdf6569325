# utils/context.py

"""
Who is changing the schedule.

Scheduling writes happen deep inside services, signals and bulk jobs. The
current actor (staff user, client IP, path or command name) is parked on
the thread here and picked up by ``BaseModel.save`` for the audit columns.
"""

from threading import local
import logging

logger = logging.getLogger(__name__)

_thread_locals = local()


def client_ip(request):
    """First address in X-Forwarded-For, else REMOTE_ADDR"""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def set_request_context(request):
    """Record the actor of an HTTP request for this thread"""
    user = getattr(request, 'user', None)
    _thread_locals.request_context = {
        'user': user if user is not None and user.is_authenticated else None,
        'ip_address': client_ip(request),
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
        'request_path': request.path,
    }
    logger.debug(f"Audit actor for {request.path}: user={user}")


def get_request_context():
    """
    Returns:
        dict or None: user, ip_address, user_agent, request_path
    """
    return getattr(_thread_locals, 'request_context', None)


def clear_request_context():
    if hasattr(_thread_locals, 'request_context'):
        delattr(_thread_locals, 'request_context')


# ============================================================================
# CONTEXT MANAGER
# ============================================================================

class RequestContext:
    """
    Actor for work that does not come in through a request.

    Management commands wrap their run in one, so sessions moved by a
    nightly reschedule are stamped with the command that moved them.

    Example:
        with RequestContext(request_path='manage.py reschedule_classes'):
            ClassScheduleService().reschedule_all()
    """

    def __init__(self, user=None, ip_address=None, user_agent=None, request_path=None):
        self.context = {
            'user': user,
            'ip_address': ip_address,
            'user_agent': user_agent or '',
            'request_path': request_path or '',
        }
        self.previous_context = None

    def __enter__(self):
        self.previous_context = get_request_context()
        _thread_locals.request_context = self.context
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_context:
            _thread_locals.request_context = self.previous_context
        else:
            clear_request_context()
