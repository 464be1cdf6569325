# utils/utils.py

from django.core.paginator import Paginator, EmptyPage, PageNotAnInteger
from datetime import date, time

# =============================================================================
# REQUEST PARSING HELPERS
# =============================================================================

def paginate_queryset(request, queryset, per_page=20):
    paginator = Paginator(queryset, per_page)
    page = request.GET.get('page', 1)
    try:
        page_obj = paginator.page(page)
    except PageNotAnInteger:
        page_obj = paginator.page(1)
    except EmptyPage:
        page_obj = paginator.page(paginator.num_pages)
    return page_obj, paginator


def parse_filters(request, filter_keys):
    """
    Extract filter values from request.GET.
    filter_keys: list of filter names to extract
    Returns dict: {key: value or None}
    """
    filters = {}
    for key in filter_keys:
        value = request.GET.get(key, '').strip()
        filters[key] = value if value else None
    return filters


def parse_iso_date(value, field_name='date'):
    """Parse 'YYYY-MM-DD'; raises ValueError naming the field on bad input"""
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field_name}: '{value}' (expected YYYY-MM-DD)")


def parse_clock_time(value, field_name='time'):
    """Parse 'HH:MM' or 'HH:MM:SS'"""
    if value in (None, ''):
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field_name}: '{value}' (expected HH:MM)")


def parse_int_list(value, field_name='values'):
    """Parse '1,3,5' into [1, 3, 5]"""
    if value in (None, ''):
        return []
    try:
        return [int(part) for part in str(value).split(',') if part.strip()]
    except ValueError:
        raise ValueError(f"Invalid {field_name}: '{value}' (expected comma-separated integers)")
