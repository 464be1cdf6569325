from datetime import date, time
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

pytestmark = pytest.mark.django_db


def run(*args):
    out, err = StringIO(), StringIO()
    call_command(*args, stdout=out, stderr=err)
    return out.getvalue(), err.getvalue()


@pytest.fixture
def calendar_change(config, make_holiday):
    """Adds a holiday on 2024-06-05 without regenerating anything"""
    config.auto_reschedule_on_holiday_change = False
    config.save()

    def _apply():
        make_holiday(date(2024, 6, 5))

    return _apply


# =============================================================================
# RESCHEDULE CLASSES
# =============================================================================

def test_reschedule_classes(make_class, calendar_change):
    cls = make_class()
    calendar_change()

    out, err = run('reschedule_classes')

    assert f"{cls.code} rescheduled" in out
    assert "Processed 1 of 1 class(es)" in out
    assert err == ''
    cls.refresh_from_db()
    assert cls.end_date == date(2024, 6, 17)


def test_reschedule_selected_class(make_class, calendar_change):
    first = make_class()
    second = make_class(start_time=time(10, 30), end_time=time(12, 0))
    calendar_change()

    out, _ = run('reschedule_classes', '--class', second.code)

    assert "Processed 1 of 1 class(es)" in out
    first.refresh_from_db()
    second.refresh_from_db()
    assert first.end_date == date(2024, 6, 12)
    assert second.end_date == date(2024, 6, 17)


def test_reschedule_branch_filter(make_class, calendar_change):
    make_class()
    calendar_change()

    out, _ = run('reschedule_classes', '--branch', 'LDP')

    assert "Processed 0 of 0 class(es)" in out


def test_reschedule_with_limit_reports_resume_point(make_class, calendar_change):
    make_class()
    make_class(start_time=time(10, 30), end_time=time(12, 0))
    calendar_change()

    out, _ = run('reschedule_classes', '--limit', '1')

    assert "Processed 1 of 2 class(es)" in out
    assert "Resume with --start-after" in out


def test_reschedule_reports_failures(make_class, calendar_change, room):
    make_class()
    calendar_change()
    room.delete()

    out, err = run('reschedule_classes')

    assert "1 failed" in out
    assert "Room not found" in err


def test_negative_limit(config):
    with pytest.raises(CommandError):
        run('reschedule_classes', '--limit', '-1')


# =============================================================================
# UPDATE CLASS STATUS
# =============================================================================

def test_update_class_status(make_class):
    cls = make_class()

    out, _ = run('update_class_status', '--date', '2024-06-13')

    assert "1 class(es) started, 1 completed" in out
    cls.refresh_from_db()
    assert cls.status == 'completed'


def test_update_class_status_bad_date(config):
    with pytest.raises(CommandError):
        run('update_class_status', '--date', '13/06/2024')
