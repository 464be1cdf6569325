from datetime import date, time

import pytest

from academics.exceptions import (
    ConflictDetected,
    InvalidScheduleInput,
    InvalidStatusTransition,
    MakeupLimitExceeded,
)
from academics.models import MakeupClass, SessionAttendance
from academics.services import ClassScheduleService

TUESDAY = date(2024, 6, 4)

pytestmark = pytest.mark.django_db


@pytest.fixture
def cls(make_class):
    return make_class()


@pytest.fixture
def first_session(cls):
    return cls.schedules.get(session_number=1)


@pytest.fixture
def makeup(service, student, first_session):
    return service.create_makeup_request(student, first_session, reason="Sick")


def limit_makeups(config, limit):
    config.makeup_limit_per_class = limit
    config.save()
    return ClassScheduleService()


# =============================================================================
# REQUESTS
# =============================================================================

def test_request_marks_student_absent(makeup, student, first_session, cls):
    assert makeup.status == 'pending'
    assert makeup.original_class == cls
    assert makeup.branch == cls.branch

    attendance = SessionAttendance.objects.get(schedule=first_session, student=student)
    assert attendance.status == 'absent'


def test_request_by_primary_keys(service, student, first_session):
    makeup = service.create_makeup_request(student.pk, first_session.pk)
    assert makeup.original_schedule == first_session


def test_duplicate_request_for_same_session(service, makeup, student, first_session):
    with pytest.raises(InvalidScheduleInput):
        service.create_makeup_request(student, first_session)


def test_limit_per_class(config, cls, student):
    service = limit_makeups(config, 1)
    sessions = list(cls.schedules.order_by('session_number'))
    service.create_makeup_request(student, sessions[0])

    with pytest.raises(MakeupLimitExceeded):
        service.create_makeup_request(student, sessions[1])

    assert MakeupClass.objects.count() == 1


def test_cancelled_requests_do_not_count_towards_limit(config, cls, student):
    service = limit_makeups(config, 1)
    sessions = list(cls.schedules.order_by('session_number'))
    service.cancel_makeup(service.create_makeup_request(student, sessions[0]))

    service.create_makeup_request(student, sessions[1])

    assert service.get_makeup_count(student, cls) == 1


# =============================================================================
# SCHEDULING
# =============================================================================

def test_schedule_on_free_slot(service, makeup, room, teacher):
    makeup = service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)

    makeup.refresh_from_db()
    assert makeup.status == 'scheduled'
    assert makeup.makeup_date == TUESDAY
    assert makeup.room == room


def test_schedule_over_a_class_session(service, makeup, room, teacher):
    with pytest.raises(ConflictDetected) as exc_info:
        service.schedule_makeup(makeup, date(2024, 6, 3), time(10, 0), time(11, 0), room, teacher)

    assert {c.kind for c in exc_info.value.conflicts} == {'room_conflict', 'teacher_conflict'}
    makeup.refresh_from_db()
    assert makeup.status == 'pending'


def test_holiday_blocks_makeup_by_default(service, makeup, room, teacher, make_holiday):
    make_holiday(TUESDAY, name="Closed")

    with pytest.raises(ConflictDetected):
        service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)


def test_holiday_allowed_when_requested(service, makeup, room, teacher, make_holiday):
    make_holiday(TUESDAY, name="Closed")

    makeup = service.schedule_makeup(
        makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher, allow_holiday=True
    )
    assert makeup.status == 'scheduled'


def test_scheduled_makeup_occupies_the_room(service, makeup, branch, room, teacher):
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)

    result = service.check_availability(
        branch=branch, start_time=time(9, 30), end_time=time(11, 0), room=room, day=TUESDAY,
    )

    assert not result.available
    assert result.conflicts[0].source_kind == 'makeup'


def test_moving_a_scheduled_makeup_ignores_its_own_slot(service, makeup, room, teacher):
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)

    makeup = service.schedule_makeup(makeup, TUESDAY, time(9, 30), time(10, 30), room, teacher)

    assert makeup.start_time == time(9, 30)


def test_two_makeups_cannot_share_a_room(service, makeup, cls, room, teacher, teacher_b, student):
    other_session = cls.schedules.get(session_number=2)
    other = service.create_makeup_request(student, other_session)
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)

    with pytest.raises(ConflictDetected):
        service.schedule_makeup(other, TUESDAY, time(9, 0), time(10, 0), room, teacher_b)


# =============================================================================
# LIFECYCLE
# =============================================================================

def test_complete_scheduled_makeup(service, makeup, room, teacher):
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)

    makeup = service.complete_makeup(makeup, attended=True, notes="Caught up")

    assert makeup.status == 'completed'
    assert makeup.attended is True
    assert makeup.notes == "Caught up"


def test_pending_makeup_cannot_be_completed(service, makeup):
    with pytest.raises(InvalidStatusTransition):
        service.complete_makeup(makeup)


def test_completed_makeup_is_final(service, makeup, room, teacher):
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)
    service.complete_makeup(makeup)

    with pytest.raises(InvalidStatusTransition):
        service.cancel_makeup(makeup)
    with pytest.raises(InvalidStatusTransition):
        service.schedule_makeup(makeup, TUESDAY, time(11, 0), time(12, 0), room, teacher)


def test_cancelled_makeup_frees_the_room(service, makeup, branch, room, teacher):
    service.schedule_makeup(makeup, TUESDAY, time(9, 0), time(10, 0), room, teacher)
    service.cancel_makeup(makeup, reason="Parent called")

    result = service.check_availability(
        branch=branch, start_time=time(9, 0), end_time=time(10, 0), room=room, day=TUESDAY,
    )

    assert result.available
    makeup.refresh_from_db()
    assert makeup.notes == "Parent called"
