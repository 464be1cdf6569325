from datetime import date, time

import pytest

from core.models import Branch, SchedulingConfiguration
from hr.models import Teacher
from students.models import Student
from academics.models import ClassRoom, Holiday
from academics.services import ClassScheduleService


# 2024-06-03 is a Monday
MONDAY = date(2024, 6, 3)
MON, WED = 1, 3


@pytest.fixture
def config(db):
    return SchedulingConfiguration.get_instance()


@pytest.fixture
def branch(db):
    return Branch.objects.create(name="Sukhumvit", code="SKV")


@pytest.fixture
def other_branch(db):
    return Branch.objects.create(name="Ladprao", code="LDP")


@pytest.fixture
def room(branch):
    return ClassRoom.objects.create(branch=branch, name="Room A", capacity=8)


@pytest.fixture
def room_b(branch):
    return ClassRoom.objects.create(branch=branch, name="Room B", capacity=8)


@pytest.fixture
def other_room(other_branch):
    return ClassRoom.objects.create(branch=other_branch, name="Room A", capacity=8)


@pytest.fixture
def teacher(db):
    return Teacher.objects.create(first_name="Somchai", nickname="Chai")


@pytest.fixture
def teacher_b(db):
    return Teacher.objects.create(first_name="Malee", nickname="Mali")


@pytest.fixture
def student(branch):
    return Student.objects.create(first_name="Nina", nickname="Nin", branch=branch)


@pytest.fixture
def service(config):
    return ClassScheduleService()


@pytest.fixture
def make_class(service, branch, room, teacher):
    """Create a published class through the service; keyword arguments override the defaults"""
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        data = dict(
            name=f"Robotics {counter['n']}",
            code=f"ROB-{counter['n']:03d}",
            branch=branch,
            room=room,
            teacher=teacher,
            days_of_week=[MON, WED],
            start_time=time(9, 0),
            end_time=time(10, 30),
            start_date=MONDAY,
            total_sessions=4,
        )
        data.update(overrides)
        return service.create_class(**data)

    return _make


@pytest.fixture
def make_holiday(db):
    def _make(start_date, name="Holiday", holiday_type='national', end_date=None,
              branches=(), is_school_closed=True):
        holiday = Holiday.objects.create(
            name=name,
            holiday_type=holiday_type,
            start_date=start_date,
            end_date=end_date,
            is_school_closed=is_school_closed,
        )
        if branches:
            holiday.branches.set(branches)
        return holiday

    return _make
