from datetime import date, time

import pytest
from django.core.exceptions import ValidationError

from academics.exceptions import InvalidScheduleInput
from academics.models import Class, ClassSchedule, ClassRoom, Holiday
from academics.scheduling import NATIONAL, BranchScope
from hr.models import Teacher

pytestmark = pytest.mark.django_db


# =============================================================================
# HOLIDAY
# =============================================================================

class TestHoliday:

    def test_end_before_start_is_invalid(self, config):
        with pytest.raises(ValidationError):
            Holiday.objects.create(name="Backwards", start_date=date(2024, 6, 5), end_date=date(2024, 6, 1))

    def test_multi_day(self, make_holiday):
        songkran = make_holiday(date(2024, 4, 13), end_date=date(2024, 4, 15), name="Songkran")

        assert songkran.duration_days == 3
        assert songkran.overlaps_with_date(date(2024, 4, 14))
        assert not songkran.overlaps_with_date(date(2024, 4, 16))
        assert str(songkran) == "Songkran (2024-04-13 to 2024-04-15)"

    def test_national_scope(self, make_holiday, branch):
        holiday = make_holiday(date(2024, 6, 5))
        assert holiday.get_scope() == NATIONAL
        assert holiday.applies_to_branch(branch)

    def test_branch_scope(self, make_holiday, branch, other_branch):
        holiday = make_holiday(date(2024, 6, 5), holiday_type='branch', branches=[branch])

        assert holiday.get_scope() == BranchScope({branch.pk})
        assert holiday.applies_to_branch(branch)
        assert not holiday.applies_to_branch(other_branch)

    def test_yearly_repeat_is_not_stored(self):
        assert 'is_recurring' not in {f.name for f in Holiday._meta.get_fields()}

    def test_calendar_value(self, make_holiday, branch):
        value = make_holiday(date(2024, 6, 5), is_school_closed=False).to_calendar_holiday()

        assert value.last_date == date(2024, 6, 5)
        assert not value.closes(branch.pk)


# =============================================================================
# CLASS / ROOM / TEACHER
# =============================================================================

class TestClass:

    def test_display_helpers(self, make_class):
        cls = make_class()

        assert cls.get_days_display() == "Monday, Wednesday"
        assert cls.get_time_range_display() == "09:00-10:30"
        assert cls.is_schedulable
        assert cls.get_sessions_summary() == {'total': 4, 'completed': 0, 'cancelled': 0, 'remaining': 4}

    def test_clean_rejects_bad_weekdays(self, branch, room):
        cls = Class(
            name="Bad", code="BAD-1", branch=branch, room=room, days_of_week=[8],
            start_time=time(9, 0), end_time=time(10, 0), start_date=date(2024, 6, 3), total_sessions=4,
        )
        with pytest.raises(ValidationError) as exc_info:
            cls.full_clean()
        assert 'days_of_week' in exc_info.value.message_dict

    def test_clean_rejects_inverted_times(self, branch, room):
        cls = Class(
            name="Bad", code="BAD-2", branch=branch, room=room, days_of_week=[1],
            start_time=time(10, 0), end_time=time(9, 0), start_date=date(2024, 6, 3), total_sessions=4,
        )
        with pytest.raises(ValidationError) as exc_info:
            cls.full_clean()
        assert 'end_time' in exc_info.value.message_dict

    def test_managers(self, make_class, branch, other_branch):
        cls = make_class()
        draft = make_class(status='draft', start_time=time(13, 0), end_time=time(14, 0))

        assert list(Class.objects.for_branch(branch).schedulable()) == [cls]
        assert not Class.objects.for_branch(other_branch).exists()
        assert Class.objects.get_or_none(code=draft.code) == draft
        assert Class.objects.get_or_none(code="NOPE") is None
        assert ClassSchedule.objects.filter(class_instance=cls).between(
            date(2024, 6, 4), date(2024, 6, 10)
        ).count() == 2


class TestRoomAndTeacher:

    def test_room_location(self, room):
        room.floor = "2"
        assert room.get_full_location() == "Room A, Floor 2, Sukhumvit"

    def test_active_rooms(self, room, room_b):
        room_b.is_active = False
        room_b.save()
        assert list(ClassRoom.objects.active()) == [room]

    def test_teacher_names(self, teacher):
        assert teacher.display_name == "Chai (Somchai)"

    def test_teacher_branches(self, teacher, branch, other_branch):
        assert teacher.works_at(branch)

        teacher.available_branches.add(other_branch)

        assert teacher.works_at(other_branch)
        assert not teacher.works_at(branch)

    def test_teachers_for_branch(self, teacher, teacher_b, branch, other_branch):
        teacher_b.available_branches.add(other_branch)

        assert list(Teacher.objects.for_branch(branch)) == [teacher]
        assert list(Teacher.objects.for_branch(other_branch)) == [teacher_b, teacher]
        assert Teacher.objects.for_branch(None).count() == 2

    def test_class_needs_teacher_at_its_branch(self, make_class, other_branch):
        teacher = Teacher.objects.create(first_name="Anan")
        teacher.available_branches.add(other_branch)

        with pytest.raises(InvalidScheduleInput):
            make_class(teacher=teacher)


def test_audit_trail(branch):
    trail = branch.get_audit_trail()
    assert trail['id'] == str(branch.pk)
    assert trail['created_at'] == branch.created_at
