import uuid
from datetime import date
from io import BytesIO

import pytest
from django.urls import reverse
from openpyxl import load_workbook

pytestmark = pytest.mark.django_db


# =============================================================================
# END DATE
# =============================================================================

def test_end_date_preview(client, branch, make_holiday):
    make_holiday(date(2024, 6, 5), name="Visakha Bucha")

    response = client.get(reverse('academics:class_end_date'), {
        'branch': str(branch.pk),
        'start_date': '2024-06-03',
        'days_of_week': '1,3',
        'total_sessions': '4',
    })

    assert response.status_code == 200
    data = response.json()
    assert data['end_date'] == '2024-06-17'
    assert data['session_dates'] == ['2024-06-03', '2024-06-10', '2024-06-12', '2024-06-17']
    assert data['skipped'] == [{'date': '2024-06-05', 'holiday': 'Visakha Bucha'}]


@pytest.mark.parametrize("params, error_type", [
    ({'start_date': '2024-06-04', 'days_of_week': '1,3', 'total_sessions': '4'}, 'InvalidScheduleInput'),
    ({'start_date': '2024-06-03', 'days_of_week': '', 'total_sessions': '4'}, 'InvalidScheduleInput'),
    ({'start_date': '2024-06-03', 'days_of_week': '1', 'total_sessions': '0'}, 'InvalidScheduleInput'),
    ({'start_date': 'June 3rd', 'days_of_week': '1', 'total_sessions': '4'}, 'ValueError'),
    ({'start_date': '2024-06-03', 'days_of_week': 'mon', 'total_sessions': '4'}, 'ValueError'),
])
def test_end_date_bad_input(client, branch, params, error_type):
    response = client.get(reverse('academics:class_end_date'), {'branch': str(branch.pk), **params})

    assert response.status_code == 400
    assert response.json()['error_type'] == error_type


def test_end_date_unknown_branch(client, config):
    response = client.get(reverse('academics:class_end_date'), {
        'branch': str(uuid.uuid4()),
        'start_date': '2024-06-03',
        'days_of_week': '1',
        'total_sessions': '4',
    })

    assert response.status_code == 404
    assert response.json()['error_type'] == 'ReferenceNotFound'


# =============================================================================
# AVAILABILITY
# =============================================================================

def test_availability_conflict(client, make_class, branch, room):
    cls = make_class()

    response = client.get(reverse('academics:availability_check'), {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '10:00',
        'end_time': '11:00',
        'date': '2024-06-03',
    })

    assert response.status_code == 200
    data = response.json()
    assert data['available'] is False
    assert data['conflicts'][0]['kind'] == 'room_conflict'
    assert data['conflicts'][0]['source_id'] == str(cls.pk)


def test_availability_back_to_back(client, make_class, branch, room):
    make_class()

    response = client.get(reverse('academics:availability_check'), {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '10:30',
        'end_time': '12:00',
        'days_of_week': '1,3',
        'start_date': '2024-06-03',
        'end_date': '2024-06-12',
    })

    data = response.json()
    assert data['available'] is True
    assert len(data['checked_dates']) == 4


def test_availability_holiday_policy(client, branch, room, make_holiday):
    make_holiday(date(2024, 6, 3), name="Closed")
    params = {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '09:00',
        'end_time': '10:00',
        'dates': '2024-06-03,2024-06-04',
    }

    advisory = client.get(reverse('academics:availability_check'), params).json()
    blocking = client.get(reverse('academics:availability_check'), {**params, 'block_on_holidays': 'true'}).json()

    assert advisory['available'] is True
    assert advisory['conflicts'] == [{'kind': 'holiday', 'date': '2024-06-03', 'holiday_name': 'Closed'}]
    assert blocking['available'] is False


def test_availability_inverted_window(client, branch, room):
    response = client.get(reverse('academics:availability_check'), {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '11:00',
        'end_time': '10:00',
        'date': '2024-06-03',
    })
    assert response.status_code == 400


def test_availability_needs_one_date_form(client, branch, room):
    response = client.get(reverse('academics:availability_check'), {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '09:00',
        'end_time': '10:00',
    })
    assert response.status_code == 400
    assert response.json()['error_type'] == 'InvalidScheduleInput'


def test_availability_unknown_exclude_kind(client, make_class, branch, room):
    cls = make_class()

    response = client.get(reverse('academics:availability_check'), {
        'branch': str(branch.pk),
        'room': str(room.pk),
        'start_time': '09:00',
        'end_time': '10:30',
        'date': '2024-06-03',
        'exclude_id': str(cls.pk),
        'exclude_kind': 'klass',
    })

    assert response.status_code == 400
    assert response.json()['error_type'] == 'InvalidScheduleInput'


@pytest.mark.parametrize("url_name, params", [
    ('academics:class_end_date', {'start_date': '2024-06-03', 'days_of_week': '1', 'total_sessions': '4'}),
    ('academics:availability_check', {'start_time': '09:00', 'end_time': '10:00', 'date': '2024-06-03'}),
    ('academics:availability_day', {'date': '2024-06-03'}),
])
def test_missing_branch(client, config, url_name, params):
    response = client.get(reverse(url_name), params)

    assert response.status_code == 400
    assert response.json()['error'] == "branch is required"


def test_day_overview(client, make_class, branch):
    make_class()

    response = client.get(reverse('academics:availability_day'), {
        'branch': str(branch.pk), 'date': '2024-06-05',
    })

    data = response.json()
    assert data['is_closed'] is False
    assert [slot['start_time'] for slot in data['busy_slots']] == ['09:00']


def test_day_overview_needs_date(client, branch):
    response = client.get(reverse('academics:availability_day'), {'branch': str(branch.pk)})
    assert response.status_code == 400


# =============================================================================
# SESSIONS
# =============================================================================

def test_class_sessions(client, make_class):
    cls = make_class()

    response = client.get(reverse('academics:class_sessions', args=[cls.pk]))

    data = response.json()
    assert data['total_count'] == 4
    assert [s['session_date'] for s in data['sessions']] == [
        '2024-06-03', '2024-06-05', '2024-06-10', '2024-06-12',
    ]


def test_class_sessions_unknown_class(client, config):
    response = client.get(reverse('academics:class_sessions', args=[uuid.uuid4()]))
    assert response.status_code == 404


def test_session_reschedule(client, make_class):
    cls = make_class()
    session = cls.schedules.get(session_date=date(2024, 6, 5))

    response = client.post(
        reverse('academics:session_reschedule', args=[session.pk]), {'reason': 'Teacher sick'},
        REMOTE_ADDR='10.0.0.7',
    )

    assert response.status_code == 200
    data = response.json()
    assert data['session_date'] == '2024-06-17'
    assert data['original_date'] == '2024-06-05'
    assert data['class_end_date'] == '2024-06-17'

    session.refresh_from_db()
    assert session.updated_from_ip == '10.0.0.7'


def test_session_reschedule_behind_proxy(client, make_class):
    session = make_class().schedules.get(session_date=date(2024, 6, 5))

    client.post(
        reverse('academics:session_reschedule', args=[session.pk]),
        HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1', REMOTE_ADDR='10.0.0.1',
    )

    session.refresh_from_db()
    assert session.updated_from_ip == '203.0.113.9'


def test_session_reschedule_conflict(client, make_class, make_holiday):
    cls = make_class()
    make_holiday(date(2024, 6, 19))
    session = cls.schedules.get(session_date=date(2024, 6, 5))

    response = client.post(reverse('academics:session_reschedule', args=[session.pk]), {'date': '2024-06-19'})

    assert response.status_code == 409
    assert response.json()['conflicts'][0]['kind'] == 'holiday'


def test_session_reschedule_requires_post(client, make_class):
    session = make_class().schedules.first()
    response = client.get(reverse('academics:session_reschedule', args=[session.pk]))
    assert response.status_code == 405


# =============================================================================
# BULK RESCHEDULE
# =============================================================================

def test_reschedule_all(client, config, make_class, make_holiday):
    config.auto_reschedule_on_holiday_change = False
    config.save()
    cls = make_class()
    make_holiday(date(2024, 6, 5))

    response = client.post(reverse('academics:reschedule_all'), {'reason': 'Calendar update'})

    assert response.status_code == 200
    assert response.json()['processed_count'] == 1
    cls.refresh_from_db()
    assert cls.end_date == date(2024, 6, 17)


def test_reschedule_all_requires_post(client, config):
    assert client.get(reverse('academics:reschedule_all')).status_code == 405


# =============================================================================
# EXPORT
# =============================================================================

def test_excel_export(client, make_class):
    cls = make_class()

    response = client.get(reverse('academics:class_sessions_export', args=[cls.pk]))

    assert response.status_code == 200
    assert response['Content-Disposition'] == f'attachment; filename="{cls.code}_sessions.xlsx"'

    ws = load_workbook(BytesIO(response.content)).active
    assert ws['A1'].value == f"{cls.code} - {cls.name}"
    assert [cell.value for cell in ws[4]] == ['#', 'Date', 'Day', 'Status', 'Original Date', 'Note']
    assert ws['B5'].value == '2024-06-03'
    assert ws['C5'].value == 'Monday'
