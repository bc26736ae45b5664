import logging

import pytest
from fastapi.testclient import TestClient

from appointmentcare.core import config
from appointmentcare.core.errors import PersistenceError
from appointmentcare.main import app


def _create(client: TestClient, **fields):
    body = {'status': 'scheduled', **fields}
    return client.post('/api/appointments', json=body)


def test_create_appointment_returns_created_row(client: TestClient) -> None:
    response = _create(
        client,
        patient_id=3,
        doctor_id=5,
        appointment_date='2024-01-01',
        scheduled_date='2024-01-01 10:00:00',
        sms_sent=0,
    )

    assert response.status_code == 201
    assert response.json() == {
        'success': True,
        'message': 'Appointment created successfully',
        'data': {
            'id': 1,
            'patient_id': 3,
            'doctor_id': 5,
            'appointment_date': '2024-01-01T00:00:00',
            'scheduled_date': '2024-01-01T10:00:00',
            'status': 'scheduled',
            'sms_sent': False,
        },
    }


def test_created_appointment_round_trips_through_get(client: TestClient) -> None:
    created = _create(
        client,
        patient_id=4,
        doctor_id=7,
        appointment_date='2024-03-10T08:00:00',
        scheduled_date='2024-03-10T09:30:00',
        sms_sent=True,
    ).json()['data']

    fetched = client.get(f"/api/appointments/{created['id']}")

    assert fetched.status_code == 200
    assert fetched.json() == {'success': True, 'data': created}


def test_overlapping_booking_is_rejected_with_conflict_details(client: TestClient) -> None:
    first = _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00').json()['data']

    response = _create(client, doctor_id=5, scheduled_date='2024-01-01T10:10:00')

    assert response.status_code == 409
    body = response.json()
    assert body['success'] is False
    assert body['conflict'] == {
        'appointment_id': first['id'],
        'scheduled_date': '2024-01-01T10:00:00',
        'requested_date': '2024-01-01T10:10:00',
    }
    assert client.get('/api/appointments').json()['count'] == 1


@pytest.mark.parametrize('second_time', ['2024-01-01 09:40:00', '2024-01-01 10:20:00'])
def test_bookings_exactly_twenty_minutes_apart_are_accepted(client: TestClient, second_time: str) -> None:
    assert _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00').status_code == 201

    assert _create(client, doctor_id=5, scheduled_date=second_time).status_code == 201


def test_same_time_for_different_doctors_is_accepted(client: TestClient) -> None:
    assert _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00').status_code == 201

    assert _create(client, doctor_id=7, scheduled_date='2024-01-01 10:00:00').status_code == 201


def test_cancelled_appointment_no_longer_blocks_the_slot(client: TestClient) -> None:
    first = _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00').json()['data']

    cancel = client.put(f"/api/appointments/{first['id']}", json={'status': 'cancelled'})
    second = _create(client, doctor_id=5, scheduled_date='2024-01-01 10:05:00')

    assert cancel.status_code == 200
    assert second.status_code == 201


def test_status_only_update_leaves_other_fields_unchanged(client: TestClient) -> None:
    created = _create(client, patient_id=3, doctor_id=5, scheduled_date='2024-01-01 10:00:00').json()['data']

    response = client.put(f"/api/appointments/{created['id']}", json={'status': 'done'})

    assert response.status_code == 200
    updated = response.json()['data']
    assert updated['status'] == 'done'
    assert updated['scheduled_date'] == created['scheduled_date']
    assert updated['doctor_id'] == created['doctor_id']
    assert updated['patient_id'] == created['patient_id']


def test_update_with_no_fields_is_rejected(client: TestClient) -> None:
    created = _create(client).json()['data']

    response = client.put(f"/api/appointments/{created['id']}", json={})

    assert response.status_code == 400
    assert response.json() == {'success': False, 'message': 'No fields provided to update'}


def test_update_into_conflict_is_rejected(client: TestClient) -> None:
    _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00')
    movable = _create(client, doctor_id=5, scheduled_date='2024-01-01 12:00:00').json()['data']

    response = client.put(f"/api/appointments/{movable['id']}", json={'scheduled_date': '2024-01-01 10:15:00'})

    assert response.status_code == 409
    unchanged = client.get(f"/api/appointments/{movable['id']}").json()['data']
    assert unchanged['scheduled_date'] == '2024-01-01T12:00:00'


@pytest.mark.parametrize('field', ['appointment_date', 'scheduled_date'])
@pytest.mark.parametrize('value', ['01/02/2024', 'not-a-date'])
def test_invalid_dates_are_rejected(client: TestClient, field: str, value: str) -> None:
    created = _create(client).json()['data']

    create_response = _create(client, **{field: value})
    update_response = client.put(f"/api/appointments/{created['id']}", json={field: value})

    for response in (create_response, update_response):
        assert response.status_code == 400
        assert response.json()['success'] is False
        assert field in response.json()['message']


def test_missing_status_is_rejected(client: TestClient) -> None:
    response = client.post('/api/appointments', json={'doctor_id': 5})

    assert response.status_code == 400
    assert response.json()['message'] == 'Missing required field: status'


@pytest.mark.parametrize(('field', 'value'), [('doctor_id', 99), ('patient_id', 99)])
def test_unknown_references_return_not_found(client: TestClient, field: str, value: int) -> None:
    response = _create(client, **{field: value})

    assert response.status_code == 404
    assert response.json()['success'] is False


@pytest.mark.parametrize('raw_id', ['-1', '0', 'abc'])
def test_invalid_appointment_ids_are_rejected(client: TestClient, raw_id: str) -> None:
    assert client.get(f'/api/appointments/{raw_id}').status_code == 400
    assert client.put(f'/api/appointments/{raw_id}', json={'status': 'done'}).status_code == 400
    assert client.delete(f'/api/appointments/{raw_id}').status_code == 400


def test_missing_appointment_returns_not_found(client: TestClient) -> None:
    response = client.get('/api/appointments/7')

    assert response.status_code == 404
    assert response.json() == {'success': False, 'message': 'Appointment with ID 7 not found'}


def test_delete_appointment_removes_row(client: TestClient) -> None:
    created = _create(client, doctor_id=5, scheduled_date='2024-01-01 10:00:00').json()['data']

    response = client.delete(f"/api/appointments/{created['id']}")

    assert response.status_code == 200
    assert response.json()['data'] == created
    assert client.get(f"/api/appointments/{created['id']}").status_code == 404


def test_list_appointments_reports_count(client: TestClient) -> None:
    _create(client)
    _create(client, status='done')

    body = client.get('/api/appointments').json()

    assert body['success'] is True
    assert body['count'] == 2
    assert [row['status'] for row in body['data']] == ['scheduled', 'done']


def test_malformed_body_is_rejected(client: TestClient) -> None:
    response = client.post(
        '/api/appointments',
        content='{not json',
        headers={'content-type': 'application/json'},
    )

    assert response.status_code == 400
    assert response.json() == {'success': False, 'message': 'Invalid request body'}


def test_unknown_route_returns_enveloped_not_found(client: TestClient) -> None:
    response = client.get('/api/unknown')

    assert response.status_code == 404
    assert response.json() == {'success': False, 'message': 'Route GET /api/unknown not found'}


def test_persistence_errors_hide_details_in_production(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_list(_store):
        raise PersistenceError('connection refused')

    monkeypatch.setattr('appointmentcare.services.appointment_service.list_appointments', failing_list)

    monkeypatch.setattr(config, 'APP_ENV', 'development')
    development = client.get('/api/appointments')
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    production = client.get('/api/appointments')

    assert development.status_code == 500
    assert development.json() == {'success': False, 'message': 'Internal server error', 'error': 'connection refused'}
    assert production.status_code == 500
    assert production.json() == {'success': False, 'message': 'Internal server error'}


def test_root_lists_endpoints(client: TestClient) -> None:
    body = client.get('/').json()

    assert body['success'] is True
    assert body['status'] == 'Server is running'
    assert 'POST /api/appointments' in body['endpoints']


def test_health_reports_database_status(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('appointmentcare.main.check_database_connection', lambda: None)

    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'
    assert response.json()['uptime'] >= 0


def test_slots_at_the_end_of_the_datetime_range_are_bookable(client: TestClient) -> None:
    first = _create(client, doctor_id=5, scheduled_date='9999-12-31 23:50:00')
    second = _create(client, doctor_id=5, scheduled_date='9999-12-31 23:55:00')

    assert first.status_code == 201
    assert second.status_code == 409


def test_dates_outside_the_representable_range_are_rejected(client: TestClient) -> None:
    response = _create(client, doctor_id=5, scheduled_date='0001-01-01T00:00:00+01:00')

    assert response.status_code == 400
    assert 'scheduled_date' in response.json()['message']


def test_oversized_ids_are_rejected_as_invalid(client: TestClient) -> None:
    oversized = 99999999999999999999

    path_response = client.get(f'/api/appointments/{oversized}')
    body_response = _create(client, doctor_id=oversized)
    lookup_response = client.get(f'/api/doctors/{oversized}')

    assert path_response.status_code == 400
    assert path_response.json()['message'] == 'Invalid appointment ID: must be a positive integer'
    assert body_response.status_code == 400
    assert body_response.json()['message'] == 'Invalid doctor_id: must be a positive integer'
    assert lookup_response.status_code == 400


def test_failed_requests_are_logged_with_duration(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def broken_list(_store):
        raise RuntimeError('unexpected')

    monkeypatch.setattr('appointmentcare.services.appointment_service.list_appointments', broken_list)
    caplog.set_level(logging.INFO, logger='appointmentcare.main')

    response = TestClient(app, raise_server_exceptions=False).get('/api/appointments')

    assert response.status_code == 500
    assert any('GET /api/appointments -> failed in' in record.getMessage() for record in caplog.records)
