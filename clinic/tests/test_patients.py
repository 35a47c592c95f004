"""
API tests for the patient account endpoints.

Covers account creation (with and without a profile image), validation
failures, the archived-record visibility rules, password handling on
update and profile image replacement.
"""
import logging

import pytest
from django.contrib.auth.hashers import check_password
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from rest_framework import status

from clinic.models import Patient
from clinic.serializers.patient import PatientWriteSerializer
from clinic.services import patients as patient_service
from clinic.tests.factories import make_image

pytestmark = pytest.mark.django_db

URL = '/api/patients'


def detail(pk):
    return f'/api/patients/{pk}'


def new_patient(client, **overrides):
    payload = {
        'full_name': 'Jane Doe',
        'email': 'jane@example.com',
        'password': 'secret1',
        'password_confirmation': 'secret1',
    }
    payload.update(overrides)
    r = client.post(URL, payload, format='json')
    assert r.status_code == status.HTTP_201_CREATED, r.data
    return r.data['data']


def test_create_patient_returns_record_without_password(client):
    r = client.post(URL, {
        'full_name': 'Jane Doe',
        'email': 'jane@example.com',
        'password': 'secret1',
        'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == 201
    assert r.data['isSuccess'] is True
    assert r.data['message'] == 'Patient account created successfully!'
    data = r.data['data']
    assert data['id']
    assert data['is_archived'] is False
    assert 'password' not in data
    assert 'password_confirmation' not in data

    stored = Patient.objects.get(pk=data['id'])
    assert stored.password != 'secret1'
    assert check_password('secret1', stored.password)


def test_create_patient_ignores_client_archive_flag(client):
    data = new_patient(client, is_archived=True)
    assert data['is_archived'] is False


def test_create_patient_reports_every_invalid_field(client):
    r = client.post(URL, {
        'age': -1,
        'gender': 'Unknown',
        'email': 'not-an-email',
        'phone_number': '1' * 21,
        'password': 'secret1',
        'password_confirmation': 'other',
    }, format='json')
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert r.data['isSuccess'] is False
    assert r.data['message'] == 'The given data was invalid.'
    assert set(r.data['error']) == {'full_name', 'age', 'gender', 'email', 'phone_number', 'password'}
    assert not Patient.objects.exists()


def test_create_patient_requires_password(client):
    r = client.post(URL, {'full_name': 'Jane Doe', 'email': 'jane@example.com'}, format='json')
    assert r.status_code == 422
    assert 'password' in r.data['error']


def test_short_password_is_rejected(client):
    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'abc', 'password_confirmation': 'abc',
    }, format='json')
    assert r.status_code == 422
    assert 'password' in r.data['error']


def test_duplicate_email_is_rejected(client):
    new_patient(client)
    r = client.post(URL, {
        'full_name': 'Other Jane',
        'email': 'jane@example.com',
        'password': 'secret2',
        'password_confirmation': 'secret2',
    }, format='json')
    assert r.status_code == 422
    assert 'email' in r.data['error']
    assert Patient.objects.count() == 1


def test_duplicate_email_of_archived_patient_is_rejected(client):
    data = new_patient(client)
    client.delete(detail(data['id']))
    r = client.post(URL, {
        'full_name': 'Jane Again', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == 422
    assert 'email' in r.data['error']


def test_duplicate_email_caught_by_database_is_a_conflict(client, monkeypatch):
    new_patient(client)
    # Simulate a concurrent insert that slipped past the validation check
    monkeypatch.setattr(PatientWriteSerializer, 'validate_email', lambda self, v: v)
    r = client.post(URL, {
        'full_name': 'Racing Jane', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.data['isSuccess'] is False
    assert r.data['error'] == {'email': ['The email has already been taken.']}
    assert Patient.objects.count() == 1


def test_duplicate_email_differing_only_in_case_is_rejected(client):
    new_patient(client)
    r = client.post(URL, {
        'full_name': 'Jane Again', 'email': 'JANE@Example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == 422
    assert r.data['error'] == {'email': ['The email has already been taken.']}


def test_duplicate_email_caught_by_database_on_update_is_a_conflict(client, monkeypatch, media_root):
    new_patient(client)
    john = new_patient(client, full_name='John Smith', email='john@example.com')
    monkeypatch.setattr(PatientWriteSerializer, 'validate_email', lambda self, v: v)

    r = client.put(detail(john['id']), {
        'full_name': 'John Smith', 'email': 'jane@example.com', 'profile_img': make_image(),
    }, format='multipart')
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.data['isSuccess'] is False
    assert r.data['error'] == {'email': ['The email has already been taken.']}
    assert Patient.objects.get(pk=john['id']).email == 'john@example.com'
    assert list((media_root / 'hms_files').glob('*')) == []


def test_blank_age_and_gender_in_json_mean_null(client):
    data = new_patient(client, age='', gender='')
    assert data['age'] is None
    assert data['gender'] is None

    r = client.put(detail(data['id']), {
        'full_name': 'Jane Doe', 'email': 'jane@example.com', 'age': '', 'gender': '',
    }, format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['age'] is None
    assert r.data['data']['gender'] is None


def test_create_with_profile_image_stores_blob(client, media_root):
    r = client.post(URL, {
        'full_name': 'Jane Doe',
        'email': 'jane@example.com',
        'password': 'secret1',
        'password_confirmation': 'secret1',
        'profile_img': make_image(),
    }, format='multipart')
    assert r.status_code == 201, r.data
    path = r.data['data']['profile_img']
    assert path.startswith('hms_files/patient_')
    assert path.endswith('.png')
    assert (media_root / path).exists()
    assert r.data['data']['profile_img_url'].endswith(path)


def test_profile_image_must_be_an_image(client, media_root):
    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
        'profile_img': SimpleUploadedFile('notes.png', b'plain text', content_type='image/png'),
    }, format='multipart')
    assert r.status_code == 422
    assert 'profile_img' in r.data['error']
    assert not (media_root / 'hms_files').exists()


def test_profile_image_extension_is_restricted(client):
    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
        'profile_img': make_image('avatar.gif', fmt='GIF'),
    }, format='multipart')
    assert r.status_code == 422
    assert 'profile_img' in r.data['error']


def test_profile_image_size_limit(client, settings):
    settings.PROFILE_IMAGE_MAX_KB = 1
    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
        'profile_img': make_image(size=(64, 64), noisy=True),
    }, format='multipart')
    assert r.status_code == 422
    assert 'profile_img' in r.data['error']


def test_list_excludes_archived_newest_first(client):
    first = new_patient(client, email='a@example.com')
    second = new_patient(client, email='b@example.com')
    third = new_patient(client, email='c@example.com')
    client.delete(detail(second['id']))

    r = client.get(URL)
    assert r.status_code == 200
    assert r.data['isSuccess'] is True
    ids = [p['id'] for p in r.data['data']]
    assert ids == [third['id'], first['id']]
    assert all('password' not in p for p in r.data['data'])


def test_get_patient(client):
    data = new_patient(client)
    r = client.get(detail(data['id']))
    assert r.status_code == 200
    assert r.data['data']['email'] == 'jane@example.com'


def test_archived_patient_is_not_found(client):
    data = new_patient(client)
    client.delete(detail(data['id']))
    r = client.get(detail(data['id']))
    assert r.status_code == 404
    assert r.data == {'isSuccess': False, 'message': 'Patient not found.'}


def test_missing_patient_is_not_found(client):
    r = client.get(detail(999))
    assert r.status_code == 404
    assert r.data['message'] == 'Patient not found.'


def test_update_without_password_keeps_hash(client):
    data = new_patient(client)
    before = Patient.objects.get(pk=data['id']).password
    r = client.put(detail(data['id']), {
        'full_name': 'Jane Q. Doe',
        'email': 'jane@example.com',
        'age': 41,
    }, format='json')
    assert r.status_code == 200, r.data
    assert r.data['message'] == 'Patient profile updated successfully!'
    assert r.data['data']['full_name'] == 'Jane Q. Doe'
    assert r.data['data']['age'] == 41
    assert Patient.objects.get(pk=data['id']).password == before


def test_update_with_empty_password_keeps_hash(client):
    data = new_patient(client)
    before = Patient.objects.get(pk=data['id']).password
    r = client.put(detail(data['id']), {
        'full_name': 'Jane Doe', 'email': 'jane@example.com', 'password': '',
    }, format='json')
    assert r.status_code == 200, r.data
    assert Patient.objects.get(pk=data['id']).password == before


def test_update_with_password_rehashes(client):
    data = new_patient(client)
    before = Patient.objects.get(pk=data['id']).password
    r = client.put(detail(data['id']), {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'newsecret', 'password_confirmation': 'newsecret',
    }, format='json')
    assert r.status_code == 200, r.data
    after = Patient.objects.get(pk=data['id']).password
    assert after != before
    assert after != 'newsecret'
    assert check_password('newsecret', after)


def test_update_leaves_absent_fields_untouched(client):
    data = new_patient(client, age=30, address='1 Main St')
    r = client.patch(detail(data['id']), {'full_name': 'Jane Doe', 'email': 'jane@example.com'}, format='json')
    assert r.status_code == 200
    patient = Patient.objects.get(pk=data['id'])
    assert patient.age == 30
    assert patient.address == '1 Main St'


def test_update_requires_full_name_and_email(client):
    data = new_patient(client)
    r = client.patch(detail(data['id']), {'age': 5}, format='json')
    assert r.status_code == 422
    assert {'full_name', 'email'} <= set(r.data['error'])


def test_update_email_uniqueness_ignores_own_record(client):
    jane = new_patient(client)
    new_patient(client, full_name='John', email='john@example.com')

    r = client.put(detail(jane['id']), {'full_name': 'Jane', 'email': 'jane@example.com'}, format='json')
    assert r.status_code == 200

    r = client.put(detail(jane['id']), {'full_name': 'Jane', 'email': 'john@example.com'}, format='json')
    assert r.status_code == 422
    assert 'email' in r.data['error']


def test_update_archived_patient_is_not_found(client):
    data = new_patient(client)
    client.delete(detail(data['id']))
    r = client.put(detail(data['id']), {'full_name': 'Jane', 'email': 'jane@example.com'}, format='json')
    assert r.status_code == 404


def test_replacing_profile_image_removes_previous_blob(client, media_root):
    data = new_patient(client)
    payload = {'full_name': 'Jane Doe', 'email': 'jane@example.com'}

    r1 = client.put(detail(data['id']), dict(payload, profile_img=make_image('one.png')), format='multipart')
    assert r1.status_code == 200, r1.data
    first_path = r1.data['data']['profile_img']
    assert (media_root / first_path).exists()

    r2 = client.put(detail(data['id']), dict(payload, profile_img=make_image('two.jpg', fmt='JPEG')), format='multipart')
    assert r2.status_code == 200, r2.data
    second_path = r2.data['data']['profile_img']

    assert second_path != first_path
    assert not (media_root / first_path).exists()
    assert (media_root / second_path).exists()
    assert Patient.objects.get(pk=data['id']).profile_img == second_path


def test_replacing_image_when_previous_blob_is_missing(client, media_root):
    data = new_patient(client)
    payload = {'full_name': 'Jane Doe', 'email': 'jane@example.com'}
    r1 = client.put(detail(data['id']), dict(payload, profile_img=make_image()), format='multipart')
    (media_root / r1.data['data']['profile_img']).unlink()

    r2 = client.put(detail(data['id']), dict(payload, profile_img=make_image()), format='multipart')
    assert r2.status_code == 200
    assert (media_root / r2.data['data']['profile_img']).exists()


def test_archive_is_idempotent_and_keeps_row_and_image(client, media_root):
    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
        'profile_img': make_image(),
    }, format='multipart')
    pk = r.data['data']['id']
    path = r.data['data']['profile_img']

    first = client.delete(detail(pk))
    second = client.delete(detail(pk))
    assert first.status_code == second.status_code == 200
    assert first.data == second.data == {
        'isSuccess': True, 'message': 'Patient account archived successfully.',
    }
    patient = Patient.objects.get(pk=pk)
    assert patient.is_archived is True
    assert (media_root / path).exists()


def test_archive_missing_patient(client):
    r = client.delete(detail(12345))
    assert r.status_code == 404
    assert r.data['message'] == 'Patient not found.'


def test_store_failure_is_reported_without_diagnostics(client, monkeypatch):
    def boom(**kwargs):
        raise DatabaseError('disk I/O error at /var/lib/db')
    monkeypatch.setattr(Patient.objects, 'create', boom)

    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == 500
    assert r.data == {'isSuccess': False, 'message': 'Failed to create patient account.'}


def test_store_failure_removes_uploaded_blob(client, monkeypatch, media_root):
    def boom(**kwargs):
        raise DatabaseError('gone')
    monkeypatch.setattr(Patient.objects, 'create', boom)

    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
        'profile_img': make_image(),
    }, format='multipart')
    assert r.status_code == 500
    assert list((media_root / 'hms_files').iterdir()) == []


def test_unexpected_error_is_a_generic_failure(client, monkeypatch):
    def boom():
        raise RuntimeError('secret internals')
    monkeypatch.setattr(patient_service, 'list_patients', boom)

    r = client.get(URL)
    assert r.status_code == 500
    assert r.data == {'isSuccess': False, 'message': 'Internal server error.'}


def test_diagnostics_are_exposed_in_debug(client, monkeypatch, settings):
    settings.DEBUG = True

    def boom(**kwargs):
        raise DatabaseError('disk I/O error')
    monkeypatch.setattr(Patient.objects, 'create', boom)

    r = client.post(URL, {
        'full_name': 'Jane Doe', 'email': 'jane@example.com',
        'password': 'secret1', 'password_confirmation': 'secret1',
    }, format='json')
    assert r.status_code == 500
    assert r.data['error'] == 'DatabaseError: disk I/O error'


def test_failed_update_after_image_swap_is_logged(client, monkeypatch, media_root, caplog):
    data = new_patient(client)
    payload = {'full_name': 'Jane Doe', 'email': 'jane@example.com'}
    r1 = client.put(detail(data['id']), dict(payload, profile_img=make_image()), format='multipart')
    old_path = r1.data['data']['profile_img']

    def boom(self, *args, **kwargs):
        raise DatabaseError('disk full')
    monkeypatch.setattr(Patient, 'save', boom)
    monkeypatch.setattr(logging.getLogger('clinic'), 'propagate', True)

    with caplog.at_level(logging.WARNING, logger='clinic.services.patients'):
        r2 = client.put(detail(data['id']), dict(payload, profile_img=make_image()), format='multipart')
    assert r2.status_code == 500
    assert r2.data['message'] == 'Failed to update patient profile.'
    # Both the replaced and the freshly stored blob are gone
    assert list((media_root / 'hms_files').glob('*')) == []
    assert Patient.objects.get(pk=data['id']).profile_img == old_path
    assert old_path in caplog.text
