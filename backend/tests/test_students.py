import json

API = '/api/v1'


def test_create_student_directly(client, auth_headers, academic, student):
    assert student['student_id'].startswith('CS')
    assert 'password_hash' not in student
    r = client.post(f'{API}/students', json={'first_name': 'Other', 'email': 'ada@example.com',
                                             'batch_id': academic['batch_id'],
                                             'program_id': academic['program_id']}, headers=auth_headers)
    assert r.status_code == 400


def test_enrolment_history(client, auth_headers, academic, student):
    r = client.get(f"{API}/students/{student['id']}/enrolls/current", headers=auth_headers)
    assert r.json()['data']['id'] == student['enroll_id']

    sem2 = client.post(f'{API}/semesters', json={'name': 'Second Semester'}, headers=auth_headers).json()['data']
    r = client.post(f"{API}/students/{student['id']}/enroll", json={
        'program_id': academic['program_id'], 'session_id': academic['session_id'], 'semester_id': sem2['id']},
        headers=auth_headers)
    assert r.status_code == 201
    history = client.get(f"{API}/students/{student['id']}/enrolls", headers=auth_headers).json()['data']
    assert [e['status'] for e in history] == ['inactive', 'active']
    first = client.get(f"{API}/students/{student['id']}/enrolls/first", headers=auth_headers).json()['data']
    last = client.get(f"{API}/students/{student['id']}/enrolls/last", headers=auth_headers).json()['data']
    assert (first['id'], last['id']) == (student['enroll_id'], history[-1]['id'])
    assert client.get(f"{API}/students/{student['id']}/enrolls/next", headers=auth_headers).status_code == 422

    # same placement twice is refused
    r = client.post(f"{API}/students/{student['id']}/enroll", json={
        'program_id': academic['program_id'], 'session_id': academic['session_id'], 'semester_id': sem2['id']},
        headers=auth_headers)
    assert r.status_code == 400


def test_transfer_and_status_types(client, auth_headers, academic, student):
    other = client.post(f'{API}/programs', json={'faculty_id': academic['faculty_id'], 'title': 'Mathematics'},
                        headers=auth_headers).json()['data']
    r = client.post(f"{API}/students/{student['id']}/transfer", json={'program_id': other['id']},
                    headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['data']['is_transfer'] is True
    assert r.json()['data']['program']['title'] == 'Mathematics'

    st = client.post(f'{API}/status-types', json={'title': 'Orphan'}, headers=auth_headers).json()['data']
    r = client.put(f"{API}/students/{student['id']}/status-types", json={'ids': [st['id']]}, headers=auth_headers)
    assert [s['title'] for s in r.json()['data']['status_types']] == ['Orphan']


def test_delete_requires_inactive_student_without_records(client, auth_headers, student):
    r = client.delete(f"{API}/students/{student['id']}", headers=auth_headers)
    assert r.status_code == 400
    client.post(f"{API}/students/{student['id']}/deactivate", headers=auth_headers)
    client.post(f'{API}/notes', json={'owner_kind': 'student', 'owner_id': student['id'], 'title': 'Call parent'},
                headers=auth_headers)
    r = client.delete(f"{API}/students/{student['id']}", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()['message'] == 'Cannot delete student with attached records.'


def test_delete_inactive_student(client, auth_headers, student):
    client.post(f"{API}/students/{student['id']}/deactivate", headers=auth_headers)
    r = client.delete(f"{API}/students/{student['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert client.get(f"{API}/students/{student['id']}", headers=auth_headers).status_code == 404


def test_statistics_and_outside_users(client, auth_headers, student):
    stats = client.get(f'{API}/students/statistics', headers=auth_headers).json()['data']
    assert stats['total'] == 1
    assert stats['by_program'] == {'Computer Science': 1}
    r = client.post(f'{API}/outside-users', json={'first_name': 'Visiting', 'last_name': 'Scholar'},
                    headers=auth_headers)
    assert r.status_code == 201
    assert r.json()['data']['full_name'] == 'Visiting Scholar'
    r = client.get(f'{API}/students/export', headers=auth_headers)
    assert 'Ada Lovelace' in r.text


def test_import_students_skips_existing_emails(client, auth_headers, academic, student):
    payload = json.dumps({'students': [
        {'first_name': 'Ada', 'email': 'ada@example.com', 'program': 'Computer Science', 'batch': 'Batch 2025'},
        {'First Name': 'Charles', 'Last Name': 'Babbage', 'email': 'charles@example.com', 'mobile': 4471234,
         'program': 'CS', 'batch': 'Batch 2025', 'admission_date': '2025-09-01'},
        {'first_name': 'Mary', 'email': 'mary@example.com', 'program': 'CS', 'batch': 'Batch 1900'},
        {'email': 'nameless@example.com', 'program_id': academic['program_id'], 'batch_id': academic['batch_id']},
    ]}).encode()
    r = client.post(f'{API}/students/import?dry_run=true', files={'file': ('students.json', payload)},
                    headers=auth_headers)
    assert r.json()['data']['created'] == 1
    assert client.get(f'{API}/students', headers=auth_headers).json()['meta']['total'] == 1

    r = client.post(f'{API}/students/import', files={'file': ('students.json', payload)}, headers=auth_headers)
    assert r.status_code == 200, r.text
    result = r.json()['data']
    assert (result['created'], result['skipped']) == (1, 1)
    assert result['errors'][0] == {'index': 2, 'error': 'unknown batch: Batch 1900'}
    assert result['errors'][1]['index'] == 3
    assert result['errors'][1]['error'].startswith('first_name')

    rows = client.get(f'{API}/students?search=charles@example.com', headers=auth_headers).json()['data']
    assert len(rows) == 1
    assert rows[0]['student_id'].startswith('CS2025')
    assert rows[0]['phone'] == '4471234'
    assert rows[0]['status'] == 'active'
    # importing the same file again creates nothing
    again = client.post(f'{API}/students/import', files={'file': ('students.json', payload)},
                        headers=auth_headers).json()['data']
    assert (again['created'], again['skipped']) == (0, 2)
