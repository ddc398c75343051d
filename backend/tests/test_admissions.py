import json
from datetime import date

API = '/api/v1'


def _apply(client, headers, academic, **extra):
    body = {'first_name': 'Alan', 'last_name': 'Turing', 'email': 'alan@example.com',
            'batch_id': academic['batch_id'], 'program_id': academic['program_id'], 'fee_amount': 500}
    body.update(extra)
    r = client.post(f'{API}/applications', json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def test_application_numbers_follow_the_year(client, auth_headers, academic):
    year = date.today().year
    first = _apply(client, auth_headers, academic)
    second = _apply(client, auth_headers, academic, email='joan@example.com', first_name='Joan')
    assert first['registration_no'] == f'APP{year}0001'
    assert second['registration_no'] == f'APP{year}0002'
    assert first['status'] == 'pending'
    assert first['full_name'] == 'Alan Turing'


def test_inactive_program_rejects_applications(client, auth_headers, academic):
    client.put(f"{API}/programs/{academic['program_id']}", json={'status': 'inactive'}, headers=auth_headers)
    body = {'first_name': 'Alan', 'batch_id': academic['batch_id'], 'program_id': academic['program_id']}
    r = client.post(f'{API}/applications', json=body, headers=auth_headers)
    assert r.status_code == 400


def test_approve_convert_to_student(client, auth_headers, academic):
    app = _apply(client, auth_headers, academic)
    convert = {'session_id': academic['session_id'], 'semester_id': academic['semester_id'],
               'section_id': academic['section_id']}
    # pending applications cannot be converted
    r = client.post(f"{API}/applications/{app['id']}/convert", json=convert, headers=auth_headers)
    assert r.status_code == 400

    r = client.post(f"{API}/applications/{app['id']}/approve", headers=auth_headers)
    assert r.json()['data']['status'] == 'approved'
    r = client.get(f'{API}/applications/ready', headers=auth_headers)
    assert r.json()['meta']['total'] == 1

    r = client.post(f"{API}/applications/{app['id']}/convert", json=convert, headers=auth_headers)
    assert r.status_code == 201
    student = r.json()['data']
    assert student['student_id'] == f'CS{date.today().year}0001'
    assert student['registration_no'] == app['registration_no']
    assert len(student['password']) == 8
    assert len(student['enrolls']) == 1
    assert student['enrolls'][0]['status'] == 'active'

    r = client.get(f"{API}/applications/{app['id']}", headers=auth_headers)
    assert r.json()['data']['status'] == 'admitted'
    # admitted applications are final
    assert client.post(f"{API}/applications/{app['id']}/reject", headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/applications/{app['id']}", headers=auth_headers).status_code == 400


def test_bulk_status_and_statistics(client, auth_headers, academic):
    ids = [_apply(client, auth_headers, academic, email=f'a{i}@example.com')['id'] for i in range(3)]
    r = client.post(f'{API}/applications/bulk-status', json={'ids': ids[:2], 'status': 'rejected'},
                    headers=auth_headers)
    assert r.json()['data'] == {'updated': 2}
    r = client.post(f'{API}/applications/bulk-status', json={'ids': ids, 'status': 'admitted'},
                    headers=auth_headers)
    assert r.status_code == 400

    stats = client.get(f'{API}/applications/statistics', headers=auth_headers).json()['data']
    assert stats['total'] == 3
    assert stats['rejected'] == 2
    assert stats['pending'] == 1
    assert stats['this_month'] == 3
    assert stats['approval_rate'] == 0.0


def test_list_filters_and_export(client, auth_headers, academic):
    _apply(client, auth_headers, academic)
    _apply(client, auth_headers, academic, first_name='Joan', last_name='Clarke', email='joan@example.com')
    r = client.get(f'{API}/applications?search=clarke', headers=auth_headers)
    assert [a['first_name'] for a in r.json()['data']] == ['Joan']
    r = client.get(f'{API}/applications?per_page=1&page=2', headers=auth_headers)
    assert r.json()['meta'] == {'total': 2, 'per_page': 1, 'current_page': 2, 'last_page': 2}

    r = client.get(f'{API}/applications/export', headers=auth_headers)
    assert r.status_code == 200
    assert r.headers['content-type'].startswith('text/csv')
    lines = r.text.strip().split('\n')
    assert lines[0].startswith('registration_no,full_name')
    assert len(lines) == 3


def test_import_applications_from_csv(client, auth_headers, academic):
    csv_body = ('First Name,Last Name,Email,Phone,Gender,Date of Birth,Program,Batch,Fee Amount,Payment Status\n'
                'Alan,Turing,alan@example.com,0123456,Male,1912-06-23,Computer Science,Batch 2025,500,paid\n'
                'Joan,Clarke,joan@example.com,,,,CS,Batch 2025,,unpaid\n'
                'Grace,Hopper,grace@example.com,,,,Mathematics,Batch 2025,,\n'
                'Alan,Turing,alan@example.com,,,,Computer Science,Batch 2025,,\n'
                'Nobody,,,,,,Computer Science,Batch 2025,,\n'
                'Kurt,Godel,kurt@example.com,,robot,,Computer Science,Batch 2025,,\n')
    r = client.post(f'{API}/applications/import', files={'file': ('applications.csv', csv_body.encode())},
                    headers=auth_headers)
    assert r.status_code == 200, r.text
    result = r.json()['data']
    assert (result['created'], result['skipped']) == (2, 1)
    assert [e['index'] for e in result['errors']] == [2, 4, 5]
    assert result['errors'][0]['error'] == 'unknown program: Mathematics'
    assert result['errors'][1]['error'] == 'missing email'
    assert result['errors'][2]['error'].startswith('gender')

    rows = client.get(f'{API}/applications?search=alan@example.com', headers=auth_headers).json()['data']
    assert len(rows) == 1
    alan = rows[0]
    assert alan['program_id'] == academic['program_id']
    assert alan['batch_id'] == academic['batch_id']
    assert (alan['phone'], alan['gender'], alan['dob']) == ('0123456', 'male', '1912-06-23')
    assert (alan['fee_amount'], alan['pay_status'], alan['status']) == (500.0, True, 'pending')
    assert alan['registration_no'].startswith('APP')


def test_import_applications_dry_run_and_closed_registration(client, auth_headers, academic):
    payload = json.dumps({'applications': [
        {'first_name': 'Ada', 'email': 'ada2@example.com', 'program': 'CS', 'batch': 'Batch 2025'},
        {'first_name': 'Ada', 'email': 'ada2@example.com', 'program': 'CS', 'batch': 'Batch 2025'},
    ]}).encode()
    r = client.post(f'{API}/applications/import?dry_run=true', files={'file': ('apps.json', payload)},
                    headers=auth_headers)
    assert r.json()['data'] == {'created': 1, 'skipped': 1, 'errors': []}
    assert client.get(f'{API}/applications', headers=auth_headers).json()['meta']['total'] == 0

    client.put(f"{API}/programs/{academic['program_id']}", json={'registration': False}, headers=auth_headers)
    r = client.post(f'{API}/applications/import?dry_run=true', files={'file': ('apps.json', payload)},
                    headers=auth_headers)
    errors = r.json()['data']['errors']
    assert [e['error'] for e in errors] == ['Registration is closed for this program'] * 2

    r = client.post(f'{API}/applications/import', files={'file': ('apps.xlsx', b'')}, headers=auth_headers)
    assert r.status_code == 400
