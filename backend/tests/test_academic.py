API = '/api/v1'


def test_catalogue_is_public_but_writes_need_a_token(client, academic):
    r = client.get(f'{API}/faculties')
    assert r.status_code == 200
    body = r.json()
    assert body['meta']['total'] == 1
    assert body['data'][0]['slug'] == 'faculty-of-science'
    assert client.get(f'{API}/programs').status_code == 200
    assert client.get(f'{API}/batches').status_code == 200
    assert client.get(f'{API}/semesters').status_code in (401, 403)
    assert client.post(f'{API}/faculties', json={'name': 'Arts'}).status_code in (401, 403)


def test_slugs_are_unique(client, auth_headers):
    slugs = []
    for _ in range(3):
        r = client.post(f'{API}/faculties', json={'name': 'Faculty of Arts'}, headers=auth_headers)
        slugs.append(r.json()['data']['slug'])
    assert slugs == ['faculty-of-arts', 'faculty-of-arts-2', 'faculty-of-arts-3']


def test_program_links_and_filters(client, auth_headers, academic):
    r = client.get(f"{API}/programs/{academic['program_id']}?include=faculty,sessions,semesters")
    data = r.json()['data']
    assert data['faculty']['id'] == academic['faculty_id']
    assert [s['id'] for s in data['sessions']] == [academic['session_id']]

    r = client.post(f"{API}/programs/{academic['program_id']}/batches/attach",
                    json={'ids': [academic['batch_id']]}, headers=auth_headers)
    assert r.status_code == 200
    assert [b['id'] for b in r.json()['data']['batches']] == [academic['batch_id']]
    r = client.post(f"{API}/programs/{academic['program_id']}/batches/detach",
                    json={'ids': [academic['batch_id']]}, headers=auth_headers)
    assert r.json()['data']['batches'] == []

    r = client.get(f"{API}/programs?faculty_id={academic['faculty_id']}")
    assert r.json()['meta']['total'] == 1
    r = client.get(f"{API}/programs?faculty_id=999")
    assert r.json()['meta']['total'] == 0

    client.post(f'{API}/programs', json={'faculty_id': academic['faculty_id'], 'title': 'Physics',
                                         'shortcode': 'PHY', 'registration': False}, headers=auth_headers)
    assert client.get(f'{API}/programs').json()['meta']['total'] == 2
    r = client.get(f'{API}/programs?registration_open=true')
    assert [p['title'] for p in r.json()['data']] == ['Computer Science']


def test_current_session_is_exclusive(client, auth_headers, academic):
    r = client.post(f'{API}/sessions', json={'name': '2026-2027'}, headers=auth_headers)
    new_id = r.json()['data']['id']
    r = client.post(f'{API}/sessions/{new_id}/current', headers=auth_headers)
    assert r.json()['data']['is_current'] is True
    r = client.get(f'{API}/academic/current')
    assert r.json()['data']['session']['id'] == new_id
    old = client.get(f"{API}/sessions/{academic['session_id']}", headers=auth_headers).json()['data']
    assert old['is_current'] is False


def test_inactive_current_is_refused_without_saving(client, auth_headers):
    r = client.post(f'{API}/sessions', json={'name': 'S-X', 'is_current': True, 'status': 'inactive'},
                    headers=auth_headers)
    assert r.status_code == 400
    assert client.get(f'{API}/sessions', headers=auth_headers).json()['meta']['total'] == 0
    r = client.post(f'{API}/semesters', json={'name': 'Sem-X', 'is_current': True, 'status': 'inactive'},
                    headers=auth_headers)
    assert r.status_code == 400
    assert client.get(f'{API}/semesters', headers=auth_headers).json()['meta']['total'] == 0


def test_bulk_status_and_delete_guard(client, auth_headers, academic):
    r = client.post(f'{API}/sections/bulk-status', json={'ids': [academic['section_id']], 'status': 'inactive'},
                    headers=auth_headers)
    assert r.json()['data'] == {'updated': 1}
    # a faculty with programs cannot be deleted
    r = client.delete(f"{API}/faculties/{academic['faculty_id']}", headers=auth_headers)
    assert r.status_code == 400
    r = client.delete(f'{API}/faculties/999', headers=auth_headers)
    assert r.status_code == 404
    assert r.json()['success'] is False


def test_allocations_and_statistics(client, auth_headers, academic):
    body = {k: academic[k] for k in ('program_id', 'semester_id', 'section_id')}
    r = client.post(f'{API}/allocations', json=body, headers=auth_headers)
    assert r.status_code == 201
    assert r.json()['data']['section'] == 'A'
    assert client.post(f'{API}/allocations', json=body, headers=auth_headers).status_code == 400
    r = client.get(f'{API}/academic/statistics', headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['data']['faculties']['total'] == 1


def test_subject_codes_are_unique(client, auth_headers):
    body = {'title': 'Algorithms', 'code': 'CS201', 'credit_hour': 3}
    assert client.post(f'{API}/subjects', json=body, headers=auth_headers).status_code == 201
    r = client.post(f'{API}/subjects', json=body, headers=auth_headers)
    assert r.status_code == 400


def test_subject_display_flags(client, auth_headers):
    body = {'title': 'Networks Lab', 'code': 'CS310', 'subject_type': 'elective', 'class_type': 'both'}
    data = client.post(f'{API}/subjects', json=body, headers=auth_headers).json()['data']
    assert data['class_type_text'] == 'Theory & Practical'
    assert (data['includes_theory'], data['includes_practical'], data['is_required']) == (True, True, False)
