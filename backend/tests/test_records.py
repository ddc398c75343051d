API = '/api/v1'


def test_notes_for_owner(client, auth_headers, student):
    r = client.post(f'{API}/notes', json={'owner_kind': 'student', 'owner_id': student['id'],
                                          'title': 'Scholarship', 'content': 'Eligible from spring'},
                    headers=auth_headers)
    assert r.status_code == 201
    note = r.json()['data']
    assert note['owner']['student_id'] == student['student_id']

    r = client.put(f"{API}/notes/{note['id']}", json={'content': 'Approved'}, headers=auth_headers)
    assert r.json()['data']['content'] == 'Approved'
    assert r.json()['data']['title'] == 'Scholarship'

    r = client.get(f"{API}/notes?owner_kind=student&owner_id={student['id']}", headers=auth_headers)
    assert r.json()['meta']['total'] == 1
    assert client.get(f'{API}/notes?owner_kind=student&owner_id=999', headers=auth_headers).json()['data'] == []

    r = client.post(f'{API}/notes', json={'owner_kind': 'student', 'owner_id': 999, 'title': 'x'},
                    headers=auth_headers)
    assert r.status_code == 404
    assert client.delete(f"{API}/notes/{note['id']}", headers=auth_headers).status_code == 200


def test_documents_shared_between_owners(client, auth_headers, student):
    me = client.get(f'{API}/auth/me', headers=auth_headers).json()['data']
    r = client.post(f'{API}/documents', json={'title': 'Transcript', 'file_path': 'docs/transcript.pdf',
                                              'owners': [{'owner_kind': 'student', 'owner_id': student['id']}]},
                    headers=auth_headers)
    assert r.status_code == 201
    doc = r.json()['data']
    assert len(doc['owners']) == 1

    r = client.post(f"{API}/documents/{doc['id']}/owners", json=[{'owner_kind': 'user', 'owner_id': me['id']}],
                    headers=auth_headers)
    assert len(r.json()['data']['owners']) == 2

    r = client.get(f"{API}/documents?owner_kind=user&owner_id={me['id']}", headers=auth_headers)
    assert [d['id'] for d in r.json()['data']] == [doc['id']]

    r = client.delete(f"{API}/documents/{doc['id']}/owners/user/{me['id']}", headers=auth_headers)
    assert [o['kind'] for o in r.json()['data']['owners']] == ['student']
    assert client.get(f"{API}/documents?owner_kind=user&owner_id={me['id']}",
                      headers=auth_headers).json()['data'] == []
    assert client.delete(f"{API}/documents/{doc['id']}", headers=auth_headers).status_code == 200


def test_transport_membership(client, auth_headers, student):
    route = client.post(f'{API}/transport-routes', json={'title': 'North Loop', 'fare': 25},
                        headers=auth_headers).json()['data']
    body = {'owner_kind': 'student', 'owner_id': student['id'], 'route_id': route['id'],
            'start_date': '2025-01-10'}
    r = client.post(f'{API}/transport-members', json=body, headers=auth_headers)
    assert r.status_code == 201
    member = r.json()['data']
    assert member['route'] == 'North Loop'

    # one active route per owner
    assert client.post(f'{API}/transport-members', json=body, headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/transport-routes/{route['id']}", headers=auth_headers).status_code == 400

    assert client.post(f"{API}/transport-members/{member['id']}/end?end_date=2025-01-01",
                       headers=auth_headers).status_code == 400
    r = client.post(f"{API}/transport-members/{member['id']}/end?end_date=2025-06-30", headers=auth_headers)
    assert r.json()['data']['status'] == 'inactive'
    assert client.post(f"{API}/transport-members/{member['id']}/end", headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/transport-routes/{route['id']}", headers=auth_headers).status_code == 200


def test_inactive_route_takes_no_members(client, auth_headers, student):
    route = client.post(f'{API}/transport-routes', json={'title': 'South Loop'}, headers=auth_headers).json()['data']
    r = client.put(f"{API}/transport-routes/{route['id']}", json={'status': 'inactive'}, headers=auth_headers)
    assert r.json()['data']['status'] == 'inactive'
    r = client.post(f'{API}/transport-members', json={'owner_kind': 'student', 'owner_id': student['id'],
                                                      'route_id': route['id']}, headers=auth_headers)
    assert r.status_code == 400
    assert client.post(f'{API}/transport-routes', json={'title': 'South Loop'},
                       headers=auth_headers).status_code == 400


def test_owner_record_counts(client, auth_headers, student):
    client.post(f'{API}/notes', json={'owner_kind': 'student', 'owner_id': student['id'], 'title': 'A'},
                headers=auth_headers)
    client.post(f'{API}/notes', json={'owner_kind': 'student', 'owner_id': student['id'], 'title': 'B'},
                headers=auth_headers)
    r = client.get(f"{API}/owners/student/{student['id']}/records", headers=auth_headers)
    counts = r.json()['data']
    assert counts['notes'] == 2
    assert counts['transport_members'] == 0
    assert client.get(f'{API}/owners/student/999/records', headers=auth_headers).status_code == 404
