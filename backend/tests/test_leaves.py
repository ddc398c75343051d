API = '/api/v1'


def _type(client, headers, title, limit=0):
    r = client.post(f'{API}/leave-types', json={'title': title, 'limit': limit}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def _apply(client, headers, type_id, start, end, **extra):
    return client.post(f'{API}/leaves', json={'type_id': type_id, 'from_date': start, 'to_date': end, **extra},
                       headers=headers)


def test_leave_type_slugs(client, auth_headers):
    first = _type(client, auth_headers, 'Sick Leave', limit=5)
    second = _type(client, auth_headers, 'Sick Leave')
    assert (first['slug'], second['slug']) == ('sick-leave', 'sick-leave-2')
    r = client.put(f"{API}/leave-types/{second['id']}", json={'title': 'Casual Leave'}, headers=auth_headers)
    assert r.json()['data']['slug'] == 'casual-leave'


def test_apply_review_and_limits(client, auth_headers):
    sick = _type(client, auth_headers, 'Sick Leave', limit=5)
    r = _apply(client, auth_headers, sick['id'], '2025-03-01', '2025-03-03')
    assert r.status_code == 201
    leave = r.json()['data']
    assert leave['status'] is None
    assert leave['status_text'] == 'Pending'
    assert leave['leave_days'] == 3

    # overlapping pending leave blocks a new application
    assert _apply(client, auth_headers, sick['id'], '2025-03-03', '2025-03-04').status_code == 400

    r = client.post(f"{API}/leaves/{leave['id']}/review", json={'approved': True, 'note': 'get well'},
                    headers=auth_headers)
    assert r.json()['data']['status_text'] == 'Approved'
    assert client.post(f"{API}/leaves/{leave['id']}/review", json={'approved': False},
                       headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/leaves/{leave['id']}", headers=auth_headers).status_code == 400

    # 3 approved days + 3 more exceeds the limit of 5
    r = _apply(client, auth_headers, sick['id'], '2025-03-10', '2025-03-12')
    assert r.status_code == 400
    assert 'limit' in r.json()['message']
    assert _apply(client, auth_headers, sick['id'], '2025-03-10', '2025-03-11').status_code == 201

    r = client.get(f'{API}/leaves?status=approved', headers=auth_headers)
    assert r.json()['meta']['total'] == 1
    assert r.json()['data'][0]['user']['username'] == 'registrar'


def test_rejected_leave_does_not_block(client, auth_headers):
    casual = _type(client, auth_headers, 'Casual Leave')
    leave = _apply(client, auth_headers, casual['id'], '2025-05-01', '2025-05-02').json()['data']
    client.post(f"{API}/leaves/{leave['id']}/review", json={'approved': False}, headers=auth_headers)
    assert _apply(client, auth_headers, casual['id'], '2025-05-01', '2025-05-02').status_code == 201
    # pending and rejected leaves can be deleted
    assert client.delete(f"{API}/leaves/{leave['id']}", headers=auth_headers).status_code == 200


def test_inactive_type_and_type_delete_guard(client, auth_headers):
    r = client.post(f'{API}/leave-types', json={'title': 'Sabbatical', 'status': False}, headers=auth_headers)
    off = r.json()['data']
    assert _apply(client, auth_headers, off['id'], '2025-01-01', '2025-01-01').status_code == 400
    assert len(client.get(f'{API}/leave-types?status=true', headers=auth_headers).json()['data']) == 0

    casual = _type(client, auth_headers, 'Casual Leave')
    _apply(client, auth_headers, casual['id'], '2025-01-01', '2025-01-01')
    assert client.delete(f"{API}/leave-types/{casual['id']}", headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/leave-types/{off['id']}", headers=auth_headers).status_code == 200


def test_monthly_paid_and_unpaid_days(client, auth_headers):
    me = client.get(f'{API}/auth/me', headers=auth_headers).json()['data']
    paid = _type(client, auth_headers, 'Annual Leave')
    unpaid = _type(client, auth_headers, 'Unpaid Leave')
    for type_id, start, end, pay_type in ((paid['id'], '2025-03-03', '2025-03-05', 1),
                                          (unpaid['id'], '2025-03-30', '2025-04-02', 2),
                                          (paid['id'], '2025-03-20', '2025-03-20', 1)):
        leave = _apply(client, auth_headers, type_id, start, end, pay_type=pay_type).json()['data']
        if start != '2025-03-20':
            client.post(f"{API}/leaves/{leave['id']}/review", json={'approved': True}, headers=auth_headers)

    r = client.get(f"{API}/leaves/summary?user_id={me['id']}&year=2025&month=3", headers=auth_headers)
    assert r.json()['data'] == {'user_id': me['id'], 'year': 2025, 'month': 3,
                                'paid_leave': 3, 'unpaid_leave': 2, 'total': 5}
    april = client.get(f"{API}/leaves/summary?user_id={me['id']}&year=2025&month=4", headers=auth_headers)
    assert april.json()['data']['unpaid_leave'] == 2
    assert client.get(f"{API}/leaves/summary?user_id={me['id']}&year=2025&month=13",
                      headers=auth_headers).status_code == 422


def test_student_leaves(client, auth_headers, student):
    r = client.post(f'{API}/student-leaves', json={'student_id': student['id'], 'reason': 'Family event',
                                                  'start_date': '2025-04-01', 'end_date': '2025-04-03'},
                    headers=auth_headers)
    assert r.status_code == 201
    row = r.json()['data']
    assert row['status'] == 'pending'
    assert row['leave_days'] == 3

    r = client.post(f"{API}/student-leaves/{row['id']}/review", json={'status': 'approved'}, headers=auth_headers)
    assert r.json()['data']['status_text'] == 'Approved'
    r = client.post(f"{API}/student-leaves/{row['id']}/review", json={'status': 'admitted'}, headers=auth_headers)
    assert r.status_code == 400
    r = client.get(f"{API}/student-leaves?student_id={student['id']}", headers=auth_headers)
    assert r.json()['meta']['total'] == 1

    r = client.post(f'{API}/student-leaves', json={'student_id': student['id'], 'start_date': '2025-04-03',
                                                  'end_date': '2025-04-01'}, headers=auth_headers)
    assert r.status_code == 422
