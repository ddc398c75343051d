from datetime import date

from campusdesk.services import NoticeService

API = '/api/v1'


def _notice(client, headers, title='Exam schedule', **extra):
    r = client.post(f'{API}/notices', json={'title': title, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def test_notice_numbers_and_default_unpublished(client, auth_headers):
    r = client.post(f'{API}/notice-categories', json={'title': 'Exams'}, headers=auth_headers)
    category = r.json()['data']
    first = _notice(client, auth_headers, category_id=category['id'], notice_date='2025-02-01')
    second = _notice(client, auth_headers, 'Holiday', notice_date='2025-06-01')
    assert first['notice_no'] == 'NTC20250001'
    assert second['notice_no'] == 'NTC20250002'
    assert first['status'] == 'inactive'
    assert first['is_published'] is False
    assert first['category']['title'] == 'Exams'

    today = _notice(client, auth_headers, 'Sports day')
    assert today['notice_date'] == date.today().isoformat()

    r = client.post(f'{API}/notice-categories', json={'title': 'Exams'}, headers=auth_headers)
    assert r.status_code == 400


def test_public_listing_and_publish(client, auth_headers):
    notice = _notice(client, auth_headers, notice_date='2025-02-01')
    r = client.get(f'{API}/notices?status=active')
    assert r.status_code == 200
    assert r.json()['meta']['total'] == 0

    r = client.post(f"{API}/notices/{notice['id']}/publish", headers=auth_headers)
    assert r.json()['data']['is_published'] is True
    r = client.get(f'{API}/notices?status=active&search=exam')
    assert [n['id'] for n in r.json()['data']] == [notice['id']]

    client.post(f"{API}/notices/{notice['id']}/unpublish", headers=auth_headers)
    assert client.get(f'{API}/notices?status=active').json()['meta']['total'] == 0

    # single notices and writes still need a token
    assert client.get(f"{API}/notices/{notice['id']}").status_code in (401, 403)
    assert client.post(f'{API}/notices', json={'title': 'x'}).status_code in (401, 403)


def test_update_and_delete(client, auth_headers):
    notice = _notice(client, auth_headers)
    r = client.put(f"{API}/notices/{notice['id']}", json={'title': 'Revised exam schedule'}, headers=auth_headers)
    assert r.json()['data']['title'] == 'Revised exam schedule'
    assert r.json()['data']['notice_no'] == notice['notice_no']
    assert client.delete(f"{API}/notices/{notice['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"{API}/notices/{notice['id']}", headers=auth_headers).status_code == 404


def test_audience_and_owner_notices(client, auth_headers, student):
    me = client.get(f'{API}/auth/me', headers=auth_headers).json()['data']
    notice = _notice(client, auth_headers, audience=[{'owner_kind': 'student', 'owner_id': student['id']}])
    assert notice['audience'][0]['student_id'] == student['student_id']

    r = client.post(f"{API}/notices/{notice['id']}/audience",
                    json=[{'owner_kind': 'user', 'owner_id': me['id']},
                          {'owner_kind': 'student', 'owner_id': student['id']}], headers=auth_headers)
    audience = r.json()['data']['audience']
    assert sorted(a['kind'] for a in audience) == ['student', 'user']

    url = f"{API}/owners/student/{student['id']}/notices"
    # unpublished notices are not shown to their audience
    assert client.get(url, headers=auth_headers).json()['data'] == []
    client.post(f"{API}/notices/{notice['id']}/publish", headers=auth_headers)
    assert [n['id'] for n in client.get(url, headers=auth_headers).json()['data']] == [notice['id']]

    r = client.delete(f"{API}/notices/{notice['id']}/audience/student/{student['id']}", headers=auth_headers)
    assert [a['kind'] for a in r.json()['data']['audience']] == ['user']
    assert client.get(url, headers=auth_headers).json()['data'] == []


def test_audience_owner_must_exist(client, auth_headers):
    notice = _notice(client, auth_headers)
    r = client.post(f"{API}/notices/{notice['id']}/audience", json=[{'owner_kind': 'student', 'owner_id': 99}],
                    headers=auth_headers)
    assert r.status_code == 404
    r = client.get(f'{API}/owners/robot/1/notices', headers=auth_headers)
    assert r.status_code == 422


def test_publish_due_drafts(client, auth_headers):
    past = _notice(client, auth_headers, 'Exam schedule', notice_date='2025-01-15')
    _notice(client, auth_headers, 'Convocation', notice_date='2025-06-01')
    live = _notice(client, auth_headers, 'Library hours', notice_date='2025-01-01')
    client.post(f"{API}/notices/{live['id']}/publish", headers=auth_headers)

    r = client.post(f'{API}/notices/publish-due?on=2025-01-15&dry_run=true', headers=auth_headers)
    assert [n['id'] for n in r.json()['data']] == [past['id']]
    assert client.get(f'{API}/notices?status=active').json()['meta']['total'] == 1

    r = client.post(f'{API}/notices/publish-due?on=2025-01-15', headers=auth_headers)
    assert r.status_code == 200
    assert [n['is_published'] for n in r.json()['data']] == [True]
    r = client.get(f'{API}/notices?status=active')
    assert sorted(n['title'] for n in r.json()['data']) == ['Exam schedule', 'Library hours']
    # nothing left to publish for that day
    assert client.post(f'{API}/notices/publish-due?on=2025-01-15', headers=auth_headers).json()['data'] == []
    assert client.post(f'{API}/notices/publish-due').status_code in (401, 403)


def test_publish_due_service_defaults_to_today(client, auth_headers, session):
    _notice(client, auth_headers, 'Sports day')
    _notice(client, auth_headers, 'Next year', notice_date='2099-01-01')
    due = NoticeService(session).publish_due()
    assert [n.title for n in due] == ['Sports day']
    assert due[0].status == 'active'
