API = '/api/v1'


def test_enum_options_are_public(client):
    r = client.get(f'{API}/enums')
    assert r.status_code == 200
    data = r.json()['data']
    assert {'value': 'user', 'label': 'Staff'} in data['owner_kind']
    assert data['pay_type'] == [{'value': 1, 'label': 'Paid'}, {'value': 2, 'label': 'Unpaid'}]

    rooms = {o['value']: o for o in client.get(f'{API}/enums/room_type').json()['data']}
    assert rooms['auditorium']['lectures'] and rooms['auditorium']['large_groups']
    assert not rooms['conference']['practical']
    degrees = {o['value']: o for o in client.get(f'{API}/enums/degree_type').json()['data']}
    assert degrees['phd']['label'] == 'PhD'
    assert degrees['diploma']['is_undergraduate'] is True
    subjects = {o['value']: o for o in client.get(f'{API}/enums/subject_type').json()['data']}
    assert subjects['elective']['is_optional'] is True


def test_unknown_enum(client):
    r = client.get(f'{API}/enums/colour')
    assert r.status_code == 404
    assert r.json() == {'success': False, 'message': 'Unknown enum: colour', 'errors': None}


def test_system_stats(client, auth_headers, student):
    assert client.get(f'{API}/system/stats').status_code in (401, 403)
    stats = client.get(f'{API}/system/stats', headers=auth_headers).json()['data']
    assert stats['users'] == 1
    assert stats['students'] == stats['active_students'] == 1
    assert stats['programs'] == 1
    assert stats['issued_books'] == 0
