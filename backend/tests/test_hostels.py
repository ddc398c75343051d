API = '/api/v1'


def _hostel_with_room(client, headers, capacity=1):
    hostel = client.post(f'{API}/hostels', json={'name': 'North Hall', 'type': 'boys'}, headers=headers).json()['data']
    r = client.post(f"{API}/hostels/{hostel['id']}/rooms", json={'room_no': '101', 'capacity': capacity},
                    headers=headers)
    assert r.status_code == 201, r.text
    return hostel, r.json()['data']


def _guest(client, headers, name='Guest'):
    return client.post(f'{API}/outside-users', json={'first_name': name}, headers=headers).json()['data']


def test_room_numbers_are_unique_per_hostel(client, auth_headers):
    hostel, _ = _hostel_with_room(client, auth_headers)
    r = client.post(f"{API}/hostels/{hostel['id']}/rooms", json={'room_no': '101'}, headers=auth_headers)
    assert r.status_code == 400


def test_allocation_respects_capacity(client, auth_headers, student):
    hostel, room = _hostel_with_room(client, auth_headers)
    body = {'owner_kind': 'student', 'owner_id': student['id'], 'hostel_id': hostel['id'], 'room_id': room['id'],
            'join_date': '2025-01-10'}
    r = client.post(f'{API}/hostel-members', json=body, headers=auth_headers)
    assert r.status_code == 201
    member = r.json()['data']
    assert member['room_no'] == '101'
    assert member['owner']['kind'] == 'student'

    guest = _guest(client, auth_headers)
    r = client.post(f'{API}/hostel-members', json={**body, 'owner_kind': 'outside_user', 'owner_id': guest['id']},
                    headers=auth_headers)
    assert r.status_code == 400
    assert r.json()['message'] == 'Room is full'

    occupancy = client.get(f"{API}/hostels/{hostel['id']}/occupancy", headers=auth_headers).json()['data']
    assert occupancy['total_beds'] == 1
    assert occupancy['occupied_beds'] == 1
    assert occupancy['available_beds'] == 0

    # rooms hold at least one bed; a hostel with residents cannot be deleted
    r = client.put(f"{API}/hostel-rooms/{room['id']}", json={'room_no': '101', 'capacity': 0}, headers=auth_headers)
    assert r.status_code == 422
    assert client.delete(f"{API}/hostels/{hostel['id']}", headers=auth_headers).status_code == 400

    r = client.post(f"{API}/hostel-members/{member['id']}/vacate", json={'leave_date': '2025-01-05'},
                    headers=auth_headers)
    assert r.status_code == 400
    r = client.post(f"{API}/hostel-members/{member['id']}/vacate", json={'leave_date': '2025-03-01'},
                    headers=auth_headers)
    assert r.json()['data']['status'] == 'inactive'
    r = client.post(f'{API}/hostel-members', json={**body, 'owner_kind': 'outside_user', 'owner_id': guest['id']},
                    headers=auth_headers)
    assert r.status_code == 201


def test_one_active_allocation_per_owner(client, auth_headers):
    hostel, room = _hostel_with_room(client, auth_headers, capacity=2)
    guest = _guest(client, auth_headers)
    body = {'owner_kind': 'outside_user', 'owner_id': guest['id'], 'hostel_id': hostel['id'], 'room_id': room['id']}
    assert client.post(f'{API}/hostel-members', json=body, headers=auth_headers).status_code == 201
    r = client.post(f'{API}/hostel-members', json=body, headers=auth_headers)
    assert r.status_code == 400


def test_room_types(client, auth_headers):
    r = client.post(f'{API}/hostel-room-types', json={'title': 'Single', 'fee': 120}, headers=auth_headers)
    assert r.status_code == 201
    assert client.post(f'{API}/hostel-room-types', json={'title': 'Single'}, headers=auth_headers).status_code == 400
    assert len(client.get(f'{API}/hostel-room-types', headers=auth_headers).json()['data']) == 1


def test_capacity_cannot_drop_below_occupancy(client, auth_headers):
    hostel, room = _hostel_with_room(client, auth_headers, capacity=2)
    for name in ('One', 'Two'):
        guest = _guest(client, auth_headers, name)
        client.post(f'{API}/hostel-members', json={'owner_kind': 'outside_user', 'owner_id': guest['id'],
                                                  'hostel_id': hostel['id'], 'room_id': room['id']},
                    headers=auth_headers)
    r = client.put(f"{API}/hostel-rooms/{room['id']}", json={'room_no': '101', 'capacity': 1}, headers=auth_headers)
    assert r.status_code == 400
    rooms = client.get(f"{API}/hostels/{hostel['id']}/rooms", headers=auth_headers).json()['data']
    assert rooms[0]['occupied_beds'] == 2
    assert rooms[0]['occupancy_rate'] == 100.0
