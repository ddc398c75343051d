API = '/api/v1'


def _category(client, headers, title='Tuition Fee'):
    r = client.post(f'{API}/fees-categories', json={'title': title}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def _fee(client, headers, student, category, amount=1000, due='2025-01-31'):
    r = client.post(f'{API}/fees', json={'student_enroll_id': student['enroll_id'], 'category_id': category['id'],
                                        'fee_amount': amount, 'assign_date': '2025-01-01', 'due_date': due},
                    headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def test_pay_applies_discount_and_fine(client, auth_headers, student):
    category = _category(client, auth_headers)
    orphan = client.post(f'{API}/status-types', json={'title': 'Orphan'}, headers=auth_headers).json()['data']
    client.put(f"{API}/students/{student['id']}/status-types", json={'ids': [orphan['id']]}, headers=auth_headers)
    r = client.post(f'{API}/fees-discounts', json={'title': 'Orphan relief', 'amount': 10, 'type': 'percentage',
                                                  'category_ids': [category['id']],
                                                  'status_type_ids': [orphan['id']]}, headers=auth_headers)
    assert r.status_code == 201
    r = client.post(f'{API}/fees-fines', json={'start_day': 1, 'end_day': 30, 'amount': 50,
                                              'category_ids': [category['id']]}, headers=auth_headers)
    assert r.status_code == 201

    fee = _fee(client, auth_headers, student, category)
    r = client.post(f"{API}/fees/{fee['id']}/pay", json={'amount': 500, 'pay_date': '2025-02-10'},
                    headers=auth_headers)
    assert r.status_code == 200, r.text
    paid = r.json()['data']
    assert paid['discount_amount'] == 100.0
    assert paid['fine_amount'] == 50.0
    assert paid['net_amount'] == 950.0
    assert paid['status'] == 'partial'
    assert paid['pay_date'].startswith('2025-02-10')
    assert paid['remaining_amount'] == 450.0

    r = client.post(f"{API}/fees/{fee['id']}/pay", json={'amount': 1000, 'pay_date': '2025-02-10'},
                    headers=auth_headers)
    assert r.status_code == 400

    r = client.post(f"{API}/fees/{fee['id']}/pay", json={'pay_date': '2025-02-10', 'payment_method': 'bank'},
                    headers=auth_headers)
    settled = r.json()['data']
    assert settled['status'] == 'paid'
    assert settled['payment_percentage'] == 100.0
    assert client.post(f"{API}/fees/{fee['id']}/pay", json={}, headers=auth_headers).status_code == 400

    r = client.get(f"{API}/transactions?owner_kind=student&owner_id={student['id']}", headers=auth_headers)
    txns = r.json()['data']
    assert [t['transaction_no'] for t in txns] == ['TXN202502100002', 'TXN202502100001']
    assert txns[0]['owner']['student_id'] == student['student_id']
    assert sum(t['amount'] for t in txns) == 950.0

    _fee(client, auth_headers, student, category, due='2025-03-31')
    r = client.get(f'{API}/fees?paid=true', headers=auth_headers)
    assert [f['id'] for f in r.json()['data']] == [fee['id']]
    assert client.get(f'{API}/fees?paid=false', headers=auth_headers).json()['meta']['total'] == 1

    # paid fees are locked
    assert client.put(f"{API}/fees/{fee['id']}", json={'note': 'x'}, headers=auth_headers).status_code == 400
    assert client.delete(f"{API}/fees/{fee['id']}", headers=auth_headers).status_code == 400


def test_discount_needs_matching_status_type(client, auth_headers, student):
    category = _category(client, auth_headers)
    sibling = client.post(f'{API}/status-types', json={'title': 'Sibling'}, headers=auth_headers).json()['data']
    client.post(f'{API}/fees-discounts', json={'title': 'Sibling', 'amount': 200, 'category_ids': [category['id']],
                                              'status_type_ids': [sibling['id']]}, headers=auth_headers)
    fee = _fee(client, auth_headers, student, category, due='2099-01-01')
    r = client.post(f"{API}/fees/{fee['id']}/pay", json={'pay_date': '2025-01-10'}, headers=auth_headers)
    data = r.json()['data']
    assert data['discount_amount'] == 0.0
    assert data['paid_amount'] == 1000.0
    assert client.get(f"{API}/students/{student['id']}/discounts", headers=auth_headers).json()['data'] == []


def test_fees_master_assigns_once(client, auth_headers, academic, student):
    category = _category(client, auth_headers)
    r = client.post(f'{API}/fees-masters', json={'category_id': category['id'], 'program_id': academic['program_id'],
                                                'amount': 300, 'assign_date': '2025-01-01',
                                                'due_date': '2025-02-01'}, headers=auth_headers)
    assert r.status_code == 201
    master = r.json()['data']
    r = client.post(f"{API}/fees-masters/{master['id']}/assign", headers=auth_headers)
    assert r.json()['data'] == {'fees_master_id': master['id'], 'created': 1, 'skipped': 0}
    r = client.post(f"{API}/fees-masters/{master['id']}/assign", headers=auth_headers)
    assert r.json()['data']['skipped'] == 1
    fees = client.get(f"{API}/students/{student['id']}/fees", headers=auth_headers).json()['data']
    assert len(fees) == 1
    assert fees[0]['category']['title'] == 'Tuition Fee'

    r = client.post(f'{API}/fees-masters', json={'category_id': category['id'], 'amount': 300,
                                                'assign_date': '2025-02-01', 'due_date': '2025-01-01'},
                    headers=auth_headers)
    assert r.status_code == 400


def test_overdue_upcoming_and_statistics(client, auth_headers, student):
    category = _category(client, auth_headers)
    _fee(client, auth_headers, student, category, due='2020-01-31')
    _fee(client, auth_headers, student, category, amount=400, due='2099-12-31')
    overdue = client.get(f'{API}/fees/overdue', headers=auth_headers).json()
    assert overdue['meta']['total'] == 1
    assert overdue['data'][0]['is_overdue'] is True
    assert overdue['data'][0]['student_enroll']['student']['id'] == student['id']
    assert client.get(f'{API}/fees/upcoming?days=30', headers=auth_headers).json()['data'] == []

    stats = client.get(f'{API}/fees/statistics', headers=auth_headers).json()['data']
    assert stats['total'] == 2
    assert stats['unpaid'] == 2
    assert stats['overdue'] == 1
    assert stats['outstanding_amount'] == 1400.0
    assert stats['collection_rate'] == 0.0


def test_fee_setup_validation(client, auth_headers):
    category = _category(client, auth_headers)
    assert client.post(f'{API}/fees-categories', json={'title': 'Tuition Fee'}, headers=auth_headers).status_code == 400
    r = client.post(f'{API}/fees-discounts', json={'title': 'Too much', 'amount': 150, 'type': 'percentage'},
                    headers=auth_headers)
    assert r.status_code == 422
    r = client.post(f'{API}/fees-fines', json={'start_day': 10, 'end_day': 5, 'amount': 5}, headers=auth_headers)
    assert r.status_code == 422
    fine = client.post(f'{API}/fees-fines', json={'start_day': 1, 'end_day': 5, 'amount': 5,
                                                 'category_ids': [category['id']]}, headers=auth_headers).json()['data']
    r = client.put(f"{API}/fees-fines/{fine['id']}/status?active=false", headers=auth_headers)
    assert r.json()['data']['status'] is False
