import json

API = '/api/v1'


def _book(client, headers, isbn='9780132350884', quantity=2, **extra):
    body = {'title': 'Clean Code', 'author': 'Robert C. Martin', 'isbn': isbn, 'quantity': quantity}
    body.update(extra)
    r = client.post(f'{API}/books', json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def _member(client, headers, student_id):
    r = client.post(f'{API}/library-members', json={'owner_kind': 'student', 'owner_id': student_id},
                    headers=headers)
    assert r.status_code == 201, r.text
    return r.json()['data']


def test_categories_slug_and_delete_guard(client, auth_headers):
    r = client.post(f'{API}/book-categories', json={'title': 'Computer Science'}, headers=auth_headers)
    category = r.json()['data']
    assert category['slug'] == 'computer-science'
    _book(client, auth_headers, book_category_id=category['id'])
    r = client.delete(f"{API}/book-categories/{category['id']}", headers=auth_headers)
    assert r.status_code == 400
    stats = client.get(f'{API}/book-categories/statistics', headers=auth_headers).json()['data']
    assert stats['with_books'] == 1


def test_duplicate_isbn(client, auth_headers):
    _book(client, auth_headers)
    r = client.post(f'{API}/books', json={'title': 'x', 'author': 'y', 'isbn': '9780132350884'},
                    headers=auth_headers)
    assert r.status_code == 400


def test_member_cards_are_numbered_and_unique(client, auth_headers, student):
    member = _member(client, auth_headers, student['id'])
    assert member['library_id'] == 'LIB0001'
    assert member['owner']['student_id'] == student['student_id']
    r = client.post(f'{API}/library-members', json={'owner_kind': 'student', 'owner_id': student['id']},
                    headers=auth_headers)
    assert r.status_code == 400
    r = client.post(f'{API}/library-members', json={'owner_kind': 'student', 'owner_id': 999},
                    headers=auth_headers)
    assert r.status_code == 404


def test_issue_and_return_with_fine(client, auth_headers, student):
    book = _book(client, auth_headers)
    member = _member(client, auth_headers, student['id'])
    r = client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': member['id'],
                                          'issue_date': '2025-01-01'}, headers=auth_headers)
    assert r.status_code == 201, r.text
    issue = r.json()['data']
    assert issue['due_date'] == '2025-01-15'
    assert issue['member_type'] == 'student'

    avail = client.get(f"{API}/books/{book['id']}/availability", headers=auth_headers).json()['data']
    assert avail == {'book_id': book['id'], 'title': 'Clean Code', 'total_quantity': 2,
                     'available_quantity': 1, 'issued_quantity': 1, 'is_available': True}

    # the same member cannot borrow the same book twice
    r = client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': member['id']}, headers=auth_headers)
    assert r.status_code == 400

    r = client.post(f'{API}/issues/return', json={'book_id': book['id'], 'member_id': member['id'],
                                                 'return_date': '2025-01-18'}, headers=auth_headers)
    assert r.status_code == 200
    returned = r.json()['data']
    assert returned['status'] == 'returned'
    assert returned['fine_amount'] == 30.0
    assert client.get(f"{API}/books/{book['id']}", headers=auth_headers).json()['data']['quantity'] == 2


def test_delete_book_keeps_issue_history(client, auth_headers, student):
    book = _book(client, auth_headers)
    member = _member(client, auth_headers, student['id'])
    client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': member['id']}, headers=auth_headers)
    r = client.delete(f"{API}/books/{book['id']}", headers=auth_headers)
    assert r.json()['message'] == 'Cannot delete book with active issues'

    client.post(f'{API}/issues/return', json={'book_id': book['id'], 'member_id': member['id']},
                headers=auth_headers)
    r = client.delete(f"{API}/books/{book['id']}", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()['message'] == 'Cannot delete book with issue history'
    assert len(client.get(f'{API}/issues', headers=auth_headers).json()['data']) == 1

    unused = _book(client, auth_headers, isbn='333')
    assert client.delete(f"{API}/books/{unused['id']}", headers=auth_headers).status_code == 200


def test_member_limit_and_settings(client, auth_headers, student):
    defaults = client.get(f'{API}/library-settings', headers=auth_headers).json()['data']
    assert defaults['fine_per_day'] == 10.0
    r = client.put(f'{API}/library-settings', json={'max_books_per_member': 1, 'fine_per_day': 5},
                   headers=auth_headers)
    assert r.status_code == 200
    first = _book(client, auth_headers, isbn='111')
    second = _book(client, auth_headers, isbn='222')
    member = _member(client, auth_headers, student['id'])
    assert client.post(f'{API}/issues', json={'book_id': first['id'], 'member_id': member['id']},
                       headers=auth_headers).status_code == 201
    r = client.post(f'{API}/issues', json={'book_id': second['id'], 'member_id': member['id']},
                    headers=auth_headers)
    assert r.status_code == 400
    assert 'limit' in r.json()['message']


def test_out_of_stock_and_lost(client, auth_headers, student):
    book = _book(client, auth_headers, quantity=1)
    member = _member(client, auth_headers, student['id'])
    issue = client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': member['id']},
                        headers=auth_headers).json()['data']
    other = client.post(f'{API}/outside-users', json={'first_name': 'Guest'}, headers=auth_headers).json()['data']
    guest = client.post(f'{API}/library-members', json={'owner_kind': 'outside_user', 'owner_id': other['id']},
                        headers=auth_headers).json()['data']
    r = client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': guest['id']}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()['message'] == 'Book is not available'

    r = client.post(f"{API}/issues/{issue['id']}/lost", headers=auth_headers)
    assert r.json()['data']['status'] == 'lost'
    assert client.post(f"{API}/issues/{issue['id']}/lost", headers=auth_headers).status_code == 400


def test_overdue_issues(client, auth_headers, student):
    book = _book(client, auth_headers)
    member = _member(client, auth_headers, student['id'])
    client.post(f'{API}/issues', json={'book_id': book['id'], 'member_id': member['id'],
                                      'issue_date': '2020-01-01'}, headers=auth_headers)
    rows = client.get(f'{API}/issues/overdue', headers=auth_headers).json()['data']
    assert len(rows) == 1
    assert rows[0]['is_overdue'] is True


def test_import_books_from_csv_and_json(client, auth_headers):
    csv_body = 'title,author,isbn,qty\nDune,Frank Herbert,100,3\nNo ISBN,Someone,,1\nDune,Frank Herbert,100,3\n'
    r = client.post(f'{API}/books/import', files={'file': ('books.csv', csv_body.encode())}, headers=auth_headers)
    assert r.status_code == 200
    result = r.json()['data']
    assert result['created'] == 1
    assert result['skipped'] == 1
    assert result['errors'] == [{'index': 1, 'error': 'missing isbn'}]

    payload = json.dumps({'books': [{'name': 'Emma', 'writer': 'Jane Austen', 'isbn': '200'}]}).encode()
    r = client.post(f'{API}/books/import?dry_run=true', files={'file': ('books.json', payload)},
                    headers=auth_headers)
    assert r.json()['data']['created'] == 1
    assert client.get(f'{API}/books', headers=auth_headers).json()['meta']['total'] == 1

    r = client.post(f'{API}/books/import', files={'file': ('books.txt', b'hello')}, headers=auth_headers)
    assert r.status_code == 400


def test_book_requests(client, auth_headers):
    r = client.post(f'{API}/book-requests', json={'title': 'SICP', 'request_by': 'Dr. Abelson'},
                    headers=auth_headers)
    req = r.json()['data']
    assert req['status'] == 'pending'
    r = client.put(f"{API}/book-requests/{req['id']}", json={'status': 'approved'}, headers=auth_headers)
    assert r.json()['data']['status'] == 'approved'
    assert client.delete(f"{API}/book-requests/{req['id']}", headers=auth_headers).status_code == 400
