import csv
import io
import json
from datetime import date
from types import SimpleNamespace

import pytest

from campusdesk.utils.exporters import STUDENT_COLUMNS, applications_csv, students_csv
from campusdesk.utils.parsers import (
    parse_csv, parse_file_to_applications, parse_file_to_books, parse_file_to_students, parse_json,
)


def test_parse_csv_aliases_and_coercion():
    data = ('\ufeffBook Title,Writer,ISBN,Copies,Price,Year,Unknown\n'
            'Dune,Frank Herbert,9780441013593,3,12.5,1965,x\n'
            'Emma,Jane Austen,,two,,,\n').encode('utf-8')
    rows = parse_csv(data)
    assert rows[0] == {'title': 'Dune', 'author': 'Frank Herbert', 'isbn': '9780441013593', 'quantity': 3,
                       'price': 12.5, 'publication_year': 1965}
    # blanks and unparsable numbers are dropped
    assert rows[1] == {'title': 'Emma', 'author': 'Jane Austen'}


def test_parse_json_list_and_wrapped():
    books = [{'title': 'Dune', 'isbn': 9780441013593, 'qty': '2'}, 'junk']
    assert parse_json(json.dumps(books).encode()) == [{'title': 'Dune', 'isbn': '9780441013593', 'quantity': 2}]
    assert parse_json(json.dumps({'books': books[:1]}).encode())[0]['title'] == 'Dune'
    assert parse_json(json.dumps({'data': []}).encode()) == []
    with pytest.raises(ValueError):
        parse_json(b'"not a list"')


def test_dispatch_on_extension():
    assert parse_file_to_books(b'title\nDune\n', 'BOOKS.CSV') == [{'title': 'Dune'}]
    with pytest.raises(ValueError, match='Unsupported'):
        parse_file_to_books(b'', 'books.xlsx')


def test_person_rows_keep_known_columns():
    data = ('Full Name,First Name,Email,Mobile,Gender,Program,Batch,Fee Amount,Payment Status,'
            'School Graduation Year\n'
            'x,Alan,alan@example.com,0123,MALE,CS,Batch 2025,500,Paid,1930\n').encode('utf-8')
    assert parse_file_to_applications(data, 'apps.csv') == [{
        'first_name': 'Alan', 'email': 'alan@example.com', 'phone': '0123', 'gender': 'male', 'program': 'CS',
        'batch': 'Batch 2025', 'fee_amount': 500.0, 'pay_status': True, 'school_graduation_year': 1930}]

    students = [{'first_name': 'Ada', 'phone': 5550100, 'status': 'Active', 'fee_amount': 5, 'batch_id': '3'}]
    assert parse_file_to_students(json.dumps({'students': students}).encode(), 'students.json') == [
        {'first_name': 'Ada', 'phone': '5550100', 'status': 'active', 'batch_id': 3}]
    with pytest.raises(ValueError, match='Unsupported'):
        parse_file_to_students(b'', 'students.xlsx')


def test_students_csv():
    student = SimpleNamespace(student_id='CS20250001', registration_no='APP20250001', first_name='Ada',
                              last_name='Lovelace', email='ada@example.com', phone=None, gender='female',
                              dob=date(2001, 12, 10), program=SimpleNamespace(title='Computer Science'),
                              batch=None, admission_date=date(2025, 1, 6), status='active')
    rows = list(csv.reader(io.StringIO(students_csv([student]))))
    assert rows[0] == list(STUDENT_COLUMNS)
    row = dict(zip(rows[0], rows[1]))
    assert row['full_name'] == 'Ada Lovelace'
    assert row['gender'] == 'Female'
    assert row['program'] == 'Computer Science'
    assert row['batch'] == ''
    assert row['status'] == 'Active'


def test_applications_csv_header_only():
    assert applications_csv([]).startswith('registration_no,full_name,email')
    assert applications_csv([]).count('\n') == 1
