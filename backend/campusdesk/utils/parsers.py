"""File parsing utilities that convert uploaded lists into rows.

Supported input types: JSON (an array of objects) and CSV (a header
row). Parsers return dictionaries holding only known columns, with
numbers coerced and blanks dropped, ready for
`LibraryService.import_books`, `AdmissionService.import_applications`
or `StudentService.import_students`. Dates and choice columns are left
as text for the request schemas to validate.
"""

import csv
import io
import json
from typing import Callable, Dict, List

from ..models import PersonBase

BOOK_FIELDS = (
    'book_category_id', 'title', 'isbn', 'accession_number', 'author', 'publisher', 'edition',
    'publication_year', 'language', 'price', 'quantity', 'shelf_location', 'shelf_column',
    'shelf_row', 'description', 'note',
)
INT_FIELDS = ('book_category_id', 'publication_year', 'quantity')

# alternative column headers seen in spreadsheets
ALIASES = {
    'name': 'title',
    'book_title': 'title',
    'writer': 'author',
    'year': 'publication_year',
    'qty': 'quantity',
    'copies': 'quantity',
    'category_id': 'book_category_id',
}

PERSON_FIELDS = tuple(PersonBase.model_fields)
# `batch` and `program` hold names; the services resolve them to ids
PLACEMENT_FIELDS = ('batch', 'program', 'batch_id', 'program_id')
APPLICATION_FIELDS = PERSON_FIELDS + PLACEMENT_FIELDS + ('apply_date', 'fee_amount', 'pay_status',
                                                         'payment_method')
STUDENT_FIELDS = PERSON_FIELDS + PLACEMENT_FIELDS + ('registration_no', 'admission_date', 'status')
PERSON_INT_FIELDS = ('batch_id', 'program_id', 'school_graduation_year', 'college_graduation_year')
PERSON_FLOAT_FIELDS = ('fee_amount', 'school_graduation_point', 'college_graduation_point')
CHOICE_FIELDS = ('gender', 'religion', 'marital_status', 'blood_group', 'payment_method', 'status')

PERSON_ALIASES = {
    'date_of_birth': 'dob',
    'birth_date': 'dob',
    'mobile': 'phone',
    'batch_name': 'batch',
    'program_name': 'program',
    'program_title': 'program',
    'payment_status': 'pay_status',
    'paid': 'pay_status',
}


def parse_file_to_books(file_bytes: bytes, filename: str) -> List[Dict]:
    """Dispatch to the appropriate parser based on file extension."""
    name = (filename or '').lower()
    if name.endswith('.json'):
        return parse_json(file_bytes)
    if name.endswith('.csv'):
        return parse_csv(file_bytes)
    raise ValueError('Unsupported file type')


def parse_file_to_applications(file_bytes: bytes, filename: str) -> List[Dict]:
    """Admission applications, one per row/object; see `normalize_person`."""
    return _parse_file(file_bytes, filename, 'applications',
                       lambda item: normalize_person(item, APPLICATION_FIELDS))


def parse_file_to_students(file_bytes: bytes, filename: str) -> List[Dict]:
    """Student records, one per row/object; see `normalize_person`."""
    return _parse_file(file_bytes, filename, 'students', lambda item: normalize_person(item, STUDENT_FIELDS))


def _parse_file(b: bytes, filename: str, key: str, normalize: Callable[[dict], dict]) -> List[Dict]:
    name = (filename or '').lower()
    if name.endswith('.json'):
        return parse_json(b, key=key, normalize=normalize)
    if name.endswith('.csv'):
        return parse_csv(b, normalize=normalize)
    raise ValueError('Unsupported file type')


def parse_json(b: bytes, key: str = 'books', normalize: Callable[[dict], dict] = None) -> List[Dict]:
    normalize = normalize or normalize_book
    data = json.loads(_decode(b))
    if isinstance(data, dict):
        data = data.get(key) or data.get('data') or []
    if not isinstance(data, list):
        raise ValueError(f'JSON must contain a list of {key}')
    return [normalize(item) for item in data if isinstance(item, dict)]


def parse_csv(b: bytes, normalize: Callable[[dict], dict] = None) -> List[Dict]:
    """Parse a CSV with one record per row.

    For books the expected columns are `title`, `author` and `isbn`;
    the other `Book` columns (or their aliases) are passed through if
    present.
    """
    normalize = normalize or normalize_book
    reader = csv.DictReader(io.StringIO(_decode(b)))
    return [normalize(row) for row in reader]


def normalize_book(item: dict) -> dict:
    out = {}
    for key, value in _cells(item, ALIASES):
        if key not in BOOK_FIELDS:
            continue
        if key in INT_FIELDS:
            value = _coerce_int(value)
        elif key == 'price':
            value = _coerce_float(value)
        elif key == 'isbn':
            value = str(value)
        if value is not None:
            out[key] = value
    return out


def normalize_person(item: dict, fields=APPLICATION_FIELDS) -> dict:
    """Keep the person/placement columns in `fields`.

    Numbers are coerced, choice columns lower-cased, and `pay_status`
    accepts `paid`/`unpaid` as well as booleans. Phone numbers and ids
    stay text even when a JSON file holds them as numbers.
    """
    out = {}
    for key, value in _cells(item, PERSON_ALIASES):
        if key not in fields:
            continue
        if key in PERSON_INT_FIELDS:
            value = _coerce_int(value)
        elif key in PERSON_FLOAT_FIELDS:
            value = _coerce_float(value)
        elif key == 'pay_status':
            value = _coerce_paid(value)
        elif key in CHOICE_FIELDS:
            value = str(value).lower()
        elif not isinstance(value, str):
            value = str(value)
        if value is not None:
            out[key] = value
    return out


def _cells(item: dict, aliases: dict):
    """(column, value) pairs with normalized headers and blanks dropped."""
    for key, value in item.items():
        if key is None:
            continue
        key = key.strip().lower().replace(' ', '_')
        key = aliases.get(key, key)
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == '':
            continue
        yield key, value


def _decode(b: bytes) -> str:
    # utf-8-sig strips the BOM spreadsheet exports add
    return b.decode('utf-8-sig')


def _coerce_int(val):
    try:
        return int(float(val))
    except (TypeError, ValueError):
        return None


def _coerce_float(val):
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def _coerce_paid(val):
    if isinstance(val, bool):
        return val
    text = str(val).strip().lower()
    if text in ('paid', 'yes', 'true', '1'):
        return True
    if text in ('unpaid', 'no', 'false', '0', 'partial'):
        return False
    return None
