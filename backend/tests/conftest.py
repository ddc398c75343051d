import os
import tempfile
from pathlib import Path

# Point the app at a throwaway SQLite file before anything imports `campusdesk`.
_DB_DIR = Path(tempfile.mkdtemp(prefix='campusdesk-tests-'))
os.environ['DATABASE_URL'] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ.setdefault('ENV', 'dev')

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from campusdesk.database import engine
from campusdesk.main import app
from campusdesk.routes.auth import login_limiter

API = '/api/v1'


@pytest.fixture(autouse=True)
def reset_db():
    """Fresh tables and an empty login limiter for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    login_limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def auth_headers(client):
    r = client.post(f'{API}/auth/register', json={'username': 'registrar', 'password': 'secret123',
                                                  'first_name': 'Grace'})
    assert r.status_code == 201
    r = client.post(f'{API}/auth/login', json={'username': 'registrar', 'password': 'secret123'})
    assert r.status_code == 200
    return {'Authorization': f"Bearer {r.json()['data']['access_token']}"}


@pytest.fixture
def academic(client, auth_headers):
    """Faculty, program, batch, current session/semester and a section."""
    def post(kind, body):
        r = client.post(f'{API}/{kind}', json=body, headers=auth_headers)
        assert r.status_code == 201, r.text
        return r.json()['data']['id']

    faculty = post('faculties', {'name': 'Faculty of Science', 'code': 'FOS'})
    session_id = post('sessions', {'name': '2025-2026', 'is_current': True})
    semester = post('semesters', {'name': 'First Semester', 'is_current': True})
    program = post('programs', {'faculty_id': faculty, 'title': 'Computer Science', 'shortcode': 'CS',
                                'session_ids': [session_id], 'semester_ids': [semester]})
    batch = post('batches', {'program_id': program, 'name': 'Batch 2025', 'academic_year': 2025})
    section = post('sections', {'batch_id': batch, 'name': 'A', 'seat': 40})
    return {'faculty_id': faculty, 'program_id': program, 'batch_id': batch, 'session_id': session_id,
            'semester_id': semester, 'section_id': section}


@pytest.fixture
def student(client, auth_headers, academic):
    """An active student with one active enrolment."""
    r = client.post(f'{API}/students', json={'first_name': 'Ada', 'last_name': 'Lovelace',
                                             'email': 'ada@example.com', 'batch_id': academic['batch_id'],
                                             'program_id': academic['program_id']}, headers=auth_headers)
    assert r.status_code == 201, r.text
    data = r.json()['data']
    r = client.post(f"{API}/students/{data['id']}/enroll", json={
        'program_id': academic['program_id'], 'session_id': academic['session_id'],
        'semester_id': academic['semester_id'], 'section_id': academic['section_id']}, headers=auth_headers)
    assert r.status_code == 201, r.text
    data['enroll_id'] = r.json()['data']['id']
    return data
