from types import SimpleNamespace

from campusdesk.config import settings
from campusdesk.utils import rate_limit

API = '/api/v1'


def test_register_login_and_me(client):
    r = client.post(f'{API}/auth/register', json={'username': 'bursar', 'password': 'pass123'})
    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    assert 'password_hash' not in body['data']

    r = client.post(f'{API}/auth/login', json={'username': 'bursar', 'password': 'pass123'})
    assert r.status_code == 200
    token = r.json()['data']['access_token']
    assert r.json()['data']['token_type'] == 'bearer'

    r = client.get(f'{API}/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert r.status_code == 200
    assert r.json()['data']['username'] == 'bursar'


def test_duplicate_username_is_rejected(client):
    client.post(f'{API}/auth/register', json={'username': 'bursar', 'password': 'pass123'})
    r = client.post(f'{API}/auth/register', json={'username': 'bursar', 'password': 'other123'})
    assert r.status_code == 400
    assert r.json() == {'success': False, 'message': 'username already exists', 'errors': None}


def test_bad_credentials_and_tokens(client):
    client.post(f'{API}/auth/register', json={'username': 'bursar', 'password': 'pass123'})
    r = client.post(f'{API}/auth/login', json={'username': 'bursar', 'password': 'wrong'})
    assert r.status_code == 401
    r = client.get(f'{API}/auth/me', headers={'Authorization': 'Bearer not-a-token'})
    assert r.status_code == 401
    assert r.json()['message'] == 'invalid token'
    # protected endpoints refuse requests without a token
    r = client.get(f'{API}/students')
    assert r.status_code in (401, 403)


def test_login_rate_limit(client, monkeypatch):
    monkeypatch.setattr(settings, 'LOGIN_RATE_LIMIT_PER_MIN', 2)
    for _ in range(2):
        assert client.post(f'{API}/auth/login', json={'username': 'x', 'password': 'y'}).status_code == 401
    r = client.post(f'{API}/auth/login', json={'username': 'x', 'password': 'y'})
    assert r.status_code == 429
    assert 'Retry-After' in r.headers


def test_rate_limit_window_slides(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr(rate_limit, 'time', SimpleNamespace(monotonic=lambda: clock[0]))
    limiter = rate_limit.InMemoryRateLimiter()
    assert limiter.allow('k', 2, 60) == (True, 0)
    clock[0] = 130.0
    assert limiter.allow('k', 2, 60) == (True, 0)
    clock[0] = 150.0
    assert limiter.allow('k', 2, 60) == (False, 10)
    # the first hit has aged out; the one at 130s still counts
    clock[0] = 161.0
    assert limiter.allow('k', 2, 60) == (True, 0)
    assert limiter.allow('k', 2, 60) == (False, 29)
    limiter.reset('k')
    assert limiter.allow('k', 2, 60) == (True, 0)


def test_validation_errors_use_envelope(client):
    r = client.post(f'{API}/auth/register', json={'username': 'ab', 'password': '1'})
    assert r.status_code == 422
    body = r.json()
    assert body['success'] is False
    assert body['errors']


def test_health_and_request_id(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert r.headers['X-Request-ID'] == 'abc123'
