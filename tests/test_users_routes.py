"""
Tests for the users REST endpoints.

Covers: status mapping for each operation, parameter and body validation,
request id propagation, generic 500 on backend failure.
"""
import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from core.users import BackendUnavailable, UserStore
from models import User


class _FailingStore(UserStore):
    """Store whose every call fails at the backend."""

    def __init__(self):
        self.calls = []

    def _fail(self, op):
        self.calls.append(op)
        raise BackendUnavailable('failed to execute statement: connection reset', op)

    def add_user(self, name, email):
        self._fail('storage.users.add_user')

    def get_user(self, user_id):
        self._fail('storage.users.get_user')

    def get_users_list(self, users_filter):
        self._fail('storage.users.get_users_list')

    def update_user(self, user_id, name, email):
        self._fail('storage.users.update_user')

    def delete_user(self, user_id):
        self._fail('storage.users.delete_user')


@pytest.fixture
def failing_store():
    return _FailingStore()


@pytest.fixture
def failing_client(app_config, failing_store):
    """Client for an app wired to a store that always fails"""
    from server import create_app

    failing_app = create_app(app_config, store=failing_store)
    failing_app.config.update({'TESTING': True})
    return failing_app.test_client()


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

@pytest.mark.api
def test_index(client):
    resp = client.get('/')
    assert resp.status_code == 200
    assert resp.get_json() == 'Hello World!'


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestCreateUser:

    def test_create_returns_id(self, client, store):
        resp = client.post('/users', json={'name': 'Alice', 'email': 'a@x.com'})
        assert resp.status_code == 200
        user_id = resp.get_json()['id']
        assert store.get_user(user_id).email == 'a@x.com'

    def test_duplicate_email_conflict(self, client, alice):
        resp = client.post('/users', json={'name': 'Other', 'email': 'a@x.com'})
        assert resp.status_code == 409
        assert 'error' in resp.get_json()
        assert User.query.filter_by(email='a@x.com').count() == 1

    def test_malformed_json(self, client):
        resp = client.post('/users', data='{not json', content_type='application/json')
        assert resp.status_code == 400

    def test_body_not_an_object(self, client):
        resp = client.post('/users', json=['Alice', 'a@x.com'])
        assert resp.status_code == 400

    def test_missing_email(self, client):
        resp = client.post('/users', json={'name': 'Alice'})
        assert resp.status_code == 400
        assert 'email' in resp.get_json()['error']

    def test_name_wrong_type(self, client):
        resp = client.post('/users', json={'name': 42, 'email': 'a@x.com'})
        assert resp.status_code == 400
        assert 'name' in resp.get_json()['error']

    def test_invalid_body_never_reaches_store(self, failing_client, failing_store):
        resp = failing_client.post('/users', json={'name': 'Alice'})
        assert resp.status_code == 400
        assert failing_store.calls == []


# ---------------------------------------------------------------------------
# Get
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestGetUser:

    def test_get_existing(self, client, alice):
        resp = client.get(f'/users/{alice}')
        assert resp.status_code == 200
        assert resp.get_json() == {'id': alice, 'name': 'Alice', 'email': 'a@x.com'}

    def test_get_missing(self, client):
        resp = client.get('/users/99999')
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'User not found'

    @pytest.mark.parametrize('raw_id', ['abc', '-1', '1.5', '+1'])
    def test_get_unparsable_id(self, client, raw_id):
        resp = client.get(f'/users/{raw_id}')
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestListUsers:

    def test_paged_listing(self, client, store):
        for name, email in [('Alice', 'a@x.com'), ('Bob', 'b@x.com'), ('Carol', 'c@x.com')]:
            store.add_user(name, email)

        first = client.get('/users/1/2')
        second = client.get('/users/2/2')

        assert first.status_code == 200
        assert [u['name'] for u in first.get_json()] == ['Alice', 'Bob']
        assert [u['name'] for u in second.get_json()] == ['Carol']

    def test_default_window(self, client, alice, bob):
        resp = client.get('/users')
        assert resp.status_code == 200
        assert len(resp.get_json()) == 2

    def test_page_beyond_data(self, client, alice):
        resp = client.get('/users/10/20')
        assert resp.status_code == 200
        assert resp.get_json() == []

    @pytest.mark.parametrize('path', ['/users/x/20', '/users/1/y', '/users/0/20', '/users/1/0'])
    def test_invalid_pagination(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 400

    def test_invalid_pagination_never_reaches_store(self, failing_client, failing_store):
        resp = failing_client.get('/users/x/20')
        assert resp.status_code == 400
        assert failing_store.calls == []


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestUpdateUser:

    def test_update_existing(self, client, store, alice):
        resp = client.put(f'/users/{alice}', json={'name': 'Alicia', 'email': 'a@x.com'})
        assert resp.status_code == 200
        assert resp.get_json() == {'success': True}
        assert store.get_user(alice).name == 'Alicia'

    def test_update_missing(self, client):
        resp = client.put('/users/99999', json={'name': 'Ghost', 'email': 'g@x.com'})
        assert resp.status_code == 404

    def test_update_unparsable_id(self, client):
        resp = client.put('/users/abc', json={'name': 'Alice', 'email': 'a@x.com'})
        assert resp.status_code == 400

    def test_update_bad_body(self, client, alice):
        resp = client.put(f'/users/{alice}', data='nope', content_type='application/json')
        assert resp.status_code == 400

    def test_update_to_taken_email(self, client, alice, bob):
        resp = client.put(f'/users/{bob}', json={'name': 'Bob', 'email': 'a@x.com'})
        assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestDeleteUser:

    def test_delete_existing(self, client, alice):
        resp = client.delete(f'/users/{alice}')
        assert resp.status_code == 200

        resp = client.get(f'/users/{alice}')
        assert resp.status_code == 404

    def test_delete_missing(self, client):
        resp = client.delete('/users/99999')
        assert resp.status_code == 404

    def test_delete_unparsable_id(self, client):
        resp = client.delete('/users/abc')
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Backend failures and request ids
# ---------------------------------------------------------------------------

@pytest.mark.api
class TestServerErrors:

    @pytest.mark.parametrize('method,path,body', [
        ('get', '/users/1', None),
        ('get', '/users/1/20', None),
        ('post', '/users', {'name': 'Alice', 'email': 'a@x.com'}),
        ('put', '/users/1', {'name': 'Alice', 'email': 'a@x.com'}),
        ('delete', '/users/1', None),
    ])
    def test_backend_failure_is_generic_500(self, failing_client, method, path, body):
        resp = getattr(failing_client, method)(path, json=body)
        assert resp.status_code == 500
        error = resp.get_json()['error']
        assert error == 'An internal error occurred'
        assert 'connection reset' not in error


@pytest.mark.api
class TestRequestId:

    def test_request_id_echoed(self, client):
        resp = client.get('/', headers={'X-Request-ID': 'req-123'})
        assert resp.headers['X-Request-ID'] == 'req-123'

    def test_request_id_generated(self, client):
        resp = client.get('/')
        assert len(resp.headers['X-Request-ID']) == 32


@pytest.mark.api
class TestOutOfRangeParameters:

    HUGE = '99999999999999999999'

    @pytest.mark.parametrize('method,body', [
        ('get', None),
        ('put', {'name': 'Alice', 'email': 'a@x.com'}),
        ('delete', None),
    ])
    def test_huge_id_rejected(self, client, method, body):
        resp = getattr(client, method)(f'/users/{self.HUGE}', json=body)
        assert resp.status_code == 400
        assert 'out of range' in resp.get_json()['error']

    @pytest.mark.parametrize('path', [f'/users/1/{HUGE}', f'/users/{HUGE}/20', '/users/4611686018427387904/4'])
    def test_huge_window_rejected(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 400

    def test_huge_id_never_reaches_store(self, failing_client, failing_store):
        resp = failing_client.delete(f'/users/{self.HUGE}')
        assert resp.status_code == 400
        assert failing_store.calls == []

    def test_largest_id_is_not_found(self, client):
        resp = client.get('/users/9223372036854775807')
        assert resp.status_code == 404


@pytest.mark.api
def test_real_store_backend_failure(client, alice):
    def _backend_down(*args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('connection refused'))

    with patch('sqlalchemy.orm.Session.get', side_effect=_backend_down):
        resp = client.get(f'/users/{alice}')

    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'An internal error occurred'}
