"""Tests for lead_dashboard.routes.dashboard: home page, health, upload, dataset status, password gate."""
import io
from unittest.mock import patch

import pytest


def _upload(client, body, filename='leads.csv', **form):
    data = {'file': (io.BytesIO(body), filename)}
    data.update(form)
    return client.post('/api/upload', data=data, content_type='multipart/form-data')


# ---------------------------------------------------------------------------
# /health, /
# ---------------------------------------------------------------------------

class TestHealthCheck:
    """GET /health returns a simple health status."""

    def test_returns_200_with_healthy_status(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.json == {"status": "healthy"}


class TestIndex:
    """GET / renders the dashboard shell."""

    def test_returns_html(self, client):
        resp = client.get('/')
        assert resp.status_code == 200
        assert resp.content_type.startswith('text/html')

    def test_lists_every_tab(self, client):
        html = client.get('/').get_data(as_text=True)
        for label in ('Overall Leads', 'Counselor Performance', 'Facebook Ads Analysis', 'Lost Leads'):
            assert label in html


# ---------------------------------------------------------------------------
# /api/upload
# ---------------------------------------------------------------------------

class TestUpload:
    """POST /api/upload ingests a CSV export into the session's dataset."""

    def test_success(self, client, make_csv, sample_rows):
        resp = _upload(client, make_csv(sample_rows).encode('utf-8'), uploaded_by='ops@example.com')
        assert resp.status_code == 200
        data = resp.json
        assert data['status'] == 'success'
        assert data['dataset']['state'] == 'loaded'
        assert data['dataset']['record_count'] == 4
        assert data['dataset']['upload']['rows_read'] == 5
        assert data['dataset']['upload']['rows_dropped'] == 1
        assert data['dataset']['upload']['uploaded_by'] == 'ops@example.com'
        assert data['dataset']['upload']['filename'] == 'leads.csv'

    def test_publishes_to_store(self, client, fresh_store, make_csv, sample_rows):
        _upload(client, make_csv(sample_rows).encode('utf-8'))
        assert len(fresh_store) == 1

    def test_missing_file_is_400(self, client):
        resp = client.post('/api/upload', data={}, content_type='multipart/form-data')
        assert resp.status_code == 400
        assert resp.json['status'] == 'error'

    def test_binary_file_is_422(self, client):
        resp = _upload(client, b'PK\x03\x04\x00\x00\x00', filename='leads.xlsx')
        assert resp.status_code == 422
        assert resp.json['dataset']['state'] == 'failed'
        assert resp.json['error']

    def test_unexpected_error_is_500(self, client):
        with patch('lead_dashboard.routes.dashboard.ingest_upload', side_effect=RuntimeError('boom')):
            resp = _upload(client, b'Name,Created On\nA,2025-01-01\n')
        assert resp.status_code == 500
        assert resp.json['dataset']['state'] == 'failed'

    def test_failed_upload_keeps_previous_dataset(self, client, make_csv, sample_rows):
        _upload(client, make_csv(sample_rows).encode('utf-8'))
        _upload(client, b'\x00\x01\x02', filename='broken.csv')
        data = client.get('/api/dataset').json
        assert data['state'] == 'failed'
        assert data['has_data'] is True
        assert data['record_count'] == 4

    def test_second_upload_replaces_first(self, client, make_csv, sample_rows):
        _upload(client, make_csv(sample_rows).encode('utf-8'))
        _upload(client, make_csv(sample_rows[:1]).encode('utf-8'))
        assert client.get('/api/dataset').json['record_count'] == 1

    def test_header_only_file_loads_empty_dataset(self, client, make_csv):
        resp = _upload(client, make_csv([]).encode('utf-8'))
        assert resp.status_code == 200
        assert resp.json['dataset']['state'] == 'loaded'
        assert resp.json['dataset']['has_data'] is False

    def test_too_large_is_413(self, fresh_store):
        from lead_dashboard import create_app
        app = create_app({'TESTING': True, 'DASHBOARD_PASSWORD': None, 'MAX_CONTENT_LENGTH': 64})
        with app.test_client() as c:
            resp = _upload(c, b'Name,Created On\n' + b'x,2025-01-01\n' * 50)
        assert resp.status_code == 413
        assert resp.json['status'] == 'error'


# ---------------------------------------------------------------------------
# /api/dataset
# ---------------------------------------------------------------------------

class TestDataset:

    def test_empty_before_upload(self, client):
        data = client.get('/api/dataset').json
        assert data == {'state': 'empty', 'has_data': False, 'record_count': 0, 'upload': None, 'error': None}

    def test_delete_clears(self, client, make_csv, sample_rows):
        _upload(client, make_csv(sample_rows).encode('utf-8'))
        resp = client.delete('/api/dataset')
        assert resp.status_code == 200
        assert client.get('/api/dataset').json['state'] == 'empty'

    def test_delete_without_dataset_is_ok(self, client):
        assert client.delete('/api/dataset').status_code == 200

    def test_sessions_do_not_share_datasets(self, app, client, make_csv, sample_rows):
        _upload(client, make_csv(sample_rows).encode('utf-8'))
        with app.test_client() as other:
            assert other.get('/api/dataset').json['has_data'] is False


# ---------------------------------------------------------------------------
# Password gate
# ---------------------------------------------------------------------------

@pytest.fixture
def locked_client(fresh_store):
    from lead_dashboard import create_app
    app = create_app({'TESTING': True, 'DASHBOARD_PASSWORD': 'hunter2', 'SECRET_KEY': 'test'})
    with app.test_client() as c:
        yield c


class TestPasswordGate:

    def test_health_is_open(self, locked_client):
        assert locked_client.get('/health').status_code == 200

    def test_page_redirects_to_login(self, locked_client):
        resp = locked_client.get('/')
        assert resp.status_code == 302
        assert resp.headers['Location'].endswith('/login')

    def test_api_returns_401_json(self, locked_client):
        resp = locked_client.get('/api/overview')
        assert resp.status_code == 401
        assert resp.json['error'] == 'Authentication required'

    def test_wrong_password(self, locked_client):
        resp = locked_client.post('/login', data={'password': 'nope'})
        assert resp.status_code == 200
        assert 'Wrong password' in resp.get_data(as_text=True)

    def test_login_then_logout(self, locked_client):
        resp = locked_client.post('/login', data={'password': 'hunter2'})
        assert resp.status_code == 302
        assert locked_client.get('/api/dataset').status_code == 200
        locked_client.get('/logout')
        assert locked_client.get('/api/dataset').status_code == 401
