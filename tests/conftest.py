"""Shared test fixtures."""
import csv
import io
from datetime import datetime
from unittest.mock import patch

import pytest

from lead_dashboard.models.lead import LeadRecord
from lead_dashboard.services.store import LeadStore

HEADER = [
    'status', 'Lost Reason', 'Assignee Name', 'Assignee Email', 'Name', 'Phone',
    'Email', 'City', 'Fb Campaign', 'Fb Lead ID', 'Facebook Ad',
    'Student Preference', 'Created On', 'Modified On', 'Batch Names',
]


@pytest.fixture
def fresh_store():
    """Empty LeadStore patched in where the routes imported it."""
    store = LeadStore()
    with patch('lead_dashboard.routes.dashboard.lead_store', store):
        yield store


@pytest.fixture
def app(fresh_store):
    """Flask test app."""
    from lead_dashboard import create_app
    app = create_app({'TESTING': True, 'DASHBOARD_PASSWORD': None, 'SECRET_KEY': 'test'})
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_record():
    """Factory fixture: builds a LeadRecord with sensible defaults."""
    def _make(parsed_date=None, **overrides):
        defaults = dict(
            status='Fresh',
            assignee_name='Priya Sharma',
            name='Test Lead',
            city='Delhi',
        )
        defaults.update(overrides)
        return LeadRecord(parsed_date=parsed_date or datetime(2025, 3, 15, 10, 0, 0), **defaults)
    return _make


@pytest.fixture
def make_csv():
    """Factory fixture: CSV text with the full export header from a list of column dicts."""
    def _make(rows, header=None):
        header = header or HEADER
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=header, extrasaction='ignore')
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
        return buf.getvalue()
    return _make


@pytest.fixture
def sample_rows():
    """Rows resembling a real CRM export."""
    return [
        {
            'status': 'Fresh', 'Assignee Name': 'Priya Sharma', 'Name': 'Aarav Mehta',
            'Phone': '9876543210', 'Email': 'aarav@example.com', 'City': 'Delhi',
            'Fb Campaign': 'Study in Canada', 'Facebook Ad': 'Canada Carousel',
            'Student Preference': 'btech_engineering', 'Created On': '15-05-2025 12:06:07 pm',
        },
        {
            'status': 'Lost - Budget', 'Lost Reason': 'Budget constraints',
            'Assignee Name': 'Alex Thompson', 'Name': 'Lisa Chen', 'Phone': '',
            'Email': 'lisa@example.com', 'City': ' delhi ', 'Fb Campaign': 'Study in Canada',
            'Facebook Ad': 'Canada Carousel', 'Student Preference': 'mba_management',
            'Created On': '16-05-2025 09:15:00 am',
        },
        {
            'status': 'Registered to University', 'Assignee Name': 'Priya Sharma',
            'Name': 'David Kim', 'Phone': '9123456780', 'Email': '', 'City': 'Mumbai',
            'Fb Campaign': 'UK Scholarships', 'Facebook Ad': 'UK Video',
            'Student Preference': 'other', 'Created On': '2025-04-02 14:30:00',
        },
        {
            'status': 'Docs Received', 'Assignee Name': '', 'Name': 'Emma Rodriguez',
            'Phone': '9000000000', 'Email': 'emma@example.com', 'City': 'unknown',
            'Fb Campaign': '', 'Facebook Ad': 'NA', 'Student Preference': 'study_abroad',
            'Created On': '01-04-2025 10:00:00 am',
        },
        {
            'status': 'Fresh', 'Assignee Name': 'Alex Thompson', 'Name': 'No Date',
            'Created On': 'pending',
        },
    ]
